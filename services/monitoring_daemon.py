"""
Monitoring Daemon

Background service that checks the course for new content right away and
then once per configured interval until it is stopped.
"""

import sys
import time
import signal
import logging

from config.errors import ConfigurationError
from config.settings import load_config
from monitoring.browser import cleanup_all_drivers
from monitoring.course_monitor import CourseMonitor
from utils.schedule import describe_interval

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(log_file="course_monitor.log", level=logging.INFO):
    handlers = [logging.StreamHandler()]
    if log_file:
        handlers.append(logging.FileHandler(log_file))
    logging.basicConfig(level=level, format=LOG_FORMAT, handlers=handlers)


class MonitoringDaemon:
    def __init__(self, monitor, interval_seconds, sleep=time.sleep):
        self.monitor = monitor
        self.interval_seconds = interval_seconds
        self.running = True
        self.cycle_count = 0
        self._sleep = sleep

    def handle_signal(self, signum, frame):
        """Handle shutdown signals gracefully."""
        logger.info("Received shutdown signal. Stopping gracefully...")
        self.running = False
        if self.monitor.in_flight:
            # Abandon the running check; its finally block and atexit close the browser
            sys.exit(0)

    def install_signal_handlers(self):
        signal.signal(signal.SIGINT, self.handle_signal)
        signal.signal(signal.SIGTERM, self.handle_signal)

    def run_once(self):
        self.cycle_count += 1
        logger.info(f"=== Monitoring Cycle #{self.cycle_count} ===")
        return self.monitor.run_cycle()

    def wait_for_next_cycle(self):
        logger.info(f"Waiting {describe_interval(self.interval_seconds)} before next cycle...")
        deadline = time.monotonic() + self.interval_seconds
        # Sleep in short steps so a shutdown signal is handled promptly
        while self.running:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                break
            self._sleep(min(1.0, remaining))

    def run(self, max_cycles=None):
        """Run cycles until stopped, or until `max_cycles` cycles have run."""
        while self.running:
            self.run_once()
            if max_cycles is not None and self.cycle_count >= max_cycles:
                break
            self.wait_for_next_cycle()


def main(once=False, log_file="course_monitor.log"):
    """
    Start the course monitor.

    Returns:
        int: Process exit code
    """
    setup_logging(log_file)

    try:
        config = load_config()
    except ConfigurationError as e:
        logger.error(f"Failed to start bot: {e}")
        return 1

    monitor = CourseMonitor(config)
    daemon = MonitoringDaemon(monitor, config.interval_seconds)
    daemon.install_signal_handlers()

    logger.info("Course Monitoring Bot started")
    logger.info(f"Schedule: every {describe_interval(config.interval_seconds)}")

    try:
        daemon.run(max_cycles=1 if once else None)
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
    finally:
        cleanup_all_drivers()
        logger.info("Monitoring Daemon stopped")

    return 0


if __name__ == "__main__":
    sys.exit(main())
