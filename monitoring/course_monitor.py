"""
Course Monitor

Runs one monitoring cycle: log in, scrape the course contents, compare with
the stored catalog, send alerts and commit the new catalog. The catalog is
only committed once every alert of the cycle has been sent.
"""

import logging
import threading
from datetime import datetime

from config.errors import MonitorError
from config.models import CycleReport
from config.storage import CatalogStore, CookieJar
from monitoring.browser import get_driver, quit_driver
from monitoring.change_detector import derive_snapshot, detect_changes
from monitoring.course_scraper import extract_content
from monitoring.session import ensure_session
from services.notification_service import NotificationService

logger = logging.getLogger(__name__)


class CourseMonitor:
    def __init__(self, config, catalog_store=None, cookie_jar=None, notifier=None, driver_factory=None):
        self.config = config
        self.catalog_store = catalog_store or CatalogStore(config.catalog_file)
        self.cookie_jar = cookie_jar or CookieJar(config.cookies_file)
        self.notifier = notifier or NotificationService(config)
        self.driver_factory = driver_factory or get_driver
        self._cycle_lock = threading.Lock()

    @property
    def in_flight(self):
        return self._cycle_lock.locked()

    def run_cycle(self):
        """
        Run one monitoring cycle. Never raises on cycle errors.

        Returns:
            CycleReport: 'completed', 'bootstrap', 'failed' or 'skipped'
        """
        if not self._cycle_lock.acquire(blocking=False):
            logger.warning("Previous check still running, skipping this trigger")
            return CycleReport(status="skipped")

        try:
            logger.info(f"Starting check at {datetime.now().strftime('%H:%M:%S')}")
            return self._run()
        except MonitorError as e:
            logger.error(f"Check aborted ({type(e).__name__}): {e}")
            return CycleReport(status="failed", error=str(e))
        except Exception as e:
            logger.error(f"Critical error during check: {e}", exc_info=True)
            return CycleReport(status="failed", error=str(e))
        finally:
            self._cycle_lock.release()

    def _run(self):
        driver = self.driver_factory(self.config)
        try:
            ensure_session(driver, self.config, self.cookie_jar)
            items = extract_content(driver, self.config)

            catalog = self.catalog_store.load()
            events = detect_changes(items, catalog.records)
            snapshot = derive_snapshot(items)

            if catalog.is_empty:
                logger.info(f"Initialization: {len(items)} items stored, notifications suppressed")
                self.catalog_store.commit(snapshot)
                return CycleReport(status="bootstrap", events=events)

            if events:
                logger.info(f"{len(events)} notifications to process")
            else:
                logger.info("No changes detected")

            sent = self.notifier.dispatch_all(events, driver)
            self.catalog_store.commit(snapshot)
            return CycleReport(status="completed", events=events, notified=sent)
        finally:
            quit_driver(driver)
