#!/usr/bin/env python3
"""
Course Content Monitor - Main Entry Point

Watches a course's content listing and posts a Discord alert whenever a
lesson is added or a text placeholder becomes a video.

Usage:
    python main.py            # run forever on the configured schedule
    python main.py --once     # run a single check and exit
"""

import argparse
import sys


def main():
    parser = argparse.ArgumentParser(description="Course Content Monitor")
    parser.add_argument("--once", action="store_true", help="Run a single check and exit")
    parser.add_argument(
        "--log-file",
        default="course_monitor.log",
        help="Log file path (empty string to log to the console only)",
    )

    args = parser.parse_args()

    from services.monitoring_daemon import main as run_daemon
    return run_daemon(once=args.once, log_file=args.log_file)


if __name__ == "__main__":
    sys.exit(main())
