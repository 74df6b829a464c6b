"""
Configuration Management

Builds the immutable monitor configuration from environment variables.
The configuration is loaded once at startup and handed to every component.
"""

import os
import logging
from dataclasses import dataclass, field
from dotenv import load_dotenv

from config.errors import ConfigurationError
from utils.schedule import parse_interval

logger = logging.getLogger(__name__)

REQUIRED_VARIABLES = (
    "DISCORD_WEBHOOK",
    "THINKIFIC_EMAIL",
    "THINKIFIC_PASSWORD",
    "COURSE_LOGIN_URL",
    "COURSE_CONTENTS_URL",
    "COURSE_BASE_URL",
    "DEFAULT_THUMBNAIL",
)

DEFAULT_SCHEDULE = "1h"
DEFAULT_CATALOG_FILE = "catalog.json"
DEFAULT_COOKIES_FILE = "cookies.json"
DEFAULT_LOGIN_MARKER = "sign_in"
DEFAULT_USERNAME = "Masterclass Updates"

# Environment variable -> (Timeouts field, default in milliseconds)
TIMEOUT_VARIABLES = {
    "NAVIGATION_TIMEOUT_MS": ("navigation", 30000),
    "SELECTOR_TIMEOUT_MS": ("selector_wait", 20000),
    "TYPING_DELAY_MS": ("typing_delay", 30),
    "NOTIFICATION_DELAY_MS": ("notification_delay", 2000),
    "IMAGE_LOAD_DELAY_MS": ("image_load_delay", 2000),
    "WEBHOOK_TIMEOUT_MS": ("webhook", 10000),
}


@dataclass(frozen=True)
class Timeouts:
    """All durations in seconds."""

    navigation: float = 30.0
    selector_wait: float = 20.0
    typing_delay: float = 0.03
    notification_delay: float = 2.0
    image_load_delay: float = 2.0
    webhook: float = 10.0


@dataclass(frozen=True)
class MonitorConfig:
    webhook_url: str = field(repr=False)
    email: str
    password: str = field(repr=False)
    login_url: str = ""
    course_url: str = ""
    base_url: str = ""
    default_thumbnail: str = ""
    schedule: str = DEFAULT_SCHEDULE
    interval_seconds: float = 3600.0
    catalog_file: str = DEFAULT_CATALOG_FILE
    cookies_file: str = DEFAULT_COOKIES_FILE
    login_marker: str = DEFAULT_LOGIN_MARKER
    username: str = DEFAULT_USERNAME
    headless: bool = True
    timeouts: Timeouts = field(default_factory=Timeouts)


def _parse_bool(name, value):
    normalized = value.strip().lower()
    if normalized in ("1", "true", "yes", "on"):
        return True
    if normalized in ("0", "false", "no", "off"):
        return False
    raise ConfigurationError(f"{name} must be a boolean, got '{value}'")


def _parse_timeouts(environ):
    values = {}
    for name, (attr, default_ms) in TIMEOUT_VARIABLES.items():
        raw = environ.get(name)
        if raw is None or raw.strip() == "":
            values[attr] = default_ms / 1000
            continue
        try:
            millis = int(raw)
        except ValueError as e:
            raise ConfigurationError(f"{name} must be an integer number of milliseconds, got '{raw}'") from e
        if millis < 0:
            raise ConfigurationError(f"{name} must not be negative, got {millis}")
        values[attr] = millis / 1000
    return Timeouts(**values)


def load_config(environ=None, dotenv=True):
    """
    Build the monitor configuration.

    Args:
        environ (Mapping, optional): Variables to read. Defaults to os.environ.
        dotenv (bool): Load a .env file into os.environ first.

    Returns:
        MonitorConfig: Validated, immutable configuration

    Raises:
        ConfigurationError: Listing every missing variable, or the first malformed one
    """
    if environ is None:
        if dotenv:
            load_dotenv()
        environ = os.environ

    missing = [name for name in REQUIRED_VARIABLES if not (environ.get(name) or "").strip()]
    if missing:
        raise ConfigurationError(
            f"Missing required environment variables: {', '.join(missing)}",
            missing=missing,
        )

    schedule = (environ.get("MONITOR_SCHEDULE") or DEFAULT_SCHEDULE).strip()
    try:
        interval_seconds = parse_interval(schedule)
    except ValueError as e:
        raise ConfigurationError(f"MONITOR_SCHEDULE: {e}") from e

    headless_raw = environ.get("BROWSER_HEADLESS")
    headless = True if not headless_raw else _parse_bool("BROWSER_HEADLESS", headless_raw)

    config = MonitorConfig(
        webhook_url=environ["DISCORD_WEBHOOK"].strip(),
        email=environ["THINKIFIC_EMAIL"].strip(),
        password=environ["THINKIFIC_PASSWORD"],
        login_url=environ["COURSE_LOGIN_URL"].strip(),
        course_url=environ["COURSE_CONTENTS_URL"].strip(),
        base_url=environ["COURSE_BASE_URL"].strip(),
        default_thumbnail=environ["DEFAULT_THUMBNAIL"].strip(),
        schedule=schedule,
        interval_seconds=interval_seconds,
        catalog_file=environ.get("CATALOG_FILE") or DEFAULT_CATALOG_FILE,
        cookies_file=environ.get("COOKIES_FILE") or DEFAULT_COOKIES_FILE,
        login_marker=environ.get("LOGIN_PATH_MARKER") or DEFAULT_LOGIN_MARKER,
        username=environ.get("WEBHOOK_USERNAME") or DEFAULT_USERNAME,
        headless=headless,
        timeouts=_parse_timeouts(environ),
    )

    logger.debug(f"Configuration loaded: {config}")
    return config
