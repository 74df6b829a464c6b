"""Shared fixtures for the course monitor tests."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from config.settings import MonitorConfig, Timeouts  # noqa: E402
from config.storage import CatalogStore, CookieJar  # noqa: E402

from tests.fakes import BASE_URL, COURSE_URL, DEFAULT_THUMBNAIL, LOGIN_URL  # noqa: E402


@pytest.fixture
def config(tmp_path: Path) -> MonitorConfig:
    return MonitorConfig(
        webhook_url="https://discord.example.com/api/webhooks/1/token",
        email="student@example.com",
        password="hunter2",
        login_url=LOGIN_URL,
        course_url=COURSE_URL,
        base_url=BASE_URL,
        default_thumbnail=DEFAULT_THUMBNAIL,
        catalog_file=str(tmp_path / "catalog.json"),
        cookies_file=str(tmp_path / "cookies.json"),
        timeouts=Timeouts(
            navigation=0.2,
            selector_wait=0.05,
            typing_delay=0,
            notification_delay=0,
            image_load_delay=0,
            webhook=1,
        ),
    )


@pytest.fixture
def catalog_store(config: MonitorConfig) -> CatalogStore:
    return CatalogStore(config.catalog_file)


@pytest.fixture
def cookie_jar(config: MonitorConfig) -> CookieJar:
    return CookieJar(config.cookies_file)
