"""Tests for the monitoring cycle."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest
from urllib3.exceptions import ReadTimeoutError

from config.errors import StorageError
from config.models import CatalogRecord, ContentKind, EventKind
from config.storage import CatalogStore, CookieJar
from monitoring.course_monitor import CourseMonitor
from services.notification_service import NotificationService
from tests.fakes import BASE_URL, COURSE_URL, DEFAULT_THUMBNAIL, SESSION_COOKIE, FakeBrowser, content_row, course_page


def ok() -> MagicMock:
    response = MagicMock()
    response.status_code = 204
    return response


def failed() -> MagicMock:
    response = MagicMock()
    response.status_code = 500
    return response


PAGE = course_page(
    content_row("/courses/take/masterclass/lessons/0-intro", "Intro", "Video"),
    content_row("/courses/take/masterclass/texts/1-setup", "Setup", "Text"),
    content_row("/courses/take/masterclass/quizzes/2-check", "Check", "Quiz"),
    content_row("/courses/take/masterclass/lessons/3-deep-dive", "Deep dive", "Video"),
)


class Harness:
    """A CourseMonitor wired to fake browsers and a mocked webhook session."""

    def __init__(self, config, page: str = PAGE, **browser_kwargs) -> None:
        self.config = config
        self.page = page
        self.browser_kwargs = browser_kwargs
        self.browsers: list[FakeBrowser] = []
        self.http = MagicMock()
        self.http.post.return_value = ok()
        self.catalog_store = CatalogStore(config.catalog_file)
        self.cookie_jar = CookieJar(config.cookies_file)
        self.monitor = CourseMonitor(
            config,
            catalog_store=self.catalog_store,
            cookie_jar=self.cookie_jar,
            notifier=NotificationService(config, session=self.http),
            driver_factory=self.make_driver,
        )

    def make_driver(self, config) -> FakeBrowser:
        browser = FakeBrowser(config, pages={COURSE_URL: self.page}, **self.browser_kwargs)
        self.browsers.append(browser)
        return browser

    def seed(self, records: dict) -> None:
        self.catalog_store.commit(records)

    def catalog(self) -> dict:
        return self.catalog_store.load().records

    def sent_titles(self) -> list[str]:
        return [
            c.kwargs["json"]["embeds"][0]["description"].split("\n")[0]
            for c in self.http.post.call_args_list
        ]


@pytest.fixture
def harness(config) -> Harness:
    return Harness(config)


class TestBootstrap:
    """First run: store everything, announce nothing."""

    def test_commits_full_catalog_without_notifications(self, harness: Harness) -> None:
        report = harness.monitor.run_cycle()

        assert report.status == "bootstrap"
        assert len(report.events) == 4
        harness.http.post.assert_not_called()
        assert set(harness.catalog()) == {"0", "1", "2", "3"}
        assert harness.browsers[0].quit_calls == 1

    def test_second_cycle_is_quiet(self, harness: Harness) -> None:
        harness.monitor.run_cycle()

        report = harness.monitor.run_cycle()

        assert report.status == "completed"
        assert report.events == []
        harness.http.post.assert_not_called()

    def test_session_cookies_are_saved_and_reused(self, harness: Harness) -> None:
        harness.monitor.run_cycle()
        harness.monitor.run_cycle()

        assert harness.cookie_jar.load() == [SESSION_COOKIE]
        assert harness.browsers[1].typed == {}


class TestNotifyThenCommit:
    """Regular cycles against an existing catalog."""

    def test_text_upgraded_to_video(self, config) -> None:
        harness = Harness(config, page=course_page(content_row("/courses/take/masterclass/lessons/1", "A", "Video")))
        harness.seed({"1": CatalogRecord("A", ContentKind.TEXT)})

        report = harness.monitor.run_cycle()

        assert report.status == "completed"
        assert [(e.kind, e.item.id) for e in report.events] == [(EventKind.UPGRADED, "1")]
        assert report.notified == 1
        assert harness.catalog()["1"].content_kind == ContentKind.VIDEO

    def test_new_items_are_announced_in_page_order(self, harness: Harness) -> None:
        harness.seed({"1": CatalogRecord("Setup", ContentKind.TEXT)})

        report = harness.monitor.run_cycle()

        assert report.notified == 3
        assert harness.sent_titles() == ["**Intro**", "**Check**", "**Deep dive**"]
        assert set(harness.catalog()) == {"0", "1", "2", "3"}

    def test_removed_items_are_dropped_on_commit(self, harness: Harness) -> None:
        harness.seed({
            "0": CatalogRecord("Intro", ContentKind.VIDEO),
            "1": CatalogRecord("Setup", ContentKind.TEXT),
            "2": CatalogRecord("Check", ContentKind.QUIZ),
            "3": CatalogRecord("Deep dive", ContentKind.VIDEO),
            "99": CatalogRecord("Retired", ContentKind.TEXT),
        })

        report = harness.monitor.run_cycle()

        assert report.status == "completed"
        assert "99" not in harness.catalog()

    def test_failed_send_aborts_batch_and_skips_commit(self, harness: Harness) -> None:
        harness.seed({"1": CatalogRecord("Setup", ContentKind.TEXT)})
        harness.http.post.side_effect = [ok(), failed(), ok()]

        report = harness.monitor.run_cycle()

        assert report.status == "failed"
        assert harness.http.post.call_count == 2
        assert set(harness.catalog()) == {"1"}
        assert harness.browsers[0].quit_calls == 1

        harness.http.post.reset_mock(side_effect=True)
        harness.http.post.return_value = ok()

        retry = harness.monitor.run_cycle()

        assert [e.item.id for e in retry.events] == ["0", "2", "3"]
        assert retry.notified == 3
        assert set(harness.catalog()) == {"0", "1", "2", "3"}


class TestFailureContainment:
    """Errors end the cycle without escaping to the scheduler."""

    def test_thumbnail_transport_error_falls_back_to_default_image(self, config) -> None:
        lesson = "/courses/take/masterclass/lessons/5-new"
        harness = Harness(
            config,
            page=course_page(content_row(lesson, "New lesson", "Video")),
            failing_urls=[f"{BASE_URL}{lesson}"],
            failure=ReadTimeoutError(None, lesson, "Read timed out. (read timeout=120)"),
        )
        harness.seed({"1": CatalogRecord("Setup", ContentKind.TEXT)})

        report = harness.monitor.run_cycle()

        assert report.status == "completed"
        assert report.notified == 1
        embed = harness.http.post.call_args.kwargs["json"]["embeds"][0]
        assert embed["image"] == {"url": DEFAULT_THUMBNAIL}
        assert set(harness.catalog()) == {"5"}

    def test_authentication_failure(self, config) -> None:
        harness = Harness(config, password="not-the-password")
        harness.seed({"1": CatalogRecord("Setup", ContentKind.TEXT)})

        report = harness.monitor.run_cycle()

        assert report.status == "failed"
        assert "Login failed" in report.error
        assert harness.browsers[0].quit_calls == 1
        assert set(harness.catalog()) == {"1"}

    def test_extraction_failure(self, config) -> None:
        harness = Harness(config, page="<html><body>We'll be right back</body></html>")

        with patch("time.sleep"):
            report = harness.monitor.run_cycle()

        assert report.status == "failed"
        assert "course menu" in report.error
        assert harness.browsers[0].quit_calls == 1
        assert harness.catalog_store.load().status == "missing"

    def test_browser_launch_failure(self, harness: Harness) -> None:
        harness.monitor.driver_factory = MagicMock(side_effect=RuntimeError("chrome not found"))

        report = harness.monitor.run_cycle()

        assert report.status == "failed"
        assert report.error == "chrome not found"

    def test_commit_failure(self, harness: Harness) -> None:
        with patch.object(harness.catalog_store, "commit", side_effect=StorageError("disk full")):
            report = harness.monitor.run_cycle()

        assert report.status == "failed"
        assert harness.browsers[0].quit_calls == 1

    def test_unexpected_error_still_closes_browser(self, harness: Harness) -> None:
        with patch("monitoring.course_monitor.extract_content", side_effect=KeyError("boom")):
            report = harness.monitor.run_cycle()

        assert report.status == "failed"
        assert harness.browsers[0].quit_calls == 1

    def test_lock_released_after_failure(self, harness: Harness) -> None:
        harness.monitor.driver_factory = MagicMock(side_effect=RuntimeError("chrome not found"))
        harness.monitor.run_cycle()

        assert not harness.monitor.in_flight


class TestReentrancy:
    """Overlapping triggers must not share the browser."""

    def test_overlapping_trigger_is_skipped(self, harness: Harness) -> None:
        harness.monitor._cycle_lock.acquire()
        try:
            report = harness.monitor.run_cycle()
        finally:
            harness.monitor._cycle_lock.release()

        assert report.status == "skipped"
        assert harness.browsers == []

    def test_in_flight_during_cycle(self, harness: Harness) -> None:
        seen = []

        def observe(items, catalog):
            seen.append(harness.monitor.in_flight)
            return []

        with patch("monitoring.course_monitor.detect_changes", side_effect=observe):
            harness.monitor.run_cycle()

        assert seen == [True]
        assert not harness.monitor.in_flight
