"""
Course Content Scraper

Reads the course player's content listing into ContentItem objects and looks
up video thumbnails from the structured data embedded in lesson pages.
"""

import re
import json
import time
import logging
from urllib.parse import urljoin

from bs4 import BeautifulSoup
from selenium.webdriver.common.by import By
from selenium.webdriver.support.ui import WebDriverWait
from selenium.webdriver.support import expected_conditions as EC
from selenium.common.exceptions import TimeoutException, WebDriverException

from config.errors import ExtractionError
from config.models import ContentItem, ContentKind, ThumbnailLookup
from monitoring.browser import navigate

logger = logging.getLogger(__name__)

COURSE_ITEM = ".course-player__content-item__link"
CONTENT_TITLE = '[class*="content-item__title"]'
CONTENT_DETAILS = '[class*="content-item__details"]'
JSON_LD_SCRIPT = 'script[type="application/ld+json"]'
FRAME_ELEMENTS = "iframe, frame"

UNKNOWN_TITLE = "Unknown Title"
MAX_FRAME_DEPTH = 3

_ITEM_ID = re.compile(r"/(\d+)")

# Checked in order; the first matching kind wins
KIND_MARKERS = (
    (ContentKind.VIDEO, "Video", "/lessons/"),
    (ContentKind.TEXT, "Text", "/texts/"),
    (ContentKind.QUIZ, "Quiz", "/quizzes/"),
)


def identify_content_type(details, url):
    """
    Classify an item from its details text and link.

    Args:
        details (str): Text of the item's details element (e.g. "Video • 12 min")
        url (str): Item link

    Returns:
        ContentKind: First matching kind, or ContentKind.OTHER
    """
    details = details or ""
    url = url or ""
    for kind, keyword, path in KIND_MARKERS:
        if keyword in details or path in url:
            return kind
    return ContentKind.OTHER


def _own_text(element):
    """Text directly inside `element`, ignoring nested elements."""
    if element is None:
        return ""
    parts = element.find_all(string=True, recursive=False)
    return " ".join(part.strip() for part in parts if part.strip())


def parse_content_items(html_content, base_url):
    """
    Parse the rendered course player into content items.

    Rows whose link carries no numeric id (section headers and the like) are skipped.
    """
    soup = BeautifulSoup(html_content, "html.parser")
    items = []

    for element in soup.select(COURSE_ITEM):
        href = element.get("href") or ""
        match = _ITEM_ID.search(href)
        if not match:
            logger.debug(f"Skipping row without a content id: {href!r}")
            continue

        title = _own_text(element.select_one(CONTENT_TITLE)) or UNKNOWN_TITLE
        details_element = element.select_one(CONTENT_DETAILS)
        details = details_element.get_text(" ", strip=True) if details_element else ""

        items.append(
            ContentItem(
                id=match.group(1),
                title=title,
                content_kind=identify_content_type(details, href),
                url=urljoin(base_url, href),
            )
        )

    return items


def extract_content(driver, config):
    """
    Scrape every content item from the course contents page currently loaded.

    Raises:
        ExtractionError: If the content list does not appear in time
    """
    try:
        WebDriverWait(driver, config.timeouts.selector_wait).until(
            EC.presence_of_element_located((By.CSS_SELECTOR, COURSE_ITEM))
        )
    except TimeoutException as e:
        raise ExtractionError(
            f"Failed to load course menu: no '{COURSE_ITEM}' after {config.timeouts.selector_wait}s"
        ) from e
    except WebDriverException as e:
        raise ExtractionError(f"Failed to load course menu: {e}") from e

    items = parse_content_items(driver.page_source, config.base_url)
    logger.info(f"Found {len(items)} content items")
    return items


def _thumbnail_value(value):
    """URL string held by a JSON-LD `thumbnailUrl` value, or None."""
    if isinstance(value, list):
        value = value[0] if value else None
    if isinstance(value, dict):
        value = value.get("url") or value.get("contentUrl")
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def find_thumbnail_in_html(html_content):
    """Return the first `thumbnailUrl` declared in a JSON-LD block, or None."""
    soup = BeautifulSoup(html_content or "", "html.parser")

    for script in soup.select(JSON_LD_SCRIPT):
        try:
            data = json.loads(script.string or script.get_text())
        except ValueError:
            continue

        candidates = data if isinstance(data, list) else [data]
        for candidate in candidates:
            if not isinstance(candidate, dict):
                continue
            thumbnail = _thumbnail_value(candidate.get("thumbnailUrl"))
            if thumbnail:
                return thumbnail

    return None


def _scan_frames(driver, depth=0):
    thumbnail = find_thumbnail_in_html(driver.page_source)
    if thumbnail or depth >= MAX_FRAME_DEPTH:
        return thumbnail

    for frame in driver.find_elements(By.CSS_SELECTOR, FRAME_ELEMENTS):
        try:
            driver.switch_to.frame(frame)
        except WebDriverException as e:
            logger.debug(f"Could not enter frame: {e}")
            continue
        try:
            thumbnail = _scan_frames(driver, depth + 1)
        finally:
            driver.switch_to.parent_frame()
        if thumbnail:
            return thumbnail

    return None


def extract_thumbnail(driver, url, config):
    """
    Find the video thumbnail on a lesson page.

    Searches the page and all of its frames, in document order.

    Returns:
        ThumbnailLookup: Found URL, or not_found() when absent or on any browser error
    """
    logger.info(f"Fetching thumbnail for: {url}")
    try:
        navigate(driver, url, config.timeouts.navigation)
        time.sleep(config.timeouts.image_load_delay)
        thumbnail = _scan_frames(driver)
    except Exception as e:
        logger.warning(f"Failed to extract thumbnail: {e}")
        return ThumbnailLookup.not_found()
    finally:
        try:
            driver.switch_to.default_content()
        except Exception as e:
            logger.warning(f"Could not return to the main document: {e}")

    if thumbnail:
        logger.info("Thumbnail found")
        return ThumbnailLookup(thumbnail)

    logger.warning("No thumbnail found")
    return ThumbnailLookup.not_found()
