"""
Browser Automation

Chrome driver construction and teardown plus the small navigation helpers the
session manager and scraper share. Every driver created here is tracked so it
can be released on process exit, even if a cycle is abandoned mid-way.
"""

import time
import atexit
import logging
import threading

from selenium import webdriver
from selenium.webdriver.chrome.service import Service
from selenium.webdriver.chrome.options import Options
from selenium.webdriver.support.ui import WebDriverWait
from selenium.common.exceptions import TimeoutException, WebDriverException
from webdriver_manager.chrome import ChromeDriverManager

logger = logging.getLogger(__name__)

USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/123.0.0.0 Safari/537.36"
)

_active_drivers = []
_drivers_lock = threading.Lock()


def get_driver(config):
    """
    Get a configured Chrome driver.
    """
    chrome_options = Options()

    if config.headless:
        chrome_options.add_argument("--headless=new")

    # Critical flags for Docker environment
    chrome_options.add_argument("--no-sandbox")
    chrome_options.add_argument("--disable-setuid-sandbox")
    chrome_options.add_argument("--disable-dev-shm-usage")
    chrome_options.add_argument("--window-size=1920,1080")

    # Anti-detection
    chrome_options.add_argument(f"--user-agent={USER_AGENT}")
    chrome_options.add_argument("--disable-blink-features=AutomationControlled")
    chrome_options.add_experimental_option("excludeSwitches", ["enable-automation"])
    chrome_options.add_experimental_option("useAutomationExtension", False)

    driver = webdriver.Chrome(
        service=Service(ChromeDriverManager().install()), options=chrome_options
    )
    driver.set_page_load_timeout(config.timeouts.navigation)

    # Hide webdriver property on every new document
    driver.execute_cdp_cmd(
        "Page.addScriptToEvaluateOnNewDocument",
        {"source": "Object.defineProperty(navigator, 'webdriver', {get: () => undefined})"},
    )

    register_driver(driver)
    return driver


def register_driver(driver):
    with _drivers_lock:
        _active_drivers.append(driver)


def quit_driver(driver):
    """Quit a driver and forget it. Errors while quitting are logged, not raised."""
    with _drivers_lock:
        if driver in _active_drivers:
            _active_drivers.remove(driver)
    try:
        driver.quit()
    except Exception as e:
        logger.warning(f"Error while closing browser: {e}")


def cleanup_all_drivers():
    """Quit every driver still open. Registered with atexit."""
    with _drivers_lock:
        drivers = list(_active_drivers)
    if drivers:
        logger.info(f"Closing {len(drivers)} open browser session(s)")
    for driver in drivers:
        quit_driver(driver)


atexit.register(cleanup_all_drivers)


def navigate(driver, url, timeout):
    """
    Load `url` and wait for the document to finish loading.

    Raises:
        TimeoutException: If the page is not complete within `timeout` seconds
        WebDriverException: On any other navigation failure
    """
    driver.get(url)
    WebDriverWait(driver, timeout).until(
        lambda d: d.execute_script("return document.readyState") == "complete"
    )


def wait_for_url_change(driver, previous_url, timeout):
    """Wait until the location differs from `previous_url`. Returns False on timeout."""
    try:
        WebDriverWait(driver, timeout).until(lambda d: d.current_url != previous_url)
        return True
    except TimeoutException:
        return False


def type_slowly(element, text, delay):
    """Type `text` one key at a time, pausing `delay` seconds between keys."""
    for char in text:
        element.send_keys(char)
        if delay:
            time.sleep(delay)

