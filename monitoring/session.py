"""
Session Manager

Keeps the browser logged in to the course platform. Saved cookies are
re-applied and probed every cycle; when they are missing or no longer accepted
the login form is submitted again and the fresh cookies are saved.
"""

import logging

from selenium.webdriver.common.by import By
from selenium.common.exceptions import WebDriverException

from config.errors import AuthenticationError
from config.models import SessionState
from monitoring.browser import navigate, type_slowly, wait_for_url_change

logger = logging.getLogger(__name__)

EMAIL_INPUT = 'input[name="user[email]"]'
PASSWORD_INPUT = 'input[name="user[password]"]'
SUBMIT_BUTTON = 'button[type="submit"]'

# Keys Chrome accepts in add_cookie
COOKIE_KEYS = ("name", "value", "path", "domain", "secure", "httpOnly", "expiry", "sameSite")


def is_login_page(driver, config):
    return config.login_marker in (driver.current_url or "")


def load_cookies(driver, config, cookie_jar):
    """
    Apply saved cookies to the browser.

    Returns:
        list: The cookies that were applied (empty if none were saved)
    """
    cookies = cookie_jar.load()
    if not cookies:
        return []

    # Chrome only accepts cookies for the domain currently loaded
    try:
        navigate(driver, config.base_url, config.timeouts.navigation)
    except WebDriverException as e:
        logger.warning(f"Could not open {config.base_url} to restore cookies: {e}")
        return []

    applied = []
    for cookie in cookies:
        if not (cookie.get("name") and cookie.get("domain")):
            continue
        cleaned = {key: cookie[key] for key in COOKIE_KEYS if key in cookie}
        if isinstance(cleaned.get("expiry"), float):
            cleaned["expiry"] = int(cleaned["expiry"])
        if cleaned.get("sameSite") not in (None, "Strict", "Lax", "None"):
            cleaned.pop("sameSite")
        try:
            driver.add_cookie(cleaned)
            applied.append(cleaned)
        except WebDriverException as e:
            logger.debug(f"Cookie {cleaned['name']} rejected: {e}")

    logger.info(f"Loaded {len(applied)} cookies from {cookie_jar.path}")
    return applied


def is_session_valid(driver, config):
    """Open the course contents; a redirect to the login page means the session expired."""
    try:
        navigate(driver, config.course_url, config.timeouts.navigation)
    except WebDriverException as e:
        logger.warning(f"Session validation failed: {e}")
        return False
    return not is_login_page(driver, config)


def login(driver, config, cookie_jar):
    """
    Submit the login form and save the resulting cookies.

    Raises:
        AuthenticationError: If the login page is unreachable, or still shown after submitting
    """
    logger.info("Attempting automatic login...")

    try:
        navigate(driver, config.login_url, config.timeouts.navigation)

        email_input = driver.find_element(By.CSS_SELECTOR, EMAIL_INPUT)
        type_slowly(email_input, config.email, config.timeouts.typing_delay)
        password_input = driver.find_element(By.CSS_SELECTOR, PASSWORD_INPUT)
        type_slowly(password_input, config.password, config.timeouts.typing_delay)

        previous_url = driver.current_url
        driver.find_element(By.CSS_SELECTOR, SUBMIT_BUTTON).click()
        if not wait_for_url_change(driver, previous_url, config.timeouts.navigation):
            logger.warning("No navigation after submitting the login form")
    except WebDriverException as e:
        raise AuthenticationError(f"Login page could not be used: {e}") from e

    if is_login_page(driver, config):
        raise AuthenticationError("Login failed - check credentials or CAPTCHA presence")

    logger.info("Login successful, saving cookies...")
    cookies = driver.get_cookies()
    cookie_jar.save(cookies)
    return cookies


def ensure_session(driver, config, cookie_jar):
    """
    Make sure the browser is authenticated and showing the course contents.

    Returns:
        SessionState: Cookies in use and the authenticated flag

    Raises:
        AuthenticationError: If a fresh login is required and fails
        StorageError: If fresh cookies cannot be saved
    """
    cookies = load_cookies(driver, config, cookie_jar)

    if cookies:
        if is_session_valid(driver, config):
            logger.info("Saved session is still valid")
            return SessionState(cookies=cookies, authenticated=True)
        logger.warning("Session expired, re-authentication required")

    cookies = login(driver, config, cookie_jar)

    try:
        navigate(driver, config.course_url, config.timeouts.navigation)
    except WebDriverException as e:
        raise AuthenticationError(f"Course contents unreachable after login: {e}") from e
    if is_login_page(driver, config):
        raise AuthenticationError("Redirected to the login page right after logging in")

    return SessionState(cookies=cookies, authenticated=True)
