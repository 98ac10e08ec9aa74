"""Element finding and interaction on a Selenium driver (blocking calls)."""

from selenium.webdriver.common.by import By
from selenium.webdriver.support.ui import WebDriverWait
from selenium.webdriver.support import expected_conditions as EC
from selenium.common.exceptions import (
    TimeoutException,
    StaleElementReferenceException,
    ElementClickInterceptedException,
    ElementNotInteractableException,
    InvalidSelectorException,
)

from ..errors import ElementNotFoundError, ValidationError
from ..utils.retry import retry_op


# Smallest visible element whose trimmed text contains the search string.
FIND_BY_TEXT_JS = """
const needle = arguments[0];
const matches = Array.from(document.querySelectorAll('body *')).filter(el => {
    const text = (el.textContent || '').trim();
    return text && text.includes(needle) && el.offsetParent !== null;
});
matches.sort((a, b) => a.textContent.length - b.textContent.length);
return matches.length ? matches[0] : null;
"""

SCROLL_INTO_VIEW_JS = "arguments[0].scrollIntoView({block: 'center', inline: 'nearest'});"


def _seconds(timeout_ms) -> float:
    return max(0.0, float(timeout_ms or 0) / 1000.0)


def find_visible_element(driver, selector: str, timeout_ms: int):
    """Wait for the first element matching a CSS selector to be visible."""
    try:
        return WebDriverWait(driver, _seconds(timeout_ms)).until(
            EC.visibility_of_element_located((By.CSS_SELECTOR, selector))
        )
    except InvalidSelectorException as e:
        raise ValidationError(f"Invalid CSS selector: {selector}") from e
    except TimeoutException as e:
        raise ElementNotFoundError(f"Element not found: {selector}") from e


def find_element_by_text(driver, text: str, timeout_ms: int):
    """Wait for a visible element containing ``text``; the most specific match wins."""
    try:
        return WebDriverWait(driver, _seconds(timeout_ms), ignored_exceptions=(StaleElementReferenceException,)).until(
            lambda d: d.execute_script(FIND_BY_TEXT_JS, text)
        )
    except TimeoutException as e:
        raise ElementNotFoundError(f'Element with text "{text}" not found') from e


def element_present(driver, selector=None, text=None) -> bool:
    """Check once, without waiting, whether a visible element matches."""
    if selector:
        try:
            return any(el.is_displayed() for el in driver.find_elements(By.CSS_SELECTOR, selector))
        except InvalidSelectorException as e:
            raise ValidationError(f"Invalid CSS selector: {selector}") from e
        except StaleElementReferenceException:
            return False
    return driver.execute_script(FIND_BY_TEXT_JS, text) is not None


def locate(driver, selector=None, text=None, timeout_ms: int = 30000):
    if selector:
        return retry_op(lambda: find_visible_element(driver, selector, timeout_ms))
    return retry_op(lambda: find_element_by_text(driver, text, timeout_ms))


def click_element(driver, selector=None, text=None, timeout_ms: int = 30000) -> None:
    """Scroll the element into view and click it, falling back to a JavaScript click."""
    el = locate(driver, selector=selector, text=text, timeout_ms=timeout_ms)
    driver.execute_script(SCROLL_INTO_VIEW_JS, el)
    try:
        el.click()
    except (ElementClickInterceptedException, ElementNotInteractableException, StaleElementReferenceException):
        el = locate(driver, selector=selector, text=text, timeout_ms=timeout_ms)
        driver.execute_script("arguments[0].click();", el)


def type_into(driver, selector: str, text: str, clear: bool, delay_ms: int, timeout_ms: int, sleep) -> None:
    """
    Type ``text`` into the element matched by ``selector``.

    ``sleep`` is called between keystrokes with the delay in seconds.
    """
    el = locate(driver, selector=selector, timeout_ms=timeout_ms)
    if clear:
        el.clear()
    if delay_ms and delay_ms > 0:
        for ch in str(text):
            el.send_keys(ch)
            sleep(delay_ms / 1000.0)
    else:
        el.send_keys(str(text))


__all__ = [
    "FIND_BY_TEXT_JS",
    "find_visible_element",
    "find_element_by_text",
    "element_present",
    "locate",
    "click_element",
    "type_into",
]
