# snapshots.py
import hashlib
import logging
from typing import List, Optional

from playwright.async_api import Page, ElementHandle, Error as PlaywrightError

from .constants import MODAL_SELECTOR, MAX_TEXT_LENGTH
from .models import InteractiveElement, InteractionSnapshot
from .utils import truncate

logger = logging.getLogger(__name__)

DESCRIBE_ELEMENT_JS = """
(el) => {
    const selectorFor = (node) => {
        if (node.id) return `#${node.id}`;
        let sel = node.tagName.toLowerCase();
        const cls = typeof node.className === 'string' ? node.className : '';
        const classes = cls.split(/\\s+/).filter(c => c);
        if (classes.length) sel += '.' + classes.join('.');
        return sel;
    };
    return {
        tagName: el.tagName,
        text: (el.innerText || el.value || '').trim(),
        ariaLabel: el.getAttribute('aria-label'),
        href: el.getAttribute('href'),
        target: el.getAttribute('target'),
        selector: selectorFor(el),
    };
}
"""


async def enumerate_elements(page: Page, selector: str) -> List[ElementHandle]:
    """Handles matching selector, in document order. Re-run after every navigation."""
    try:
        return await page.query_selector_all(selector)
    except PlaywrightError as e:
        logger.warning(f"Could not enumerate '{selector}' on {page.url}: {e}")
        return []


async def describe_element(handle: ElementHandle) -> InteractiveElement:
    info = await handle.evaluate(DESCRIBE_ELEMENT_JS)
    return InteractiveElement(
        selector=info.get('selector') or 'unknown',
        tag_name=(info.get('tagName') or '').lower(),
        text=truncate(info.get('text'), MAX_TEXT_LENGTH),
        aria_label=(info.get('ariaLabel') or '').strip() or None,
        href=info.get('href'),
        target=info.get('target'),
    )


async def dom_hash(page: Page) -> str:
    try:
        html = await page.content()
    except PlaywrightError as e:
        # Page is mid-navigation; an empty hash still differs from any real one
        logger.debug(f"Could not read DOM of {page.url}: {e}")
        return ''
    # Truncated emoji leave lone surrogates in the markup
    return hashlib.sha256(html.encode('utf-8', errors='surrogatepass')).hexdigest()[:16]


async def modal_present(page: Page) -> bool:
    try:
        return await page.query_selector(MODAL_SELECTOR) is not None
    except PlaywrightError:
        return False


async def rendered_text(page: Page) -> str:
    try:
        return await page.inner_text('body')
    except PlaywrightError as e:
        logger.debug(f"Could not read text of {page.url}: {e}")
        return ''


async def capture_snapshot(page: Page, observer=None) -> InteractionSnapshot:
    """Current URL, DOM hash and modal state, plus whatever the observer saw so far."""
    url = page.url
    digest = await dom_hash(page)
    has_modal = await modal_present(page)
    if observer is None:
        return InteractionSnapshot(url=url, dom_hash=digest, modal_present=has_modal)
    return InteractionSnapshot(
        url=url,
        dom_hash=digest,
        console_issues=tuple(observer.console_issues),
        network_errors=tuple(observer.network_errors),
        popup_opened=bool(observer.popups),
        modal_present=has_modal,
    )


async def take_screenshot(page: Page, path: str, full_page: bool = True) -> Optional[str]:
    try:
        await page.screenshot(path=path, full_page=full_page)
        return path
    except PlaywrightError as e:
        logger.debug(f"Screenshot {path} failed: {e}")
        return None
