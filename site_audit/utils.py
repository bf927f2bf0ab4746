# utils.py
import asyncio
import logging
import re
from pathlib import Path
from typing import Optional, Awaitable, Any
from urllib.parse import urljoin, urlparse, urldefrag

from playwright.async_api import Error as PlaywrightError

logger = logging.getLogger(__name__)

DEFAULT_PORTS = {'http': 80, 'https': 443}
NON_NAVIGATING_SCHEMES = ('mailto:', 'tel:', 'javascript:', 'data:', 'sms:')


def origin_of(url: str) -> str:
    """scheme://host[:port] with default ports dropped, lower-cased."""
    parsed = urlparse(url)
    scheme = parsed.scheme.lower()
    host = (parsed.hostname or '').lower()
    try:
        port = parsed.port
    except ValueError:
        port = None
    if port and port != DEFAULT_PORTS.get(scheme):
        return f"{scheme}://{host}:{port}"
    return f"{scheme}://{host}"


def is_same_origin(url: str, origin: str) -> bool:
    return origin_of(url) == origin_of(origin)


def normalize_url(raw_href: Optional[str], base_url: str, origin: str) -> Optional[str]:
    """Canonical same-origin URL for a discovered href, or None when it is not a page to crawl.

    mailto:/tel:/javascript: links, off-origin URLs, empty hrefs and
    fragment-only hrefs ('#', '#section') yield None. The fragment is stripped
    from everything else so '/page#a' and '/page' map to the same URL.
    """
    if raw_href is None:
        return None
    href = raw_href.strip()
    if not href or href.startswith('#'):
        return None
    if href.lower().startswith(NON_NAVIGATING_SCHEMES):
        return None

    resolved, _fragment = urldefrag(urljoin(base_url, href))
    parsed = urlparse(resolved)
    if parsed.scheme.lower() not in DEFAULT_PORTS:
        return None
    if not is_same_origin(resolved, origin):
        return None

    path = parsed.path or '/'
    canonical = f"{origin_of(resolved)}{path}"
    if parsed.query:
        canonical += f"?{parsed.query}"
    return canonical


def route_slug(url: str) -> str:
    """Filesystem-safe name for a page URL, used in screenshot file names."""
    parsed = urlparse(url)
    route = parsed.path.strip('/')
    if parsed.query:
        route += f"_{parsed.query}"
    slug = re.sub(r'[^A-Za-z0-9]+', '_', route).strip('_')
    return slug[:80] or 'home'


def ensure_dir(path) -> Path:
    directory = Path(path)
    directory.mkdir(parents=True, exist_ok=True)
    return directory


def collapse_whitespace(text: str) -> str:
    return ' '.join((text or '').split())


def truncate(text: Optional[str], limit: int) -> str:
    text = collapse_whitespace(text or '')
    return text[:limit]


async def best_effort(awaitable: Awaitable[Any], what: str = '') -> Any:
    """Await a bounded browser wait; a timeout or browser error means 'no signal' and returns None."""
    try:
        return await awaitable
    except PlaywrightError as e:
        if what:
            logger.debug(f"{what} gave no signal: {e}")
        return None


async def first_completed(*awaitables: Awaitable[Any]) -> None:
    """Wait until any of the awaitables finishes, then cancel the rest."""
    tasks = [asyncio.ensure_future(aw) for aw in awaitables]
    try:
        await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
    finally:
        for task in tasks:
            if not task.done():
                task.cancel()
    await asyncio.gather(*tasks, return_exceptions=True)


def first_line(error: BaseException) -> str:
    """Playwright error messages carry a multi-line call log; keep the headline."""
    message = str(error).strip()
    return message.splitlines()[0] if message else error.__class__.__name__
