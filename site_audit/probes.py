# probes.py
import logging
from typing import List
from urllib.parse import urljoin

from playwright.async_api import Playwright, Error as PlaywrightError

from .constants import USER_AGENT
from .models import EndpointCheck
from .utils import first_line

logger = logging.getLogger(__name__)


async def probe_endpoints(playwright: Playwright, base_url: str, endpoints: List[str],
                          timeout_ms: int) -> List[EndpointCheck]:
    """GET each API path once, outside any page, and record its status."""
    checks = []
    request = await playwright.request.new_context(extra_http_headers={'User-Agent': USER_AGENT})
    try:
        for path in endpoints:
            url = urljoin(base_url, path)
            try:
                response = await request.get(url, timeout=timeout_ms)
            except PlaywrightError as e:
                logger.warning(f"ERROR - {url}: {first_line(e)}")
                checks.append(EndpointCheck(path, url, None, False, first_line(e)))
                continue
            checks.append(EndpointCheck(path, url, response.status, response.ok))
            logger.info(f"{'ok  ' if response.ok else 'FAIL'} {path}: {response.status}")
            await response.dispose()
    finally:
        await request.dispose()
    return checks
