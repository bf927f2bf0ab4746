# crawler.py
import logging
import time
from collections import deque
from typing import List, Optional

from playwright.async_api import Page, Error as PlaywrightError

from .constants import LINK_SELECTOR
from .context import AuditRunContext
from .errors import TargetUnreachableError
from .models import BrokenLink, PageRecord, QueueItem
from .snapshots import enumerate_elements, describe_element
from .utils import normalize_url, best_effort, first_line

logger = logging.getLogger(__name__)


class SiteCrawler:
    """Breadth-first discovery of same-origin pages reachable from the seed URL."""

    def __init__(self, ctx: AuditRunContext):
        self.ctx = ctx
        self.config = ctx.config
        self.max_depth: int = self.config['max_depth']
        self.max_pages: int = self.config['max_pages']

    async def crawl(self, page: Page, seed_url: Optional[str] = None) -> List[PageRecord]:
        seed = seed_url or self.ctx.base_url
        seed = normalize_url(seed, seed, self.ctx.origin) or seed
        queue = deque([QueueItem(seed, 0)])
        discovered = {seed}

        while queue and len(self.ctx.visited) < self.max_pages:
            item = queue.popleft()
            if item.url in self.ctx.visited or item.depth > self.max_depth:
                continue
            self.ctx.visited.add(item.url)

            logger.info(
                f"[{len(self.ctx.visited)}/{self.max_pages}] Discovering: {item.url} (depth {item.depth})"
            )
            record = await self._fetch(page, item, is_seed=item.url == seed)
            if record is None:
                continue
            self.ctx.pages.append(record)

            if item.depth >= self.max_depth:
                continue
            for link in await self.extract_links(page):
                if link not in discovered:
                    discovered.add(link)
                    queue.append(QueueItem(link, item.depth + 1, item.url))

        logger.info(
            f"Discovery completed: {len(self.ctx.pages)} pages, "
            f"{len(self.ctx.discovery_failures)} broken"
        )
        return self.ctx.pages

    async def _fetch(self, page: Page, item: QueueItem, is_seed: bool = False) -> Optional[PageRecord]:
        started = time.monotonic()
        try:
            response = await page.goto(
                item.url,
                wait_until='domcontentloaded',
                timeout=self.config['navigation_timeout_ms'],
            )
        except PlaywrightError as e:
            if is_seed:
                raise TargetUnreachableError(item.url, first_line(e)) from e
            logger.warning(f"Error visiting {item.url}: {first_line(e)}")
            self.ctx.discovery_failures.append(BrokenLink('', '', item.url, 'ERROR', first_line(e)))
            return None

        status = response.status if response is not None else None
        if status is not None and status >= 400:
            logger.warning(f"{status} - {item.url}")
            self.ctx.discovery_failures.append(BrokenLink('', '', item.url, str(status)))
            return None

        # SPA hydration; reaching idle is not required
        await best_effort(
            page.wait_for_load_state('networkidle', timeout=self.config['network_idle_timeout_ms']),
            f"networkidle on {item.url}",
        )
        title = await best_effort(page.title()) or ''
        return PageRecord(
            url=item.url,
            depth=item.depth,
            discovered_from=item.discovered_from,
            http_status=status,
            title=title.strip(),
            load_time_ms=int((time.monotonic() - started) * 1000),
        )

    async def extract_links(self, page: Page) -> List[str]:
        """Normalized same-origin links on the current page, in document order, without duplicates."""
        links = []
        base = page.url
        for handle in await enumerate_elements(page, LINK_SELECTOR):
            try:
                element = await describe_element(handle)
            except PlaywrightError as e:
                logger.debug(f"Skipping detached link on {base}: {first_line(e)}")
                continue
            url = normalize_url(element.href, base, self.ctx.origin)
            if url and url not in links:
                links.append(url)
        return links
