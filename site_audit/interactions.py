# interactions.py
import asyncio
import logging
import time
from pathlib import Path
from typing import List, Optional

from playwright.async_api import Page, ElementHandle, Error as PlaywrightError

from .classifier import classify, interactability_outcome, signal_notes
from .constants import INTERACTIVE_SELECTOR
from .context import AuditRunContext
from .fake_data import scan
from .listeners import observe_interaction
from .models import (
    BrokenLink, FakeDataFinding, InteractionResult, InteractiveElement, OutcomeKind,
)
from .snapshots import (
    capture_snapshot, describe_element, enumerate_elements, rendered_text, take_screenshot,
)
from .utils import best_effort, ensure_dir, first_completed, first_line, route_slug

logger = logging.getLogger(__name__)

UNKNOWN_ELEMENT = InteractiveElement(selector='unknown', tag_name='unknown', text='Error retrieving')

BLOCKED_NOTES = {
    OutcomeKind.FAIL_HIDDEN: 'Element not interactable - hidden or zero size',
    OutcomeKind.FAIL_NOT_VISIBLE: 'Element exists but not visible to users',
}


class InteractionTester:
    """Clicks every interactive element of a page, each one against a freshly loaded page.

    Elements are identified by their position in the selector union. The
    page is reloaded before every element because the previous click may
    have navigated away or mutated the DOM; if the element at the same
    position is gone after the reload, an Element Error is recorded and the
    loop moves on.
    """

    def __init__(self, ctx: AuditRunContext, viewport: str):
        self.ctx = ctx
        self.config = ctx.config
        self.viewport = viewport
        self.sink = ctx.results_for(viewport)
        self.screenshot_dir: Optional[Path] = None
        if self.config.get('screenshots', True):
            self.screenshot_dir = ensure_dir(Path(self.config['out_dir']) / 'screenshots' / viewport)

    async def open_fresh(self, page: Page, page_url: str):
        await page.goto(page_url, wait_until='domcontentloaded', timeout=self.config['navigation_timeout_ms'])
        await best_effort(
            page.wait_for_load_state('networkidle', timeout=self.config['network_idle_timeout_ms']),
            f"networkidle on {page_url}",
        )

    async def test_page(self, page: Page, page_url: str) -> List[InteractionResult]:
        try:
            await self.open_fresh(page, page_url)
        except PlaywrightError as e:
            logger.warning(f"Error testing {page_url} ({self.viewport}): {first_line(e)}")
            self.sink.page_failures.append(
                BrokenLink(page_url, self.viewport, 'PAGE_LOAD', 'NAVIGATION_ERROR', first_line(e))
            )
            return []

        count = len(await enumerate_elements(page, INTERACTIVE_SELECTOR))
        limit = self.config.get('max_elements_per_page') or 0
        if limit and count > limit:
            logger.info(f"Testing first {limit} of {count} interactive elements on {page_url}")
            count = limit
        else:
            logger.info(f"Found {count} interactive elements on {page_url} ({self.viewport})")

        results = []
        for index in range(count):
            result = await self.test_element(page, page_url, index)
            results.append(result)
            self.sink.results.append(result)
            mark = 'FAIL' if result.outcome.is_failure else 'ok  '
            logger.info(f"  {mark} [{index + 1}/{count}] \"{result.element.display_name[:30]}\": {result.outcome.label}")

        self.sink.fake_data_findings.extend(await self.scan_fake_data(page, page_url))
        self.sink.pages_tested += 1
        return results

    async def test_element(self, page: Page, page_url: str, index: int) -> InteractionResult:
        started = time.monotonic()
        try:
            await self.open_fresh(page, page_url)
        except PlaywrightError as e:
            return self._element_error(page_url, index, UNKNOWN_ELEMENT, f"Reload failed: {first_line(e)}", started)

        handles = await enumerate_elements(page, INTERACTIVE_SELECTOR)
        if index >= len(handles):
            return self._element_error(
                page_url, index, UNKNOWN_ELEMENT,
                f"Element {index} no longer present after reload ({len(handles)} found)", started,
            )
        handle = handles[index]

        try:
            element = await describe_element(handle)
            box = await handle.bounding_box()
            visible = await handle.is_visible() if box else False
        except PlaywrightError as e:
            return self._element_error(page_url, index, UNKNOWN_ELEMENT, first_line(e), started)

        blocked = interactability_outcome(box, visible)
        if blocked is not None:
            return InteractionResult(
                page_url=page_url,
                viewport=self.viewport,
                index=index,
                element=element,
                pre_url=page.url,
                post_url=page.url,
                outcome=blocked,
                notes=BLOCKED_NOTES[blocked],
                duration_ms=_elapsed_ms(started),
            )
        return await self._interact(page, page_url, index, handle, element, started)

    async def _interact(self, page: Page, page_url: str, index: int, handle: ElementHandle,
                        element: InteractiveElement, started: float) -> InteractionResult:
        click_timeout = self.config['click_timeout_ms']
        await best_effort(handle.scroll_into_view_if_needed(timeout=click_timeout), 'scroll into view')

        pre = await capture_snapshot(page)
        click_error = None
        async with observe_interaction(page) as observer:
            before = await self._screenshot(page, page_url, index, 'before')
            try:
                await handle.click(timeout=click_timeout)
            except PlaywrightError as e:
                click_error = first_line(e)
            else:
                if element.opens_new_tab and not observer.popups:
                    await best_effort(page.wait_for_event('popup', timeout=click_timeout), 'popup')
                await self._settle(page)
            post = await capture_snapshot(page, observer)
            after = await self._screenshot(page, page_url, index, 'after')
            http_status = observer.http_status

        if click_error is not None:
            outcome = OutcomeKind.FAIL_CLICK_ERROR
            notes = [click_error]
        else:
            outcome = classify(pre, post)
            notes = [signal_notes(post)]
        if element.href:
            notes.append(f'href="{element.href}"')

        return InteractionResult(
            page_url=page_url,
            viewport=self.viewport,
            index=index,
            element=element,
            pre_url=pre.url,
            post_url=post.url,
            outcome=outcome,
            http_status=http_status,
            dom_changed=post.dom_hash != pre.dom_hash,
            modal_opened=post.modal_present and not pre.modal_present,
            opened_popup=post.popup_opened,
            console_issue_count=len(post.console_issues),
            notes=' '.join(n for n in notes if n),
            before_screenshot=before or '',
            after_screenshot=after or '',
            duration_ms=_elapsed_ms(started),
        )

    async def _settle(self, page: Page):
        """Navigation or the settle delay, whichever comes first, then a bounded load wait."""
        settle_ms = self.config['settle_ms']
        await first_completed(
            page.wait_for_event('framenavigated', predicate=lambda frame: frame == page.main_frame, timeout=settle_ms),
            asyncio.sleep(settle_ms / 1000),
        )
        await best_effort(
            page.wait_for_load_state('networkidle', timeout=self.config['network_idle_timeout_ms']),
            'networkidle after click',
        )

    async def _screenshot(self, page: Page, page_url: str, index: int, phase: str) -> Optional[str]:
        if self.screenshot_dir is None:
            return None
        path = self.screenshot_dir / f"{route_slug(page_url)}_{index}_{phase}.png"
        return await take_screenshot(page, str(path), full_page=self.config.get('full_page_screenshots', True))

    async def scan_fake_data(self, page: Page, page_url: str) -> List[FakeDataFinding]:
        """Scan the page as a visitor first sees it, not as the last click left it."""
        try:
            await self.open_fresh(page, page_url)
        except PlaywrightError as e:
            logger.debug(f"Reload before fake-data scan failed, scanning current page: {first_line(e)}")
        findings = scan(await rendered_text(page), page_url, self.viewport)
        if findings:
            logger.info(f"{len(findings)} placeholder findings on {page_url} ({self.viewport})")
        return findings

    def _element_error(self, page_url: str, index: int, element: InteractiveElement,
                       notes: str, started: float) -> InteractionResult:
        return InteractionResult(
            page_url=page_url,
            viewport=self.viewport,
            index=index,
            element=element,
            pre_url=page_url,
            post_url=page_url,
            outcome=OutcomeKind.FAIL_ELEMENT_ERROR,
            notes=notes,
            duration_ms=_elapsed_ms(started),
        )


def _elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)
