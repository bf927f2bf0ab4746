# listeners.py
import logging
from contextlib import asynccontextmanager
from typing import List, Optional

from playwright.async_api import Page, Error as PlaywrightError

from .utils import best_effort

logger = logging.getLogger(__name__)

CONSOLE_ISSUE_TYPES = ('error', 'warning')


class InteractionObserver:
    """Collects console, network and popup signals while one interaction runs."""

    def __init__(self, page: Page):
        self.page = page
        self.console_issues: List[str] = []
        self.network_errors: List[str] = []
        self.popups: List[Page] = []
        self.navigation_status: Optional[int] = None
        self.last_status: Optional[int] = None

    def on_console(self, msg):
        if msg.type in CONSOLE_ISSUE_TYPES:
            self.console_issues.append(f"{msg.type}: {msg.text}")

    def on_page_error(self, error):
        self.console_issues.append(f"pageerror: {error}")

    def on_response(self, response):
        status = response.status
        self.last_status = status
        if status >= 400:
            self.network_errors.append(f"{status} {response.url}")
        try:
            if response.request.is_navigation_request() and response.frame == self.page.main_frame:
                self.navigation_status = status
        except PlaywrightError:
            pass

    def on_popup(self, popup: Page):
        self.popups.append(popup)

    @property
    def http_status(self) -> str:
        status = self.navigation_status if self.navigation_status is not None else self.last_status
        return str(status) if status is not None else ''

    async def close_popups(self):
        for popup in self.popups:
            await best_effort(popup.close(), 'popup close')


@asynccontextmanager
async def observe_interaction(page: Page):
    """Subscribe before the interaction, unsubscribe afterwards even if the click raised."""
    observer = InteractionObserver(page)
    handlers = [
        ('console', observer.on_console),
        ('pageerror', observer.on_page_error),
        ('response', observer.on_response),
        ('popup', observer.on_popup),
    ]
    existing = list(page.context.pages)
    for event, handler in handlers:
        page.on(event, handler)
    try:
        yield observer
    finally:
        for event, handler in handlers:
            page.remove_listener(event, handler)
        await observer.close_popups()
        # Tabs that opened after the popup listener was removed
        for extra in list(page.context.pages):
            if extra is not page and extra not in existing and extra not in observer.popups:
                await best_effort(extra.close(), 'late popup close')
