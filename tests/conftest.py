"""
In-memory stand-ins for the Playwright page surface used by the audit.
"""
import os
import sys
from dataclasses import dataclass, field
from typing import Optional, List, Dict, Any

import pytest
from playwright.async_api import Error as PlaywrightError, TimeoutError as PlaywrightTimeoutError

# Make the project root importable
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from site_audit.config import default_config, normalize_config  # noqa: E402

BASE = 'http://localhost:5000'
DEFAULT_BOX = {'x': 0, 'y': 0, 'width': 120, 'height': 32}


@dataclass
class FakeElement:
    tag: str = 'button'
    text: str = ''
    href: Optional[str] = None
    target: Optional[str] = None
    aria_label: Optional[str] = None
    element_id: str = ''
    box: Optional[Dict[str, Any]] = field(default_factory=lambda: dict(DEFAULT_BOX))
    visible: bool = True
    # navigate | popup | late_popup | modal | dom | api_500 | console_error | raise | None
    effect: Optional[str] = None
    first_load_only: bool = False


@dataclass
class FakePageSpec:
    status: int = 200
    elements: List[FakeElement] = field(default_factory=list)
    text: str = ''
    error: Optional[str] = None
    title: str = 'Fake page'


def link(href, text='', **kwargs) -> FakeElement:
    return FakeElement(tag='a', text=text or href, href=href, effect=kwargs.pop('effect', 'navigate'), **kwargs)


class FakeSite:
    def __init__(self, pages: Dict[str, FakePageSpec]):
        self.pages = pages
        self.visits: Dict[str, int] = {}

    def load(self, url: str) -> FakePageSpec:
        self.visits[url] = self.visits.get(url, 0) + 1
        spec = self.pages.get(url)
        if spec is None:
            return FakePageSpec(status=404, text='Not found')
        if spec.error:
            raise PlaywrightError(f"net::ERR_CONNECTION_REFUSED at {url}\nCall log:\n  - navigating")
        return spec


class FakeResponse:
    def __init__(self, status: int, url: str = '', navigation: bool = False, frame=None):
        self.status = status
        self.url = url
        self.ok = 200 <= status < 400
        self.frame = frame
        self.request = FakeRequest(navigation)

    async def dispose(self):
        pass


class FakeRequest:
    def __init__(self, navigation: bool):
        self._navigation = navigation

    def is_navigation_request(self):
        return self._navigation


class FakeConsoleMessage:
    def __init__(self, type_, text):
        self.type = type_
        self.text = text


class FakePopup:
    def __init__(self):
        self.closed = False

    async def close(self):
        self.closed = True


class FakeHandle:
    def __init__(self, page: 'FakePage', element: FakeElement):
        self.page = page
        self.element = element

    async def evaluate(self, script):
        el = self.element
        return {
            'tagName': el.tag.upper(),
            'text': el.text,
            'ariaLabel': el.aria_label,
            'href': el.href,
            'target': el.target,
            'selector': f"#{el.element_id}" if el.element_id else el.tag,
        }

    async def bounding_box(self):
        return self.element.box

    async def is_visible(self):
        return self.element.visible

    async def scroll_into_view_if_needed(self, timeout=None):
        pass

    async def click(self, timeout=None):
        await self.page.apply_effect(self.element)


class FakePage:
    def __init__(self, site: FakeSite, context: Optional["FakeContext"] = None):
        self.site = site
        self.context = context or FakeContext(site)
        self.context.pages.append(self)
        self.url = 'about:blank'
        self.main_frame = object()
        self.spec: Optional[FakePageSpec] = None
        self.dom_version = 0
        self.modal = False
        self.listeners: Dict[str, list] = {}
        self.screenshots: List[str] = []
        self.popups: List[FakePopup] = []
        self.waited_events: List[str] = []
        self.closed = False

    def on(self, event, handler):
        self.listeners.setdefault(event, []).append(handler)

    def remove_listener(self, event, handler):
        self.listeners[event].remove(handler)

    def emit(self, event, payload):
        for handler in list(self.listeners.get(event, [])):
            handler(payload)

    def listener_count(self) -> int:
        return sum(len(handlers) for handlers in self.listeners.values())

    async def goto(self, url, wait_until=None, timeout=None):
        spec = self.site.load(url)
        self.url = url
        self.spec = spec
        self.dom_version = 0
        self.modal = False
        response = FakeResponse(spec.status, url, navigation=True, frame=self.main_frame)
        self.emit('response', response)
        return response

    async def wait_for_load_state(self, state=None, timeout=None):
        return None

    async def wait_for_event(self, event, predicate=None, timeout=None):
        self.waited_events.append(event)
        raise PlaywrightTimeoutError(f"Timeout {timeout}ms exceeded while waiting for event \"{event}\"")

    async def title(self):
        return self.spec.title if self.spec else ''

    async def content(self):
        spec = self.spec or FakePageSpec()
        return f"<html><title>{spec.title}</title><body>{spec.text}</body><!-- v{self.dom_version} modal={self.modal} --></html>"

    def _elements(self) -> List[FakeElement]:
        if not self.spec:
            return []
        first_visit = self.site.visits.get(self.url, 0) <= 1
        return [el for el in self.spec.elements if first_visit or not el.first_load_only]

    async def query_selector_all(self, selector):
        elements = self._elements()
        if selector == 'a[href]':
            elements = [el for el in elements if el.tag == 'a' and el.href is not None]
        return [FakeHandle(self, el) for el in elements]

    async def query_selector(self, selector):
        return object() if self.modal else None

    async def inner_text(self, selector):
        return self.spec.text if self.spec else ''

    async def screenshot(self, path=None, full_page=False):
        self.screenshots.append(path)
        return b''

    async def close(self):
        self.closed = True

    async def apply_effect(self, element: FakeElement):
        effect = element.effect
        if element.tag == 'a' and (element.href or '').startswith('#'):
            # same-document jump: the browser only rewrites the fragment
            self.url = self.url.split('#')[0] + element.href
        if effect == 'navigate':
            if not element.href.startswith('#'):
                target = element.href if element.href.startswith('http') else BASE + element.href
                await self.goto(target.split('#')[0])
        elif effect == 'popup':
            popup = FakePopup()
            self.popups.append(popup)
            self.context.pages.append(popup)
            self.emit('popup', popup)
        elif effect == 'late_popup':
            # opens after listeners are gone; only visible through the context
            popup = FakePopup()
            self.popups.append(popup)
            self.context.pages.append(popup)
        elif effect == 'modal':
            self.modal = True
        elif effect == 'dom':
            self.dom_version += 1
        elif effect == 'api_500':
            self.emit('response', FakeResponse(500, BASE + '/api/generate', frame=self.main_frame))
        elif effect == 'console_error':
            self.dom_version += 1
            self.emit('console', FakeConsoleMessage('error', 'Uncaught TypeError: x is undefined'))
        elif effect == 'raise':
            raise PlaywrightTimeoutError("Timeout 5000ms exceeded.\n=========================== logs")


class FakeContext:
    def __init__(self, site: FakeSite, **options):
        self.site = site
        self.options = options
        self.pages: List[FakePage] = []
        self.closed = False

    async def new_page(self):
        return FakePage(self.site, self)

    async def close(self):
        self.closed = True


@pytest.fixture
def audit_config(tmp_path):
    config = default_config()
    config.update({
        'base_url': BASE,
        'out_dir': str(tmp_path / 'audit-output'),
        'settle_ms': 0,
        'network_idle_timeout_ms': 10,
        'viewports': ['desktop:1440x900'],
    })
    return normalize_config(config)


@pytest.fixture
def demo_site():
    """Small site exercising every outcome branch."""
    return FakeSite({
        BASE + '/': FakePageSpec(
            elements=[
                link('/about', 'About'),
                link('/missing', 'Missing page'),
                link('https://twitter.com/example', 'Twitter', target='_blank', effect='popup'),
                FakeElement(text='Open menu', effect='modal'),
                FakeElement(text='Generate', effect='api_500'),
                FakeElement(text='Do nothing'),
            ],
            text='Welcome!\nContact us at your@email.com or call 123-456-7890.',
        ),
        BASE + '/about': FakePageSpec(
            elements=[
                link('/', 'Home'),
                link('/team#leads', 'Team'),
                FakeElement(text='Hidden', box=None),
            ],
            text='About us. Lorem ipsum dolor sit amet.',
        ),
        BASE + '/team': FakePageSpec(elements=[link('/', 'Home')], text='Our team'),
    })
