# models.py
from collections import Counter
from dataclasses import dataclass, field, asdict
from enum import Enum
from typing import Optional, List, Dict, Any


class OutcomeKind(Enum):
    OK_NEW_TAB = 'OK_NEW_TAB'
    OK_NAVIGATED = 'OK_NAVIGATED'
    OK_CLIENT_ROUTE = 'OK_CLIENT_ROUTE'
    OK_MODAL = 'OK_MODAL'
    OK_INPLACE_ACTION = 'OK_INPLACE_ACTION'
    FAIL_NO_EFFECT = 'FAIL_NO_EFFECT'
    FAIL_CONSOLE_ISSUE = 'FAIL_CONSOLE_ISSUE'
    FAIL_API_ERROR = 'FAIL_API_ERROR'
    FAIL_HIDDEN = 'FAIL_HIDDEN'
    FAIL_NOT_VISIBLE = 'FAIL_NOT_VISIBLE'
    FAIL_CLICK_ERROR = 'FAIL_CLICK_ERROR'
    FAIL_ELEMENT_ERROR = 'FAIL_ELEMENT_ERROR'

    @property
    def is_failure(self) -> bool:
        return self.value.startswith('FAIL_')

    @property
    def label(self) -> str:
        return OUTCOME_LABELS[self]


OUTCOME_LABELS = {
    OutcomeKind.OK_NEW_TAB: 'OK (New Tab)',
    OutcomeKind.OK_NAVIGATED: 'OK (Navigated)',
    OutcomeKind.OK_CLIENT_ROUTE: 'OK (Hash/Client Route)',
    OutcomeKind.OK_MODAL: 'OK (Opened Modal/Drawer)',
    OutcomeKind.OK_INPLACE_ACTION: 'OK (In-Place Action)',
    OutcomeKind.FAIL_NO_EFFECT: 'FAIL (No Nav, No Modal, No DOM Change)',
    OutcomeKind.FAIL_CONSOLE_ISSUE: 'FAIL (Console Error/Warning)',
    OutcomeKind.FAIL_API_ERROR: 'FAIL (API Error After Click)',
    OutcomeKind.FAIL_HIDDEN: 'FAIL (Hidden/Zero-size)',
    OutcomeKind.FAIL_NOT_VISIBLE: 'FAIL (Not Visible)',
    OutcomeKind.FAIL_CLICK_ERROR: 'FAIL (Click Error)',
    OutcomeKind.FAIL_ELEMENT_ERROR: 'FAIL (Element Error)',
}

# Outcomes decided before any click; these are not broken links, just untestable elements
PRE_CLICK_OUTCOMES = (OutcomeKind.FAIL_HIDDEN, OutcomeKind.FAIL_NOT_VISIBLE)


@dataclass(frozen=True)
class PageRecord:
    url: str
    depth: int
    discovered_from: Optional[str] = None
    http_status: Optional[int] = None
    title: str = ''
    load_time_ms: int = 0


@dataclass(frozen=True)
class InteractiveElement:
    selector: str
    tag_name: str
    text: str = ''
    aria_label: Optional[str] = None
    href: Optional[str] = None
    target: Optional[str] = None

    @property
    def opens_new_tab(self) -> bool:
        return (self.target or '').lower() == '_blank'

    @property
    def display_name(self) -> str:
        return self.text or self.aria_label or self.href or self.selector


@dataclass(frozen=True)
class InteractionSnapshot:
    """Page state captured immediately before or after one interaction."""
    url: str
    dom_hash: str
    console_issues: tuple = ()
    network_errors: tuple = ()
    popup_opened: bool = False
    modal_present: bool = False


@dataclass(frozen=True)
class InteractionResult:
    page_url: str
    viewport: str
    index: int
    element: InteractiveElement
    pre_url: str
    post_url: str
    outcome: OutcomeKind
    http_status: str = ''
    dom_changed: bool = False
    modal_opened: bool = False
    opened_popup: bool = False
    console_issue_count: int = 0
    notes: str = ''
    before_screenshot: str = ''
    after_screenshot: str = ''
    duration_ms: int = 0


@dataclass(frozen=True)
class FakeDataFinding:
    page: str
    viewport: str
    matched_text: str
    surrounding_context: str
    pattern: str = ''
    position: int = 0


@dataclass(frozen=True)
class BrokenLink:
    route: str
    viewport: str
    target: str
    status: str
    error: Optional[str] = None

    def describe(self) -> str:
        if self.route:
            line = f"{self.route} ({self.viewport}): {self.target} - {self.status}"
            return f"{line} {self.error}" if self.error else line
        line = f"{self.status} - {self.target}"
        return f"{line}: {self.error}" if self.error else line


@dataclass(frozen=True)
class EndpointCheck:
    path: str
    url: str
    status: Optional[int]
    ok: bool
    error: Optional[str] = None


@dataclass(frozen=True)
class QueueItem:
    url: str
    depth: int
    discovered_from: Optional[str] = None


@dataclass
class AuditReport:
    """Everything one run produced. Built once after all viewports finish."""
    base_url: str
    viewports: List[str]
    pages: List[PageRecord]
    results: List[InteractionResult]
    fake_data_findings: List[FakeDataFinding]
    page_failures: List[BrokenLink] = field(default_factory=list)
    endpoint_checks: List[EndpointCheck] = field(default_factory=list)
    started_at: str = ''
    finished_at: str = ''

    @property
    def failures(self) -> List[InteractionResult]:
        return [r for r in self.results if r.outcome.is_failure]

    @property
    def broken_links(self) -> List[BrokenLink]:
        links = list(self.page_failures)
        for check in self.endpoint_checks:
            if not check.ok:
                status = str(check.status) if check.status is not None else 'ERROR'
                links.append(BrokenLink('', '', check.url, status, check.error))
        for result in self.failures:
            if result.outcome in PRE_CLICK_OUTCOMES:
                continue
            links.append(BrokenLink(
                route=result.page_url,
                viewport=result.viewport,
                target=result.element.display_name,
                status=result.outcome.value,
                error=result.notes or None,
            ))
        return links

    def outcome_counts(self) -> Dict[OutcomeKind, int]:
        counts = Counter(r.outcome for r in self.results)
        return {kind: counts[kind] for kind in OutcomeKind if counts[kind]}

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        for row in data['results']:
            row['outcome'] = row['outcome'].value
        data['broken_links'] = [link.describe() for link in self.broken_links]
        data['summary'] = {
            'pages': len(self.pages),
            'interactions': len(self.results),
            'failures': len(self.failures),
            'outcomes': {kind.value: count for kind, count in self.outcome_counts().items()},
        }
        return data
