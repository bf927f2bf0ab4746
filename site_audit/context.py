# context.py
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Any, List, Set

from .models import (
    AuditReport, BrokenLink, EndpointCheck, FakeDataFinding, InteractionResult, PageRecord,
)
from .utils import origin_of


@dataclass
class ViewportResults:
    """Collections written by exactly one viewport's driving loop."""
    viewport: str
    results: List[InteractionResult] = field(default_factory=list)
    fake_data_findings: List[FakeDataFinding] = field(default_factory=list)
    page_failures: List[BrokenLink] = field(default_factory=list)
    pages_tested: int = 0


class AuditRunContext:
    """State of one audit run, owned by the orchestrator and passed to every stage."""

    def __init__(self, config: Dict[str, Any]):
        self.config = config
        self.base_url: str = config['base_url']
        self.origin = origin_of(self.base_url)
        self.pages: List[PageRecord] = []
        self.visited: Set[str] = set()
        self.discovery_failures: List[BrokenLink] = []
        self.endpoint_checks: List[EndpointCheck] = []
        self.viewport_results: Dict[str, ViewportResults] = {}
        self.started_at = datetime.now().isoformat(timespec='seconds')

    @property
    def viewport_names(self) -> List[str]:
        return [v['name'] for v in self.config['viewports']]

    def has_page(self, url: str) -> bool:
        return any(p.url == url for p in self.pages)

    def results_for(self, viewport: str) -> ViewportResults:
        if viewport not in self.viewport_results:
            self.viewport_results[viewport] = ViewportResults(viewport)
        return self.viewport_results[viewport]

    def build_report(self) -> AuditReport:
        """Merge per-viewport collections in configured viewport order."""
        results: List[InteractionResult] = []
        findings: List[FakeDataFinding] = []
        failures: List[BrokenLink] = list(self.discovery_failures)
        for name in self.viewport_names:
            bucket = self.viewport_results.get(name)
            if bucket is None:
                continue
            results.extend(bucket.results)
            findings.extend(bucket.fake_data_findings)
            failures.extend(bucket.page_failures)
        return AuditReport(
            base_url=self.base_url,
            viewports=self.viewport_names,
            pages=list(self.pages),
            results=results,
            fake_data_findings=findings,
            page_failures=failures,
            endpoint_checks=list(self.endpoint_checks),
            started_at=self.started_at,
            finished_at=datetime.now().isoformat(timespec='seconds'),
        )
