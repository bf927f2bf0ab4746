# report.py
import csv
import io
import json
import logging
from collections import Counter
from dataclasses import asdict
from pathlib import Path
from typing import List, Dict

from .models import AuditReport, InteractionResult, OutcomeKind
from .utils import ensure_dir

logger = logging.getLogger(__name__)

CLICK_RESULTS_FILE = 'click-results.csv'
BROKEN_LINKS_FILE = 'broken-links.txt'
FAKE_DATA_FILE = 'fake-data-findings.json'
SUMMARY_FILE = 'audit-summary.txt'
REPORT_JSON_FILE = 'audit-report.json'

CSV_COLUMNS = [
    'Page_URL', 'Viewport', 'Element_Text', 'Aria_Label', 'Selector',
    'Element_Type', 'Href', 'Opens_New_Tab', 'Pre_Click_URL',
    'Post_Click_URL', 'HTTP_Status', 'Result', 'Notes',
]

SLOWEST_PAGES = 5
ATTENTION_PAGES = 10
CRITICAL_ISSUES = 10


def result_row(result: InteractionResult) -> Dict[str, str]:
    element = result.element
    return {
        'Page_URL': result.page_url,
        'Viewport': result.viewport,
        'Element_Text': element.text,
        'Aria_Label': element.aria_label or '',
        'Selector': element.selector,
        'Element_Type': element.tag_name,
        'Href': element.href or '',
        'Opens_New_Tab': 'Yes' if element.opens_new_tab or result.opened_popup else 'No',
        'Pre_Click_URL': result.pre_url,
        'Post_Click_URL': result.post_url,
        'HTTP_Status': result.http_status,
        'Result': result.outcome.value,
        'Notes': result.notes,
    }


def render_click_results(report: AuditReport) -> str:
    """Header unquoted, every value quoted."""
    buffer = io.StringIO()
    csv.writer(buffer, lineterminator='\n').writerow(CSV_COLUMNS)
    writer = csv.DictWriter(buffer, fieldnames=CSV_COLUMNS, quoting=csv.QUOTE_ALL, lineterminator='\n')
    writer.writerows(result_row(result) for result in report.results)
    return buffer.getvalue()


def render_broken_links(report: AuditReport) -> str:
    lines = [link.describe() for link in report.broken_links]
    return '\n'.join(lines) + '\n' if lines else ''


def render_fake_data(report: AuditReport) -> str:
    return json.dumps([asdict(f) for f in report.fake_data_findings], indent=2, ensure_ascii=False)


def _rate(part: int, total: int) -> str:
    return f"{part / total * 100:.1f}%" if total else 'n/a'


def render_summary(report: AuditReport) -> str:
    results = report.results
    failures = report.failures
    total = len(results)
    tested_pages = {(r.page_url, r.viewport) for r in results}

    lines = [
        'COMPREHENSIVE SITE AUDIT SUMMARY',
        '=================================',
        '',
        f"Base URL: {report.base_url}",
        f"Started: {report.started_at}",
        f"Finished: {report.finished_at}",
        f"Viewports: {', '.join(report.viewports)}",
        '',
        f"Total Pages Discovered: {len(report.pages)}",
        f"Total Pages Tested: {len(tested_pages)}",
    ]
    for viewport in report.viewports:
        pages = sum(1 for _, v in tested_pages if v == viewport)
        lines.append(f"  {viewport}: {pages} pages")
    lines += [
        f"Total Interactive Elements Tested: {total}",
        f"Broken Links Found: {len(report.broken_links)}",
        f"Fake Data Instances: {len(report.fake_data_findings)}",
    ]
    if report.endpoint_checks:
        failed_checks = sum(1 for c in report.endpoint_checks if not c.ok)
        lines.append(f"API Endpoints Checked: {len(report.endpoint_checks)} ({failed_checks} failing)")

    lines += ['', 'Results by Type:']
    counts = report.outcome_counts()
    if counts:
        lines += [f"- {kind.value} ({kind.label}): {count}" for kind, count in counts.items()]
    else:
        lines.append('- none')

    lines += [
        '',
        f"Successful: {total - len(failures)}",
        f"Failed: {len(failures)}",
        f"Success Rate: {_rate(total - len(failures), total)}",
        f"Failure Rate: {_rate(len(failures), total)}",
    ]

    lines += ['', 'Slowest Pages:']
    slowest = sorted(report.pages, key=lambda p: (-p.load_time_ms, p.url))[:SLOWEST_PAGES]
    lines += [f"{i}. {p.url}: {p.load_time_ms}ms" for i, p in enumerate(slowest, 1)] or ['- none']

    lines += ['', 'Pages Needing Attention:']
    per_page = Counter(r.page_url for r in failures)
    attention = sorted(per_page.items(), key=lambda item: (-item[1], item[0]))[:ATTENTION_PAGES]
    lines += [f"{i}. {url}: {count} failing interactions" for i, (url, count) in enumerate(attention, 1)] or ['- none']

    lines += ['', 'Critical Issues:']
    critical = [r for r in failures if r.outcome not in (OutcomeKind.FAIL_HIDDEN, OutcomeKind.FAIL_NOT_VISIBLE)]
    lines += [
        f"{i}. {r.page_url} ({r.viewport}): \"{r.element.display_name[:50]}\" - {r.outcome.label}"
        for i, r in enumerate(critical[:CRITICAL_ISSUES], 1)
    ] or ['- none']

    lines += [
        '',
        'Files Generated:',
        f"- {CLICK_RESULTS_FILE}: Detailed test results",
        f"- {BROKEN_LINKS_FILE}: List of broken links",
        f"- {FAKE_DATA_FILE}: Placeholder data detected",
        f"- {REPORT_JSON_FILE}: Full machine-readable report",
        '- screenshots/: Before/after screenshots',
        f"- {SUMMARY_FILE}: This summary",
    ]
    return '\n'.join(lines) + '\n'


def render_report_json(report: AuditReport) -> str:
    return json.dumps(report.to_dict(), indent=2, ensure_ascii=False)


class ReportGenerator:
    """Writes every report artifact; one failing file never stops the others."""

    renderers = [
        (CLICK_RESULTS_FILE, render_click_results),
        (BROKEN_LINKS_FILE, render_broken_links),
        (FAKE_DATA_FILE, render_fake_data),
        (SUMMARY_FILE, render_summary),
        (REPORT_JSON_FILE, render_report_json),
    ]

    def generate(self, report: AuditReport, out_dir: str) -> List[str]:
        written = []
        try:
            directory = ensure_dir(out_dir)
        except OSError as e:
            logger.error(f"Cannot create report directory {out_dir}: {e}")
            return written

        for name, render in self.renderers:
            path = directory / name
            try:
                self._write(path, render(report))
            except Exception as e:
                logger.error(f"Failed to write {path}: {e}")
                continue
            written.append(str(path))

        logger.info(f"Reports generated in: {directory}/ ({len(written)}/{len(self.renderers)} files)")
        return written

    def _write(self, path: Path, content: str):
        with open(path, 'w', encoding='utf-8', errors='replace', newline='') as f:
            f.write(content)
