# orchestrator.py
import asyncio
import logging
from typing import Dict, Any

from playwright.async_api import async_playwright, Browser, Error as PlaywrightError

from .constants import USER_AGENT
from .context import AuditRunContext
from .crawler import SiteCrawler
from .database import export_report
from .errors import AuditSetupError
from .interactions import InteractionTester
from .models import AuditReport
from .probes import probe_endpoints
from .report import ReportGenerator
from .utils import ensure_dir

logger = logging.getLogger(__name__)

LAUNCH_ARGS = ['--no-sandbox', '--disable-setuid-sandbox', '--disable-dev-shm-usage']


class AuditOrchestrator:
    """Runs discovery, per-viewport interaction testing and reporting for one audit."""

    def __init__(self, config: Dict[str, Any]):
        self.config = config
        self.ctx = AuditRunContext(config)
        self.playwright = None
        self.browser: Browser | None = None
        self.written_files = []

    async def __aenter__(self):
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.cleanup()

    async def initialize(self):
        try:
            self.playwright = await async_playwright().start()
            self.browser = await self.playwright.chromium.launch(
                headless=not self.config.get('headful', False),
                args=LAUNCH_ARGS,
            )
        except PlaywrightError as e:
            await self.cleanup()
            raise AuditSetupError(f"Browser failed to launch: {e}") from e

    async def cleanup(self):
        if self.browser:
            await self.browser.close()
            self.browser = None
        if self.playwright:
            await self.playwright.stop()
            self.playwright = None

    async def run(self) -> AuditReport:
        ensure_dir(self.config['out_dir'])

        logger.info(f"Discovering pages from {self.config['base_url']}")
        await self.discover()
        logger.info(f"Discovered {len(self.ctx.pages)} pages to test")

        if self.config.get('api_endpoints'):
            self.ctx.endpoint_checks = await probe_endpoints(
                self.playwright, self.config['base_url'], self.config['api_endpoints'],
                self.config['navigation_timeout_ms'],
            )

        viewports = self.config['viewports']
        if self.config.get('parallel_viewports'):
            await asyncio.gather(*(self.audit_viewport(v) for v in viewports))
        else:
            for viewport in viewports:
                await self.audit_viewport(viewport)

        report = self.ctx.build_report()
        self.written_files = ReportGenerator().generate(report, self.config['out_dir'])

        if self.config.get('neo4j_uri'):
            await export_report(self.config, report)

        logger.info(
            f"Audit complete: {len(report.results)} interactions tested, "
            f"{len(report.failures)} failures, {len(report.broken_links)} broken links"
        )
        return report

    async def discover(self):
        """Crawl once with the first viewport; every viewport tests the same page list."""
        viewport = self.config['viewports'][0]
        context = await self.browser.new_context(
            viewport={'width': viewport['width'], 'height': viewport['height']},
            user_agent=USER_AGENT,
        )
        try:
            page = await context.new_page()
            await SiteCrawler(self.ctx).crawl(page, self.config['base_url'])
        finally:
            await context.close()

    async def audit_viewport(self, viewport: Dict[str, Any]):
        name = viewport['name']
        logger.info(f"Testing {name} viewport ({viewport['width']}x{viewport['height']})")
        context = await self.browser.new_context(viewport={'width': viewport['width'], 'height': viewport['height']})
        tester = InteractionTester(self.ctx, name)
        try:
            page = await context.new_page()
            for record in self.ctx.pages:
                logger.info(f"Testing page: {record.url} ({name})")
                await tester.test_page(page, record.url)
        finally:
            await context.close()
        bucket = self.ctx.results_for(name)
        logger.info(f"{name}: {bucket.pages_tested} pages, {len(bucket.results)} interactions tested")


async def run_audit(config: Dict[str, Any]) -> AuditReport:
    async with AuditOrchestrator(config) as orchestrator:
        return await orchestrator.run()
