# main.py
import argparse
import asyncio
import logging
import sys

from .config import build_config, parse_viewport
from .errors import AuditError, ConfigError
from .orchestrator import run_audit

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FATAL = 1
EXIT_CONFIG = 2


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description='Crawl a site and click every interactive element')
    parser.add_argument('--url', dest='base_url', help='Seed URL; only same-origin pages are crawled')
    parser.add_argument('--depth', dest='max_depth', type=int, help='Max link hops from the seed')
    parser.add_argument('--limit', dest='max_pages', type=int, help='Max pages to visit')
    parser.add_argument('--out', dest='out_dir', help='Output directory')
    parser.add_argument('--viewport', dest='viewports', action='append',
                        help='Viewport as name:WIDTHxHEIGHT (repeatable)')
    parser.add_argument('--max-elements', dest='max_elements_per_page', type=int,
                        help='Max elements tested per page (0 = all)')
    parser.add_argument('--config', help='YAML config file')
    parser.add_argument('--headful', action='store_true', default=None, help='Show browser')
    parser.add_argument('--parallel-viewports', action='store_true', default=None,
                        help='Test viewports concurrently in separate browser contexts')
    parser.add_argument('--no-screenshots', dest='screenshots', action='store_false', default=None,
                        help='Skip before/after screenshots')
    parser.add_argument('--verbose', action='store_true', help='Debug logging')
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s %(levelname)-5s %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S',
    )

    cli = {k: v for k, v in vars(args).items() if k not in ('config', 'verbose')}
    try:
        if cli.get('viewports'):
            cli['viewports'] = [parse_viewport(v) for v in cli['viewports']]
        config = build_config(cli, config_file=args.config)
    except ConfigError as e:
        logger.error(f"Configuration error: {e}")
        return EXIT_CONFIG

    try:
        asyncio.run(run_audit(config))
    except AuditError as e:
        logger.error(f"Audit aborted: {e}")
        return EXIT_FATAL
    return EXIT_OK


if __name__ == '__main__':
    sys.exit(main())
