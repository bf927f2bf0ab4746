# constants.py
import logging

logger = logging.getLogger(__name__)

# Defaults, overridden by AUDIT_* environment variables, a YAML file and CLI flags
BASE_URL = "http://localhost:5000"
MAX_DEPTH = 5
MAX_PAGES = 100
OUT_DIR = "audit-output"

VIEWPORTS = [
    {'name': 'desktop', 'width': 1440, 'height': 900},
    {'name': 'mobile', 'width': 375, 'height': 812},
]

NAVIGATION_TIMEOUT_MS = 15000
CLICK_TIMEOUT_MS = 5000
SETTLE_MS = 2000
NETWORK_IDLE_TIMEOUT_MS = 5000
MAX_ELEMENTS_PER_PAGE = 0  # 0 = no limit

NEO4J_USER = "neo4j"
NEO4J_PASSWORD = "testpassword"

ENV_PREFIX = "AUDIT_"

# Union of everything a user could reasonably expect to be clickable
INTERACTIVE_SELECTORS = [
    'a[href]',
    'button',
    '[role="button"]',
    '[onclick]',
    'input[type="button"]',
    'input[type="submit"]',
    '[data-testid*="button"]',
    '[class*="btn"]',
    '[class*="button"]',
    '[class*="cta"]',
    '[tabindex="0"]',
]
INTERACTIVE_SELECTOR = ', '.join(INTERACTIVE_SELECTORS)
LINK_SELECTOR = 'a[href]'

MODAL_SELECTOR = '[role="dialog"], [aria-modal="true"], .modal, .drawer, [class*="drawer"]'

# Elements smaller than this in either dimension are treated as hidden
MIN_ELEMENT_SIZE = 2

MAX_TEXT_LENGTH = 100
MAX_NOTE_ITEMS = 5

USER_AGENT = "SiteAudit/1.0"
