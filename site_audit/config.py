# config.py
"""
Audit configuration.

A plain dict built from, in increasing precedence: the defaults in
constants.py, AUDIT_* environment variables, an optional YAML file and
command-line flags.
"""
import logging
import os
import re
from typing import Dict, Any, List, Optional, Mapping

import yaml

from .constants import (
    BASE_URL, MAX_DEPTH, MAX_PAGES, OUT_DIR, VIEWPORTS, NAVIGATION_TIMEOUT_MS,
    CLICK_TIMEOUT_MS, SETTLE_MS, NETWORK_IDLE_TIMEOUT_MS, MAX_ELEMENTS_PER_PAGE,
    NEO4J_USER, NEO4J_PASSWORD, ENV_PREFIX,
)
from .errors import ConfigError

logger = logging.getLogger(__name__)

INT_KEYS = (
    'max_depth', 'max_pages', 'navigation_timeout_ms', 'click_timeout_ms',
    'settle_ms', 'network_idle_timeout_ms', 'max_elements_per_page',
)
BOOL_KEYS = ('headful', 'parallel_viewports', 'screenshots', 'full_page_screenshots', 'clear_db')
STR_KEYS = ('base_url', 'out_dir', 'neo4j_uri', 'neo4j_user', 'neo4j_password')

VIEWPORT_PATTERN = re.compile(r'^\s*([\w-]+)\s*:\s*(\d+)\s*[xX]\s*(\d+)\s*$')


def default_config() -> Dict[str, Any]:
    return {
        'base_url': BASE_URL,
        'max_depth': MAX_DEPTH,
        'max_pages': MAX_PAGES,
        'out_dir': OUT_DIR,
        'viewports': [dict(v) for v in VIEWPORTS],
        'navigation_timeout_ms': NAVIGATION_TIMEOUT_MS,
        'click_timeout_ms': CLICK_TIMEOUT_MS,
        'settle_ms': SETTLE_MS,
        'network_idle_timeout_ms': NETWORK_IDLE_TIMEOUT_MS,
        'max_elements_per_page': MAX_ELEMENTS_PER_PAGE,
        'headful': False,
        'parallel_viewports': False,
        'screenshots': True,
        'full_page_screenshots': True,
        'api_endpoints': [],
        'neo4j_uri': None,
        'neo4j_user': NEO4J_USER,
        'neo4j_password': NEO4J_PASSWORD,
        'clear_db': False,
    }


def parse_viewport(value) -> Dict[str, Any]:
    """'mobile:375x812' or {'name': ..., 'width': ..., 'height': ...} -> viewport dict."""
    if isinstance(value, dict):
        try:
            viewport = {'name': str(value['name']), 'width': int(value['width']), 'height': int(value['height'])}
        except (KeyError, TypeError, ValueError) as e:
            raise ConfigError(f"Invalid viewport {value!r}: {e}") from e
    else:
        match = VIEWPORT_PATTERN.match(str(value))
        if not match:
            raise ConfigError(f"Invalid viewport {value!r}, expected name:WIDTHxHEIGHT")
        viewport = {'name': match.group(1), 'width': int(match.group(2)), 'height': int(match.group(3))}
    if viewport['width'] <= 0 or viewport['height'] <= 0:
        raise ConfigError(f"Viewport {viewport['name']} must have a positive size")
    return viewport


def parse_bool(value) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ('1', 'true', 'yes', 'on')


def split_list(value) -> List[str]:
    if isinstance(value, (list, tuple)):
        return [str(v).strip() for v in value if str(v).strip()]
    return [part.strip() for part in str(value).split(',') if part.strip()]


def env_overrides(environ: Optional[Mapping[str, str]] = None) -> Dict[str, Any]:
    environ = os.environ if environ is None else environ
    overrides: Dict[str, Any] = {}
    for key in INT_KEYS + BOOL_KEYS + STR_KEYS:
        name = ENV_PREFIX + key.upper()
        if environ.get(name, '') != '':
            overrides[key] = environ[name]
    if environ.get(ENV_PREFIX + 'VIEWPORTS'):
        overrides['viewports'] = split_list(environ[ENV_PREFIX + 'VIEWPORTS'])
    if environ.get(ENV_PREFIX + 'API_ENDPOINTS'):
        overrides['api_endpoints'] = split_list(environ[ENV_PREFIX + 'API_ENDPOINTS'])
    return overrides


def load_config_file(path: str) -> Dict[str, Any]:
    try:
        with open(path, encoding='utf-8') as f:
            data = yaml.safe_load(f) or {}
    except OSError as e:
        raise ConfigError(f"Cannot read config file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a mapping")
    unknown = set(data) - set(default_config())
    if unknown:
        logger.warning(f"Ignoring unknown config keys in {path}: {', '.join(sorted(unknown))}")
    return {k: v for k, v in data.items() if k not in unknown}


def normalize_config(config: Dict[str, Any]) -> Dict[str, Any]:
    """Coerce types and check bounds. Raises ConfigError."""
    result = dict(config)
    for key in INT_KEYS:
        try:
            result[key] = int(result[key])
        except (TypeError, ValueError) as e:
            raise ConfigError(f"{key} must be an integer, got {result[key]!r}") from e
        if result[key] < 0:
            raise ConfigError(f"{key} must not be negative")
    if result['max_pages'] < 1:
        raise ConfigError("max_pages must be at least 1")
    for key in BOOL_KEYS:
        result[key] = parse_bool(result[key])

    base_url = str(result.get('base_url') or '').strip()
    if not re.match(r'^https?://', base_url):
        raise ConfigError(f"base_url must be an http(s) URL, got {base_url!r}")
    result['base_url'] = base_url

    viewports = [parse_viewport(v) for v in (result.get('viewports') or [])]
    if not viewports:
        raise ConfigError("At least one viewport is required")
    names = [v['name'] for v in viewports]
    if len(set(names)) != len(names):
        raise ConfigError(f"Viewport names must be unique: {', '.join(names)}")
    result['viewports'] = viewports
    result['api_endpoints'] = split_list(result.get('api_endpoints') or [])
    return result


def build_config(cli: Optional[Dict[str, Any]] = None, config_file: Optional[str] = None,
                 environ: Optional[Mapping[str, str]] = None) -> Dict[str, Any]:
    config = default_config()
    config.update(env_overrides(environ))
    if config_file:
        config.update(load_config_file(config_file))
    if cli:
        config.update({k: v for k, v in cli.items() if v is not None})
    return normalize_config(config)
