# fake_data.py
import re
from typing import List

from .models import FakeDataFinding
from .utils import collapse_whitespace

CONTEXT_RADIUS = 40

# (name, pattern) pairs, all matched case-insensitively against rendered page text
FAKE_DATA_PATTERNS = [
    ('lorem', r'lorem'),
    ('ipsum', r'ipsum'),
    ('placeholder', r'placeholder'),
    ('dummy', r'\bdummy\b'),
    ('tbd', r'\bTBD\b'),
    ('replaceme', r'REPLACE_?ME'),
    ('template_tag', r'\{\{.*?\}\}'),
    ('date_format', r'\bMM/DD/YYYY\b'),
    ('year_format', r'\bYYYY\b'),
    ('example_domain', r'\bexample\.com\b'),
    ('email_placeholder', r'your@email(?:\.com)?'),
    ('phone_sequence', r'\b123-456-7890\b'),
    ('phone_mask', r'\bX{3}-X{3}-X{4}\b'),
    ('phone_555', r'\(?555\)?[-.\s]555[-.\s]\d{4}'),
    ('image_placeholder', r'image-placeholder'),
    ('example_email', r'\bexample@'),
    ('todo', r'\bTODO\b'),
    ('fixme', r'\bFIXME\b'),
    ('sample_text', r'\bsample text\b'),
    ('filler_content', r'\b(?:dummy|test) content\b'),
    ('coming_soon', r'\bcoming soon\b'),
    ('under_construction', r'\bunder construction\b'),
    ('bare_hash', r'^\s*#\s*$'),
]

COMPILED_PATTERNS = [
    (name, re.compile(pattern, re.IGNORECASE | re.MULTILINE))
    for name, pattern in FAKE_DATA_PATTERNS
]


def surrounding_context(text: str, start: int, end: int, radius: int = CONTEXT_RADIUS) -> str:
    return collapse_whitespace(text[max(0, start - radius):end + radius])


def scan(rendered_text: str, page: str = '', viewport: str = '') -> List[FakeDataFinding]:
    """Every placeholder-looking match in the text, in pattern order then position order.

    Matches of different patterns over the same text are all reported.
    Never raises; text without matches yields an empty list.
    """
    if not rendered_text:
        return []
    findings = []
    for name, regex in COMPILED_PATTERNS:
        for match in regex.finditer(rendered_text):
            matched = match.group(0).strip()
            if not matched:
                continue
            findings.append(FakeDataFinding(
                page=page,
                viewport=viewport,
                matched_text=matched,
                surrounding_context=surrounding_context(rendered_text, match.start(), match.end()),
                pattern=name,
                position=match.start(),
            ))
    return findings
