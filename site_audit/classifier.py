# classifier.py
"""
Outcome classification for a single element interaction.

The primary decision is made from the before/after snapshots in a fixed
order, first match wins:

    popup opened          -> OK_NEW_TAB
    URL changed           -> OK_NAVIGATED (origin or path differ) / OK_CLIENT_ROUTE
    modal became present  -> OK_MODAL
    DOM hash changed      -> OK_INPLACE_ACTION
    otherwise             -> FAIL_NO_EFFECT

A bare trailing '#' is not a URL change.

Console issues and HTTP >= 400 responses observed during the interaction then
escalate in-page outcomes to FAIL_CONSOLE_ISSUE / FAIL_API_ERROR. Full page
loads and new tabs are not escalated: whatever the destination logs belongs
to that page, which is audited on its own.
"""
from typing import Optional, Dict, Any
from urllib.parse import urlparse, urldefrag

from .constants import MIN_ELEMENT_SIZE, MAX_NOTE_ITEMS
from .models import OutcomeKind, InteractionSnapshot
from .utils import origin_of

AMPLIFIABLE_OUTCOMES = frozenset({
    OutcomeKind.OK_CLIENT_ROUTE,
    OutcomeKind.OK_MODAL,
    OutcomeKind.OK_INPLACE_ACTION,
    OutcomeKind.FAIL_NO_EFFECT,
})


def interactability_outcome(box: Optional[Dict[str, Any]], visible: bool) -> Optional[OutcomeKind]:
    """FAIL_HIDDEN / FAIL_NOT_VISIBLE for elements that must not be clicked, None otherwise."""
    if not box or box.get('width', 0) < MIN_ELEMENT_SIZE or box.get('height', 0) < MIN_ELEMENT_SIZE:
        return OutcomeKind.FAIL_HIDDEN
    if not visible:
        return OutcomeKind.FAIL_NOT_VISIBLE
    return None


def url_change_outcome(pre_url: str, post_url: str) -> OutcomeKind:
    post = urlparse(post_url)
    if post.scheme in ('http', 'https'):
        pre = urlparse(pre_url)
        if origin_of(pre_url) != origin_of(post_url) or (pre.path or '/') != (post.path or '/'):
            return OutcomeKind.OK_NAVIGATED
    return OutcomeKind.OK_CLIENT_ROUTE


def comparable_url(url: str) -> str:
    """Drop an empty trailing fragment; clicking href="#" turns 'X' into 'X#' without going anywhere."""
    base, fragment = urldefrag(url)
    return url if fragment else base


def primary_outcome(pre: InteractionSnapshot, post: InteractionSnapshot) -> OutcomeKind:
    if post.popup_opened:
        return OutcomeKind.OK_NEW_TAB
    if comparable_url(post.url) != comparable_url(pre.url):
        return url_change_outcome(pre.url, post.url)
    if post.modal_present and not pre.modal_present:
        return OutcomeKind.OK_MODAL
    if post.dom_hash != pre.dom_hash:
        return OutcomeKind.OK_INPLACE_ACTION
    return OutcomeKind.FAIL_NO_EFFECT


def amplify(outcome: OutcomeKind, post: InteractionSnapshot) -> OutcomeKind:
    if outcome not in AMPLIFIABLE_OUTCOMES:
        return outcome
    if post.console_issues:
        return OutcomeKind.FAIL_CONSOLE_ISSUE
    if post.network_errors:
        return OutcomeKind.FAIL_API_ERROR
    return outcome


def classify(pre: InteractionSnapshot, post: InteractionSnapshot) -> OutcomeKind:
    return amplify(primary_outcome(pre, post), post)


def signal_notes(post: InteractionSnapshot) -> str:
    notes = []
    if post.console_issues:
        notes.append(f"CONSOLE_ISSUE: {'; '.join(post.console_issues[:MAX_NOTE_ITEMS])}")
    if post.network_errors:
        notes.append(f"API_FAILS: {' | '.join(post.network_errors[:MAX_NOTE_ITEMS])}")
    return ' '.join(notes)
