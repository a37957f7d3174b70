"""
Duplicate candidate detection within one batch of issues or pull requests.

The check runs per direction: the title ratio is taken over the candidate's own title words, so
A listing B as a duplicate does not imply B lists A.
"""
import re
from typing import Any, Dict, List, Set

from normalize.text import keyword_overlap_score

MIN_TITLE_WORD_LENGTH = 4
MIN_SIGNATURE_CHARS = 10
MAX_SIGNATURE_CHARS = 180

_ERROR_LINE = re.compile(r"error|exception|failed|failure|security error|cannot|can't|can not|unable", re.IGNORECASE)
_ERROR_SNIPPET = re.compile(r'error|exception|failed|failure|security error', re.IGNORECASE)
_QUOTED = re.compile(r'["\'`]([^"\'`]{%d,%d})["\'`]' % (MIN_SIGNATURE_CHARS, MAX_SIGNATURE_CHARS))
_WHITESPACE = re.compile(r'\s+')


def _title_words(title: str) -> Set[str]:
    return {w for w in (title or '').lower().split() if len(w) >= MIN_TITLE_WORD_LENGTH}


def _item_text(item: Dict[str, Any]) -> str:
    return f"{item.get('title') or ''} {item.get('body') or ''}"


def extract_error_signatures(text: str) -> Set[str]:
    """
    Error-looking lines (10-180 chars after trimming) and quoted error snippets, lower-cased with
    whitespace collapsed. Compared between items by exact string.
    """
    signatures: Set[str] = set()
    if not text:
        return signatures
    for line in text.lower().split('\n'):
        line = line.strip()
        if MIN_SIGNATURE_CHARS <= len(line) <= MAX_SIGNATURE_CHARS and _ERROR_LINE.search(line):
            signatures.add(_WHITESPACE.sub(' ', line))
    for match in _QUOTED.finditer(text):
        snippet = match.group(1).lower().strip()
        if _ERROR_SNIPPET.search(snippet):
            signatures.add(_WHITESPACE.sub(' ', snippet))
    return signatures


def find_possible_duplicates(item: Dict[str, Any], all_items: List[Dict[str, Any]], config: Dict[str, Any]) -> List[int]:
    """
    Return numbers of other items in all_items that look like duplicates of item.

    Items are dicts with number, title and body. A candidate matches on title similarity, keyword
    overlap, a shared error signature or a shared configured signature; with requireSharedError set a
    match additionally needs a shared error or a duplicate-hint phrase in either text.
    """
    thresholds = config['heuristics']['duplicates']
    configured = [s.lower() for s in config['semantics']['errors']['signatures'] if s]
    hints = [h for h in config['semantics']['relationship']['duplicateHints'] if h]

    title_words = _title_words(item.get('title'))
    item_text = _item_text(item)
    item_lower = item_text.lower()
    item_errors = extract_error_signatures(item_text)

    duplicates: List[int] = []
    for other in all_items:
        if other['number'] == item['number']:
            continue
        other_text = _item_text(other)
        other_lower = other_text.lower()

        title_similarity = len(title_words & _title_words(other.get('title'))) / len(title_words) if title_words else 0.0
        overlap = keyword_overlap_score(item_text, other_text)
        shared_error = bool(item_errors & extract_error_signatures(other_text))
        shared_configured = any(sig in item_lower and sig in other_lower for sig in configured)
        hint_present = any(h in item_lower or h in other_lower for h in hints)

        match = (title_similarity > thresholds['titleSimilarityThreshold']
                 or overlap > thresholds['overlapThreshold']
                 or shared_error
                 or shared_configured)
        if match and (not thresholds['requireSharedError'] or shared_error or shared_configured or hint_present):
            duplicates.append(other['number'])
    return duplicates
