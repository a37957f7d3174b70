"""
Text helpers shared by normalization, scoring and relationship detection.
Tokenization, phrase matching, lexicon sentiment, keyword overlap and #mention extraction.
"""
import re
from datetime import datetime, timezone
from typing import Iterable, List, Optional, Set

STOPWORDS = {
    'the', 'and', 'for', 'with', 'that', 'this', 'from', 'into', 'over', 'under', 'about', 'there', 'their',
    'your', 'you', 'our', 'are', 'was', 'were', 'been', 'have', 'has', 'had', 'but', 'not', 'can', 'could',
    'should', 'would', 'will', 'just', 'than', 'then', 'when', 'what', 'which', 'while', 'why', 'how', 'any',
    'all', 'its', 'it', 'also', 'use', 'using', 'used',
}

MIN_TOKEN_LENGTH = 3
# phrases this short are matched as whole words ("os" must not match "cost")
SHORT_PHRASE_LENGTH = 3

DEFAULT_LINK_KEYWORDS = ['fixes', 'fix', 'closes', 'close', 'resolves', 'resolve', 'addresses', 'related to', 'see', 'ref']

SECONDS_PER_DAY = 60 * 60 * 24

_TOKEN = re.compile(r'[a-z0-9]+')


def extract_text_tokens(text: Optional[str]) -> List[str]:
    if not text:
        return []
    return [t for t in _TOKEN.findall(text.lower()) if len(t) >= MIN_TOKEN_LENGTH and t not in STOPWORDS]


def phrase_matches(text: str, phrase: str) -> bool:
    normalized = (phrase or '').strip().lower()
    if not normalized:
        return False
    if len(normalized) <= SHORT_PHRASE_LENGTH:
        return re.search(r'\b' + re.escape(normalized) + r'\b', text, re.IGNORECASE) is not None
    return normalized in text


def has_any_phrase(text: str, phrases: Iterable[str]) -> bool:
    return any(phrase and phrase_matches(text, phrase) for phrase in phrases)


def keyword_overlap_score(a: Optional[str], b: Optional[str]) -> float:
    """Shared distinct tokens divided by the larger token set's size; 0 when either side is empty."""
    a_tokens = set(extract_text_tokens(a))
    b_tokens = set(extract_text_tokens(b))
    if not a_tokens or not b_tokens:
        return 0.0
    return len(a_tokens & b_tokens) / max(len(a_tokens), len(b_tokens))


def sentiment_from_text(text: Optional[str], positive: Set[str], negative: Set[str]) -> int:
    score = 0
    for token in extract_text_tokens(text):
        if token in positive:
            score += 1
        if token in negative:
            score -= 1
    return score


def aggregate_sentiment(texts: Iterable[Optional[str]], positive: Set[str], negative: Set[str]) -> int:
    return sum(sentiment_from_text(t, positive, negative) for t in texts if t)


def _keyword_alternation(link_keywords: List[str]) -> str:
    keywords = [k for k in link_keywords if k] or DEFAULT_LINK_KEYWORDS
    # longest first so "related to" wins over a shorter prefix
    return '|'.join(re.escape(k) for k in sorted(keywords, key=len, reverse=True))


def extract_mentions(text: Optional[str], link_keywords: List[str], require_keyword: bool = False) -> List[int]:
    """
    Return #<number> references in first-seen order, without duplicates.
    Link keywords may precede the reference; with require_keyword only keyword-led references count.
    """
    if not text:
        return []
    keyword_group = f"(?:{_keyword_alternation(link_keywords)})"
    if not require_keyword:
        keyword_group += '?'
    pattern = re.compile(r'(?:^|\s)' + keyword_group + r'[:\s]*#(\d+)', re.IGNORECASE)
    mentions: List[int] = []
    for match in pattern.finditer(text):
        number = int(match.group(1))
        if number not in mentions:
            mentions.append(number)
    return mentions


def has_explicit_link(text: Optional[str], link_keywords: List[str]) -> bool:
    """True when a link keyword is directly followed by whitespace and a #<number> reference."""
    if not text:
        return False
    pattern = re.compile(f"(?:{_keyword_alternation(link_keywords)})" + r'\s+#\d+', re.IGNORECASE)
    return pattern.search(text) is not None


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp (a trailing 'Z' is accepted); naive values are taken as UTC."""
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.strip().replace('Z', '+00:00'))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def timestamp_sort_key(value: Optional[str]) -> float:
    parsed = parse_timestamp(value)
    return parsed.timestamp() if parsed else float('-inf')


def days_between(start: Optional[str], end: Optional[str]) -> int:
    """Whole days between two timestamps (floor of the absolute difference); 0 if either is unparsable."""
    a = parse_timestamp(start)
    b = parse_timestamp(end)
    if a is None or b is None:
        return 0
    return int(abs((b - a).total_seconds()) // SECONDS_PER_DAY)
