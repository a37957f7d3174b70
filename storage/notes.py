"""
Per-entity note store.

Each issue / PR gets a markdown note with a front-matter block followed by a human-owned body.
Machine fields are recomputed on every run; human fields (agent_score, agent_confidence,
agent_rationale, relationship_quality_final and the body) are carried forward. Merging the same
inputs twice produces byte-identical files.

Front-matter values are str, int, float, bool or a flat list of those. Lists are written as
`[a, b]`; strings are written bare, so they must not contain newlines or list brackets.
"""
import logging
import math
import os
import re
from typing import Any, Dict, List, Optional, Union

from jinja2 import Environment, FileSystemLoader, select_autoescape

from scoring.metrics import tier_from_score
from scoring.utils import round_half_up

logger = logging.getLogger(__name__)

Scalar = Union[str, int, float, bool]
FrontMatterValue = Union[Scalar, List[Scalar]]
FrontMatter = Dict[str, FrontMatterValue]

FRONTMATTER_PATTERN = re.compile(r'^---\n(.*?)\n---\n?', re.DOTALL)

FRONTMATTER_ORDER = [
    'id',
    'type',
    'status',
    'actionability',
    'priority_score',
    'implementation_score_auto',
    'implementation_score_final',
    'implementation_tier_auto',
    'implementation_tier_final',
    'agent_score',
    'agent_confidence',
    'agent_rationale',
    'relationship_score',
    'relationship_overlap',
    'relationship_quality_auto',
    'relationship_quality_final',
    'sentiment_score',
    'needs_info_score',
    'needs_info_signals',
    'linked_issues',
    'labels',
    'last_seen_at',
    'last_reviewed_at',
    'next_review_at',
    'decisions',
    'tags',
    'owner',
]

# superseded by the *_auto / *_final pairs
LEGACY_KEYS = ('implementation_score', 'implementation_tier')

CONFIDENCE_LEVELS = ('high', 'medium', 'low')
UNSET_CONFIDENCE = 'unset'
# human-written free text, read back verbatim rather than as a typed scalar
RAW_TEXT_KEYS = ('agent_rationale', 'relationship_quality_final')

TEMPLATES_DIR = os.path.join(os.path.dirname(__file__), 'templates')
NOTE_TEMPLATES = {'issue': 'issue_note.md.j2', 'pr': 'pr_note.md.j2'}
NOTE_DIRS = {'issue': ('issues', 'ISSUE'), 'pr': ('prs', 'PR')}


class Note:
    """A note as read or written: parsed front matter plus the free-form body."""

    def __init__(self, front_matter: FrontMatter, body: str, path: Optional[str] = None, created: bool = False):
        self.front_matter = front_matter
        self.body = body
        self.path = path
        self.created = created

    def render(self) -> str:
        return serialize_front_matter(self.front_matter) + self.body


# --- value coercion -------------------------------------------------------

def _parse_number(text: str) -> Optional[Union[int, float]]:
    """Return the number text spells only when it re-serializes to exactly the same text."""
    try:
        as_int = int(text)
        if str(as_int) == text:
            return as_int
    except ValueError:
        pass
    try:
        as_float = float(text)
    except ValueError:
        return None
    if math.isfinite(as_float) and repr(as_float) == text:
        return as_float
    return None


def parse_scalar(value: str) -> FrontMatterValue:
    trimmed = value.strip()
    if not trimmed:
        return ''
    if trimmed == 'true':
        return True
    if trimmed == 'false':
        return False
    if trimmed.startswith('[') and trimmed.endswith(']'):
        inner = trimmed[1:-1].strip()
        if not inner:
            return []
        return [parse_scalar(entry) for entry in inner.split(',')]
    number = _parse_number(trimmed)
    if number is not None:
        return number
    for quote in ('"', "'"):
        if trimmed.startswith(quote):
            trimmed = trimmed[1:]
        if trimmed.endswith(quote):
            trimmed = trimmed[:-1]
    return trimmed


def serialize_value(value: Any) -> str:
    if isinstance(value, (list, tuple)):
        return '[' + ', '.join(serialize_value(v) for v in value) + ']'
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if value is None:
        return ''
    if isinstance(value, float):
        return str(int(value)) if value.is_integer() else repr(value)
    return ' '.join(str(value).splitlines())


def to_number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, str) and value.strip():
        try:
            return float(value)
        except ValueError:
            return None
    return None


def to_text(value: Any) -> str:
    return value if isinstance(value, str) else ''


def normalize_confidence(value: Any) -> str:
    if not isinstance(value, str):
        return UNSET_CONFIDENCE
    normalized = value.strip().lower()
    return normalized if normalized in CONFIDENCE_LEVELS else UNSET_CONFIDENCE


# --- front matter ---------------------------------------------------------

def parse_front_matter(content: str) -> Note:
    """Split a note into front matter and body. Content without a front-matter block is all body."""
    match = FRONTMATTER_PATTERN.match(content)
    if not match:
        return Note({}, content)
    front_matter: FrontMatter = {}
    for line in match.group(1).split('\n'):
        trimmed = line.strip()
        if not trimmed or trimmed.startswith('#') or ':' not in line:
            continue
        key, _, value = line.partition(':')
        key = key.strip()
        front_matter[key] = value.strip() if key in RAW_TEXT_KEYS else parse_scalar(value)
    return Note(front_matter, content[match.end():])


def serialize_front_matter(front_matter: FrontMatter) -> str:
    """Preferred keys first in FRONTMATTER_ORDER, then any other keys in their existing order."""
    ordered = [key for key in FRONTMATTER_ORDER if key in front_matter]
    ordered.extend(key for key in front_matter if key not in FRONTMATTER_ORDER)
    lines = ['---']
    lines.extend(f"{key}: {serialize_value(front_matter[key])}" for key in ordered)
    lines.append('---')
    return '\n'.join(lines) + '\n'


def note_path(base_dir: str, kind: str, number: int) -> str:
    """<base>/issues|prs/<number // 1000, zero-padded to 3>/ISSUE-<n>.md|PR-<n>.md"""
    folder, prefix = NOTE_DIRS[kind]
    shard = str(number // 1000).zfill(3)
    return os.path.join(base_dir, folder, shard, f"{prefix}-{number}.md")


def compute_final_score(auto_score: float, agent_score: float, agent_confidence: str, config: Dict[str, Any]) -> int:
    """auto + agent * agentScoreWeight * multiplier(confidence), rounded half-up and floored at scoreFloor."""
    weights = config['implementation']
    multipliers = weights['agentConfidenceMultipliers']
    multiplier = multipliers.get(agent_confidence, multipliers[UNSET_CONFIDENCE])
    adjusted = agent_score * weights['agentScoreWeight'] * multiplier
    return max(weights['scoreFloor'], round_half_up(auto_score + adjusted))


def _whole(value: float):
    return int(value) if isinstance(value, float) and value.is_integer() else value


def build_front_matter(item, now: str, existing: Optional[FrontMatter], config: Dict[str, Any]) -> FrontMatter:
    """
    Merge freshly computed machine fields into an existing front matter. Unknown keys keep their place.

    relationship_quality_final: when no agent field is set at all, a stored value that differs from the
    automatic one is replaced by the automatic one; otherwise the stored value wins (auto if empty).
    """
    existing = existing or {}
    merged: FrontMatter = {k: v for k, v in existing.items() if k not in LEGACY_KEYS}
    merged.update({
        'id': item.number,
        'type': item.kind,
        'status': 'open',
        'actionability': item.actionability,
        'priority_score': item.priority_score,
        'sentiment_score': item.sentiment_score,
        'needs_info_score': item.needs_info_score,
        'needs_info_signals': list(item.needs_info_signals),
        'labels': list(item.labels),
        'last_seen_at': now,
    })
    if item.kind == 'issue':
        return merged

    agent_score = _whole(to_number(existing.get('agent_score')) or 0)
    agent_confidence = normalize_confidence(existing.get('agent_confidence'))
    agent_rationale = to_text(existing.get('agent_rationale'))

    auto_score = item.implementation_score_auto
    final_score = compute_final_score(auto_score, agent_score, agent_confidence, config)
    stored_quality = to_text(existing.get('relationship_quality_final'))
    has_agent_override = agent_score != 0 or agent_confidence != UNSET_CONFIDENCE or bool(agent_rationale.strip())
    if not has_agent_override and stored_quality != item.relationship_quality_auto:
        quality_final = item.relationship_quality_auto
    else:
        quality_final = stored_quality or item.relationship_quality_auto

    merged.update({
        'implementation_score_auto': auto_score,
        'implementation_score_final': final_score,
        'implementation_tier_auto': tier_from_score(auto_score, config),
        'implementation_tier_final': tier_from_score(final_score, config),
        'agent_score': agent_score,
        'agent_confidence': agent_confidence,
        'agent_rationale': agent_rationale,
        'relationship_score': item.relationship_score,
        'relationship_overlap': item.relationship_overlap,
        'relationship_quality_auto': item.relationship_quality_auto,
        'relationship_quality_final': quality_final,
        'linked_issues': list(item.linked_issues),
    })
    return merged


def render_default_body(item) -> str:
    env = Environment(loader=FileSystemLoader(TEMPLATES_DIR), autoescape=select_autoescape(['html', 'xml']), keep_trailing_newline=True)
    tmpl = env.get_template(NOTE_TEMPLATES[item.kind])
    return tmpl.render(number=item.number, title=' '.join((item.title or '').splitlines()), linked_issues=getattr(item, 'linked_issues', []))


def read_or_create_note(base_dir: str, item, now: str, config: Dict[str, Any]) -> Note:
    """
    Create the item's note with fresh machine fields and the default body, or merge into the existing
    note keeping its body and human fields. The file is (re)written in both cases.
    """
    path = note_path(base_dir, item.kind, item.number)
    if not os.path.exists(path):
        os.makedirs(os.path.dirname(path), exist_ok=True)
        note = Note(build_front_matter(item, now, {}, config), render_default_body(item), path, created=True)
    else:
        with open(path, 'r', encoding='utf-8') as f:
            existing = parse_front_matter(f.read())
        note = Note(build_front_matter(item, now, existing.front_matter, config), existing.body, path)
    with open(path, 'w', encoding='utf-8') as f:
        f.write(note.render())
    logger.debug("%s note %s", 'created' if note.created else 'merged', path)
    return note


def apply_note_to_pull_request(pr, front_matter: FrontMatter):
    """Copy the human-adjusted figures of a merged note back onto the PR."""
    pr.agent_score = front_matter.get('agent_score', pr.agent_score)
    pr.agent_confidence = front_matter.get('agent_confidence', pr.agent_confidence)
    pr.agent_rationale = front_matter.get('agent_rationale', pr.agent_rationale)
    pr.implementation_score_final = front_matter.get('implementation_score_final', pr.implementation_score_final)
    pr.implementation_tier_final = front_matter.get('implementation_tier_final', pr.implementation_tier_final)
    pr.relationship_quality_final = front_matter.get('relationship_quality_final', pr.relationship_quality_final)
