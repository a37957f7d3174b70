"""
Item index built from persisted notes, for external indexing.
"""
import os
from typing import Any, Dict, List, Optional

from .notes import parse_front_matter, to_number


def _text_or_none(value: Any) -> Optional[str]:
    return str(value) if value not in (None, '') else None


def _string_list(value: Any) -> List[str]:
    if isinstance(value, list):
        return [str(v) for v in value]
    if isinstance(value, str) and value.strip():
        return [value.strip()]
    return []


def _number_list(value: Any) -> List[Any]:
    if not isinstance(value, list):
        return []
    numbers = (to_number(v) for v in value)
    return [int(n) if float(n).is_integer() else n for n in numbers if n is not None]


def _index_item(front_matter: Dict[str, Any], path: str, titles: Dict[str, str], relative_to: str) -> Optional[Dict[str, Any]]:
    kind = 'pr' if front_matter.get('type') == 'pr' else 'issue'
    number = to_number(front_matter.get('id'))
    if not number:
        return None
    number = int(number)
    return {
        'id': number,
        'type': kind,
        'title': titles.get(f"{kind}:{number}", ''),
        'actionability': str(front_matter.get('actionability', '')),
        'priorityScore': to_number(front_matter.get('priority_score')) or 0,
        'implementationScoreAuto': to_number(front_matter.get('implementation_score_auto')),
        'implementationScoreFinal': to_number(front_matter.get('implementation_score_final')),
        'implementationTierAuto': _text_or_none(front_matter.get('implementation_tier_auto')),
        'implementationTierFinal': _text_or_none(front_matter.get('implementation_tier_final')),
        'agentScore': to_number(front_matter.get('agent_score')),
        'agentConfidence': _text_or_none(front_matter.get('agent_confidence')),
        'relationshipScore': to_number(front_matter.get('relationship_score')),
        'relationshipOverlap': to_number(front_matter.get('relationship_overlap')),
        'relationshipQualityAuto': _text_or_none(front_matter.get('relationship_quality_auto')),
        'relationshipQualityFinal': _text_or_none(front_matter.get('relationship_quality_final')),
        'sentimentScore': to_number(front_matter.get('sentiment_score')),
        'needsInfoScore': to_number(front_matter.get('needs_info_score')),
        'needsInfoSignals': _string_list(front_matter.get('needs_info_signals')),
        'linkedIssues': _number_list(front_matter.get('linked_issues')),
        'labels': _string_list(front_matter.get('labels')),
        'notePath': os.path.relpath(path, relative_to).replace(os.sep, '/'),
        'lastSeenAt': _text_or_none(front_matter.get('last_seen_at')),
        'lastReviewedAt': _text_or_none(front_matter.get('last_reviewed_at')),
    }


def build_index_from_notes(notes_dir: str, titles: Optional[Dict[str, str]] = None, relative_to: Optional[str] = None) -> List[Dict[str, Any]]:
    """
    Walk notes_dir for *.md notes and return one index entry per note with a usable id,
    sorted by type ('issue' before 'pr') then id. titles maps "issue:<n>" / "pr:<n>" to a title.
    Fields a note does not carry are None.
    """
    titles = titles or {}
    relative_to = relative_to or os.getcwd()
    items: List[Dict[str, Any]] = []
    if not os.path.isdir(notes_dir):
        return items
    for root, dirs, files in os.walk(notes_dir):
        dirs.sort()
        for name in sorted(files):
            if not name.endswith('.md'):
                continue
            path = os.path.join(root, name)
            with open(path, 'r', encoding='utf-8') as f:
                note = parse_front_matter(f.read())
            item = _index_item(note.front_matter, path, titles, relative_to)
            if item:
                items.append(item)
    items.sort(key=lambda item: (item['type'], item['id']))
    return items
