"""
Run state snapshot and change detection between runs.

The snapshot maps each issue / PR number to a short content hash of (updatedAt, commentsTotal, title).
The hash only signals "probably changed"; it is never used for identity.
"""
import json
import logging
import os
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1
HashMap = Dict[str, str]


class DeltaChanges:
    """New / updated / closed numbers for issues and PRs between two runs."""

    def __init__(self, new_issues=None, updated_issues=None, closed_issues=None, new_prs=None, updated_prs=None, closed_prs=None):
        self.new_issues: List[int] = new_issues or []
        self.updated_issues: List[int] = updated_issues or []
        self.closed_issues: List[int] = closed_issues or []
        self.new_prs: List[int] = new_prs or []
        self.updated_prs: List[int] = updated_prs or []
        self.closed_prs: List[int] = closed_prs or []

    def to_dict(self) -> Dict[str, List[int]]:
        return {
            'newIssues': self.new_issues,
            'updatedIssues': self.updated_issues,
            'newPrs': self.new_prs,
            'updatedPrs': self.updated_prs,
            'closedIssues': self.closed_issues,
            'closedPrs': self.closed_prs,
        }


def hash_fields(updated_at: str, comments_total: int, title: str) -> str:
    """
    31-multiplier rolling hash over the UTF-16 code units of "updatedAt|commentsTotal|title",
    wrapped to a signed 32-bit integer at every step; hex of the absolute value.
    """
    data = f"{updated_at}|{comments_total}|{title}".encode('utf-16-le')
    h = 0
    for i in range(0, len(data), 2):
        unit = data[i] | (data[i + 1] << 8)
        h = (h * 31 + unit) & 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000
    return format(abs(h), 'x')


def create_item_hash(item) -> str:
    return hash_fields(item.updated_at, item.comments_total, item.title)


def hash_map(items) -> HashMap:
    return {str(item.number): create_item_hash(item) for item in items}


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat(timespec='milliseconds').replace('+00:00', 'Z')


def create_state(report_dir: str, issues, prs, run_at: Optional[str] = None) -> Dict[str, Any]:
    return {
        'schemaVersion': SCHEMA_VERSION,
        'lastRunAt': run_at or utc_timestamp(),
        'lastReportDir': os.path.normpath(report_dir),
        'issueHashes': hash_map(issues),
        'prHashes': hash_map(prs),
    }


def read_state(path: str, warnings: Optional[List[str]] = None) -> Optional[Dict[str, Any]]:
    """
    Return the stored snapshot, or None when it is missing, unreadable or structurally invalid.
    An unreadable or invalid file is reported through warnings (when given) as well as the log.
    """
    if not os.path.exists(path):
        return None
    try:
        with open(path, 'r', encoding='utf-8') as f:
            parsed = json.load(f)
    except (OSError, ValueError) as exc:
        return _ignored(f"Ignoring unreadable state file {path}: {exc}", warnings)
    if not isinstance(parsed, dict) or not isinstance(parsed.get('issueHashes'), dict) or not isinstance(parsed.get('prHashes'), dict):
        return _ignored(f"Ignoring malformed state file {path}; no delta against it.", warnings)
    return parsed


def _ignored(message: str, warnings: Optional[List[str]]) -> None:
    logger.warning(message)
    if warnings is not None:
        warnings.append(message)
    return None


def write_state(path: str, state: Dict[str, Any]):
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    with open(path, 'w', encoding='utf-8') as f:
        f.write(json.dumps(state, indent=2) + '\n')


def diff_hashes(previous: Dict[Any, str], current: Dict[Any, str]) -> Tuple[List[int], List[int], List[int]]:
    """
    Compare two number -> hash maps (keys may be ints or strings).
    new: absent (or empty) before; updated: present with a different hash; closed: present only before.
    """
    prev = {str(k): v for k, v in (previous or {}).items()}
    curr = {str(k): v for k, v in current.items()}
    new = [int(k) for k in curr if not prev.get(k)]
    updated = [int(k) for k, h in curr.items() if prev.get(k) and prev[k] != h]
    closed = [int(k) for k in prev if k not in curr]
    return new, updated, closed


def compute_delta(previous_issue_hashes: Dict[Any, str], previous_pr_hashes: Dict[Any, str],
                  issue_hashes: Dict[Any, str], pr_hashes: Dict[Any, str]) -> DeltaChanges:
    new_issues, updated_issues, closed_issues = diff_hashes(previous_issue_hashes, issue_hashes)
    new_prs, updated_prs, closed_prs = diff_hashes(previous_pr_hashes, pr_hashes)
    return DeltaChanges(new_issues, updated_issues, closed_issues, new_prs, updated_prs, closed_prs)


def compute_delta_from_state(issues, prs, previous_state: Dict[str, Any]) -> DeltaChanges:
    return compute_delta(previous_state.get('issueHashes') or {}, previous_state.get('prHashes') or {},
                         hash_map(issues), hash_map(prs))


def _load_dump(path: str, key: str) -> Dict[int, Any]:
    with open(path, 'r', encoding='utf-8') as f:
        data = json.load(f)
    return {entry['number']: entry.get('updatedAt') for entry in data[key]}


def compute_delta_from_previous_report(issues, prs, previous_data_dir: str, warnings: Optional[List[str]] = None) -> Optional[DeltaChanges]:
    """
    Fallback when no state snapshot exists: compare against a previous run's data dumps
    (issues.json / prs.json) using updatedAt instead of hashes. None when the dumps are missing or unusable.
    """
    issues_path = os.path.join(previous_data_dir, 'issues.json')
    prs_path = os.path.join(previous_data_dir, 'prs.json')
    if not os.path.exists(issues_path) or not os.path.exists(prs_path):
        return None
    try:
        prev_issues = _load_dump(issues_path, 'issues')
        prev_prs = _load_dump(prs_path, 'pullRequests')
    except (OSError, ValueError, KeyError, TypeError) as exc:
        return _ignored(f"Ignoring unreadable previous report in {previous_data_dir}: {exc}", warnings)

    def diff(previous: Dict[int, Any], current) -> Tuple[List[int], List[int], List[int]]:
        numbers = {item.number for item in current}
        new = [item.number for item in current if item.number not in previous]
        updated = [item.number for item in current if item.number in previous and previous[item.number] != item.updated_at]
        closed = [n for n in previous if n not in numbers]
        return new, updated, closed

    new_issues, updated_issues, closed_issues = diff(prev_issues, issues)
    new_prs, updated_prs, closed_prs = diff(prev_prs, prs)
    return DeltaChanges(new_issues, updated_issues, closed_issues, new_prs, updated_prs, closed_prs)


def find_latest_report_dir(reports_root: str) -> Optional[str]:
    """Name of the report directory that sorts last (report directories are timestamp-named)."""
    if not os.path.isdir(reports_root):
        return None
    dirs = sorted(entry for entry in os.listdir(reports_root) if os.path.isdir(os.path.join(reports_root, entry)))
    return dirs[-1] if dirs else None
