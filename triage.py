"""
Triage run orchestration.
Wires one run: resolve config -> normalize -> relate -> persist notes -> delta -> state.
Raw issue / PR records are supplied by the caller (the fetch step lives outside this package).
"""
import json
import logging
import os
import shutil
from typing import Any, Dict, List, Optional

from settings import derive_repo_overrides, load_config, merge_with_base, write_derived_config
from settings.defaults import DEFAULT_CONFIG_PATH, DERIVED_CONFIG_PATH
from normalize.text import parse_timestamp
from normalize.util import normalize_issues, normalize_pull_requests
from correlate import build_contributor_profiles, build_graph, build_mentioned_by_relations, enrich_pull_requests_with_issue_signals
from storage.notes import apply_note_to_pull_request, read_or_create_note
from storage.index import build_index_from_notes
from storage.state import (
    compute_delta_from_previous_report,
    compute_delta_from_state,
    create_state,
    find_latest_report_dir,
    read_state,
    utc_timestamp,
    write_state,
)

logger = logging.getLogger(__name__)

MAINTAINER_DIR = os.path.join('.github', 'maintainer')


class TriageRun:
    """Everything one run produced. delta is None when not requested or no history exists."""

    def __init__(self, config, issues, prs, contributors, graph, delta, state, report_dir, warnings):
        self.config = config
        self.issues = issues
        self.prs = prs
        self.contributors = contributors
        self.graph = graph
        self.delta = delta
        self.state = state
        self.report_dir = report_dir
        self.warnings = warnings


def report_label_from(label: str) -> str:
    """Filesystem-safe run label: ':' replaced by '-'. ISO timestamps are cut to seconds precision."""
    text = label.strip()
    if parse_timestamp(text) is not None:
        text = text.split('.')[0].rstrip('Z')
    return text.replace(':', '-')


def write_json(path: str, data: Any):
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    with open(path, 'w', encoding='utf-8') as f:
        f.write(json.dumps(data, indent=2) + '\n')


def _previous_delta(issues, prs, state_path: str, reports_root: str, current_label: str, warnings: List[str]):
    previous_state = read_state(state_path, warnings)
    if previous_state:
        return compute_delta_from_state(issues, prs, previous_state)
    previous_dir = find_latest_report_dir(reports_root)
    if not previous_dir or previous_dir == current_label:
        return None
    return compute_delta_from_previous_report(issues, prs, os.path.join(reports_root, previous_dir, 'data'), warnings)


def run_triage(raw_issues: List[Dict[str, Any]], raw_prs: List[Dict[str, Any]], repo_root: str = '.',
               config_path: Optional[str] = None, now: Optional[str] = None, label: Optional[str] = None,
               compute_delta: bool = True, keep_existing: bool = False) -> TriageRun:
    """
    Run one triage pass over the supplied raw records and persist every artifact under repo_root.
    Entity errors propagate; config, state and derived-layer problems become warnings.
    """
    repo_root = os.path.abspath(repo_root)
    now = now or utc_timestamp()
    label = report_label_from(label or now)

    loaded = load_config(os.path.join(repo_root, config_path or DEFAULT_CONFIG_PATH))
    warnings: List[str] = list(loaded.warnings)

    derived = derive_repo_overrides(repo_root, loaded.config)
    derived_write = write_derived_config(os.path.join(repo_root, DERIVED_CONFIG_PATH), derived)
    if derived_write.warning:
        warnings.append(derived_write.warning)
    config = merge_with_base(loaded.config, derived.overrides, warnings)

    reports_root = os.path.join(repo_root, config['reportsDir'])
    report_dir = os.path.join(reports_root, label)
    data_dir = os.path.join(report_dir, 'data')
    notes_dir = os.path.join(repo_root, MAINTAINER_DIR, 'notes')
    index_dir = os.path.join(repo_root, MAINTAINER_DIR, 'index')
    state_path = os.path.join(repo_root, config['stateFile'])

    issues = sorted(normalize_issues(raw_issues, now, config), key=lambda i: -i.priority_score)
    prs = sorted(normalize_pull_requests(raw_prs, now, config), key=lambda p: -p.priority_score)
    build_mentioned_by_relations(issues, prs)
    enrich_pull_requests_with_issue_signals(prs, issues, config)
    contributors = build_contributor_profiles(issues, prs)

    delta = _previous_delta(issues, prs, state_path, reports_root, label, warnings) if compute_delta else None

    if os.path.exists(report_dir) and not keep_existing:
        shutil.rmtree(report_dir)
    os.makedirs(data_dir, exist_ok=True)

    for issue in issues:
        read_or_create_note(notes_dir, issue, now, config)
    for pr in prs:
        note = read_or_create_note(notes_dir, pr, now, config)
        apply_note_to_pull_request(pr, note.front_matter)

    write_json(os.path.join(data_dir, 'issues.json'), {'generatedAt': now, 'count': len(issues), 'issues': [i.to_dict() for i in issues]})
    write_json(os.path.join(data_dir, 'prs.json'), {'generatedAt': now, 'count': len(prs), 'pullRequests': [p.to_dict() for p in prs]})
    write_json(os.path.join(data_dir, 'contributors.json'), {
        'generatedAt': now,
        'count': len(contributors),
        'contributors': {login: profile.to_dict() for login, profile in contributors.items()},
    })

    titles = {f"issue:{i.number}": i.title for i in issues}
    titles.update({f"pr:{p.number}": p.title for p in prs})
    items = build_index_from_notes(notes_dir, titles, relative_to=repo_root)
    write_json(os.path.join(index_dir, 'items.json'), {'generatedAt': now, 'count': len(items), 'items': items})
    graph = build_graph(issues, prs)
    write_json(os.path.join(index_dir, 'graph.json'), {'generatedAt': now, 'nodes': graph['nodes'], 'edges': graph['edges']})

    state = create_state(os.path.relpath(report_dir, repo_root), issues, prs, run_at=now)
    write_state(state_path, state)
    write_json(os.path.join(data_dir, 'state.json'), state)
    if delta is not None:
        write_json(os.path.join(data_dir, 'delta.json'), delta.to_dict())
    with open(os.path.join(reports_root, 'LATEST'), 'w', encoding='utf-8') as f:
        f.write(os.path.relpath(report_dir, repo_root).replace(os.sep, '/') + '\n')

    logger.info("triage run %s: %d issues, %d prs, %d contributors", label, len(issues), len(prs), len(contributors))
    return TriageRun(config, issues, prs, contributors, graph, delta, state, report_dir, warnings)
