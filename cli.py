"""
CLI entry point for maintainer triage. Wires the pipeline: raw records -> normalize -> score -> relate -> notes/state
"""

import argparse
import json
import logging
import sys

from settings.defaults import DEFAULT_CONFIG_PATH
from scoring.utils import format_reaction_counts
from triage import run_triage


def _load_json_file(path: str, description: str):
    """Load a JSON file and return the parsed object. On failure, print the error and return None."""
    try:
        with open(path, 'r', encoding='utf-8') as f:
            return json.load(f)
    except (OSError, ValueError) as e:
        print(f"Failed to read {description} {path}: {e}")
        return None


def _extract_records(payload, key: str):
    """Accept a plain array, {"<key>": [...]} or {"nodes": [...]} and return the record list (or None)."""
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict):
        for k in (key, 'nodes'):
            if isinstance(payload.get(k), list):
                return payload[k]
    return None


def _load_records(path: str, key: str, description: str):
    if not path:
        return []
    payload = _load_json_file(path, description)
    if payload is None:
        return None
    records = _extract_records(payload, key)
    if records is None:
        print(f"Invalid {description} {path}; expected an array of records.")
    return records


def _print_summary(result):
    print(f"\nReport generated: {result.report_dir}")
    print(f"  - {len(result.issues)} issues")
    print(f"  - {len(result.prs)} PRs")
    print(f"  - {len(result.contributors)} contributors")
    for issue in result.issues[:5]:
        print(f"    #{issue.number} [{issue.actionability}] priority={issue.priority_score} reactions={format_reaction_counts(issue.reaction_totals)}")
    delta = result.delta
    if delta:
        print(f"  - Delta: {len(delta.new_issues)} new issues, {len(delta.updated_issues)} updated, {len(delta.closed_issues)} closed")
        print(f"  - Delta: {len(delta.new_prs)} new PRs, {len(delta.updated_prs)} updated, {len(delta.closed_prs)} closed")


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Maintainer triage CLI")
    parser.add_argument("--issues", type=str, default="", help="Path to JSON file with raw issue records")
    parser.add_argument("--prs", type=str, default="", help="Path to JSON file with raw pull request records")
    parser.add_argument("--repo-root", type=str, default=".", help="Repository root (templates, notes, state and reports live here)")
    parser.add_argument("--config", type=str, default=DEFAULT_CONFIG_PATH, help="Config path relative to the repo root (.json, .yml or .yaml)")
    parser.add_argument("--datetime", type=str, default="", help="Report label; ':' is replaced by '-' (default: run timestamp)")
    parser.add_argument("--now", type=str, default="", help="As-of timestamp for age computations (ISO-8601, default: now)")
    parser.add_argument("--delta", action="store_true", help="Compute new/updated/closed items against the previous run")
    parser.add_argument("--keep", action="store_true", help="Keep an existing report directory with the same label")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING, format="%(levelname)s %(name)s: %(message)s")

    if not args.issues and not args.prs:
        parser.error("Provide at least one of --issues or --prs")

    raw_issues = _load_records(args.issues, 'issues', 'issues file')
    raw_prs = _load_records(args.prs, 'pullRequests', 'pull requests file')
    if raw_issues is None or raw_prs is None:
        return 1

    result = run_triage(
        raw_issues,
        raw_prs,
        repo_root=args.repo_root,
        config_path=args.config,
        now=args.now or None,
        label=args.datetime or None,
        compute_delta=args.delta,
        keep_existing=args.keep,
    )
    for warning in result.warnings:
        print(f"Warning: {warning}")
    _print_summary(result)
    return 0


if __name__ == "__main__":
    sys.exit(main())
