"""
Correlate package: duplicate detection, PR to issue linking, contributor profiles and the relation graph.
"""

from .duplicates import extract_error_signatures, find_possible_duplicates
from .linker import (
    build_mentioned_by_relations,
    classify_relationship_quality,
    compute_relationship_score,
    enrich_pull_requests_with_issue_signals,
)
from .contributors import build_contributor_profiles
from .graph import build_graph

__all__ = [
    "extract_error_signatures",
    "find_possible_duplicates",
    "build_mentioned_by_relations",
    "classify_relationship_quality",
    "compute_relationship_score",
    "enrich_pull_requests_with_issue_signals",
    "build_contributor_profiles",
    "build_graph",
]
