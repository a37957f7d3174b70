"""
Scoring utility functions.
Provides rounding and aggregation helpers used by scoring.metrics.
"""
import math
from typing import Dict, Any, Iterable, List

POSITIVE_REACTIONS = ('THUMBS_UP', 'HEART', 'HOORAY', 'ROCKET')
NEGATIVE_REACTIONS = ('THUMBS_DOWN', 'CONFUSED')
REACTION_UNIT = 2


def round_half_up(value: float) -> int:
    """Round to the nearest integer; .5 always rounds toward positive infinity (-2.5 -> -2, 2.5 -> 3)."""
    return int(math.floor(value + 0.5))


def compute_weighted_score(metrics: Dict[str, Any], weights: Dict[str, float]) -> float:
    """
    Compute a single aggregate score from individual metric values using provided weights.
    Missing metrics are treated as zero.
    """
    total = 0.0
    for k, w in weights.items():
        val = float(metrics.get(k, 0) or 0)
        total += val * float(w)
    return total


def label_boost_total(labels: Iterable[str], boosts: Dict[str, float]) -> float:
    """Sum of configured boosts for the given labels; unknown labels contribute zero. Keys are lower-case."""
    return sum(boosts.get(label.lower(), 0) for label in labels)


def matches_any_label(labels: Iterable[str], candidates: List[str]) -> bool:
    label_set = {label.lower() for label in labels}
    return any(candidate in label_set for candidate in candidates)


def score_reactions(reactions: Dict[str, int]) -> int:
    """Net reaction score: 2 per positive reaction minus 2 per negative reaction."""
    positive = sum(reactions.get(kind, 0) for kind in POSITIVE_REACTIONS)
    negative = sum(reactions.get(kind, 0) for kind in NEGATIVE_REACTIONS)
    return REACTION_UNIT * positive - REACTION_UNIT * negative


def format_reaction_counts(reactions: Dict[str, int]) -> str:
    """Render reaction totals for summaries, e.g. "THUMBS_UP:3, HEART:1"; kinds sorted, empty -> "none"."""
    parts = [f"{kind}:{count}" for kind, count in sorted(reactions.items()) if count]
    return ', '.join(parts) if parts else 'none'
