"""
Scoring metrics.
Pure functions combining a normalized issue / pull request with the resolved config into priority,
needs-info, actionability and implementation-readiness figures.
"""
import re
from typing import Any, Dict, List, Tuple

from normalize.text import has_any_phrase
from .utils import compute_weighted_score, label_boost_total, matches_any_label, round_half_up, score_reactions

VERSION_PATTERN = re.compile(r'\bv?\d+\.\d+(\.\d+)?\b')
CLOSING_PHRASES = ('fixed in', 'released in', 'issue can be closed')

CI_SUCCESS = 'SUCCESS'
CI_FAILURE = 'FAILURE'

# signal name -> key under heuristics.needsInfo.weights
ISSUE_SIGNAL_WEIGHT_KEYS = {
    'missing-repro': 'missingRepro',
    'missing-expected-actual': 'missingExpectedActual',
    'missing-environment': 'missingEnvironment',
    'missing-version': 'missingVersion',
    'missing-logs': 'missingLogs',
}
PR_SIGNAL_WEIGHT_KEYS = {
    'missing-description': 'missingDescription',
    'missing-test-plan': 'missingTestPlan',
}

# implementation score inputs taken straight from PR attributes, keyed like config['implementation']
_IMPLEMENTATION_COUNTS = {
    'commentWeight': 'comments_total',
    'reviewWeight': 'reviews_total',
    'reviewCommentWeight': 'review_comments_total',
}

__all__ = [
    'compute_issue_priority',
    'compute_pr_priority',
    'compute_issue_needs_info',
    'compute_pr_needs_info',
    'classify_issue_actionability',
    'classify_pr_actionability',
    'compute_implementation_score',
    'tier_from_score',
    'score_reactions',
]


def compute_issue_priority(issue, config: Dict[str, Any]) -> float:
    weights = config['priority']['issue']
    score = issue.comments_total * weights['commentWeight']
    score += compute_weighted_score(issue.reaction_totals, weights['reactionWeights'])
    score += weights['typeBoosts'].get(issue.item_type, 0)

    if issue.days_since_update > 30:
        score += weights['stalePenalty']['over30']
    if issue.days_since_update > 60:
        score += weights['stalePenalty']['over60']

    if issue.age_in_days > 30 and issue.days_since_update < 7:
        score += weights['ageBoost']['over30AndFresh']

    score += label_boost_total(issue.labels, config['priority']['labelBoosts'])
    return _as_number(max(0, score))


def compute_pr_priority(pr, config: Dict[str, Any]) -> float:
    weights = config['priority']['pr']
    score = pr.comments_total * weights['commentWeight']
    score += pr.reviews_total * weights['reviewWeight']

    if pr.has_approval:
        score += weights['approvalBoost']
    if pr.status_check_state == CI_SUCCESS:
        score += weights['ciSuccessBoost']
    if pr.unresolved_threads > 0:
        score += weights['unresolvedThreadsPenalty']
    if pr.has_changes_requested:
        score += weights['changesRequestedPenalty']
    if pr.is_draft:
        score += weights['draftPenalty']

    if pr.days_since_update > 14:
        score += weights['stalePenalty']['over14']
    if pr.days_since_update > 30:
        score += weights['stalePenalty']['over30']

    score += label_boost_total(pr.labels, config['priority']['labelBoosts'])
    return _as_number(max(0, score))


def _as_number(value: float):
    """Keep integral scores as ints so they serialize without a trailing .0."""
    return int(value) if float(value).is_integer() else value


def _signal_applies(signal_config: Dict[str, Any], item_type: str) -> bool:
    return bool(signal_config.get('enabled')) and item_type in signal_config.get('applyTo', [])


def _weighted_signals(signals: List[str], weight_keys: Dict[str, str], weights: Dict[str, Any]) -> float:
    return _as_number(sum(weights.get(weight_keys.get(s, s), 1) for s in signals))


def _item_text(item) -> str:
    return '\n'.join([item.title or '', item.body or '', '\n'.join(c.body or '' for c in item.comments)]).lower()


def compute_issue_needs_info(issue, config: Dict[str, Any]) -> Tuple[float, List[str]]:
    """
    Return (score, signals) for an issue. Each signal fires only when enabled and applicable to the
    issue's type; the score is the sum of the fired signals' weights (1 when a weight is unset).
    """
    heuristics = config['heuristics']['needsInfo']
    if not heuristics['enabled']:
        return 0, []
    lexicon = config['semantics']['needsInfo']
    toggles = heuristics['issueSignals']
    text = _item_text(issue)
    signals: List[str] = []

    if _signal_applies(toggles['missingRepro'], issue.item_type):
        if not has_any_phrase(text, lexicon['repro']):
            signals.append('missing-repro')

    if _signal_applies(toggles['missingExpectedActual'], issue.item_type):
        if not (has_any_phrase(text, lexicon['expected']) and has_any_phrase(text, lexicon['actual'])):
            signals.append('missing-expected-actual')

    if _signal_applies(toggles['missingEnvironment'], issue.item_type):
        if not (has_any_phrase(text, lexicon['environment']) or has_any_phrase(text, config['semantics']['environmentTokens'])):
            signals.append('missing-environment')

    if _signal_applies(toggles['missingVersion'], issue.item_type):
        if not (has_any_phrase(text, lexicon['version']) or VERSION_PATTERN.search(text)):
            signals.append('missing-version')

    if _signal_applies(toggles['missingLogs'], issue.item_type):
        has_error = any(kw and kw in text for kw in config['semantics']['errors']['keywords'])
        has_logs = has_any_phrase(text, lexicon['logs']) or '```' in text or 'stack trace' in text
        if has_error and not has_logs:
            signals.append('missing-logs')

    return _weighted_signals(signals, ISSUE_SIGNAL_WEIGHT_KEYS, heuristics['weights']), signals


def compute_pr_needs_info(pr, config: Dict[str, Any]) -> Tuple[float, List[str]]:
    heuristics = config['heuristics']['needsInfo']
    if not heuristics['enabled']:
        return 0, []
    toggles = heuristics['prSignals']
    signals: List[str] = []

    if toggles['missingDescription']['enabled'] and not (pr.body or '').strip():
        signals.append('missing-description')
    if toggles['missingTestPlan']['enabled'] and not has_any_phrase(_item_text(pr), config['semantics']['needsInfo']['testPlan']):
        signals.append('missing-test-plan')

    return _weighted_signals(signals, PR_SIGNAL_WEIGHT_KEYS, heuristics['weights']), signals


def _label_state(labels: List[str], config: Dict[str, Any]):
    label_config = config['labels']
    for key, state in (('blocked', 'blocked'), ('needsInfo', 'needs-info'), ('needsDecision', 'needs-decision'), ('closable', 'closable')):
        if matches_any_label(labels, label_config[key]):
            return state
    return None


def _needs_info_by_score(item, config: Dict[str, Any]) -> bool:
    heuristics = config['heuristics']['needsInfo']
    return heuristics['enabled'] and item.needs_info_score >= heuristics['threshold']


def classify_issue_actionability(issue, config: Dict[str, Any]) -> str:
    """First match wins: labels, staleness, needs-info score, open question to the author, closing phrases."""
    state = _label_state(issue.labels, config)
    if state:
        return state
    if issue.days_since_update > config['staleDays']['issues']:
        return 'stale'
    if _needs_info_by_score(issue, config):
        return 'needs-info'

    if issue.comments:
        last = issue.comments[-1]
        if last.author != issue.author and '?' in (last.body or ''):
            return 'needs-info'

    if any(phrase in (c.body or '').lower() for c in issue.comments for phrase in CLOSING_PHRASES):
        return 'closable'
    return 'ready'


def classify_pr_actionability(pr, config: Dict[str, Any]) -> str:
    state = _label_state(pr.labels, config)
    if state:
        return state
    if pr.days_since_update > config['staleDays']['prs']:
        return 'stale'
    if _needs_info_by_score(pr, config):
        return 'needs-info'
    return 'needs-analysis'


def compute_implementation_score(pr, linked_issue_reactions: float, linked_issue_sentiment: float, config: Dict[str, Any]) -> int:
    """
    Implementation readiness of a PR. Expects linked-issue and relationship fields to be populated.
    Age, file-count and line-count penalties each apply only their highest exceeded threshold.
    """
    weights = config['implementation']
    counts = {key: getattr(pr, attr) for key, attr in _IMPLEMENTATION_COUNTS.items()}
    score = compute_weighted_score(counts, {key: weights[key] for key in _IMPLEMENTATION_COUNTS})
    score += score_reactions(pr.reaction_totals) * weights['reactionWeight']
    score += pr.linked_issue_priority * weights['linkedIssuePriorityWeight']
    score += linked_issue_reactions * weights['linkedIssueReactionWeight']
    score += linked_issue_sentiment * weights['linkedIssueSentimentWeight']
    score += pr.relationship_score * weights['relationshipScoreWeight']
    score += weights['relationshipQualityBoosts'].get(pr.relationship_quality_auto, 0)

    if pr.touches_tests:
        score += weights['touchesTestsBoost']
    if pr.status_check_state == CI_SUCCESS:
        score += weights['ciSuccessBoost']
    if pr.status_check_state == CI_FAILURE:
        score += weights['ciFailurePenalty']
    if pr.has_changes_requested:
        score += weights['changesRequestedPenalty']
    if pr.unresolved_threads > 0:
        score += weights['unresolvedThreadsPenalty']
    if pr.is_draft:
        score += weights['draftPenalty']

    age = weights['agePenalty']
    if pr.days_since_update > 60:
        score += age['over60']
    elif pr.days_since_update > 30:
        score += age['over30']
    elif pr.days_since_update > 14:
        score += age['over14']

    size = weights['sizePenalty']
    if pr.files_total > 25:
        score += size['filesOver25']
    elif pr.files_total > 10:
        score += size['filesOver10']
    if pr.lines_changed > 1000:
        score += size['linesOver1000']
    elif pr.lines_changed > 500:
        score += size['linesOver500']

    return max(weights['scoreFloor'], round_half_up(score))


def tier_from_score(score: float, config: Dict[str, Any]) -> str:
    """Thresholds are inclusive: a score equal to a threshold gets that tier."""
    thresholds = config['implementation']['tierThresholds']
    if score >= thresholds['strong']:
        return 'strong'
    if score >= thresholds['medium']:
        return 'medium'
    return 'weak'
