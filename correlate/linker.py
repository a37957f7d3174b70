"""
Linker heuristics to associate pull requests with the issues they mention.
- incoming mentions: every outgoing #mention becomes an incoming mention on its target
- linked issues: outgoing mentions of a PR that resolve to a known issue
- relationship quality / score from keyword overlap, explicit link keywords and linked-issue signals
"""
import logging
from typing import Dict, List, Tuple

from normalize.text import has_explicit_link, keyword_overlap_score
from scoring.metrics import compute_implementation_score, score_reactions, tier_from_score
from scoring.utils import round_half_up

logger = logging.getLogger(__name__)

Incoming = Dict[int, List[int]]


def collect_incoming_mentions(sources: List, targets: Dict[int, object]) -> Incoming:
    """Map target number -> numbers of sources that mention it, deduplicated, in source order."""
    incoming: Incoming = {}
    for source in sources:
        for mentioned in source.relations.mentions:
            if mentioned not in targets:
                continue
            bucket = incoming.setdefault(mentioned, [])
            if source.number not in bucket:
                bucket.append(source.number)
    return incoming


def build_mentioned_by_relations(issues: List, prs: List) -> Tuple[Incoming, Incoming]:
    """
    Compute incoming mentions for every issue and PR from all outgoing mention lists.

    Pass 1 reads the outgoing lists of issues then PRs without touching any entity, pass 2 assigns
    fresh mentioned_by lists. Returns (issue_incoming, pr_incoming).
    """
    issue_map = {issue.number: issue for issue in issues}
    pr_map = {pr.number: pr for pr in prs}
    sources = list(issues) + list(prs)

    issue_incoming = collect_incoming_mentions(sources, issue_map)
    pr_incoming = collect_incoming_mentions(sources, pr_map)

    for number, entity in issue_map.items():
        entity.relations.mentioned_by = list(issue_incoming.get(number, []))
    for number, entity in pr_map.items():
        entity.relations.mentioned_by = list(pr_incoming.get(number, []))
    return issue_incoming, pr_incoming


def classify_relationship_quality(overlap: float, explicit_link: bool, linked_issue_count: int, config: Dict) -> str:
    """Zero linked issues is always 'none', whatever the text overlap."""
    thresholds = config['heuristics']['relationshipQuality']
    if linked_issue_count == 0:
        return 'none'
    if thresholds['strongWhenExplicit'] and explicit_link:
        return 'strong'
    if overlap >= thresholds['strongOverlapThreshold']:
        return 'strong'
    if overlap >= thresholds['mediumOverlapThreshold']:
        return 'medium'
    return thresholds['defaultWhenLinked']


def compute_relationship_score(overlap: float, explicit_link: bool, linked_issue_count: int, mentioned_by_count: int,
                               linked_issue_priority: float, config: Dict) -> int:
    weights = config['relationshipScore']
    return round_half_up(
        overlap * weights['overlapWeight']
        + (weights['explicitLinkBoost'] if explicit_link else 0)
        + linked_issue_count * weights['linkedIssuesWeight']
        + mentioned_by_count * weights['mentionedByWeight']
        + linked_issue_priority * weights['linkedIssuePriorityWeight']
    )


def _text(item) -> str:
    return f"{item.title} {item.body or ''}"


def enrich_pull_requests_with_issue_signals(prs: List, issues: List, config: Dict):
    """
    Attach linked-issue signals, relationship quality / score and the automatic implementation
    score and tier to each PR. Issues must already be fully scored. Final values start equal to auto;
    persisted notes may adjust them afterwards.
    """
    issue_map = {issue.number: issue for issue in issues}
    link_keywords = config['semantics']['relationship']['linkKeywords']

    for pr in prs:
        linked = [n for n in pr.relations.mentions if n in issue_map]
        linked_issues = [issue_map[n] for n in linked]
        priority_sum = sum(issue.priority_score for issue in linked_issues)
        reaction_sum = sum(score_reactions(issue.reaction_totals) for issue in linked_issues)
        sentiment_sum = sum(issue.sentiment_score for issue in linked_issues)
        overlap = max((keyword_overlap_score(_text(issue), _text(pr)) for issue in linked_issues), default=0.0)
        explicit = has_explicit_link(pr.body, link_keywords)
        quality = classify_relationship_quality(overlap, explicit, len(linked), config)

        pr.linked_issues = linked
        pr.linked_issue_priority = priority_sum
        pr.relationship_overlap = overlap
        pr.relationship_quality_auto = quality
        pr.relationship_quality_final = quality
        pr.relationship_score = compute_relationship_score(overlap, explicit, len(linked), len(pr.relations.mentioned_by), priority_sum, config)

        pr.implementation_score_auto = compute_implementation_score(pr, reaction_sum, sentiment_sum, config)
        pr.implementation_score_final = pr.implementation_score_auto
        pr.implementation_tier_auto = tier_from_score(pr.implementation_score_auto, config)
        pr.implementation_tier_final = pr.implementation_tier_auto

    logger.debug("enriched %d pull requests against %d issues", len(prs), len(issues))
