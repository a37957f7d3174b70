"""
Normalization utility helpers.
Turns raw GraphQL-shaped issue / pull request records into normalize.models entities and scores them.

Raw records are read tolerantly: connections may be `{"nodes": [...]}` or plain lists, reaction groups may be
`{"content", "users": {"totalCount"}}` or `{"kind", "count"}`, and a missing author resolves to "unknown".
"""
import logging
from typing import Any, Dict, Iterable, List, Optional

from normalize.models import Comment, Issue, PrFile, PullRequest, ReactionCounts, Relations, Review, ReviewComment
from normalize.text import aggregate_sentiment, days_between, extract_mentions, timestamp_sort_key
from correlate.duplicates import find_possible_duplicates
from scoring.metrics import (
    classify_issue_actionability,
    classify_pr_actionability,
    compute_issue_needs_info,
    compute_issue_priority,
    compute_pr_needs_info,
    compute_pr_priority,
)

logger = logging.getLogger(__name__)

UNKNOWN_AUTHOR = 'unknown'

TEST_PATH_MARKERS = ('test', '__tests__', 'spec')
TEST_PATH_SUFFIXES = ('.test.ts', '.test.js', '.spec.ts', '.spec.js')

# title / body markers checked together with type labels, before free-text intent phrases
_TYPE_MARKERS = [
    ('bug', lambda title, body: '[bug]' in title or 'bug:' in title),
    ('feature', lambda title, body: '[feature]' in title or 'feat:' in title),
    ('question', lambda title, body: '[question]' in title or '?' in title),
    ('support', lambda title, body: 'help' in title or 'how do i' in body or 'how can i' in body),
    ('meta', lambda title, body: 'contributor' in title or 'maintainer' in title or 'roadmap' in title),
]


def _nodes(connection: Any) -> List[Dict[str, Any]]:
    """Return the node list of a GraphQL connection (or a plain list); None becomes []."""
    if connection is None:
        return []
    if isinstance(connection, list):
        return [n for n in connection if n is not None]
    if isinstance(connection, dict):
        return [n for n in (connection.get('nodes') or []) if n is not None]
    return []


def _total_count(connection: Any) -> int:
    if isinstance(connection, dict) and connection.get('totalCount') is not None:
        return int(connection['totalCount'])
    return len(_nodes(connection))


def _login(author: Any) -> str:
    if isinstance(author, dict):
        return author.get('login') or UNKNOWN_AUTHOR
    return author or UNKNOWN_AUTHOR


def _names(connection: Any, key: str) -> List[str]:
    names = []
    for node in _nodes(connection):
        value = node.get(key) if isinstance(node, dict) else node
        if value:
            names.append(str(value))
    return names


def normalize_reactions(groups: Optional[Iterable[Dict[str, Any]]]) -> ReactionCounts:
    """Map reaction groups to {kind: count}; kinds with a zero count are omitted."""
    counts: ReactionCounts = {}
    for group in groups or []:
        if not group:
            continue
        kind = group.get('content') or group.get('kind')
        if 'users' in group:
            total = (group.get('users') or {}).get('totalCount') or 0
        else:
            total = group.get('count') or 0
        if kind and total > 0:
            counts[kind] = counts.get(kind, 0) + int(total)
    return counts


def merge_reaction_counts(target: ReactionCounts, source: ReactionCounts) -> ReactionCounts:
    for kind, value in source.items():
        target[kind] = target.get(kind, 0) + value
    return target


def normalize_comments(raw_comments: Iterable[Dict[str, Any]]) -> List[Comment]:
    ordered = sorted(raw_comments, key=lambda c: timestamp_sort_key(c.get('createdAt')))
    return [
        Comment(
            index=i + 1,
            url=c.get('url') or '',
            body=c.get('body'),
            created_at=c.get('createdAt') or '',
            author=_login(c.get('author')),
            author_association=c.get('authorAssociation'),
            reactions=normalize_reactions(c.get('reactionGroups')),
        )
        for i, c in enumerate(ordered)
    ]


def normalize_reviews(raw_reviews: Iterable[Dict[str, Any]]) -> List[Review]:
    ordered = sorted(raw_reviews, key=lambda r: timestamp_sort_key(r.get('submittedAt')))
    return [
        Review(
            index=i + 1,
            url=r.get('url') or '',
            body=r.get('body'),
            state=r.get('state') or '',
            submitted_at=r.get('submittedAt') or '',
            author=_login(r.get('author')),
            author_association=r.get('authorAssociation'),
            reactions=normalize_reactions(r.get('reactionGroups')),
        )
        for i, r in enumerate(ordered)
    ]


def normalize_review_comments(raw_threads: Iterable[Dict[str, Any]]) -> List[ReviewComment]:
    """Flatten review-thread comments, re-sort them chronologically and re-index them globally."""
    flattened: List[ReviewComment] = []
    for thread_index, thread in enumerate(raw_threads):
        resolved = bool(thread.get('isResolved'))
        for c in sorted(_nodes(thread.get('comments')), key=lambda c: timestamp_sort_key(c.get('createdAt'))):
            flattened.append(ReviewComment(
                index=0,
                url=c.get('url') or '',
                body=c.get('body'),
                created_at=c.get('createdAt') or '',
                author=_login(c.get('author')),
                thread_index=thread_index + 1,
                thread_resolved=resolved,
                path=c.get('path'),
                position=c.get('position'),
                author_association=c.get('authorAssociation'),
                reactions=normalize_reactions(c.get('reactionGroups')),
            ))
    flattened.sort(key=lambda c: timestamp_sort_key(c.created_at))
    for i, comment in enumerate(flattened):
        comment.index = i + 1
    return flattened


def collect_participants(*author_lists: Iterable[str]) -> List[str]:
    participants = set()
    for authors in author_lists:
        participants.update(a for a in authors if a)
    return sorted(participants)


def is_test_path(path: str) -> bool:
    lower = (path or '').lower()
    return any(marker in lower for marker in TEST_PATH_MARKERS) or lower.endswith(TEST_PATH_SUFFIXES)


def classify_issue_type(title: str, body: Optional[str], labels: List[str], config: Dict[str, Any]) -> str:
    """
    First match wins, in the order bug, feature, question, support, meta:
    type labels and title markers are checked for every type before any free-text intent phrase.
    """
    title_lower = (title or '').lower()
    body_lower = (body or '').lower()
    label_set = {label.lower() for label in labels}
    type_labels = config['typeLabels']
    intent = config['semantics']['intent']

    for item_type, marker in _TYPE_MARKERS:
        if any(value in label_set for value in type_labels.get(item_type, [])) or marker(title_lower, body_lower):
            return item_type

    for item_type, _ in _TYPE_MARKERS:
        if any(p and (p in title_lower or p in body_lower) for p in intent.get(item_type, [])):
            return item_type
    return 'unknown'


def _sentiment_lexicon(config: Dict[str, Any]):
    sentiment = config['sentiment']
    return {w.lower() for w in sentiment['positiveWords']}, {w.lower() for w in sentiment['negativeWords']}


def _mention_options(config: Dict[str, Any]):
    keywords = config['semantics']['relationship']['linkKeywords']
    require = bool(config['heuristics'].get('mentions', {}).get('requireLinkKeyword', False))
    return keywords, require


def _collect_mentions(number: int, body: Optional[str], comments: List[Comment], config: Dict[str, Any]) -> List[int]:
    keywords, require = _mention_options(config)
    mentions: List[int] = []
    for text in [body] + [c.body for c in comments]:
        for n in extract_mentions(text, keywords, require):
            if n != number and n not in mentions:
                mentions.append(n)
    return mentions


def _batch_items(raw: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    return [{'number': r['number'], 'title': r.get('title') or '', 'body': r.get('body')} for r in raw]


def normalize_issues(raw_issues: List[Dict[str, Any]], as_of: str, config: Dict[str, Any]) -> List[Issue]:
    """Normalize and score a batch of raw issues. Duplicates are detected within this batch only."""
    batch = _batch_items(raw_issues)
    positive, negative = _sentiment_lexicon(config)
    issues: List[Issue] = []

    for raw in raw_issues:
        number = raw['number']
        title = raw.get('title') or ''
        body = raw.get('body')
        comments = normalize_comments(_nodes(raw.get('comments')))
        reaction_totals: ReactionCounts = {}
        for comment in comments:
            merge_reaction_counts(reaction_totals, comment.reactions)
        author = _login(raw.get('author'))
        labels = _names(raw.get('labels'), 'name')

        issue = Issue(
            number=number,
            title=title,
            body=body,
            url=raw.get('url') or '',
            created_at=raw.get('createdAt') or '',
            updated_at=raw.get('updatedAt') or '',
            author=author,
            labels=labels,
            assignees=_names(raw.get('assignees'), 'login'),
            comments_total=_total_count(raw.get('comments')),
            comments=comments,
            reaction_totals=reaction_totals,
            sentiment_score=aggregate_sentiment([title, body] + [c.body for c in comments], positive, negative),
            participants=collect_participants([author], [c.author for c in comments]),
            age_in_days=days_between(raw.get('createdAt'), as_of),
            days_since_update=days_between(raw.get('updatedAt'), as_of),
            item_type=classify_issue_type(title, body, labels, config),
            relations=Relations(
                mentions=_collect_mentions(number, body, comments, config),
                possible_duplicates=find_possible_duplicates(batch[len(issues)], batch, config),
            ),
        )

        issue.needs_info_score, issue.needs_info_signals = compute_issue_needs_info(issue, config)
        issue.priority_score = compute_issue_priority(issue, config)
        issue.actionability = classify_issue_actionability(issue, config)
        issues.append(issue)

    logger.debug("normalized %d issues", len(issues))
    return issues


def _status_check_state(raw: Dict[str, Any]) -> Optional[str]:
    if raw.get('statusCheckState'):
        return raw['statusCheckState']
    commits = _nodes(raw.get('commits'))
    if not commits:
        return None
    rollup = (commits[0].get('commit') or {}).get('statusCheckRollup') or {}
    return rollup.get('state')


def normalize_pull_requests(raw_prs: List[Dict[str, Any]], as_of: str, config: Dict[str, Any]) -> List[PullRequest]:
    """Normalize and score a batch of raw pull requests. Linked-issue signals are attached later by the linker."""
    batch = _batch_items(raw_prs)
    positive, negative = _sentiment_lexicon(config)
    prs: List[PullRequest] = []

    for raw in raw_prs:
        number = raw['number']
        title = raw.get('title') or ''
        body = raw.get('body')
        comments = normalize_comments(_nodes(raw.get('comments')))
        reviews = normalize_reviews(_nodes(raw.get('reviews')))
        threads = _nodes(raw.get('reviewThreads'))
        review_comments = normalize_review_comments(threads)
        files = [PrFile(f.get('path') or '', int(f.get('additions') or 0), int(f.get('deletions') or 0)) for f in _nodes(raw.get('files'))]

        reaction_totals: ReactionCounts = {}
        for source in (comments, reviews, review_comments):
            for entry in source:
                merge_reaction_counts(reaction_totals, entry.reactions)
        author = _login(raw.get('author'))
        texts = [title, body] + [c.body for c in comments] + [r.body for r in reviews] + [c.body for c in review_comments]

        pr = PullRequest(
            number=number,
            title=title,
            body=body,
            url=raw.get('url') or '',
            created_at=raw.get('createdAt') or '',
            updated_at=raw.get('updatedAt') or '',
            author=author,
            is_draft=bool(raw.get('isDraft')),
            labels=_names(raw.get('labels'), 'name'),
            assignees=_names(raw.get('assignees'), 'login'),
            comments_total=_total_count(raw.get('comments')),
            comments=comments,
            reaction_totals=reaction_totals,
            sentiment_score=aggregate_sentiment(texts, positive, negative),
            reviews_total=_total_count(raw.get('reviews')),
            reviews=reviews,
            review_comments_total=_total_count(raw.get('reviewThreads')),
            review_comments=review_comments,
            files_total=_total_count(raw.get('files')),
            files=files,
            lines_changed=sum(f.additions + f.deletions for f in files),
            status_check_state=_status_check_state(raw),
            participants=collect_participants([author], [c.author for c in comments], [r.author for r in reviews], [c.author for c in review_comments]),
            age_in_days=days_between(raw.get('createdAt'), as_of),
            days_since_update=days_between(raw.get('updatedAt'), as_of),
            has_approval=any(r.state == 'APPROVED' for r in reviews),
            has_changes_requested=any(r.state == 'CHANGES_REQUESTED' for r in reviews),
            unresolved_threads=sum(1 for t in threads if not t.get('isResolved')),
            touches_tests=any(is_test_path(f.path) for f in files),
            relations=Relations(
                mentions=_collect_mentions(number, body, comments, config),
                possible_duplicates=find_possible_duplicates(batch[len(prs)], batch, config),
            ),
        )

        pr.priority_score = compute_pr_priority(pr, config)
        pr.needs_info_score, pr.needs_info_signals = compute_pr_needs_info(pr, config)
        pr.actionability = classify_pr_actionability(pr, config)
        prs.append(pr)

    logger.debug("normalized %d pull requests", len(prs))
    return prs
