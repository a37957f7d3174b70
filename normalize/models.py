"""
Unified data models for normalized issues, pull requests and contributors.
"""

from typing import List, Optional, Dict, Any, Set

ReactionCounts = Dict[str, int]


class Comment:
    """
    Normalized issue/PR comment. index is 1-based in chronological order.
    """
    def __init__(self, index: int, url: str, body: Optional[str], created_at: str, author: str, author_association: Optional[str] = None, reactions: Optional[ReactionCounts] = None):
        self.index = index
        self.url = url
        self.body = body
        self.created_at = created_at
        self.author = author
        self.author_association = author_association
        self.reactions = reactions or {}

    def to_dict(self) -> Dict[str, Any]:
        return {
            'index': self.index,
            'url': self.url,
            'body': self.body,
            'createdAt': self.created_at,
            'author': self.author,
            'authorAssociation': self.author_association,
            'reactions': dict(self.reactions),
        }


class Review:
    """
    Normalized pull request review.
    """
    def __init__(self, index: int, url: str, body: Optional[str], state: str, submitted_at: str, author: str, author_association: Optional[str] = None, reactions: Optional[ReactionCounts] = None):
        self.index = index
        self.url = url
        self.body = body
        self.state = state  # APPROVED, CHANGES_REQUESTED, COMMENTED, ...
        self.submitted_at = submitted_at
        self.author = author
        self.author_association = author_association
        self.reactions = reactions or {}

    def to_dict(self) -> Dict[str, Any]:
        return {
            'index': self.index,
            'url': self.url,
            'body': self.body,
            'state': self.state,
            'submittedAt': self.submitted_at,
            'author': self.author,
            'authorAssociation': self.author_association,
            'reactions': dict(self.reactions),
        }


class ReviewComment(Comment):
    """
    Comment inside a review thread. index is global across all threads of the PR.
    """
    def __init__(self, index: int, url: str, body: Optional[str], created_at: str, author: str, thread_index: int, thread_resolved: bool, path: Optional[str] = None, position: Optional[int] = None, author_association: Optional[str] = None, reactions: Optional[ReactionCounts] = None):
        super().__init__(index, url, body, created_at, author, author_association, reactions)
        self.thread_index = thread_index
        self.thread_resolved = thread_resolved
        self.path = path
        self.position = position

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update({
            'threadIndex': self.thread_index,
            'threadResolved': self.thread_resolved,
            'path': self.path,
            'position': self.position,
        })
        return data


class PrFile:
    def __init__(self, path: str, additions: int = 0, deletions: int = 0):
        self.path = path
        self.additions = additions
        self.deletions = deletions

    def to_dict(self) -> Dict[str, Any]:
        return {'path': self.path, 'additions': self.additions, 'deletions': self.deletions}


class Relations:
    """
    Relation set of an issue or PR: outgoing #mentions, incoming mentions and duplicate candidates.
    """
    def __init__(self, mentions: Optional[List[int]] = None, mentioned_by: Optional[List[int]] = None, possible_duplicates: Optional[List[int]] = None):
        self.mentions = mentions or []
        self.mentioned_by = mentioned_by or []
        self.possible_duplicates = possible_duplicates or []

    def to_dict(self) -> Dict[str, Any]:
        return {
            'mentions': list(self.mentions),
            'mentionedBy': list(self.mentioned_by),
            'possibleDuplicates': list(self.possible_duplicates),
        }


class Issue:
    """
    Normalized issue entity. Score fields start zeroed and are filled by scoring.metrics.
    """
    kind = 'issue'

    def __init__(self, number: int, title: str, body: Optional[str], url: str, created_at: str, updated_at: str, author: str, labels: Optional[List[str]] = None, assignees: Optional[List[str]] = None, comments_total: int = 0, comments: Optional[List[Comment]] = None, reaction_totals: Optional[ReactionCounts] = None, sentiment_score: int = 0, participants: Optional[List[str]] = None, age_in_days: int = 0, days_since_update: int = 0, item_type: str = 'unknown', relations: Optional[Relations] = None):
        self.number = number
        self.title = title
        self.body = body
        self.url = url
        self.created_at = created_at
        self.updated_at = updated_at
        self.author = author
        self.labels = labels or []
        self.assignees = assignees or []
        self.comments_total = comments_total
        self.comments = comments or []
        self.reaction_totals = reaction_totals or {}
        self.sentiment_score = sentiment_score
        self.participants = participants or []
        self.age_in_days = age_in_days
        self.days_since_update = days_since_update
        self.item_type = item_type
        self.relations = relations or Relations()
        self.priority_score = 0
        self.actionability = 'ready'
        self.needs_info_score = 0
        self.needs_info_signals: List[str] = []

    def to_dict(self) -> Dict[str, Any]:
        return {
            'number': self.number,
            'title': self.title,
            'body': self.body,
            'url': self.url,
            'createdAt': self.created_at,
            'updatedAt': self.updated_at,
            'author': self.author,
            'labels': list(self.labels),
            'assignees': list(self.assignees),
            'commentsTotal': self.comments_total,
            'comments': [c.to_dict() for c in self.comments],
            'reactionTotals': dict(self.reaction_totals),
            'sentimentScore': self.sentiment_score,
            'participants': list(self.participants),
            'ageInDays': self.age_in_days,
            'daysSinceUpdate': self.days_since_update,
            'priorityScore': self.priority_score,
            'actionability': self.actionability,
            'needsInfoScore': self.needs_info_score,
            'needsInfoSignals': list(self.needs_info_signals),
            'relations': self.relations.to_dict(),
            'itemType': self.item_type,
        }


class PullRequest:
    """
    Normalized pull request entity.
    The agent_* triple is human-controlled and only ever set from a persisted note.
    """
    kind = 'pr'

    def __init__(self, number: int, title: str, body: Optional[str], url: str, created_at: str, updated_at: str, author: str, is_draft: bool = False, labels: Optional[List[str]] = None, assignees: Optional[List[str]] = None, comments_total: int = 0, comments: Optional[List[Comment]] = None, reaction_totals: Optional[ReactionCounts] = None, sentiment_score: int = 0, reviews_total: int = 0, reviews: Optional[List[Review]] = None, review_comments_total: int = 0, review_comments: Optional[List[ReviewComment]] = None, files_total: int = 0, files: Optional[List[PrFile]] = None, lines_changed: int = 0, status_check_state: Optional[str] = None, participants: Optional[List[str]] = None, age_in_days: int = 0, days_since_update: int = 0, has_approval: bool = False, has_changes_requested: bool = False, unresolved_threads: int = 0, touches_tests: bool = False, relations: Optional[Relations] = None):
        self.number = number
        self.title = title
        self.body = body
        self.url = url
        self.created_at = created_at
        self.updated_at = updated_at
        self.is_draft = is_draft
        self.author = author
        self.labels = labels or []
        self.assignees = assignees or []
        self.comments_total = comments_total
        self.comments = comments or []
        self.reaction_totals = reaction_totals or {}
        self.sentiment_score = sentiment_score
        self.reviews_total = reviews_total
        self.reviews = reviews or []
        self.review_comments_total = review_comments_total
        self.review_comments = review_comments or []
        self.files_total = files_total
        self.files = files or []
        self.lines_changed = lines_changed
        self.status_check_state = status_check_state
        self.participants = participants or []
        self.age_in_days = age_in_days
        self.days_since_update = days_since_update
        self.has_approval = has_approval
        self.has_changes_requested = has_changes_requested
        self.unresolved_threads = unresolved_threads
        self.touches_tests = touches_tests
        self.relations = relations or Relations()
        self.priority_score = 0
        self.actionability = 'needs-analysis'
        self.needs_info_score = 0
        self.needs_info_signals: List[str] = []
        self.linked_issues: List[int] = []
        self.linked_issue_priority = 0
        self.relationship_score = 0
        self.relationship_overlap = 0.0
        self.relationship_quality_auto = 'none'
        self.relationship_quality_final = 'none'
        self.implementation_score_auto = 0
        self.implementation_score_final = 0
        self.implementation_tier_auto = 'weak'
        self.implementation_tier_final = 'weak'
        self.agent_score = 0
        self.agent_confidence = 'unset'
        self.agent_rationale = ''

    def to_dict(self) -> Dict[str, Any]:
        return {
            'number': self.number,
            'title': self.title,
            'body': self.body,
            'url': self.url,
            'createdAt': self.created_at,
            'updatedAt': self.updated_at,
            'isDraft': self.is_draft,
            'author': self.author,
            'labels': list(self.labels),
            'assignees': list(self.assignees),
            'commentsTotal': self.comments_total,
            'comments': [c.to_dict() for c in self.comments],
            'reactionTotals': dict(self.reaction_totals),
            'sentimentScore': self.sentiment_score,
            'reviewsTotal': self.reviews_total,
            'reviews': [r.to_dict() for r in self.reviews],
            'reviewCommentsTotal': self.review_comments_total,
            'reviewComments': [c.to_dict() for c in self.review_comments],
            'filesTotal': self.files_total,
            'files': [f.to_dict() for f in self.files],
            'linesChanged': self.lines_changed,
            'statusCheckState': self.status_check_state,
            'participants': list(self.participants),
            'ageInDays': self.age_in_days,
            'daysSinceUpdate': self.days_since_update,
            'priorityScore': self.priority_score,
            'actionability': self.actionability,
            'needsInfoScore': self.needs_info_score,
            'needsInfoSignals': list(self.needs_info_signals),
            'relations': self.relations.to_dict(),
            'hasApproval': self.has_approval,
            'hasChangesRequested': self.has_changes_requested,
            'unresolvedThreads': self.unresolved_threads,
            'linkedIssues': list(self.linked_issues),
            'linkedIssuePriority': self.linked_issue_priority,
            'relationshipScore': self.relationship_score,
            'relationshipOverlap': self.relationship_overlap,
            'relationshipQualityAuto': self.relationship_quality_auto,
            'relationshipQualityFinal': self.relationship_quality_final,
            'touchesTests': self.touches_tests,
            'implementationScoreAuto': self.implementation_score_auto,
            'implementationScoreFinal': self.implementation_score_final,
            'implementationTierAuto': self.implementation_tier_auto,
            'implementationTierFinal': self.implementation_tier_final,
            'agentScore': self.agent_score,
            'agentConfidence': self.agent_confidence,
            'agentRationale': self.agent_rationale,
        }


class ContributorProfile:
    """
    Per-login activity projection. is_first_time holds iff authored issues + PRs <= 1.
    """
    def __init__(self, login: str):
        self.login = login
        self.issues_opened: List[int] = []
        self.prs_opened: List[int] = []
        self.comments_on: List[int] = []
        self.first_seen = ''
        self.last_seen = ''
        self.is_first_time = True
        self.association_types: Set[str] = set()

    def to_dict(self) -> Dict[str, Any]:
        return {
            'login': self.login,
            'issuesOpened': list(self.issues_opened),
            'prsOpened': list(self.prs_opened),
            'commentsOn': list(self.comments_on),
            'firstSeen': self.first_seen,
            'lastSeen': self.last_seen,
            'isFirstTime': self.is_first_time,
            'associationTypes': sorted(self.association_types),
        }
