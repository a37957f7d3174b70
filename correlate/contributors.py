"""
Contributor profiles aggregated from normalized issues and pull requests (read-only projection).
"""
from typing import Dict, List

from normalize.models import ContributorProfile


def _seen(profile: ContributorProfile, timestamp: str, extend_last: bool = True):
    if not timestamp:
        return
    if not profile.first_seen or timestamp < profile.first_seen:
        profile.first_seen = timestamp
    if extend_last and (not profile.last_seen or timestamp > profile.last_seen):
        profile.last_seen = timestamp


def build_contributor_profiles(issues: List, prs: List) -> Dict[str, ContributorProfile]:
    """
    Return login -> ContributorProfile, in first-seen insertion order.
    Issue and PR authorship plus issue comments move first/last seen; PR comments and reviews only
    record participation and association types.
    """
    profiles: Dict[str, ContributorProfile] = {}

    def get_or_create(login: str) -> ContributorProfile:
        if login not in profiles:
            profiles[login] = ContributorProfile(login)
        return profiles[login]

    for issue in issues:
        profile = get_or_create(issue.author)
        profile.issues_opened.append(issue.number)
        _seen(profile, issue.created_at)
        for comment in issue.comments:
            commenter = get_or_create(comment.author)
            if issue.number not in commenter.comments_on:
                commenter.comments_on.append(issue.number)
            if comment.author_association:
                commenter.association_types.add(comment.author_association)
            _seen(commenter, comment.created_at)

    for pr in prs:
        profile = get_or_create(pr.author)
        profile.prs_opened.append(pr.number)
        _seen(profile, pr.created_at)
        for comment in pr.comments:
            commenter = get_or_create(comment.author)
            if pr.number not in commenter.comments_on:
                commenter.comments_on.append(pr.number)
            if comment.author_association:
                commenter.association_types.add(comment.author_association)
        for review in pr.reviews:
            reviewer = get_or_create(review.author)
            if review.author_association:
                reviewer.association_types.add(review.author_association)

    for profile in profiles.values():
        profile.is_first_time = len(profile.issues_opened) + len(profile.prs_opened) <= 1
    return profiles
