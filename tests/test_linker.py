import unittest

from correlate.linker import (
    build_mentioned_by_relations,
    classify_relationship_quality,
    compute_relationship_score,
    enrich_pull_requests_with_issue_signals,
)
from normalize.models import Issue, PullRequest, Relations
from normalize.util import normalize_issues, normalize_pull_requests
from scoring.metrics import tier_from_score
from settings.resolver import get_default_config, merge_config


def _issue(number, mentions):
    return Issue(number, f'Issue {number}', '', '', '', '', 'alice', relations=Relations(mentions=mentions))


def _pr(number, mentions):
    return PullRequest(number, f'PR {number}', '', '', '', '', 'alice', relations=Relations(mentions=mentions))


class TestMentionedBy(unittest.TestCase):
    def test_incoming_mentions(self):
        issues = [_issue(1, [2, 10]), _issue(2, [])]
        prs = [_pr(10, [1]), _pr(11, [10, 1, 99])]
        issue_incoming, pr_incoming = build_mentioned_by_relations(issues, prs)

        self.assertEqual(issues[0].relations.mentioned_by, [10, 11])
        self.assertEqual(issues[1].relations.mentioned_by, [1])
        self.assertEqual(prs[0].relations.mentioned_by, [1, 11])
        self.assertEqual(prs[1].relations.mentioned_by, [])
        self.assertEqual(issue_incoming, {1: [10, 11], 2: [1]})
        self.assertEqual(pr_incoming, {10: [1, 11]})

    def test_rerun_replaces_lists(self):
        issues = [_issue(1, []), _issue(2, [1])]
        build_mentioned_by_relations(issues, [])
        build_mentioned_by_relations(issues, [])
        self.assertEqual(issues[0].relations.mentioned_by, [2])


class TestRelationshipQuality(unittest.TestCase):
    def setUp(self):
        self.config = get_default_config()

    def test_no_links_is_none(self):
        self.assertEqual(classify_relationship_quality(0.9, True, 0, self.config), 'none')

    def test_levels(self):
        self.assertEqual(classify_relationship_quality(0.0, True, 1, self.config), 'strong')
        self.assertEqual(classify_relationship_quality(0.5, False, 1, self.config), 'strong')
        self.assertEqual(classify_relationship_quality(0.2, False, 1, self.config), 'medium')
        self.assertEqual(classify_relationship_quality(0.1, False, 1, self.config), 'medium')

    def test_default_when_linked(self):
        config = merge_config({'heuristics': {'relationshipQuality': {'defaultWhenLinked': 'weak'}}})
        self.assertEqual(classify_relationship_quality(0.1, False, 1, config), 'weak')

    def test_relationship_score(self):
        self.assertEqual(compute_relationship_score(0.5, True, 1, 2, 20, self.config), 32)


def test_enrich_links_prs_to_issues(make_raw_issue, make_raw_pr, as_of):
    config = get_default_config()
    issues = normalize_issues([
        make_raw_issue(1, title='Crash when exporting reports', body='Exporting large reports crashes the exporter'),
    ], as_of, config)
    prs = normalize_pull_requests([
        make_raw_pr(2, title='Stream report exporting', body='Fixes #1 by streaming the exporter output'),
        make_raw_pr(3, title='Tidy docs', body='Refresh the readme'),
    ], as_of, config)
    build_mentioned_by_relations(issues, prs)
    enrich_pull_requests_with_issue_signals(prs, issues, config)

    linked, unlinked = prs
    assert issues[0].relations.mentioned_by == [2]
    assert linked.linked_issues == [1]
    assert linked.linked_issue_priority == issues[0].priority_score
    assert linked.relationship_quality_auto == 'strong'
    assert linked.relationship_quality_final == 'strong'
    assert linked.relationship_overlap > 0
    assert linked.implementation_score_final == linked.implementation_score_auto
    assert linked.implementation_tier_auto == tier_from_score(linked.implementation_score_auto, config)

    assert unlinked.linked_issues == []
    assert unlinked.relationship_quality_auto == 'none'
    assert unlinked.relationship_score == 0


if __name__ == '__main__':
    unittest.main()
