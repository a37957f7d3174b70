import unittest

from normalize.models import Comment, Issue, PullRequest
from normalize.util import normalize_issues
from scoring.metrics import (
    classify_issue_actionability,
    classify_pr_actionability,
    compute_implementation_score,
    compute_issue_needs_info,
    compute_issue_priority,
    compute_pr_needs_info,
    compute_pr_priority,
    tier_from_score,
)
from settings.resolver import get_default_config, merge_config


def _issue(**kwargs):
    fields = dict(number=1, title='Title', body='', url='', created_at='', updated_at='', author='alice')
    fields.update(kwargs)
    return Issue(**fields)


def _pr(**kwargs):
    fields = dict(number=2, title='Change', body='Has a test plan', url='', created_at='', updated_at='', author='alice')
    fields.update(kwargs)
    return PullRequest(**fields)


class TestPriority(unittest.TestCase):
    def setUp(self):
        self.config = get_default_config()

    def test_issue_priority(self):
        issue = _issue(comments_total=3, reaction_totals={'THUMBS_UP': 2, 'HEART': 1}, item_type='bug',
                       days_since_update=3, age_in_days=40, labels=['Security'])
        self.assertEqual(compute_issue_priority(issue, self.config), 69)

    def test_issue_priority_floored_at_zero(self):
        issue = _issue(item_type='feature', days_since_update=61, age_in_days=100)
        self.assertEqual(compute_issue_priority(issue, self.config), 0)

    def test_pr_priority(self):
        pr = _pr(comments_total=1, reviews_total=2, has_approval=True, status_check_state='SUCCESS',
                 unresolved_threads=1, days_since_update=20)
        self.assertEqual(compute_pr_priority(pr, self.config), 12)


class TestNeedsInfo(unittest.TestCase):
    def setUp(self):
        self.config = get_default_config()

    def test_signals_not_applicable_to_type(self):
        self.assertEqual(compute_issue_needs_info(_issue(item_type='feature'), self.config), (0, []))

    def test_disabled(self):
        config = merge_config({'heuristics': {'needsInfo': {'enabled': False}}})
        self.assertEqual(compute_issue_needs_info(_issue(item_type='bug'), config), (0, []))

    def test_version_number_counts_as_version(self):
        issue = _issue(item_type='question', body='Running 1.4.2 on linux')
        self.assertEqual(compute_issue_needs_info(issue, self.config), (0, []))

    def test_pr_signals(self):
        score, signals = compute_pr_needs_info(_pr(title='Add feature', body=''), self.config)
        self.assertEqual(signals, ['missing-description', 'missing-test-plan'])
        self.assertEqual(score, 2)


def test_bare_bug_report_needs_info(make_raw_issue, as_of):
    raw = make_raw_issue(1, title='Bug: error when starting', body='it crashes')
    issue = normalize_issues([raw], as_of, get_default_config())[0]
    assert issue.item_type == 'bug'
    assert issue.needs_info_signals == [
        'missing-repro', 'missing-expected-actual', 'missing-environment', 'missing-version', 'missing-logs',
    ]
    assert issue.needs_info_score == 6
    assert issue.actionability == 'needs-info'


def test_blocked_label_wins(make_raw_issue, as_of):
    raw = make_raw_issue(1, title='Bug: error when starting', body='it crashes', labels=['Blocked'])
    issue = normalize_issues([raw], as_of, get_default_config())[0]
    assert issue.actionability == 'blocked'


class TestActionability(unittest.TestCase):
    def setUp(self):
        self.config = get_default_config()

    def test_stale(self):
        self.assertEqual(classify_issue_actionability(_issue(days_since_update=61), self.config), 'stale')

    def test_open_question_to_author(self):
        issue = _issue(comments=[Comment(1, '', 'Can you share logs?', '2026-02-01T00:00:00Z', 'maint')])
        self.assertEqual(classify_issue_actionability(issue, self.config), 'needs-info')

    def test_closing_phrase(self):
        issue = _issue(comments=[Comment(1, '', 'Fixed in 1.2.0?', '2026-02-01T00:00:00Z', 'alice')])
        self.assertEqual(classify_issue_actionability(issue, self.config), 'closable')

    def test_ready(self):
        self.assertEqual(classify_issue_actionability(_issue(), self.config), 'ready')

    def test_pr_states(self):
        self.assertEqual(classify_pr_actionability(_pr(), self.config), 'needs-analysis')
        self.assertEqual(classify_pr_actionability(_pr(labels=['needs-decision']), self.config), 'needs-decision')
        self.assertEqual(classify_pr_actionability(_pr(days_since_update=31), self.config), 'stale')


class TestImplementationScore(unittest.TestCase):
    def setUp(self):
        self.config = get_default_config()

    def test_floor(self):
        self.assertEqual(compute_implementation_score(_pr(), 0, 0, self.config), 0)

    def test_weighted_sum(self):
        pr = _pr(comments_total=4, reviews_total=2, review_comments_total=3, reaction_totals={'THUMBS_UP': 1},
                 touches_tests=True, status_check_state='SUCCESS', files_total=1, lines_changed=10)
        pr.linked_issue_priority = 20
        pr.relationship_score = 10
        pr.relationship_quality_auto = 'strong'
        self.assertEqual(compute_implementation_score(pr, 4, 1, self.config), 48)

    def test_only_highest_penalty_applies(self):
        config = merge_config({'implementation': {'scoreFloor': -100}})
        pr = _pr(days_since_update=45, files_total=30, lines_changed=600)
        pr.relationship_quality_auto = 'weak'
        self.assertEqual(compute_implementation_score(pr, 0, 0, config), -22)

    def test_tier_thresholds_are_inclusive(self):
        self.assertEqual(tier_from_score(19, self.config), 'weak')
        self.assertEqual(tier_from_score(20, self.config), 'medium')
        self.assertEqual(tier_from_score(39.5, self.config), 'medium')
        self.assertEqual(tier_from_score(40, self.config), 'strong')


if __name__ == '__main__':
    unittest.main()
