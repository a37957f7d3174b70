import json
import unittest

from normalize.models import Issue, PullRequest
from storage.state import (
    compute_delta,
    compute_delta_from_previous_report,
    compute_delta_from_state,
    create_item_hash,
    create_state,
    find_latest_report_dir,
    hash_fields,
    read_state,
    write_state,
)


def _issue(number, title='Crash', updated_at='2026-02-01T00:00:00Z', comments_total=0, body=''):
    return Issue(number, title, body, '', '', updated_at, 'alice', comments_total=comments_total)


class TestHash(unittest.TestCase):
    def test_known_value(self):
        self.assertEqual(hash_fields('a', 0, 'b'), '590097b')

    def test_only_hashed_fields_matter(self):
        a = _issue(1, body='one body')
        b = _issue(1, body='another body')
        b.labels = ['bug']
        self.assertEqual(create_item_hash(a), create_item_hash(b))
        self.assertNotEqual(create_item_hash(a), create_item_hash(_issue(1, title='Crash!')))
        self.assertNotEqual(create_item_hash(a), create_item_hash(_issue(1, comments_total=1)))

    def test_non_ascii_title(self):
        self.assertEqual(hash_fields('t', 1, 'café ✓'), hash_fields('t', 1, 'café ✓'))
        self.assertNotEqual(hash_fields('t', 1, 'café'), hash_fields('t', 1, 'cafe'))


class TestDelta(unittest.TestCase):
    def test_new_updated_closed(self):
        delta = compute_delta({'1': 'a', '2': 'b'}, {}, {1: 'a', 3: 'c'}, {})
        self.assertEqual(delta.new_issues, [3])
        self.assertEqual(delta.updated_issues, [])
        self.assertEqual(delta.closed_issues, [2])

    def test_changed_hash_is_updated(self):
        delta = compute_delta({}, {'4': 'x'}, {}, {4: 'y'})
        self.assertEqual(delta.updated_prs, [4])
        self.assertEqual(delta.to_dict()['newPrs'], [])

    def test_from_state(self):
        issues = [_issue(1), _issue(2)]
        state = create_state('reports/r1', issues, [], run_at='2026-02-01T00:00:00Z')
        issues[1].comments_total = 4
        delta = compute_delta_from_state(issues + [_issue(3)], [], state)
        self.assertEqual(delta.new_issues, [3])
        self.assertEqual(delta.updated_issues, [2])
        self.assertEqual(delta.closed_issues, [])


def test_state_round_trip(tmp_path):
    path = tmp_path / 'maintainer' / 'state.json'
    state = create_state('reports/r1', [_issue(1)], [], run_at='2026-02-01T00:00:00Z')
    write_state(str(path), state)
    assert read_state(str(path)) == state
    assert state['issueHashes'] == {'1': create_item_hash(_issue(1))}
    assert state['schemaVersion'] == 1


def test_unusable_state_is_ignored(tmp_path):
    assert read_state(str(tmp_path / 'missing.json')) is None
    bad = tmp_path / 'bad.json'
    bad.write_text('{not json', encoding='utf-8')
    assert read_state(str(bad)) is None
    partial = tmp_path / 'partial.json'
    partial.write_text(json.dumps({'issueHashes': {}}), encoding='utf-8')
    assert read_state(str(partial)) is None


def test_unusable_state_warnings_are_collected(tmp_path):
    bad = tmp_path / 'state.json'
    bad.write_text('[1, 2]', encoding='utf-8')
    warnings = []
    assert read_state(str(bad), warnings) is None
    assert len(warnings) == 1
    assert 'malformed state file' in warnings[0]
    assert read_state(str(tmp_path / 'missing.json'), warnings) is None
    assert len(warnings) == 1


def test_delta_from_previous_report(tmp_path):
    data = tmp_path / 'data'
    data.mkdir()
    (data / 'issues.json').write_text(json.dumps({'issues': [
        {'number': 1, 'updatedAt': '2026-02-01T00:00:00Z'},
        {'number': 2, 'updatedAt': '2026-02-01T00:00:00Z'},
    ]}), encoding='utf-8')
    (data / 'prs.json').write_text(json.dumps({'pullRequests': [{'number': 9, 'updatedAt': 'x'}]}), encoding='utf-8')

    issues = [_issue(1), _issue(3, updated_at='2026-02-05T00:00:00Z')]
    prs = [PullRequest(9, 'Fix', '', '', '', 'y', 'alice')]
    delta = compute_delta_from_previous_report(issues, prs, str(data))

    assert delta.new_issues == [3]
    assert delta.updated_issues == []
    assert delta.closed_issues == [2]
    assert delta.updated_prs == [9]


def test_previous_report_missing_dumps(tmp_path):
    assert compute_delta_from_previous_report([], [], str(tmp_path)) is None


def test_find_latest_report_dir(tmp_path):
    assert find_latest_report_dir(str(tmp_path / 'none')) is None
    (tmp_path / '2026-01-01T00-00-00').mkdir()
    (tmp_path / '2026-02-01T00-00-00').mkdir()
    (tmp_path / 'LATEST').write_text('x', encoding='utf-8')
    assert find_latest_report_dir(str(tmp_path)) == '2026-02-01T00-00-00'


if __name__ == '__main__':
    unittest.main()
