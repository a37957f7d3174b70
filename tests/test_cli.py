import json

import pytest

from cli import _extract_records, main


def test_extract_records_shapes():
    assert _extract_records([{'number': 1}], 'issues') == [{'number': 1}]
    assert _extract_records({'issues': [{'number': 1}]}, 'issues') == [{'number': 1}]
    assert _extract_records({'nodes': []}, 'issues') == []
    assert _extract_records({'other': 1}, 'issues') is None


def test_cli_end_to_end(tmp_path, capsys, make_raw_issue, make_raw_pr):
    issues_file = tmp_path / 'issues.json'
    issues_file.write_text(json.dumps({'issues': [make_raw_issue(1, title='Crash when exporting reports')]}), encoding='utf-8')
    prs_file = tmp_path / 'prs.json'
    prs_file.write_text(json.dumps([make_raw_pr(2, body='Fixes #1')]), encoding='utf-8')

    code = main([
        '--issues', str(issues_file),
        '--prs', str(prs_file),
        '--repo-root', str(tmp_path),
        '--datetime', '2026-03-01T00:00:00Z',
        '--now', '2026-03-01T00:00:00Z',
        '--delta',
    ])

    out = capsys.readouterr().out
    assert code == 0
    assert 'Report generated' in out
    assert '1 issues' in out
    assert 'Warning: Config not found' in out
    assert (tmp_path / 'reports' / '2026-03-01T00-00-00' / 'data' / 'prs.json').exists()


def test_cli_bad_input_file(tmp_path, capsys):
    bad = tmp_path / 'issues.json'
    bad.write_text('{broken', encoding='utf-8')
    assert main(['--issues', str(bad), '--repo-root', str(tmp_path)]) == 1
    assert 'Failed to read issues file' in capsys.readouterr().out


def test_cli_requires_an_input():
    with pytest.raises(SystemExit):
        main([])
