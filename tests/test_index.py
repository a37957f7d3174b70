from normalize.models import Issue, PullRequest
from settings.resolver import get_default_config
from storage.index import build_index_from_notes
from storage.notes import read_or_create_note

NOW = '2026-03-01T00:00:00Z'


def test_index_from_notes(tmp_path):
    notes_dir = tmp_path / 'notes'
    config = get_default_config()
    pr = PullRequest(4, 'Fix exporter', 'Fixes #12', '', '', '', 'alice')
    pr.linked_issues = [12]
    pr.implementation_score_auto = 21
    pr.relationship_quality_auto = 'strong'
    issue = Issue(12, 'Exporter crash', '', '', '', '', 'bob', labels=['bug'])
    read_or_create_note(str(notes_dir), pr, NOW, config)
    read_or_create_note(str(notes_dir), issue, NOW, config)
    (notes_dir / 'README.md').write_text('no front matter here\n', encoding='utf-8')

    items = build_index_from_notes(str(notes_dir), {'issue:12': 'Exporter crash'}, relative_to=str(tmp_path))

    assert [(i['type'], i['id']) for i in items] == [('issue', 12), ('pr', 4)]
    issue_item, pr_item = items
    assert issue_item['title'] == 'Exporter crash'
    assert issue_item['labels'] == ['bug']
    assert issue_item['notePath'] == 'notes/issues/000/ISSUE-12.md'
    assert issue_item['implementationScoreAuto'] is None
    assert issue_item['lastSeenAt'] == NOW
    assert pr_item['title'] == ''
    assert pr_item['linkedIssues'] == [12]
    assert pr_item['implementationScoreFinal'] == 21
    assert pr_item['implementationTierAuto'] == 'medium'
    assert pr_item['relationshipQualityFinal'] == 'strong'
    assert pr_item['agentConfidence'] == 'unset'


def test_missing_notes_dir(tmp_path):
    assert build_index_from_notes(str(tmp_path / 'absent')) == []
