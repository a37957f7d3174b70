from correlate.graph import build_graph, node_id
from correlate.linker import build_mentioned_by_relations
from normalize.models import Issue, PullRequest, Relations


def test_node_id_resolves_kind():
    assert node_id(3, {3}) == 'pr:3'
    assert node_id(4, {3}) == 'issue:4'


def test_build_graph():
    issue = Issue(1, 'Exporter crash', '', '', '', '', 'alice', relations=Relations(possible_duplicates=[5]))
    dup = Issue(5, 'Exporter crashes', '', '', '', '', 'bob')
    pr = PullRequest(2, 'Fix exporter', '', '', '', '', 'alice', relations=Relations(mentions=[1, 3]))
    other = PullRequest(3, 'Refactor exporter', '', '', '', '', 'carol')
    pr.implementation_score_auto = 10
    pr.implementation_score_final = 14
    build_mentioned_by_relations([issue, dup], [pr, other])

    graph = build_graph([issue, dup], [pr, other])

    assert [n['id'] for n in graph['nodes']] == ['issue:1', 'issue:5', 'pr:2', 'pr:3']
    assert graph['nodes'][2]['implementationScore'] == 14
    assert 'implementationScore' not in graph['nodes'][0]
    assert graph['edges'] == [
        {'from': 'pr:2', 'to': 'issue:1', 'type': 'mentioned_by'},
        {'from': 'issue:1', 'to': 'issue:5', 'type': 'possible_duplicate'},
        {'from': 'pr:2', 'to': 'issue:1', 'type': 'mentions'},
        {'from': 'pr:2', 'to': 'pr:3', 'type': 'mentions'},
        {'from': 'pr:2', 'to': 'pr:3', 'type': 'mentioned_by'},
    ]
