"""
Node/edge projection of issue and PR relations for external indexing.
"""
from typing import Any, Dict, List


def node_id(number: int, pr_numbers) -> str:
    """Resolve a referenced number to its node id; numbers not known as PRs are issues."""
    return f"pr:{number}" if number in pr_numbers else f"issue:{number}"


def _edges_for(source_id: str, relations, pr_numbers, duplicate_prefix: str) -> List[Dict[str, str]]:
    edges = [{'from': source_id, 'to': node_id(n, pr_numbers), 'type': 'mentions'} for n in relations.mentions]
    edges.extend({'from': node_id(n, pr_numbers), 'to': source_id, 'type': 'mentioned_by'} for n in relations.mentioned_by)
    # duplicates are only ever detected within the same kind
    edges.extend({'from': source_id, 'to': f"{duplicate_prefix}:{n}", 'type': 'possible_duplicate'} for n in relations.possible_duplicates)
    return edges


def build_graph(issues: List, prs: List) -> Dict[str, Any]:
    """Return {'nodes': [...], 'edges': [...]}; issues first, then PRs, each in input order."""
    pr_numbers = {pr.number for pr in prs}
    nodes: List[Dict[str, Any]] = []
    edges: List[Dict[str, str]] = []

    for issue in issues:
        source = f"issue:{issue.number}"
        nodes.append({
            'id': source,
            'type': 'issue',
            'title': issue.title,
            'priorityScore': issue.priority_score,
            'actionability': issue.actionability,
        })
        edges.extend(_edges_for(source, issue.relations, pr_numbers, 'issue'))

    for pr in prs:
        source = f"pr:{pr.number}"
        nodes.append({
            'id': source,
            'type': 'pr',
            'title': pr.title,
            'priorityScore': pr.priority_score,
            'implementationScore': pr.implementation_score_final,
            'actionability': pr.actionability,
        })
        edges.extend(_edges_for(source, pr.relations, pr_numbers, 'pr'))

    return {'nodes': nodes, 'edges': edges}
