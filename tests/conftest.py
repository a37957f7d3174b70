import sys
import os

import pytest

# Add project root to sys.path so tests can import top-level modules like 'storage', 'scoring', 'normalize', etc.
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

AS_OF = '2026-03-01T00:00:00Z'


def _comment(body, author='bob', created_at='2026-02-20T00:00:00Z', association='NONE', reactions=None):
    return {
        'url': 'https://example.test/c',
        'body': body,
        'createdAt': created_at,
        'author': {'login': author},
        'authorAssociation': association,
        'reactionGroups': [{'content': k, 'users': {'totalCount': v}} for k, v in (reactions or {}).items()],
    }


@pytest.fixture
def as_of():
    return AS_OF


@pytest.fixture
def make_comment():
    return _comment


@pytest.fixture
def make_raw_issue():
    def build(number, title='Untitled', body='', labels=None, comments=None, author='alice',
              created_at='2026-02-01T00:00:00Z', updated_at='2026-02-25T00:00:00Z', comments_total=None):
        comments = comments or []
        return {
            'number': number,
            'title': title,
            'body': body,
            'url': f'https://example.test/issues/{number}',
            'createdAt': created_at,
            'updatedAt': updated_at,
            'author': {'login': author} if author else None,
            'labels': {'nodes': [{'name': name} for name in (labels or [])]},
            'assignees': {'nodes': []},
            'comments': {'totalCount': len(comments) if comments_total is None else comments_total, 'nodes': comments},
        }
    return build


@pytest.fixture
def make_raw_pr():
    def build(number, title='Untitled change', body='', labels=None, comments=None, reviews=None, threads=None,
              files=None, ci_state=None, is_draft=False, author='alice',
              created_at='2026-02-01T00:00:00Z', updated_at='2026-02-25T00:00:00Z'):
        comments = comments or []
        reviews = reviews or []
        threads = threads or []
        files = files or []
        return {
            'number': number,
            'title': title,
            'body': body,
            'url': f'https://example.test/pull/{number}',
            'createdAt': created_at,
            'updatedAt': updated_at,
            'isDraft': is_draft,
            'author': {'login': author},
            'labels': {'nodes': [{'name': name} for name in (labels or [])]},
            'assignees': {'nodes': []},
            'comments': {'totalCount': len(comments), 'nodes': comments},
            'reviews': {'totalCount': len(reviews), 'nodes': reviews},
            'reviewThreads': {'totalCount': len(threads), 'nodes': threads},
            'files': {'totalCount': len(files), 'nodes': files},
            'commits': {'nodes': [{'commit': {'oid': 'abc', 'statusCheckRollup': {'state': ci_state} if ci_state else None}}]},
        }
    return build
