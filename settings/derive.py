"""
Repository-semantics deriver.
Scans repository-authored templates (issue forms, PR templates, contribution guide) for headings,
list items and form labels, and turns them into an additive override layer for the resolver.
"""
import json
import logging
import os
import re
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Set

import yaml

from normalize.text import phrase_matches

logger = logging.getLogger(__name__)

ISSUE_TEMPLATE_DIR = os.path.join('.github', 'ISSUE_TEMPLATE')
PR_TEMPLATE_FILES = [
    os.path.join('.github', 'PULL_REQUEST_TEMPLATE.md'),
    os.path.join('.github', 'pull_request_template.md'),
]
PR_TEMPLATE_DIR = os.path.join('.github', 'PULL_REQUEST_TEMPLATE')
CONTRIBUTING_FILES = [
    'CONTRIBUTING.md',
    os.path.join('.github', 'CONTRIBUTING.md'),
]

NEEDS_INFO_KEYWORDS = {
    'repro': ['steps to reproduce', 'repro', 'reproduction'],
    'expected': ['expected behavior', 'expected result'],
    'actual': ['actual behavior', 'actual result'],
    'environment': ['environment', 'os', 'operating system', 'platform'],
    'version': ['version', 'openskills version', 'node version'],
    'logs': ['logs', 'stack trace', 'error output'],
    'testPlan': ['test plan', 'testing', 'tests run'],
}

INTENT_KEYWORDS = {
    'bug': ['bug report', 'bug'],
    'feature': ['feature request', 'feature'],
    'question': ['question'],
    'support': ['support', 'help'],
    'meta': ['governance', 'roadmap', 'discussion'],
}

ENV_TOKENS = ['windows', 'mac', 'macos', 'linux', 'ubuntu', 'debian', 'node', 'npm', 'pnpm', 'yarn']

MAX_PHRASE_CHARS = 180
MAX_VERBATIM_WORDS = 6
MAX_VERBATIM_CHARS = 80

_CHECKBOX_ITEM = re.compile(r'^[-*]\s*\[[ xX]\]')
_FORM_FIELD = re.compile(r'^(?:-\s*)?(label|id):\s*(.+)$', re.IGNORECASE)


class DerivedResult:
    """Additive override layer discovered in a repository plus the files it came from."""

    def __init__(self, overrides: Dict[str, Any], sources: List[str]):
        self.overrides = overrides
        self.sources = sources


class DerivedWriteResult:
    def __init__(self, wrote: bool, path: str, warning: Optional[str] = None):
        self.wrote = wrote
        self.path = path
        self.warning = warning


def _read_file_if_exists(path: str) -> Optional[str]:
    try:
        with open(path, 'r', encoding='utf-8') as f:
            return f.read()
    except (OSError, UnicodeDecodeError):
        return None


def _list_dir(path: str, suffixes: tuple) -> List[str]:
    if not os.path.isdir(path):
        return []
    return [os.path.join(path, entry) for entry in sorted(os.listdir(path)) if entry.lower().endswith(suffixes)]


def collect_template_files(repo_root: str) -> List[str]:
    """Return existing template files under repo_root, in scan order, without duplicates."""
    files: List[str] = []
    files.extend(_list_dir(os.path.join(repo_root, ISSUE_TEMPLATE_DIR), ('.md', '.yml', '.yaml')))
    files.extend(p for p in (os.path.join(repo_root, f) for f in PR_TEMPLATE_FILES) if os.path.isfile(p))
    files.extend(_list_dir(os.path.join(repo_root, PR_TEMPLATE_DIR), ('.md',)))
    files.extend(p for p in (os.path.join(repo_root, f) for f in CONTRIBUTING_FILES) if os.path.isfile(p))
    # case-insensitive filesystems can report the same PR template twice
    unique: List[str] = []
    seen = set()
    for f in files:
        key = os.path.normcase(os.path.realpath(f))
        if key not in seen:
            seen.add(key)
            unique.append(f)
    return unique


def sanitize_phrase(phrase: str) -> str:
    phrase = re.sub(r'\[[xX ]\]\s*', '', phrase)
    phrase = re.sub(r'\([^)]*\)', '', phrase)
    phrase = re.sub(r'^[\[\]\s-]+', '', phrase)
    phrase = re.sub(r'[*_`]', '', phrase)
    phrase = re.sub(r'[：:]\s*$', '', phrase)
    return re.sub(r'\s+', ' ', phrase).strip()


def extract_markdown_phrases(content: str) -> List[str]:
    """Headings and plain list items; checkbox items and quotes are skipped."""
    phrases: List[str] = []
    for line in content.split('\n'):
        trimmed = line.strip()
        if not trimmed or _CHECKBOX_ITEM.match(trimmed):
            continue
        if trimmed.startswith('#'):
            phrases.append(sanitize_phrase(re.sub(r'^#+\s*', '', trimmed)))
        elif trimmed.startswith('-') or trimmed.startswith('*'):
            phrases.append(sanitize_phrase(re.sub(r'^[-*]\s*', '', trimmed)))
    return phrases


def _walk_form_fields(node: Any, out: List[str]):
    if isinstance(node, dict):
        for key, value in node.items():
            if str(key).lower() in ('label', 'id') and isinstance(value, (str, int, float)):
                out.append(sanitize_phrase(str(value)))
            else:
                _walk_form_fields(value, out)
    elif isinstance(node, list):
        for item in node:
            _walk_form_fields(item, out)


def _scan_form_lines(content: str) -> List[str]:
    phrases: List[str] = []
    for line in content.split('\n'):
        match = _FORM_FIELD.match(line.strip())
        if match:
            phrases.append(sanitize_phrase(match.group(2).strip().strip('"\'')))
    return phrases


def extract_yaml_phrases(content: str) -> List[str]:
    """`label` and `id` fields of a structured issue form, in document order."""
    try:
        document = yaml.safe_load(content)
    except yaml.YAMLError as exc:
        logger.debug("issue form is not valid YAML, scanning lines instead: %s", exc)
        return _scan_form_lines(content)
    phrases: List[str] = []
    _walk_form_fields(document, phrases)
    return phrases


def _add_phrases(target: Set[str], phrases: Iterable[str]):
    for phrase in phrases:
        normalized = phrase.lower().strip()
        if normalized and len(normalized) <= MAX_PHRASE_CHARS:
            target.add(normalized)


def select_phrase_or_keyword(phrase: str, keyword: str) -> str:
    """Keep short phrases verbatim; long boilerplate collapses to the keyword it matched."""
    normalized = phrase.strip()
    if not normalized:
        return keyword
    if len(normalized.split()) > MAX_VERBATIM_WORDS:
        return keyword
    if len(normalized) <= MAX_VERBATIM_CHARS:
        return normalized
    return keyword


def _classify_into(phrase: str, table: Dict[str, List[str]], adds: Dict[str, Set[str]]):
    for category, keywords in table.items():
        for keyword in keywords:
            if phrase_matches(phrase, keyword):
                adds[category].add(select_phrase_or_keyword(phrase, keyword))
                break


def _only_additions(adds: Dict[str, Set[str]], known: Dict[str, List[str]]) -> Dict[str, List[str]]:
    result = {}
    for category, phrases in adds.items():
        new = sorted(phrases - set(known.get(category, [])))
        if new:
            result[category] = new
    return result


def derive_overrides_from_phrases(phrases: Iterable[str], base_config: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Classify phrases into intent / needs-info categories and environment tokens; only additions are returned."""
    intent_adds: Dict[str, Set[str]] = {k: set() for k in INTENT_KEYWORDS}
    needs_info_adds: Dict[str, Set[str]] = {k: set() for k in NEEDS_INFO_KEYWORDS}
    env_tokens: Set[str] = set()

    for phrase in sorted(set(phrases)):
        _classify_into(phrase, NEEDS_INFO_KEYWORDS, needs_info_adds)
        _classify_into(phrase, INTENT_KEYWORDS, intent_adds)
        env_tokens.update(token for token in ENV_TOKENS if phrase_matches(phrase, token))

    base_semantics = (base_config or {}).get('semantics', {})
    env_tokens -= set(base_semantics.get('environmentTokens', []))
    intent = _only_additions(intent_adds, base_semantics.get('intent', {}))
    needs_info = _only_additions(needs_info_adds, base_semantics.get('needsInfo', {}))

    semantics: Dict[str, Any] = {}
    if intent:
        semantics['intent'] = intent
    if needs_info:
        semantics['needsInfo'] = needs_info
    if env_tokens:
        semantics['environmentTokens'] = sorted(env_tokens)
    return {'semantics': semantics} if semantics else {}


def derive_repo_overrides(repo_root: str, base_config: Optional[Dict[str, Any]] = None) -> DerivedResult:
    """Scan repo_root's templates and return the additive override layer they imply."""
    files = collect_template_files(repo_root)
    phrases: Set[str] = set()
    sources: List[str] = []
    for path in files:
        content = _read_file_if_exists(path)
        if not content:
            continue
        sources.append(os.path.relpath(path, repo_root).replace(os.sep, '/'))
        if path.lower().endswith(('.yml', '.yaml')):
            _add_phrases(phrases, extract_yaml_phrases(content))
        else:
            _add_phrases(phrases, extract_markdown_phrases(content))
    logger.debug("derived %d phrases from %d template files", len(phrases), len(sources))
    return DerivedResult(derive_overrides_from_phrases(phrases, base_config), sources)


def _canonical(value: Any) -> str:
    return json.dumps(value, sort_keys=True)


def write_derived_config(path: str, derived: DerivedResult) -> DerivedWriteResult:
    """
    Persist the derived layer unless the stored overrides and sources are identical.
    Write failures are reported as a warning; the derived layer is advisory and scoring continues.
    """
    existing = _read_file_if_exists(path)
    if existing:
        try:
            parsed = json.loads(existing)
        except ValueError:
            parsed = None
        if isinstance(parsed, dict) and _canonical(parsed.get('overrides')) == _canonical(derived.overrides) \
                and _canonical(parsed.get('sources')) == _canonical(derived.sources):
            return DerivedWriteResult(False, path)

    payload = {
        'schemaVersion': 1,
        'generatedAt': datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z'),
        'sources': derived.sources,
        'overrides': derived.overrides,
    }
    try:
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(path, 'w', encoding='utf-8') as f:
            f.write(json.dumps(payload, indent=2) + '\n')
    except OSError as exc:
        warning = f"Failed to write derived semantics to {path}: {exc}"
        logger.warning(warning)
        return DerivedWriteResult(False, path, warning)
    return DerivedWriteResult(True, path)
