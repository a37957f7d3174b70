import json
import os
import unittest

from settings.defaults import DEFAULT_CONFIG
from settings.resolver import get_default_config, load_config, merge_config, merge_with_base, resolve_config


class TestMergeConfig(unittest.TestCase):
    def test_lists_are_replaced_and_siblings_kept(self):
        config = merge_config({'labels': {'blocked': ['Frozen']}})
        self.assertEqual(config['labels']['blocked'], ['frozen'])
        self.assertEqual(config['labels']['needsInfo'], ['needs-info', 'needs-more-info', 'waiting-for-response'])

    def test_label_boost_keys_are_lower_cased(self):
        config = merge_config({'priority': {'labelBoosts': {'P0': 50}}})
        self.assertEqual(config['priority']['labelBoosts']['p0'], 50)
        self.assertEqual(config['priority']['labelBoosts']['security'], 40)

    def test_type_mismatch_keeps_default_and_warns(self):
        warnings = []
        config = merge_config({'staleDays': {'issues': 'soon'}}, warnings)
        self.assertEqual(config['staleDays']['issues'], 60)
        self.assertEqual(len(warnings), 1)
        self.assertIn('staleDays.issues', warnings[0])

    def test_int_override_accepted_for_float_default(self):
        config = merge_config({'heuristics': {'duplicates': {'overlapThreshold': 1}}})
        self.assertEqual(config['heuristics']['duplicates']['overlapThreshold'], 1)

    def test_defaults_are_not_mutated(self):
        merge_config({'labels': {'blocked': ['x']}, 'priority': {'labelBoosts': {'Y': 1}}})
        self.assertEqual(DEFAULT_CONFIG['labels']['blocked'], ['blocked', 'on-hold'])
        self.assertNotIn('y', DEFAULT_CONFIG['priority']['labelBoosts'])


class TestMergeWithBase(unittest.TestCase):
    def test_lexicon_lists_are_unioned(self):
        merged = merge_with_base(get_default_config(), {'semantics': {'intent': {'bug': ['Segfault', 'crash']}}})
        bug = merged['semantics']['intent']['bug']
        self.assertIn('crash', bug)
        self.assertEqual(bug[-1], 'segfault')
        self.assertEqual(bug.count('crash'), 1)

    def test_apply_to_is_always_replaced(self):
        overrides = {'heuristics': {'needsInfo': {'issueSignals': {'missingRepro': {'applyTo': ['bug']}}}}}
        merged = merge_with_base(get_default_config(), overrides)
        self.assertEqual(merged['heuristics']['needsInfo']['issueSignals']['missingRepro']['applyTo'], ['bug'])

    def test_resolve_config_layers_both(self):
        config = resolve_config({'semantics': {'environmentTokens': ['freebsd']}}, {'semantics': {'environmentTokens': ['wsl']}})
        self.assertEqual(config['semantics']['environmentTokens'], ['freebsd', 'wsl'])


def test_load_config_writes_defaults_when_missing(tmp_path):
    path = tmp_path / '.github' / 'maintainer' / 'config.json'
    result = load_config(str(path))
    assert result.used_default
    assert path.exists()
    assert json.loads(path.read_text(encoding='utf-8'))['staleDays'] == {'issues': 60, 'prs': 30}
    assert any('wrote defaults' in w for w in result.warnings)


def test_load_config_invalid_json_uses_defaults(tmp_path):
    path = tmp_path / 'config.json'
    path.write_text('{nope', encoding='utf-8')
    result = load_config(str(path))
    assert result.used_default
    assert result.config == get_default_config()
    assert any('Failed to parse' in w for w in result.warnings)
    # never overwritten
    assert path.read_text(encoding='utf-8') == '{nope'


def test_load_config_reads_yaml(tmp_path):
    path = tmp_path / 'config.yml'
    path.write_text('staleDays:\n  issues: 10\nlabels:\n  closable: [Done]\n', encoding='utf-8')
    result = load_config(str(path))
    assert not result.used_default
    assert result.warnings == []
    assert result.config['staleDays'] == {'issues': 10, 'prs': 30}
    assert result.config['labels']['closable'] == ['done']
    assert os.path.isabs(result.path)


if __name__ == '__main__':
    unittest.main()
