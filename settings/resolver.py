"""
Configuration resolver.
Loads the maintainer config from disk and layers overrides over the built-in defaults.

Two layering modes share one recursive merge:
- merge_config(): first layer (stored config over defaults). Lexicon lists are replaced so a
  repository can fully redefine a lexicon.
- merge_with_base(): later layers (e.g. derived repository semantics). Lexicon lists are unioned,
  so built-in phrases are never removed.
Scalars always resolve to "override if present, else base"; nested groups merge key by key.
"""
import copy
import json
import logging
import os
from typing import Any, Dict, List, Optional

import yaml

from .defaults import DEFAULT_CONFIG, LOWERCASE_KEY_MAPS, SELECTOR_LIST_KEYS

logger = logging.getLogger(__name__)

Config = Dict[str, Any]

YAML_SUFFIXES = ('.yml', '.yaml')


class ConfigLoadResult:
    """Outcome of load_config(): the resolved config plus the warnings collected while loading."""

    def __init__(self, config: Config, path: str, used_default: bool, warnings: Optional[List[str]] = None):
        self.config = config
        self.path = path
        self.used_default = used_default
        self.warnings = warnings or []


def normalize_phrases(values: List[Any]) -> List[str]:
    """Lower-case, strip and de-duplicate a lexicon list, preserving first-seen order."""
    seen = set()
    result: List[str] = []
    for value in values or []:
        phrase = str(value).lower().strip()
        if not phrase or phrase in seen:
            continue
        seen.add(phrase)
        result.append(phrase)
    return result


def _same_kind(base: Any, override: Any) -> bool:
    if base is None:
        return True
    if isinstance(base, bool):
        return isinstance(override, bool)
    if isinstance(base, (int, float)):
        return isinstance(override, (int, float)) and not isinstance(override, bool)
    return isinstance(override, type(base))


def _copy_new_value(value: Any) -> Any:
    if isinstance(value, list):
        return normalize_phrases(value) if all(isinstance(v, str) for v in value) else copy.deepcopy(value)
    return copy.deepcopy(value)


def _merge_mapping(key: str, base: Dict[str, Any], override: Dict[str, Any], union_lists: bool, path: str, warnings: List[str]) -> Dict[str, Any]:
    if key in LOWERCASE_KEY_MAPS:
        override = {str(k).lower().strip(): v for k, v in override.items()}
    result: Dict[str, Any] = {}
    for child_key, base_value in base.items():
        result[child_key] = _merge_value(child_key, base_value, override.get(child_key), union_lists, f"{path}.{child_key}" if path else child_key, warnings)
    # keys unknown to the base (extra reaction kinds, extra label boosts, ...) are carried over as-is
    for child_key, value in override.items():
        if child_key not in result and value is not None:
            result[child_key] = _copy_new_value(value)
    return result


def _merge_value(key: str, base: Any, override: Any, union_lists: bool, path: str, warnings: List[str]) -> Any:
    if isinstance(base, dict):
        if override is not None and not isinstance(override, dict):
            warnings.append(f"Ignoring config value at '{path}': expected an object.")
            override = None
        return _merge_mapping(key, base, override or {}, union_lists, path, warnings)

    if isinstance(base, list):
        if override is None:
            return normalize_phrases(base)
        if not isinstance(override, list):
            warnings.append(f"Ignoring config value at '{path}': expected a list.")
            return normalize_phrases(base)
        if union_lists and key not in SELECTOR_LIST_KEYS:
            return normalize_phrases(list(base) + list(override))
        return normalize_phrases(override)

    if override is None:
        return base
    if not _same_kind(base, override):
        warnings.append(f"Ignoring config value at '{path}': expected {type(base).__name__}.")
        return base
    return override


def merge_config(overrides: Optional[Dict[str, Any]], warnings: Optional[List[str]] = None) -> Config:
    """Resolve the first override layer over DEFAULT_CONFIG. Lists in overrides replace the defaults."""
    collected = warnings if warnings is not None else []
    return _merge_mapping('', DEFAULT_CONFIG, overrides or {}, False, '', collected)


def merge_with_base(base: Config, overrides: Optional[Dict[str, Any]], warnings: Optional[List[str]] = None) -> Config:
    """Layer additional overrides over an already-resolved config. Lexicon lists are unioned."""
    collected = warnings if warnings is not None else []
    return _merge_mapping('', base, overrides or {}, True, '', collected)


def resolve_config(overrides: Optional[Dict[str, Any]] = None, repo_overrides: Optional[Dict[str, Any]] = None,
                   warnings: Optional[List[str]] = None) -> Config:
    """Resolve the full configuration: defaults, then stored overrides, then repository-derived additions."""
    collected = warnings if warnings is not None else []
    return merge_with_base(merge_config(overrides, collected), repo_overrides, collected)


def get_default_config() -> Config:
    return merge_config({})


def _read_config_file(path: str) -> Any:
    with open(path, 'r', encoding='utf-8') as f:
        if path.lower().endswith(YAML_SUFFIXES):
            return yaml.safe_load(f)
        return json.load(f)


def _write_default_config(path: str):
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    with open(path, 'w', encoding='utf-8') as f:
        if path.lower().endswith(YAML_SUFFIXES):
            yaml.safe_dump(get_default_config(), f, sort_keys=False)
        else:
            f.write(json.dumps(get_default_config(), indent=2) + '\n')


def load_config(config_path: str) -> ConfigLoadResult:
    """
    Load the maintainer config from disk. Never raises.

    - Missing file: defaults are written once to config_path and used.
    - Unreadable or unparsable file: defaults are used.
    Every fallback is reported in ConfigLoadResult.warnings.
    """
    resolved = os.path.abspath(config_path)
    warnings: List[str] = []

    if not os.path.exists(resolved):
        try:
            _write_default_config(resolved)
            warnings.append(f"Config not found; wrote defaults to {resolved}.")
        except OSError as exc:
            logger.debug("could not write default config to %s: %s", resolved, exc)
            warnings.append(f"Config not found at {resolved}; using defaults.")
        for w in warnings:
            logger.warning(w)
        return ConfigLoadResult(get_default_config(), resolved, True, warnings)

    try:
        parsed = _read_config_file(resolved)
    except (OSError, ValueError, yaml.YAMLError) as exc:
        logger.debug("config parse error at %s: %s", resolved, exc)
        parsed = None
    if not isinstance(parsed, dict):
        warnings.append(f"Failed to parse config at {resolved}; using defaults.")
        logger.warning(warnings[-1])
        return ConfigLoadResult(get_default_config(), resolved, True, warnings)

    config = merge_config(parsed, warnings)
    for w in warnings:
        logger.warning(w)
    return ConfigLoadResult(config, resolved, False, warnings)
