"""
Settings package: configuration defaults, layered resolution and repository-derived semantics.
"""

from .resolver import ConfigLoadResult, get_default_config, load_config, merge_config, merge_with_base, resolve_config
from .derive import DerivedResult, derive_repo_overrides, write_derived_config

__all__ = [
    "ConfigLoadResult",
    "get_default_config",
    "load_config",
    "merge_config",
    "merge_with_base",
    "resolve_config",
    "DerivedResult",
    "derive_repo_overrides",
    "write_derived_config",
]
