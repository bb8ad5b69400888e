"""Public configuration API for NewsTracker."""

from __future__ import annotations

from NewsTracker.config.api import ApiConfig
from NewsTracker.config.app import (
    AppConfig,
    load_config,
    load_config_with_defaults,
    merge_config_dicts,
    parse_config_dict,
)
from NewsTracker.config.output import OutputConfig
from NewsTracker.config.runtime import RuntimeConfig
from NewsTracker.config.search import SearchConfig

__all__ = [
    "ApiConfig",
    "AppConfig",
    "OutputConfig",
    "RuntimeConfig",
    "SearchConfig",
    "load_config",
    "load_config_with_defaults",
    "merge_config_dicts",
    "parse_config_dict",
]
