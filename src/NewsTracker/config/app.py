"""Application config assembly and YAML loading entrypoints."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

import yaml

from NewsTracker.config.api import ApiConfig, check_api, load_api
from NewsTracker.config.output import OutputConfig, check_output, load_output
from NewsTracker.config.runtime import RuntimeConfig, check_runtime, load_runtime
from NewsTracker.config.search import SearchConfig, check_search, load_search

DEFAULT_CONFIG_PATH = Path("config/default.yml")


@dataclass(frozen=True, slots=True)
class AppConfig:
    """Application root configuration."""

    runtime: RuntimeConfig
    api: ApiConfig
    search: SearchConfig
    output: OutputConfig


def parse_config_dict(raw: Mapping[str, Any]) -> AppConfig:
    """Parse a merged mapping into AppConfig, validating every section."""
    runtime = load_runtime(raw)
    api = load_api(raw)
    search = load_search(raw)
    output = load_output(raw)

    check_runtime(runtime)
    check_api(api)
    check_search(search)
    check_output(output)

    return AppConfig(runtime=runtime, api=api, search=search, output=output)


def load_config(path: Path) -> AppConfig:
    """Load a config file layered over ``config/default.yml`` when that file exists."""
    if not DEFAULT_CONFIG_PATH.is_file():
        return parse_config_dict(parse_yaml(path.read_text(encoding="utf-8")))
    return load_config_with_defaults(path)


def load_config_with_defaults(
    config_path: Path,
    default_path: Path = DEFAULT_CONFIG_PATH,
    *,
    defaults_text: str | None = None,
) -> AppConfig:
    """Load config by deep-merging an override file over the defaults.

    Args:
        config_path: Override file. When it is the defaults file itself, no
            merge happens.
        default_path: Defaults file.
        defaults_text: Defaults YAML given inline instead of `default_path`.

    Returns:
        Parsed configuration.
    """
    if defaults_text is None:
        base = parse_yaml(default_path.read_text(encoding="utf-8"))
        if config_path.resolve() == default_path.resolve():
            return parse_config_dict(base)
    else:
        base = parse_yaml(defaults_text)
    override = parse_yaml(config_path.read_text(encoding="utf-8"))
    return parse_config_dict(merge_config_dicts(base, override))


def parse_yaml(text: str) -> dict[str, Any]:
    """Parse raw YAML text into a mapping."""
    data = yaml.safe_load(text) or {}
    if not isinstance(data, Mapping):
        raise ValueError("Config root must be a mapping/object")
    return dict(data)


def merge_config_dicts(base: Mapping[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    """Deep-merge two config mappings; lists and scalars in `override` replace."""
    merged: dict[str, Any] = dict(base)
    for key, value in override.items():
        if key in merged and isinstance(merged[key], Mapping) and isinstance(value, Mapping):
            merged[key] = merge_config_dicts(merged[key], value)
        else:
            merged[key] = value
    return merged
