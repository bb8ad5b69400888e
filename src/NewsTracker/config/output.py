"""Output configuration (``output`` section)."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from NewsTracker.config.common import (
    check_non_empty,
    expect_str,
    expect_str_list,
    get_required_value,
    get_section,
)

_ALLOWED_FORMATS = ("console", "json")


@dataclass(frozen=True, slots=True)
class OutputConfig:
    """Output configuration."""

    base_dir: str
    formats: tuple[str, ...]


def load_output(raw: Mapping[str, Any]) -> OutputConfig:
    """Load the ``output`` section.

    Raises:
        TypeError: If a value has the wrong type.
        ValueError: If the section or a key is missing.
    """
    section = get_section(raw, "output", required=True)
    formats = expect_str_list(get_required_value(section, "formats", "output.formats"), "output.formats")
    normalized: list[str] = []
    for item in formats:
        name = item.strip().lower()
        if name and name not in normalized:
            normalized.append(name)
    return OutputConfig(
        base_dir=expect_str(get_required_value(section, "base_dir", "output.base_dir"), "output.base_dir"),
        formats=tuple(normalized),
    )


def check_output(config: OutputConfig) -> None:
    check_non_empty(config.base_dir, "output.base_dir")
    if not config.formats:
        raise ValueError("output.formats must include at least one format")
    unknown = set(config.formats) - set(_ALLOWED_FORMATS)
    if unknown:
        raise ValueError(f"output.formats has unknown formats: {sorted(unknown)}")
