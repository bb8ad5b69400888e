"""Service connection configuration (``api`` section)."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any, Mapping

from NewsTracker.config.common import (
    check_non_empty,
    expect_bool,
    expect_float,
    expect_int,
    expect_str,
    get_required_value,
    get_section,
)


@dataclass(frozen=True, slots=True)
class ApiConfig:
    """Connection and request pacing settings.

    Attributes:
        host: Service base URL.
        api_key_env: Environment variable holding the API key.
        api_key: Key read from `api_key_env` (empty when unset).
        min_delay_between_requests: Minimum seconds between two requests.
        repeat_failed_request_count: Retries after a failed first attempt.
        timeout: Per-request timeout in seconds.
        verbose_output: Log every request at INFO level.
    """

    host: str
    api_key_env: str
    min_delay_between_requests: float
    repeat_failed_request_count: int
    timeout: float
    verbose_output: bool
    api_key: str = field(default="", repr=False)


def load_api(raw: Mapping[str, Any]) -> ApiConfig:
    """Load the ``api`` section and resolve the API key from the environment.

    Args:
        raw: Root configuration mapping.

    Returns:
        Parsed API configuration.

    Raises:
        TypeError: If a value has the wrong type.
        ValueError: If the section or a key is missing.
    """
    section = get_section(raw, "api", required=True)
    api_key_env = expect_str(get_required_value(section, "api_key_env", "api.api_key_env"), "api.api_key_env")
    return ApiConfig(
        host=expect_str(get_required_value(section, "host", "api.host"), "api.host").strip(),
        api_key_env=api_key_env.strip(),
        min_delay_between_requests=expect_float(
            get_required_value(section, "min_delay_between_requests", "api.min_delay_between_requests"),
            "api.min_delay_between_requests",
        ),
        repeat_failed_request_count=expect_int(
            get_required_value(section, "repeat_failed_request_count", "api.repeat_failed_request_count"),
            "api.repeat_failed_request_count",
        ),
        timeout=expect_float(get_required_value(section, "timeout", "api.timeout"), "api.timeout"),
        verbose_output=expect_bool(section.get("verbose_output", False), "api.verbose_output"),
        api_key=_load_api_key_from_env(api_key_env.strip()),
    )


def check_api(config: ApiConfig) -> None:
    """Validate API settings.

    Raises:
        ValueError: If values are out of range.
    """
    check_non_empty(config.host, "api.host")
    check_non_empty(config.api_key_env, "api.api_key_env")
    if not config.host.startswith(("http://", "https://")):
        raise ValueError("api.host must start with http:// or https://")
    if config.min_delay_between_requests < 0:
        raise ValueError("api.min_delay_between_requests must be >= 0")
    if config.repeat_failed_request_count < 0:
        raise ValueError("api.repeat_failed_request_count must be >= 0")
    if config.timeout <= 0:
        raise ValueError("api.timeout must be positive")


def _load_api_key_from_env(api_key_env: str) -> str:
    if not api_key_env:
        return ""
    return os.getenv(api_key_env, "").strip()
