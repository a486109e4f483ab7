"""Normalization and validation of the `functions` project configuration.

The configuration is either a single codebase object or a list of them:

    {"source": "functions", "codebase": "default", "runtime": "nodejs20"}
"""

from __future__ import annotations

import re
from typing import Any

from functions_discovery.errors import ConfigError

DEFAULT_CODEBASE = "default"
MAX_CODEBASE_LENGTH = 63

_CODEBASE_RE = re.compile(r"^[a-z0-9_-]+$")
_INVALID_CHARS_RE = re.compile(r"[^a-z0-9_-]")

FunctionConfig = dict[str, Any]


def codebase_of(config: FunctionConfig) -> str:
    return config.get("codebase") or DEFAULT_CODEBASE


def normalize(config: FunctionConfig | list[FunctionConfig] | None) -> list[FunctionConfig]:
    if isinstance(config, dict):
        return [config]
    if not config:
        raise ConfigError("A functions config must be provided")
    return list(config)


def _validate_codebase_name(name: str) -> None:
    if len(name) > MAX_CODEBASE_LENGTH or not _CODEBASE_RE.match(name):
        raise ConfigError(
            f"Invalid codebase name {name}. Codebase must be less than "
            f"{MAX_CODEBASE_LENGTH + 1} characters and can contain only lowercase letters, "
            "numeric characters, underscores, and dashes."
        )


def _assert_unique(key: str, values: list[str]) -> None:
    seen: set[str] = set()
    for value in values:
        if value in seen:
            raise ConfigError(
                f"functions.{key} must be unique but '{value}' was used more than once."
            )
        seen.add(value)


def validate(configs: list[FunctionConfig]) -> list[FunctionConfig]:
    for config in configs:
        if not config.get("source"):
            raise ConfigError("functions.source must be specified")
        _validate_codebase_name(codebase_of(config))
    _assert_unique("source", [c["source"] for c in configs])
    _assert_unique("codebase", [codebase_of(c) for c in configs])
    return configs


def normalize_and_validate(
    config: FunctionConfig | list[FunctionConfig] | None,
) -> list[FunctionConfig]:
    return validate(normalize(config))


def suggest_codebase_name(name: str) -> str:
    """Turn *name* into a valid codebase name."""
    return _INVALID_CHARS_RE.sub("_", name.lower())[:MAX_CODEBASE_LENGTH]


def config_for_codebase(
    configs: list[FunctionConfig], codebase: str
) -> FunctionConfig:
    for config in configs:
        if codebase_of(config) == codebase:
            return config
    raise ConfigError(f"No functions config found for codebase {codebase}")
