"""SDK compatibility gate: decide how a codebase's functions are discovered."""

from __future__ import annotations

from enum import Enum

from functions_discovery.config import FUNCTIONS_SDK, MIN_FUNCTIONS_SDK_VERSION
from functions_discovery.logging import get_logger
from functions_discovery.runtimes.node import versioning

logger = get_logger()


class Strategy(str, Enum):
    LEGACY_PARSE = "legacy_parse"
    MODERN_DISCOVERY = "modern_discovery"


def choose_strategy(
    sdk_version: str, minimum: str = MIN_FUNCTIONS_SDK_VERSION
) -> tuple[Strategy, list[str]]:
    """Return the discovery strategy for *sdk_version* and any warnings."""
    if not versioning.is_valid(sdk_version):
        logger.debug(
            "Could not parse %s version '%s' into semver. Falling back to static analysis.",
            FUNCTIONS_SDK,
            sdk_version,
        )
        return Strategy.LEGACY_PARSE, []
    if versioning.lt(sdk_version, minimum):
        return Strategy.LEGACY_PARSE, [
            f"You are using an old version of {FUNCTIONS_SDK} SDK ({sdk_version}). "
            f"Please update {FUNCTIONS_SDK} SDK to >={minimum}"
        ]
    return Strategy.MODERN_DISCOVERY, []
