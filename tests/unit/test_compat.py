from __future__ import annotations

import pytest

from functions_discovery.runtimes.node.compat import Strategy, choose_strategy


def test_unparsable_version_uses_legacy_quietly(debug_logs: pytest.LogCaptureFixture) -> None:
    strategy, warnings = choose_strategy("not-a-version")
    assert strategy is Strategy.LEGACY_PARSE
    assert warnings == []
    assert any("not-a-version" in r.getMessage() for r in debug_logs.records)


def test_missing_version_uses_legacy() -> None:
    assert choose_strategy("") == (Strategy.LEGACY_PARSE, [])


def test_old_sdk_uses_legacy_and_warns() -> None:
    strategy, warnings = choose_strategy("3.19.9")
    assert strategy is Strategy.LEGACY_PARSE
    assert len(warnings) == 1
    assert "3.19.9" in warnings[0]
    assert "3.20.0" in warnings[0]


@pytest.mark.parametrize("version", ["3.20.0", "3.24.1", "4.0.0", "5.1.0-rc.0"])
def test_current_sdk_uses_modern_discovery(version: str) -> None:
    assert choose_strategy(version) == (Strategy.MODERN_DISCOVERY, [])


def test_prerelease_of_minimum_is_still_too_old() -> None:
    strategy, warnings = choose_strategy("3.20.0-beta.1")
    assert strategy is Strategy.LEGACY_PARSE
    assert len(warnings) == 1
