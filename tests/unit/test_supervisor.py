from __future__ import annotations

import json
from pathlib import Path

import pytest

from functions_discovery.discovery.supervisor import build_control_env, sdk_entry_point
from functions_discovery.errors import ProcessSpawnFailed
from tests.helpers import install_sdk


def test_control_env_overlay() -> None:
    snapshot = {"HOME": "/home/dev", "PATH": "/usr/bin", "SECRET": "do-not-leak"}
    env = build_control_env(8123, {"app": {"key": "v"}}, {"GREETING": "hi"}, snapshot)

    assert env == {
        "GREETING": "hi",
        "PORT": "8123",
        "FUNCTIONS_CONTROL_API": "true",
        "HOME": "/home/dev",
        "PATH": "/usr/bin",
        "CLOUD_RUNTIME_CONFIG": json.dumps({"app": {"key": "v"}}),
    }


def test_control_env_omits_empty_runtime_config() -> None:
    env = build_control_env(9000, {}, None, {"NODE_ENV": "production"})
    assert "CLOUD_RUNTIME_CONFIG" not in env
    assert env["NODE_ENV"] == "production"


def test_control_variables_override_user_env() -> None:
    env = build_control_env(9000, None, {"PORT": "1", "FUNCTIONS_CONTROL_API": "false"}, {})
    assert env["PORT"] == "9000"
    assert env["FUNCTIONS_CONTROL_API"] == "true"


def test_sdk_entry_point_next_to_installed_sdk(tmp_path: Path) -> None:
    install_sdk(tmp_path, "4.0.0")
    src = tmp_path / "functions"
    src.mkdir()
    expected = tmp_path.resolve() / "node_modules" / ".bin" / "firebase-functions"
    assert sdk_entry_point(src) == expected


def test_sdk_entry_point_requires_sdk(tmp_path: Path) -> None:
    with pytest.raises(ProcessSpawnFailed, match="firebase-functions"):
        sdk_entry_point(tmp_path)


def test_sdk_entry_point_requires_bin_link(tmp_path: Path) -> None:
    install_sdk(tmp_path, "4.0.0", control_server=False)
    with pytest.raises(ProcessSpawnFailed, match="control server not found"):
        sdk_entry_point(tmp_path)
