from __future__ import annotations

from pathlib import Path

import httpx
import pytest

from functions_discovery.discovery import manifest
from functions_discovery.errors import DiscoveryFailed, InvalidManifest

MANIFEST = """\
specVersion: v1alpha1
requiredAPIs:
  - api: cloudscheduler.googleapis.com
    reason: Needed for scheduled functions.
endpoints:
  hello:
    platform: gcfv2
    region: [us-central1]
    httpsTrigger: {}
  nightly:
    platform: gcfv1
    entryPoint: runNightly
    project: other-project
    scheduleTrigger:
      schedule: every 24 hours
"""


def test_yaml_to_build_defaults_endpoint_fields() -> None:
    build = manifest.yaml_to_build(MANIFEST, "my-project", "nodejs20")

    hello = build.endpoints["hello"]
    assert hello["project"] == "my-project"
    assert hello["runtime"] == "nodejs20"
    assert hello["entryPoint"] == "hello"
    assert hello["httpsTrigger"] == {}

    nightly = build.endpoints["nightly"]
    assert nightly["project"] == "other-project"
    assert nightly["entryPoint"] == "runNightly"
    assert build.requiredAPIs[0]["api"] == "cloudscheduler.googleapis.com"
    assert build.params == []


def test_yaml_to_build_keeps_unknown_keys() -> None:
    build = manifest.yaml_to_build(MANIFEST + "extensions: {}\n", "p", "nodejs20")
    assert build.model_dump()["extensions"] == {}


@pytest.mark.parametrize(
    "text",
    [
        "specVersion: [unclosed",
        "just a string",
        "endpoints: {}\n",
        "specVersion: v1alpha1\nendpoints: []\n",
        "specVersion: v2\nendpoints: {}\n",
        "specVersion: v1alpha1\nendpoints:\n  123:\n    httpsTrigger: {}\n",
        "specVersion: v1alpha1\nendpoints:\n  on:\n    httpsTrigger: {}\n",
        "specVersion: v1alpha1\nendpoints: {}\nrequiredAPIs: [{api: x}]\nparams: [1]\n",
    ],
)
def test_yaml_to_build_rejects_malformed_manifests(text: str) -> None:
    with pytest.raises(InvalidManifest):
        manifest.yaml_to_build(text, "p", "nodejs20")


def test_model_errors_are_invalid_manifests(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(manifest, "validate_manifest", lambda data: None)
    with pytest.raises(InvalidManifest, match="Invalid functions manifest"):
        manifest.yaml_to_build(
            "specVersion: v1alpha1\nendpoints:\n  123:\n    httpsTrigger: {}\n", "p", "nodejs20"
        )


def test_detect_from_yaml_without_manifest_returns_none(tmp_path: Path) -> None:
    assert manifest.detect_from_yaml(tmp_path, "p", "nodejs20") is None


def test_detect_from_yaml_reads_manifest(tmp_path: Path) -> None:
    (tmp_path / "functions.yaml").write_text(MANIFEST, encoding="utf-8")
    build = manifest.detect_from_yaml(tmp_path, "p", "nodejs20")
    assert build is not None
    assert set(build.endpoints) == {"hello", "nightly"}


def test_detect_from_yaml_fails_fast_on_malformed_manifest(tmp_path: Path) -> None:
    (tmp_path / "functions.yaml").write_text("specVersion: v1alpha1\n", encoding="utf-8")
    with pytest.raises(InvalidManifest, match="endpoints"):
        manifest.detect_from_yaml(tmp_path, "p", "nodejs20")


def _mock_get(monkeypatch: pytest.MonkeyPatch, handler) -> None:
    transport = httpx.MockTransport(handler)

    def fake_get(url, timeout=None):
        with httpx.Client(transport=transport) as client:
            return client.get(url, timeout=timeout)

    monkeypatch.setattr(manifest.httpx, "get", fake_get)


def test_detect_from_port_parses_served_manifest(monkeypatch: pytest.MonkeyPatch) -> None:
    seen: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(str(request.url))
        return httpx.Response(200, text=MANIFEST)

    _mock_get(monkeypatch, handler)
    build = manifest.detect_from_port(8123, "p", "nodejs20")

    assert seen == ["http://127.0.0.1:8123/__/functions.yaml"]
    assert "hello" in build.endpoints


def test_detect_from_port_http_error(monkeypatch: pytest.MonkeyPatch) -> None:
    _mock_get(monkeypatch, lambda request: httpx.Response(500, text="boom"))
    with pytest.raises(DiscoveryFailed, match="500"):
        manifest.detect_from_port(8123, "p", "nodejs20")


def test_detect_from_port_garbage_body(monkeypatch: pytest.MonkeyPatch) -> None:
    _mock_get(monkeypatch, lambda request: httpx.Response(200, text="<html>nope</html>"))
    with pytest.raises(DiscoveryFailed, match="invalid manifest"):
        manifest.detect_from_port(8123, "p", "nodejs20")


def test_detect_from_port_unreachable(monkeypatch: pytest.MonkeyPatch) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    _mock_get(monkeypatch, handler)
    with pytest.raises(DiscoveryFailed):
        manifest.detect_from_port(8123, "p", "nodejs20")


def test_detect_from_port_non_string_endpoint_id(monkeypatch: pytest.MonkeyPatch) -> None:
    body = "specVersion: v1alpha1\nendpoints:\n  123:\n    httpsTrigger: {}\n"
    _mock_get(monkeypatch, lambda request: httpx.Response(200, text=body))
    with pytest.raises(DiscoveryFailed, match="invalid manifest"):
        manifest.detect_from_port(8123, "p", "nodejs20")
