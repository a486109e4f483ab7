"""Discovery protocol: read a Build from a static manifest or a control server."""

from __future__ import annotations

from pathlib import Path

import httpx
import yaml
from pydantic import ValidationError

from functions_discovery.config import (
    DISCOVERY_TIMEOUT,
    LOOPBACK,
    MANIFEST_NAME,
    MANIFEST_PATH,
    MANIFEST_SPEC_VERSION,
)
from functions_discovery.errors import DiscoveryFailed, InvalidManifest
from functions_discovery.logging import get_logger
from functions_discovery.types import Build
from functions_discovery.validator import validate_manifest

logger = get_logger()


def yaml_to_build(text: str, project_id: str, runtime: str) -> Build:
    """Parse a manifest document into a Build.

    Endpoints inherit the project and runtime unless they name their own.
    """
    try:
        payload = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise InvalidManifest(f"Functions manifest is not valid YAML: {e}") from e

    validate_manifest(payload)
    spec_version = payload["specVersion"]
    if spec_version != MANIFEST_SPEC_VERSION:
        raise InvalidManifest(f"Unsupported functions manifest specVersion {spec_version!r}")

    body = {k: v for k, v in payload.items() if k != "specVersion"}
    endpoints: dict[str, dict] = {}
    for endpoint_id, endpoint in (body.pop("endpoints") or {}).items():
        endpoints[endpoint_id] = {
            "project": project_id,
            "runtime": runtime,
            "entryPoint": endpoint_id,
            **endpoint,
        }
    try:
        return Build(endpoints=endpoints, **body)
    except ValidationError as e:
        raise InvalidManifest(f"Invalid functions manifest: {e}") from e


def detect_from_yaml(source_dir: Path, project_id: str, runtime: str) -> Build | None:
    """Return the Build declared in the source's manifest, or None without one."""
    path = source_dir / MANIFEST_NAME
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        logger.debug("Could not find %s; falling back to the control server", path)
        return None
    logger.debug("Found %s. Using it to discover functions.", path)
    return yaml_to_build(text, project_id, runtime)


def detect_from_port(
    port: int,
    project_id: str,
    runtime: str,
    timeout: float = DISCOVERY_TIMEOUT,
    host: str = LOOPBACK,
) -> Build:
    """Ask a running control server for its manifest. A single request."""
    url = f"http://{host}:{port}{MANIFEST_PATH}"
    try:
        resp = httpx.get(url, timeout=timeout)
        resp.raise_for_status()
    except httpx.HTTPError as e:
        raise DiscoveryFailed(f"Failed to load functions manifest from {url}: {e}") from e

    logger.debug("Got response from %s:\n%s", url, resp.text)
    try:
        return yaml_to_build(resp.text, project_id, runtime)
    except InvalidManifest as e:
        raise DiscoveryFailed(f"Control server returned an invalid manifest: {e}") from e
