"""Node.js binary negotiation.

Precedence, first match wins:
1. a `node` package vendored in the source's node_modules with the requested major;
2. the host `node` when its major matches;
3. the host `node` anyway, with a warning about the mismatch.
A version mismatch is never fatal.
"""

from __future__ import annotations

import shutil
import subprocess
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Literal

from functions_discovery.errors import InvalidRuntimeSpec, ProcessSpawnFailed
from functions_discovery.logging import get_logger
from functions_discovery.runtimes.node import versioning

logger = get_logger()


@dataclass(frozen=True)
class RuntimeInstall:
    """A node executable and the version it reports."""

    path: str
    version: str


@dataclass(frozen=True)
class ResolvedBinary:
    path: str
    major: int
    source: Literal["local", "host"]


def detect_host_runtime(env: Mapping[str, str]) -> RuntimeInstall | None:
    """Find `node` on the snapshot's PATH and ask it for its version."""
    node = shutil.which("node", path=env.get("PATH"))
    if not node:
        logger.debug("No node binary found on PATH")
        return None
    try:
        out = subprocess.run(
            [node, "--version"], capture_output=True, text=True, timeout=10, check=True
        )
    except (OSError, subprocess.SubprocessError) as e:
        logger.debug("Could not query %s for its version: %s", node, e)
        return None
    return RuntimeInstall(path=node, version=out.stdout.strip().lstrip("v"))


def find_local_runtime(source_dir: Path) -> RuntimeInstall | None:
    """Return the `node` package vendored under *source_dir*, if any."""
    module_dir = source_dir / "node_modules" / "node"
    version = versioning.find_module_version("node", module_dir)
    if not version:
        return None
    return RuntimeInstall(path=str(module_dir / "bin" / "node"), version=version)


def _mismatch_warning(requested: int, host: int, standalone: bool) -> str:
    if standalone:
        return (
            f'You\'ve requested "node" version "{requested}", but the standalone CLI '
            f'comes with bundled Node "{host}". To use a different Node.js version, '
            "consider removing the standalone CLI and installing the CLI from npm instead."
        )
    return (
        f'Your requested "node" version "{requested}" doesn\'t match your global version '
        f'"{host}". Using node@{host} from host.'
    )


def resolve_binary(
    requested_runtime: str,
    host: RuntimeInstall | None,
    local: RuntimeInstall | None = None,
    *,
    standalone: bool = False,
) -> tuple[ResolvedBinary, list[str]]:
    """Pick the binary that runs user code.

    Returns the binary and the user-visible warnings produced on the way.
    """
    requested = versioning.coerce(requested_runtime)
    if requested is None:
        raise InvalidRuntimeSpec(
            f"Could not determine version of the requested runtime: {requested_runtime}"
        )

    if local is not None and versioning.major(local.version) == requested.major:
        return ResolvedBinary(local.path, requested.major, "local"), []

    if host is None:
        raise ProcessSpawnFailed(
            f"Could not find a Node.js installation to run node@{requested.major}. "
            "Make sure `node` is on your PATH."
        )
    host_major = versioning.major(host.version)
    if host_major is None:
        raise ProcessSpawnFailed(f"Could not parse host Node.js version {host.version!r}")

    resolved = ResolvedBinary(host.path, host_major, "host")
    if host_major == requested.major:
        return resolved, []
    return resolved, [_mismatch_warning(requested.major, host_major, standalone)]
