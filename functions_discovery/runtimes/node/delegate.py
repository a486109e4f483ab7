"""Node.js runtime delegate: validation and function discovery for one codebase."""

from __future__ import annotations

import os
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import Any

from functions_discovery.config import env_snapshot, is_standalone
from functions_discovery.discovery import manifest
from functions_discovery.discovery.ports import allocate_port
from functions_discovery.discovery.supervisor import (
    ControlServer,
    build_control_env,
    sdk_entry_point,
)
from functions_discovery.errors import UnsupportedRuntimeKind
from functions_discovery.logging import get_logger, log_labeled_success, log_labeled_warning
from functions_discovery.runtimes.node import legacy, versioning
from functions_discovery.runtimes.node import validate as validate_pkg
from functions_discovery.runtimes.node.binary import (
    RuntimeInstall,
    detect_host_runtime,
    find_local_runtime,
    resolve_binary,
)
from functions_discovery.runtimes.node.compat import Strategy, choose_strategy
from functions_discovery.runtimes.node.runtime_choice import get_runtime_choice
from functions_discovery.types import Build, DelegateContext

logger = get_logger()

LegacyParser = Callable[[str, Path, str, dict, dict], Build]


def try_create_delegate(
    context: DelegateContext, env: Mapping[str, str] | None = None
) -> Delegate | None:
    """Return a Delegate when *context* points at Node.js source, else None."""
    if not (context.source_dir / "package.json").is_file():
        logger.debug("Customer code is not Node")
        return None

    runtime = get_runtime_choice(context.source_dir, context.runtime)
    if not runtime.startswith("nodejs"):
        logger.debug(
            "Customer has a package.json but did not get a nodejs runtime. This should not happen"
        )
        raise UnsupportedRuntimeKind(f"Unexpected runtime {runtime}")

    return Delegate(context.project_id, context.project_dir, context.source_dir, runtime, env=env)


class Delegate:
    name = "nodejs"

    def __init__(
        self,
        project_id: str,
        project_dir: Path,
        source_dir: Path,
        runtime: str,
        *,
        env: Mapping[str, str] | None = None,
        legacy_parser: LegacyParser = legacy.discover_build,
        host_runtime: RuntimeInstall | None = None,
    ):
        self.project_id = project_id
        self.project_dir = Path(project_dir)
        self.source_dir = Path(source_dir)
        self.runtime = runtime
        self.env = env_snapshot(env)
        self.legacy_parser = legacy_parser
        self._host_runtime = host_runtime
        self._sdk_version: str | None = None
        self._bin: str | None = None

    @property
    def sdk_version(self) -> str:
        """Installed firebase-functions version, or "" when not found."""
        if self._sdk_version is None:
            self._sdk_version = versioning.get_functions_sdk_version(self.source_dir) or ""
        return self._sdk_version

    @property
    def bin(self) -> str:
        if self._bin is None:
            self._bin = self.get_node_binary()
        return self._bin

    def get_node_binary(self) -> str:
        local = find_local_runtime(self.source_dir)
        host = self._host_runtime or detect_host_runtime(self.env)
        resolved, warnings = resolve_binary(
            self.runtime, host, local, standalone=is_standalone(self.env)
        )
        for warning in warnings:
            log_labeled_warning("functions", warning)
        if not warnings:
            where = "local cache" if resolved.source == "local" else "host"
            log_labeled_success("functions", f"Using node@{resolved.major} from {where}.")
        return resolved.path

    def validate(self) -> None:
        versioning.check_functions_sdk_version(self.sdk_version)
        relative_dir = os.path.relpath(self.source_dir, self.project_dir)
        validate_pkg.package_json_is_valid(relative_dir, self.source_dir, self.project_dir)

    def build(self) -> None:
        # Compilation is left to predeploy hooks.
        return None

    def watch(self) -> Callable[[], None]:
        def stop() -> None:
            return None

        return stop

    def serve_admin(
        self, port: int, config: dict[str, Any], envs: dict[str, str]
    ) -> ControlServer:
        """Launch the SDK's control server for this source on *port*."""
        env = build_control_env(port, config, envs, self.env)
        entry = sdk_entry_point(self.source_dir)
        return ControlServer.launch(self.bin, entry, self.source_dir, env, port)

    def discover_build(self, config: dict[str, Any], env: dict[str, str]) -> Build:
        strategy, warnings = choose_strategy(self.sdk_version)
        for warning in warnings:
            log_labeled_warning("functions", warning)
        if strategy is Strategy.LEGACY_PARSE:
            return self.legacy_parser(self.project_id, self.source_dir, self.runtime, config, env)

        discovered = manifest.detect_from_yaml(self.source_dir, self.project_id, self.runtime)
        if discovered is not None:
            return discovered

        port = allocate_port()
        server = self.serve_admin(port, config, env)
        try:
            server.wait_until_ready()
            return manifest.detect_from_port(port, self.project_id, self.runtime)
        finally:
            server.shutdown()
