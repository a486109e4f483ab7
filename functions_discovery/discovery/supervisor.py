"""Control server supervision: launch the SDK's control server and tear it down.

Responsibilities:
- Build the child environment (port, control API flag, runtime config).
- Start `<binary> <sdk entry point> <source dir>` with stdout forwarded to debug logs
  and stderr inherited so crashes stay visible.
- Wait until the server accepts connections on its port.
- Shut down: ask politely over `/__/quitquitquit`, kill after a bounded wait,
  and return only once the process is gone.
"""

from __future__ import annotations

import json
import socket
import subprocess
import threading
import time
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import httpx

from functions_discovery.config import (
    FUNCTIONS_SDK,
    INHERITED_ENV,
    LOOPBACK,
    QUIT_PATH,
    READY_TIMEOUT,
    SHUTDOWN_TIMEOUT,
)
from functions_discovery.errors import DiscoveryFailed, ProcessSpawnFailed
from functions_discovery.logging import get_logger
from functions_discovery.runtimes.node.versioning import resolve_module_dir

logger = get_logger()


def build_control_env(
    port: int,
    config: Mapping[str, Any] | None,
    envs: Mapping[str, str] | None,
    snapshot: Mapping[str, str],
) -> dict[str, str]:
    env = dict(envs or {})
    env["PORT"] = str(port)
    env["FUNCTIONS_CONTROL_API"] = "true"
    for key in INHERITED_ENV:
        if key in snapshot:
            env[key] = snapshot[key]
    if config:
        env["CLOUD_RUNTIME_CONFIG"] = json.dumps(config)
    return env


def sdk_entry_point(source_dir: Path) -> Path:
    """Return the control server executable shipped with the installed SDK."""
    sdk_dir = resolve_module_dir(FUNCTIONS_SDK, source_dir)
    if sdk_dir is None:
        raise ProcessSpawnFailed(f"Could not find {FUNCTIONS_SDK} installed for {source_dir}")
    # sdk_dir is <...>/node_modules/firebase-functions; its bin links live beside it.
    entry = sdk_dir.parent / ".bin" / FUNCTIONS_SDK
    if not entry.exists():
        raise ProcessSpawnFailed(f"{FUNCTIONS_SDK} control server not found at {entry}")
    return entry


def _forward_stdout(stream) -> None:
    for line in iter(stream.readline, ""):
        logger.debug(line.rstrip("\n"))
    stream.close()


def _is_port_open(host: str, port: int, timeout: float = 0.35) -> bool:
    try:
        with socket.create_connection((host, port), timeout=timeout):
            return True
    except OSError:
        return False


class ControlServer:
    """One running control server, bound to one port.

    Use as a context manager to guarantee shutdown:

        with ControlServer.launch(...) as server:
            server.wait_until_ready()
            ...
    """

    def __init__(self, proc: subprocess.Popen, port: int, host: str = LOOPBACK):
        self.proc = proc
        self.port = port
        self.host = host
        self._reader: threading.Thread | None = None

    @classmethod
    def launch(
        cls,
        binary: str,
        entry_point: Path,
        source_dir: Path,
        env: Mapping[str, str],
        port: int,
    ) -> ControlServer:
        cmd = [binary, str(entry_point), str(source_dir)]
        logger.debug("Launching control server: %s (port %d)", " ".join(cmd), port)
        try:
            proc = subprocess.Popen(
                cmd,
                cwd=source_dir,
                env=dict(env),
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=None,
                encoding="utf-8",
                errors="replace",
            )
        except OSError as e:
            raise ProcessSpawnFailed(f"Failed to launch {binary}: {e}") from e

        server = cls(proc, port)
        server._reader = threading.Thread(
            target=_forward_stdout, args=(proc.stdout,), name="control-server-stdout", daemon=True
        )
        server._reader.start()
        return server

    @property
    def base_url(self) -> str:
        return f"http://{self.host}:{self.port}"

    def running(self) -> bool:
        return self.proc.poll() is None

    def wait_until_ready(self, timeout: float = READY_TIMEOUT) -> None:
        """Block until the server accepts connections on its port."""
        deadline = time.monotonic() + timeout
        while True:
            if not self.running():
                raise DiscoveryFailed(
                    f"Control server exited with code {self.proc.returncode} "
                    "before it started listening"
                )
            if _is_port_open(self.host, self.port):
                return
            if time.monotonic() >= deadline:
                raise DiscoveryFailed(
                    f"Timed out after {timeout:g}s waiting for the control server on port "
                    f"{self.port}"
                )
            time.sleep(0.1)

    def _request_quit(self) -> None:
        try:
            httpx.get(self.base_url + QUIT_PATH, timeout=2)
        except httpx.HTTPError as e:
            # Server may already be gone.
            logger.debug("Quit request to control server failed: %s", e)

    def shutdown(self, timeout: float = SHUTDOWN_TIMEOUT) -> None:
        """Stop the server. Safe to call more than once."""
        if self.running():
            self._request_quit()
            try:
                self.proc.wait(timeout=timeout)
            except subprocess.TimeoutExpired:
                logger.debug(
                    "Control server did not exit within %gs; killing pid %d",
                    timeout,
                    self.proc.pid,
                )
                self.proc.kill()
                self.proc.wait()
        if self._reader is not None:
            self._reader.join(timeout=1)
            self._reader = None
        logger.debug("Control server exited with code %s", self.proc.returncode)

    def __enter__(self) -> ControlServer:
        return self

    def __exit__(self, *exc_info) -> None:
        self.shutdown()
