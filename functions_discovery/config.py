"""Constants shared by the discovery subsystem.

There is no configuration file: callers pass an environment snapshot where a
value depends on the process environment.
"""

from __future__ import annotations

import os
from collections.abc import Mapping

# Oldest SDK that serves its function manifest over the control API.
MIN_FUNCTIONS_SDK_VERSION = "3.20.0"
# Below this major the SDK needs a breaking-change upgrade before deploys.
MIN_SUPPORTED_SDK_MAJOR = 2

FUNCTIONS_SDK = "firebase-functions"
MANIFEST_NAME = "functions.yaml"
MANIFEST_SPEC_VERSION = "v1alpha1"

BASE_PORT = 8000
PORT_JITTER = 1000
LOOPBACK = "127.0.0.1"

QUIT_PATH = "/__/quitquitquit"
MANIFEST_PATH = "/__/functions.yaml"

SHUTDOWN_TIMEOUT = 10.0
READY_TIMEOUT = 10.0
DISCOVERY_TIMEOUT = 10.0

# Set by the standalone (bundled interpreter) distribution of the CLI.
STANDALONE_ENV = "FIREPIT_VERSION"

SUPPORTED_NODE_MAJORS = (10, 12, 14, 16, 18, 20, 22)

INHERITED_ENV = ("HOME", "PATH", "NODE_ENV")


def env_snapshot(env: Mapping[str, str] | None = None) -> dict[str, str]:
    """Return a private copy of *env*, or of the process environment."""
    return dict(os.environ if env is None else env)


def is_standalone(env: Mapping[str, str]) -> bool:
    return bool(env.get(STANDALONE_ENV))
