"""Choose the Node.js runtime for a codebase."""

from __future__ import annotations

import json
from pathlib import Path

from functions_discovery.config import SUPPORTED_NODE_MAJORS
from functions_discovery.errors import InvalidRuntimeSpec
from functions_discovery.runtimes.node import versioning

ENGINES_FIELD_REQUIRED_MSG = (
    'Engines field is required in package.json but none was found. Please add '
    '"engines": {"node": "20"} to package.json, or set "runtime" in the functions '
    "configuration."
)


def _supported_runtimes() -> str:
    return ", ".join(f"nodejs{m}" for m in SUPPORTED_NODE_MAJORS)


def _engines_node(source_dir: Path) -> str | None:
    try:
        pkg = json.loads((source_dir / "package.json").read_text(encoding="utf-8"))
    except (OSError, ValueError):
        return None
    engines = pkg.get("engines") if isinstance(pkg, dict) else None
    if not isinstance(engines, dict):
        return None
    node = engines.get("node")
    return str(node) if node is not None else None


def get_runtime_choice(source_dir: Path, runtime_from_config: str | None = None) -> str:
    """Return a runtime id such as `nodejs20`.

    A runtime from the functions configuration wins over `engines.node`.
    """
    if runtime_from_config:
        return runtime_from_config

    engine = _engines_node(source_dir)
    if not engine:
        raise InvalidRuntimeSpec(ENGINES_FIELD_REQUIRED_MSG)
    version = versioning.coerce(engine)
    if version is None or version.major not in SUPPORTED_NODE_MAJORS:
        raise InvalidRuntimeSpec(
            f'package.json in functions directory has an engines field which is unsupported. '
            f'Got "{engine}"; valid choices are: {_supported_runtimes()}'
        )
    return f"nodejs{version.major}"
