"""Sanity checks on a Node.js functions source directory."""

from __future__ import annotations

import json
from pathlib import Path

from functions_discovery.config import FUNCTIONS_SDK
from functions_discovery.errors import FunctionsError
from functions_discovery.logging import log_labeled_warning


def _read_package_json(package_json: Path) -> dict:
    try:
        data = json.loads(package_json.read_text(encoding="utf-8"))
    except OSError as e:
        raise FunctionsError(f"No package.json found at {package_json}") from e
    except ValueError as e:
        raise FunctionsError(f"package.json at {package_json} is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise FunctionsError(f"package.json at {package_json} must contain an object")
    return data


def package_json_is_valid(source_dir_name: str, source_dir: Path, project_dir: Path) -> None:
    """Raise FunctionsError unless *source_dir* holds a deployable package."""
    pkg = _read_package_json(source_dir / "package.json")

    main = pkg.get("main") or "index.js"
    if not isinstance(main, str):
        raise FunctionsError(
            f'"main" in {source_dir_name}/package.json must be a string, got {main!r}'
        )
    if not (source_dir / main).is_file():
        rel = (source_dir / main).resolve()
        try:
            rel = rel.relative_to(project_dir.resolve())
        except ValueError:
            pass
        raise FunctionsError(
            f"{rel} does not exist, can't deploy Cloud Functions "
            f'(check the "main" field of {source_dir_name}/package.json)'
        )

    deps = pkg.get("dependencies") or {}
    if FUNCTIONS_SDK not in deps:
        log_labeled_warning(
            "functions",
            f"{FUNCTIONS_SDK} is not listed in the dependencies of "
            f"{source_dir_name}/package.json",
        )
