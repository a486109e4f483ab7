"""Version helpers and lookups in a Node.js dependency tree.

Semantic versions follow npm's rules: `valid()` accepts only full
`major.minor.patch[-pre][+build]` strings, while `coerce()` pulls the first
dotted number run out of arbitrary text (`"nodejs20"` -> `20.0.0`).
"""

from __future__ import annotations

import json
import re
from pathlib import Path
from typing import NamedTuple

from functions_discovery.config import FUNCTIONS_SDK, MIN_SUPPORTED_SDK_MAJOR
from functions_discovery.logging import get_logger, log_labeled_warning

logger = get_logger()

_SEMVER_RE = re.compile(
    r"^[v=]?\s*(0|[1-9]\d*)\.(0|[1-9]\d*)\.(0|[1-9]\d*)"
    r"(?:-([0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?"
    r"(?:\+[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*)?$"
)
_COERCE_RE = re.compile(r"(\d{1,16})(?:\.(\d{1,16}))?(?:\.(\d{1,16}))?")


class SemVer(NamedTuple):
    major: int
    minor: int
    patch: int
    prerelease: tuple[str, ...] = ()

    def __str__(self) -> str:
        core = f"{self.major}.{self.minor}.{self.patch}"
        return f"{core}-{'.'.join(self.prerelease)}" if self.prerelease else core


def parse(text: str | None) -> SemVer | None:
    if not text:
        return None
    m = _SEMVER_RE.match(text.strip())
    if not m:
        return None
    pre = tuple(m.group(4).split(".")) if m.group(4) else ()
    return SemVer(int(m.group(1)), int(m.group(2)), int(m.group(3)), pre)


def is_valid(text: str | None) -> bool:
    return parse(text) is not None


def coerce(text: str | None) -> SemVer | None:
    if not text:
        return None
    m = _COERCE_RE.search(text)
    if not m:
        return None
    return SemVer(int(m.group(1)), int(m.group(2) or 0), int(m.group(3) or 0))


def _compare_prerelease(a: tuple[str, ...], b: tuple[str, ...]) -> int:
    # A release sorts after any of its prereleases.
    if not a or not b:
        return (not a) - (not b)
    for x, y in zip(a, b):
        if x == y:
            continue
        if x.isdigit() and y.isdigit():
            return -1 if int(x) < int(y) else 1
        if x.isdigit() != y.isdigit():
            return -1 if x.isdigit() else 1
        return -1 if x < y else 1
    return (len(a) > len(b)) - (len(a) < len(b))


def compare(a: str | SemVer, b: str | SemVer) -> int:
    """Return -1, 0 or 1. Raises ValueError on unparsable input."""
    va = a if isinstance(a, SemVer) else parse(a)
    vb = b if isinstance(b, SemVer) else parse(b)
    if va is None or vb is None:
        raise ValueError(f"Cannot compare versions {a!r} and {b!r}")
    if va[:3] != vb[:3]:
        return -1 if va[:3] < vb[:3] else 1
    return _compare_prerelease(va.prerelease, vb.prerelease)


def lt(a: str | SemVer, b: str | SemVer) -> bool:
    return compare(a, b) < 0


def major(text: str) -> int | None:
    v = parse(text) or coerce(text)
    return v.major if v else None


# --- Dependency tree --------------------------------------------------------


def resolve_module_dir(name: str, start: Path) -> Path | None:
    """Find `node_modules/<name>` the way Node's resolver would from *start*."""
    start = start.resolve()
    for d in (start, *start.parents):
        if d.name == "node_modules":
            continue
        candidate = d / "node_modules" / name
        if (candidate / "package.json").is_file():
            return candidate
    return None


def _read_package_json(module_dir: Path) -> dict | None:
    try:
        data = json.loads((module_dir / "package.json").read_text(encoding="utf-8"))
    except (OSError, ValueError):
        return None
    return data if isinstance(data, dict) else None


def find_module_version(name: str, module_dir: Path) -> str | None:
    """Return the `version` of the package installed at *module_dir*."""
    pkg = _read_package_json(module_dir)
    if not pkg or pkg.get("name") != name:
        return None
    version = pkg.get("version")
    return version if isinstance(version, str) else None


def get_functions_sdk_version(source_dir: Path) -> str | None:
    module_dir = resolve_module_dir(FUNCTIONS_SDK, source_dir)
    if module_dir is None:
        logger.debug("Could not find %s installed under %s", FUNCTIONS_SDK, source_dir)
        return None
    return find_module_version(FUNCTIONS_SDK, module_dir)


def check_functions_sdk_version(version: str) -> None:
    """Warn about SDK releases too old to deploy at all."""
    if not version:
        logger.debug("%s version not found; skipping SDK version check", FUNCTIONS_SDK)
        return
    parsed = parse(version)
    if parsed is None:
        logger.debug("Could not parse %s version %r", FUNCTIONS_SDK, version)
        return
    if parsed.major < MIN_SUPPORTED_SDK_MAJOR:
        log_labeled_warning(
            "functions",
            f"This version of {FUNCTIONS_SDK} ({version}) is no longer supported. "
            f"Please upgrade with `npm install --save {FUNCTIONS_SDK}@latest` in your "
            "functions directory; the upgrade contains breaking changes.",
        )
