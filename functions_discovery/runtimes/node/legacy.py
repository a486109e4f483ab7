"""Static discovery for SDKs that predate the control API.

Heuristics over the package's `main` file, no code is executed:
- `exports.name = ...` and `export const name = ...` declare a function
- `https.onRequest` -> httpsTrigger, `https.onCall` -> callableTrigger
- `pubsub.schedule("...")` -> scheduleTrigger
- `pubsub.topic("...").onPublish` -> pubsub eventTrigger
- any other `<service>...<onEvent>(` -> generic eventTrigger
Exports that match none of these are skipped.
"""

from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Any

from functions_discovery.errors import DiscoveryFailed
from functions_discovery.logging import get_logger
from functions_discovery.types import Build

logger = get_logger()

DEFAULT_REGION = "us-central1"

_EXPORT_RE = re.compile(
    r"^\s*(?:exports\.([A-Za-z_$][\w$]*)|export\s+const\s+([A-Za-z_$][\w$]*))\s*=",
    re.MULTILINE,
)
_SCHEDULE_RE = re.compile(r"pubsub\s*\.\s*schedule\(\s*['\"]([^'\"]+)['\"]")
_TOPIC_RE = re.compile(r"pubsub\s*\.\s*topic\(\s*['\"]([^'\"]+)['\"]\s*\)\s*\.\s*onPublish")
_EVENT_RE = re.compile(
    r"\bfunctions\s*\.\s*(?:region\([^)]*\)\s*\.\s*)?(\w+)\b.*?\.\s*(on[A-Z]\w*)\s*\(",
    re.DOTALL,
)


def _main_file(source_dir: Path) -> Path:
    try:
        pkg = json.loads((source_dir / "package.json").read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        raise DiscoveryFailed(f"Could not read package.json in {source_dir}: {e}") from e
    if not isinstance(pkg, dict):
        raise DiscoveryFailed(f"package.json in {source_dir} must contain an object")
    name = pkg.get("main") or "index.js"
    if not isinstance(name, str):
        raise DiscoveryFailed(f'"main" in {source_dir}/package.json must be a string')
    main = source_dir / name
    if not main.is_file():
        raise DiscoveryFailed(
            f"Failed to load function definition from source: {main} does not exist"
        )
    return main


def _trigger_for(body: str) -> dict[str, Any] | None:
    if "https.onRequest" in body:
        return {"httpsTrigger": {}}
    if "https.onCall" in body:
        return {"callableTrigger": {}}
    m = _SCHEDULE_RE.search(body)
    if m:
        return {"scheduleTrigger": {"schedule": m.group(1)}}
    m = _TOPIC_RE.search(body)
    if m:
        return {
            "eventTrigger": {
                "eventType": "google.pubsub.topic.publish",
                "eventFilters": {"resource": m.group(1)},
                "retry": False,
            }
        }
    m = _EVENT_RE.search(body)
    if m:
        return {
            "eventTrigger": {
                "eventType": f"providers/{m.group(1)}/eventTypes/{m.group(2)}",
                "eventFilters": {},
                "retry": False,
            }
        }
    return None


def parse_exports(text: str) -> dict[str, dict[str, Any]]:
    """Map each exported function name to its trigger."""
    matches = list(_EXPORT_RE.finditer(text))
    found: dict[str, dict[str, Any]] = {}
    for i, m in enumerate(matches):
        name = m.group(1) or m.group(2)
        end = matches[i + 1].start() if i + 1 < len(matches) else len(text)
        trigger = _trigger_for(text[m.end() : end])
        if trigger is None:
            logger.debug("Export %s does not look like a function; skipping", name)
            continue
        found[name] = trigger
    return found


def discover_build(
    project_id: str,
    source_dir: Path,
    runtime: str,
    config: dict[str, Any],
    env: dict[str, str],
) -> Build:
    # Runtime config only matters when the source is executed.
    _ = config
    main = _main_file(source_dir)
    triggers = parse_exports(main.read_text(encoding="utf-8"))
    logger.debug("Statically discovered %d function(s) in %s", len(triggers), main)

    endpoints: dict[str, dict] = {}
    for name, trigger in triggers.items():
        endpoint = {
            "platform": "gcfv1",
            "project": project_id,
            "runtime": runtime,
            "region": [DEFAULT_REGION],
            "entryPoint": name,
            **trigger,
        }
        if env:
            endpoint["environmentVariables"] = dict(env)
        endpoints[name] = endpoint
    return Build(endpoints=endpoints)
