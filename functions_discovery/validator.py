"""Schema validation for functions manifests."""

from __future__ import annotations

import json
from importlib import resources

from jsonschema import Draft202012Validator
from jsonschema.exceptions import ValidationError

from functions_discovery.errors import InvalidManifest

# --- Schema loaders ---------------------------------------------------------


def _load_schema(package: str, resource_name: str) -> dict:
    with resources.files(package).joinpath(resource_name).open("r", encoding="utf-8") as f:
        return json.load(f)


def _manifest_schema() -> dict:
    return _load_schema("functions_discovery.schema", "functions.schema.json")


# --- Public validators ------------------------------------------------------


def validate_manifest(data: object) -> None:
    """Raise InvalidManifest if *data* is not a functions manifest."""
    try:
        Draft202012Validator(_manifest_schema()).validate(data)
    except ValidationError as e:
        where = "/".join(str(p) for p in e.absolute_path) or "<root>"
        raise InvalidManifest(f"Invalid functions manifest at {where}: {e.message}") from e
