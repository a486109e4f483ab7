"""Shared Pydantic models."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

RuntimeConfigValues = dict[str, Any]
EnvironmentVariables = dict[str, str]


class Build(BaseModel):
    """Declared functions and resources of a codebase.

    The endpoint and parameter entries belong to the SDK's manifest contract;
    they are carried through untouched. Unknown top-level keys are kept too.
    """

    model_config = ConfigDict(extra="allow")

    requiredAPIs: list[dict] = Field(default_factory=list)
    endpoints: dict[str, dict] = Field(default_factory=dict)
    params: list[dict] = Field(default_factory=list)


class DelegateContext(BaseModel):
    project_id: str
    project_dir: Path
    source_dir: Path
    runtime: str | None = None
