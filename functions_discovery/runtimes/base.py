"""Runtime delegate contract and dispatcher.

Each runtime family exposes `try_create_delegate(context)` that returns a
delegate when the source directory belongs to it, or None otherwise.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any, Protocol

from functions_discovery.errors import FunctionsError
from functions_discovery.types import Build, DelegateContext


class RuntimeDelegate(Protocol):
    name: str
    runtime: str

    def validate(self) -> None: ...

    def build(self) -> None: ...

    def watch(self) -> Callable[[], None]: ...

    def discover_build(self, config: dict[str, Any], env: dict[str, str]) -> Build: ...


def get_runtime_delegate(
    context: DelegateContext, env: Mapping[str, str] | None = None
) -> RuntimeDelegate:
    """Return the delegate for the first runtime family that claims the source."""
    from functions_discovery.runtimes.node.delegate import try_create_delegate as try_node

    factories = [try_node]
    for factory in factories:
        delegate = factory(context, env=env)
        if delegate is not None:
            return delegate

    raise FunctionsError(f"Could not detect language for functions at {context.source_dir}")
