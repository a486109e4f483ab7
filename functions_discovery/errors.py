"""Error taxonomy for runtime discovery.

Version and SDK-age mismatches never raise: they are downgraded to warnings
by the negotiator and the compatibility gate. Everything here propagates to
the caller after any child process has been torn down.
"""

from __future__ import annotations


class FunctionsError(Exception):
    """Base class for every error surfaced by this package."""


class ConfigError(FunctionsError):
    pass


class InvalidRuntimeSpec(FunctionsError):
    """The requested runtime cannot be turned into a version."""


class UnsupportedRuntimeKind(FunctionsError):
    """A package.json is present but the runtime is not a Node.js one."""


class ProcessSpawnFailed(FunctionsError):
    """The runtime binary or the SDK entry point could not be launched."""


class DiscoveryFailed(FunctionsError):
    """The function declarations could not be obtained from the source."""


class InvalidManifest(DiscoveryFailed):
    """A functions manifest exists but is not a valid manifest."""
