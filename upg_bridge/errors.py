"""Exception taxonomy for the generation bridge.

Only environment and spawn faults are raised.  Generator-reported failures
and malformed output are carried inside result objects instead.
"""

from __future__ import annotations

from pathlib import Path


class BridgeError(Exception):
    """Base class for every error raised by ``upg_bridge``."""


class EnvironmentFault(BridgeError):
    """The host environment cannot support the request.

    Raised when the home and working directories are both unresolvable, the
    development build artifact is missing, or the host platform has no
    packaged generator binary.
    """


class PackagingError(EnvironmentFault):
    """The packaged generator binary is absent from every candidate location."""

    def __init__(self, message: str, candidates: list[Path] | None = None):
        self.candidates = candidates or []
        super().__init__(message)


class SpawnError(BridgeError):
    """The generator executable could not be started at all."""

    def __init__(self, message: str, executable: str = "", args: list[str] | None = None):
        self.executable = executable
        self.args_tried = list(args or [])
        super().__init__(message)


class RegistryError(BridgeError):
    """The seed registry could not be written or locked."""
