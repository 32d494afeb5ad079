"""Generator command resolution.

Decides which executable (plus leading arguments) invokes the generator.  In
development the built CLI entry point inside the workspace is run through its
runtime launcher; in a packaged bundle a standalone per-platform binary named
``<stem>-<target-triple>[.exe]`` is looked up in the resource directory.
"""

from __future__ import annotations

import platform
from dataclasses import dataclass, field
from pathlib import Path

from ..errors import EnvironmentFault, PackagingError
from ..models import DeploymentMode

_OS_ALIASES: dict[str, str] = {
    "linux": "linux",
    "darwin": "macos",
    "macos": "macos",
    "windows": "windows",
    "win32": "windows",
}

_ARCH_ALIASES: dict[str, str] = {
    "x86_64": "x86_64",
    "amd64": "x86_64",
    "x64": "x86_64",
    "aarch64": "aarch64",
    "arm64": "aarch64",
}

TARGET_TRIPLES: dict[tuple[str, str], str] = {
    ("linux", "x86_64"): "x86_64-unknown-linux-gnu",
    ("linux", "aarch64"): "aarch64-unknown-linux-gnu",
    ("macos", "x86_64"): "x86_64-apple-darwin",
    ("macos", "aarch64"): "aarch64-apple-darwin",
    ("windows", "x86_64"): "x86_64-pc-windows-msvc",
    ("windows", "aarch64"): "aarch64-pc-windows-msvc",
}


@dataclass(frozen=True)
class HostPlatform:
    """Normalised operating system and CPU architecture."""

    os: str
    arch: str

    @classmethod
    def detect(cls) -> "HostPlatform":
        """Describe the interpreter's own host."""
        return cls.from_names(platform.system(), platform.machine())

    @classmethod
    def from_names(cls, system: str, machine: str) -> "HostPlatform":
        """Normalise raw ``platform.system()`` / ``platform.machine()`` strings."""
        os_name = _OS_ALIASES.get(system.strip().lower(), system.strip().lower())
        arch = _ARCH_ALIASES.get(machine.strip().lower(), machine.strip().lower())
        return cls(os=os_name, arch=arch)

    @property
    def target_triple(self) -> str:
        try:
            return TARGET_TRIPLES[(self.os, self.arch)]
        except KeyError:
            raise EnvironmentFault(
                f"No packaged generator for platform {self.os}-{self.arch}"
            ) from None

    @property
    def is_windows(self) -> bool:
        return self.os == "windows"


@dataclass(frozen=True)
class ResolvedCommand:
    """Executable, leading arguments and working directory for one invocation."""

    executable: str
    base_args: list[str] = field(default_factory=list)
    working_dir: Path = Path(".")

    def argv(self, args: list[str]) -> list[str]:
        """Full argument vector for a spawn call."""
        return [self.executable, *self.base_args, *args]


class CommandResolver:
    """Maps (deployment mode, platform) to the command that runs the generator.

    All locations are injected; the resolver never inspects its own install
    location.
    """

    def __init__(
        self,
        mode: DeploymentMode,
        workspace_root: Path,
        resource_root: Path,
        dev_entry_point: str = "packages/cli/dist/bin/upg.js",
        runtime_launcher: str = "node",
        binary_stem: str = "upg",
        host: HostPlatform | None = None,
    ):
        self.mode = mode
        self.workspace_root = Path(workspace_root)
        self.resource_root = Path(resource_root)
        self.dev_entry_point = dev_entry_point
        self.runtime_launcher = runtime_launcher
        self.binary_stem = binary_stem
        self.host = host or HostPlatform.detect()

    def binary_name(self) -> str:
        """Platform-specific packaged binary file name."""
        name = f"{self.binary_stem}-{self.host.target_triple}"
        if self.host.is_windows:
            name += ".exe"
        return name

    def candidates(self) -> list[Path]:
        """Locations searched for the packaged binary, in order."""
        name = self.binary_name()
        return [
            self.resource_root / name,
            self.resource_root / "binaries" / name,
        ]

    def resolve(self) -> ResolvedCommand:
        """Return the command for the configured mode.

        Raises:
            EnvironmentFault: Development entry point missing ("build first").
            PackagingError: No packaged binary at either candidate location.
        """
        if self.mode is DeploymentMode.DEVELOPMENT:
            return self._resolve_development()
        return self._resolve_packaged()

    def _resolve_development(self) -> ResolvedCommand:
        entry = self.workspace_root / self.dev_entry_point
        if not entry.is_file():
            raise EnvironmentFault(
                f"Generator entry point not found at {entry}. "
                "Build the CLI package first."
            )
        return ResolvedCommand(
            executable=self.runtime_launcher,
            base_args=[str(entry)],
            working_dir=self.workspace_root,
        )

    def _resolve_packaged(self) -> ResolvedCommand:
        candidates = self.candidates()
        for candidate in candidates:
            if candidate.is_file():
                return ResolvedCommand(
                    executable=str(candidate),
                    base_args=[],
                    working_dir=self.resource_root,
                )
        searched = ", ".join(str(c) for c in candidates)
        raise PackagingError(
            f"Packaged generator binary '{self.binary_name()}' not found. Searched: {searched}",
            candidates=candidates,
        )
