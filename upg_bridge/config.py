"""UPG bridge configuration.

Centralised, typed configuration for the orchestration layer.  All settings
use Pydantic v2 models so they are validated at construction time and can be
serialised to/from JSON or environment variables without boiler-plate.

Filesystem roots are explicit values handed to the resolvers at construction
time; nothing is discovered by walking up from the installed package.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field

from .models import DeploymentMode

DEFAULT_REMOTE_REGISTRY_URL = (
    "https://raw.githubusercontent.com/WCNegentropy/retro-vibecoder/main/"
    "registry/manifests/generated.json"
)


class BridgeConfig(BaseModel):
    """Global configuration for generation, preview, sweep and the registry.

    Instances are typically created once by the CLI entry point (or the
    hosting desktop shell) and passed to :class:`~upg_bridge.orchestrator.Orchestrator`.
    """

    deployment_mode: DeploymentMode = Field(default=DeploymentMode.DEVELOPMENT)
    workspace_root: Path = Field(
        default=Path("."), description="Repository root, used in development mode"
    )
    resource_root: Path = Field(
        default=Path("."), description="Resource bundle root, used in packaged mode"
    )
    dev_entry_point: str = Field(
        default="packages/cli/dist/bin/upg.js",
        description="Built generator entry point, relative to workspace_root",
    )
    runtime_launcher: str = Field(default="node")
    binary_stem: str = Field(default="upg")
    registry_dir: Path | None = Field(default=None)
    home_dir: Path | None = Field(default=None)
    settings_path: Path | None = Field(default=None)
    generator_timeout: float = Field(
        default=300.0, ge=1, description="Hard per-invocation timeout in seconds"
    )
    max_sweep_workers: int = Field(
        default=1, ge=1, description="Concurrent previews during a sweep"
    )
    remote_registry_url: str = Field(default=DEFAULT_REMOTE_REGISTRY_URL)

    # ------------------------------------------------------------------
    # Derived paths (read-only properties)
    # ------------------------------------------------------------------

    @property
    def root(self) -> Path:
        """Root the generator runs from for the active deployment mode."""
        if self.deployment_mode is DeploymentMode.PACKAGED:
            return self.resource_root
        return self.workspace_root

    @property
    def resolved_registry_dir(self) -> Path:
        """Registry directory, defaulting to ``<root>/registry``."""
        return self.registry_dir or (self.root / "registry")

    @property
    def registry_path(self) -> Path:
        """Path to the persisted seed registry document."""
        return self.resolved_registry_dir / "manifests" / "generated.json"

    @property
    def registry_lock_path(self) -> Path:
        """Sidecar lock file guarding registry read-modify-write cycles."""
        return self.registry_path.with_name(self.registry_path.name + ".lock")

    def home_provider(self) -> Path:
        """Return the user's home directory (the override wins)."""
        if self.home_dir is not None:
            return self.home_dir
        return Path.home()

    @property
    def resolved_settings_path(self) -> Path:
        """Path to the settings document, defaulting to ``~/.upg/settings.json``."""
        if self.settings_path is not None:
            return self.settings_path
        return self.home_provider() / ".upg" / "settings.json"

    # ------------------------------------------------------------------
    # Serialisation helpers
    # ------------------------------------------------------------------

    def save(self, path: Path) -> Path:
        """Persist the configuration to a JSON file.

        Returns:
            The path where the file was written.
        """
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(self.model_dump_json(indent=2), encoding="utf-8")
        return target

    @classmethod
    def load(cls, path: Path) -> "BridgeConfig":
        """Load a previously-saved configuration from JSON."""
        raw = Path(path).read_text(encoding="utf-8")
        return cls.model_validate_json(raw)

    @classmethod
    def from_env(cls) -> "BridgeConfig":
        """Build a ``BridgeConfig`` from environment variables.

        Recognised variables (all optional):
            UPG_DEPLOYMENT_MODE, UPG_WORKSPACE_ROOT, UPG_RESOURCE_ROOT,
            UPG_REGISTRY_DIR, UPG_HOME, UPG_GENERATOR_TIMEOUT,
            UPG_SWEEP_WORKERS, UPG_REMOTE_REGISTRY_URL.
        """
        kwargs: dict[str, Any] = {}
        if os.environ.get("UPG_DEPLOYMENT_MODE"):
            kwargs["deployment_mode"] = os.environ["UPG_DEPLOYMENT_MODE"].lower()
        if os.environ.get("UPG_WORKSPACE_ROOT"):
            kwargs["workspace_root"] = Path(os.environ["UPG_WORKSPACE_ROOT"])
        if os.environ.get("UPG_RESOURCE_ROOT"):
            kwargs["resource_root"] = Path(os.environ["UPG_RESOURCE_ROOT"])
        if os.environ.get("UPG_REGISTRY_DIR"):
            kwargs["registry_dir"] = Path(os.environ["UPG_REGISTRY_DIR"])
        if os.environ.get("UPG_HOME"):
            kwargs["settings_path"] = Path(os.environ["UPG_HOME"]) / "settings.json"
        if os.environ.get("UPG_GENERATOR_TIMEOUT"):
            kwargs["generator_timeout"] = float(os.environ["UPG_GENERATOR_TIMEOUT"])
        if os.environ.get("UPG_SWEEP_WORKERS"):
            kwargs["max_sweep_workers"] = int(os.environ["UPG_SWEEP_WORKERS"])
        if os.environ.get("UPG_REMOTE_REGISTRY_URL"):
            kwargs["remote_registry_url"] = os.environ["UPG_REMOTE_REGISTRY_URL"]

        return cls(**kwargs)
