"""Pydantic v2 models for generation requests, results and the seed registry.

Requests and registry documents are pydantic models so they validate at the
boundary.  ``ProcessOutcome`` is a frozen dataclass produced once per
generator invocation.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

U64_MAX = 2**64 - 1

REGISTRY_VERSION = "1.0.0"


def utc_now() -> str:
    """Current UTC time as an ISO-8601 string."""
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class DeploymentMode(str, Enum):
    """How the generator ships: workspace script + runtime, or bundled binary."""
    DEVELOPMENT = "development"
    PACKAGED = "packaged"


class GenerationMode(str, Enum):
    """Generation strategy.  Only seed-driven procedural generation exists."""
    PROCEDURAL = "procedural"


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------

STACK_FIELDS: tuple[str, ...] = (
    "archetype",
    "language",
    "framework",
    "database",
    "packaging",
    "cicd",
)

ENRICHMENT_FLAGS: tuple[str, ...] = (
    "cicd",
    "release",
    "fill_logic",
    "tests",
    "docker_prod",
    "linting",
    "env_files",
    "docs",
)


class StackConstraints(BaseModel):
    """Optional technology choices forwarded verbatim to the generator."""
    archetype: Optional[str] = None
    language: Optional[str] = None
    framework: Optional[str] = None
    database: Optional[str] = None
    packaging: Optional[str] = None
    cicd: Optional[str] = None

    def present(self) -> list[tuple[str, str]]:
        """Return ``(field, value)`` pairs for set fields in flag order."""
        pairs: list[tuple[str, str]] = []
        for name in STACK_FIELDS:
            value = getattr(self, name)
            if value is not None:
                pairs.append((name, value))
        return pairs


class EnrichmentConfig(BaseModel):
    """Second-pass enrichment settings.

    Each sub-flag is tri-state: ``None`` defers to the depth preset inside
    the generator, ``False`` disables it, ``True`` is accepted but emits
    nothing.  Accepts camelCase keys (``fillLogic``) from UI callers.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    enabled: bool = False
    depth: str = Field(default="standard", description="minimal | standard | full")
    cicd: Optional[bool] = None
    release: Optional[bool] = None
    fill_logic: Optional[bool] = None
    tests: Optional[bool] = None
    docker_prod: Optional[bool] = None
    linting: Optional[bool] = None
    env_files: Optional[bool] = None
    docs: Optional[bool] = None


class GenerationRequest(BaseModel):
    """A generation (or preview) request coming from the UI layer."""
    mode: GenerationMode = GenerationMode.PROCEDURAL
    seed: Optional[int] = Field(default=None, ge=0, le=U64_MAX)
    stack: Optional[StackConstraints] = None
    output_path: str = Field(default="", description="Destination, absolute or relative")
    enrichment: Optional[EnrichmentConfig] = None

    @model_validator(mode="after")
    def _seed_required_for_procedural(self) -> "GenerationRequest":
        if self.mode is GenerationMode.PROCEDURAL and self.seed is None:
            raise ValueError("Seed is required for procedural generation")
        return self


# ---------------------------------------------------------------------------
# Result models
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ProcessOutcome:
    """Captured result of one generator process run."""

    success: bool
    stdout: str = ""
    stderr: str = ""
    exit_code: int | None = None
    duration_ms: int = 0
    timed_out: bool = False


class GenerationResult(BaseModel):
    """Outcome of a generation request, returned to the caller unchanged."""
    model_config = ConfigDict(frozen=True)

    success: bool
    message: str = ""
    files_generated: list[str] = Field(default_factory=list)
    output_path: str = ""
    duration_ms: int = 0


class PreviewResult(BaseModel):
    """In-memory file manifest produced by a preview run."""
    model_config = ConfigDict(frozen=True)

    success: bool
    message: str = ""
    files: dict[str, str] = Field(default_factory=dict)
    stack: Optional[dict[str, Any]] = None
    seed: Optional[int] = None
    duration_ms: int = 0


# ---------------------------------------------------------------------------
# Registry models
# ---------------------------------------------------------------------------

def derive_tags(stack: Any) -> list[str]:
    """Collect language, framework and archetype strings from *stack*, in that order."""
    if not isinstance(stack, dict):
        return []
    tags: list[str] = []
    for key in ("language", "framework", "archetype"):
        value = stack.get(key)
        if isinstance(value, str):
            tags.append(value)
    return tags


class SeedEntry(BaseModel):
    """A validated seed with the stack and file list it produced.

    Unknown keys from older registry writers are kept so rewriting the
    registry never drops them.
    """
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    seed: int = Field(..., ge=0, le=U64_MAX)
    stack: Any = Field(default_factory=dict)
    files: list[str] = Field(default_factory=list)
    validated_at: str = Field(
        default_factory=utc_now,
        validation_alias=AliasChoices("validated_at", "validatedAt"),
    )
    tags: list[str] = Field(default_factory=list)

    @classmethod
    def from_preview(cls, preview: PreviewResult) -> "SeedEntry":
        """Build an entry from a successful preview."""
        stack = preview.stack or {}
        return cls(
            seed=preview.seed or 0,
            stack=stack,
            files=list(preview.files.keys()),
            validated_at=utc_now(),
            tags=derive_tags(stack),
        )


class RegistryData(BaseModel):
    """The persisted registry document."""
    model_config = ConfigDict(populate_by_name=True)

    version: str = REGISTRY_VERSION
    generated_at: str = Field(
        default_factory=utc_now,
        validation_alias=AliasChoices("generated_at", "generatedAt"),
    )
    total_entries: int = Field(
        default=0,
        ge=0,
        validation_alias=AliasChoices("total_entries", "totalEntries"),
    )
    entries: list[SeedEntry] = Field(default_factory=list)

    def seeds(self) -> set[int]:
        """Seed values already present."""
        return {entry.seed for entry in self.entries}
