"""UPG bridge -- generation orchestration and seed registry.

Drives the external procedural generator to preview or materialise
scaffolded projects, reconciles its output into structured results, and
records validated seeds in a JSON registry.

Quick usage::

    from upg_bridge import BridgeConfig, GenerationRequest
    from upg_bridge.orchestrator import Orchestrator

    orchestrator = Orchestrator(BridgeConfig.from_env())
    result = await orchestrator.generate_project(
        GenerationRequest(seed=42, output_path="./my-project")
    )
"""

from upg_bridge.config import BridgeConfig
from upg_bridge.errors import (
    BridgeError,
    EnvironmentFault,
    PackagingError,
    RegistryError,
    SpawnError,
)
from upg_bridge.models import (
    DeploymentMode,
    EnrichmentConfig,
    GenerationMode,
    GenerationRequest,
    GenerationResult,
    PreviewResult,
    ProcessOutcome,
    RegistryData,
    SeedEntry,
    StackConstraints,
)

__all__ = [
    "BridgeConfig",
    # Models
    "DeploymentMode",
    "GenerationMode",
    "GenerationRequest",
    "GenerationResult",
    "PreviewResult",
    "ProcessOutcome",
    "StackConstraints",
    "EnrichmentConfig",
    "SeedEntry",
    "RegistryData",
    # Errors
    "BridgeError",
    "EnvironmentFault",
    "PackagingError",
    "SpawnError",
    "RegistryError",
]
