"""Seed registry: persistence, search and sweeps.

Key classes:
    SeedRegistry  - load / merge / atomic save of the registry document
    Sweeper       - preview a seed range, merge the validated entries once
"""

from .remote import fetch_remote_registry, load_for_search
from .store import (
    SeedRegistry,
    load_registry,
    merge_entries,
    save_registry,
    search_entries,
)
from .sweep import SweepReport, Sweeper

__all__ = [
    "SeedRegistry",
    "load_registry",
    "merge_entries",
    "save_registry",
    "search_entries",
    "fetch_remote_registry",
    "load_for_search",
    "Sweeper",
    "SweepReport",
]
