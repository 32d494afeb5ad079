"""Seed registry persistence.

The registry is a single JSON document holding at most one entry per seed.
It is read and rewritten whole; writes go through a temp file and rename,
and read-merge-write cycles hold an advisory lock so concurrent writers
cannot drop each other's entries.

A missing or unparsable registry reads as empty and is replaced by the next
successful write.
"""

from __future__ import annotations

import json
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from ..errors import RegistryError
from ..models import RegistryData, SeedEntry, derive_tags, utc_now
from ..utils import load_json, lock_file, print_warning, write_json_atomic

# Search terms that stand for one of several stack values.
SEARCH_ALIASES: dict[str, list[str]] = {
    "api": ["backend", "rest", "graphql"],
    "server": ["backend"],
    "frontend": ["web"],
    "ui": ["web"],
    "database": ["postgres", "mysql", "sqlite", "mongodb", "redis"],
    "db": ["postgres", "mysql", "sqlite", "mongodb", "redis"],
    "js": ["javascript"],
    "ts": ["typescript"],
    "py": ["python"],
    "rs": ["rust"],
}

SEARCHABLE_STACK_FIELDS = ("archetype", "language", "framework", "runtime", "database", "orm")


# ---------------------------------------------------------------------------
# Load / merge / save
# ---------------------------------------------------------------------------


def load_registry(path: str | Path) -> RegistryData:
    """Read the registry at *path*, or an empty one if absent or corrupt."""
    registry_path = Path(path)
    if not registry_path.is_file():
        return RegistryData()

    try:
        return RegistryData.model_validate(load_json(registry_path))
    except (OSError, json.JSONDecodeError, ValidationError) as exc:
        print_warning(f"Registry {registry_path} is unreadable ({exc}); starting empty")
        return RegistryData()


def merge_entries(existing: RegistryData, new_entries: Iterable[SeedEntry]) -> RegistryData:
    """Insert entries whose seed is not yet present.

    The first entry for a seed wins, both against the existing document and
    within *new_entries*.  Inserted entries without tags get them derived
    from their stack.  ``total_entries`` and ``generated_at`` are refreshed
    unconditionally.  *existing* is not modified.
    """
    merged = existing.model_copy(deep=True)
    seen = merged.seeds()
    for entry in new_entries:
        if entry.seed in seen:
            continue
        if not entry.tags:
            entry = entry.model_copy(update={"tags": derive_tags(entry.stack)})
        merged.entries.append(entry)
        seen.add(entry.seed)

    merged.total_entries = len(merged.entries)
    merged.generated_at = utc_now()
    return merged


def save_registry(data: RegistryData, path: str | Path) -> RegistryData:
    """Atomically write *data* as pretty-printed JSON.

    ``total_entries`` is recomputed and ``generated_at`` refreshed before
    writing; the written document is returned.

    Raises:
        RegistryError: If the file cannot be written.
    """
    document = data.model_copy(update={"total_entries": len(data.entries), "generated_at": utc_now()})
    try:
        write_json_atomic(document.model_dump(mode="json"), path)
    except OSError as exc:
        raise RegistryError(f"Failed to write registry {path}: {exc}") from exc
    return document


# ---------------------------------------------------------------------------
# Search
# ---------------------------------------------------------------------------


def _stack_values(entry: SeedEntry) -> list[str]:
    stack: Any = entry.stack if isinstance(entry.stack, dict) else {}
    return [
        stack[name].lower()
        for name in SEARCHABLE_STACK_FIELDS
        if isinstance(stack.get(name), str) and stack[name]
    ]


def entry_matches_query(entry: SeedEntry, query: str) -> bool:
    """Every term must occur in the entry's text, directly or via an alias."""
    extra_id = (entry.model_extra or {}).get("id")
    parts = [str(entry.seed), *(_stack_values(entry))]
    if isinstance(extra_id, str):
        parts.append(extra_id.lower())
    text = " ".join(parts)

    for term in query.lower().split():
        if term in text:
            continue
        aliases = SEARCH_ALIASES.get(term, [])
        if not any(alias in text for alias in aliases):
            return False
    return True


def entry_matches_tags(entry: SeedEntry, tags: Iterable[str]) -> bool:
    """Every requested tag must be one of the entry's tags or stack values."""
    available = {tag.lower() for tag in entry.tags} | set(_stack_values(entry))
    return all(tag.strip().lower() in available for tag in tags if tag.strip())


def search_entries(
    entries: Iterable[SeedEntry],
    query: str = "",
    tags: Iterable[str] | None = None,
    limit: int | None = None,
) -> list[SeedEntry]:
    """Filter *entries* by free-text *query* and required *tags*."""
    tag_list = list(tags or [])
    matches = [
        entry
        for entry in entries
        if entry_matches_query(entry, query) and entry_matches_tags(entry, tag_list)
    ]
    if limit is not None:
        return matches[: max(limit, 0)]
    return matches


# ---------------------------------------------------------------------------
# Registry facade
# ---------------------------------------------------------------------------


class SeedRegistry:
    """The registry document at a fixed path."""

    def __init__(self, path: Path, lock_path: Path | None = None):
        self.path = Path(path)
        self.lock_path = lock_path or self.path.with_name(self.path.name + ".lock")

    def load(self) -> RegistryData:
        return load_registry(self.path)

    def entries(self) -> list[SeedEntry]:
        return self.load().entries

    def update(self, new_entries: Iterable[SeedEntry]) -> tuple[RegistryData, list[int]]:
        """Merge *new_entries* into the persisted registry in one locked step.

        Returns:
            The document as written and the seeds that were newly inserted.
        """
        batch = list(new_entries)
        with lock_file(self.lock_path):
            existing = self.load()
            before = existing.seeds()
            document = save_registry(merge_entries(existing, batch), self.path)
        inserted = [e.seed for e in document.entries if e.seed not in before]
        return document, inserted

    def search(
        self,
        query: str = "",
        tags: Iterable[str] | None = None,
        limit: int | None = None,
    ) -> list[SeedEntry]:
        return search_entries(self.entries(), query, tags, limit)
