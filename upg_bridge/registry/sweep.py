"""Seed sweeps.

Previews a contiguous range of seeds and records the ones that validate.
Previews may run on a bounded worker pool, but the registry is merged once,
at the end of the range, in a single locked write.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field

from ..bridge.client import GeneratorBridge
from ..models import U64_MAX, RegistryData, SeedEntry, StackConstraints
from ..utils import console, create_progress, print_summary_table
from .store import SeedRegistry


@dataclass
class SweepReport:
    """What a sweep found and what it added to the registry."""

    start_seed: int
    count: int
    entries: list[SeedEntry] = field(default_factory=list)
    failed: dict[int, str] = field(default_factory=dict)
    inserted: list[int] = field(default_factory=list)
    registry: RegistryData | None = None

    def summary(self) -> dict[str, str]:
        end = self.start_seed + self.count - 1 if self.count else self.start_seed
        return {
            "Seeds": f"{self.start_seed}..{end}",
            "Validated": str(len(self.entries)),
            "Failed": str(len(self.failed)),
            "New registry entries": str(len(self.inserted)),
            "Registry total": str(self.registry.total_entries if self.registry else 0),
        }


class Sweeper:
    """Runs preview over a seed range and folds the results into the registry."""

    def __init__(
        self,
        bridge: GeneratorBridge,
        registry: SeedRegistry,
        max_workers: int = 1,
        show_progress: bool = True,
    ):
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        self.bridge = bridge
        self.registry = registry
        self.max_workers = max_workers
        self.show_progress = show_progress

    async def run(
        self,
        count: int,
        start_seed: int = 1,
        stack: StackConstraints | None = None,
    ) -> SweepReport:
        """Preview ``count`` seeds from *start_seed* and merge the valid ones.

        Raises:
            ValueError: If the range is empty-negative or leaves the u64 space.
            EnvironmentFault, SpawnError: Propagated from the bridge; the
                registry is left untouched.
        """
        if count < 0:
            raise ValueError("count must not be negative")
        if start_seed < 0 or start_seed + max(count - 1, 0) > U64_MAX:
            raise ValueError(f"Seed range {start_seed}+{count} is outside 0..{U64_MAX}")

        seeds = [start_seed + offset for offset in range(count)]
        report = SweepReport(start_seed=start_seed, count=count)
        semaphore = asyncio.Semaphore(self.max_workers)
        aborted = asyncio.Event()

        with create_progress() as progress:
            task = progress.add_task(
                "Sweeping seeds", total=count, visible=self.show_progress
            )

            async def _preview(seed: int):
                async with semaphore:
                    # A fault in another worker stops new previews from starting.
                    if aborted.is_set():
                        return None
                    try:
                        result = await self.bridge.preview(seed, stack=stack)
                    except BaseException:
                        aborted.set()
                        raise
                progress.advance(task)
                return result

            workers = [asyncio.ensure_future(_preview(seed)) for seed in seeds]
            try:
                previews = await asyncio.gather(*workers)
            except BaseException:
                aborted.set()
                for worker in workers:
                    if not worker.done():
                        worker.cancel()
                await asyncio.gather(*workers, return_exceptions=True)
                raise

        for seed, preview in zip(seeds, previews):
            if preview.success:
                report.entries.append(SeedEntry.from_preview(preview))
            else:
                report.failed[seed] = preview.message

        report.registry, report.inserted = await asyncio.to_thread(
            self.registry.update, report.entries
        )

        if self.show_progress:
            print_summary_table(report.summary(), title="Seed Sweep")
            for seed, message in list(report.failed.items())[:5]:
                console.print(f"  [red]seed {seed}: {message[:200]}[/red]")
        return report
