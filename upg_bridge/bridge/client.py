"""Generator bridge: the generate / preview request paths.

Ties the pieces together in request order: resolve the destination, resolve
the command, build arguments, run the process and interpret its output.
Each call runs to completion before returning.
"""

from __future__ import annotations

import time
from pathlib import Path

from rich.panel import Panel
from rich.table import Table

from ..models import (
    EnrichmentConfig,
    GenerationRequest,
    GenerationResult,
    PreviewResult,
    ProcessOutcome,
    StackConstraints,
)
from ..paths import HomeProvider, resolve_output_path
from ..utils import console, format_duration
from .arguments import GENERATE_ACTION, PREVIEW_ACTION, build_arguments
from .command import CommandResolver
from .executor import ProcessExecutor
from .interpreter import ResponseInterpreter


def _elapsed_ms(start: float) -> int:
    return int((time.monotonic() - start) * 1000)


class GeneratorBridge:
    """Drives the external generator for generation and preview requests."""

    def __init__(
        self,
        resolver: CommandResolver,
        executor: ProcessExecutor | None = None,
        interpreter: ResponseInterpreter | None = None,
        home_provider: HomeProvider | None = Path.home,
        verbose: bool = True,
    ):
        self.resolver = resolver
        self.executor = executor or ProcessExecutor()
        self.interpreter = interpreter or ResponseInterpreter()
        self.home_provider = home_provider
        self.verbose = verbose

    async def generate(self, request: GenerationRequest) -> GenerationResult:
        """Materialise the project for *request* on disk.

        Raises:
            EnvironmentFault: Destination or generator cannot be resolved.
            SpawnError: The generator could not be started.
        """
        start = time.monotonic()
        output_path = resolve_output_path(request.output_path, self.home_provider)
        args = build_arguments(
            GENERATE_ACTION,
            request.seed,
            output_path=str(output_path),
            stack=request.stack,
            enrichment=request.enrichment,
        )
        outcome = await self.run_generator(args)
        result = self.interpreter.interpret_generation(
            outcome, output_path, elapsed_ms=_elapsed_ms(start)
        )
        if self.verbose:
            self._display_generation(request.seed, result)
        return result

    async def preview(
        self,
        seed: int,
        stack: StackConstraints | None = None,
        enrichment: EnrichmentConfig | None = None,
    ) -> PreviewResult:
        """Produce the in-memory file manifest for *seed* without touching disk."""
        start = time.monotonic()
        args = build_arguments(PREVIEW_ACTION, seed, stack=stack, enrichment=enrichment)
        outcome = await self.run_generator(args)
        result = self.interpreter.interpret_preview(outcome, seed, elapsed_ms=_elapsed_ms(start))
        if self.verbose and not result.success:
            console.print(f"  [dim]seed {seed}: {result.message}[/dim]")
        return result

    async def run_generator(self, args: list[str]) -> ProcessOutcome:
        """Run the resolved generator command with *args* appended."""
        command = self.resolver.resolve()
        return await self.executor.run(
            command.executable,
            [*command.base_args, *args],
            command.working_dir,
        )

    def _display_generation(self, seed: int | None, result: GenerationResult) -> None:
        table = Table(show_header=False, box=None, padding=(0, 2))
        table.add_column("Key", style="bold")
        table.add_column("Value")
        table.add_row("Seed", str(seed))
        table.add_row("Output", result.output_path)
        table.add_row("Files", str(len(result.files_generated)))
        table.add_row("Duration", format_duration(result.duration_ms))
        table.add_row("Message", result.message)

        style = "green" if result.success else "red"
        title = "Generation Succeeded" if result.success else "Generation Failed"
        console.print(Panel(table, title=title, border_style=style))
