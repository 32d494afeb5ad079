"""UPG bridge orchestrator.

Facade over the generator bridge, seed registry and settings store exposed to
the desktop UI, plus a command line for driving it directly:

    python -m upg_bridge.orchestrator generate 42 --output ./my-project
    python -m upg_bridge.orchestrator preview 42 --language python
    python -m upg_bridge.orchestrator sweep --count 20 --start-seed 100
    python -m upg_bridge.orchestrator seeds
    python -m upg_bridge.orchestrator search "py api" --tags fastapi
"""

from __future__ import annotations

import asyncio
import json
import sys
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from .bridge.client import GeneratorBridge
from .bridge.command import CommandResolver, HostPlatform
from .bridge.executor import ProcessExecutor
from .config import BridgeConfig
from .errors import BridgeError
from .models import (
    EnrichmentConfig,
    GenerationRequest,
    GenerationResult,
    PreviewResult,
    ProcessOutcome,
    SeedEntry,
    StackConstraints,
)
from .paths import resolve_output_path
from .registry.remote import RegistrySource, load_for_search
from .registry.store import SeedRegistry, search_entries
from .registry.sweep import Sweeper
from .settings import SettingsStore
from .utils import console, parse_seed, print_error, print_success


class Orchestrator:
    """Entry point for every request the UI layer can make.

    Attributes:
        config: Bridge configuration.
        bridge: Generator bridge for generate / preview.
        registry: Seed registry at ``config.registry_path``.
        settings: Flat settings store.
    """

    def __init__(
        self,
        config: BridgeConfig,
        host: HostPlatform | None = None,
        executor: ProcessExecutor | None = None,
        verbose: bool = True,
    ) -> None:
        self.config = config
        self.verbose = verbose
        self.resolver = CommandResolver(
            mode=config.deployment_mode,
            workspace_root=config.workspace_root,
            resource_root=config.resource_root,
            dev_entry_point=config.dev_entry_point,
            runtime_launcher=config.runtime_launcher,
            binary_stem=config.binary_stem,
            host=host,
        )
        self.executor = executor or ProcessExecutor(timeout_seconds=config.generator_timeout)
        self.bridge = GeneratorBridge(
            self.resolver,
            executor=self.executor,
            home_provider=config.home_provider,
            verbose=verbose,
        )
        self.registry = SeedRegistry(config.registry_path, config.registry_lock_path)
        self.settings = SettingsStore(config.resolved_settings_path)

    # ------------------------------------------------------------------
    # Generation
    # ------------------------------------------------------------------

    async def generate_project(self, request: GenerationRequest | dict[str, Any]) -> GenerationResult:
        """Generate a project on disk.

        Raises:
            ValidationError: The request is malformed (e.g. no seed).
            BridgeError: Environment or spawn fault.
        """
        req = GenerationRequest.model_validate(request)
        return await self.bridge.generate(req)

    async def preview_generation(self, request: GenerationRequest | dict[str, Any]) -> PreviewResult:
        """Preview a project's files without writing them."""
        req = GenerationRequest.model_validate(request)
        return await self.bridge.preview(req.seed, stack=req.stack, enrichment=req.enrichment)

    # ------------------------------------------------------------------
    # Registry
    # ------------------------------------------------------------------

    def get_seeds(self) -> list[SeedEntry]:
        """Entries currently recorded in the registry."""
        return self.registry.entries()

    async def run_sweeper(
        self,
        count: int,
        start_seed: int | None = None,
        stack: StackConstraints | None = None,
    ) -> list[SeedEntry]:
        """Preview ``count`` seeds and record the validated ones.

        Returns:
            Every entry validated during this sweep, including seeds that
            were already in the registry.
        """
        sweeper = Sweeper(
            self.bridge,
            self.registry,
            max_workers=self.config.max_sweep_workers,
            show_progress=self.verbose,
        )
        report = await sweeper.run(count, start_seed=1 if start_seed is None else start_seed, stack=stack)
        return report.entries

    async def search_seeds(
        self,
        query: str = "",
        tags: list[str] | None = None,
        limit: int | None = 10,
        source: RegistrySource = "local",
    ) -> list[SeedEntry]:
        """Search local or published registry entries."""
        data = await load_for_search(self.registry, self.config.remote_registry_url, source=source)
        return search_entries(data.entries, query, tags, limit)

    # ------------------------------------------------------------------
    # Raw command passthrough
    # ------------------------------------------------------------------

    def _working_dir(self, working_dir: str | None) -> Path:
        if working_dir:
            return Path(working_dir)
        return resolve_output_path(".", self.config.home_provider)

    async def execute_cli(
        self, command: str, args: list[str], working_dir: str | None = None
    ) -> ProcessOutcome:
        """Run an arbitrary command; the working directory defaults to home."""
        return await self.executor.run(command, args, self._working_dir(working_dir))

    async def execute_generator_cli(
        self, args: list[str], working_dir: str | None = None
    ) -> ProcessOutcome:
        """Run the generator itself with caller-supplied arguments."""
        command = self.resolver.resolve()
        return await self.executor.run(
            command.executable, [*command.base_args, *args], self._working_dir(working_dir)
        )

    # ------------------------------------------------------------------
    # Settings
    # ------------------------------------------------------------------

    def get_setting(self, key: str, default: Any = None) -> Any:
        return self.settings.get(key, default)

    def set_setting(self, key: str, value: Any) -> dict[str, Any]:
        return self.settings.set(key, value)

    def get_settings(self) -> dict[str, Any]:
        return self.settings.get_all()


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------


def _seed_arg(text: str) -> int:
    import argparse

    try:
        return parse_seed(text)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from None


def _add_stack_options(parser: Any) -> None:
    for name in ("archetype", "language", "framework", "database", "packaging", "cicd"):
        parser.add_argument(f"--{name}", default=None, help=f"Force a specific {name}")


def _stack_from_args(args: Any) -> StackConstraints | None:
    stack = StackConstraints(
        archetype=args.archetype,
        language=args.language,
        framework=args.framework,
        database=args.database,
        packaging=args.packaging,
        cicd=args.cicd,
    )
    return stack if stack.present() else None


def _enrichment_from_args(args: Any) -> EnrichmentConfig | None:
    if not args.enrich:
        return None
    overrides = {name: False for name in args.no_enrich or []}
    return EnrichmentConfig(enabled=True, depth=args.enrich_depth, **overrides)


def _emit(data: Any) -> None:
    console.print_json(json.dumps(data, default=str))


async def _dispatch(orchestrator: Orchestrator, args: Any) -> int:
    if args.command == "generate":
        result = await orchestrator.generate_project(
            GenerationRequest(
                seed=args.seed,
                output_path=args.output,
                stack=_stack_from_args(args),
                enrichment=_enrichment_from_args(args),
            )
        )
        if args.json:
            _emit(result.model_dump())
        return 0 if result.success else 1

    if args.command == "preview":
        preview = await orchestrator.preview_generation(
            GenerationRequest(seed=args.seed, stack=_stack_from_args(args))
        )
        if args.json:
            _emit(preview.model_dump())
        elif preview.success:
            print_success(f"Seed {args.seed}: {len(preview.files)} files")
            for path in sorted(preview.files):
                console.print(f"  {path}")
        else:
            print_error(f"Seed {args.seed}: {preview.message}")
        return 0 if preview.success else 1

    if args.command == "sweep":
        entries = await orchestrator.run_sweeper(
            args.count, start_seed=args.start_seed, stack=_stack_from_args(args)
        )
        if args.json:
            _emit([entry.model_dump() for entry in entries])
        return 0

    if args.command == "seeds":
        entries = orchestrator.get_seeds()
        if args.json:
            _emit([entry.model_dump() for entry in entries])
        else:
            for entry in entries:
                console.print(f"  [cyan]{entry.seed}[/cyan]  {' + '.join(entry.tags)}")
        return 0

    if args.command == "search":
        tags = [t.strip() for t in args.tags.split(",")] if args.tags else []
        entries = await orchestrator.search_seeds(
            args.query, tags=tags, limit=args.limit, source=args.source
        )
        if args.json:
            _emit([entry.model_dump() for entry in entries])
        else:
            if not entries:
                console.print("[dim]No matching seeds.[/dim]")
            for entry in entries:
                console.print(f"  [cyan]{entry.seed}[/cyan]  {' + '.join(entry.tags)}")
        return 0

    raise ValueError(f"Unknown command: {args.command}")


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for ``python -m upg_bridge.orchestrator``."""
    import argparse

    parser = argparse.ArgumentParser(
        description="UPG bridge -- drive the procedural project generator",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  python -m upg_bridge.orchestrator generate 42 -o ./my-project\n"
            "  python -m upg_bridge.orchestrator sweep --count 20 --start-seed 100\n"
        ),
    )
    parser.add_argument("--config", default=None, help="JSON config file (default: environment)")
    parser.add_argument("--json", action="store_true", help="Print machine-readable JSON")
    sub = parser.add_subparsers(dest="command", required=True)

    gen = sub.add_parser("generate", help="Generate a project from a seed")
    gen.add_argument("seed", type=_seed_arg)
    gen.add_argument("--output", "-o", required=True, help="Output directory")
    gen.add_argument("--enrich", action="store_true", help="Enable the enrichment pass")
    gen.add_argument("--enrich-depth", default="standard", choices=["minimal", "standard", "full"])
    gen.add_argument(
        "--no-enrich",
        action="append",
        choices=["cicd", "release", "fill_logic", "tests", "docker_prod", "linting", "env_files", "docs"],
        help="Disable one enrichment step (repeatable)",
    )
    _add_stack_options(gen)

    prev = sub.add_parser("preview", help="Preview a seed's files without writing")
    prev.add_argument("seed", type=_seed_arg)
    _add_stack_options(prev)

    sweep = sub.add_parser("sweep", help="Preview a seed range and record valid seeds")
    sweep.add_argument("--count", "-c", type=int, default=5)
    sweep.add_argument("--start-seed", type=_seed_arg, default=None)
    _add_stack_options(sweep)

    sub.add_parser("seeds", help="List seeds recorded in the registry")

    search = sub.add_parser("search", help="Search the seed registry")
    search.add_argument("query", nargs="?", default="")
    search.add_argument("--tags", "-t", default=None, help="Comma-separated tags")
    search.add_argument("--limit", "-l", type=int, default=10)
    search.add_argument("--source", choices=["local", "remote", "auto"], default="local")

    args = parser.parse_args(argv)

    try:
        config = BridgeConfig.load(Path(args.config)) if args.config else BridgeConfig.from_env()
        orchestrator = Orchestrator(config, verbose=not args.json)
        exit_code = asyncio.run(_dispatch(orchestrator, args))
    except (BridgeError, ValidationError, ValueError, OSError) as exc:
        print_error(f"Error: {exc}")
        sys.exit(1)

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
