"""End-to-end generation and sweep tests against a stub generator process.

The stub is a Python script run through the real ProcessExecutor, so these
tests exercise command resolution, spawning, output capture, interpretation
and registry persistence together.
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from upg_bridge.config import BridgeConfig
from upg_bridge.models import SeedEntry
from upg_bridge.orchestrator import Orchestrator

JSON_SUCCESS = """
os.makedirs(output, exist_ok=True)
for name in ("a.txt", "b.txt"):
    with open(os.path.join(output, name), "w") as fh:
        fh.write(name)
print("Generating project...")
print(json.dumps({"success": True, "files_generated": ["a.txt", "b.txt"]}))
"""

STDERR_FAILURE = """
sys.stderr.write("error: missing dep\\nfatal: aborting\\n")
sys.exit(1)
"""

SILENT_SUCCESS = """
os.makedirs(os.path.join(output, "src"), exist_ok=True)
with open(os.path.join(output, "src", "app.py"), "w") as fh:
    fh.write("app")
with open(os.path.join(output, "pyproject.toml"), "w") as fh:
    fh.write("[project]")
print("done")
"""

PREVIEW_SKIPS_101 = """
if seed == 101:
    sys.stderr.write("Validation failed for seed 101\\n")
    sys.exit(1)
print(json.dumps({
    "success": True,
    "data": {
        "files": {"README.md": "# %d" % seed, "main.go": "package main"},
        "stack": {"archetype": "cli", "language": "go", "framework": "cobra"},
        "seed": seed,
    },
    "durationMs": 3,
}))
"""

SLOW = """
import time
time.sleep(30)
"""


@pytest.fixture
def orchestrator(bridge_config: BridgeConfig) -> Orchestrator:
    return Orchestrator(bridge_config, verbose=False)


class TestGenerationEndToEnd:
    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_json_success(self, orchestrator, write_generator, home_dir: Path):
        write_generator(JSON_SUCCESS)
        result = await orchestrator.generate_project({"seed": 42, "output_path": "out"})

        assert result.success is True
        assert result.files_generated == ["a.txt", "b.txt"]
        assert result.output_path == str(home_dir / "out")
        assert (home_dir / "out" / "a.txt").read_text() == "a.txt"

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_stderr_failure(self, orchestrator, write_generator):
        write_generator(STDERR_FAILURE)
        result = await orchestrator.generate_project({"seed": 42, "output_path": "out"})

        assert result.success is False
        assert result.message == "fatal: aborting"
        assert result.files_generated == []

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_silent_success_enumerates_output(self, orchestrator, write_generator, home_dir: Path):
        write_generator(SILENT_SUCCESS)
        result = await orchestrator.generate_project({"seed": 9, "output_path": str(home_dir / "abs")})

        assert result.success is True
        assert result.files_generated == ["pyproject.toml", "src/app.py"]

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_timeout(self, bridge_config: BridgeConfig, write_generator):
        write_generator(SLOW)
        config = bridge_config.model_copy(update={"generator_timeout": 1})
        orchestrator = Orchestrator(config, verbose=False)

        result = await orchestrator.generate_project({"seed": 1, "output_path": "slow"})
        assert result.success is False
        assert "timed out after 1s" in result.message


class TestSweepEndToEnd:
    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_sweep_records_valid_seeds(self, orchestrator, write_generator):
        write_generator(PREVIEW_SKIPS_101)
        orchestrator.registry.update([
            SeedEntry(seed=7, stack={"language": "rust"}, files=["Cargo.toml"]),
        ])

        entries = await orchestrator.run_sweeper(3, start_seed=100)

        assert [e.seed for e in entries] == [100, 102]
        assert entries[0].tags == ["go", "cobra", "cli"]
        document = json.loads(orchestrator.registry.path.read_text(encoding="utf-8"))
        assert [e["seed"] for e in document["entries"]] == [7, 100, 102]
        assert document["total_entries"] == 3
        assert document["entries"][0]["files"] == ["Cargo.toml"]

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_sweep_rerun_is_stable(self, orchestrator, write_generator):
        write_generator(PREVIEW_SKIPS_101)
        await orchestrator.run_sweeper(3, start_seed=100)
        first = [e.seed for e in orchestrator.get_seeds()]

        await orchestrator.run_sweeper(3, start_seed=100)
        second = orchestrator.registry.load()

        assert [e.seed for e in second.entries] == first == [100, 102]
        assert second.total_entries == 2

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_parallel_sweep_single_merge(self, bridge_config: BridgeConfig, write_generator):
        write_generator(PREVIEW_SKIPS_101)
        config = bridge_config.model_copy(update={"max_sweep_workers": 3})
        orchestrator = Orchestrator(config, verbose=False)

        entries = await orchestrator.run_sweeper(5, start_seed=99)
        assert [e.seed for e in entries] == [99, 100, 102, 103]
        assert orchestrator.registry.load().total_entries == 4
