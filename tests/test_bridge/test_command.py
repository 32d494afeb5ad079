"""Unit tests for generator command resolution (upg_bridge.bridge.command).

Tests cover:
- HostPlatform normalisation and target triples
- Packaged binary naming (with .exe on Windows)
- Development mode (entry point present / missing)
- Packaged mode (root candidate, binaries/ candidate, missing everywhere)
"""

from __future__ import annotations

from pathlib import Path

import pytest

from upg_bridge.bridge.command import CommandResolver, HostPlatform, ResolvedCommand
from upg_bridge.errors import EnvironmentFault, PackagingError
from upg_bridge.models import DeploymentMode

LINUX = HostPlatform(os="linux", arch="x86_64")
WINDOWS = HostPlatform(os="windows", arch="x86_64")
MAC_ARM = HostPlatform(os="macos", arch="aarch64")


def _packaged(resource_root: Path, host: HostPlatform = LINUX) -> CommandResolver:
    return CommandResolver(
        mode=DeploymentMode.PACKAGED,
        workspace_root=resource_root / "unused",
        resource_root=resource_root,
        host=host,
    )


# ---------------------------------------------------------------------------
# HostPlatform
# ---------------------------------------------------------------------------


class TestHostPlatform:
    @pytest.mark.unit
    @pytest.mark.parametrize("system,machine,expected", [
        ("Linux", "x86_64", HostPlatform("linux", "x86_64")),
        ("Darwin", "arm64", HostPlatform("macos", "aarch64")),
        ("Windows", "AMD64", HostPlatform("windows", "x86_64")),
    ])
    def test_from_names(self, system: str, machine: str, expected: HostPlatform):
        assert HostPlatform.from_names(system, machine) == expected

    @pytest.mark.unit
    @pytest.mark.parametrize("host,triple", [
        (LINUX, "x86_64-unknown-linux-gnu"),
        (MAC_ARM, "aarch64-apple-darwin"),
        (WINDOWS, "x86_64-pc-windows-msvc"),
    ])
    def test_target_triple(self, host: HostPlatform, triple: str):
        assert host.target_triple == triple

    @pytest.mark.unit
    def test_unsupported_platform(self):
        with pytest.raises(EnvironmentFault, match="No packaged generator"):
            HostPlatform.from_names("FreeBSD", "riscv64").target_triple

    @pytest.mark.unit
    def test_detect_returns_normalised_host(self):
        host = HostPlatform.detect()
        assert host.os == host.os.lower()
        assert host.arch == host.arch.lower()


# ---------------------------------------------------------------------------
# ResolvedCommand
# ---------------------------------------------------------------------------


class TestResolvedCommand:
    @pytest.mark.unit
    def test_argv(self):
        cmd = ResolvedCommand(executable="node", base_args=["cli.js"])
        assert cmd.argv(["seed", "1"]) == ["node", "cli.js", "seed", "1"]


# ---------------------------------------------------------------------------
# Development mode
# ---------------------------------------------------------------------------


class TestDevelopmentMode:
    @pytest.mark.unit
    def test_runs_entry_through_launcher(self, tmp_path: Path):
        entry = tmp_path / "packages" / "cli" / "dist" / "bin" / "upg.js"
        entry.parent.mkdir(parents=True)
        entry.write_text("// cli")

        resolver = CommandResolver(DeploymentMode.DEVELOPMENT, tmp_path, tmp_path / "res", host=LINUX)
        cmd = resolver.resolve()
        assert cmd.executable == "node"
        assert cmd.base_args == [str(entry)]
        assert cmd.working_dir == tmp_path

    @pytest.mark.unit
    def test_missing_entry_asks_for_build(self, tmp_path: Path):
        resolver = CommandResolver(DeploymentMode.DEVELOPMENT, tmp_path, tmp_path, host=LINUX)
        with pytest.raises(EnvironmentFault, match="Build the CLI package first"):
            resolver.resolve()

    @pytest.mark.unit
    def test_custom_launcher_and_entry(self, tmp_path: Path):
        (tmp_path / "gen.py").write_text("")
        resolver = CommandResolver(
            DeploymentMode.DEVELOPMENT,
            tmp_path,
            tmp_path,
            dev_entry_point="gen.py",
            runtime_launcher="python3",
            host=LINUX,
        )
        cmd = resolver.resolve()
        assert cmd.argv(["preview", "3"]) == ["python3", str(tmp_path / "gen.py"), "preview", "3"]


# ---------------------------------------------------------------------------
# Packaged mode
# ---------------------------------------------------------------------------


class TestPackagedMode:
    @pytest.mark.unit
    def test_binary_name(self, tmp_path: Path):
        assert _packaged(tmp_path).binary_name() == "upg-x86_64-unknown-linux-gnu"
        assert _packaged(tmp_path, WINDOWS).binary_name() == "upg-x86_64-pc-windows-msvc.exe"

    @pytest.mark.unit
    def test_candidates_order(self, tmp_path: Path):
        name = "upg-aarch64-apple-darwin"
        assert _packaged(tmp_path, MAC_ARM).candidates() == [
            tmp_path / name,
            tmp_path / "binaries" / name,
        ]

    @pytest.mark.unit
    def test_binary_in_resource_root(self, tmp_path: Path):
        binary = tmp_path / "upg-x86_64-unknown-linux-gnu"
        binary.write_text("bin")
        cmd = _packaged(tmp_path).resolve()
        assert cmd.executable == str(binary)
        assert cmd.base_args == []
        assert cmd.working_dir == tmp_path

    @pytest.mark.unit
    def test_binary_in_binaries_subdir(self, tmp_path: Path):
        binary = tmp_path / "binaries" / "upg-x86_64-unknown-linux-gnu"
        binary.parent.mkdir()
        binary.write_text("bin")
        assert _packaged(tmp_path).resolve().executable == str(binary)

    @pytest.mark.unit
    def test_root_candidate_preferred(self, tmp_path: Path):
        (tmp_path / "binaries").mkdir()
        (tmp_path / "binaries" / "upg-x86_64-unknown-linux-gnu").write_text("b")
        (tmp_path / "upg-x86_64-unknown-linux-gnu").write_text("a")
        assert _packaged(tmp_path).resolve().executable == str(tmp_path / "upg-x86_64-unknown-linux-gnu")

    @pytest.mark.unit
    def test_missing_binary_lists_candidates(self, tmp_path: Path):
        with pytest.raises(PackagingError) as exc_info:
            _packaged(tmp_path).resolve()
        assert exc_info.value.candidates == _packaged(tmp_path).candidates()
        assert "upg-x86_64-unknown-linux-gnu" in str(exc_info.value)

    @pytest.mark.unit
    def test_packaging_error_is_environment_fault(self, tmp_path: Path):
        with pytest.raises(EnvironmentFault):
            _packaged(tmp_path).resolve()

    @pytest.mark.unit
    def test_unsupported_host(self, tmp_path: Path):
        resolver = _packaged(tmp_path, HostPlatform("linux", "mips"))
        with pytest.raises(EnvironmentFault, match="linux-mips"):
            resolver.resolve()
