"""Shared pytest fixtures for the UPG bridge test suite.

Provides reusable fixtures for:
- A throwaway workspace / home / registry layout
- Mock subprocess helpers
- Stub generator scripts run through the current Python interpreter
- Canned generator responses
"""

from __future__ import annotations

import json
import sys
import textwrap
from pathlib import Path
from typing import Any, Callable
from unittest.mock import AsyncMock, MagicMock

import pytest

from upg_bridge.config import BridgeConfig
from upg_bridge.models import DeploymentMode

STUB_ENTRY = "generator_stub.py"


# ---------------------------------------------------------------------------
# Paths & Directories
# ---------------------------------------------------------------------------

@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """Workspace root the development-mode generator runs from."""
    root = tmp_path / "workspace"
    root.mkdir()
    return root


@pytest.fixture
def home_dir(tmp_path: Path) -> Path:
    """Stand-in for the user's home directory."""
    home = tmp_path / "home"
    home.mkdir()
    return home


@pytest.fixture
def bridge_config(workspace: Path, home_dir: Path, tmp_path: Path) -> BridgeConfig:
    """Development-mode config pointing at a stub generator in ``workspace``.

    The stub is launched with the running Python interpreter in place of
    the JavaScript runtime.
    """
    return BridgeConfig(
        deployment_mode=DeploymentMode.DEVELOPMENT,
        workspace_root=workspace,
        resource_root=tmp_path / "resources",
        dev_entry_point=STUB_ENTRY,
        runtime_launcher=sys.executable,
        home_dir=home_dir,
        registry_dir=tmp_path / "registry",
        generator_timeout=30,
    )


# ---------------------------------------------------------------------------
# Stub generator
# ---------------------------------------------------------------------------

STUB_PRELUDE = textwrap.dedent(
    """\
    import json
    import os
    import sys

    argv = sys.argv[1:]
    action = argv[0]
    seed = int(argv[1])
    output = argv[argv.index("--output") + 1] if "--output" in argv else None
    """
)


@pytest.fixture
def write_generator(workspace: Path) -> Callable[[str], Path]:
    """Install a stub generator script.

    The body runs after a prelude that parses ``action``, ``seed`` and
    ``output`` from the arguments.

    Usage:
        def test_x(write_generator):
            write_generator('print(json.dumps({"success": True}))')
    """
    def factory(body: str) -> Path:
        script = workspace / STUB_ENTRY
        script.write_text(STUB_PRELUDE + textwrap.dedent(body), encoding="utf-8")
        return script

    return factory


# ---------------------------------------------------------------------------
# Mock Subprocess (generic)
# ---------------------------------------------------------------------------

@pytest.fixture
def mock_subprocess():
    """Mock asyncio subprocess for testing command execution.

    Returns a factory that creates mock subprocess instances with configurable
    stdout, stderr, and return codes.

    Usage:
        def test_command(mock_subprocess):
            proc = mock_subprocess(stdout="output", returncode=0)
            with patch("asyncio.create_subprocess_exec", return_value=proc):
                ...
    """
    def factory(
        stdout: str | bytes = "",
        stderr: str | bytes = "",
        returncode: int = 0,
    ) -> AsyncMock:
        out = stdout if isinstance(stdout, bytes) else stdout.encode("utf-8")
        err = stderr if isinstance(stderr, bytes) else stderr.encode("utf-8")
        mock_proc = AsyncMock()
        mock_proc.communicate = AsyncMock(return_value=(out, err))
        mock_proc.returncode = returncode
        mock_proc.pid = 99999
        mock_proc.kill = MagicMock()
        mock_proc.wait = AsyncMock(return_value=returncode)
        return mock_proc

    return factory


# ---------------------------------------------------------------------------
# Canned responses
# ---------------------------------------------------------------------------

@pytest.fixture
def sample_stack() -> dict[str, Any]:
    return {
        "archetype": "backend",
        "language": "python",
        "runtime": "python3.12",
        "framework": "fastapi",
        "database": "postgres",
        "orm": "sqlalchemy",
        "packaging": "pip",
        "cicd": "github-actions",
    }


@pytest.fixture
def preview_payload(sample_stack: dict[str, Any]) -> Callable[[int], str]:
    """JSON preview response for a seed, as the generator prints it."""
    def factory(seed: int) -> str:
        return json.dumps({
            "success": True,
            "data": {
                "files": {
                    "README.md": f"# project {seed}\n",
                    "src/main.py": "print('hello')\n",
                },
                "stack": sample_stack,
                "seed": seed,
            },
            "durationMs": 12,
        })

    return factory
