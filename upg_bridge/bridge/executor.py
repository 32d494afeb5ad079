"""Generator process execution.

Spawns the generator, waits for it under a hard timeout and captures both
output streams whole.  A non-zero exit is reported in the outcome, not
raised; only a failure to spawn raises.
"""

from __future__ import annotations

import asyncio
import os
import time
from pathlib import Path

from ..errors import SpawnError
from ..models import ProcessOutcome

# Colour codes and spinner escapes would otherwise corrupt captured stdout.
NON_INTERACTIVE_ENV: dict[str, str] = {
    "NO_COLOR": "1",
    "TERM": "dumb",
}


def _decode(data: bytes | None) -> str:
    return (data or b"").decode("utf-8", errors="replace")


class ProcessExecutor:
    """Runs one command to completion and returns a :class:`ProcessOutcome`."""

    def __init__(self, timeout_seconds: float = 300.0, kill_grace_seconds: float = 10.0):
        self.timeout_seconds = timeout_seconds
        self.kill_grace_seconds = kill_grace_seconds

    async def run(
        self,
        executable: str,
        args: list[str],
        working_dir: str | Path | None = None,
    ) -> ProcessOutcome:
        """Execute *executable* with *args* in *working_dir*.

        Returns:
            The captured outcome.  On timeout the child is killed and the
            outcome carries ``timed_out=True`` with an explanatory stderr line.

        Raises:
            SpawnError: If the executable is missing or not permitted to run.
        """
        env = {**os.environ, **NON_INTERACTIVE_ENV}
        command_str = " ".join([executable, *args])
        start_time = time.monotonic()

        try:
            process = await asyncio.create_subprocess_exec(
                executable,
                *args,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=str(working_dir) if working_dir else None,
                env=env,
            )
        except FileNotFoundError as exc:
            raise SpawnError(
                f"Executable not found: '{executable}' (command: {command_str}, "
                f"working dir: {working_dir}): {exc}",
                executable=executable,
                args=args,
            ) from exc
        except PermissionError as exc:
            raise SpawnError(
                f"Permission denied executing '{executable}' (command: {command_str}): {exc}",
                executable=executable,
                args=args,
            ) from exc
        except OSError as exc:
            raise SpawnError(
                f"Failed to spawn '{executable}' (command: {command_str}): {exc}",
                executable=executable,
                args=args,
            ) from exc

        try:
            stdout_bytes, stderr_bytes = await asyncio.wait_for(
                process.communicate(), timeout=self.timeout_seconds
            )
        except asyncio.CancelledError:
            # An aborted request must not leave the generator running.
            try:
                process.kill()
            except ProcessLookupError:
                pass
            raise
        except asyncio.TimeoutError:
            process.kill()
            stdout_bytes, stderr_bytes = b"", b""
            try:
                stdout_bytes, stderr_bytes = await asyncio.wait_for(
                    process.communicate(), timeout=self.kill_grace_seconds
                )
            except asyncio.TimeoutError:
                pass
            stderr_text = _decode(stderr_bytes).rstrip("\n")
            timeout_line = f"Generator timed out after {self.timeout_seconds:g}s: {command_str}"
            return ProcessOutcome(
                success=False,
                stdout=_decode(stdout_bytes),
                stderr=f"{stderr_text}\n{timeout_line}" if stderr_text else timeout_line,
                exit_code=None,
                duration_ms=int((time.monotonic() - start_time) * 1000),
                timed_out=True,
            )

        exit_code = process.returncode
        return ProcessOutcome(
            success=exit_code == 0,
            stdout=_decode(stdout_bytes),
            stderr=_decode(stderr_bytes),
            exit_code=exit_code,
            duration_ms=int((time.monotonic() - start_time) * 1000),
        )
