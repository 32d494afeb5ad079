"""Shared utility functions for the UPG bridge.

Provides JSON I/O with atomic writes, an advisory file lock, seed parsing,
duration formatting, and the Rich-based console helpers every component
uses for diagnostic output.
"""

from __future__ import annotations

import json
import os
import tempfile
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.progress import BarColumn, Progress, SpinnerColumn, TextColumn, TimeElapsedColumn
from rich.table import Table

from .errors import RegistryError
from .models import U64_MAX

console = Console()

# ---------------------------------------------------------------------------
# JSON I/O
# ---------------------------------------------------------------------------


def load_json(path: str | Path) -> dict[str, Any]:
    """Load and parse a JSON file.

    Args:
        path: Path to the JSON file.

    Returns:
        Parsed dictionary.  A non-object document is wrapped as
        ``{"_root": data}``.

    Raises:
        FileNotFoundError: If the file does not exist.
        json.JSONDecodeError: If the file is not valid JSON.
    """
    raw = Path(path).read_text(encoding="utf-8")
    data = json.loads(raw)
    if not isinstance(data, dict):
        return {"_root": data}
    return data


def write_json_atomic(data: dict[str, Any] | list[Any], path: str | Path) -> Path:
    """Write pretty-printed JSON via a temp file and rename.

    Parent directories are created automatically.  Readers never observe a
    half-written document: the content lands in a sibling temp file first and
    is then moved over the target with ``os.replace``.

    Returns:
        The destination path.
    """
    file_path = Path(path)
    file_path.parent.mkdir(parents=True, exist_ok=True)
    content = json.dumps(data, indent=2, ensure_ascii=False, default=str) + "\n"

    fd, tmp_name = tempfile.mkstemp(
        dir=file_path.parent,
        prefix=f".{file_path.name}.",
        suffix=".tmp",
    )
    tmp = Path(tmp_name)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(content)
        os.replace(tmp, file_path)
    except Exception:
        tmp.unlink(missing_ok=True)
        raise
    return file_path


# ---------------------------------------------------------------------------
# File locking
# ---------------------------------------------------------------------------


IS_WINDOWS = os.name == "nt"


def _lock_fd(fd: int, blocking: bool) -> None:
    if IS_WINDOWS:
        import msvcrt

        os.lseek(fd, 0, os.SEEK_SET)
        msvcrt.locking(fd, msvcrt.LK_LOCK if blocking else msvcrt.LK_NBLCK, 1)
        return

    import fcntl

    flag = fcntl.LOCK_EX
    if not blocking:
        flag |= fcntl.LOCK_NB
    fcntl.flock(fd, flag)


def _unlock_fd(fd: int) -> None:
    if IS_WINDOWS:
        import msvcrt

        os.lseek(fd, 0, os.SEEK_SET)
        msvcrt.locking(fd, msvcrt.LK_UNLCK, 1)
        return

    import fcntl

    fcntl.flock(fd, fcntl.LOCK_UN)


class FileLock:
    """Exclusive lock on a sidecar ``.lock`` file.

    Uses ``fcntl.flock`` on POSIX and a one-byte ``msvcrt.locking`` region on
    Windows.
    """

    def __init__(self, lock_path: Path):
        self.lock_path = Path(lock_path)
        self._fd: int | None = None

    def acquire(self, blocking: bool = True) -> None:
        self.lock_path.parent.mkdir(parents=True, exist_ok=True)
        fd = os.open(self.lock_path, os.O_RDWR | os.O_CREAT, 0o666)
        try:
            _lock_fd(fd, blocking)
        except OSError as exc:
            # msvcrt reports contention as a plain OSError once its retries run out.
            os.close(fd)
            raise RegistryError(f"Another process holds {self.lock_path}") from exc
        self._fd = fd

    def release(self) -> None:
        if self._fd is None:
            return
        try:
            _unlock_fd(self._fd)
        finally:
            os.close(self._fd)
            self._fd = None


@contextmanager
def lock_file(path: Path, blocking: bool = True) -> Iterator[None]:
    """Hold :class:`FileLock` on *path* for the duration of the block."""
    lock = FileLock(path)
    lock.acquire(blocking=blocking)
    try:
        yield
    finally:
        lock.release()


# ---------------------------------------------------------------------------
# Seed parsing
# ---------------------------------------------------------------------------


def parse_seed(text: str) -> int:
    """Parse a seed typed by a user into an unsigned 64-bit integer.

    Examples::

        parse_seed("42")    -> 42
        parse_seed(" 42")   -> ValueError (surrounding whitespace)
        parse_seed("4.2")   -> ValueError
        parse_seed("0")     -> ValueError (seeds start at 1)

    Raises:
        ValueError: With a message suitable for showing to the user.
    """
    stripped = text.strip()
    if not stripped or stripped != text:
        raise ValueError("Seed must be a positive integer")
    if "." in stripped:
        raise ValueError(f"Seed must be an integer, got '{stripped}'")
    try:
        value = int(stripped, 10)
    except ValueError:
        raise ValueError("Seed must be a positive integer") from None
    if value < 1:
        raise ValueError("Seed must be a positive integer (>= 1)")
    if value > U64_MAX:
        raise ValueError(f"Seed must fit in 64 bits (1 to {U64_MAX})")
    return value


# ---------------------------------------------------------------------------
# Formatting helpers
# ---------------------------------------------------------------------------


def format_duration(milliseconds: float) -> str:
    """Format a duration in milliseconds to a human-readable string.

    Examples::

        format_duration(850)     -> "850ms"
        format_duration(3700)    -> "3.7s"
        format_duration(65200)   -> "1m 5s"
    """
    if milliseconds < 0:
        return "0ms"
    if milliseconds < 1000:
        return f"{int(milliseconds)}ms"

    seconds = milliseconds / 1000
    minutes = int(seconds // 60)
    if minutes == 0:
        return f"{seconds:.1f}s"
    return f"{minutes}m {int(seconds % 60)}s"


# ---------------------------------------------------------------------------
# Rich output helpers
# ---------------------------------------------------------------------------


def print_summary_table(data: dict[str, Any], title: str = "Summary") -> None:
    """Print a two-column key/value summary table."""
    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("Item", style="dim", no_wrap=True)
    table.add_column("Value")

    for key, value in data.items():
        table.add_row(key, str(value))

    console.print(table)


def print_success(message: str) -> None:
    """Print a green success message."""
    console.print(f"[bold green]{message}[/bold green]")


def print_error(message: str) -> None:
    """Print a red error message."""
    console.print(f"[bold red]{message}[/bold red]")


def print_warning(message: str) -> None:
    """Print a yellow warning message."""
    console.print(f"[bold yellow]{message}[/bold yellow]")


def create_progress() -> Progress:
    """Create a Rich progress bar for seed sweeps.

    Returns:
        A ``Progress`` instance suitable for use as a context manager.
    """
    return Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TextColumn("{task.completed}/{task.total}"),
        TimeElapsedColumn(),
        console=console,
    )
