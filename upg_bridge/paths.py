"""Output-path resolution and generated-file enumeration.

Relative output paths are anchored to the user's home directory rather than
the process working directory, which for a packaged desktop app is not the
user's shell cwd.
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

from .errors import EnvironmentFault

HomeProvider = Callable[[], Path]


def resolve_output_path(
    raw_path: str,
    home_dir_provider: HomeProvider | None = Path.home,
    cwd_provider: Callable[[], Path] = Path.cwd,
) -> Path:
    """Turn a user-supplied output path into an absolute location.

    Precedence:
        1. A leading ``./`` is stripped.
        2. Absolute paths are returned unchanged.
        3. Relative paths are joined onto the home directory.
        4. If the home directory is unobtainable, onto the working directory.

    Args:
        raw_path: Path as typed by the user.
        home_dir_provider: Callable returning the home directory.  ``None``
            or a provider that raises skips straight to the working directory.
        cwd_provider: Callable returning the current working directory.

    Raises:
        EnvironmentFault: If neither the home nor the working directory can
            be determined.
    """
    path_str = raw_path[2:] if raw_path.startswith("./") else raw_path
    path = Path(path_str)

    if path.is_absolute():
        return path

    if home_dir_provider is not None:
        try:
            return Path(home_dir_provider()) / path
        except (RuntimeError, OSError, KeyError):
            pass

    try:
        return Path(cwd_provider()) / path
    except OSError as exc:
        raise EnvironmentFault(f"Failed to resolve output path '{raw_path}': {exc}") from exc


def list_files(root_dir: str | Path) -> list[str]:
    """List every file under *root_dir* as a POSIX-style relative path.

    Recurses depth-first with entries visited in name order.  Missing or
    unreadable directories yield nothing rather than raising.
    """
    root = Path(root_dir)
    files: list[str] = []
    if not root.is_dir():
        return files
    _walk(root, root, files)
    return files


def _walk(root: Path, current: Path, files: list[str]) -> None:
    try:
        children = sorted(current.iterdir(), key=lambda p: p.name)
    except OSError:
        return

    for child in children:
        if child.is_dir():
            # Symlinked directories can loop back on themselves.
            if not child.is_symlink():
                _walk(root, child, files)
        elif child.is_file():
            files.append(child.relative_to(root).as_posix())
