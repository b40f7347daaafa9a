"""
Filesystem helpers shared by the scanner, relocator and cleanup agent.
"""
import os
import shutil
from pathlib import Path

from tivoplex.utils.constants import DOT_FILE_PREFIX


def strip_suffix(name: str, suffix: str) -> str | None:
    """Remove ``suffix`` from ``name``; None when the name does not end with it."""
    if not suffix or not name.endswith(suffix) or name == suffix:
        return None
    return name[: -len(suffix)]


def is_dot_file(name: str) -> bool:
    return name.startswith(DOT_FILE_PREFIX)


def remove_path(path: Path) -> bool:
    """
    Remove a file or directory tree.

    Returns False when nothing was there; other errors propagate.
    """
    try:
        if path.is_dir() and not path.is_symlink():
            shutil.rmtree(path)
        else:
            path.unlink()
    except FileNotFoundError:
        return False
    return True


def is_empty_dir(path: Path) -> bool:
    with os.scandir(path) as it:
        return next(it, None) is None
