"""
Discovery of unprocessed recordings.

A recording is unprocessed for as long as its sidecar exists: cleanup only
starts once the output is in the library and deletes the sidecar before the
media, so rescanning after a crash finds exactly the recordings that have not
reached the library yet.
"""
import os
from pathlib import Path
from typing import Iterator

from tivoplex.utils import SIDECAR_SUFFIXES, LogLevel, file_util, logger


def is_sidecar_name(name: str) -> bool:
    return not file_util.is_dot_file(name) and name.endswith(SIDECAR_SUFFIXES)


def _walk(directory: Path) -> Iterator[Path]:
    try:
        with os.scandir(directory) as it:
            entries = list(it)
    except OSError as e:
        logger.log("scan.unreadable", LogLevel.WARN, path=str(directory), error=str(e))
        return
    for entry in entries:
        path = Path(entry.path)
        if entry.is_dir(follow_symlinks=False):
            yield from _walk(path)
        elif is_sidecar_name(entry.name):
            yield path


def iter_sidecar_files(segment_root: Path | str) -> Iterator[Path]:
    """
    Lazily yield sidecar paths under ``segment_root``, depth first, in directory order.

    Only one directory listing per level of depth is held at a time. A directory
    that cannot be listed is logged and skipped along with everything below it.
    """
    segment_root = Path(segment_root)
    if not segment_root.is_dir():
        logger.log("scan.missing_root", LogLevel.WARN, root=str(segment_root))
        return
    yield from _walk(segment_root)
