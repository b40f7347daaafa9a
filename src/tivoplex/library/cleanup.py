"""
Removal of transient files.

Two jobs live here. ``cleanup_record`` deletes everything a finished recording
left next to the original once its output is safely in the library; each
artifact is removed independently and a failure is logged without stopping
the rest. ``sweep_segment`` is periodic housekeeping for a whole segment:
AppleDouble ``._`` files first, then any directory left empty, deepest first.
"""
import os
from pathlib import Path
from typing import Callable, List, Tuple

from tivoplex.record.core import ConversionRecord, RecordState
from tivoplex.utils import ARTIFACT_SUFFIXES, LogLevel, file_util, logger


def cleanup_actions(record: ConversionRecord) -> List[Tuple[Path, Callable[[Path], bool]]]:
    """
    (artifact, deletion action) pairs for a relocated record.

    The sidecar comes first and the original right after it: a sidecar left
    without its media would be rediscovered and fail every sweep.
    """
    paths = [record.sidecar_path, record.original_path, record.output_path]
    paths += [record.artifact_path(suffix) for suffix in ARTIFACT_SUFFIXES]
    paths.append(record.scratch_dir)
    return [(path, file_util.remove_path) for path in paths]


def cleanup_record(record: ConversionRecord) -> List[Path]:
    """Delete every transient artifact of ``record``; return the ones that could not be removed."""
    failed = []
    removed = 0
    for path, action in cleanup_actions(record):
        if path == record.original_path and record.sidecar_path in failed:
            # still discoverable, so the next sweep must find the media too
            logger.log("cleanup.original_kept", LogLevel.WARN, path=str(path))
            continue
        try:
            if action(path):
                removed += 1
        except OSError as e:
            failed.append(path)
            logger.log("cleanup.failed", LogLevel.WARN, path=str(path), error=str(e))

    record.state = RecordState.CLEANED_UP
    logger.log("cleanup.complete", LogLevel.DEBUG, cwd=str(record.cwd), removed=removed, failed=len(failed))
    return failed


def purge_dot_files(root: Path) -> int:
    removed = 0
    for dirpath, _dirnames, filenames in os.walk(root):
        for name in filenames:
            if not file_util.is_dot_file(name):
                continue
            path = Path(dirpath) / name
            try:
                path.unlink()
                removed += 1
            except OSError as e:
                logger.log("maintenance.dot_file_failed", LogLevel.WARN, path=str(path), error=str(e))
    return removed


def purge_empty_dirs(root: Path) -> int:
    """Remove empty directories below ``root``, children before parents; ``root`` itself stays."""
    removed = 0
    for dirpath, _dirnames, _filenames in os.walk(root, topdown=False):
        path = Path(dirpath)
        if path == root:
            continue
        try:
            if file_util.is_empty_dir(path):
                path.rmdir()
                removed += 1
        except OSError as e:
            logger.log("maintenance.rmdir_failed", LogLevel.WARN, path=str(path), error=str(e))
    return removed


def sweep_segment(segment_root: Path | str) -> Tuple[int, int]:
    """Purge dot files, then empty directories, under a segment root. Returns (files, dirs) removed."""
    segment_root = Path(segment_root)
    if not segment_root.is_dir():
        return 0, 0
    files = purge_dot_files(segment_root)
    dirs = purge_empty_dirs(segment_root)
    logger.log("maintenance.complete", LogLevel.DEBUG, root=str(segment_root), dot_files=files, empty_dirs=dirs)
    return files, dirs
