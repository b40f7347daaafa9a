"""
Constants, configuration, logging and system helpers for the pipeline.
"""

from .constants import (
    ARTIFACT_SUFFIXES,
    COMSKIP_PROGRESS_REGEX,
    DEGENERATE_EDL_KINDS,
    DOT_FILE_PREFIX,
    EDL_SUFFIX,
    MPG_SUFFIX,
    OUTPUT_EXTENSION,
    PARTIAL_SUFFIX,
    SCRATCH_DIR_SUFFIX,
    SEASON_EPISODE_REGEX,
    SIDECAR_DELIMITER,
    SIDECAR_SUFFIX,
    SIDECAR_SUFFIXES,
    TRANSCODE_PROGRESS_REGEX,
    TS_SUFFIX,
)
from .logger import LogLevel

__all__ = [
    "SIDECAR_SUFFIX",
    "SIDECAR_SUFFIXES",
    "TS_SUFFIX",
    "MPG_SUFFIX",
    "OUTPUT_EXTENSION",
    "SIDECAR_DELIMITER",
    "DOT_FILE_PREFIX",
    "EDL_SUFFIX",
    "ARTIFACT_SUFFIXES",
    "SCRATCH_DIR_SUFFIX",
    "PARTIAL_SUFFIX",
    "SEASON_EPISODE_REGEX",
    "COMSKIP_PROGRESS_REGEX",
    "TRANSCODE_PROGRESS_REGEX",
    "DEGENERATE_EDL_KINDS",
    "LogLevel",
]
