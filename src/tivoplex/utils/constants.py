"""
Constants and configuration defaults for recording conversion.

This module contains the naming conventions of TiVo recordings and their
pyTivo sidecars, the artifacts produced next to a recording while it is
processed, and the environment-driven defaults for the source tree, the Plex
library and the external tools. A ``.env`` file in the working directory is
loaded before the defaults are read.
"""

import os
import re

from dotenv import load_dotenv

load_dotenv()

# Recording naming conventions
SIDECAR_SUFFIX = ".txt"
TS_SUFFIX = ".ts"
MPG_SUFFIX = ".mpg"
SIDECAR_SUFFIXES = (MPG_SUFFIX + SIDECAR_SUFFIX, TS_SUFFIX + SIDECAR_SUFFIX)
OUTPUT_EXTENSION = ".mp4"
SIDECAR_DELIMITER = " : "

# AppleDouble resource forks left behind by macOS file sharing
DOT_FILE_PREFIX = "._"

# Per-recording artifacts addressed from the base path
EDL_SUFFIX = ".edl"
ARTIFACT_SUFFIXES = (EDL_SUFFIX, ".log", ".txt", ".logo.txt")
SCRATCH_DIR_SUFFIX = "_ffmpeg"
PARTIAL_SUFFIX = ".partial"

# Regex patterns for filename and tool output parsing
SEASON_EPISODE_REGEX = re.compile(r"\b[Ss](\d+)[Ee](\d+)")
COMSKIP_PROGRESS_REGEX = re.compile(r"(\d+) frames")
TRANSCODE_PROGRESS_REGEX = re.compile(r"^(\d+(?:\.\d+)?) %")

# Edit list actions that mean "remove this range"
DEGENERATE_EDL_KINDS = {0, 3}
EDL_DEGENERATE_FRACTION = float(os.getenv("TIVOPLEX_EDL_DEGENERATE_FRACTION", "0.9"))

# Library layout
SOURCE_ROOT = os.getenv("TIVOPLEX_SOURCE_ROOT", "/Volumes/TiVo/")
LIBRARY_ROOT = os.getenv("TIVOPLEX_LIBRARY_ROOT", "/Volumes/Plex/")
SEGMENTS = os.getenv("TIVOPLEX_SEGMENTS", "TV Shows/,Kids/,Sports/")
SWEEP_INTERVAL = float(os.getenv("TIVOPLEX_SWEEP_INTERVAL", "60"))

# External tools
MEDIAINFO_BINARY = os.getenv("TIVOPLEX_MEDIAINFO", "mediainfo")
COMSKIP_BINARY = os.getenv("TIVOPLEX_COMSKIP", "comskip")
COMSKIP_INI = os.getenv("TIVOPLEX_COMSKIP_INI", "./comskip.ini")
TRANSCODER = os.getenv("TIVOPLEX_TRANSCODER", "./ffmpeg_edl_ac3.sh")
TRANSCODE_THREADS = int(os.getenv("TIVOPLEX_TRANSCODE_THREADS", "16"))
