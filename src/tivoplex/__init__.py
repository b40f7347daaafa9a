"""
A media processing package for turning TiVo recordings into a Plex library.

This package discovers recordings (an ``.mpg`` or ``.ts`` file plus its pyTivo
metadata sidecar) under configured segments of a source tree, reads their
metadata, detects commercials with comskip, transcodes them to HEVC with
embedded metadata and cut points, and copies the result into a mirrored
Plex library tree.

The package is organized into several categories:
- Record derivation, scanning and sidecar parsing (``tivoplex.record``).
- External collaborators: frame probe, commercial detection and transcoding
  (``tivoplex.transcode``).
- Library relocation and cleanup (``tivoplex.library``).
- The long-running orchestrator (``tivoplex.pipeline``).
"""

__version__ = "1.0.0"

# Debug flag for controlling verbose output
DEBUG: bool = False

__all__ = ["__version__", "DEBUG"]
