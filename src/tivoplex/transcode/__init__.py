"""External collaborators: frame probe, commercial detection and transcoding.

- probe: mediainfo frame count (required) and duration (optional).
- comskip: commercial detection, edit-list parsing and the degenerate-list check.
- core: transcode command building and the progress-reporting run.
"""

from .comskip import Cut, EditList, detect_commercials, parse_frame_progress
from .core import build_metadata_tags, build_transcode_cmd, parse_percent_progress, transcode_record
from .probe import count_frames, probe_duration

__all__ = [
    "Cut",
    "EditList",
    "detect_commercials",
    "parse_frame_progress",
    "build_metadata_tags",
    "build_transcode_cmd",
    "parse_percent_progress",
    "transcode_record",
    "count_frames",
    "probe_duration",
]
