"""
Frame count and duration probing with mediainfo.

The frame count drives the commercial-detection progress bar and is required;
the duration only sharpens the edit-list sanity check and may be missing.
"""
from tivoplex.errors import ProbeError
from tivoplex.record.core import ConversionRecord, RecordState
from tivoplex.utils import LogLevel, logger
from tivoplex.utils.system_util import ProcessRunner


def _mediainfo_cmd(mediainfo: str, template: str, record: ConversionRecord) -> list[str]:
    return [mediainfo, f"--Output={template}", str(record.original_path)]


def count_frames(record: ConversionRecord, runner: ProcessRunner, mediainfo: str = "mediainfo") -> int:
    """Store and return the number of video frames in the original recording."""
    if not record.original_path.is_file():
        logger.log("record.missing_original", LogLevel.WARN, file=record.original_filename, sidecar=str(record.sidecar_path))
        raise ProbeError(record.original_path, "original recording is missing")
    code, out, err = runner.run(_mediainfo_cmd(mediainfo, "Video;%FrameCount%", record))
    if code != 0:
        raise ProbeError(record.original_path, f"mediainfo exited with code {code}: {err.strip()[:200]}")
    try:
        frames = int(out.strip())
    except ValueError:
        raise ProbeError(record.original_path, f"unparsable frame count {out.strip()!r}") from None

    record.frames = frames
    record.state = RecordState.FRAME_COUNTED
    logger.log("probe.frames", LogLevel.DEBUG, file=record.original_filename, frames=frames)
    return frames


def probe_duration(record: ConversionRecord, runner: ProcessRunner, mediainfo: str = "mediainfo") -> float | None:
    """Store the recording duration in seconds, or leave it unset if mediainfo cannot say."""
    code, out, _ = runner.run(_mediainfo_cmd(mediainfo, "General;%Duration%", record))
    try:
        duration = float(out.strip()) / 1000 if code == 0 else None
    except ValueError:
        duration = None

    if duration is None:
        logger.log("probe.duration_unavailable", LogLevel.WARN, file=record.original_filename, exit_code=code)
        return None

    record.duration = duration
    return duration
