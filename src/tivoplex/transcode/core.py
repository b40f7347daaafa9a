"""
Functions to build the transcode command line and run it with progress updates.

The transcoder is an ffmpeg wrapper script that understands ``-edl`` (cut the
listed ranges while encoding) and prints its completion as ``NN.N %`` lines on
stdout. Every recording is encoded with the same HEVC profile and tagged with
the pyTivo metadata so Plex can file it without a lookup.
"""
import time
from typing import List, Tuple

from tivoplex.errors import TranscodeError
from tivoplex.record.core import ConversionRecord, RecordState
from tivoplex.utils import TRANSCODE_PROGRESS_REGEX, LogLevel, logger, time_util
from tivoplex.utils.progress import ProgressBar, ProgressCallback
from tivoplex.utils.system_util import ProcessRunner

PROGRESS_LOG_INTERVAL = 60  # seconds between progress log lines

# Deinterlaced HEVC video, first audio track as 5.1 AAC.
VIDEO_PROFILE = ["-vcodec", "libx265", "-preset", "fast"]
# Options consumed by the wrapper script rather than ffmpeg.
WRAPPER_FLAGS = ["-noAC3", "-noStereo"]
AUDIO_PROFILE = [
    "-map", "0:a:0",
    "-c:a", "libfdk_aac",
    "-b:a", "768k",
    "-ac", "6",
    "-metadata:s:a:0", "language=eng",
]
QUALITY_PROFILE = ["-crf", "19", "-vf", "yadif"]

FIXED_TAGS = [("hd_video", "2"), ("media_type", "10")]


def build_metadata_tags(record: ConversionRecord) -> List[Tuple[str, str]]:
    """Container tags for the record; tags with no value are left out."""
    series = record.series_title
    album = series
    if series and record.season is not None:
        album = f"{series}, Season {record.season}"

    tags = [
        ("title", record.episode_title),
        ("artist", series),
        ("album_artist", series),
        ("album", album),
        ("comment", record.description),
        ("description", record.description),
        ("track", None if record.episode is None else str(record.episode)),
        ("show", series),
        ("episode_id", record.program_id),
        ("network", record.callsign),
    ]
    return [(k, v) for k, v in tags if v] + FIXED_TAGS


def build_transcode_cmd(record: ConversionRecord, transcoder: str, threads: int = 16) -> List[str]:
    """Build the transcoder command line for a record."""
    cmd = [transcoder, "-i", str(record.original_path)] + VIDEO_PROFILE

    for key, value in build_metadata_tags(record):
        cmd += ["-metadata", f"{key}={value}"]

    cmd += WRAPPER_FLAGS + ["-threads", str(threads)] + AUDIO_PROFILE
    cmd += QUALITY_PROFILE

    if record.edl_path is not None:
        cmd += ["-edl", str(record.edl_path)]

    cmd.append(str(record.output_path))
    return cmd


def parse_percent_progress(line: str) -> float | None:
    """Percentage from a transcoder progress line such as ``42.5 %``."""
    match = TRANSCODE_PROGRESS_REGEX.match(line.strip())
    return float(match.group(1)) if match else None


def _remove_partial_output(record: ConversionRecord) -> None:
    try:
        record.output_path.unlink()
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.log("transcode.partial_cleanup_failed", LogLevel.WARN, file=record.output_filename, error=str(e))


def transcode_record(record: ConversionRecord, runner: ProcessRunner, transcoder: str = "./ffmpeg_edl_ac3.sh",
                     threads: int = 16, on_progress: ProgressCallback | None = None) -> None:
    """
    Transcode the original recording to ``record.output_path``.

    Raises:
        TranscodeError: When the transcoder exits non-zero or writes no output.
    """
    cmd = build_transcode_cmd(record, transcoder, threads)

    logger.log("transcode.start", LogLevel.INFO,
               file=record.original_filename,
               dst=record.output_filename,
               edl=record.edl_path is not None)
    logger.log("transcode.details", LogLevel.DEBUG, cmd=" ".join(cmd))

    bar = None
    if on_progress is None:
        bar = on_progress = ProgressBar("Converting to h265", 100, "%")

    start = time.monotonic()
    last_progress_log = start

    def _on_line(line: str) -> None:
        nonlocal last_progress_log
        pct = parse_percent_progress(line)
        if pct is None:
            return
        on_progress(pct)
        now = time.monotonic()
        if now - last_progress_log >= PROGRESS_LOG_INTERVAL:
            logger.log("transcode.progress", LogLevel.INFO,
                       file=record.original_filename,
                       pct=pct,
                       eta=time_util.get_eta(pct, 100, now - start))
            last_progress_log = now

    try:
        handle = runner.start(cmd)
        runner.subscribe(handle, _on_line)
        code = runner.wait(handle)
    finally:
        if bar is not None:
            bar.close()

    elapsed = time_util.format_elapsed(time.monotonic() - start)

    if code != 0:
        _remove_partial_output(record)
        logger.log("transcode.failed", LogLevel.ERROR,
                   file=record.original_filename,
                   exit_code=code,
                   elapsed=elapsed)
        raise TranscodeError(record.original_path, f"transcoder exited with code {code}",
                             exit_code=code, output=handle.output_tail)

    if not record.output_path.is_file():
        raise TranscodeError(record.original_path, f"transcoder produced no output at {record.output_path}",
                             exit_code=code, output=handle.output_tail)

    record.state = RecordState.TRANSCODED
    logger.log("transcode.complete", LogLevel.INFO, file=record.original_filename, elapsed=elapsed)
