"""
Commercial detection with comskip and edit-list sanity checks.

comskip writes ``<base path>.edl`` next to the recording, one tab separated
``start  end  kind`` row per cut, times in seconds. Kind 0 is a plain cut and
kind 3 a commercial break. When comskip gets confused it reports the entire
recording as a single commercial; such a list would cut the whole show, so it
is deleted and the recording is transcoded uncut.
"""
import signal
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

from tivoplex.errors import ConversionInterruptedError
from tivoplex.record.core import ConversionRecord, RecordState
from tivoplex.utils import COMSKIP_PROGRESS_REGEX, DEGENERATE_EDL_KINDS, EDL_SUFFIX, LogLevel, logger, time_util
from tivoplex.utils.constants import EDL_DEGENERATE_FRACTION
from tivoplex.utils.progress import ProgressBar, ProgressCallback
from tivoplex.utils.system_util import ProcessRunner

# comskip killed by one of these was stopped on purpose, not confused by the recording
STOP_SIGNALS = frozenset({signal.SIGINT, signal.SIGTERM, signal.SIGHUP, signal.SIGKILL})


@dataclass(frozen=True)
class Cut:
    start: float
    end: float
    kind: int

    @property
    def length(self) -> float:
        return self.end - self.start


@dataclass(frozen=True)
class EditList:
    cuts: tuple[Cut, ...] = ()

    def __len__(self) -> int:
        return len(self.cuts)

    @classmethod
    def parse(cls, text: str) -> "EditList":
        """Parse EDL rows, skipping blank or malformed ones."""
        cuts = []
        for line in text.splitlines():
            parts = line.split()
            if len(parts) < 3:
                continue
            try:
                cuts.append(Cut(float(parts[0]), float(parts[1]), int(float(parts[2]))))
            except ValueError:
                continue
        return cls(tuple(cuts))

    @classmethod
    def read(cls, path: Path) -> "EditList":
        return cls.parse(path.read_text(encoding="utf-8", errors="replace"))

    def is_degenerate(self, duration: float | None = None, fraction: float = EDL_DEGENERATE_FRACTION) -> bool:
        """
        True when the list is a single commercial covering (nearly) the whole recording.

        Without a known duration nothing can be judged implausible, so the list is kept.
        """
        if len(self.cuts) != 1:
            return False
        cut = self.cuts[0]
        if cut.kind not in DEGENERATE_EDL_KINDS:
            return False
        if not duration:
            return False
        return cut.length >= duration * fraction


def parse_frame_progress(line: str) -> int | None:
    """Frame index from a comskip progress line such as ``12345 frames``."""
    match = COMSKIP_PROGRESS_REGEX.search(line)
    return int(match.group(1)) if match else None


def build_comskip_cmd(record: ConversionRecord, comskip: str, ini: str) -> list[str]:
    return [comskip, "-q", "--ini", ini, str(record.original_path)]


def _discard(path: Path, record: ConversionRecord, reason: str) -> None:
    logger.log("comskip.edl_discarded", LogLevel.WARN, file=record.original_filename, reason=reason)
    try:
        path.unlink()
    except FileNotFoundError:
        pass


def detect_commercials(record: ConversionRecord, runner: ProcessRunner, comskip: str = "comskip",
                       ini: str = "./comskip.ini", degenerate_fraction: float = EDL_DEGENERATE_FRACTION,
                       on_progress: ProgressCallback | None = None) -> EditList | None:
    """
    Run comskip on the original recording and validate the edit list it writes.

    Detection is best effort: a failed run or an unusable list leaves
    ``record.edl_path`` unset and the recording is transcoded without cuts.
    The exception is comskip being stopped by a shutdown signal: shipping the
    recording uncut would lose the cuts for good once the source is cleaned up.

    Returns:
        The accepted EditList, or None when there is nothing to cut.

    Raises:
        ConversionInterruptedError: comskip was killed by SIGINT, SIGTERM, SIGHUP or SIGKILL
    """
    record.edl_path = None
    edl_path = record.artifact_path(EDL_SUFFIX)
    cmd = build_comskip_cmd(record, comskip, ini)

    logger.log("comskip.start", LogLevel.INFO, file=record.original_filename, frames=record.frames)
    start = time.monotonic()

    bar = None
    if on_progress is None:
        bar = on_progress = ProgressBar("Detecting commercials", record.frames, "frames")

    last_frame = 0

    def _on_line(line: str) -> None:
        nonlocal last_frame
        frame = parse_frame_progress(line)
        if frame is not None:
            last_frame = frame
            on_progress(frame)

    try:
        handle = runner.start(cmd)
        runner.subscribe(handle, _on_line)
        code = runner.wait(handle)
    finally:
        if bar is not None:
            bar.close()

    elapsed = time_util.format_elapsed(time.monotonic() - start)
    pct = round(last_frame / record.frames * 100, 1) if record.frames else None

    if code < 0 and -code in STOP_SIGNALS:
        logger.log("comskip.interrupted", LogLevel.WARN,
                   file=record.original_filename,
                   signal=signal.Signals(-code).name,
                   elapsed=elapsed)
        raise ConversionInterruptedError(record.original_path, f"comskip stopped by signal {-code}")

    if code != 0:
        logger.log("comskip.failed", LogLevel.WARN,
                   file=record.original_filename,
                   exit_code=code,
                   elapsed=elapsed,
                   output=handle.output_tail[-200:])
        record.state = RecordState.COMMERCIALS_DETECTED
        return None

    logger.log("comskip.complete", LogLevel.INFO, file=record.original_filename, elapsed=elapsed, pct=pct)
    record.state = RecordState.COMMERCIALS_DETECTED

    try:
        edit_list = EditList.read(edl_path)
    except FileNotFoundError:
        logger.log("comskip.no_edl", LogLevel.INFO, file=record.original_filename)
        return None
    except OSError as e:
        logger.log("comskip.edl_unreadable", LogLevel.WARN, file=record.original_filename, error=str(e))
        return None

    if not edit_list:
        _discard(edl_path, record, "empty")
        return None

    if edit_list.is_degenerate(record.duration, degenerate_fraction):
        _discard(edl_path, record, "whole recording marked as commercial")
        return None

    record.edl_path = edl_path
    logger.log("comskip.edl", LogLevel.DEBUG, file=record.original_filename, cuts=len(edit_list),
               cut_seconds=round(total_cut_seconds(edit_list.cuts), 1))
    return edit_list


def total_cut_seconds(cuts: Iterable[Cut]) -> float:
    return sum(c.length for c in cuts)
