"""
The long-running conversion service.

One ``Orchestrator`` owns the whole loop: for every configured segment it
scans for sidecars, carries each recording through the stages one at a time,
tidies the segment, and after the last segment waits for the sweep interval
before starting over. A recording that fails a stage is abandoned as-is on
disk; the next sweep finds its sidecar again and retries from scratch.
"""
import time
import traceback
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterator, List

from tivoplex.errors import ConversionError, ConversionInterruptedError, MalformedPathError, MetadataParseError
from tivoplex.library import cleanup_record, relocate_record, sweep_segment
from tivoplex.record import ConversionRecord, RecordState, derive_record, iter_sidecar_files, read_sidecar
from tivoplex.transcode import count_frames, detect_commercials, probe_duration, transcode_record
from tivoplex.utils import LogLevel, logger, time_util
from tivoplex.utils.config import Config
from tivoplex.utils.system_util import ProcessRunner

__all__ = ["Orchestrator", "RecordState", "SegmentStats"]


@dataclass
class SegmentStats:
    segment: str
    discovered: int = 0
    completed: int = 0
    abandoned: int = 0
    rejected: int = 0

    def count(self, state: RecordState | None) -> None:
        self.discovered += 1
        if state is None:
            self.rejected += 1
        elif state is RecordState.CLEANED_UP:
            self.completed += 1
        else:
            self.abandoned += 1


def _no_progress(_value: float) -> None:
    pass


class Orchestrator:
    """Drives recordings through the pipeline, segment by segment, forever."""

    def __init__(self, config: Config, runner: ProcessRunner | None = None,
                 sleep: Callable[[float], None] = time.sleep, show_progress: bool = True):
        """
        Args:
            config: Roots, segments, sweep interval and tool settings
            runner: Process capability used for every external tool
            sleep: Idle wait between sweeps (replaced in tests)
            show_progress: Draw tqdm bars for comskip and the transcoder
        """
        self.config = config
        self.runner = runner or ProcessRunner()
        self._sleep = sleep
        self._progress = None if show_progress else _no_progress
        self.shutdown_requested = False

    def request_shutdown(self) -> None:
        """Stop after the current record; a record still in commercial detection is abandoned instead."""
        self.shutdown_requested = True

    def derive(self, segment: str, sidecar_path: Path) -> ConversionRecord:
        return derive_record(sidecar_path, segment, self.config.source_root, self.config.library_root)

    def convert(self, record: ConversionRecord) -> None:
        """Run every stage in order; a ConversionError leaves the record where it failed."""
        cfg = self.config
        read_sidecar(record)
        count_frames(record, self.runner, cfg.mediainfo)
        probe_duration(record, self.runner, cfg.mediainfo)
        detect_commercials(record, self.runner, cfg.comskip, cfg.comskip_ini, cfg.degenerate_fraction,
                           on_progress=self._progress)
        if self.shutdown_requested:
            # a signal may have cut detection short without killing comskip outright
            raise ConversionInterruptedError(record.original_path, "shutdown requested before transcoding")
        transcode_record(record, self.runner, cfg.transcoder, cfg.transcode_threads, on_progress=self._progress)
        relocate_record(record)
        cleanup_record(record)

    def process_record(self, segment: str, sidecar_path: Path) -> RecordState | None:
        """
        Carry one discovered sidecar through the pipeline.

        Returns:
            CLEANED_UP on success, ABANDONED after a fatal stage failure, or None
            when the path was rejected before entering the pipeline.
        """
        try:
            record = self.derive(segment, sidecar_path)
        except MalformedPathError as e:
            logger.log("record.rejected", LogLevel.WARN, path=str(e.path), reason=e.reason)
            return None

        logger.log("record.start", LogLevel.INFO, file=record.filename_with_no_extension, segment=segment)
        start = time.monotonic()
        try:
            self.convert(record)
        except ConversionError as e:
            failed_in = record.state
            record.state = RecordState.ABANDONED
            logger.log("record.abandoned", LogLevel.ERROR,
                       file=record.filename_with_no_extension,
                       segment=segment,
                       after=failed_in.value,
                       error_type=type(e).__name__,
                       error=str(e))
            return record.state

        logger.log("record.complete", LogLevel.INFO,
                   file=record.filename_with_no_extension,
                   segment=segment,
                   dst=str(record.destination_path),
                   elapsed=time_util.format_elapsed(time.monotonic() - start))
        return record.state

    def run_segment(self, segment: str) -> SegmentStats:
        """Process every recording in a segment, then tidy the segment tree."""
        stats = SegmentStats(segment)
        segment_root = self.config.segment_root(segment)
        logger.log("segment.start", LogLevel.INFO, segment=segment, root=str(segment_root))

        for sidecar_path in iter_sidecar_files(segment_root):
            stats.count(self.process_record(segment, sidecar_path))
            if self.shutdown_requested:
                logger.log("segment.interrupted", LogLevel.WARN, segment=segment)
                break

        sweep_segment(segment_root)
        logger.log("segment.complete", LogLevel.INFO,
                   segment=segment,
                   discovered=stats.discovered,
                   completed=stats.completed,
                   abandoned=stats.abandoned,
                   rejected=stats.rejected)
        return stats

    def sweep(self) -> List[SegmentStats]:
        """One pass over every configured segment, in configured order; a crashing segment is skipped."""
        results = []
        for segment in self.config.segments:
            if self.shutdown_requested:
                break
            try:
                results.append(self.run_segment(segment))
            except Exception as e:
                logger.log("segment.crashed", LogLevel.ERROR,
                           segment=segment,
                           error_type=type(e).__name__,
                           error=str(e),
                           traceback=traceback.format_exc())
        return results

    def run_forever(self, max_sweeps: int | None = None) -> int:
        """
        Sweep, idle, repeat until shutdown (or ``max_sweeps`` sweeps).

        Anything that escapes a sweep is logged and the loop carries on with the
        next scheduled sweep. Returns the number of sweeps started.
        """
        sweeps = 0
        logger.log("sweep.loop_start", LogLevel.INFO,
                   segments=",".join(self.config.segments),
                   interval=self.config.sweep_interval)
        while not self.shutdown_requested:
            sweeps += 1
            try:
                self.sweep()
            except Exception as e:
                logger.log("sweep.crashed", LogLevel.ERROR,
                           sweep=sweeps,
                           error_type=type(e).__name__,
                           error=str(e),
                           traceback=traceback.format_exc())
            if max_sweeps is not None and sweeps >= max_sweeps:
                break
            self._idle()
        logger.log("sweep.loop_stop", LogLevel.INFO, sweeps=sweeps)
        return sweeps

    def _idle(self) -> None:
        remaining = self.config.sweep_interval
        while remaining > 0 and not self.shutdown_requested:
            step = min(1.0, remaining)
            self._sleep(step)
            remaining -= step

    def inspect_segment(self, segment: str) -> Iterator[ConversionRecord]:
        """Derive and describe every recording in a segment without changing anything on disk."""
        for sidecar_path in iter_sidecar_files(self.config.segment_root(segment)):
            try:
                record = self.derive(segment, sidecar_path)
                read_sidecar(record)
            except (MalformedPathError, MetadataParseError) as e:
                logger.log("inspect.skipped", LogLevel.WARN, path=str(sidecar_path), error=str(e))
                continue
            yield record
