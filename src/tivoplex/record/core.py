"""
Path derivation for a single recording.

Everything the pipeline needs to know about where a recording lives, which
artifacts it produces and where it ends up in the Plex library is computed
here from the sidecar path alone. The derivation does no I/O, so a record
rebuilt after a crash is identical to the one that was being processed.
"""
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict

from tivoplex.errors import MalformedPathError
from tivoplex.utils import MPG_SUFFIX, OUTPUT_EXTENSION, SCRATCH_DIR_SUFFIX, SIDECAR_SUFFIX, TS_SUFFIX, file_util


class RecordState(Enum):
    """Where a record is in the pipeline; transitions only move forward."""
    DISCOVERED = "discovered"
    METADATA_PARSED = "metadata_parsed"
    FRAME_COUNTED = "frame_counted"
    COMMERCIALS_DETECTED = "commercials_detected"
    TRANSCODED = "transcoded"
    RELOCATED = "relocated"
    CLEANED_UP = "cleaned_up"
    ABANDONED = "abandoned"


@dataclass
class ConversionRecord:
    segment: str
    cwd: Path
    original_filename: str
    original_is_ts: bool
    filename_with_no_extension: str
    original_path: Path
    base_path: Path
    sidecar_path: Path
    output_filename: str
    output_path: Path
    relative_path: Path
    destination_dir: Path
    destination_path: Path

    # Filled in by the metadata extractor
    series_title: str | None = None
    episode_title: str | None = None
    description: str | None = None
    program_id: str | None = None
    callsign: str | None = None
    season: int | str | None = None
    episode: int | str | None = None
    metadata: Dict[str, str] = field(default_factory=dict)

    # Filled in by the probe and the commercial detector
    frames: int | None = None
    duration: float | None = None
    edl_path: Path | None = None

    state: RecordState = RecordState.DISCOVERED

    def artifact_path(self, suffix: str) -> Path:
        """Sibling artifact named ``<base path><suffix>`` (e.g. ``.edl``)."""
        return self.base_path.with_name(self.base_path.name + suffix)

    @property
    def scratch_dir(self) -> Path:
        return self.artifact_path(SCRATCH_DIR_SUFFIX)

    @property
    def in_subdirectory(self) -> bool:
        """True when the recording sits below its segment root rather than directly in it."""
        return self.relative_path != Path(".")

    def summary(self) -> Dict[str, Any]:
        """Loggable view of the record."""
        return {
            "segment": self.segment,
            "original": str(self.original_path),
            "output": str(self.output_path),
            "destination": str(self.destination_path),
            "series": self.series_title,
            "episode_title": self.episode_title,
            "season": self.season,
            "episode": self.episode,
            "program_id": self.program_id,
            "callsign": self.callsign,
            "frames": self.frames,
            "state": self.state.value,
        }


def derive_record(sidecar_path: Path | str, segment: str, source_root: Path | str,
                  library_root: Path | str) -> ConversionRecord:
    """
    Derive every structural path of a recording from its sidecar path.

    Args:
        sidecar_path: Path to the pyTivo sidecar, e.g. ``/tivo/Kids/S1/ep1.mpg.txt``
        segment: Segment name relative to both roots, e.g. ``Kids/``
        source_root: Root of the TiVo download tree
        library_root: Root of the Plex library tree

    Returns:
        A ConversionRecord with no metadata yet.

    Raises:
        MalformedPathError: When the sidecar or media suffix is missing, or the
            sidecar is not under the segment root.
    """
    sidecar_path = Path(sidecar_path)
    cwd = sidecar_path.parent

    original_filename = file_util.strip_suffix(sidecar_path.name, SIDECAR_SUFFIX)
    if original_filename is None:
        raise MalformedPathError(sidecar_path, f"missing sidecar suffix {SIDECAR_SUFFIX}")

    original_is_ts = original_filename.endswith(TS_SUFFIX)
    filename_with_no_extension = file_util.strip_suffix(original_filename, TS_SUFFIX if original_is_ts else MPG_SUFFIX)
    if filename_with_no_extension is None:
        raise MalformedPathError(sidecar_path, f"media file must end in {MPG_SUFFIX} or {TS_SUFFIX}")

    segment_root = Path(source_root) / segment
    try:
        relative_path = cwd.relative_to(segment_root)
    except ValueError:
        raise MalformedPathError(sidecar_path, f"not under segment root {segment_root}") from None

    output_filename = filename_with_no_extension + OUTPUT_EXTENSION
    destination_dir = Path(library_root) / segment / relative_path

    return ConversionRecord(
        segment=segment,
        cwd=cwd,
        original_filename=original_filename,
        original_is_ts=original_is_ts,
        filename_with_no_extension=filename_with_no_extension,
        original_path=cwd / original_filename,
        base_path=cwd / filename_with_no_extension,
        sidecar_path=sidecar_path,
        output_filename=output_filename,
        output_path=cwd / output_filename,
        relative_path=relative_path,
        destination_dir=destination_dir,
        destination_path=destination_dir / output_filename,
    )
