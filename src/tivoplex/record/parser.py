"""
Parsing of pyTivo metadata sidecars and season/episode derivation.

A sidecar is plain text with one ``key : value`` pair per line, e.g.::

    title : The Simpsons
    seriesTitle : The Simpsons
    episodeTitle : Homer's Odyssey
    programId : EP0000960029
    callsign : FOXHD

TiVo does not record the season, so it is taken from an ``SxxEyy`` token in
the filename, or from the folder the recording was filed under.
"""
from pathlib import Path
from typing import Dict, Tuple

from tivoplex.errors import MetadataParseError
from tivoplex.record.core import ConversionRecord, RecordState
from tivoplex.utils import SEASON_EPISODE_REGEX, SIDECAR_DELIMITER, LogLevel, logger

# pyTivo key -> record attribute
SIDECAR_FIELDS = {
    "seriesTitle": "series_title",
    "episodeTitle": "episode_title",
    "description": "description",
    "programId": "program_id",
    "callsign": "callsign",
}


def parse_sidecar_text(text: str) -> Dict[str, str]:
    """Split sidecar text into a key -> value mapping, ignoring malformed lines."""
    mapped = {}
    for line in text.splitlines():
        key, sep, value = line.partition(SIDECAR_DELIMITER)
        key = key.strip()
        if not sep or not key:
            continue
        mapped[key] = value.strip()
    return mapped


def _season_token(name: str) -> int | str:
    return int(name) if name.isdigit() else name


def derive_season_episode(record: ConversionRecord) -> Tuple[int | str | None, int | str | None]:
    """
    Work out season and episode for a recording.

    1. ``S03E07`` in the filename gives (3, 7).
    2. Otherwise a recording filed in a subfolder of its segment uses the folder
       name as the season (``2021`` becomes 2021) and its own name as the episode.
    3. Otherwise both are unknown.
    """
    match = SEASON_EPISODE_REGEX.search(record.filename_with_no_extension)
    if match:
        return int(match.group(1)), int(match.group(2))
    if record.in_subdirectory:
        return _season_token(record.cwd.name), record.filename_with_no_extension
    return None, None


def apply_metadata(record: ConversionRecord, mapped: Dict[str, str]) -> None:
    """Merge parsed sidecar fields into the record without touching derived paths."""
    record.metadata.update(mapped)
    for key, attr in SIDECAR_FIELDS.items():
        value = mapped.get(key)
        if value:
            setattr(record, attr, value)
    if not record.series_title and mapped.get("title"):
        record.series_title = mapped["title"]
    record.season, record.episode = derive_season_episode(record)


def read_sidecar(record: ConversionRecord) -> ConversionRecord:
    """Read the record's sidecar and populate its metadata fields."""
    try:
        text = Path(record.sidecar_path).read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        raise MetadataParseError(record.sidecar_path, f"cannot read sidecar: {e}") from e

    mapped = parse_sidecar_text(text)
    apply_metadata(record, mapped)
    record.state = RecordState.METADATA_PARSED

    logger.log("metadata.parsed", LogLevel.DEBUG,
               file=record.original_filename,
               fields=len(mapped),
               series=record.series_title,
               season=record.season,
               episode=record.episode)
    return record
