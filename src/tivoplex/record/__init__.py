"""
Recording discovery and description.

- core: ``ConversionRecord`` and the pure ``derive_record`` path deriver.
- scanner: lazy depth-first discovery of pyTivo sidecars under a segment.
- parser: sidecar parsing and season/episode derivation.
"""
from .core import ConversionRecord, RecordState, derive_record
from .parser import derive_season_episode, parse_sidecar_text, read_sidecar
from .scanner import iter_sidecar_files

__all__ = [
    "ConversionRecord",
    "RecordState",
    "derive_record",
    "derive_season_episode",
    "parse_sidecar_text",
    "read_sidecar",
    "iter_sidecar_files",
]
