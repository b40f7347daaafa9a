"""Explicit pipeline configuration.

The orchestrator receives a ``Config`` value at construction instead of reading
module globals, so tests and the CLI can build one without touching the
environment.
"""
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Iterable

from tivoplex.utils import constants


def parse_segments(value: str | Iterable[str]) -> tuple[str, ...]:
    """Split a comma separated segment list, keeping the configured order."""
    if isinstance(value, str):
        value = value.split(",")
    return tuple(s.strip() for s in value if s and s.strip())


@dataclass(frozen=True)
class Config:
    source_root: Path
    library_root: Path
    segments: tuple[str, ...]
    sweep_interval: float = constants.SWEEP_INTERVAL
    mediainfo: str = constants.MEDIAINFO_BINARY
    comskip: str = constants.COMSKIP_BINARY
    comskip_ini: str = constants.COMSKIP_INI
    transcoder: str = constants.TRANSCODER
    transcode_threads: int = constants.TRANSCODE_THREADS
    degenerate_fraction: float = constants.EDL_DEGENERATE_FRACTION

    def segment_root(self, segment: str) -> Path:
        return self.source_root / segment

    def with_overrides(self, **overrides) -> "Config":
        """Return a copy with every non-None override applied."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})


def load_config(**overrides) -> Config:
    """Build a Config from the environment defaults, then apply overrides."""
    config = Config(
        source_root=Path(constants.SOURCE_ROOT).expanduser(),
        library_root=Path(constants.LIBRARY_ROOT).expanduser(),
        segments=parse_segments(constants.SEGMENTS),
    )
    if overrides.get("source_root") is not None:
        overrides["source_root"] = Path(overrides["source_root"]).expanduser()
    if overrides.get("library_root") is not None:
        overrides["library_root"] = Path(overrides["library_root"]).expanduser()
    if overrides.get("segments") is not None:
        overrides["segments"] = parse_segments(overrides["segments"])
    return config.with_overrides(**overrides)
