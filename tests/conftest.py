"""Shared fixtures: recording trees on disk and a scripted ProcessRunner."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Tuple

import pytest

from tivoplex.utils.config import Config
from tivoplex.utils.system_util import ProcessHandle

SIDECAR = """title : The Simpsons
seriesTitle : The Simpsons
episodeTitle : Homer's Odyssey
description : Homer becomes a safety crusader.
programId : EP0000960029
callsign : FOXHD
"""


def make_recording(segment_root: Path, name: str, subdir: str = "", sidecar: str = SIDECAR,
                   media: bytes = b"mpeg-ps") -> Path:
    """Create ``<name>`` and ``<name>.txt`` under the segment; return the sidecar path."""
    directory = segment_root / subdir if subdir else segment_root
    directory.mkdir(parents=True, exist_ok=True)
    (directory / name).write_bytes(media)
    sidecar_path = directory / f"{name}.txt"
    sidecar_path.write_text(sidecar, encoding="utf-8")
    return sidecar_path


def base_of(media_path: str) -> str:
    for suffix in (".mpg", ".ts"):
        if media_path.endswith(suffix):
            return media_path[: -len(suffix)]
    return media_path


Behaviour = Callable[[List[str]], Tuple[int, List[str]]]


def comskip_writes(edl_text: str | None, code: int = 0) -> Behaviour:
    """Fake comskip: print progress and optionally write ``<base>.edl``."""

    def _behave(cmd):
        if edl_text is not None:
            Path(base_of(cmd[-1]) + ".edl").write_text(edl_text)
        return code, ["Commercial detection", "500 frames", "1000 frames"]

    return _behave


def transcoder_writes(content: bytes = b"hevc", code: int = 0) -> Behaviour:
    """Fake transcoder: print percentages and write the output file when successful."""

    def _behave(cmd):
        if code == 0:
            Path(cmd[-1]).write_bytes(content)
        return code, ["frame=1", "10.0 %", "42.5 %", "100.0 %"]

    return _behave


@dataclass
class FakeHandle(ProcessHandle):
    code: int = 0
    lines: List[str] = field(default_factory=list)


class FakeRunner:
    """Scripted stand-in for ProcessRunner; records every command it is given."""

    def __init__(self, frames: Tuple[int, str, str] = (0, "1000\n", ""),
                 duration: Tuple[int, str, str] = (0, "3600000\n", ""),
                 comskip: Behaviour | None = None, transcoder: Behaviour | None = None):
        self.frames = frames
        self.duration = duration
        self.comskip = comskip or comskip_writes("120.5\t300.0\t0\n900.0\t1080.0\t0\n")
        self.transcoder = transcoder or transcoder_writes()
        self.commands: List[List[str]] = []

    def run(self, cmd):
        self.commands.append(cmd)
        if "FrameCount" in cmd[1]:
            return self.frames
        return self.duration

    def start(self, cmd):
        self.commands.append(cmd)
        behave = self.comskip if cmd[0] == "comskip" else self.transcoder
        code, lines = behave(cmd)
        return FakeHandle(cmd=cmd, code=code, lines=lines)

    def subscribe(self, handle, on_line):
        for line in handle.lines:
            handle.tail.append(line)
            on_line(line)

    def wait(self, handle):
        return handle.code

    def tools(self) -> List[str]:
        return [cmd[0] for cmd in self.commands]


@pytest.fixture
def roots(tmp_path):
    source = tmp_path / "tivo"
    library = tmp_path / "plex"
    source.mkdir()
    library.mkdir()
    return source, library


@pytest.fixture
def config(roots):
    source, library = roots
    return Config(
        source_root=source,
        library_root=library,
        segments=("TV Shows/", "Kids/"),
        sweep_interval=3,
        mediainfo="mediainfo",
        comskip="comskip",
        transcoder="ffmpeg_edl_ac3.sh",
    )


@pytest.fixture
def runner():
    return FakeRunner()
