"""Tests for the probe, commercial detection and transcode stages."""

from pathlib import Path

import pytest

from conftest import FakeRunner, comskip_writes, make_recording, transcoder_writes
from tivoplex.errors import ConversionInterruptedError, ProbeError, TranscodeError
from tivoplex.record import RecordState, derive_record, read_sidecar
from tivoplex.transcode import (
    Cut,
    EditList,
    build_metadata_tags,
    build_transcode_cmd,
    count_frames,
    detect_commercials,
    parse_frame_progress,
    parse_percent_progress,
    probe_duration,
    transcode_record,
)


@pytest.fixture
def record(roots):
    source, library = roots
    sidecar = make_recording(source / "TV Shows", "The Simpsons S08E03.mpg")
    rec = derive_record(sidecar, "TV Shows/", source, library)
    read_sidecar(rec)
    rec.frames = 1000
    return rec


def test_parse_frame_progress():
    assert parse_frame_progress("12345 frames") == 12345
    assert parse_frame_progress("Processed 77 frames in 3s") == 77
    assert parse_frame_progress("frames") is None


def test_parse_percent_progress():
    assert parse_percent_progress("42.5 %") == 42.5
    assert parse_percent_progress("  7 %\n") == 7.0
    assert parse_percent_progress("frame= 12 fps=30") is None
    assert parse_percent_progress(" %") is None


def test_count_frames(record):
    runner = FakeRunner(frames=(0, "53946\n", ""))
    assert count_frames(record, runner) == 53946
    assert record.frames == 53946
    assert record.state is RecordState.FRAME_COUNTED
    assert runner.commands[0] == ["mediainfo", "--Output=Video;%FrameCount%", str(record.original_path)]


@pytest.mark.parametrize("result", [(1, "", "no such file"), (0, "\n", ""), (0, "lots", "")])
def test_count_frames_failure(record, result):
    with pytest.raises(ProbeError):
        count_frames(record, FakeRunner(frames=result))


def test_count_frames_missing_original(record):
    record.original_path.unlink()
    runner = FakeRunner()

    with pytest.raises(ProbeError, match="missing"):
        count_frames(record, runner)

    assert runner.commands == []


def test_probe_duration(record):
    assert probe_duration(record, FakeRunner(duration=(0, "1800000\n", ""))) == 1800.0
    assert record.duration == 1800.0


def test_probe_duration_is_optional(record):
    record.duration = None
    assert probe_duration(record, FakeRunner(duration=(0, "\n", ""))) is None
    assert record.duration is None


def test_edit_list_parse():
    edl = EditList.parse("0.00\t29.97\t0\nbad row\n\n1200.5\t1380.25\t3\n")
    assert edl.cuts == (Cut(0.0, 29.97, 0), Cut(1200.5, 1380.25, 3))


def test_degenerate_edit_list():
    whole = EditList.parse("0\t3600.0\t3\n")
    assert whole.is_degenerate(duration=3600.0)
    assert not whole.is_degenerate(duration=None)
    assert not EditList.parse("0\t600.0\t3\n").is_degenerate(duration=3600.0)
    assert not EditList.parse("0\t3600.0\t1\n").is_degenerate(duration=3600.0)
    assert not EditList.parse("0\t1800\t0\n1800\t3600\t0\n").is_degenerate(duration=3600.0)


def test_detect_commercials_accepts_edit_list(record):
    progress = []
    runner = FakeRunner(comskip=comskip_writes("120.5\t300.0\t0\n"))

    edit_list = detect_commercials(record, runner, comskip="comskip", ini="./comskip.ini",
                                   on_progress=progress.append)

    assert runner.commands[0] == ["comskip", "-q", "--ini", "./comskip.ini", str(record.original_path)]
    assert progress == [500, 1000]
    assert len(edit_list) == 1
    assert record.edl_path == record.artifact_path(".edl")
    assert record.state is RecordState.COMMERCIALS_DETECTED


def test_detect_commercials_discards_whole_recording_cut(record):
    record.duration = 3600.0
    runner = FakeRunner(comskip=comskip_writes("0\t3600.0\t3\n"))

    assert detect_commercials(record, runner, on_progress=lambda _: None) is None

    assert record.edl_path is None
    assert not record.artifact_path(".edl").exists()


def test_detect_commercials_keeps_lone_cut_without_duration(record):
    assert record.duration is None
    runner = FakeRunner(comskip=comskip_writes("0\t3600.0\t3\n"))

    edit_list = detect_commercials(record, runner, on_progress=lambda _: None)

    assert edit_list.cuts == (Cut(0.0, 3600.0, 3),)
    assert record.edl_path.exists()


def test_detect_commercials_stopped_by_signal(record):
    runner = FakeRunner(comskip=comskip_writes(None, code=-15))

    with pytest.raises(ConversionInterruptedError):
        detect_commercials(record, runner, on_progress=lambda _: None)

    assert record.edl_path is None


def test_detect_commercials_crash_is_not_fatal(record):
    runner = FakeRunner(comskip=comskip_writes(None, code=-11))

    assert detect_commercials(record, runner, on_progress=lambda _: None) is None

    assert record.state is RecordState.COMMERCIALS_DETECTED


def test_detect_commercials_failure_is_not_fatal(record):
    runner = FakeRunner(comskip=comskip_writes("120.5\t300.0\t0\n", code=1))

    assert detect_commercials(record, runner, on_progress=lambda _: None) is None

    assert record.edl_path is None
    assert record.state is RecordState.COMMERCIALS_DETECTED


def test_detect_commercials_without_edl(record):
    runner = FakeRunner(comskip=comskip_writes(None))
    assert detect_commercials(record, runner, on_progress=lambda _: None) is None
    assert record.edl_path is None


def test_metadata_tags(record):
    tags = dict(build_metadata_tags(record))
    assert tags["title"] == "Homer's Odyssey"
    assert tags["album"] == "The Simpsons, Season 8"
    assert tags["track"] == "3"
    assert tags["episode_id"] == "EP0000960029"
    assert tags["network"] == "FOXHD"
    assert tags["hd_video"] == "2"
    assert tags["media_type"] == "10"


def test_metadata_tags_tolerate_unset_fields(roots):
    source, library = roots
    sidecar = make_recording(source / "Kids", "Special.mpg", sidecar="title : Bluey\n")
    rec = derive_record(sidecar, "Kids/", source, library)
    read_sidecar(rec)

    tags = dict(build_metadata_tags(rec))

    assert tags["album"] == "Bluey"
    assert "track" not in tags
    assert "title" not in tags
    assert "episode_id" not in tags


def test_transcode_cmd_with_and_without_edl(record):
    cmd = build_transcode_cmd(record, "ffmpeg_edl_ac3.sh", threads=8)
    assert cmd[:3] == ["ffmpeg_edl_ac3.sh", "-i", str(record.original_path)]
    assert cmd[-1] == str(record.output_path)
    assert "-edl" not in cmd
    assert cmd[cmd.index("-threads") + 1] == "8"
    assert "show=The Simpsons" in cmd

    record.edl_path = Path(record.artifact_path(".edl"))
    cmd = build_transcode_cmd(record, "ffmpeg_edl_ac3.sh")
    assert cmd[cmd.index("-edl") + 1] == str(record.edl_path)
    assert cmd[-1] == str(record.output_path)


def test_transcode_record(record):
    progress = []
    runner = FakeRunner(transcoder=transcoder_writes(b"hevc"))

    transcode_record(record, runner, transcoder="ffmpeg_edl_ac3.sh", on_progress=progress.append)

    assert progress == [10.0, 42.5, 100.0]
    assert record.output_path.read_bytes() == b"hevc"
    assert record.state is RecordState.TRANSCODED


def test_transcode_failure(record):
    record.output_path.write_bytes(b"half an episode")
    runner = FakeRunner(transcoder=transcoder_writes(code=1))

    with pytest.raises(TranscodeError) as excinfo:
        transcode_record(record, runner, on_progress=lambda _: None)

    assert excinfo.value.exit_code == 1
    assert "42.5 %" in excinfo.value.output
    assert not record.output_path.exists()


def test_transcode_without_output(record):
    runner = FakeRunner(transcoder=lambda cmd: (0, ["100.0 %"]))
    with pytest.raises(TranscodeError):
        transcode_record(record, runner, on_progress=lambda _: None)
