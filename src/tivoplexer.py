"""
TiVo to Plex conversion service.

With no segment argument, sweeps every configured segment forever: detect
commercials, transcode, copy into the Plex library and clean up. With a
segment argument, lists what would be processed there without touching any
files.
"""

import argparse
import atexit
import signal
import sys
from datetime import datetime
from pathlib import Path

import tivoplex as tivoplex_module
from tivoplex.pipeline import Orchestrator
from tivoplex.utils import LogLevel, logger, system_util
from tivoplex.utils.config import load_config

# Orchestrator reference for graceful shutdown
_orchestrator: Orchestrator | None = None


def _signal_handler(signum, frame):
    """Finish the current recording, then stop."""
    try:
        sig_name = signal.Signals(signum).name
    except ValueError:
        sig_name = str(signum)
    logger.log("shutdown.requested", LogLevel.WARN, signal=sig_name)
    # In debug mode, report where the main thread was when the signal landed
    if getattr(tivoplex_module, "DEBUG", False) and frame is not None:
        mod = frame.f_globals.get("__name__", "?")
        func = getattr(frame.f_code, "co_name", "?")
        lineno = getattr(frame, "f_lineno", "?")
        logger.log("shutdown.signal_location", LogLevel.DEBUG, signal=sig_name, at=f"{mod}.{func}:{lineno}")
    if _orchestrator is None:
        sys.exit(0)
    _orchestrator.request_shutdown()


class _TeeStream:
    def __init__(self, *streams):
        self._streams = streams

    def write(self, data):
        for stream in self._streams:
            stream.write(data)
        return len(data)

    def flush(self):
        for stream in self._streams:
            stream.flush()

    def isatty(self):
        return any(getattr(stream, "isatty", lambda: False)() for stream in self._streams)


def _tee_to_log_file(log_file: str | None, log_dir: str | None) -> Path | None:
    if not log_file and not log_dir:
        return None
    if log_file:
        log_path = Path(log_file).expanduser().resolve()
    else:
        timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
        log_path = (Path(log_dir) / f"tivoplexer-{timestamp}.log").expanduser().resolve()
    log_path.parent.mkdir(parents=True, exist_ok=True)
    handle = open(log_path, "a", encoding="utf-8", buffering=1)
    sys.stdout = _TeeStream(sys.stdout, handle)
    sys.stderr = _TeeStream(sys.stderr, handle)
    atexit.register(handle.close)
    return log_path


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tivoplexer",
        description="Convert TiVo recordings with pyTivo metadata into a Plex library: "
                    "detect commercials with comskip, transcode to HEVC, and file the result.",
        epilog="Example: tivoplexer --source-root /Volumes/TiVo/ --library-root /Volumes/Plex/ "
               "--segments 'TV Shows/,Kids/'",
    )
    parser.add_argument("segment", nargs="?",
                        help="Inspect a single segment (discovery and metadata only, no changes)")
    parser.add_argument("--source-root", help="Root of the TiVo download tree (default: $TIVOPLEX_SOURCE_ROOT)")
    parser.add_argument("--library-root", help="Root of the Plex library (default: $TIVOPLEX_LIBRARY_ROOT)")
    parser.add_argument("--segments", help="Comma separated segments, in processing order "
                                           "(default: $TIVOPLEX_SEGMENTS)")
    parser.add_argument("--interval", type=float, help="Seconds to idle between sweeps (default: 60)")
    parser.add_argument("--comskip-ini", help="comskip ini file (default: ./comskip.ini)")
    parser.add_argument("--transcoder", help="Transcode wrapper script (default: ./ffmpeg_edl_ac3.sh)")
    parser.add_argument("--once", action="store_true", help="Run a single sweep and exit")
    parser.add_argument("--no-progress", action="store_true", help="Do not draw progress bars")
    parser.add_argument("--log-dir", help="Also write output to a timestamped log file in this directory")
    parser.add_argument("--log-file", help="Also write output to this file; overrides --log-dir")
    parser.add_argument("--debug", action="store_true", help="Enable debug output")
    parser.add_argument("--version", action="version", version=f"%(prog)s {tivoplex_module.__version__}")
    return parser


def inspect(orchestrator: Orchestrator, segment: str) -> int:
    """Print every record the segment would produce."""
    count = 0
    for record in orchestrator.inspect_segment(segment):
        count += 1
        logger.log("inspect.record", LogLevel.INFO, **record.summary())
    logger.log("inspect.complete", LogLevel.INFO, segment=segment, records=count)
    return count


def main(argv: list[str] | None = None) -> int:
    global _orchestrator
    args = build_parser().parse_args(argv)

    tivoplex_module.DEBUG = args.debug
    logger.set_log_level(LogLevel.DEBUG if args.debug else LogLevel.INFO)

    log_path = _tee_to_log_file(args.log_file, args.log_dir)
    if log_path:
        logger.log("startup.log_file", LogLevel.INFO, path=str(log_path))

    config = load_config(
        source_root=args.source_root,
        library_root=args.library_root,
        segments=args.segments,
        sweep_interval=args.interval,
        comskip_ini=args.comskip_ini,
        transcoder=args.transcoder,
    )

    if not config.source_root.is_dir():
        logger.log("startup.error", LogLevel.ERROR, msg="Source root does not exist", root=str(config.source_root))
        return 2

    if args.segment:
        inspect(Orchestrator(config, show_progress=False), args.segment)
        return 0

    if not config.segments:
        logger.log("startup.error", LogLevel.ERROR, msg="No segments configured")
        return 2

    system_util.which_or_die(config.mediainfo)
    system_util.which_or_die(config.comskip)
    system_util.which_or_die(config.transcoder)

    _orchestrator = Orchestrator(config, show_progress=not args.no_progress)
    signal.signal(signal.SIGTERM, _signal_handler)
    signal.signal(signal.SIGINT, _signal_handler)

    logger.log("tivoplexer.start", LogLevel.INFO,
               source=str(config.source_root),
               library=str(config.library_root),
               segments=",".join(config.segments),
               interval=config.sweep_interval,
               once=args.once)

    _orchestrator.run_forever(max_sweeps=1 if args.once else None)
    return 0


if __name__ == "__main__":
    sys.exit(main())
