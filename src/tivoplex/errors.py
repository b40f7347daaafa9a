"""Exception hierarchy for the conversion pipeline.

``MalformedPathError`` rejects a candidate before it enters the pipeline.
``ConversionError`` subclasses are fatal to a single record and cause it to be
abandoned until the next sweep rediscovers it.
"""
from pathlib import Path


class TivoPlexError(Exception):
    """Base class for all pipeline errors."""


class MalformedPathError(TivoPlexError):
    """Raised when a sidecar path does not follow the recording naming convention."""

    def __init__(self, path: Path | str, reason: str):
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"{path}: {reason}")


class ConversionError(TivoPlexError):
    """A failure that abandons one record."""

    def __init__(self, path: Path | str, message: str):
        self.path = Path(path)
        super().__init__(f"{message} ({path})")


class MetadataParseError(ConversionError):
    """Raised when the sidecar metadata file cannot be read."""


class ProbeError(ConversionError):
    """Raised when the frame count cannot be obtained."""


class TranscodeError(ConversionError):
    """Raised when the transcoder fails or produces no output."""

    def __init__(self, path: Path | str, message: str, exit_code: int | None = None, output: str = ""):
        self.exit_code = exit_code
        self.output = output
        super().__init__(path, message)


class RelocationError(ConversionError):
    """Raised when the output cannot be copied into the library."""


class ConversionInterruptedError(ConversionError):
    """Raised when a shutdown stops a record before its output can be trusted."""
