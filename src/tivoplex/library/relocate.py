"""
Copying finished recordings into the Plex library.

The copy lands in a ``.partial`` file first and is renamed into place, so the
library never holds a truncated episode, even if the process dies mid-copy.
"""
import os
import shutil

from tivoplex.errors import RelocationError
from tivoplex.record.core import ConversionRecord, RecordState
from tivoplex.utils import PARTIAL_SUFFIX, LogLevel, logger


def relocate_record(record: ConversionRecord) -> None:
    """
    Copy the transcoded output to its mirrored library path.

    Raises:
        RelocationError: When the directory cannot be created or the copy fails.
            Source-side artifacts are left alone so the recording can be retried.
    """
    destination = record.destination_path
    partial = destination.with_name(destination.name + PARTIAL_SUFFIX)

    try:
        record.destination_dir.mkdir(parents=True, exist_ok=True)
        shutil.copy2(str(record.output_path), str(partial))
        os.replace(partial, destination)
    except OSError as e:
        try:
            partial.unlink()
        except OSError:
            pass
        logger.log("relocate.failed", LogLevel.ERROR, file=record.output_filename, dst=str(destination), error=str(e))
        raise RelocationError(record.output_path, f"copy to {destination} failed: {e}") from e

    record.state = RecordState.RELOCATED
    logger.log("relocate.complete", LogLevel.INFO, file=record.output_filename, dst=str(destination))
