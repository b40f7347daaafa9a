"""Moving finished recordings into the library and tidying up afterwards."""

from .cleanup import cleanup_record, sweep_segment
from .relocate import relocate_record

__all__ = ["cleanup_record", "sweep_segment", "relocate_record"]
