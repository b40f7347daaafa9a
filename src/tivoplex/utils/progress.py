"""tqdm progress bars driven by absolute positions parsed from tool output."""
from typing import Callable

from tqdm import tqdm

ProgressCallback = Callable[[float], None]


class ProgressBar:
    """Wraps a tqdm bar so callers can report the current position instead of increments."""

    def __init__(self, desc: str, total: float | None, unit: str):
        self.bar = tqdm(total=total, desc=desc, unit=unit, dynamic_ncols=True, leave=False)
        self.position: float = 0

    def __call__(self, value: float) -> None:
        if value < self.position:
            return
        total = self.bar.total
        if total is not None and value > total:
            value = total
        self.bar.update(value - self.position)
        self.position = value

    def close(self) -> None:
        self.bar.close()
