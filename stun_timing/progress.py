# stun_timing/progress.py
import sys
from typing import Protocol


class Progress(Protocol):
    def advance(self, by: int = 1) -> None: ...


class TextProgressBar:
    """Redraws "[####      ] 4/10" in place on a terminal stream (stderr by default)."""

    def __init__(self, total: int, width: int = 40, stream=None):
        self.total = total
        self.width = width
        self.stream = stream if stream is not None else sys.stderr
        self.done = 0

    def advance(self, by: int = 1) -> None:
        self.done = min(self.total, self.done + by)
        filled = self.width * self.done // self.total if self.total else self.width
        bar = "#" * filled + " " * (self.width - filled)
        self.stream.write(f"\r[{bar}] {self.done}/{self.total}")
        if self.done >= self.total:
            self.stream.write("\n")
        self.stream.flush()
