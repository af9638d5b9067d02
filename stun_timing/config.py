import math
import re
from dataclasses import dataclass

DEFAULT_HOST = "stun.cloudflare.com:3478"
DEFAULT_TIMEOUT_S = 5.0

_DURATION_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "μs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}
_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|μs|ms|s|m|h)")


def parse_duration(text: str) -> float:
    """
    Parse a duration like "5s", "250ms", "1m30s" or a bare number of seconds.
    Returns seconds as a float; raises ValueError on anything else.
    """
    raw = text.strip()
    if not raw:
        raise ValueError("empty duration")
    try:
        seconds = float(raw)
    except ValueError:
        pos = 0
        seconds = 0.0
        for m in _DURATION_PART.finditer(raw):
            if m.start() != pos:
                break
            seconds += float(m.group(1)) * _DURATION_UNITS[m.group(2)]
            pos = m.end()
        if pos != len(raw):
            raise ValueError(f"invalid duration: {text!r}")
    if not math.isfinite(seconds) or seconds <= 0:
        raise ValueError(f"duration must be positive: {text!r}")
    return seconds


@dataclass
class Settings:
    host: str = DEFAULT_HOST
    runs: int = 1
    timeout: float = DEFAULT_TIMEOUT_S   # per request, seconds
    progress: bool = True                # draw the stderr progress bar

    def __post_init__(self):
        if self.runs < 0:
            raise ValueError("runs cannot be negative")
        if self.timeout <= 0:
            raise ValueError("timeout must be positive")
