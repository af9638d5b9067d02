# stun_timing/bench/stats.py
import math
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from stun_timing.schemas import ProbeOutcome

NO_SUCCESS = "No successful requests"

# (table label, percentile); labels are pre-padded to the 7-wide column
TABLE_ROWS = (
    ("  p0   ", 0),
    ("  p25  ", 25),
    ("  p50  ", 50),
    ("  p75  ", 75),
    (" p100  ", 100),
)


@dataclass
class LatencySummary:
    successes: int
    failures: int
    first_us: Optional[int] = None         # probe 0's time, only if it succeeded
    percentiles: Dict[int, int] = field(default_factory=dict)

    @property
    def total(self) -> int:
        return self.successes + self.failures


def split_outcomes(outcomes: Sequence[ProbeOutcome]) -> Tuple[List[int], int]:
    """Return (successful elapsed times in probe order, failure count)."""
    times = [o.elapsed_us for o in outcomes if o.ok]
    return times, len(outcomes) - len(times)


def round_half_away(x: float) -> int:
    """Round to the nearest integer, ties away from zero (0.5 -> 1, -0.5 -> -1)."""
    if x >= 0:
        return int(math.floor(x + 0.5))
    return -int(math.floor(-x + 0.5))


def percentile(sorted_times: Sequence[int], p: int) -> int:
    """
    Nearest-rank percentile on an ascending list: index = round((n-1) * p / 100).
    Ties round away from zero, so for [100, 200] p50 is 200.
    """
    if not sorted_times:
        raise ValueError("percentile of empty sequence")
    if not 0 <= p <= 100:
        raise ValueError("p must be within 0..100")
    index = round_half_away((len(sorted_times) - 1) * p / 100)
    return sorted_times[index]


def summarize(outcomes: Sequence[ProbeOutcome]) -> Optional[LatencySummary]:
    times, failures = split_outcomes(outcomes)
    if not times:
        return None
    times.sort()

    pct = {p: percentile(times, p) for _, p in TABLE_ROWS}
    # p0/p100 are the literal extremes
    pct[0], pct[100] = times[0], times[-1]

    first = outcomes[0].elapsed_us if outcomes[0].ok else None
    return LatencySummary(successes=len(times), failures=failures, first_us=first, percentiles=pct)


def render_results(outcomes: Sequence[ProbeOutcome]) -> str:
    summary = summarize(outcomes)
    if summary is None:
        return NO_SUCCESS

    lines = []
    if summary.first_us is not None:
        lines.append(f"First request time: {summary.first_us} μs")
    lines += [
        "",
        "Results:",
        f"Successful requests: {summary.successes}",
        f"Failed requests: {summary.failures}",
        "",
        "┌───────┬───────────┐",
        "│ %tile │ Time (μs) │",
        "├───────┼───────────┤",
    ]
    for label, p in TABLE_ROWS:
        lines.append(f"│{label}│ {summary.percentiles[p]:9d} │")
    lines.append("└───────┴───────────┘")
    return "\n".join(lines)
