# stun_timing/bench/histogram.py
import math
from typing import List, Sequence

from stun_timing.bench.stats import split_outcomes
from stun_timing.schemas import Bucket, ProbeOutcome

NUM_BUCKETS = 20
BAR_WIDTH = 40
BAR_CHAR = "█"


def build_buckets(times: Sequence[int], num_buckets: int = NUM_BUCKETS) -> List[Bucket]:
    """
    Split [min, max] into num_buckets equal-width buckets. A sample equal to
    max lands in the last bucket. With zero spread every sample goes to
    bucket 0 and every bound collapses to min.
    """
    if not times:
        raise ValueError("cannot bucket an empty sample")
    lo, hi = min(times), max(times)
    counts = [0] * num_buckets

    if hi == lo:
        counts[0] = len(times)
        return [Bucket(lower_us=lo, upper_us=lo, count=c) for c in counts]

    width = (hi - lo) / num_buckets
    for t in times:
        idx = int(math.floor((t - lo) / width))
        if idx >= num_buckets:
            idx = num_buckets - 1
        counts[idx] += 1

    return [
        Bucket(
            lower_us=int(math.floor(i * width)) + lo,
            upper_us=int(math.floor((i + 1) * width)) + lo,
            count=c,
        )
        for i, c in enumerate(counts)
    ]


def bar_length(count: int, max_count: int, width: int = BAR_WIDTH) -> int:
    if max_count <= 0:
        return 0
    return count * width // max_count


def render_histogram(outcomes: Sequence[ProbeOutcome]) -> str:
    times, _ = split_outcomes(outcomes)
    if not times:
        return ""

    buckets = build_buckets(times)
    peak = max(b.count for b in buckets)
    lines = ["", "Latency Distribution (μs):"]
    for b in buckets:
        bar = BAR_CHAR * bar_length(b.count, peak)
        lines.append(f"{b.lower_us:6d} - {b.upper_us:6d} | {bar:<{BAR_WIDTH}} | {b.count}")
    return "\n".join(lines)
