# stun_timing/bench/runner.py
from typing import List, Optional

from stun_timing.bench.sampler import Sampler
from stun_timing.progress import Progress
from stun_timing.schemas import ProbeOutcome


class Runner:
    def __init__(self, sampler: Sampler, runs: int, progress: Optional[Progress] = None):
        if runs < 0:
            raise ValueError("runs cannot be negative")
        self.sampler = sampler
        self.runs = runs
        self.progress = progress

    def run(self) -> List[ProbeOutcome]:
        """Call the sampler `runs` times, one at a time; outcome i is probe i."""
        outcomes: List[ProbeOutcome] = []
        for _ in range(self.runs):
            outcomes.append(self.sampler.sample())
            if self.progress is not None:
                self.progress.advance(1)
        return outcomes
