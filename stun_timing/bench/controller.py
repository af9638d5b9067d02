# stun_timing/bench/controller.py

import logging
from typing import Callable, List, Optional

from stun_timing.bench.runner import Runner
from stun_timing.bench.sampler import Sampler
from stun_timing.config import Settings
from stun_timing.progress import Progress
from stun_timing.schemas import MappedAddress, ProbeOutcome
from stun_timing.transport.base import Transport

logger = logging.getLogger(__name__)


class TimingController:
    def __init__(self,
                 transport: Transport,
                 settings: Settings,
                 progress: Optional[Progress] = None,
                 on_address: Optional[Callable[[MappedAddress], None]] = None,
                 on_start: Optional[Callable[[], None]] = None):
        self.transport = transport
        self.s = settings
        self.progress = progress
        self.on_address = on_address
        self.on_start = on_start

    def run(self) -> List[ProbeOutcome]:
        """
        Open one connection to the configured host, run every probe over it and
        close it again. ConnectError from the transport propagates untouched:
        nothing has been measured yet, so the caller decides how to fail.
        """
        conn = self.transport.connect(self.s.host)
        logger.info("connected to %s, running %d probe(s)", self.s.host, self.s.runs)
        try:
            if self.on_start is not None:
                self.on_start()
            sampler = Sampler(conn, self.s.timeout, on_address=self.on_address)
            outcomes = Runner(sampler, self.s.runs, progress=self.progress).run()
        finally:
            conn.close()
            logger.debug("closed connection to %s", self.s.host)

        failed = sum(1 for o in outcomes if not o.ok)
        logger.info("finished %d probe(s), %d failed", len(outcomes), failed)
        return outcomes
