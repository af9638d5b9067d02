# stun_timing/bench/sampler.py
import logging
import time
from typing import Callable, Optional

from stun_timing.schemas import MappedAddress, ProbeOutcome
from stun_timing.transport.base import Connection, RequestError

logger = logging.getLogger(__name__)


class Sampler:
    """
    Times one binding request per call. The clock brackets the whole request,
    so failed requests still carry how long they took. No retries.
    """

    def __init__(self,
                 connection: Connection,
                 timeout: float,
                 on_address: Optional[Callable[[MappedAddress], None]] = None,
                 clock: Callable[[], int] = time.perf_counter_ns):
        self.connection = connection
        self.timeout = timeout
        self.on_address = on_address
        self.clock = clock
        self.address_seen = False

    def sample(self) -> ProbeOutcome:
        start = self.clock()
        try:
            address, _ = self.connection.send_binding_request(self.timeout)
        except RequestError as e:
            elapsed_us = (self.clock() - start) // 1000
            logger.debug("binding request failed after %d us: %s", elapsed_us, e)
            return ProbeOutcome(elapsed_us=elapsed_us, error=str(e) or type(e).__name__)
        elapsed_us = (self.clock() - start) // 1000

        # only the first success of a run is surfaced
        if not self.address_seen:
            self.address_seen = True
            if self.on_address is not None:
                self.on_address(address)
        return ProbeOutcome(elapsed_us=elapsed_us, mapped_address=address)
