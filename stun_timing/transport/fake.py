# stun_timing/transport/fake.py
from collections import deque
from typing import Optional

from stun_timing.schemas import MappedAddress
from stun_timing.transport.base import Connection, ConnectError, RequestError, Transport

FAKE_ADDRESS = MappedAddress("203.0.113.7", 54321)


class FakeConnection(Connection):
    """
    script: sequence of replies, one consumed per request. A reply is either
    an int (elapsed microseconds, answered with FAKE_ADDRESS), a
    (MappedAddress, elapsed_us) tuple, or an exception instance to raise.
    If no scripted reply is left, the request times out.
    """
    def __init__(self, script=None):
        self.script = deque(script or [])
        self.requests = 0
        self.closed = False

    def send_binding_request(self, timeout: float):
        if self.closed:
            raise RequestError("connection closed")
        self.requests += 1
        if not self.script:
            raise RequestError(f"timeout after {timeout}s")
        reply = self.script.popleft()
        if isinstance(reply, BaseException):
            raise reply
        if isinstance(reply, int):
            return FAKE_ADDRESS, reply
        return reply

    def close(self) -> None:
        self.closed = True


class FakeTransport(Transport):
    def __init__(self, script=None, connect_error: Optional[str] = None):
        self.script = script
        self.connect_error = connect_error
        self.connections = []

    def connect(self, server: str) -> FakeConnection:
        if self.connect_error:
            raise ConnectError(self.connect_error)
        conn = FakeConnection(self.script)
        self.connections.append(conn)
        return conn
