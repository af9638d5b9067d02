# stun_timing/transport/base.py
from abc import ABC, abstractmethod
from typing import Tuple

from stun_timing.schemas import MappedAddress


class TransportError(Exception):
    """Base class for everything a transport can raise."""


class ConnectError(TransportError):
    """The server address is malformed or the connection cannot be set up. Fatal for a run."""


class RequestError(TransportError):
    """A single binding request failed (timeout, bad response, socket error). Not fatal."""


class Connection(ABC):
    @abstractmethod
    def send_binding_request(self, timeout: float) -> Tuple[MappedAddress, int]:
        """Send exactly one binding request; return (mapped address, elapsed microseconds)."""
        raise NotImplementedError

    @abstractmethod
    def close(self) -> None:
        raise NotImplementedError

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False


class Transport(ABC):
    @abstractmethod
    def connect(self, server: str) -> Connection:
        """Open a connection to server ("host[:port]"); raise ConnectError on failure."""
        raise NotImplementedError
