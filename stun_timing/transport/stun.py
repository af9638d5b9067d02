# stun_timing/transport/stun.py
"""
Minimal STUN binding client over UDP (RFC 5389). Only what timing needs:
build a Binding Request, match the reply by transaction id, and read the
(XOR-)MAPPED-ADDRESS out of it.
"""
import ipaddress
import logging
import os
import socket
import struct
import time
from typing import Optional, Tuple

from stun_timing.schemas import MappedAddress
from stun_timing.transport.base import Connection, ConnectError, RequestError, Transport

logger = logging.getLogger(__name__)

DEFAULT_STUN_PORT = 3478

BINDING_REQUEST = 0x0001
BINDING_SUCCESS = 0x0101
BINDING_ERROR = 0x0111

ATTR_MAPPED_ADDRESS = 0x0001
ATTR_ERROR_CODE = 0x0009
ATTR_XOR_MAPPED_ADDRESS = 0x0020

MAGIC_COOKIE = 0x2112A442
HEADER_LEN = 20
MAX_DATAGRAM = 2048

FAMILY_IPV4 = 0x01
FAMILY_IPV6 = 0x02


def parse_server_address(server: str) -> Tuple[str, int]:
    """Split "host", "host:port", "[v6]:port" or "stun:host:port" into (host, port)."""
    raw = server.strip()
    if raw.lower().startswith("stun:"):
        raw = raw[5:]
    if not raw:
        raise ConnectError("empty server address")

    port_text = None
    if raw.startswith("["):
        end = raw.find("]")
        if end == -1:
            raise ConnectError(f"malformed server address: {server!r}")
        host, rest = raw[1:end], raw[end + 1:]
        if rest:
            if not rest.startswith(":"):
                raise ConnectError(f"malformed server address: {server!r}")
            port_text = rest[1:]
    elif raw.count(":") == 1:
        host, port_text = raw.split(":")
    else:
        # bare hostname, IPv4, or unbracketed IPv6 without a port
        host = raw

    if not host:
        raise ConnectError(f"missing host in server address: {server!r}")
    if port_text is None:
        return host, DEFAULT_STUN_PORT
    try:
        port = int(port_text)
    except ValueError:
        raise ConnectError(f"invalid port in server address: {server!r}") from None
    if not 0 < port < 65536:
        raise ConnectError(f"port out of range in server address: {server!r}")
    return host, port


def new_transaction_id() -> bytes:
    return os.urandom(12)


def build_binding_request(transaction_id: bytes) -> bytes:
    # type (2) + length (2) + magic cookie (4) + transaction id (12); no attributes
    return struct.pack("!HHI", BINDING_REQUEST, 0, MAGIC_COOKIE) + transaction_id


def response_transaction_id(data: bytes) -> Optional[bytes]:
    if len(data) < HEADER_LEN:
        return None
    return data[8:HEADER_LEN]


def _iter_attributes(data: bytes):
    msg_len = struct.unpack("!H", data[2:4])[0]
    end = min(len(data), HEADER_LEN + msg_len)
    pos = HEADER_LEN
    while pos + 4 <= end:
        attr_type, attr_len = struct.unpack("!HH", data[pos:pos + 4])
        value = data[pos + 4:pos + 4 + attr_len]
        if len(value) < attr_len:
            break
        yield attr_type, value
        # attributes are padded to a 4-byte boundary
        pos += 4 + attr_len + (-attr_len % 4)


def _decode_address(value: bytes, transaction_id: bytes, xored: bool) -> MappedAddress:
    if len(value) < 4:
        raise RequestError("truncated address attribute")
    family = value[1]
    port = struct.unpack("!H", value[2:4])[0]
    addr = value[4:]
    if family == FAMILY_IPV4:
        size = 4
    elif family == FAMILY_IPV6:
        size = 16
    else:
        raise RequestError(f"unsupported address family 0x{family:02x}")
    if len(addr) < size:
        raise RequestError("truncated address attribute")
    addr = addr[:size]

    if xored:
        port ^= MAGIC_COOKIE >> 16
        key = struct.pack("!I", MAGIC_COOKIE) + transaction_id
        addr = bytes(a ^ k for a, k in zip(addr, key))
    return MappedAddress(str(ipaddress.ip_address(addr)), port)


def _decode_error_code(value: bytes) -> str:
    if len(value) < 4:
        return "error response"
    code = (value[2] & 0x07) * 100 + value[3]
    reason = value[4:].decode("utf-8", errors="replace").strip()
    return f"error response {code} {reason}".rstrip()


def parse_binding_response(data: bytes, transaction_id: bytes) -> MappedAddress:
    """
    Parse a Binding response that belongs to transaction_id. Returns the mapped
    address, preferring XOR-MAPPED-ADDRESS; raises RequestError otherwise.
    """
    if len(data) < HEADER_LEN:
        raise RequestError(f"response too short ({len(data)} bytes)")
    msg_type, _msg_len, cookie = struct.unpack("!HHI", data[:8])
    if cookie != MAGIC_COOKIE:
        raise RequestError("invalid magic cookie")
    if data[8:HEADER_LEN] != transaction_id:
        raise RequestError("transaction id mismatch")

    attrs = dict(_iter_attributes(data))
    if msg_type == BINDING_ERROR:
        raise RequestError(_decode_error_code(attrs.get(ATTR_ERROR_CODE, b"")))
    if msg_type != BINDING_SUCCESS:
        raise RequestError(f"unexpected message type 0x{msg_type:04x}")

    if ATTR_XOR_MAPPED_ADDRESS in attrs:
        return _decode_address(attrs[ATTR_XOR_MAPPED_ADDRESS], transaction_id, xored=True)
    if ATTR_MAPPED_ADDRESS in attrs:
        return _decode_address(attrs[ATTR_MAPPED_ADDRESS], transaction_id, xored=False)
    raise RequestError("no mapped address in response")


class UdpStunConnection(Connection):
    """One connected UDP socket, reused for every request of a run."""

    def __init__(self, sock: socket.socket, server: str):
        self.sock = sock
        self.server = server

    def send_binding_request(self, timeout: float):
        transaction_id = new_transaction_id()
        request = build_binding_request(transaction_id)

        start = time.perf_counter_ns()
        deadline = time.monotonic() + timeout
        try:
            self.sock.send(request)
            while True:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    raise socket.timeout()
                self.sock.settimeout(remaining)
                data = self.sock.recv(MAX_DATAGRAM)
                # late replies to earlier (timed out) requests share the socket
                if response_transaction_id(data) != transaction_id:
                    logger.debug("ignoring datagram for another transaction from %s", self.server)
                    continue
                break
        except socket.timeout:
            raise RequestError(f"timeout after {timeout}s") from None
        except OSError as e:
            raise RequestError(f"socket error: {e}") from e

        address = parse_binding_response(data, transaction_id)
        elapsed_us = (time.perf_counter_ns() - start) // 1000
        return address, elapsed_us

    def close(self) -> None:
        self.sock.close()


class UdpStunTransport(Transport):
    def connect(self, server: str) -> UdpStunConnection:
        host, port = parse_server_address(server)
        try:
            infos = socket.getaddrinfo(host, port, type=socket.SOCK_DGRAM)
        except (socket.gaierror, UnicodeError) as e:
            raise ConnectError(f"failed to resolve {host}: {e}") from e
        if not infos:
            raise ConnectError(f"no addresses for {host}")

        family, socktype, proto, _canon, sockaddr = infos[0]
        sock = socket.socket(family, socktype, proto)
        try:
            sock.connect(sockaddr)
        except OSError as e:
            sock.close()
            raise ConnectError(f"failed to dial STUN server {host}:{port}: {e}") from e
        logger.debug("connected to %s:%d via %s", host, port, sockaddr[0])
        return UdpStunConnection(sock, f"{host}:{port}")
