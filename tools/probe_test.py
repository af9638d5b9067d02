# tools/probe_test.py
# Usage: python3 -m tools.probe_test stun.cloudflare.com:3478 [timeout, e.g. 2s or 250ms]
import sys
import json

from stun_timing.bench.sampler import Sampler
from stun_timing.config import DEFAULT_TIMEOUT_S, parse_duration
from stun_timing.transport.base import ConnectError
from stun_timing.transport.stun import UdpStunTransport


def main(argv=None, transport=None):
    argv = sys.argv[1:] if argv is None else argv
    if not argv:
        print("Usage: python3 -m tools.probe_test <host[:port]> [timeout]")
        return 2
    server = argv[0]
    try:
        timeout = parse_duration(argv[1]) if len(argv) > 1 else DEFAULT_TIMEOUT_S
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2
    transport = transport or UdpStunTransport()
    try:
        conn = transport.connect(server)
    except ConnectError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    with conn:
        outcome = Sampler(conn, timeout).sample()
    print(json.dumps({
        "server": server,
        "elapsed_us": outcome.elapsed_us,
        "error": outcome.error,
        "mapped_address": str(outcome.mapped_address) if outcome.mapped_address else None,
    }, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
