# stun_timing/cli.py
# Usage examples:
#   stun-timing
#   stun-timing --host stun.l.google.com:19302 --runs 100 --timeout 2s
#   python3 -m stun_timing.cli --host fake --runs 50

import argparse
import logging
import sys

from stun_timing.bench.controller import TimingController
from stun_timing.bench.histogram import render_histogram
from stun_timing.bench.stats import render_results
from stun_timing.config import DEFAULT_HOST, Settings, parse_duration
from stun_timing.progress import TextProgressBar
from stun_timing.transport.base import ConnectError, RequestError

FAKE_HOST = "fake"


def fake_script(runs: int):
    """Deterministic replies for dry runs: a slow tail and every 10th request lost."""
    script = []
    for i in range(runs):
        if i % 10 == 9:
            script.append(RequestError("timeout (scripted)"))
        else:
            script.append(12_000 + (i * 7919) % 6_000 + (40_000 if i % 25 == 24 else 0))
    return script


def build_transport(settings: Settings):
    if settings.host == FAKE_HOST:
        from stun_timing.transport.fake import FakeTransport
        return FakeTransport(script=fake_script(settings.runs))
    from stun_timing.transport.stun import UdpStunTransport
    return UdpStunTransport()


def _positive_int(text: str) -> int:
    try:
        value = int(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid int value: {text!r}") from None
    if value < 1:
        raise argparse.ArgumentTypeError("must be a positive integer")
    return value


def _duration(text: str) -> float:
    try:
        return parse_duration(text)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from None


def build_argparser():
    ap = argparse.ArgumentParser(
        prog="stun-timing",
        description="Measure STUN binding request latency and print percentiles and a histogram",
    )
    ap.add_argument("--host", default=DEFAULT_HOST,
                    help=f"STUN server host[:port] (default {DEFAULT_HOST}; 'fake' for a scripted dry run)")
    ap.add_argument("--runs", type=_positive_int, default=1, help="Number of binding requests to send")
    ap.add_argument("--timeout", type=_duration, default=5.0,
                    help="Timeout for each request, e.g. 5s, 250ms (default 5s)")
    ap.add_argument("--no-progress", dest="progress", action="store_false", help="Do not draw the progress bar")
    ap.add_argument("-v", "--verbose", action="store_true", help="Debug logging on stderr")
    return ap


def main(argv=None, transport=None) -> int:
    args = build_argparser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    s = Settings(host=args.host, runs=args.runs, timeout=args.timeout, progress=args.progress)
    if transport is None:
        transport = build_transport(s)

    def on_start():
        print("Starting STUN requests...", flush=True)

    def on_address(address):
        print(f"\nYour IP is: {address.ip}", flush=True)

    ctrl = TimingController(
        transport,
        s,
        progress=TextProgressBar(s.runs) if s.progress else None,
        on_address=on_address,
        on_start=on_start,
    )
    try:
        outcomes = ctrl.run()
    except ConnectError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print()
    print(render_results(outcomes))
    histogram = render_histogram(outcomes)
    if histogram:
        print(histogram)
    return 0


if __name__ == "__main__":
    sys.exit(main())
