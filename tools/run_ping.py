# tools/run_ping.py
# Usage examples:
#   python3 -m tools.run_ping 8.8.8.8 1.1.1.1
#   python3 -m tools.run_ping 8.8.8.8 --count 5 --interval 200 --allow-redirect
#   python3 -m tools.run_ping 8.8.8.8 --source-ip 192.168.1.10 --fping /usr/bin/fping
#   python3 -m tools.run_ping --fake 8.8.8.8 7.7.7.7

import argparse
import dataclasses
import json
import logging

from pinger.config import Settings
from pinger.engine.controller import ProbeEngine
from pinger.engine.state import ProbeRequest
from pinger.logger_config import setup_logger

def fake_engine(args, settings):
    from pinger.fping.command import BinaryAvailability
    from pinger.runner.fake import FakeRunner

    # fping 5.x style transcript: first host answers, the others stay silent
    lines = []
    for seq in range(args.count):
        for i, host in enumerate(args.hosts):
            if i == 0:
                lines.append(f"{host} : [{seq}], 64 bytes, {9.0 + seq:.2f} ms (9.00 avg, 0% loss)")
            else:
                lines.append(f"{host} : [{seq}], timed out (NaN avg, 100% loss)")
    lines.append("")
    for i, host in enumerate(args.hosts):
        if i == 0:
            lines.append(f"{host} : " + " ".join(f"{9.0 + seq:.2f}" for seq in range(args.count)))
        else:
            lines.append(f"{host} : " + " ".join("-" for _ in range(args.count)))

    runner = FakeRunner(script={
        " -c1 -t50 -i0 ": [f"{args.hosts[0]} is alive\n"],
        " -6 -c1 -t50 ": ["\n"],
        " -h 2>&1": ["  -S addr    set source address\n"],
        " -C": ["\n".join(lines) + "\n"],
    })
    avail = BinaryAvailability(settings.fping_location, settings.fping6_location, True, False)
    return ProbeEngine(settings, runner=runner, availability=avail)

def build_argparser():
    ap = argparse.ArgumentParser(description="Ping a batch of hosts through fping")
    ap.add_argument("hosts", nargs="+", help="IPv4/IPv6 addresses to ping")
    ap.add_argument("--count", type=int, default=3, help="Echo requests per host (fping -C)")
    ap.add_argument("--interval", type=int, default=0, help="Per-target period in ms (fping -p), 0 = default")
    ap.add_argument("--size", type=int, default=0, help="Payload size in bytes (fping -b), 0 = default")
    ap.add_argument("--timeout", type=int, default=0, help="Initial timeout in ms (fping -t), 0 = default")
    ap.add_argument("--allow-redirect", action="store_true", help="Count redirected responses as replies")
    ap.add_argument("--source-ip", default=None, help="Source address (selects fping or fping6)")
    ap.add_argument("--fping", default=Settings.fping_location, help="Path to fping")
    ap.add_argument("--fping6", default=Settings.fping6_location, help="Path to fping6")
    ap.add_argument("--tmpdir", default=Settings.tmpdir, help="Where the target list is staged")
    ap.add_argument("--fake", action="store_true", help="Replay a canned fping transcript")
    ap.add_argument("--log-level", default="WARNING", help="DEBUG, INFO, WARNING, ...")
    return ap

def main(argv=None):
    args = build_argparser().parse_args(argv)
    setup_logger("pinger", level=getattr(logging, args.log_level.upper(), logging.WARNING))

    settings = Settings(
        fping_location=args.fping,
        fping6_location=args.fping6,
        source_ip=args.source_ip,
        tmpdir=args.tmpdir,
    )
    engine = fake_engine(args, settings) if args.fake else ProbeEngine(settings)
    outcome = engine.ping(ProbeRequest(
        hosts=args.hosts,
        requests_count=args.count,
        interval=args.interval,
        size=args.size,
        timeout=args.timeout,
        allow_redirect=args.allow_redirect,
    ))
    print(json.dumps(dataclasses.asdict(outcome), indent=2))
    return 0 if outcome.success else 1

if __name__ == "__main__":
    raise SystemExit(main())
