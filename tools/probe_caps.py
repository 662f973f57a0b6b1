# Usage: python3 -m tools.probe_caps /usr/sbin/fping 8.8.8.8
import sys
import json

from pinger.errors import ExecutionError
from pinger.fping.capabilities import CapabilityCache, CapabilityProbe
from pinger.runner.shell import SubprocessRunner

def main():
    if len(sys.argv) < 3:
        print("Usage: python3 -m tools.probe_caps <fping_binary> <target_ip>")
        return
    fping, target = sys.argv[1], sys.argv[2]
    probe = CapabilityProbe(SubprocessRunner(), CapabilityCache(), timeout=1)

    caps = {"binary": fping, "source_ip_option": probe.source_ip_option(fping)}
    try:
        caps["min_interval"] = probe.min_interval(fping, [target])
    except ExecutionError as e:
        caps["min_interval"] = None
        caps["error"] = str(e)
    caps["ipv6_supported"] = probe.ipv6_supported(fping, target)
    print(json.dumps(caps, indent=2))

if __name__ == "__main__":
    main()
