# pinger/fping/capabilities.py
import logging
import re
import shlex
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Sequence

from pinger.errors import ExecutionError
from pinger.runner.base import ProcessRunner
from pinger.schemas import SourceIpOption

logger = logging.getLogger(__name__)

KIBIBYTE = 1024
INTERVAL_CANDIDATES = (0, 1, 10)   # ms, tried in this order

# "/usr/sbin/fping: You need i >= 1, p >= 20, r < 20, and t >= 50"
# fping 3.16 changed "i >=" to "-i >="
YOU_NEED_RE = re.compile(r"You need -?i >= (\d+)")


@dataclass
class BinaryCapabilities:
    """What we know about one fping binary. None means not detected yet."""
    min_interval: Optional[int] = None
    source_ip_checked: bool = False
    source_ip_option: Optional[SourceIpOption] = None
    ipv6_supported: Optional[bool] = None


class CapabilityCache:
    """
    Per-binary capabilities shared by every ping() in the process. Everything is
    forgotten once more than expire_s seconds have passed since the last reset, so
    an upgraded fping gets re-detected. Callers hold .lock around check-then-detect.
    """

    def __init__(self, expire_s: int = 3600, clock: Callable[[], float] = time.time):
        self.expire_s = expire_s
        self.clock = clock
        self.lock = threading.RLock()
        self.reset_at = clock()
        self._entries: Dict[str, BinaryCapabilities] = {}

    def expire_if_stale(self) -> bool:
        with self.lock:
            now = self.clock()
            if now - self.reset_at > self.expire_s:
                logger.debug("expiring detected fping options (last reset %.0fs ago)",
                             now - self.reset_at)
                self.reset_at = now
                self._entries.clear()
                return True
            return False

    def get(self, binary: str) -> BinaryCapabilities:
        with self.lock:
            caps = self._entries.get(binary)
            if caps is None:
                caps = self._entries[binary] = BinaryCapabilities()
            return caps


def _is_option(text: str, letter: str) -> bool:
    if not text.startswith("-" + letter):
        return False
    return len(text) == 2 or text[2].isspace() or text[2] == ","


def parse_source_ip_option(help_text: str) -> Optional[SourceIpOption]:
    """
    Old patched fping builds had either -I or -S for the source address; since 3.x
    -I binds to an interface and -S sets the source. Scanning stops at the first
    -S, so -S wins whenever the help mentions both.
    """
    option: Optional[SourceIpOption] = None
    for line in help_text.splitlines():
        p = line.lstrip()
        if _is_option(p, "I"):
            option = "-I"
            continue
        if _is_option(p, "S"):
            option = "-S"
            break
    return option


def detect_source_ip_option(runner: ProcessRunner, fping: str,
                            timeout: float) -> Optional[SourceIpOption]:
    cmd = f"{shlex.quote(fping)} -h 2>&1"
    res = runner.execute(cmd, timeout)
    if not res.ok:
        raise ExecutionError(f"Cannot execute \"{cmd}\": {res.error}")
    return parse_source_ip_option(res.output)


def detect_min_interval(runner: ProcessRunner, fping: str, hosts: Sequence[str],
                        timeout: float) -> int:
    """
    Find the smallest -i (ms) this fping accepts without root.

        version X         | root/non-root/"safe limits" | default
        X < 3.14          | 1 / 10 / -                  | 25
        3.14 <= X < 4.0   | 0 /  1 / -                  | 25
        4.0 <= X          | 0 /  0 / 1                  | 10

    Each candidate is tried against each host until fping either suggests a minimum
    ("You need i >= N") or answers with the host address. Raises ExecutionError
    otherwise; a timeout ends detection at once.
    """
    out = ""
    for dst in hosts:
        for interval in INTERVAL_CANDIDATES:
            logger.debug("testing fping interval %d ms", interval)

            cmd = f"{shlex.quote(fping)} -c1 -t50 -i{interval} {shlex.quote(dst)}"
            res = runner.execute(cmd, timeout)

            # fping's exit code is ignored, only execution failures matter
            if res.status == "timeout":
                raise ExecutionError(f"Timeout while executing \"{cmd}\"")
            if not res.ok:
                raise ExecutionError(f"Cannot execute \"{cmd}\": {res.error}")

            out = res.output
            m = YOU_NEED_RE.search(out)
            if m:
                return int(m.group(1))

            # the usage text is always bigger than 1 KiB
            if len(out) < KIBIBYTE:
                if dst in out.lstrip():
                    return interval
                if " as root" in out:
                    raise ExecutionError(out.rstrip("\n"))

    # probably the usage or an error message; keep it if it is short
    if out and len(out) < KIBIBYTE:
        raise ExecutionError(out.rstrip("\n"))
    raise ExecutionError(f"Cannot detect the minimum interval of {fping}")


def detect_ipv6_support(runner: ProcessRunner, fping: str, dst: str, timeout: float) -> bool:
    cmd = f"{shlex.quote(fping)} -6 -c1 -t50 {shlex.quote(dst)}"
    res = runner.execute(cmd, timeout)
    # a timeout only means fping could not decide quickly, not that -6 is unknown
    if res.status == "timeout":
        return True
    return res.ok and len(res.output) < KIBIBYTE and dst in res.output


class CapabilityProbe:
    """Detects fping quirks on demand, at most once per cache lifetime per binary."""

    def __init__(self, runner: ProcessRunner, cache: CapabilityCache, timeout: float = 1):
        self.runner = runner
        self.cache = cache
        self.timeout = timeout

    def min_interval(self, fping: str, hosts: Sequence[str]) -> int:
        with self.cache.lock:
            caps = self.cache.get(fping)
            if caps.min_interval is None:
                caps.min_interval = detect_min_interval(self.runner, fping, hosts, self.timeout)
                logger.debug("detected minimum supported %s interval (-i): %d",
                             fping, caps.min_interval)
            return caps.min_interval

    def source_ip_option(self, fping: str) -> Optional[SourceIpOption]:
        with self.cache.lock:
            caps = self.cache.get(fping)
            if not caps.source_ip_checked:
                try:
                    caps.source_ip_option = detect_source_ip_option(self.runner, fping, self.timeout)
                except ExecutionError as e:
                    # stays unchecked, next call tries again
                    logger.debug("cannot detect %s source IP option: %s", fping, e)
                    return None
                caps.source_ip_checked = True
                logger.debug("detected %s source IP option: \"%s\"", fping,
                             caps.source_ip_option or "")
            return caps.source_ip_option

    def ipv6_supported(self, fping: str, dst: str) -> bool:
        with self.cache.lock:
            caps = self.cache.get(fping)
            if caps.ipv6_supported is None:
                caps.ipv6_supported = detect_ipv6_support(self.runner, fping, dst, self.timeout)
                logger.debug("detected %s IPv6 support: \"%s\"", fping,
                             "yes" if caps.ipv6_supported else "no")
            return caps.ipv6_supported
