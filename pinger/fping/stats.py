# pinger/fping/stats.py
import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence

from pinger.fping.parser import FpingLine, classify_line
from pinger.schemas import HostResult

logger = logging.getLogger(__name__)


@dataclass
class HostState:
    address: str
    requests_count: int
    status: List[bool] = field(default_factory=list)   # status[i]: reply seen for packet i
    sent: int = 0
    received: int = 0
    min: float = 0.0      # seconds, valid once received > 0
    max: float = 0.0
    sum: float = 0.0

    def __post_init__(self):
        if not self.status:
            self.status = [False] * self.requests_count

    def result(self) -> HostResult:
        return {
            "address": self.address,
            "sent": self.sent,
            "received": self.received,
            "min": self.min if self.received else None,
            "max": self.max if self.received else None,
            "avg": self.sum / self.received if self.received else None,
            "loss": (self.sent - self.received) / self.sent if self.sent else None,
        }


def _seconds(token: str) -> float:
    try:
        return float(token) / 1000
    except ValueError:
        # old fping pinging a broadcast address: a reply was seen but the
        # statistics line has no value for it
        logger.debug("non-numeric response time %r counted as 0 ms", token)
        return 0.0


class StatsAggregator:
    """
    Per-host accounting over one batch. When both fping and fping6 run (dual_stack),
    the reply bitmap of a host is cleared after its first statistics line so the
    second pass is counted on its own.
    """

    def __init__(self, hosts: Sequence[str], requests_count: int, allow_redirect: bool = False,
                 dual_stack: bool = False):
        self.requests_count = requests_count
        self.allow_redirect = allow_redirect
        self.dual_stack = dual_stack
        self.order = list(hosts)
        self.hosts: Dict[str, HostState] = {}
        for addr in self.order:
            self.hosts.setdefault(addr, HostState(addr, requests_count))

    def apply(self, line: FpingLine) -> bool:
        """Fold one classified line into host state; True if it belongs to a batch host."""
        host = self.hosts.get(line.address) if line.address is not None else None
        if host is None:
            if line.kind not in ("malformed", "redirected"):
                logger.debug("ignoring fping output line: \"%s\"", line.text)
            return False

        if line.kind == "reply":
            if 0 <= line.index < self.requests_count:
                host.status[line.index] = True
        elif line.kind == "stats":
            self._statistics(host, line.values)
        else:
            logger.debug("ignoring %s line: \"%s\"", line.kind, line.text)
        return True

    def _statistics(self, host: HostState, values: List[str]) -> None:
        # "8.8.8.8 : 91.7 37.0 29.2 - 36.8", only packets marked by a reply line count
        for idx, token in enumerate(values[:self.requests_count]):
            if not host.status[idx]:
                continue
            sec = _seconds(token)
            if host.received == 0 or host.min > sec:
                host.min = sec
            if host.received == 0 or host.max < sec:
                host.max = sec
            host.sum += sec
            host.received += 1

        host.sent += self.requests_count

        if host.sent == self.requests_count and self.dual_stack:
            host.status[:] = [False] * self.requests_count

    def feed(self, lines: Iterable[str]) -> int:
        """Classify and apply every line; returns how many belonged to batch hosts."""
        matched = 0
        for raw in lines:
            if self.apply(classify_line(raw, self.allow_redirect)):
                matched += 1
        return matched

    def results(self) -> List[HostResult]:
        """One record per batch position; a repeated address only counts at its first position."""
        out = []
        seen = set()
        for addr in self.order:
            if addr in seen:
                out.append(HostState(addr, self.requests_count).result())
                continue
            seen.add(addr)
            out.append(self.hosts[addr].result())
        return out

    def get(self, address: str) -> Optional[HostState]:
        return self.hosts.get(address)
