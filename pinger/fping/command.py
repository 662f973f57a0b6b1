# pinger/fping/command.py
import ipaddress
import logging
import os
import shlex
from dataclasses import dataclass
from typing import List, Optional, Sequence

from pinger.config import Settings
from pinger.errors import ConfigurationError
from pinger.fping.capabilities import CapabilityProbe

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BinaryAvailability:
    fping: str
    fping6: str
    has_v4: bool
    has_v6: bool

    def dual_stack(self, source_ip: Optional[str]) -> bool:
        """Both binaries may run over the same hosts, one after the other."""
        return source_ip is None and self.has_v4 and self.has_v6


def detect_binaries(settings: Settings) -> BinaryAvailability:
    avail = BinaryAvailability(
        fping=settings.fping_location,
        fping6=settings.fping6_location,
        has_v4=os.access(settings.fping_location, os.X_OK),
        has_v6=os.access(settings.fping6_location, os.X_OK),
    )
    logger.debug("fping available: %s, fping6 available: %s", avail.has_v4, avail.has_v6)
    return avail


def address_family(ip: str) -> int:
    try:
        return ipaddress.ip_address(ip).version
    except ValueError:
        raise ConfigurationError(f"Cannot determine the address family of source IP '{ip}'.")


def base_params(requests_count: int, interval: int = 0, size: int = 0, timeout: int = 0) -> str:
    """fping options shared by every pass; zero means "leave fping's default"."""
    params = f"-C{requests_count}"
    if interval:
        params += f" -p{interval}"
    if size:
        params += f" -b{size}"
    if timeout:
        params += f" -t{timeout}"
    return params


@dataclass
class Invocation:
    binary: str
    params: str

    def command(self, filename: str) -> str:
        return f"{shlex.quote(self.binary)} {self.params} 2>&1 <{shlex.quote(filename)}"


class CommandBuilder:
    def __init__(self, availability: BinaryAvailability, probe: CapabilityProbe):
        self.avail = availability
        self.probe = probe

    def check_binaries(self) -> None:
        if not self.avail.has_v4 and not self.avail.has_v6:
            raise ConfigurationError(
                f"At least one of '{self.avail.fping}', '{self.avail.fping6}' must exist. "
                "Both are missing in the system.")

    def select_binaries(self, hosts: Sequence[str], source_ip: Optional[str]) -> List[str]:
        self.check_binaries()

        if source_ip is not None:
            if address_family(source_ip) == 4:
                binary, present = self.avail.fping, self.avail.has_v4
            else:
                binary, present = self.avail.fping6, self.avail.has_v6
            if not present:
                raise ConfigurationError(f"File '{binary}' cannot be found in the system.")
            return [binary]

        binaries = []
        if self.avail.has_v4:
            binaries.append(self.avail.fping)
        # skip fping6 when fping already does -6 itself
        if self.avail.has_v6 and not (self.avail.has_v4 and
                                      self.probe.ipv6_supported(self.avail.fping, hosts[0])):
            binaries.append(self.avail.fping6)
        return binaries

    def build(self, hosts: Sequence[str], requests_count: int, interval: int = 0, size: int = 0,
              timeout: int = 0, source_ip: Optional[str] = None) -> List[Invocation]:
        binaries = self.select_binaries(hosts, source_ip)
        params = base_params(requests_count, interval, size, timeout)

        invocations = []
        for binary in binaries:
            p = f"{params} -i{self.probe.min_interval(binary, hosts)}"
            if source_ip is not None:
                option = self.probe.source_ip_option(binary)
                if option is not None:
                    p += f" {option}{source_ip}"
            invocations.append(Invocation(binary, p))
        return invocations

    @staticmethod
    def command_line(invocations: Sequence[Invocation], filename: str) -> str:
        # ";" keeps the IPv4 and IPv6 passes strictly sequential
        return "; ".join(inv.command(filename) for inv in invocations)
