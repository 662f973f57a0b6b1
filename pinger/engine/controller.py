# pinger/engine/controller.py

import contextlib
import logging
import os
import signal
import threading
from typing import List, Optional, Sequence

from pinger.config import Settings
from pinger.engine.state import ProbeOutcome, ProbeRequest
from pinger.errors import ExecutionError, PingerError, ProtocolError, SignalledError
from pinger.fping.capabilities import CapabilityCache, CapabilityProbe
from pinger.fping.command import BinaryAvailability, CommandBuilder, detect_binaries
from pinger.fping.stats import StatsAggregator
from pinger.runner.base import ProcessRunner
from pinger.runner.shell import SubprocessRunner
from pinger.schemas import HostResult

logger = logging.getLogger(__name__)


@contextlib.contextmanager
def blocked_signals(signals=(signal.SIGINT, signal.SIGQUIT)):
    """Keep Ctrl-C/Ctrl-\\ away from the calling thread while fping runs."""
    try:
        orig = signal.pthread_sigmask(signal.SIG_BLOCK, set(signals))
    except (OSError, ValueError) as e:
        logger.warning("cannot set signal mask to block the user signal: %s", e)
        orig = None
    try:
        yield
    finally:
        if orig is not None:
            try:
                signal.pthread_sigmask(signal.SIG_SETMASK, orig)
            except (OSError, ValueError) as e:
                logger.warning("cannot restore signal mask: %s", e)


class ProbeEngine:
    """
    Pings a batch of addresses through the external fping/fping6 binaries, so no raw
    socket privileges are needed. One engine (and its capability cache) can be shared
    by any number of threads.
    """

    def __init__(self, settings: Settings, runner: Optional[ProcessRunner] = None,
                 cache: Optional[CapabilityCache] = None,
                 availability: Optional[BinaryAvailability] = None):
        self.s = settings
        self.runner = runner or SubprocessRunner(settings.max_output_size)
        self.cache = cache or CapabilityCache(expire_s=settings.check_expire_s)
        self.avail = availability or detect_binaries(settings)
        self.probe = CapabilityProbe(self.runner, self.cache, timeout=settings.detect_timeout)
        self.builder = CommandBuilder(self.avail, self.probe)

    def temp_filename(self) -> str:
        name = f"{self.s.progname}_{os.getpid()}_{threading.get_ident()}.pinger"
        return os.path.join(self.s.tmpdir, name)

    def ping(self, request: ProbeRequest) -> ProbeOutcome:
        logger.debug("In ping() hosts_count:%d", len(request.hosts))
        try:
            results = self._process(request)
        except PingerError as e:
            logger.error("%s", e)
            return ProbeOutcome.failed(e)
        return ProbeOutcome(success=True, results=results)

    def _stage(self, filename: str, hosts: Sequence[str]) -> None:
        logger.debug("%s", filename)
        try:
            with open(filename, "w") as f:
                for addr in hosts:
                    logger.debug("    %s", addr)
                    f.write(f"{addr}\n")
        except OSError as e:
            raise ExecutionError(f"{filename}: {e.strerror}")

    def _process(self, req: ProbeRequest) -> List[HostResult]:
        if not req.hosts:
            return []

        source_ip = req.source_ip if req.source_ip is not None else self.s.source_ip

        self.cache.expire_if_stale()
        invocations = self.builder.build(req.hosts, req.requests_count, interval=req.interval,
                                         size=req.size, timeout=req.timeout, source_ip=source_ip)

        filename = self.temp_filename()
        cmd = self.builder.command_line(invocations, filename)
        agg = StatsAggregator(req.hosts, req.requests_count, allow_redirect=req.allow_redirect,
                              dual_stack=self.avail.dual_stack(source_ip))

        try:
            self._stage(filename, req.hosts)
            logger.debug("%s", cmd)
            with blocked_signals():
                res = self.runner.execute(cmd, self.s.exec_timeout)
        finally:
            with contextlib.suppress(FileNotFoundError):
                os.unlink(filename)

        if res.status == "timeout":
            raise ExecutionError(f"Timeout while executing \"{cmd}\"")
        if not res.ok:
            raise ExecutionError(f"{cmd}: {res.error}")

        lines = res.output.splitlines()
        matched = agg.feed(lines)

        if res.signaled:
            raise SignalledError(f"fping was terminated by signal {-res.returncode}")

        if matched == 0:
            last = next((ln.strip() for ln in reversed(lines) if ln.strip()), "no output")
            raise ProtocolError(f"fping failed: {last}")

        return agg.results()
