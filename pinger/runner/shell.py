# pinger/runner/shell.py
import logging
import os
import signal
import subprocess
import threading

from pinger.runner.base import ExecResult, ProcessRunner

logger = logging.getLogger(__name__)

DEFAULT_MAX_OUTPUT = 16 * 1024 * 1024
CHUNK_SIZE = 64 * 1024

class SubprocessRunner(ProcessRunner):
    """
    Runs command lines through /bin/sh (fping is fed its targets with "<file" redirection
    and dual-stack runs are chained with ";"). Output is stdout and stderr merged; only the
    first max_output bytes are kept, the rest is read and dropped so the child never blocks
    on a full pipe. On timeout the whole process group is killed, not just the shell.
    """

    def __init__(self, max_output: int = DEFAULT_MAX_OUTPUT):
        self.max_output = max_output

    def _drain(self, stream, buf: bytearray) -> None:
        while True:
            chunk = stream.read1(CHUNK_SIZE)
            if not chunk:
                break
            room = self.max_output - len(buf)
            if room > 0:
                buf += chunk[:room]

    def _kill_group(self, proc: subprocess.Popen) -> None:
        try:
            os.killpg(proc.pid, signal.SIGKILL)
        except ProcessLookupError:
            pass

    def execute(self, command: str, timeout: float) -> ExecResult:
        logger.debug("executing %r (timeout %ss)", command, timeout)
        try:
            proc = subprocess.Popen(command, shell=True, stdout=subprocess.PIPE,
                                    stderr=subprocess.STDOUT, start_new_session=True)
        except OSError as e:
            return ExecResult("failure", "", str(e))

        buf = bytearray()
        reader = threading.Thread(target=self._drain, args=(proc.stdout, buf), daemon=True)
        reader.start()

        status, error = "success", ""
        try:
            proc.wait(timeout=timeout)
        except subprocess.TimeoutExpired:
            self._kill_group(proc)
            proc.wait()
            status, error = "timeout", f"timeout after {timeout}s"

        reader.join()
        proc.stdout.close()
        return ExecResult(status, buf.decode("utf-8", errors="replace"), error, proc.returncode)
