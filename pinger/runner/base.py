# pinger/runner/base.py
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from pinger.schemas import ExecStatus

@dataclass
class ExecResult:
    status: ExecStatus              # "success" | "timeout" | "failure"
    output: str = ""                # stdout+stderr, bounded
    error: str = ""                 # short reason for timeout/failure
    returncode: Optional[int] = None

    @property
    def ok(self) -> bool:
        return self.status == "success"

    @property
    def signaled(self) -> bool:
        # Popen reports death by signal N as returncode -N
        return self.returncode is not None and self.returncode < 0

class ProcessRunner(ABC):
    @abstractmethod
    def execute(self, command: str, timeout: float) -> ExecResult:
        """Run a shell command line, capture its combined output and return an ExecResult.

        The exit code of the command is not judged; only spawn failures and timeouts
        are reported through the status.
        """
        raise NotImplementedError
