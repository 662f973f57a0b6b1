# pinger/runner/fake.py
from collections import deque

from pinger.runner.base import ExecResult, ProcessRunner

class FakeRunner(ProcessRunner):
    """
    script: dict[str, list[ExecResult | str]] -- the key is a substring of the command line,
    checked in insertion order; each match pops the next scripted result (a plain str is a
    successful run with that output). Commands matching nothing succeed with no output.
    Every command line is recorded in .calls.
    """
    def __init__(self, script=None):
        self.script = {}
        self.calls = []
        if script:
            for k, v in script.items():
                self.script[k] = deque(v)

    def execute(self, command: str, timeout: float) -> ExecResult:
        self.calls.append(command)
        for key, dq in self.script.items():
            if key in command and len(dq) > 0:
                res = dq.popleft()
                if isinstance(res, str):
                    return ExecResult("success", res, "", 0)
                return res
        return ExecResult("success", "", "", 0)
