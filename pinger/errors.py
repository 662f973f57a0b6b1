# pinger/errors.py
from pinger.schemas import FailureCode


class PingerError(Exception):
    """Base for everything that turns a ping() call into a failed outcome."""
    code: FailureCode = "execution_error"


class ConfigurationError(PingerError):
    """Missing/non-executable fping binary or an address family it cannot serve."""
    code: FailureCode = "config_error"


class ExecutionError(PingerError):
    """fping could not be run, timed out, or capability detection gave up."""
    code: FailureCode = "execution_error"


class ProtocolError(PingerError):
    """fping ran but nothing it printed could be attributed to a batch host."""
    code: FailureCode = "no_output"


class SignalledError(PingerError):
    code: FailureCode = "signaled"
