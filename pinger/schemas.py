from typing import Literal, Optional, TypedDict

SourceIpOption = Literal["-I", "-S"]
ExecStatus = Literal["success", "timeout", "failure"]
FailureCode = Literal["config_error", "execution_error", "no_output", "signaled"]

# what a single line of fping output turned out to be
LineKind = Literal[
    "malformed",    # " [<-" without the closing "]"
    "redirected",   # redirected response while redirects are not allowed
    "unknown",      # no "<addr> : " shape
    "duplicate",    # "duplicate for [n]" (NIC bonding)
    "reply",        # "<addr> : [n], 84 bytes, 0.61 ms ..."
    "timed_out",    # "<addr> : [n], timed out ..." (fping 5.0+)
    "stats",        # "<addr> : 91.7 37.0 29.2 - 36.8"
]

class HostResult(TypedDict):
    address: str
    sent: int
    received: int
    min: Optional[float]     # seconds
    max: Optional[float]
    avg: Optional[float]
    loss: Optional[float]    # 0.0 .. 1.0
