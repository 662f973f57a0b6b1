# pinger/engine/state.py
from dataclasses import dataclass, field
from typing import List, Optional

from pinger.errors import PingerError
from pinger.schemas import FailureCode, HostResult

@dataclass
class ProbeRequest:
    hosts: List[str]
    requests_count: int = 3
    interval: int = 0           # ms between packets to one target (-p), 0 = fping default
    size: int = 0               # bytes (-b), 0 = fping default
    timeout: int = 0            # ms (-t), 0 = fping default
    allow_redirect: bool = False
    source_ip: Optional[str] = None   # None falls back to Settings.source_ip

@dataclass
class ProbeOutcome:
    success: bool
    results: List[HostResult] = field(default_factory=list)
    error: Optional[str] = None
    code: Optional[FailureCode] = None

    @classmethod
    def failed(cls, err: PingerError) -> "ProbeOutcome":
        return cls(success=False, error=str(err), code=err.code)
