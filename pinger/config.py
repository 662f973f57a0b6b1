from dataclasses import dataclass
from typing import Optional

@dataclass
class Settings:
    fping_location: str = "/usr/sbin/fping"
    fping6_location: str = "/usr/sbin/fping6"
    source_ip: Optional[str] = None
    tmpdir: str = "/tmp"
    progname: str = "pinger"

    # seconds; the main run vs. the short capability probes
    exec_timeout: float = 60
    detect_timeout: float = 1

    max_output_size: int = 16 * 1024 * 1024   # captured bytes per command
    check_expire_s: int = 3600                # detected fping options expire every hour
