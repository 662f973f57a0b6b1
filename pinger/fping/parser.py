# pinger/fping/parser.py
"""
Classification of fping -C output, one line at a time.

fping prints, per target and per packet (fping 5.0+ also prints the lost ones):

    8.8.8.8 : [0], 64 bytes, 9.37 ms (9.37 avg, 0% loss)
    7.7.7.7 : [0], timed out (NaN avg, 100% loss)

and once the run is over, one statistics line per target, "-" for a lost packet:

    7.7.7.7 : - - -
    8.8.8.8 : 9.37 8.72 7.28

A reply that came from another address than the probed one carries a
"[<- addr]" marker: appended to the line before fping 3.11, prepended since.

classify_line() never touches host state; StatsAggregator dispatches on the kind.
"""
import logging
import re
from dataclasses import dataclass, field
from typing import List, Optional

from pinger.schemas import LineKind

logger = logging.getLogger(__name__)

REDIRECT_MARK = " [<-"
INDEX_RE = re.compile(r"\[\s*(-?\d+)")


@dataclass
class FpingLine:
    kind: LineKind
    text: str
    address: Optional[str] = None
    index: Optional[int] = None                        # reply / timed_out
    values: List[str] = field(default_factory=list)    # stats


def strip_redirect(line: str, allow_redirect: bool) -> Optional[FpingLine]:
    """Returns a discarded FpingLine, or None when the line should be processed further."""
    start = line.find(REDIRECT_MARK)
    if start == -1:
        return None

    if line.find("]", start) == -1:
        logger.warning("ignoring a response from fping with unexpected syntax: \"%s\";"
                       " \"]\" after \" [<-\" was expected", line)
        return FpingLine("malformed", line)

    if not allow_redirect:
        logger.debug("treating redirected response as target host down: \"%s\"", line)
        return FpingLine("redirected", line)

    logger.debug("treating redirected response as target host up: \"%s\"", line)
    return None


def remove_redirect_mark(line: str) -> str:
    start = line.find(REDIRECT_MARK)
    if start == -1:
        return line
    end = line.find("]", start)
    return line[:start] + line[end + 1:]


def classify_line(raw: str, allow_redirect: bool) -> FpingLine:
    line = raw.rstrip("\r\n")

    dropped = strip_redirect(line, allow_redirect)
    if dropped is not None:
        return dropped
    line = remove_redirect_mark(line)

    space = line.find(" ")
    if space == -1:
        return FpingLine("unknown", line)
    address = line[:space]

    sep = line.find(" : ")
    if sep == -1:
        return FpingLine("unknown", line, address)

    # NIC bonding: "192.168.1.2 : duplicate for [0], 96 bytes, 0.19 ms"
    if "duplicate for" in line:
        return FpingLine("duplicate", line, address)

    rest = line[sep + 3:]
    if rest.startswith("["):
        m = INDEX_RE.match(rest)
        if m is None:
            return FpingLine("unknown", line, address)
        kind: LineKind = "timed_out" if " timed out " in rest[1:] else "reply"
        return FpingLine(kind, line, address, index=int(m.group(1)))

    return FpingLine("stats", line, address, values=rest.split())
