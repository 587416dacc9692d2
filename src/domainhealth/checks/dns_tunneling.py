"""DNS tunneling heuristics over query log lines."""

from __future__ import annotations

import logging
import re
import string
import threading
from collections import deque
from dataclasses import asdict, dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Deque, Dict, Iterable, List, Optional

from dateutil import parser as date_parser
from pydantic import BaseModel, ConfigDict, Field

from .base import BaseCheck, HealthCheckType, check_aliases

logger = logging.getLogger(__name__)

_BASE64_CHARS = frozenset(string.ascii_letters + string.digits + "+/=")
_HEX_RE = re.compile(r"\A[0-9a-fA-F]+\Z")


@dataclass
class TunnelingAlert:
    domain: str
    reason: str


def looks_encoded(label: str) -> bool:
    """True for labels of 20+ characters made only of base64 or hex digits."""

    if len(label) < 20:
        return False
    return all(ch in _BASE64_CHARS for ch in label) or bool(_HEX_RE.match(label))


def _parse_timestamp(text: str) -> Optional[datetime]:
    try:
        ts = date_parser.isoparse(text.strip("[]"))
    except (ValueError, OverflowError):
        return None
    return ts if ts.tzinfo else ts.replace(tzinfo=timezone.utc)


def analyze_log(
    domain: str,
    lines: Optional[Iterable[Optional[str]]],
    *,
    frequency_threshold: int = 50,
    frequency_interval: timedelta = timedelta(seconds=1),
    max_label_length: int = 50,
) -> List[TunnelingAlert]:
    """Brief: Scan query log lines for tunneling patterns below domain.

    Inputs:
      - domain: Domain whose subdomains are inspected.
      - lines: "[timestamp] qname" lines; the timestamp (ISO 8601, brackets
        optional) may be omitted, which disables rate tracking for that line.
      - frequency_threshold: Queries allowed within frequency_interval.
      - frequency_interval: Sliding window for rate detection.
      - max_label_length: First-label length above which a query is flagged.

    Outputs:
      - Alerts in log order: "Suspicious subdomain" for long or encoded first
        labels, "High query rate" when the window overflows (the window is
        then cleared).
    """

    alerts: List[TunnelingAlert] = []
    window: Deque[datetime] = deque()
    base = (domain or "").strip(".").lower()
    if not base or lines is None:
        return alerts

    for line in lines:
        parts = (line or "").split()
        if not parts:
            continue
        ts = _parse_timestamp(parts[0]) if len(parts) > 1 else None
        query = (parts[1] if ts is not None else parts[0]).rstrip(".")

        lowered = query.lower()
        if lowered != base and not lowered.endswith("." + base):
            continue

        first = query[: len(query) - len(base)].rstrip(".").split(".")[0]
        if len(first) > max_label_length or looks_encoded(first):
            alerts.append(TunnelingAlert(query, "Suspicious subdomain"))

        if ts is None:
            continue
        window.append(ts)
        while window and ts - window[0] > frequency_interval:
            window.popleft()
        if len(window) > frequency_threshold:
            alerts.append(TunnelingAlert(query, "High query rate"))
            window.clear()

    return alerts


class DnsTunnelingCheckConfig(BaseModel):
    """Brief: Typed configuration model for DnsTunnelingCheck.

    Inputs:
      - log_file: Query log to scan; the check reports no alerts without one.
      - frequency_threshold: Queries allowed per frequency_interval seconds.
      - frequency_interval: Window length in seconds.
      - max_label_length: First-label length above which a query is flagged.

    Outputs:
      - DnsTunnelingCheckConfig instance.
    """

    model_config = ConfigDict(extra="forbid")

    log_file: Optional[str] = None
    frequency_threshold: int = Field(default=50, ge=1)
    frequency_interval: float = Field(default=1.0, gt=0)
    max_label_length: int = Field(default=50, ge=1)


@check_aliases("tunneling", "tunnel")
class DnsTunnelingCheck(BaseCheck):
    """Flag query log entries that look like data exfiltration over DNS."""

    check_type = HealthCheckType.DNS_TUNNELING

    @classmethod
    def get_config_model(cls):
        return DnsTunnelingCheckConfig

    def analyze(self, domain: str, lines: Optional[Iterable[Optional[str]]]) -> List[TunnelingAlert]:
        s = self.settings
        return analyze_log(
            domain,
            lines,
            frequency_threshold=s.frequency_threshold,
            frequency_interval=timedelta(seconds=s.frequency_interval),
            max_label_length=s.max_label_length,
        )

    def run(self, domain: str, cancel: Optional[threading.Event] = None) -> Dict[str, Any]:
        alerts: List[TunnelingAlert] = []
        if self.settings.log_file:
            with open(self.settings.log_file, "r", encoding="utf-8", errors="replace") as f:
                alerts = self.analyze(domain, f)
        for alert in alerts:
            logger.warning("DNS tunneling alert for %s: %s", alert.domain, alert.reason)
        return {"alerts": [asdict(a) for a in alerts]}
