from __future__ import annotations

import threading
from concurrent.futures import CancelledError
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..whois.analysis import WhoisAnalysis
from .base import BaseCheck, HealthCheckType, check_aliases


class WhoisCheckConfig(BaseModel):
    """Brief: Typed configuration model for WhoisCheck.

    Inputs:
      - servers: Extra "tld -> host[:port]" entries merged over the built-in map.
      - timeout: Socket timeout in seconds.
      - expiration_warning_days: Window for the expires_soon flag.
      - snapshot_dir: When set, report changes against the newest snapshot.
      - save_snapshot: Also write the current response as a new snapshot.

    Outputs:
      - WhoisCheckConfig instance.
    """

    model_config = ConfigDict(extra="forbid")

    servers: Dict[str, str] = Field(default_factory=dict)
    timeout: float = Field(default=30.0, gt=0)
    expiration_warning_days: int = Field(default=30, ge=0)
    snapshot_dir: Optional[str] = None
    save_snapshot: bool = False


@check_aliases("registration")
class WhoisCheck(BaseCheck):
    """Query the registry WHOIS server and report registration details."""

    check_type = HealthCheckType.WHOIS

    @classmethod
    def get_config_model(cls):
        return WhoisCheckConfig

    def analysis(self) -> WhoisAnalysis:
        s = self.settings
        return WhoisAnalysis(
            servers=s.servers,
            timeout=s.timeout,
            expiration_warning_days=s.expiration_warning_days,
            snapshot_dir=s.snapshot_dir,
        )

    def run(self, domain: str, cancel: Optional[threading.Event] = None) -> Dict[str, Any]:
        if cancel is not None and cancel.is_set():
            raise CancelledError(f"WHOIS lookup of {domain} cancelled")
        analysis = self.analysis()
        analysis.query_whois_server(domain)
        result = analysis.to_dict()
        if self.settings.snapshot_dir:
            result["changes"] = analysis.get_whois_changes()
            if self.settings.save_snapshot:
                analysis.save_snapshot()
        return result
