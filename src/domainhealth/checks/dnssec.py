from __future__ import annotations

import threading
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..dnssec.analysis import DnsSecAnalysis
from ..dnssec.doh_json import DEFAULT_DOH_URL
from ..dnssec.trust_anchors import DEFAULT_MAX_AGE_DAYS, IANA_ROOT_ANCHORS_URL
from .base import BaseCheck, HealthCheckType, check_aliases


class DnssecCheckConfig(BaseModel):
    """Brief: Typed configuration model for DnssecCheck.

    Inputs:
      - doh_url: DoH JSON endpoint for DNSKEY/DS lookups.
      - timeout_ms: Per-request HTTP timeout.
      - rrsig_warning_days: Warn when an RRSIG(DNSKEY) expires within this window.
      - trust_anchor_url / trust_anchor_cache / trust_anchor_max_age_days:
        Root anchor source, cache file and refresh age.

    Outputs:
      - DnssecCheckConfig instance.
    """

    model_config = ConfigDict(extra="forbid")

    doh_url: str = Field(default=DEFAULT_DOH_URL)
    timeout_ms: int = Field(default=5000, ge=1)
    rrsig_warning_days: int = Field(default=14, ge=0)
    trust_anchor_url: str = Field(default=IANA_ROOT_ANCHORS_URL)
    trust_anchor_cache: Optional[str] = None
    trust_anchor_max_age_days: int = Field(default=DEFAULT_MAX_AGE_DAYS, ge=0)


@check_aliases("dnssec_chain", "chain")
class DnssecCheck(BaseCheck):
    """Validate the DNSSEC chain of trust from the domain up to its TLD."""

    check_type = HealthCheckType.DNSSEC

    @classmethod
    def get_config_model(cls):
        return DnssecCheckConfig

    def analysis(self) -> DnsSecAnalysis:
        return DnsSecAnalysis(**self.settings.model_dump())

    def run(self, domain: str, cancel: Optional[threading.Event] = None) -> Dict[str, Any]:
        analysis = self.analysis()
        analysis.analyze(domain, cancel=cancel)
        return analysis.to_dict()
