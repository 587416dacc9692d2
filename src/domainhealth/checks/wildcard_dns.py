"""Wildcard (catch-all) DNS detection by resolving random subdomains."""

from __future__ import annotations

import ipaddress
import logging
import threading
import uuid
from concurrent.futures import CancelledError
from typing import Any, Callable, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .base import BaseCheck, HealthCheckType, check_aliases

logger = logging.getLogger(__name__)


class WildcardDnsCheckConfig(BaseModel):
    """Brief: Typed configuration model for WildcardDnsCheck.

    Inputs:
      - sample_count: Random names generated per depth.
      - depth: Deepest number of random labels prepended to the domain.

    Outputs:
      - WildcardDnsCheckConfig instance.
    """

    model_config = ConfigDict(extra="forbid")

    sample_count: int = Field(default=3, ge=1)
    depth: int = Field(default=2, ge=1)


def _random_label() -> str:
    return uuid.uuid4().hex


@check_aliases("wildcard", "catch_all")
class WildcardDnsCheck(BaseCheck):
    """Brief: Query random names below a domain and report which resolve.

    Outputs (run):
      - tested_names: Every generated name.
      - resolved_names: Names with an A (or, failing that, AAAA) answer.
      - resolved_addresses: Distinct addresses seen, in first-seen order.
      - catch_all: True when every tested name resolved.
    """

    check_type = HealthCheckType.WILDCARD_DNS

    label_factory: Callable[[], str] = staticmethod(_random_label)

    @classmethod
    def get_config_model(cls):
        return WildcardDnsCheckConfig

    def run(self, domain: str, cancel: Optional[threading.Event] = None) -> Dict[str, Any]:
        tested: List[str] = []
        resolved: List[str] = []
        addresses: List[str] = []
        seen = set()

        for _ in range(self.settings.sample_count):
            for depth in range(1, self.settings.depth + 1):
                if cancel is not None and cancel.is_set():
                    raise CancelledError(f"wildcard check of {domain} cancelled")
                name = domain
                for _ in range(depth):
                    name = f"{self.label_factory()}.{name}"
                tested.append(name)

                records = self.dns.query(name, "A") or self.dns.query(name, "AAAA")
                if not records:
                    continue
                resolved.append(name)
                for data in records:
                    try:
                        data = str(ipaddress.ip_address(data.strip()))
                    except ValueError:
                        data = data.strip()
                    if data and data.lower() not in seen:
                        seen.add(data.lower())
                        addresses.append(data)

        catch_all = len(resolved) == len(tested)
        logger.info("Wildcard DNS for %s: %s", domain, catch_all)
        return {
            "tested_names": tested,
            "resolved_names": resolved,
            "resolved_addresses": addresses,
            "catch_all": catch_all,
        }
