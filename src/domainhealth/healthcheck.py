"""Aggregate runner: executes the selected checks for one or more domains."""

from __future__ import annotations

import json
import logging
import re
import threading
from concurrent.futures import CancelledError, ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Union

import idna

from .checks.base import BaseCheck, HealthCheckType
from .checks.registry import build_check, resolve_check_type
from .dns_client import DnsClient

logger = logging.getLogger(__name__)

DEFAULT_CHECKS = (HealthCheckType.DNSSEC, HealthCheckType.WHOIS)

# A dotted name token containing at least one A-label.
_ALABEL_TOKEN = re.compile(r"[A-Za-z0-9.-]*xn--[A-Za-z0-9.-]*", re.IGNORECASE)


def normalize_domain(domain: str) -> str:
    """Brief: ASCII (punycode) lowercase form of a domain name.

    Inputs:
      - domain: Domain in Unicode or ASCII form, optional surrounding dots.

    Outputs:
      - str; names idna rejects are returned trimmed and lowercased.

    Example:
      >>> normalize_domain("Bücher.Example.")
      'xn--bcher-kva.example'
    """

    text = (domain or "").strip().strip(".")
    try:
        return idna.encode(text, uts46=True).decode("ascii").lower()
    except idna.IDNAError:
        return text.lower()


def _decode_token(match: re.Match) -> str:
    token = match.group(0)
    name = token.rstrip(".")
    try:
        return idna.decode(name) + token[len(name):]
    except (idna.IDNAError, UnicodeError):
        return token


def to_unicode(value: str) -> str:
    """Brief: Decode every A-label name found in value.

    Inputs:
      - value: A bare domain name or free text such as a mismatch summary or
        a raw WHOIS response.

    Outputs:
      - value with each decodable xn-- name replaced by its Unicode form;
        names idna rejects are left as they are.

    Example:
      >>> to_unicode("No DS record for xn--bcher-kva.example")
      'No DS record for bücher.example'
    """

    if "xn--" not in value.lower():
        return value
    return _ALABEL_TOKEN.sub(_decode_token, value)


def _unicode_tree(obj: Any) -> Any:
    if isinstance(obj, str):
        return to_unicode(obj)
    if isinstance(obj, list):
        return [_unicode_tree(v) for v in obj]
    if isinstance(obj, dict):
        return {k: _unicode_tree(v) for k, v in obj.items()}
    return obj


@dataclass
class DomainHealthResult:
    """Brief: Outcome of all checks for one domain.

    Inputs (fields):
      - domain: Normalized (ASCII) domain name.
      - results: Check name -> check output mapping.
      - errors: Check name -> error message for checks that raised.

    Outputs:
      - DomainHealthResult; use to_dict()/to_json() for output.
    """

    domain: str
    results: Dict[str, Any] = field(default_factory=dict)
    errors: Dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.errors

    def to_dict(self, unicode: bool = False) -> Dict[str, Any]:
        out = {"domain": self.domain, "results": self.results, "errors": self.errors}
        return _unicode_tree(out) if unicode else out

    def to_json(self, unicode: bool = False, indent: Optional[int] = 2) -> str:
        return json.dumps(self.to_dict(unicode), indent=indent, ensure_ascii=False, default=str)


class DomainHealthCheck:
    """Brief: Run a set of checks against domains.

    Inputs:
      - checks: Check names, aliases or HealthCheckType members; defaults to
        DNSSEC and WHOIS.
      - check_config: Optional per-check config keyed by check name.
      - dns: Optional DnsClient shared by checks doing classic lookups.
      - unicode_output: Default for to_json(unicode=...).

    Outputs:
      - Instance; verify() and verify_many() return DomainHealthResult.

    Example:
      >>> hc = DomainHealthCheck(checks=["dnssec"])
      >>> hc.verify("example.com").results["dnssec"]["chain_valid"]  # doctest: +SKIP
      True
    """

    def __init__(
        self,
        checks: Optional[Iterable[Union[str, HealthCheckType]]] = None,
        check_config: Optional[Mapping[str, Mapping[str, Any]]] = None,
        dns: Optional[DnsClient] = None,
        unicode_output: bool = False,
    ) -> None:
        selected = [resolve_check_type(c) for c in (checks or DEFAULT_CHECKS)]
        # Preserve order, drop repeats.
        self.check_types: List[HealthCheckType] = list(dict.fromkeys(selected))

        configs: Dict[HealthCheckType, Mapping[str, Any]] = {}
        for name, cfg in (check_config or {}).items():
            configs[resolve_check_type(name)] = cfg or {}

        self.unicode_output = unicode_output
        self.checks: Dict[HealthCheckType, BaseCheck] = {
            t: build_check(t, configs.get(t), dns=dns) for t in self.check_types
        }

    def verify(
        self, domain: str, cancel: Optional[threading.Event] = None
    ) -> DomainHealthResult:
        """Brief: Run every selected check for one domain.

        Inputs:
          - domain: Domain name (Unicode or ASCII).
          - cancel: Optional event; once set, remaining checks are not started
            and CancelledError is raised.

        Outputs:
          - DomainHealthResult; a check that raises contributes an entry to
            errors instead of results.
        """

        result = DomainHealthResult(domain=normalize_domain(domain))
        for check_type, check in self.checks.items():
            if cancel is not None and cancel.is_set():
                raise CancelledError(f"health check of {domain} cancelled")
            name = check_type.value
            try:
                result.results[name] = check.run(result.domain, cancel=cancel)
            except CancelledError:
                raise
            except Exception as exc:
                logger.warning("%s check failed for %s: %s", name, result.domain, exc)
                result.errors[name] = str(exc) or type(exc).__name__
        return result

    def verify_many(
        self,
        domains: Sequence[str],
        *,
        max_workers: int = 4,
        cancel: Optional[threading.Event] = None,
    ) -> List[DomainHealthResult]:
        """Run verify() for each domain on a thread pool; results keep input order."""

        if not domains:
            return []
        workers = max(1, min(int(max_workers), len(domains)))
        with ThreadPoolExecutor(max_workers=workers) as pool:
            return list(pool.map(lambda d: self.verify(d, cancel=cancel), domains))

    def to_json(
        self,
        results: Union[DomainHealthResult, Sequence[DomainHealthResult]],
        unicode: Optional[bool] = None,
    ) -> str:
        use_unicode = self.unicode_output if unicode is None else unicode
        if isinstance(results, DomainHealthResult):
            return results.to_json(use_unicode)
        payload = [r.to_dict(use_unicode) for r in results]
        return json.dumps(payload, indent=2, ensure_ascii=False, default=str)


__all__ = ["DomainHealthCheck", "DomainHealthResult", "normalize_domain", "to_unicode"]
