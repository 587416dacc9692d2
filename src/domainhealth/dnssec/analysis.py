"""DNSSEC chain analysis over the DNS-over-HTTPS JSON API.

Brief:
  DnsSecAnalysis walks from a domain towards the TLD, one label at a time. At
  each zone it fetches the DNSKEY and DS sets, records whether the resolver
  marked them as authenticated (AD flag), and checks that some DS record is
  the digest of some DNSKEY. The per-level results are folded into a single
  ``chain_valid`` flag plus human readable ``mismatch_summary`` entries.

Example:
  >>> a = DnsSecAnalysis()
  >>> a.analyze("example.com")  # doctest: +SKIP
  >>> a.chain_valid
  True
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import CancelledError
from dataclasses import asdict, dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional

from ..errors import DohJsonError
from .algorithms import (
    algorithm_name,
    algorithm_number,
    is_deprecated_algorithm,
    is_valid_algorithm,
)
from .digest import is_ds_digest_length_valid, parse_dnskey, verify_ds_match
from .doh_json import (
    DEFAULT_DOH_URL,
    TYPE_DNSKEY,
    TYPE_DS,
    TYPE_RRSIG,
    DohAnswer,
    doh_json_query,
)
from .trust_anchors import (
    DEFAULT_MAX_AGE_DAYS,
    IANA_ROOT_ANCHORS_URL,
    anchor_key_tag,
    load_trust_anchors,
)

logger = logging.getLogger(__name__)

# DNSKEY flags bit 15 (Secure Entry Point): set on key-signing keys.
_SEP_FLAG = 0x0001


@dataclass
class RrsigInfo:
    """Brief: Parsed subset of an RRSIG record.

    Inputs (fields):
      - algorithm: Algorithm mnemonic (or the raw field when unknown).
      - key_tag: Key tag of the signing DNSKEY.
      - inception: Signature inception (UTC) or None when unparseable.
      - expiration: Signature expiration (UTC) or None when unparseable.

    Outputs:
      - RrsigInfo instance; ``days_remaining`` is derived from expiration.
    """

    algorithm: str = ""
    key_tag: int = 0
    inception: Optional[datetime] = None
    expiration: Optional[datetime] = None

    def remaining(self, now: Optional[datetime] = None) -> Optional[timedelta]:
        if self.expiration is None:
            return None
        return self.expiration - (now or datetime.now(timezone.utc))

    @property
    def days_remaining(self) -> Optional[int]:
        """Whole days until expiration (negative once expired), or None."""

        left = self.remaining()
        if left is None:
            return None
        return int(left.total_seconds() // 86400)

    def to_dict(self) -> Dict[str, Any]:
        out = asdict(self)
        for key in ("inception", "expiration"):
            if out[key] is not None:
                out[key] = out[key].isoformat()
        out["days_remaining"] = self.days_remaining
        return out


def _parse_signature_time(value: str) -> Optional[datetime]:
    """Parse an RRSIG time field (YYYYMMDDHHmmSS or epoch seconds, RFC 4034 3.2)."""

    text = (value or "").strip()
    if not text.isdigit():
        return None
    try:
        if len(text) == 14:
            return datetime.strptime(text, "%Y%m%d%H%M%S").replace(tzinfo=timezone.utc)
        return datetime.fromtimestamp(int(text), timezone.utc)
    except (ValueError, OverflowError, OSError):
        return None


def parse_rrsig(record: str) -> RrsigInfo:
    """Brief: Parse RRSIG presentation data.

    Inputs:
      - record: "<covered> <alg> <labels> <ttl> <expiration> <inception>
        <key tag> <signer> <signature>".

    Outputs:
      - RrsigInfo; an empty RrsigInfo when fewer than 7 fields are present.
    """

    parts = (record or "").split()
    if len(parts) < 7:
        return RrsigInfo()

    algorithm = parts[1]
    if algorithm.isdigit():
        algorithm = algorithm_name(int(algorithm)) or algorithm

    return RrsigInfo(
        algorithm=algorithm,
        key_tag=int(parts[6]) if parts[6].isdigit() else 0,
        inception=_parse_signature_time(parts[5]),
        expiration=_parse_signature_time(parts[4]),
    )


def _is_ksk(dnskey: str) -> bool:
    parsed = parse_dnskey(dnskey)
    return parsed is not None and bool(parsed[0] & _SEP_FLAG)


class DnsSecAnalysis:
    """Brief: DNSSEC chain validator for a single domain.

    Inputs:
      - doh_url: DoH JSON endpoint used for DNSKEY/DS lookups.
      - timeout_ms: Per-request timeout.
      - rrsig_warning_days: Log a warning when an RRSIG(DNSKEY) expires within
        this many days.
      - trust_anchor_url / trust_anchor_cache / trust_anchor_max_age_days:
        Where root anchors come from and how long the cached copy is trusted.
      - query: Optional callable ``(name, type_code) -> DohAnswer`` replacing
        the HTTP lookup (used by tests and alternative transports).

    Outputs:
      - Instance whose result fields are (re)populated by analyze().
    """

    def __init__(
        self,
        *,
        doh_url: str = DEFAULT_DOH_URL,
        timeout_ms: int = 5000,
        rrsig_warning_days: int = 14,
        trust_anchor_url: str = IANA_ROOT_ANCHORS_URL,
        trust_anchor_cache: Optional[str] = None,
        trust_anchor_max_age_days: int = DEFAULT_MAX_AGE_DAYS,
        query: Optional[Callable[[str, int], DohAnswer]] = None,
    ) -> None:
        self.doh_url = doh_url
        self.timeout_ms = int(timeout_ms)
        self.rrsig_warning = timedelta(days=rrsig_warning_days)
        self.trust_anchor_url = trust_anchor_url
        self.trust_anchor_cache = trust_anchor_cache
        self.trust_anchor_max_age_days = int(trust_anchor_max_age_days)
        self._query_fn = query
        self._reset()

    def _reset(self) -> None:
        self.domain_name: str = ""
        self.ds_records: List[str] = []
        self.dns_keys: List[str] = []
        self.signatures: List[str] = []
        self.rrsigs: List[RrsigInfo] = []
        self.authentic_data = False
        self.ds_authentic_data = False
        self.ds_match = False
        self.chain_valid = False
        self.ds_ttls: List[int] = []
        self.root_key_tag = 0
        self.trust_anchors: List[str] = []
        self.mismatch_summary: List[str] = []

    def _query(self, name: str, type_code: int) -> DohAnswer:
        """Run one lookup; failures become an empty, unauthenticated answer."""

        try:
            if self._query_fn is not None:
                return self._query_fn(name, type_code)
            return doh_json_query(
                name, type_code, url=self.doh_url, timeout_ms=self.timeout_ms
            )
        except DohJsonError as exc:
            logger.warning("DNSSEC lookup %s type %d failed: %s", name, type_code, exc)
            return DohAnswer()

    def _warn_on_ds(self, zone: str, records: List[str]) -> None:
        for rec in records:
            if not is_ds_digest_length_valid(rec):
                logger.warning("DS record for %s has unexpected digest length", zone)
            parts = rec.split()
            if len(parts) < 2:
                continue
            alg = algorithm_number(parts[1])
            if not is_valid_algorithm(alg):
                logger.warning(
                    "DS record for %s contains unknown algorithm %s", zone, parts[1]
                )
            elif is_deprecated_algorithm(alg):
                logger.warning(
                    "DS record for %s uses deprecated algorithm %s", zone, parts[1]
                )

    @staticmethod
    def ds_matches_any(zone: str, dns_keys: List[str], ds_records: List[str]) -> bool:
        """Brief: True when any DS record is the digest of any DNSKEY.

        Inputs:
          - zone: Owner name of the DNSKEY set.
          - dns_keys: DNSKEY record data; KSKs are tried first.
          - ds_records: DS record data.

        Outputs:
          - bool
        """

        ordered = sorted(dns_keys, key=lambda k: not _is_ksk(k))
        return any(
            verify_ds_match(key, ds, zone) for key in ordered for ds in ds_records
        )

    def analyze(self, domain_name: str, cancel: Optional[threading.Event] = None) -> None:
        """Brief: Validate the DNSSEC chain from domain_name up to its TLD.

        Inputs:
          - domain_name: Domain to validate.
          - cancel: Optional event checked before each level; when set the
            walk stops with concurrent.futures.CancelledError.

        Outputs:
          - None; result fields are overwritten.
        """

        self._reset()
        domain = (domain_name or "").strip().rstrip(".")
        if not domain:
            raise ValueError("domain name is required")
        self.domain_name = domain

        chain_valid = True
        first = True
        current = domain
        root_key_tag = 0

        while True:
            if cancel is not None and cancel.is_set():
                raise CancelledError(f"DNSSEC analysis of {domain} cancelled")

            key_answer = self._query(current, TYPE_DNSKEY)
            key_ad = key_answer.authenticated
            zone_keys = key_answer.data(TYPE_DNSKEY)
            zone_sigs = key_answer.data(TYPE_RRSIG)
            zone_sig_infos = [parse_rrsig(s) for s in zone_sigs]
            for info in zone_sig_infos:
                left = info.remaining()
                if left is not None and left <= self.rrsig_warning:
                    logger.warning(
                        "RRSIG for %s expires in %d days",
                        current,
                        max(0, -(-int(left.total_seconds()) // 86400)),
                    )

            ds_answer = self._query(current, TYPE_DS)
            ds_ad = ds_answer.authenticated
            ds_entries = ds_answer.records(TYPE_DS)
            ds_records = [str(e.get("data", "")) for e in ds_entries]
            ttl = 0
            for entry in ds_entries:
                try:
                    ttl = int(entry.get("TTL", 0))
                except (TypeError, ValueError):
                    ttl = 0
            self.ds_ttls.append(ttl)

            ds_match = False
            if zone_keys and ds_records:
                ds_match = self.ds_matches_any(current, zone_keys, ds_records)
            self._warn_on_ds(current, ds_records)

            if not key_ad:
                self.mismatch_summary.append(f"DNSKEY for {current} not authenticated")
            if not ds_records:
                self.mismatch_summary.append(f"No DS record for {current}")
            else:
                if not ds_ad:
                    self.mismatch_summary.append(f"DS for {current} not authenticated")
                if not ds_match:
                    self.mismatch_summary.append(f"DS mismatch for {current}")

            if first:
                self.dns_keys = zone_keys
                self.signatures = zone_sigs
                self.rrsigs = zone_sig_infos
                self.ds_records = ds_records
                self.authentic_data = key_ad
                self.ds_authentic_data = ds_ad
                self.ds_match = ds_match

            chain_valid = chain_valid and key_ad and ds_ad and ds_match

            if "." not in current:
                # TLD reached; its DS set is published in (and signed by) the root.
                if ds_records:
                    root_key_tag = anchor_key_tag(ds_records[0])
                break

            current = current.split(".", 1)[1]
            first = False

        self.trust_anchors = list(
            load_trust_anchors(
                self.trust_anchor_url,
                self.trust_anchor_cache,
                self.trust_anchor_max_age_days,
                self.timeout_ms,
            )
        )
        if self.trust_anchors and root_key_tag == 0:
            root_key_tag = anchor_key_tag(self.trust_anchors[0])

        self.chain_valid = chain_valid
        self.root_key_tag = root_key_tag
        logger.info(
            "DNSSEC validation for %s: %s, chain valid: %s",
            domain,
            self.authentic_data,
            self.chain_valid,
        )

    def validate_record(self, domain: str, rdtype: int | str) -> bool:
        """Brief: Check that a single RRset is signed and authenticated.

        Inputs:
          - domain: Owner name.
          - rdtype: Numeric type code or mnemonic.

        Outputs:
          - bool: True when the answer carries AD and at least one RRSIG.
            DohJsonError propagates for transport failures.
        """

        if self._query_fn is not None:
            answer = self._query_fn(domain, rdtype)
        else:
            answer = doh_json_query(
                domain, rdtype, url=self.doh_url, timeout_ms=self.timeout_ms
            )
        return answer.authenticated and bool(answer.records(TYPE_RRSIG))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "domain_name": self.domain_name,
            "ds_records": list(self.ds_records),
            "dns_keys": list(self.dns_keys),
            "signatures": list(self.signatures),
            "rrsigs": [r.to_dict() for r in self.rrsigs],
            "authentic_data": self.authentic_data,
            "ds_authentic_data": self.ds_authentic_data,
            "ds_match": self.ds_match,
            "chain_valid": self.chain_valid,
            "ds_ttls": list(self.ds_ttls),
            "root_key_tag": self.root_key_tag,
            "mismatch_summary": list(self.mismatch_summary),
        }
