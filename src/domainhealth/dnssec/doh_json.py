"""Minimal client for the DNS-over-HTTPS JSON API (application/dns-json).

Both Cloudflare (https://cloudflare-dns.com/dns-query) and Google
(https://dns.google/resolve) accept ``?name=&type=&do=1`` and answer with a
JSON document carrying the header flags (``AD``, ``TC`` ...) and an
``Answer`` list of ``{"name", "type", "TTL", "data"}`` entries.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

import requests

from ..errors import DohJsonError

logger = logging.getLogger(__name__)

DEFAULT_DOH_URL = "https://cloudflare-dns.com/dns-query"

# RR type codes used by the DNSSEC walker.
TYPE_DS = 43
TYPE_RRSIG = 46
TYPE_DNSKEY = 48


@dataclass
class DohAnswer:
    """Brief: Decoded DoH JSON response.

    Inputs (fields):
      - status: DNS RCODE from the "Status" member.
      - authenticated: Value of the "AD" (authenticated data) flag.
      - answers: Raw "Answer" entries.

    Outputs:
      - DohAnswer instance; use records(type_code) to filter answers.
    """

    status: int = 0
    authenticated: bool = False
    answers: List[Dict[str, Any]] = field(default_factory=list)

    def records(self, type_code: int) -> List[Dict[str, Any]]:
        """Return answer entries of the given numeric RR type."""

        out = []
        for ans in self.answers:
            try:
                if int(ans.get("type", -1)) == type_code:
                    out.append(ans)
            except (TypeError, ValueError):
                continue
        return out

    def data(self, type_code: int) -> List[str]:
        return [str(a.get("data", "")) for a in self.records(type_code)]


def parse_doh_json(doc: Any) -> DohAnswer:
    """Brief: Convert a decoded JSON body into a DohAnswer.

    Inputs:
      - doc: Object produced by json decoding of the HTTP body.

    Outputs:
      - DohAnswer; raises DohJsonError when doc is not a JSON object.
    """

    if not isinstance(doc, dict):
        raise DohJsonError("DoH JSON response is not an object")
    answers = doc.get("Answer") or []
    if not isinstance(answers, list):
        answers = []
    return DohAnswer(
        status=int(doc.get("Status", 0) or 0),
        authenticated=bool(doc.get("AD", False)),
        answers=[a for a in answers if isinstance(a, dict)],
    )


def doh_json_query(
    name: str,
    rdtype: Union[int, str],
    *,
    url: str = DEFAULT_DOH_URL,
    timeout_ms: int = 5000,
    dnssec_ok: bool = True,
    headers: Optional[Dict[str, str]] = None,
) -> DohAnswer:
    """
    Brief: Query a DoH JSON endpoint for a single name/type.

    Inputs:
    - name: Owner name to query
    - rdtype: Numeric type code or mnemonic ("DNSKEY")
    - url: DoH JSON endpoint
    - timeout_ms: Total timeout per request
    - dnssec_ok: Ask for DNSSEC records (do=1)
    - headers: Optional extra headers

    Outputs:
    - DohAnswer

    Notes:
    - Raises DohJsonError for network errors, non-2xx responses and
      undecodable bodies.

    Example:
        >>> ans = doh_json_query("example.com", "DNSKEY")  # doctest: +SKIP
        >>> ans.authenticated
        True
    """
    params = {"name": name, "type": str(rdtype)}
    if dnssec_ok:
        params["do"] = "1"
    req_headers = {"Accept": "application/dns-json"}
    req_headers.update(headers or {})

    try:
        r = requests.get(
            url, params=params, headers=req_headers, timeout=timeout_ms / 1000.0
        )
        r.raise_for_status()
        doc = r.json()
    except requests.RequestException as exc:
        raise DohJsonError(f"DoH query {name}/{rdtype} failed: {exc}") from exc
    except ValueError as exc:
        raise DohJsonError(f"DoH query {name}/{rdtype} returned invalid JSON") from exc

    answer = parse_doh_json(doc)
    logger.debug("DoH %s %s -> AD=%s", name, rdtype, answer.authenticated)
    return answer
