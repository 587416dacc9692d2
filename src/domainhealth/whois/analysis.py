"""WHOIS lookups for domains and IP addresses.

Brief:
  WhoisAnalysis resolves the registry WHOIS server for a domain, queries it
  over TCP/43 and parses the response with the registry specific scanner
  from ``parsers``. Results live on the instance (it is a WhoisRecord).

Example:
  >>> w = WhoisAnalysis()
  >>> w.query_whois_server("example.com")  # doctest: +SKIP
  >>> w.registrar
  'RESERVED-Internet Assigned Numbers Authority'
"""

from __future__ import annotations

import glob
import ipaddress
import logging
import os
import re
import threading
from concurrent.futures import CancelledError, ThreadPoolExecutor
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

import idna

from ..errors import UnsupportedTldError
from . import transport
from .parsers import DEFAULT_EXPIRATION_WARNING, WhoisRecord, parse_whois_data
from .servers import IP_WHOIS_SERVERS, WHOIS_SERVERS, resolve_whois_server

logger = logging.getLogger(__name__)

_ASN_RE = re.compile(r"AS\d+", re.IGNORECASE)
_ALLOCATION_PREFIXES = ("inetnum:", "netrange:", "route:")
_ASN_PREFIXES = ("origin", "originas", "aut-num:")


def _to_ascii(domain: str) -> str:
    try:
        return idna.encode(domain, uts46=True).decode("ascii")
    except idna.IDNAError:
        return domain


class WhoisAnalysis(WhoisRecord):
    """Brief: WHOIS client and parsed registration record for one domain.

    Inputs:
      - servers: Optional extra or replacement "tld -> host[:port]" entries,
        merged over WHOIS_SERVERS into a private mapping.
      - ip_servers: WHOIS servers for IP lookups, queried in order.
      - timeout: Socket timeout in seconds.
      - expiration_warning_days: Window for expires_soon.
      - snapshot_dir: Directory for save_snapshot()/get_whois_changes().

    Outputs:
      - Instance; registration fields are filled by query_whois_server().
    """

    def __init__(
        self,
        *,
        servers: Optional[Mapping[str, str]] = None,
        ip_servers: Optional[Sequence[str]] = None,
        timeout: float = 30.0,
        expiration_warning_days: int = 30,
        snapshot_dir: Optional[str] = None,
    ) -> None:
        super().__init__()
        merged: Dict[str, str] = dict(WHOIS_SERVERS)
        for key, value in (servers or {}).items():
            merged[str(key).lower()] = str(value)
        self._servers = merged
        self._ip_servers: Tuple[str, ...] = tuple(ip_servers or IP_WHOIS_SERVERS)
        self.timeout = float(timeout)
        self.expiration_warning = (
            timedelta(days=expiration_warning_days)
            if expiration_warning_days is not None
            else DEFAULT_EXPIRATION_WARNING
        )
        self.snapshot_dir = snapshot_dir

    @property
    def servers(self) -> Mapping[str, str]:
        return self._servers

    def spawn(self) -> "WhoisAnalysis":
        """Return a fresh instance sharing this one's settings."""

        return WhoisAnalysis(
            servers=self._servers,
            ip_servers=self._ip_servers,
            timeout=self.timeout,
            expiration_warning_days=self.expiration_warning.days,
            snapshot_dir=self.snapshot_dir,
        )

    def get_whois_server(self, domain: str) -> Optional[str]:
        tld, server = resolve_whois_server(domain, self._servers)
        self.tld = tld
        return server

    def query_whois_server(self, domain: str, now: Optional[datetime] = None) -> None:
        """Brief: Query and parse WHOIS data for a domain.

        Inputs:
          - domain: Domain name (IDNs are sent in ASCII form).
          - now: Optional override of current time (UTC) for tests.

        Outputs:
          - None; fields are reset then filled. UnsupportedTldError is raised
            for empty or dotless names and for TLDs without a server. Network
            and parse failures are logged and leave the defaults in place.
        """

        self.reset_record()
        name = (domain or "").strip().rstrip(".")
        self.domain_name = name
        if not name or "." not in name:
            raise UnsupportedTldError(domain or "", domain or "")

        ascii_name = _to_ascii(name)
        server = self.get_whois_server(ascii_name)
        if server is None:
            raise UnsupportedTldError(name, self.tld)

        try:
            response = transport.whois_query(server, ascii_name, timeout=self.timeout)
            suffix = ascii_name.lower().split(".", 1)[1]
            parse_whois_data(
                self,
                response,
                self.tld,
                suffix=suffix,
                expiration_warning=self.expiration_warning,
                now=now,
            )
        except Exception as exc:
            logger.error("Error querying WHOIS server %s for %s: %s", server, name, exc)

    def query_whois_servers(
        self,
        domains: Sequence[str],
        *,
        max_workers: int = 8,
        cancel: Optional[threading.Event] = None,
    ) -> List["WhoisAnalysis"]:
        """Brief: Query many domains concurrently.

        Inputs:
          - domains: Domain names.
          - max_workers: Thread pool size.
          - cancel: Optional event; domains not yet started when it is set
            are skipped and CancelledError is raised.

        Outputs:
          - List of WhoisAnalysis in input order. A domain whose TLD is not
            supported yields an instance with only domain_name set.
        """

        def worker(domain: str) -> WhoisAnalysis:
            if cancel is not None and cancel.is_set():
                raise CancelledError(f"WHOIS lookup of {domain} cancelled")
            analysis = self.spawn()
            try:
                analysis.query_whois_server(domain)
            except UnsupportedTldError as exc:
                logger.warning("%s", exc)
            return analysis

        if not domains:
            return []
        with ThreadPoolExecutor(max_workers=max(1, min(max_workers, len(domains)))) as pool:
            return list(pool.map(worker, domains))

    def query_ip_whois(self, ip_address: str) -> Tuple[Optional[str], Optional[str]]:
        """Brief: Look up the network allocation and origin ASN of an IP.

        Inputs:
          - ip_address: IPv4 or IPv6 address text.

        Outputs:
          - (allocation, asn); either may be None. ValueError for an invalid
            address. Servers are tried in order until both values are known.
        """

        try:
            ipaddress.ip_address((ip_address or "").strip())
        except ValueError as exc:
            raise ValueError(f"Invalid IP address: {ip_address!r}") from exc

        allocation: Optional[str] = None
        asn: Optional[str] = None
        for server in self._ip_servers:
            try:
                response = transport.whois_query(server, ip_address.strip(), timeout=self.timeout)
            except Exception as exc:
                logger.error("Error querying IP WHOIS server %s: %s", server, exc)
                continue
            for raw in response.split("\n"):
                line = raw.strip()
                lowered = line.lower()
                if allocation is None and lowered.startswith(_ALLOCATION_PREFIXES):
                    value = line.partition(":")[2].strip()
                    if value:
                        allocation = value
                elif asn is None and lowered.startswith(_ASN_PREFIXES):
                    match = _ASN_RE.search(line)
                    if match:
                        asn = match.group(0).upper()
                if allocation is not None and asn is not None:
                    return allocation, asn
        return allocation, asn

    def _snapshot_pattern(self) -> str:
        return os.path.join(self.snapshot_dir or "", f"{glob.escape(self.domain_name)}_*.whois")

    def save_snapshot(self, now: Optional[datetime] = None) -> Optional[str]:
        """Write whois_data to the snapshot directory; return the file path,
        or None when there is nothing to save."""

        if not (self.snapshot_dir and self.domain_name and self.whois_data):
            return None
        os.makedirs(self.snapshot_dir, exist_ok=True)
        stamp = (now or datetime.now(timezone.utc)).strftime("%Y%m%d%H%M%S")
        path = os.path.join(self.snapshot_dir, f"{self.domain_name}_{stamp}.whois")
        with open(path, "w", encoding="utf-8", newline="") as f:
            f.write(self.whois_data)
        logger.debug("Saved WHOIS snapshot %s", path)
        return path

    def get_whois_changes(self) -> List[str]:
        """Brief: Line level diff of whois_data against the newest snapshot.

        Outputs:
          - List of "- previous" / "+ current" pairs for each differing line
            position; empty without a snapshot directory or snapshot file.
        """

        if not (self.snapshot_dir and self.domain_name):
            return []
        files = sorted(glob.glob(self._snapshot_pattern()))
        if not files:
            return []
        with open(files[-1], "r", encoding="utf-8", newline="") as f:
            previous = f.read().split("\n")
        current = self.whois_data.split("\n")
        changes: List[str] = []
        for i in range(max(len(previous), len(current))):
            prev = previous[i] if i < len(previous) else ""
            curr = current[i] if i < len(current) else ""
            if prev != curr:
                changes.append("- " + prev)
                changes.append("+ " + curr)
        return changes

    def to_dict(self) -> Dict[str, Any]:
        return self.record_dict()
