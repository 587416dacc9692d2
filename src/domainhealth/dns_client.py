"""Classic DNS lookups (dnspython) for the auxiliary checks."""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

import dns.exception
import dns.name
import dns.resolver

logger = logging.getLogger(__name__)


def _parse_resolv_conf_nameservers(path: str = "/etc/resolv.conf") -> list[str]:
    """Brief: Best-effort parse of nameserver entries from a resolv.conf file.

    Inputs:
      - path: Filesystem path to a resolv.conf-format file.

    Outputs:
      - List of nameserver IP strings in file order; empty when the file cannot
        be read or names no nameserver.
    """

    servers: list[str] = []
    try:
        with open(path, "r", encoding="utf-8") as f:
            for line in f:
                raw = line.split("#", 1)[0].strip()
                parts = raw.split()
                if len(parts) >= 2 and parts[0].lower() == "nameserver":
                    servers.append(parts[1])
    except OSError:  # pragma: no cover - depends on host environment
        return []
    return servers


def make_resolver(
    nameservers: Optional[Sequence[str]] = None, lifetime: float = 2.0
) -> dns.resolver.Resolver:
    """Brief: Build a stub resolver.

    Inputs:
      - nameservers: Explicit nameserver IPs; system configuration when empty.
      - lifetime: Total time allowed per lookup, in seconds.

    Outputs:
      - dns.resolver.Resolver
    """

    if nameservers:
        r = dns.resolver.Resolver(configure=False)
        r.nameservers = list(nameservers)
    else:
        # Malformed search/domain directives make dnspython's parser raise;
        # only the nameserver lines are needed here.
        try:
            r = dns.resolver.Resolver(configure=True)
        except Exception as exc:  # pragma: no cover - environment specific
            logger.warning(
                "Could not parse system resolv.conf; using nameserver-only config: %s",
                exc,
            )
            r = dns.resolver.Resolver(configure=False)
            ns = _parse_resolv_conf_nameservers()
            if ns:
                r.nameservers = ns
    r.lifetime = float(lifetime)
    return r


class DnsClient:
    """Brief: Thin wrapper returning record data as text.

    Inputs:
      - nameservers / lifetime: Passed to make_resolver().

    Outputs:
      - DnsClient; query(name, rdtype) returns presentation strings.
    """

    def __init__(
        self, nameservers: Optional[Sequence[str]] = None, lifetime: float = 2.0
    ) -> None:
        self.resolver = make_resolver(nameservers, lifetime)

    def query(self, name: str, rdtype: str) -> List[str]:
        """Return answer data for name/rdtype; empty when the name or type does
        not exist, the name is not a valid DNS name or no server answered."""

        try:
            answer = self.resolver.resolve(name, rdtype, raise_on_no_answer=False)
        except (dns.resolver.NXDOMAIN, dns.resolver.NoNameservers) as exc:
            logger.debug("DNS %s %s: %s", name, rdtype, exc)
            return []
        except (dns.name.LabelTooLong, dns.name.NameTooLong, dns.name.EmptyLabel) as exc:
            logger.info("DNS %s %s: invalid name: %s", name, rdtype, exc)
            return []
        except dns.exception.Timeout:
            logger.info("DNS %s %s timed out", name, rdtype)
            return []
        if answer.rrset is None:
            return []
        return [rdata.to_text() for rdata in answer.rrset]
