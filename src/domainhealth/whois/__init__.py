"""WHOIS lookups and registry response parsers."""

from .analysis import WhoisAnalysis
from .parsers import WhoisRecord, parse_whois_data
from .servers import IP_WHOIS_SERVERS, WHOIS_SERVERS, resolve_whois_server

__all__ = [
    "WhoisAnalysis",
    "WhoisRecord",
    "parse_whois_data",
    "IP_WHOIS_SERVERS",
    "WHOIS_SERVERS",
    "resolve_whois_server",
]
