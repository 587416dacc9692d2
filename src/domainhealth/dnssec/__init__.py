"""DNSSEC chain validation helpers."""

from .analysis import DnsSecAnalysis, RrsigInfo, parse_rrsig
from .digest import compute_key_tag, verify_ds_match
from .trust_anchors import download_trust_anchors, load_trust_anchors

__all__ = [
    "DnsSecAnalysis",
    "RrsigInfo",
    "parse_rrsig",
    "compute_key_tag",
    "verify_ds_match",
    "download_trust_anchors",
    "load_trust_anchors",
]
