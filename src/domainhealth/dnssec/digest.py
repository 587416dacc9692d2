"""DS/DNSKEY correspondence checks: RFC 4034 key tags and DS digests.

Records are handled in presentation form as returned by DoH JSON APIs:

  - DNSKEY: "<flags> <protocol> <algorithm> <base64 public key>"
  - DS:     "<key tag> <algorithm> <digest type> <hex digest>"

The algorithm field may be numeric or a mnemonic. Long base64/hex fields may be
split on whitespace (as dig prints them); the trailing fields are joined back.
"""

from __future__ import annotations

import base64
import hashlib
import logging
from typing import Any, Callable, Dict, Optional

import dns.name

from .algorithms import algorithm_number, is_hexadecimal, is_valid_algorithm

logger = logging.getLogger(__name__)

DIGEST_ALGORITHMS: Dict[int, Callable[..., Any]] = {
    1: hashlib.sha1,
    2: hashlib.sha256,
    4: hashlib.sha384,
}

# Hex characters expected per digest type.
DIGEST_HEX_LENGTHS = {1: 40, 2: 64, 4: 96}


def compute_key_tag(rdata: bytes, algorithm: Optional[int] = None) -> int:
    """Brief: Compute the RFC 4034 Appendix B key tag over DNSKEY RDATA.

    Inputs:
      - rdata: DNSKEY RDATA bytes (flags, protocol, algorithm, public key).
      - algorithm: Optional algorithm number; when 1 (RSAMD5) the Appendix B.1
        rule applies. Defaults to the algorithm octet inside rdata.

    Outputs:
      - int in [0, 65535].
    """

    if algorithm is None and len(rdata) >= 4:
        algorithm = rdata[3]
    if algorithm == 1:
        if len(rdata) < 7:
            return 0
        return (rdata[-3] << 8) | rdata[-2]

    ac = 0
    for i, octet in enumerate(rdata):
        ac += octet if i & 1 else octet << 8
    ac += (ac >> 16) & 0xFFFF
    return ac & 0xFFFF


def dnskey_rdata(flags: int, protocol: int, algorithm: int, public_key: bytes) -> bytes:
    """Return DNSKEY RDATA wire bytes for the given fields."""

    return (
        int(flags).to_bytes(2, "big")
        + bytes([int(protocol) & 0xFF, int(algorithm) & 0xFF])
        + public_key
    )


def owner_name_wire(domain: str) -> bytes:
    """Brief: Canonical (lowercase, uncompressed) wire form of an owner name.

    Inputs:
      - domain: Domain in text form, with or without the trailing dot.

    Outputs:
      - bytes: Length-prefixed labels terminated by the root label.

    Example:
      >>> owner_name_wire("Example.COM")
      b'\\x07example\\x03com\\x00'
    """

    text = (domain or "").strip().rstrip(".")
    if not text:
        return b"\x00"
    return dns.name.from_text(text).to_digestable()


def parse_dnskey(text: str) -> Optional[tuple[int, int, int, bytes]]:
    """Brief: Split DNSKEY presentation text into (flags, protocol, alg, key).

    Inputs:
      - text: DNSKEY record data.

    Outputs:
      - Tuple of fields, or None when the record is malformed or its algorithm
        is not a known DNSSEC algorithm.
    """

    parts = (text or "").split()
    if len(parts) < 4:
        return None
    try:
        flags = int(parts[0])
        protocol = int(parts[1])
        key = base64.b64decode("".join(parts[3:]), validate=True)
    except ValueError:
        return None
    algorithm = algorithm_number(parts[2])
    if not is_valid_algorithm(algorithm):
        return None
    return flags, protocol, algorithm, key


def is_ds_digest_length_valid(record: str) -> bool:
    """Brief: Check a DS digest has the length its digest type implies.

    Inputs:
      - record: DS record data.

    Outputs:
      - bool: False only when the digest type is known and the digest length
        differs; records that cannot be interpreted are not flagged.
    """

    parts = (record or "").split()
    if len(parts) < 4 or not parts[2].isdigit():
        return True
    expected = DIGEST_HEX_LENGTHS.get(int(parts[2]))
    return expected is None or len("".join(parts[3:])) == expected


def verify_ds_match(dnskey: str, ds_record: str, domain_name: str) -> bool:
    """Brief: Check that a DS record is the digest of a DNSKEY at an owner name.

    Inputs:
      - dnskey: DNSKEY record data.
      - ds_record: DS record data.
      - domain_name: Owner name of the DNSKEY (the child zone apex).

    Outputs:
      - bool: True when key tag, algorithm and digest all match. Any malformed
        input, unknown algorithm or unsupported digest type yields False.

    Notes:
      - Digest input is owner_name_wire(domain_name) + DNSKEY RDATA
        (RFC 4034 section 5.1.4; SHA-256 per RFC 4509, SHA-384 per RFC 6605).
    """

    try:
        key = parse_dnskey(dnskey)
        if key is None:
            return False
        flags, protocol, algorithm, public_key = key

        ds_parts = (ds_record or "").split()
        if len(ds_parts) < 4:
            return False
        key_tag = int(ds_parts[0])
        ds_algorithm = algorithm_number(ds_parts[1])
        if not is_valid_algorithm(ds_algorithm):
            return False
        digest_type = int(ds_parts[2])
        digest = "".join(ds_parts[3:])
        if not is_hexadecimal(digest):
            return False
        hasher = DIGEST_ALGORITHMS.get(digest_type)
        if hasher is None:
            return False

        rdata = dnskey_rdata(flags, protocol, algorithm, public_key)
        if compute_key_tag(rdata, algorithm) != key_tag or ds_algorithm != algorithm:
            return False

        computed = hasher(owner_name_wire(domain_name) + rdata).hexdigest()
        return computed == digest.lower()
    except Exception as exc:
        logger.debug("DS verification failed for %s: %s", domain_name, exc)
        return False
