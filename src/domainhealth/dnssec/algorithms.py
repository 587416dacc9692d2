"""DNSSEC algorithm number helpers (IANA "DNS Security Algorithm Numbers")."""

from __future__ import annotations

import re

VALID_ALGORITHMS = frozenset(
    {1, 2, 3, 5, 6, 7, 8, 10, 12, 13, 14, 15, 16, 17, 23, 252, 253, 254}
)

# RFC 8624 "MUST NOT" / "NOT RECOMMENDED" for signing.
DEPRECATED_ALGORITHMS = frozenset({1, 3, 5, 6, 7, 12})

ALGORITHM_NAMES = {
    1: "RSAMD5",
    2: "DH",
    3: "DSA",
    4: "ECC",
    5: "RSASHA1",
    6: "DSANSEC3SHA1",
    7: "RSASHA1NSEC3SHA1",
    8: "RSASHA256",
    9: "RESERVED",
    10: "RSASHA512",
    11: "RESERVED",
    12: "ECCGOST",
    13: "ECDSAP256SHA256",
    14: "ECDSAP384SHA384",
    15: "ED25519",
    16: "ED448",
    17: "SM2SM3",
    23: "ECC-GOST12",
    252: "INDIRECT",
    253: "PRIVATEDNS",
    254: "PRIVATEOID",
}

_MNEMONICS = {
    name: number for number, name in ALGORITHM_NAMES.items() if name != "RESERVED"
}

_HEX_RE = re.compile(r"\A[0-9a-fA-F]+\Z")


def is_hexadecimal(text: str | None) -> bool:
    """Return True when text is a non-empty run of hex digits."""

    return bool(_HEX_RE.match(text or ""))


def is_valid_algorithm(number: int) -> bool:
    return number in VALID_ALGORITHMS


def is_deprecated_algorithm(number: int) -> bool:
    return number in DEPRECATED_ALGORITHMS


def algorithm_name(number: int) -> str:
    """Brief: Map an algorithm number to its mnemonic.

    Inputs:
      - number: DNSSEC algorithm number.

    Outputs:
      - str: Mnemonic such as "RSASHA256", or "" for unassigned numbers.
    """

    return ALGORITHM_NAMES.get(number, "")


def algorithm_number(value: str | None) -> int:
    """Brief: Parse a DNSKEY/DS/RRSIG algorithm field.

    Inputs:
      - value: Either a decimal number ("13") or a mnemonic ("ECDSAP256SHA256").

    Outputs:
      - int: The algorithm number, or 0 when the value is empty, unknown or
        names an algorithm outside VALID_ALGORITHMS.

    Example:
      >>> algorithm_number("rsasha256")
      8
      >>> algorithm_number("99")
      0
    """

    text = (value or "").strip()
    if not text:
        return 0
    number = int(text) if text.isdigit() else _MNEMONICS.get(text.upper(), 0)
    return number if is_valid_algorithm(number) else 0
