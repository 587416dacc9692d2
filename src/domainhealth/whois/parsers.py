"""Line scanners for the WHOIS dialects of individual registries.

Each parser receives a WhoisRecord and the normalized response text and fills
whatever fields the dialect carries. Parsers never raise for odd input; lines
they do not recognise are ignored.
"""

from __future__ import annotations

import logging
import re
from dataclasses import MISSING, dataclass, field, fields
from datetime import datetime, timedelta, timezone
from types import MappingProxyType
from typing import Callable, Dict, List, Mapping, Optional, Tuple

from dateutil import parser as date_parser

logger = logging.getLogger(__name__)

LICENSE_PREFIXES: Tuple[str, ...] = (
    "Registrar License:",
    "Registrar Licence:",
    "Registrar License Number:",
    "Registrar Licence Number:",
)

PRIVACY_INDICATORS: Tuple[str, ...] = (
    "redacted for privacy",
    "contact privacy",
    "whois privacy",
    "privacy service",
    "domains by proxy",
    "whoisguard",
    "withheld for privacy",
    "privacyguardian.org",
    "privacy protection",
)

LOCK_INDICATORS: Tuple[str, ...] = ("transferprohibited", "status: locked")

DEFAULT_EXPIRATION_WARNING = timedelta(days=30)

_NEWLINES_RE = re.compile(r"\r\n|\r|\n")
_DOTTED_DATE_RE = re.compile(r"^\d{1,2}\.\d{1,2}\.\d{4}")


@dataclass
class WhoisRecord:
    """Brief: Registration details extracted from one WHOIS response.

    Inputs (fields):
      - Registration fields as named; name_servers keeps response order.
      - expires_soon / is_expired / registrar_locked / privacy_protected:
        derived by update_flags() after parsing.

    Outputs:
      - WhoisRecord instance.
    """

    domain_name: str = ""
    tld: str = ""
    registrar: str = ""
    creation_date: str = ""
    expiry_date: str = ""
    last_updated: str = ""
    registered_to: str = ""
    registrant_type: str = ""
    country: str = ""
    name_servers: List[str] = field(default_factory=list)
    dnssec: str = ""
    dns_record: str = ""
    registrar_address: str = ""
    registrar_tel: str = ""
    registrar_website: str = ""
    registrar_license: str = ""
    registrar_email: str = ""
    registrar_abuse_email: str = ""
    registrar_abuse_phone: str = ""
    whois_data: str = ""
    expires_soon: bool = False
    is_expired: bool = False
    registrar_locked: bool = False
    privacy_protected: bool = False

    def reset_record(self) -> None:
        """Restore every registration field and flag to its default."""

        for f in fields(WhoisRecord):
            if f.default_factory is not MISSING:
                setattr(self, f.name, f.default_factory())
            else:
                setattr(self, f.name, f.default)

    def record_dict(self) -> Dict[str, object]:
        return {
            f.name: list(getattr(self, f.name))
            if isinstance(getattr(self, f.name), list)
            else getattr(self, f.name)
            for f in fields(WhoisRecord)
        }


def normalize_newlines(text: str) -> str:
    return _NEWLINES_RE.sub("\n", text or "")


def _value(line: str, prefix: str) -> str:
    return line[len(prefix):].strip()


# ICANN style "Key: value" lines. A tuple target fills several fields.
_ICANN_KEYS: Mapping[str, Tuple[str, ...]] = MappingProxyType(
    {
        "Domain Name:": ("domain_name",),
        "Registrar:": ("registrar",),
        "Creation Date:": ("creation_date",),
        "Registry Expiry Date:": ("expiry_date",),
        "Updated Date:": ("last_updated",),
        "Registrar Abuse Contact Email:": ("registrar_email", "registrar_abuse_email"),
        "Registrar Abuse Contact Phone:": ("registrar_tel", "registrar_abuse_phone"),
        "Registrant Organization:": ("registered_to",),
        "Registrant Country:": ("country",),
        "DNSSEC:": ("dnssec",),
    }
)

# Verisign's thin registry output for .com/.net carries no registrant block.
_VERISIGN_KEYS = frozenset(
    {
        "Domain Name:",
        "Registrar:",
        "Creation Date:",
        "Registry Expiry Date:",
        "Updated Date:",
        "Registrar Abuse Contact Email:",
        "Registrar Abuse Contact Phone:",
        "DNSSEC:",
    }
)


def _scan_key_values(
    record: WhoisRecord,
    text: str,
    keys: Mapping[str, Tuple[str, ...]],
    indent: Optional[str] = None,
) -> None:
    """Apply ``keys`` to each line; with indent set, only lines carrying that
    exact leading whitespace are considered."""

    for raw in text.split("\n"):
        if indent is not None:
            if not raw.startswith(indent) or raw[len(indent):][:1].isspace():
                continue
        line = raw.strip()
        if line.startswith("Name Server:"):
            record.name_servers.append(_value(line, "Name Server:"))
            continue
        for prefix, targets in keys.items():
            if line.startswith(prefix):
                value = _value(line, prefix)
                for target in targets:
                    setattr(record, target, value)
                break


def parse_default(record: WhoisRecord, text: str) -> None:
    """Generic gTLD (ICANN RDDS) key/value dialect."""

    _scan_key_values(record, text, _ICANN_KEYS)


def parse_xyz(record: WhoisRecord, text: str) -> None:
    keys = {k: v for k, v in _ICANN_KEYS.items() if k != "DNSSEC:"}
    _scan_key_values(record, text, keys)


def parse_com(record: WhoisRecord, text: str) -> None:
    """Verisign registry output: keys indented by exactly three spaces."""

    keys = {k: v for k, v in _ICANN_KEYS.items() if k in _VERISIGN_KEYS}
    _scan_key_values(record, text, keys, indent="   ")


def parse_de(record: WhoisRecord, text: str) -> None:
    """DENIC layout; keys are matched case-insensitively."""

    for raw in text.split("\n"):
        line = raw.strip()
        lowered = line.lower()
        if lowered.startswith("domain:"):
            record.domain_name = _value(line, "domain:")
        elif lowered.startswith("changed:"):
            record.last_updated = _value(line, "changed:")
        elif lowered.startswith("nserver:"):
            record.name_servers.append(_value(line, "nserver:"))


def parse_co_uk(record: WhoisRecord, text: str) -> None:
    """Nominet layout: "Section:" header lines, indented values, blank lines
    between sections."""

    section: Optional[str] = None
    for raw in text.split("\n"):
        line = raw.strip()
        if not line:
            section = None
        elif line.endswith(":"):
            section = line[:-1]
        elif section == "Domain name":
            record.domain_name = line
        elif section == "Registrar":
            if not record.registrar:
                record.registrar = line
            elif line.startswith("URL:"):
                record.registrar_website = _value(line, "URL:")
        elif section == "Relevant dates":
            if line.startswith("Registered on:"):
                record.creation_date = _value(line, "Registered on:")
            elif line.startswith("Expiry date:"):
                record.expiry_date = _value(line, "Expiry date:")
            elif line.startswith("Last updated:"):
                record.last_updated = _value(line, "Last updated:")
        elif section == "Name servers":
            record.name_servers.append(line)


def parse_cz(record: WhoisRecord, text: str) -> None:
    """CZ.NIC layout.

    The first block describes the domain and names the registrant contact id.
    Later blocks are objects (contacts, nssets, keysets); only the contact
    whose id matches the registrant fills registrant fields.
    """

    in_domain = True
    seen_domain = False
    in_registrant = False
    registrant_id = ""
    address: List[str] = []

    for raw in text.split("\n"):
        line = raw.strip()
        if line.startswith("%"):
            continue
        if not line:
            # The banner may be followed by blank lines before the domain block.
            if seen_domain:
                in_domain = False
            in_registrant = False
            continue

        if in_domain:
            if line.startswith("domain:"):
                seen_domain = True
                record.domain_name = _value(line, "domain:")
            elif line.startswith("registered:"):
                record.creation_date = _value(line, "registered:")
            elif line.startswith("expire:"):
                record.expiry_date = _value(line, "expire:")
            elif line.startswith("registrar:"):
                record.registrar = _value(line, "registrar:")
            elif line.startswith("registrant:"):
                registrant_id = _value(line, "registrant:")
        elif (
            line.startswith("contact:")
            and registrant_id
            and _value(line, "contact:") == registrant_id
        ):
            in_registrant = True
        elif in_registrant:
            if line.startswith("org:"):
                record.registrant_type = _value(line, "org:")
            elif line.startswith("name:"):
                record.registered_to = _value(line, "name:")
            elif line.startswith("address:"):
                address.append(_value(line, "address:"))
        elif line.startswith("nserver:"):
            record.name_servers.append(_value(line, "nserver:"))
        elif line.startswith("dnskey:"):
            record.dnssec = _value(line, "dnskey:")

    if address:
        record.registrar_address = ", ".join(address)


def parse_pl(record: WhoisRecord, text: str) -> None:
    """NASK layout: a "nameservers:" list continued by lines ending in "."
    and a free-form REGISTRAR block ending at the next blank line."""

    in_nameservers = False
    in_registrar = False
    address: List[str] = []

    simple = (
        ("DOMAIN NAME:", "domain_name"),
        ("created:", "creation_date"),
        ("renewal date:", "expiry_date"),
        ("registrant type:", "registrant_type"),
        ("last modified:", "last_updated"),
        ("dnssec:", "dnssec"),
        ("DS:", "dns_record"),
    )

    for raw in text.split("\n"):
        line = raw.strip()

        if in_nameservers:
            if line.endswith("."):
                record.name_servers.append(line)
                continue
            in_nameservers = False

        if in_registrar:
            if not line:
                in_registrar = False
            elif line.startswith("Tel:"):
                record.registrar_tel = _value(line, "Tel:")
            elif line.startswith("https://") or line.startswith("http://"):
                record.registrar_website = line
            elif "@" in line and " " not in line:
                record.registrar_email = line
            elif not record.registrar:
                record.registrar = line
            else:
                address.append(line)
            continue

        for prefix, target in simple:
            if line.startswith(prefix):
                setattr(record, target, _value(line, prefix))
                break
        else:
            if line.startswith("nameservers:"):
                in_nameservers = True
                first = _value(line, "nameservers:")
                if first:
                    record.name_servers.append(first)
            elif line.startswith("REGISTRAR:"):
                in_registrar = True
                record.registrar = _value(line, "REGISTRAR:")

    if address:
        record.registrar_address = ", ".join(address)


def parse_be(record: WhoisRecord, text: str) -> None:
    """DNS Belgium layout with "Registrar:" and "Nameservers:" blocks."""

    in_registrar = False
    in_nameservers = False

    for raw in text.split("\n"):
        line = raw.strip()

        if in_registrar:
            if line.startswith("Name:"):
                record.registrar = _value(line, "Name:")
                continue
            if line.startswith("Website:"):
                record.registrar_website = _value(line, "Website:")
                continue
            in_registrar = False

        if in_nameservers:
            if line:
                record.name_servers.append(line)
                continue
            in_nameservers = False

        if line.startswith("Domain:"):
            record.domain_name = _value(line, "Domain:")
        elif line.startswith("Registered:"):
            record.creation_date = _value(line, "Registered:")
        elif line.startswith("Registrar:"):
            in_registrar = True
        elif line.startswith("Nameservers:"):
            in_nameservers = True
        elif line.startswith("Flags:"):
            record.dnssec = _value(line, "Flags:")


Parser = Callable[[WhoisRecord, str], None]

PARSERS: Mapping[str, Parser] = MappingProxyType(
    {
        "com": parse_com,
        "net": parse_com,
        "pl": parse_pl,
        "de": parse_de,
        "cz": parse_cz,
        "be": parse_be,
        "co.uk": parse_co_uk,
        "xyz": parse_xyz,
    }
)


def trailing_suffixes(suffix: str) -> List[str]:
    """Every trailing label run of suffix, longest first.

    Example:
      >>> trailing_suffixes("example.co.uk")
      ['example.co.uk', 'co.uk', 'uk']
    """

    labels = [p for p in (suffix or "").lower().strip(".").split(".") if p]
    return [".".join(labels[i:]) for i in range(len(labels))]


def select_parser(*candidates: str) -> Parser:
    """Return the first dedicated parser among candidates, else parse_default."""

    for key in candidates:
        parser = PARSERS.get((key or "").lower())
        if parser is not None:
            return parser
    return parse_default


def parse_registrar_license(record: WhoisRecord, text: str) -> None:
    for raw in text.split("\n"):
        line = raw.strip()
        lowered = line.lower()
        for prefix in LICENSE_PREFIXES:
            if lowered.startswith(prefix.lower()):
                record.registrar_license = _value(line, prefix)
                break


def parse_expiry(value: str) -> Optional[datetime]:
    """Brief: Parse a registry expiry date into an aware UTC datetime.

    Inputs:
      - value: Date text in any of the registry formats ("2030-01-01T00:00:00Z",
        "29.07.2024", "2025.01.01 12:00:00", "01-Jan-2030").

    Outputs:
      - datetime or None when the text is empty or unparseable. Naive values
        are taken as UTC.
    """

    text = (value or "").strip()
    if not text:
        return None
    try:
        parsed = date_parser.parse(text, dayfirst=bool(_DOTTED_DATE_RE.match(text)))
    except (ValueError, OverflowError) as exc:
        logger.debug("Unparseable WHOIS date %r: %s", text, exc)
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def update_flags(
    record: WhoisRecord,
    *,
    expiration_warning: timedelta = DEFAULT_EXPIRATION_WARNING,
    now: Optional[datetime] = None,
) -> None:
    """Derive expiry, lock and privacy flags from the parsed record."""

    now = now or datetime.now(timezone.utc)
    record.is_expired = False
    record.expires_soon = False
    expiry = parse_expiry(record.expiry_date)
    if expiry is not None:
        record.is_expired = expiry <= now
        record.expires_soon = not record.is_expired and expiry <= now + expiration_warning

    lowered = [line.strip().lower() for line in record.whois_data.split("\n")]
    record.registrar_locked = any(
        marker in line for line in lowered for marker in LOCK_INDICATORS
    )
    record.privacy_protected = any(
        marker in line for line in lowered for marker in PRIVACY_INDICATORS
    )


def parse_whois_data(
    record: WhoisRecord,
    text: str,
    tld: str,
    *,
    suffix: str = "",
    expiration_warning: timedelta = DEFAULT_EXPIRATION_WARNING,
    now: Optional[datetime] = None,
) -> WhoisRecord:
    """Brief: Parse a WHOIS response into record and derive its flags.

    Inputs:
      - record: Record to fill (fields are not reset here).
      - text: Raw response text.
      - tld: Key the WHOIS server was resolved by ("com", "uk", "ac.uk").
      - suffix: Full suffix after the first label. It and each shorter
        trailing suffix ("example.co.uk", "co.uk") are tried for a dedicated
        parser before tld.
      - expiration_warning: Window for expires_soon.
      - now: Optional override of current time (UTC) for tests.

    Outputs:
      - The same record, for chaining.
    """

    data = normalize_newlines(text)
    record.whois_data = data
    if not record.tld:
        record.tld = tld
    parser = select_parser(*trailing_suffixes(suffix), tld)
    logger.debug("Parsing WHOIS data for tld %s with %s", tld, parser.__name__)
    parser(record, data)
    parse_registrar_license(record, data)
    update_flags(record, expiration_warning=expiration_warning, now=now)
    return record
