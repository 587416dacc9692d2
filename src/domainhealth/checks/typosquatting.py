"""Typosquatting variants of the registrable label and whether they resolve."""

from __future__ import annotations

import logging
import threading
from concurrent.futures import CancelledError
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple

import idna
import tldextract
from pydantic import BaseModel, ConfigDict, Field

from .base import BaseCheck, HealthCheckType, check_aliases

logger = logging.getLogger(__name__)

# ASCII look-alikes used to build variants.
HOMOGLYPHS: Mapping[str, Tuple[str, ...]] = MappingProxyType(
    {
        "0": ("o",),
        "o": ("0",),
        "1": ("l", "i"),
        "l": ("1", "i"),
        "i": ("1", "l"),
        "5": ("s",),
        "s": ("5",),
        "a": ("@",),
        "@": ("a",),
        "e": ("3",),
        "3": ("e",),
    }
)

# Cyrillic and fullwidth characters that render like Latin letters.
CONFUSABLES = frozenset(
    "аａ"  # a
    "еｅ"  # e
    "іｉ"  # i
    "оｏ"  # o
    "сｃ"  # c
    "рｐ"  # p
    "хｘ"  # x
    "уｙ"  # y
    "вｂ"  # b
)

# RFC 1035 limits on presentation-form names.
MAX_LABEL_OCTETS = 63
MAX_NAME_OCTETS = 253

# Bundled public suffix snapshot only; no network fetch.
_EXTRACTOR = tldextract.TLDExtract(suffix_list_urls=())


def levenshtein(source: str, target: str) -> int:
    """Edit distance with unit costs for insert, delete and substitute."""

    prev = list(range(len(target) + 1))
    for i, s_ch in enumerate(source, 1):
        cur = [i]
        for j, t_ch in enumerate(target, 1):
            cost = 0 if s_ch == t_ch else 1
            cur.append(min(prev[j] + 1, cur[j - 1] + 1, prev[j - 1] + cost))
        prev = cur
    return prev[-1]


def contains_homoglyphs(text: str) -> bool:
    return any(ch in CONFUSABLES for ch in text or "")


def unicode_form(domain: str) -> str:
    """Brief: Decode A-labels so look-alike characters are visible.

    Inputs:
      - domain: Domain name in ASCII (xn--) or Unicode form.

    Outputs:
      - Unicode form; the input unchanged when idna cannot decode it.
    """

    if "xn--" not in (domain or "").lower():
        return domain or ""
    try:
        return idna.decode(domain.rstrip("."))
    except (idna.IDNAError, UnicodeError) as exc:
        logger.debug("Cannot decode %s to Unicode: %s", domain, exc)
        return domain


def fits_dns_limits(name: str) -> bool:
    """True when every label and the whole name are within DNS length limits."""

    clean = name.strip(".")
    if not clean or len(clean.encode("utf-8")) > MAX_NAME_OCTETS:
        return False
    return all(0 < len(label.encode("utf-8")) <= MAX_LABEL_OCTETS for label in clean.split("."))


def split_domain(domain: str) -> Tuple[str, str, str]:
    """Brief: Split a name around its registrable label.

    Inputs:
      - domain: Domain name, e.g. "www.example.co.uk".

    Outputs:
      - (prefix, label, suffix) such that prefix + label + suffix == domain,
        e.g. ("www.", "example", ".co.uk"). Without a known public suffix the
        first label is used.

    Example:
      >>> split_domain("www.example.co.uk")
      ('www.', 'example', '.co.uk')
    """

    clean = (domain or "").strip(".")
    if "." not in clean:
        return "", clean, ""
    ext = _EXTRACTOR(clean)
    if ext.domain and ext.suffix:
        prefix = f"{ext.subdomain}." if ext.subdomain else ""
        return prefix, ext.domain, f".{ext.suffix}"
    label, _, rest = clean.partition(".")
    return "", label, f".{rest}"


def build_variants(domain: str, threshold: int = 1) -> List[str]:
    """Brief: Missing-letter, doubled-letter and homoglyph variants.

    Inputs:
      - domain: Domain name.
      - threshold: Maximum Levenshtein distance from domain.

    Outputs:
      - Distinct variants (case-insensitive) in generation order. Variants
        that would exceed DNS label or name length limits are skipped.
    """

    prefix, label, suffix = split_domain(domain)
    clean = (domain or "").strip(".")
    out: List[str] = []
    seen = set()

    def add(candidate_label: str) -> None:
        if not candidate_label:
            return
        candidate = prefix + candidate_label + suffix
        key = candidate.lower()
        if key in seen or key == clean.lower():
            return
        if not fits_dns_limits(candidate):
            return
        if levenshtein(clean, candidate) <= threshold:
            seen.add(key)
            out.append(candidate)

    for i in range(len(label)):
        add(label[:i] + label[i + 1:])
    for i in range(len(label)):
        add(label[:i] + label[i] + label[i:])
    for i, ch in enumerate(label):
        for sub in HOMOGLYPHS.get(ch.lower(), ()):
            add(label[:i] + sub + label[i + 1:])
    return out


class TyposquattingCheckConfig(BaseModel):
    """Brief: Typed configuration model for TyposquattingCheck.

    Inputs:
      - levenshtein_threshold: Maximum edit distance of generated variants.
      - detect_homoglyphs: Flag look-alike Unicode characters in the input.

    Outputs:
      - TyposquattingCheckConfig instance.
    """

    model_config = ConfigDict(extra="forbid")

    levenshtein_threshold: int = Field(default=1, ge=0)
    detect_homoglyphs: bool = True


@check_aliases("typo", "typosquat")
class TyposquattingCheck(BaseCheck):
    """Generate look-alike domains and report those that resolve."""

    check_type = HealthCheckType.TYPOSQUATTING

    @classmethod
    def get_config_model(cls):
        return TyposquattingCheckConfig

    def run(self, domain: str, cancel: Optional[threading.Event] = None) -> Dict[str, Any]:
        has_homoglyphs = self.settings.detect_homoglyphs and contains_homoglyphs(
            unicode_form(domain)
        )
        if has_homoglyphs:
            logger.warning("Domain contains homoglyph characters: %s", domain)

        variants = build_variants(domain, self.settings.levenshtein_threshold)
        active: List[str] = []
        for variant in variants:
            if cancel is not None and cancel.is_set():
                raise CancelledError(f"typosquatting check of {domain} cancelled")
            if self.dns.query(variant, "A") or self.dns.query(variant, "AAAA"):
                active.append(variant)
                logger.warning("Potential typosquat detected: %s", variant)

        return {
            "variants": variants,
            "active_domains": active,
            "contains_homoglyphs": has_homoglyphs,
        }
