"""Root zone trust anchors published by IANA, with an on-disk cache.

The anchors are fetched from root-anchors.xml (RFC 7958) and returned as DS
presentation strings: "<KeyTag> <Algorithm> <DigestType> <Digest>".
"""

from __future__ import annotations

import logging
import os
import tempfile
import threading
import xml.etree.ElementTree as ET
from datetime import datetime, timedelta, timezone
from typing import List, Optional

import requests
from cachetools import TTLCache, cached
from cachetools.keys import hashkey

logger = logging.getLogger(__name__)

IANA_ROOT_ANCHORS_URL = "https://data.iana.org/root-anchors/root-anchors.xml"
DEFAULT_MAX_AGE_DAYS = 7


def _now_utc() -> datetime:
    """Return current UTC time as a timezone-aware datetime."""

    return datetime.now(timezone.utc)


def default_cache_path() -> str:
    """Return the default cache file location under the system temp dir."""

    return os.path.join(tempfile.gettempdir(), "domainhealth", "root-anchors.xml")


def _local(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def _child_text(elem: ET.Element, name: str) -> str:
    for child in elem:
        if _local(child.tag) == name:
            return (child.text or "").strip()
    return ""


def _parse_valid_until(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def parse_trust_anchors(xml_text: str, *, now: Optional[datetime] = None) -> List[str]:
    """Brief: Extract DS strings from an IANA root-anchors.xml document.

    Inputs:
      - xml_text: XML document text.
      - now: Optional override of current time (UTC) for tests.

    Outputs:
      - List of "<KeyTag> <Algorithm> <DigestType> <Digest>" strings in
        document order. KeyDigest entries missing a field, or whose validUntil
        has passed, are skipped. Malformed XML yields an empty list.
    """

    try:
        root = ET.fromstring(xml_text)
    except (ET.ParseError, TypeError) as exc:
        logger.debug("Unable to parse trust anchor XML: %s", exc)
        return []

    if now is None:
        now = _now_utc()
    anchors: List[str] = []
    for kd in root.iter():
        if _local(kd.tag) != "KeyDigest":
            continue
        valid_until = _parse_valid_until(kd.get("validUntil"))
        if valid_until is not None and valid_until <= now:
            continue
        fields = [
            _child_text(kd, name)
            for name in ("KeyTag", "Algorithm", "DigestType", "Digest")
        ]
        if all(fields):
            anchors.append(" ".join(fields))
    return anchors


def _read_cache(path: str) -> Optional[str]:
    try:
        with open(path, "r", encoding="utf-8") as f:
            return f.read()
    except OSError:
        return None


def _write_cache(path: str, text: str) -> None:
    """Persist the XML document with a simple atomic replace."""

    directory = os.path.dirname(path) or "."
    os.makedirs(directory, exist_ok=True)
    tmp_path = path + ".tmp"
    with open(tmp_path, "w", encoding="utf-8") as f:
        f.write(text)
    os.replace(tmp_path, path)


def _cache_is_fresh(path: str, max_age: timedelta, now: datetime) -> bool:
    try:
        mtime = datetime.fromtimestamp(os.path.getmtime(path), timezone.utc)
    except OSError:
        return False
    return now - mtime < max_age


def download_trust_anchors(
    *,
    url: str = IANA_ROOT_ANCHORS_URL,
    cache_path: Optional[str] = None,
    max_age_days: int = DEFAULT_MAX_AGE_DAYS,
    timeout_ms: int = 10000,
    now: Optional[datetime] = None,
) -> List[str]:
    """Brief: Return the current root trust anchors, downloading when stale.

    Inputs:
      - url: Location of root-anchors.xml.
      - cache_path: Cache file; defaults to default_cache_path().
      - max_age_days: Age after which the cache file is refreshed.
      - timeout_ms: HTTP timeout.
      - now: Optional override of current time (UTC) for tests.

    Outputs:
      - List of DS strings (see parse_trust_anchors). When the download fails
        the cached file is used regardless of its age; with no cache file an
        empty list is returned. Never raises for network errors.
    """

    path = cache_path or default_cache_path()
    if now is None:
        now = _now_utc()

    try:
        if _cache_is_fresh(path, timedelta(days=max(max_age_days, 0)), now):
            cached_xml = _read_cache(path)
            if cached_xml is not None:
                return parse_trust_anchors(cached_xml, now=now)

        r = requests.get(url, timeout=timeout_ms / 1000.0)
        r.raise_for_status()
        xml_text = r.text
        try:
            _write_cache(path, xml_text)
        except OSError as exc:
            logger.warning("Unable to write trust anchor cache %s: %s", path, exc)
        return parse_trust_anchors(xml_text, now=now)
    except Exception as exc:
        logger.info("Trust anchor download failed: %s", exc)
        cached_xml = _read_cache(path)
        if cached_xml is not None:
            return parse_trust_anchors(cached_xml, now=now)
        return []


# In-process memo so that batch runs do not re-read the cache file per domain.
_ANCHOR_MEMO: TTLCache = TTLCache(maxsize=8, ttl=3600)
_ANCHOR_MEMO_LOCK = threading.Lock()


def _memo_key(
    url: str = IANA_ROOT_ANCHORS_URL,
    cache_path: Optional[str] = None,
    max_age_days: int = DEFAULT_MAX_AGE_DAYS,
    timeout_ms: int = 10000,
):
    return hashkey(url, cache_path, max_age_days)


@cached(cache=_ANCHOR_MEMO, key=_memo_key, lock=_ANCHOR_MEMO_LOCK)
def load_trust_anchors(
    url: str = IANA_ROOT_ANCHORS_URL,
    cache_path: Optional[str] = None,
    max_age_days: int = DEFAULT_MAX_AGE_DAYS,
    timeout_ms: int = 10000,
) -> List[str]:
    """Memoized wrapper around download_trust_anchors (one hour per key)."""

    return download_trust_anchors(
        url=url,
        cache_path=cache_path,
        max_age_days=max_age_days,
        timeout_ms=timeout_ms,
    )


def clear_trust_anchor_cache() -> None:
    """Drop memoized anchors so the next load re-reads the cache file."""

    with _ANCHOR_MEMO_LOCK:
        _ANCHOR_MEMO.clear()


def anchor_key_tag(anchor: str) -> int:
    """Return the key tag field of a DS string, or 0 when it is missing."""

    parts = (anchor or "").split()
    if parts and parts[0].isdigit():
        return int(parts[0])
    return 0
