"""Explicit HealthCheckType -> check class registry."""

from __future__ import annotations

import difflib
import logging
import re
from types import MappingProxyType
from typing import Dict, Mapping, Optional, Type, Union

from .base import BaseCheck, HealthCheckType
from .dns_tunneling import DnsTunnelingCheck
from .dnssec import DnssecCheck
from .typosquatting import TyposquattingCheck
from .whois import WhoisCheck
from .wildcard_dns import WildcardDnsCheck

logger = logging.getLogger(__name__)

CHECKS: Mapping[HealthCheckType, Type[BaseCheck]] = MappingProxyType(
    {
        HealthCheckType.DNSSEC: DnssecCheck,
        HealthCheckType.WHOIS: WhoisCheck,
        HealthCheckType.WILDCARD_DNS: WildcardDnsCheck,
        HealthCheckType.TYPOSQUATTING: TyposquattingCheck,
        HealthCheckType.DNS_TUNNELING: DnsTunnelingCheck,
    }
)

_SEPARATORS = re.compile(r"[\s\-]+")


def _normalize(alias: str) -> str:
    return _SEPARATORS.sub("_", alias.strip().lower())


def _build_alias_index() -> Dict[str, HealthCheckType]:
    index: Dict[str, HealthCheckType] = {}
    for check_type, cls in CHECKS.items():
        for alias in (check_type.value, *cls.aliases):
            key = _normalize(alias)
            if key in index and index[key] is not check_type:
                raise ValueError(
                    f"Duplicate check alias '{key}' claimed by {cls.__name__} "
                    f"and {CHECKS[index[key]].__name__}"
                )
            index[key] = check_type
    return index


ALIASES: Mapping[str, HealthCheckType] = MappingProxyType(_build_alias_index())


def resolve_check_type(identifier: Union[str, HealthCheckType]) -> HealthCheckType:
    """Brief: Map a check name or alias to its HealthCheckType.

    Inputs:
      - identifier: HealthCheckType, its value ("dnssec") or an alias
        ("wildcard", "typo"); case, spaces and dashes are ignored.

    Outputs:
      - HealthCheckType

    Raises:
      - KeyError listing known names and close matches.

    Example:
      >>> resolve_check_type("Wildcard-DNS")
      <HealthCheckType.WILDCARD_DNS: 'wildcard_dns'>
    """

    if isinstance(identifier, HealthCheckType):
        return identifier
    key = _normalize(str(identifier))
    try:
        return ALIASES[key]
    except KeyError:
        suggestions = difflib.get_close_matches(key, list(ALIASES.keys()), n=3)
        raise KeyError(
            f"Unknown check '{identifier}'. "
            f"Known checks: {', '.join(sorted(ALIASES.keys()))}. "
            f"Suggestions: {suggestions}"
        ) from None


def get_check_class(identifier: Union[str, HealthCheckType]) -> Type[BaseCheck]:
    return CHECKS[resolve_check_type(identifier)]


def build_check(
    identifier: Union[str, HealthCheckType],
    config: Optional[Dict] = None,
    **kwargs,
) -> BaseCheck:
    """Instantiate a check from its name and raw config mapping."""

    cls = get_check_class(identifier)
    logger.debug("building check %s", cls.__name__)
    return cls(**kwargs, **dict(config or {}))
