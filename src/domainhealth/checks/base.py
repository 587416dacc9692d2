from __future__ import annotations

import enum
import logging
import threading
from typing import Any, ClassVar, Dict, Optional, Sequence, Type

from pydantic import BaseModel

from ..dns_client import DnsClient

logger = logging.getLogger(__name__)


class HealthCheckType(str, enum.Enum):
    """Closed set of checks a DomainHealthCheck can run."""

    DNSSEC = "dnssec"
    WHOIS = "whois"
    WILDCARD_DNS = "wildcard_dns"
    TYPOSQUATTING = "typosquatting"
    DNS_TUNNELING = "dns_tunneling"


def check_aliases(*aliases: str):
    """Brief: Decorator to set extra lookup names on a check class.

    Inputs:
      - *aliases: Alias strings accepted by the registry in addition to the
        check's HealthCheckType value.

    Outputs:
      - Callable that applies the aliases to a check class and returns it.

    Example:
        >>> @check_aliases("wildcard", "catch_all")
        ... class WildcardDnsCheck(BaseCheck):
        ...     pass
        >>> WildcardDnsCheck.aliases
        ('wildcard', 'catch_all')
    """

    def _wrap(cls: type) -> type:
        cls.aliases = tuple(aliases)
        return cls

    return _wrap


class BaseCheck:
    """Brief: Base class for all domain checks.

    Inputs:
      - dns: Optional DnsClient shared by checks that resolve names.
      - **config: Check configuration, validated by get_config_model().

    Outputs:
      - Initialized check; run(domain, cancel) returns a JSON-ready mapping.

    Example use:
        >>> class NoopCheck(BaseCheck):
        ...     def run(self, domain, cancel=None):
        ...         return {"domain": domain}
        >>> NoopCheck().run("example.com")
        {'domain': 'example.com'}
    """

    check_type: ClassVar[Optional[HealthCheckType]] = None
    aliases: ClassVar[Sequence[str]] = ()

    def __init__(self, dns: Optional[DnsClient] = None, **config: Any) -> None:
        self.settings = self.validate_config(config)
        self._dns = dns
        logger.debug("loading %s", type(self).__name__)

    @classmethod
    def get_config_model(cls) -> Optional[Type[BaseModel]]:
        """Return the pydantic model validating this check's config, if any."""

        return None

    @classmethod
    def validate_config(cls, config: Optional[Dict[str, Any]]) -> Any:
        """Brief: Validate raw config with the check's model.

        Inputs:
          - config: Raw mapping (may be None).

        Outputs:
          - Model instance, or the mapping itself when the check has no model.

        Raises:
          - ValueError naming the check when validation fails.
        """

        cfg = dict(config or {})
        model_cls = cls.get_config_model()
        if model_cls is None:
            return cfg
        try:
            return model_cls(**cfg)
        except Exception as exc:
            raise ValueError(f"Invalid configuration for check {cls.__name__}: {exc}") from exc

    @property
    def dns(self) -> DnsClient:
        """DnsClient, created with default settings on first use."""

        if self._dns is None:
            self._dns = DnsClient()
        return self._dns

    def run(self, domain: str, cancel: Optional[threading.Event] = None) -> Dict[str, Any]:
        raise NotImplementedError
