"""Exception types raised by domainhealth analyzers."""


class UnsupportedTldError(Exception):
    """
    Brief: Raised when no WHOIS server is known for a domain's TLD.

    Inputs:
      - domain: The domain that was queried.
      - tld: The TLD that could not be mapped to a server.

    Outputs:
      - Exception instance exposing ``domain`` and ``tld`` attributes.
    """

    def __init__(self, domain: str, tld: str):
        super().__init__(f"TLD '{tld}' is not supported for WHOIS lookup.")
        self.domain = domain
        self.tld = tld


class DohJsonError(Exception):
    """
    Brief: DNS-over-HTTPS JSON API error (HTTP failure or malformed body).

    Inputs:
      - message: Description of the error

    Outputs:
      - Exception instance
    """

    pass
