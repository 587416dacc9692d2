"""Brief: Tests for domainhealth.dns_client resolver construction and lookups.

Inputs:
  - None

Outputs:
  - None (pytest assertions)
"""

import dns.exception
import dns.name
import dns.resolver

from domainhealth import dns_client


class FakeRdata:
    def __init__(self, text):
        self.text = text

    def to_text(self):
        return self.text


class FakeAnswer:
    def __init__(self, rrset):
        self.rrset = rrset


class FakeResolver:
    """Returns canned answers or raises canned exceptions per (name, rdtype)."""

    def __init__(self, table):
        self.table = table
        self.calls = []

    def resolve(self, name, rdtype, raise_on_no_answer=True):
        self.calls.append((name, rdtype, raise_on_no_answer))
        value = self.table[(name, rdtype)]
        if isinstance(value, Exception):
            raise value
        return value


def _client(table):
    client = dns_client.DnsClient(nameservers=["192.0.2.53"])
    client.resolver = FakeResolver(table)
    return client


def test_make_resolver_with_explicit_nameservers():
    """Brief: Explicit nameservers bypass system configuration."""

    r = dns_client.make_resolver(["192.0.2.53", "198.51.100.53"], lifetime=3)
    assert len(r.nameservers) == 2
    assert r.lifetime == 3.0


def test_query_returns_presentation_text():
    """Brief: Answers are returned as rdata text; no answer section gives []."""

    client = _client(
        {
            ("example.com", "A"): FakeAnswer([FakeRdata("192.0.2.1"), FakeRdata("192.0.2.2")]),
            ("example.com", "AAAA"): FakeAnswer(None),
        }
    )
    assert client.query("example.com", "A") == ["192.0.2.1", "192.0.2.2"]
    assert client.query("example.com", "AAAA") == []
    assert client.resolver.calls[0] == ("example.com", "A", False)


def test_query_maps_resolution_failures_to_empty():
    """Brief: NXDOMAIN, unreachable servers and timeouts yield []."""

    client = _client(
        {
            ("gone.example", "A"): dns.resolver.NXDOMAIN(),
            ("broken.example", "A"): dns.resolver.NoNameservers(),
            ("slow.example", "A"): dns.exception.Timeout(),
        }
    )
    assert client.query("gone.example", "A") == []
    assert client.query("broken.example", "A") == []
    assert client.query("slow.example", "A") == []


def test_query_maps_invalid_names_to_empty():
    """Brief: Over-long labels or names and empty labels yield [] instead of raising."""

    client = _client(
        {
            ("long.example", "A"): dns.name.LabelTooLong(),
            ("huge.example", "A"): dns.name.NameTooLong(),
            ("empty..example", "A"): dns.name.EmptyLabel(),
        }
    )
    assert client.query("long.example", "A") == []
    assert client.query("huge.example", "A") == []
    assert client.query("empty..example", "A") == []

    # Name conversion fails before any packet is sent.
    real = dns_client.DnsClient(nameservers=["192.0.2.53"], lifetime=0.5)
    assert real.query("a" * 64 + ".com", "A") == []


def test_parse_resolv_conf_nameservers(tmp_path):
    """Brief: Only nameserver lines are read; comments are stripped."""

    conf = tmp_path / "resolv.conf"
    conf.write_text(
        "# generated\nsearch example.internal\nnameserver 192.0.2.53  # primary\n"
        "nameserver 2001:db8::53\noptions edns0\n",
        encoding="utf-8",
    )
    assert dns_client._parse_resolv_conf_nameservers(str(conf)) == ["192.0.2.53", "2001:db8::53"]
