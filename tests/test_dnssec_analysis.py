"""Brief: Tests for domainhealth.dnssec.analysis chain walking and RRSIG parsing.

Inputs:
  - None

Outputs:
  - None (pytest assertions)
"""

import logging
import threading
from concurrent.futures import CancelledError
from datetime import datetime, timedelta, timezone

import dns.dnssec
import dns.rdata
import dns.rdataclass
import dns.rdatatype
import pytest

from domainhealth.dnssec import analysis
from domainhealth.dnssec.doh_json import TYPE_DNSKEY, TYPE_DS, TYPE_RRSIG, DohAnswer
from domainhealth.errors import DohJsonError

PUBLIC_KEY = (
    "AQOeiiR0GOMYkDshWoSKz9XzfwJr1AYtsmx3TGkJaNXVbfi/"
    "2pHm822aJ5iI9BMzNXxeYCmZDRD99WYwYqUSdjMmmAphXdvx"
    "egXd/M5+X7OrzKBaMbCVdFLUUh6DhweJBjEVv5f2wwjM9Xzc"
    "nOf+EPbtG9DMBmADjFDc2w/rljwvFw=="
)
KSK = "257 3 8 " + PUBLIC_KEY
ZSK = "256 3 8 " + PUBLIC_KEY[:-8] + "AAAAAA=="
ROOT_ANCHOR = "20326 8 2 E06D44B80B8F1D39A95C0B0D7C65D08458E880409BBC683457104237C7F8EC8D"


def _ds_for(zone, key_text=KSK, digest="SHA256"):
    rd = dns.rdata.from_text(dns.rdataclass.IN, dns.rdatatype.DNSKEY, key_text)
    return dns.dnssec.make_ds(zone, rd, digest).to_text()


def _key_tag(key_text=KSK):
    rd = dns.rdata.from_text(dns.rdataclass.IN, dns.rdatatype.DNSKEY, key_text)
    return dns.dnssec.key_id(rd)


def _rrsig(expiration="20301231000000", inception="20200101000000", tag=None):
    return "DNSKEY 8 2 3600 %s %s %d example.com. c2lnbmF0dXJl" % (
        expiration,
        inception,
        tag if tag is not None else _key_tag(),
    )


def _answer(ad, type_code, *records, ttl=3600):
    answers = [{"name": "x.", "type": type_code, "TTL": ttl, "data": r} for r in records]
    return DohAnswer(status=0, authenticated=ad, answers=answers)


def _signed_zone(zone, ad=True):
    keys = _answer(ad, TYPE_DNSKEY, KSK, ZSK)
    keys.answers.append({"name": zone + ".", "type": TYPE_RRSIG, "TTL": 3600, "data": _rrsig()})
    return {
        (zone, TYPE_DNSKEY): keys,
        (zone, TYPE_DS): _answer(ad, TYPE_DS, _ds_for(zone)),
    }


class FakeQuery:
    """Serves canned DohAnswer objects keyed by (name, type_code)."""

    def __init__(self, table):
        self.table = table
        self.calls = []

    def __call__(self, name, type_code):
        self.calls.append((name, type_code))
        value = self.table.get((name, type_code), DohAnswer())
        if isinstance(value, Exception):
            raise value
        return value


@pytest.fixture(autouse=True)
def offline_anchors(monkeypatch):
    """Brief: Replace the trust anchor loader so no test touches the network."""

    monkeypatch.setattr(analysis, "load_trust_anchors", lambda *a, **kw: [ROOT_ANCHOR])


def test_valid_chain_across_every_level():
    """Brief: AD flags plus matching DS at each zone give chain_valid True."""

    table = {}
    for zone in ("www.example.com", "example.com", "com"):
        table.update(_signed_zone(zone))
    fake = FakeQuery(table)

    a = analysis.DnsSecAnalysis(query=fake)
    a.analyze("www.example.com.")

    assert a.domain_name == "www.example.com"
    assert a.chain_valid is True
    assert a.ds_match is True
    assert a.authentic_data is True and a.ds_authentic_data is True
    assert a.mismatch_summary == []
    assert a.dns_keys == [KSK, ZSK]
    assert a.ds_ttls == [3600, 3600, 3600]
    assert a.root_key_tag == _key_tag()
    assert a.trust_anchors == [ROOT_ANCHOR]
    assert [c[0] for c in fake.calls] == [
        "www.example.com",
        "www.example.com",
        "example.com",
        "example.com",
        "com",
        "com",
    ]
    assert a.rrsigs[0].algorithm == "RSASHA256"
    assert a.rrsigs[0].key_tag == _key_tag()


def test_missing_ds_breaks_chain_with_summary():
    """Brief: A zone without DS reports 'No DS record for <zone>'."""

    table = _signed_zone("com")
    table[("example.com", TYPE_DNSKEY)] = _answer(True, TYPE_DNSKEY, KSK)
    a = analysis.DnsSecAnalysis(query=FakeQuery(table))
    a.analyze("example.com")

    assert a.chain_valid is False
    assert a.ds_records == []
    assert a.ds_match is False
    assert a.mismatch_summary == ["No DS record for example.com"]


def test_no_ds_at_any_level():
    """Brief: Signed keys but no DS anywhere, the TLD included, never validate."""

    table = {}
    for zone in ("www.example.com", "example.com", "com"):
        table[(zone, TYPE_DNSKEY)] = _answer(True, TYPE_DNSKEY, KSK, ZSK)
    a = analysis.DnsSecAnalysis(query=FakeQuery(table))
    a.analyze("www.example.com")

    assert a.chain_valid is False
    assert a.ds_match is False
    assert a.ds_records == []
    assert a.mismatch_summary == [
        "No DS record for www.example.com",
        "No DS record for example.com",
        "No DS record for com",
    ]
    assert a.root_key_tag == 20326
    assert a.trust_anchors == [ROOT_ANCHOR]


def test_unauthenticated_and_mismatched_levels_are_reported_in_order():
    """Brief: Summary lists DNSKEY AD, DS AD and DS mismatch problems per zone."""

    table = _signed_zone("com")
    table[("example.com", TYPE_DNSKEY)] = _answer(False, TYPE_DNSKEY, KSK)
    table[("example.com", TYPE_DS)] = _answer(False, TYPE_DS, _ds_for("other.com"))
    a = analysis.DnsSecAnalysis(query=FakeQuery(table))
    a.analyze("example.com")

    assert a.chain_valid is False
    assert a.mismatch_summary == [
        "DNSKEY for example.com not authenticated",
        "DS for example.com not authenticated",
        "DS mismatch for example.com",
    ]


def test_zsk_only_ds_still_matches():
    """Brief: Any DS may match any DNSKEY, not only the key-signing key."""

    table = _signed_zone("com")
    table[("example.com", TYPE_DNSKEY)] = _answer(True, TYPE_DNSKEY, KSK, ZSK)
    table[("example.com", TYPE_DS)] = _answer(True, TYPE_DS, _ds_for("example.com", ZSK))
    a = analysis.DnsSecAnalysis(query=FakeQuery(table))
    a.analyze("example.com")

    assert a.ds_match is True
    assert a.chain_valid is True


def test_lookup_error_becomes_empty_answer():
    """Brief: A DohJsonError at one level is recorded as an unauthenticated gap."""

    table = _signed_zone("com")
    table.update(_signed_zone("example.com"))
    table[("com", TYPE_DNSKEY)] = DohJsonError("boom")
    a = analysis.DnsSecAnalysis(query=FakeQuery(table))
    a.analyze("example.com")

    assert a.ds_match is True
    assert a.chain_valid is False
    assert "DNSKEY for com not authenticated" in a.mismatch_summary
    assert "DS mismatch for com" in a.mismatch_summary


def test_root_key_tag_falls_back_to_trust_anchor():
    """Brief: Without a TLD DS record the first trust anchor's tag is used."""

    a = analysis.DnsSecAnalysis(query=FakeQuery({}))
    a.analyze("example.com")
    assert a.root_key_tag == 20326
    assert a.chain_valid is False


def test_analyze_rejects_empty_domain_and_resets_state():
    """Brief: Empty input raises ValueError after clearing previous results."""

    a = analysis.DnsSecAnalysis(query=FakeQuery(_signed_zone("com")))
    a.analyze("com")
    assert a.chain_valid is True

    with pytest.raises(ValueError):
        a.analyze("  ")
    assert a.chain_valid is False
    assert a.domain_name == ""


def test_cancel_stops_walk():
    """Brief: A set cancel event raises CancelledError before any lookup."""

    fake = FakeQuery({})
    cancel = threading.Event()
    cancel.set()
    a = analysis.DnsSecAnalysis(query=fake)
    with pytest.raises(CancelledError):
        a.analyze("example.com", cancel=cancel)
    assert fake.calls == []


def test_expiring_rrsig_logs_warning(caplog):
    """Brief: RRSIGs within rrsig_warning_days of expiry are logged."""

    soon = (datetime.now(timezone.utc) + timedelta(days=2)).strftime("%Y%m%d%H%M%S")
    keys = _answer(True, TYPE_DNSKEY, KSK)
    keys.answers.append({"type": TYPE_RRSIG, "TTL": 60, "data": _rrsig(expiration=soon)})
    a = analysis.DnsSecAnalysis(query=FakeQuery({("com", TYPE_DNSKEY): keys}))

    with caplog.at_level(logging.WARNING, logger="domainhealth.dnssec.analysis"):
        a.analyze("com")

    assert any("RRSIG for com expires in" in r.getMessage() for r in caplog.records)
    assert a.rrsigs[0].days_remaining in (1, 2)


def test_parse_rrsig_formats():
    """Brief: parse_rrsig accepts YYYYMMDDHHmmSS and epoch times."""

    info = analysis.parse_rrsig(_rrsig(tag=4242))
    assert info.algorithm == "RSASHA256"
    assert info.key_tag == 4242
    assert info.expiration == datetime(2030, 12, 31, tzinfo=timezone.utc)
    assert info.inception == datetime(2020, 1, 1, tzinfo=timezone.utc)

    epoch = analysis.parse_rrsig("A 13 2 300 1893456000 1577836800 1 example.com. x")
    assert epoch.algorithm == "ECDSAP256SHA256"
    assert epoch.expiration == datetime(2030, 1, 1, tzinfo=timezone.utc)

    assert analysis.parse_rrsig("too short") == analysis.RrsigInfo()
    odd = analysis.parse_rrsig("A 8 2 300 soon later 1 example.com. x")
    assert odd.expiration is None and odd.days_remaining is None


def test_validate_record_needs_ad_and_rrsig():
    """Brief: validate_record requires both the AD flag and an RRSIG."""

    signed = _answer(True, 1, "192.0.2.1")
    signed.answers.append({"type": TYPE_RRSIG, "data": "A 8 2 300 1 1 1 example.com. x"})
    table = {
        ("signed.example", "A"): signed,
        ("plain.example", "A"): _answer(True, 1, "192.0.2.1"),
        ("bogus.example", "A"): DohAnswer(authenticated=False, answers=signed.answers),
    }
    a = analysis.DnsSecAnalysis(query=FakeQuery(table))
    assert a.validate_record("signed.example", "A") is True
    assert a.validate_record("plain.example", "A") is False
    assert a.validate_record("bogus.example", "A") is False


def test_to_dict_is_json_ready():
    """Brief: to_dict exposes every result field with serializable values."""

    a = analysis.DnsSecAnalysis(query=FakeQuery(_signed_zone("com")))
    a.analyze("com")
    out = a.to_dict()
    assert out["chain_valid"] is True
    assert out["rrsigs"][0]["expiration"] == "2030-12-31T00:00:00+00:00"
    assert set(out) >= {"ds_records", "dns_keys", "ds_ttls", "root_key_tag", "mismatch_summary"}
