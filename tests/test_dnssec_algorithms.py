"""Brief: Tests for domainhealth.dnssec.algorithms helpers.

Inputs:
  - None

Outputs:
  - None (pytest assertions)
"""

from domainhealth.dnssec import algorithms


def test_algorithm_number_parses_numbers_and_mnemonics():
    """Brief: Numeric and mnemonic fields map to algorithm numbers; unknown is 0."""

    assert algorithms.algorithm_number("8") == 8
    assert algorithms.algorithm_number("rsasha256") == 8
    assert algorithms.algorithm_number("ECDSAP256SHA256") == 13
    assert algorithms.algorithm_number("ECC-GOST12") == 23
    assert algorithms.algorithm_number("99") == 0
    assert algorithms.algorithm_number("RESERVED") == 0
    assert algorithms.algorithm_number("") == 0
    assert algorithms.algorithm_number(None) == 0


def test_validity_and_deprecation():
    """Brief: Deprecated algorithms are still valid; unassigned ones are not."""

    assert algorithms.is_valid_algorithm(13)
    assert algorithms.is_valid_algorithm(5)
    assert algorithms.is_deprecated_algorithm(5)
    assert not algorithms.is_deprecated_algorithm(13)
    assert not algorithms.is_valid_algorithm(9)
    assert not algorithms.is_valid_algorithm(200)


def test_algorithm_name_and_hex():
    """Brief: algorithm_name returns mnemonics; is_hexadecimal rejects non-hex."""

    assert algorithms.algorithm_name(15) == "ED25519"
    assert algorithms.algorithm_name(42) == ""
    assert algorithms.is_hexadecimal("DeadBeef01")
    assert not algorithms.is_hexadecimal("xyz")
    assert not algorithms.is_hexadecimal("")
    assert not algorithms.is_hexadecimal(None)
