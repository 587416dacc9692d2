"""Brief: Unit tests for domainhealth.config.config_parser helpers.

Inputs:
  - None

Outputs:
  - None
"""

from __future__ import annotations

import logging
from typing import Any, Dict

import pytest

from domainhealth.config import config_parser as cp


def _write(tmp_path, text: str) -> str:
    path = tmp_path / "domainhealth.yaml"
    path.write_text(text, encoding="utf-8")
    return str(path)


def test_is_var_key_empty_and_uppercase() -> None:
    """Brief: _is_var_key rejects empty and accepts ALL_UPPERCASE names."""

    assert cp._is_var_key("") is False
    assert cp._is_var_key("TIMEOUT") is True
    assert cp._is_var_key("_PRIVATE_1") is True
    assert cp._is_var_key("timeout") is False
    assert cp._is_var_key("1ABC") is False


def test_parse_config_variables_non_mapping_raises() -> None:
    """Brief: parse_config_variables rejects a non-mapping vars root."""

    cfg: Dict[str, Any] = {"vars": [1, 2, 3]}
    with pytest.raises(ValueError, match="config.vars must be a mapping"):
        cp.parse_config_variables(cfg, environ={})


def test_parse_config_variables_precedence() -> None:
    """Brief: CLI beats environment beats file; env only overrides declared names.

    Inputs:
      - None.

    Outputs:
      - None; asserts merged values and that undeclared env names are ignored.
    """

    cfg: Dict[str, Any] = {"vars": {"TIMEOUT": 100, "LEVEL": "warn"}}
    merged = cp.parse_config_variables(
        cfg,
        cli_vars=["LEVEL=debug", "NEW_VAR=[a, b]"],
        environ={"TIMEOUT": "300", "LEVEL": "info", "HOME": "/root"},
    )
    assert merged == {"TIMEOUT": 300, "LEVEL": "debug", "NEW_VAR": ["a", "b"]}
    assert cfg["vars"] is merged
    assert "HOME" not in merged


def test_parse_config_variables_accepts_legacy_key() -> None:
    """Brief: A top-level `variables` mapping is moved to `vars`."""

    cfg: Dict[str, Any] = {"variables": {"X": 1}}
    assert cp.parse_config_variables(cfg, environ={}) == {"X": 1}
    assert "variables" not in cfg


@pytest.mark.parametrize("assignment", ["NOEQUALS", "lower=1", "=1"])
def test_parse_config_variables_rejects_bad_cli(assignment: str) -> None:
    """Brief: CLI variables must be KEY=YAML with an uppercase key."""

    with pytest.raises(ValueError):
        cp.parse_config_variables({}, cli_vars=[assignment], environ={})


def test_load_config_expands_and_validates(tmp_path) -> None:
    """Brief: load_config expands variables (including list splicing)."""

    path = _write(
        tmp_path,
        """
vars:
  NAMESERVERS: [192.0.2.53, 198.51.100.53]
  MORE_CHECKS: [whois, typo]
  WARN_DAYS: 45
dns:
  nameservers: $NAMESERVERS
checks: [dnssec, $MORE_CHECKS]
whois:
  expiration_warning_days: ${WARN_DAYS}
  snapshot_dir: /tmp/snaps-${WARN_DAYS}
""",
    )
    cfg = cp.load_config(path, environ={})
    assert "vars" not in cfg
    assert cfg["dns"]["nameservers"] == ["192.0.2.53", "198.51.100.53"]
    assert cfg["checks"] == ["dnssec", "whois", "typo"]
    assert cfg["whois"]["expiration_warning_days"] == 45
    assert cfg["whois"]["snapshot_dir"] == "/tmp/snaps-45"
    assert cp.selected_checks(cfg) == ["dnssec", "whois", "typo"]
    assert cp.check_configs(cfg) == {
        "whois": {"expiration_warning_days": 45, "snapshot_dir": "/tmp/snaps-45"}
    }


def test_load_config_cli_override(tmp_path) -> None:
    """Brief: -v KEY=YAML values flow into the expanded config."""

    path = _write(tmp_path, "vars:\n  WORKERS: 2\noutput:\n  workers: $WORKERS\n")
    cfg = cp.load_config(path, cli_vars=["WORKERS=8"], environ={})
    assert cfg["output"]["workers"] == 8


def test_load_config_without_file() -> None:
    """Brief: No path gives an empty, valid config and the default checks."""

    cfg = cp.load_config(None, environ={})
    assert cfg == {}
    assert cp.selected_checks(cfg) is None
    assert cp.check_configs(cfg) == {}


def test_load_config_rejects_non_mapping_and_schema_errors(tmp_path) -> None:
    """Brief: A list root and schema violations raise ValueError."""

    with pytest.raises(ValueError, match="must be a mapping"):
        cp.load_config(_write(tmp_path, "- a\n- b\n"), environ={})

    with pytest.raises(ValueError, match="output/workers"):
        cp.load_config(_write(tmp_path, "output:\n  workers: 0\n"), environ={})


def test_load_config_warns_on_unknown_keys(tmp_path, caplog) -> None:
    """Brief: Unknown top-level keys are logged, not fatal."""

    path = _write(tmp_path, "checks: [dnssec]\nmystery: 1\n")
    with caplog.at_level(logging.WARNING, logger="domainhealth.config.config_schema"):
        cfg = cp.load_config(path, environ={})
    assert cfg["mystery"] == 1
    assert "mystery" in caplog.text


def test_load_config_unknown_keys_policy(tmp_path, caplog) -> None:
    """Brief: config.unknown_keys sets the policy; the argument overrides it."""

    strict = _write(tmp_path, "config:\n  unknown_keys: error\nmystery: 1\n")
    with pytest.raises(ValueError, match="mystery"):
        cp.load_config(strict, environ={})

    with caplog.at_level(logging.WARNING, logger="domainhealth.config.config_schema"):
        cfg = cp.load_config(strict, environ={}, unknown_keys="ignore")
    assert cfg["mystery"] == 1
    assert "mystery" not in caplog.text

    loose = _write(tmp_path, "mystery: 1\n")
    with pytest.raises(ValueError, match="mystery"):
        cp.load_config(loose, environ={}, unknown_keys="error")

    via_var = _write(
        tmp_path, "vars:\n  POLICY: error\nconfig:\n  unknown_keys: $POLICY\nmystery: 1\n"
    )
    with pytest.raises(ValueError, match="mystery"):
        cp.load_config(via_var, environ={})


def test_unknown_keys_policy_defaults_to_warn() -> None:
    assert cp.unknown_keys_policy({}) == "warn"
    assert cp.unknown_keys_policy({"config": {"unknown_keys": "ignore"}}) == "ignore"


def test_load_config_missing_file_raises_oserror(tmp_path) -> None:
    with pytest.raises(OSError):
        cp.load_config(str(tmp_path / "missing.yaml"), environ={})
