"""Configuration parsing helpers for the domainhealth CLI.

Brief:
  Reads the YAML config, merges variables from config/env/CLI, validates the
  result against the JSON Schema and extracts per-check settings.

Inputs:
  - YAML config paths and parsed mappings

Outputs:
  - Normalized config dicts
"""

from __future__ import annotations

import os
import re
from typing import Any, Dict, List, Mapping, Optional

import yaml

from ..checks.base import HealthCheckType
from .config_schema import expand_variables, validate_config

_VAR_KEY = re.compile(r"[A-Z_][A-Z0-9_]*")


def _is_var_key(key: str) -> bool:
    """True when key is ALL_UPPERCASE and matches [A-Z_][A-Z0-9_]*."""

    return bool(key) and bool(_VAR_KEY.fullmatch(key))


def _parse_yaml_value(text: str) -> Any:
    """Parse a CLI/environment value as YAML, falling back to the raw text."""

    try:
        return yaml.safe_load(text)
    except yaml.YAMLError:
        return text


def parse_config_variables(
    cfg: Dict[str, Any],
    *,
    cli_vars: Optional[List[str]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> Dict[str, Any]:
    """Brief: Merge config/environment/CLI variables into cfg['vars'].

    Inputs:
      - cfg: Parsed YAML configuration mapping (mutated in-place).
      - cli_vars: Optional list of CLI `KEY=YAML` assignments.
      - environ: Optional environment mapping (defaults to os.environ).

    Outputs:
      - dict: The merged variables mapping stored back onto cfg['vars'].

    Precedence:
      - CLI (-v/--var) overrides environment overrides config-file variables.
        Environment entries only override names the config file declares.

    Example:
      >>> cfg = {'vars': {'TIMEOUT': 100}}
      >>> parse_config_variables(cfg, cli_vars=['TIMEOUT=300'], environ={})['TIMEOUT']
      300
    """

    base = cfg.get("vars", cfg.get("variables"))
    if base is None:
        merged: Dict[str, Any] = {}
    elif isinstance(base, dict):
        merged = dict(base)
    else:
        raise ValueError("config.vars must be a mapping when present")

    env = os.environ if environ is None else environ
    for k in list(merged.keys()):
        if isinstance(k, str) and k in env:
            merged[k] = _parse_yaml_value(str(env[k]))

    for assignment in cli_vars or []:
        if "=" not in assignment:
            raise ValueError(
                "Invalid -v/--var value (expected KEY=YAML), got: %r" % assignment
            )
        k, raw = assignment.split("=", 1)
        k = k.strip()
        if not _is_var_key(k):
            raise ValueError(
                "Invalid variable name %r (must be ALL_UPPERCASE and match [A-Z_][A-Z0-9_]*)"
                % k
            )
        merged[k] = _parse_yaml_value(raw)

    cfg.pop("variables", None)
    cfg["vars"] = merged
    return merged


def load_config(
    config_path: Optional[str] = None,
    *,
    cli_vars: Optional[List[str]] = None,
    environ: Optional[Mapping[str, str]] = None,
    unknown_keys: Optional[str] = None,
) -> Dict[str, Any]:
    """Brief: Read, variable-merge and schema-validate a YAML config file.

    Inputs:
      - config_path: Path to the YAML file; None gives an empty config (CLI
        variables are still validated).
      - cli_vars: Optional list of CLI `KEY=YAML` assignments.
      - environ: Optional environment mapping for tests.
      - unknown_keys: Policy for keys the schema does not describe ("ignore",
        "warn" or "error"). Overrides config.unknown_keys; warn when neither
        is set.

    Outputs:
      - dict: Validated configuration with `vars` expanded away.

    Raises:
      - ValueError: When the file is not a mapping, schema validation fails or
        variables are invalid. OSError when the file cannot be read.
    """

    cfg: Any = {}
    if config_path:
        with open(config_path, "r", encoding="utf-8") as f:
            cfg = yaml.safe_load(f) or {}
    if not isinstance(cfg, dict):
        raise ValueError("Configuration root must be a mapping")

    parse_config_variables(cfg, cli_vars=list(cli_vars or []), environ=environ)
    # Expanded here so config.unknown_keys may itself come from a variable.
    expand_variables(cfg)
    validate_config(
        cfg,
        config_path=config_path,
        unknown_keys=unknown_keys or unknown_keys_policy(cfg),
    )
    return cfg


def unknown_keys_policy(cfg: Mapping[str, Any]) -> str:
    """Return config.unknown_keys, or "warn" when unset."""

    section = cfg.get("config")
    if isinstance(section, Mapping) and section.get("unknown_keys"):
        return str(section["unknown_keys"])
    return "warn"


def check_configs(cfg: Mapping[str, Any]) -> Dict[str, Dict[str, Any]]:
    """Return the per-check sections present in cfg, keyed by check name."""

    out: Dict[str, Dict[str, Any]] = {}
    for check_type in HealthCheckType:
        section = cfg.get(check_type.value)
        if section is not None:
            out[check_type.value] = dict(section)
    return out


def selected_checks(cfg: Mapping[str, Any]) -> Optional[List[str]]:
    """Return the configured check list, or None for the defaults."""

    checks = cfg.get("checks")
    return list(checks) if checks else None
