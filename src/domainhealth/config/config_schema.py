"""JSON Schema-based validation for domainhealth YAML configuration.

The schema ships next to this module as ``config-schema.json``.
"""

from __future__ import annotations

import copy
import json
import logging
import re
from pathlib import Path
from typing import Any, Dict, List, Optional

from jsonschema import Draft202012Validator, ValidationError
from jsonschema.exceptions import SchemaError

logger = logging.getLogger(__name__)

_VAR_PATTERN = re.compile(r"\$\{([A-Z_][A-Z0-9_]*)\}")
_VAR_NAME = re.compile(r"[A-Z_][A-Z0-9_]*")


class _VariableResolver:
    """Resolves `$NAME` / `${NAME}` references against a vars mapping."""

    def __init__(self, variables: Dict[str, Any]) -> None:
        self.variables = variables
        self.resolved: Dict[str, Any] = {}
        self._active: List[str] = []

    def whole_reference(self, text: str) -> Optional[str]:
        """Return the variable name when text is nothing but one reference."""

        if text.startswith("${") and text.endswith("}"):
            name = text[2:-1]
        elif text.startswith("$"):
            name = text[1:]
        else:
            return None
        return name if name in self.variables else None

    def lookup(self, name: str) -> Any:
        if name in self.resolved:
            return self.resolved[name]
        if name in self._active:
            chain = " -> ".join(self._active + [name])
            raise ValueError(f"config.vars contains a cycle: {chain}")
        self._active.append(name)
        try:
            value = self.expand(self.variables[name])
        finally:
            self._active.pop()
        self.resolved[name] = value
        return value

    def _render(self, match: re.Match) -> str:
        name = match.group(1)
        if name not in self.variables:
            return match.group(0)
        value = self.lookup(name)
        if value is None:
            return "null"
        if isinstance(value, bool):
            return str(value).lower()
        if isinstance(value, (int, float, str)):
            return str(value)
        return json.dumps(value)

    def expand(self, node: Any) -> Any:
        if isinstance(node, dict):
            return {k: self.expand(v) for k, v in node.items()}
        if isinstance(node, list):
            items: List[Any] = []
            for item in node:
                value = self.expand(item)
                spliced = isinstance(item, str) and self.whole_reference(item)
                if spliced and isinstance(value, list):
                    items.extend(value)
                else:
                    items.append(value)
            return items
        if isinstance(node, str):
            name = self.whole_reference(node)
            if name is not None:
                return copy.deepcopy(self.lookup(name))
            return _VAR_PATTERN.sub(self._render, node)
        return node


def expand_variables(cfg: Dict[str, Any]) -> None:
    """Brief: Substitute top-level `vars` throughout cfg, then drop the group.

    Inputs:
      - cfg: Parsed YAML configuration mapping (mutated in-place).

    Outputs:
      - None.

    Behavior:
      - `${KEY}` inside a longer string is replaced by the value's text form
        (true/false/null for YAML scalars, JSON for lists and mappings).
      - A string that is exactly `$KEY` or `${KEY}` takes the value itself;
        list values referenced from a list are spliced in.
      - Unknown references stay as written; cycles raise ValueError.
    """

    if "vars" not in cfg and "variables" in cfg:
        cfg["vars"] = cfg.pop("variables")
    variables = cfg.get("vars")
    if variables is None:
        cfg.pop("vars", None)
        return
    if not isinstance(variables, dict):
        raise ValueError("config.vars must be a mapping when present")

    bad = [k for k in variables if not isinstance(k, str) or not _VAR_NAME.fullmatch(k)]
    if bad:
        raise ValueError(
            f"config.vars key {bad[0]!r} must be ALL_UPPERCASE and match [A-Z_][A-Z0-9_]*"
        )

    resolver = _VariableResolver(variables)
    for name in variables:
        resolver.lookup(name)

    del cfg["vars"]
    for key in list(cfg):
        cfg[key] = resolver.expand(cfg[key])


def get_default_schema_path() -> Path:
    return Path(__file__).resolve().with_name("config-schema.json")


def _load_schema(schema_path: Optional[Path] = None) -> Dict[str, Any]:
    path = schema_path or get_default_schema_path()
    with path.open("r", encoding="utf-8") as f:
        return json.load(f)


def _format_errors(errors: List[ValidationError], *, config_path: Optional[str]) -> str:
    """Brief: Format jsonschema validation errors into a human-readable string.

    Inputs:
      - errors: List of jsonschema.ValidationError instances.
      - config_path: Optional path to the YAML config being validated.

    Outputs:
      - String suitable for display in logs or CLI output.
    """

    lines: List[str] = [f"Invalid configuration in {config_path or '<config dict>'}:"]
    for err in errors:
        instance_path = "/".join(str(p) for p in err.path) or "<root>"
        schema_path = "/".join(str(p) for p in err.schema_path)
        lines.append(f"- {instance_path}: {err.message} (schema: {schema_path})")
    return "\n".join(lines)


def _is_extra_property_error(err: ValidationError) -> bool:
    return getattr(err, "validator", None) in {
        "additionalProperties",
        "unevaluatedProperties",
    }


def validate_config(
    cfg: Dict[str, Any],
    *,
    schema_path: Optional[Path] = None,
    config_path: Optional[str] = None,
    unknown_keys: str = "warn",
) -> None:
    """Brief: Expand variables in and validate a parsed configuration mapping.

    Inputs:
      - cfg: Dict loaded from YAML (mutated: `vars` is expanded and removed).
      - schema_path: Optional explicit JSON Schema file.
      - config_path: Optional YAML path, used only in error messages.
      - unknown_keys: "ignore", "warn" (default) or "error" for keys the
        schema does not describe.

    Outputs:
      - None on success.

    Raises:
      - ValueError: for schema violations (all messages joined), for unknown
        keys under unknown_keys="error", and for an unreadable schema.

    Example:
      >>> import yaml
      >>> validate_config(yaml.safe_load("checks: [dnssec]\\noutput: {unicode: true}"))
    """

    if unknown_keys not in {"ignore", "warn", "error"}:
        raise ValueError(
            f"unknown_keys policy must be 'ignore', 'warn', or 'error', got {unknown_keys!r}"
        )

    expand_variables(cfg)

    effective_schema_path = schema_path or get_default_schema_path()
    try:
        schema = _load_schema(effective_schema_path)
        validator = Draft202012Validator(schema)
    except (OSError, json.JSONDecodeError, SchemaError) as exc:
        raise ValueError(
            f"Failed to load configuration schema {effective_schema_path}: {exc}"
        ) from exc

    errors = sorted(validator.iter_errors(cfg), key=lambda e: list(e.path))
    if not errors:
        return None

    extra = [e for e in errors if _is_extra_property_error(e)]
    other = [e for e in errors if not _is_extra_property_error(e)]

    if other:
        raise ValueError(_format_errors(other + extra, config_path=config_path))

    message = _format_errors(extra, config_path=config_path)
    if unknown_keys == "error":
        raise ValueError(message)
    if unknown_keys == "warn":
        logger.warning(message)
    return None
