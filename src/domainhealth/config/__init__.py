"""Configuration loading and validation."""

from .config_parser import check_configs, load_config, parse_config_variables, selected_checks
from .config_schema import expand_variables, validate_config

__all__ = [
    "check_configs",
    "load_config",
    "parse_config_variables",
    "selected_checks",
    "expand_variables",
    "validate_config",
]
