from __future__ import annotations

import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "crit": logging.CRITICAL,
    "critical": logging.CRITICAL,
}

# Chatty dependencies: connection pool chatter from requests, lock files from
# tldextract's suffix list cache.
_LIBRARY_LOGGERS = ("urllib3", "filelock", "tldextract")


class BracketLevelFormatter(logging.Formatter):
    """Formatter with bracketed lowercase level tags and UTC record timestamps."""

    _TAGS = {
        logging.DEBUG: "[debug]",
        logging.INFO: "[info]",
        logging.WARNING: "[warn]",
        logging.ERROR: "[error]",
        logging.CRITICAL: "[crit]",
    }

    def formatTime(self, record, datefmt=None):
        return datetime.fromtimestamp(record.created, timezone.utc).strftime(
            "%Y-%m-%dT%H:%M:%SZ"
        )

    def format(self, record):
        record.level_tag = self._TAGS.get(record.levelno, f"[lvl{record.levelno}]")
        return super().format(record)


def _build_handlers(cfg: Dict[str, Any], formatter: logging.Formatter) -> List[logging.Handler]:
    """Brief: Create the stderr and file handlers requested by cfg.

    Inputs:
      - cfg: Logging config mapping (stderr, file).
      - formatter: Formatter applied to every handler.

    Outputs:
      - List of handlers; stdout is never used since it carries the JSON report.
    """

    handlers: List[logging.Handler] = []
    if cfg.get("stderr", True):
        handlers.append(logging.StreamHandler(sys.stderr))

    file_path = cfg.get("file")
    if isinstance(file_path, str) and file_path.strip():
        path = os.path.abspath(os.path.expanduser(file_path.strip()))
        os.makedirs(os.path.dirname(path), exist_ok=True)
        handlers.append(logging.FileHandler(path, mode="a", encoding="utf-8"))

    for h in handlers:
        h.setFormatter(formatter)
    return handlers


def init_logging(cfg: Optional[Dict[str, Any]]) -> None:
    """
    Brief: Configure the root logger for a domainhealth run.

    Inputs:
      - cfg: Mapping with optional keys:
          - level: debug, info, warn, error, crit (default: warn)
          - stderr: log to stderr (default: True)
          - file: append to this log file, creating parent directories

    Outputs:
      - None. Previous root handlers are replaced, so repeated calls do not
        stack output. Below debug level, urllib3/filelock/tldextract are held
        at warn.

    Example:
        >>> init_logging({"level": "info", "file": "./domainhealth.log"})  # doctest: +SKIP
    """
    cfg = cfg or {}

    level_str = str(cfg.get("level", "warn")).lower()
    level = _LEVELS.get(level_str, logging.WARNING)

    formatter = BracketLevelFormatter(fmt="%(asctime)s %(level_tag)s %(name)s: %(message)s")

    root = logging.getLogger()
    root.setLevel(level)
    for h in list(root.handlers):
        root.removeHandler(h)
    for h in _build_handlers(cfg, formatter):
        root.addHandler(h)

    library_level = logging.NOTSET if level <= logging.DEBUG else logging.WARNING
    for name in _LIBRARY_LOGGERS:
        logging.getLogger(name).setLevel(library_level)

    logging.captureWarnings(True)
