"""
Brief: Tests for domainhealth.logging_config.init_logging and formatters.

Inputs:
  - None

Outputs:
  - None
"""

import logging

import pytest

from domainhealth.logging_config import BracketLevelFormatter, init_logging


@pytest.fixture(autouse=True)
def restore_root_logger():
    """
    Brief: Put the root logger's handlers and level back after each test.

    Inputs:
      - None

    Outputs:
      - None
    """
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    for h in list(root.handlers):
        if h not in handlers:
            h.close()
        root.removeHandler(h)
    for h in handlers:
        root.addHandler(h)
    root.setLevel(level)
    logging.captureWarnings(False)
    for name in ("urllib3", "filelock", "tldextract"):
        logging.getLogger(name).setLevel(logging.NOTSET)


def test_init_logging_adds_stderr_handler():
    """
    Brief: init_logging configures root logger with stderr handler by default.

    Inputs:
      - cfg: minimal dict with level

    Outputs:
      - None: Asserts StreamHandler present and level applied
    """
    init_logging({"level": "debug"})
    root = logging.getLogger()
    assert root.level == logging.DEBUG
    assert [type(h) for h in root.handlers] == [logging.StreamHandler]
    assert isinstance(root.handlers[0].formatter, BracketLevelFormatter)


def test_init_logging_defaults_and_unknown_level():
    """
    Brief: None config and unknown levels fall back to warn.

    Inputs:
      - None

    Outputs:
      - None
    """
    init_logging(None)
    assert logging.getLogger().level == logging.WARNING
    init_logging({"level": "chatty"})
    assert logging.getLogger().level == logging.WARNING


def test_init_logging_file_handler_writes(tmp_path):
    """
    Brief: init_logging creates file handler and writes formatted entries.

    Inputs:
      - cfg: file path and level

    Outputs:
      - None: Asserts file created and contains message
    """
    log_path = tmp_path / "logs" / "domainhealth.log"
    init_logging({"level": "info", "stderr": False, "file": str(log_path)})
    root = logging.getLogger()
    assert [type(h) for h in root.handlers] == [logging.FileHandler]

    logging.getLogger("domainhealth.test").info("file message")
    for h in root.handlers:
        h.flush()
    text = log_path.read_text(encoding="utf-8")
    assert "[info] domainhealth.test: file message" in text


def test_init_logging_is_idempotent():
    """
    Brief: Repeated init does not stack handlers.

    Inputs:
      - None

    Outputs:
      - None
    """
    init_logging({"level": "warn"})
    init_logging({"level": "warn"})
    assert len(logging.getLogger().handlers) == 1


@pytest.mark.parametrize(
    "level,tag",
    [
        (logging.DEBUG, "[debug]"),
        (logging.INFO, "[info]"),
        (logging.WARNING, "[warn]"),
        (logging.ERROR, "[error]"),
        (logging.CRITICAL, "[crit]"),
        (25, "[lvl25]"),
    ],
)
def test_bracket_level_formatter_tags(level, tag):
    """
    Brief: BracketLevelFormatter adds lowercase bracketed tags and UTC time.

    Inputs:
      - level: logging level
      - tag: expected tag

    Outputs:
      - None
    """
    fmt = BracketLevelFormatter("%(asctime)s %(level_tag)s %(message)s")
    record = logging.LogRecord("n", level, __file__, 1, "msg", None, None)
    record.created = 0
    assert fmt.format(record) == f"1970-01-01T00:00:00Z {tag} msg"


def test_init_logging_quiets_library_loggers_unless_debug():
    """
    Brief: HTTP and suffix-list library loggers stay at warn below debug.

    Inputs:
      - None

    Outputs:
      - None
    """
    init_logging({"level": "info"})
    assert logging.getLogger("urllib3").level == logging.WARNING
    assert logging.getLogger("tldextract").level == logging.WARNING

    init_logging({"level": "debug"})
    assert logging.getLogger("urllib3").level == logging.NOTSET
    assert logging.getLogger("filelock").level == logging.NOTSET
