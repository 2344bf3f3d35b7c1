"""
Unit tests for JSON structured logging
"""

import json
import logging
import sys

from streakmint.core.structured_logger import (
    RewardJsonFormatter,
    configure_logging,
    truncate_address,
)


def _record(**extra):
    record = logging.LogRecord(
        name="streakmint.test",
        level=logging.INFO,
        pathname=__file__,
        lineno=10,
        msg="Reward %s",
        args=("claimed",),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_formatter_includes_extra_fields():
    entry = json.loads(RewardJsonFormatter().format(_record(event="rewards.claimed", token_id=3)))

    assert entry["message"] == "Reward claimed"
    assert entry["level"] == "info"
    assert entry["name"] == "streakmint.test"
    assert entry["service"] == "streakmint"
    assert entry["timestamp"]
    assert entry["source"]["line"] == 10
    assert entry["event"] == "rewards.claimed"
    assert entry["token_id"] == 3


def test_json_formatter_exception():
    try:
        raise ValueError("boom")
    except ValueError:
        record = _record()
        record.exc_info = sys.exc_info()

    entry = json.loads(RewardJsonFormatter().format(record))

    assert "ValueError: boom" in entry["exc_info"]


def test_truncate_address():
    assert truncate_address("0x" + "ab" * 20) == "0xabab...abab"
    assert truncate_address("short") == "UNKNOWN"


def test_configure_logging_writes_file(tmp_path):
    logger = configure_logging("DEBUG", str(tmp_path))
    logging.getLogger("streakmint.test").info("hello", extra={"event": "test.event"})
    for handler in logger.handlers:
        handler.flush()

    lines = (tmp_path / "streakmint.json.log").read_text(encoding="utf-8").splitlines()
    assert json.loads(lines[-1])["event"] == "test.event"

    # Reconfiguring replaces handlers instead of stacking them
    logger = configure_logging("INFO")
    assert len(logger.handlers) == 1

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
