"""Tests for soulbound.core.logging."""

import io
import json
import logging
import sys

import pytest

from soulbound.core.logging import (
    StructuredFormatter,
    configure_logging,
    transfer_fields,
)
from soulbound.core.types import NULL_IDENTITY, TransferRecord


@pytest.fixture
def restore_logger():
    logger = logging.getLogger("soulbound")
    saved = (logger.handlers[:], logger.level, logger.propagate)
    yield logger
    logger.handlers[:], logger.level, logger.propagate = saved


def _record(**extra):
    record = logging.LogRecord(
        name="soulbound.events",
        level=logging.INFO,
        pathname=__file__,
        lineno=10,
        msg="transfer #%d",
        args=(1,),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestTransferFields:
    def test_hex_identities(self):
        rec = TransferRecord(b"\xaa" * 32, NULL_IDENTITY, 4, seq=7)
        assert transfer_fields(rec) == {
            "seq": 7,
            "token_id": 4,
            "sender": "aa" * 32,
            "recipient": "00" * 32,
        }


class TestStructuredFormatter:
    def test_basic_fields(self):
        entry = json.loads(StructuredFormatter().format(_record()))
        assert entry["level"] == "INFO"
        assert entry["logger"] == "soulbound.events"
        assert entry["msg"] == "transfer #1"
        assert entry["where"].endswith(":10")
        assert entry["ts"].endswith("Z")
        assert "transfer" not in entry

    def test_transfer_object(self):
        rec = TransferRecord(b"\xaa" * 32, b"\xbb" * 32, 3, seq=1)
        entry = json.loads(StructuredFormatter().format(_record(**transfer_fields(rec))))
        assert entry["transfer"] == {
            "seq": 1,
            "token_id": 3,
            "sender": "aa" * 32,
            "recipient": "bb" * 32,
        }

    def test_raw_bytes_rendered_as_hex(self):
        entry = json.loads(StructuredFormatter().format(_record(sender=b"\x01\x02")))
        assert entry["transfer"] == {"sender": "0102"}

    def test_exception(self):
        try:
            raise RuntimeError("boom")
        except RuntimeError:
            record = _record()
            record.exc_info = sys.exc_info()
        entry = json.loads(StructuredFormatter().format(record))
        assert "RuntimeError: boom" in entry["exception"]


class TestConfigureLogging:
    def test_structured(self, restore_logger):
        stream = io.StringIO()
        logger = configure_logging(structured=True, level="DEBUG", stream=stream)
        assert logger is restore_logger
        assert logger.level == logging.DEBUG
        assert logger.propagate is False

        logging.getLogger("soulbound.token").debug("hello %s", "world")
        entry = json.loads(stream.getvalue().strip())
        assert entry["msg"] == "hello world"
        assert entry["logger"] == "soulbound.token"

    def test_plain_only_sets_level(self, restore_logger):
        before = restore_logger.handlers[:]
        configure_logging(structured=False, level="warning")
        assert restore_logger.level == logging.WARNING
        assert restore_logger.handlers == before
