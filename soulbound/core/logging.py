"""
soulbound.core.logging — JSON log lines for the ledger.

``configure_logging(structured=True)`` switches every ``soulbound.*``
logger to one JSON object per line.  Lines that describe a transfer
carry its fields under ``"transfer"`` (built by ``transfer_fields``),
so the transfer history can be rebuilt from the log stream alone::

    {"ts": "...Z", "level": "INFO", "logger": "soulbound.events",
     "msg": "transfer #3 token=0 ...", "where": "events:emit:41",
     "transfer": {"seq": 3, "token_id": 0, "sender": "...", "recipient": "..."}}
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import IO, Any, Dict, Optional

from soulbound.core.types import TransferRecord, identity_hex

#: Record attributes copied into the ``"transfer"`` object.
TRANSFER_FIELDS = ("seq", "token_id", "sender", "recipient")


def transfer_fields(record: TransferRecord) -> Dict[str, Any]:
    """``extra=`` payload for a log call describing *record*."""
    return {
        "seq": record.seq,
        "token_id": record.token_id,
        "sender": identity_hex(record.sender),
        "recipient": identity_hex(record.recipient),
    }


def _json_default(value: Any) -> Any:
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).hex()
    return str(value)


class StructuredFormatter(logging.Formatter):
    """One JSON object per log record, timestamps in UTC."""

    def format(self, record: logging.LogRecord) -> str:
        created = datetime.fromtimestamp(record.created, tz=timezone.utc)
        entry: Dict[str, Any] = {
            "ts": created.isoformat(timespec="milliseconds").replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
            "where": f"{record.module}:{record.funcName}:{record.lineno}",
        }

        transfer = {
            name: getattr(record, name)
            for name in TRANSFER_FIELDS
            if hasattr(record, name)
        }
        if transfer:
            entry["transfer"] = transfer

        if record.exc_info and record.exc_info[1] is not None:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=_json_default)


def configure_logging(
    structured: bool = False,
    level: str = "INFO",
    logger_name: str = "soulbound",
    stream: Optional[IO[str]] = None,
) -> logging.Logger:
    """Set the level of the ``soulbound`` logger tree and, when
    *structured*, route it through a single JSON handler on *stream*
    (stderr by default) instead of the application's handlers.
    """
    logger = logging.getLogger(logger_name)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    if structured:
        handler = logging.StreamHandler(stream)
        handler.setFormatter(StructuredFormatter())
        logger.handlers = [handler]
        logger.propagate = False

    return logger
