"""
soulbound.events — Transfer event sinks.

The engine calls ``emit`` from inside the ledger transaction of the
operation that caused the change, so a record is only ever persisted
together with the state change it describes.
"""

from __future__ import annotations

import logging
from typing import List

from soulbound.core.logging import transfer_fields
from soulbound.core.types import TransferRecord, identity_hex
from soulbound.ledger.store import LedgerStore

log = logging.getLogger(__name__)


class EventSink:
    """Receives one ``TransferRecord`` per ownership change."""

    def emit(self, record: TransferRecord) -> None:
        raise NotImplementedError


class LedgerEventSink(EventSink):
    """Appends transfers to the ledger's ``transfers`` table and logs them."""

    def __init__(self, store: LedgerStore) -> None:
        self._store = store

    def emit(self, record: TransferRecord) -> None:
        seq = self._store.append_transfer(record)
        log.info(
            "transfer #%d token=%d %s -> %s",
            seq,
            record.token_id,
            identity_hex(record.sender)[:16],
            identity_hex(record.recipient)[:16],
            extra=transfer_fields(record),
        )


class MemoryEventSink(EventSink):
    """Keeps records in a list.  Handy for embedding and tests."""

    def __init__(self) -> None:
        self.records: List[TransferRecord] = []

    def emit(self, record: TransferRecord) -> None:
        record.seq = len(self.records) + 1
        self.records.append(record)

    def as_tuples(self) -> list:
        return [(r.sender, r.recipient, r.token_id) for r in self.records]
