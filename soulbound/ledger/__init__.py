"""soulbound.ledger — Durable storage for token state."""

from soulbound.ledger.store import LedgerStore

__all__ = ["LedgerStore"]
