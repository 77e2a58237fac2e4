"""
soulbound.replay — One outstanding agreement per token.

The flag is per token id, not per digest: once any consent for a token
is consumed, every further consented transfer of that token is blocked,
whoever signs it, until the owner unequips and the flag is cleared.
"""

from __future__ import annotations

from soulbound.ledger.store import LedgerStore


class ReplayGuard:
    """Thin view over the ledger's ``used`` column."""

    def __init__(self, store: LedgerStore) -> None:
        self._store = store

    def is_used(self, token_id: int) -> bool:
        return self._store.get_used(token_id)

    def mark_used(self, token_id: int) -> None:
        self._store.set_used(token_id, True)

    def clear(self, token_id: int) -> None:
        self._store.set_used(token_id, False)
