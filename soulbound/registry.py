"""
soulbound.registry — Token ownership and per-owner balances.

Every valid token id has exactly one owner value at any time; ids that
were never equipped read back as the null identity.  Balances move
with ownership, so ``balance_of(x)`` always equals the number of
tokens whose owner is ``x``.
"""

from __future__ import annotations

from typing import List

from soulbound.core.types import NULL_IDENTITY, Identity, is_null
from soulbound.ledger.store import LedgerStore


class OwnershipRegistry:
    def __init__(self, store: LedgerStore) -> None:
        self._store = store

    def owner_of(self, token_id: int) -> Identity:
        return self._store.get_owner(token_id)

    def balance_of(self, owner: Identity) -> int:
        return self._store.get_balance(owner)

    def tokens_of(self, owner: Identity) -> List[int]:
        return self._store.tokens_owned_by(owner)

    def assign(self, token_id: int, owner: Identity) -> Identity:
        """Set the owner of *token_id*, returning the previous owner."""
        previous = self._store.get_owner(token_id)
        if previous == owner:
            return previous
        if not is_null(previous):
            self._store.set_balance(previous, self._store.get_balance(previous) - 1)
        self._store.set_owner(token_id, owner)
        if not is_null(owner):
            self._store.set_balance(owner, self._store.get_balance(owner) + 1)
        return previous

    def reset(self, token_id: int) -> Identity:
        """Return *token_id* to the null identity."""
        return self.assign(token_id, NULL_IDENTITY)
