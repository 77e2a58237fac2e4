"""
soulbound.token — The soulbound token engine.

Entry points (all take an explicit ``CallContext``):

    give(ctx, to, token_id, signature)      recipient consented to receive
    take(ctx, origin, token_id, signature)  origin consented to relinquish
    unequip(ctx, token_id)                  owner releases the token

Per-token state machine::

    Unissued (id >= next_token_id)
        -> Unequipped {owner = null, used = False}
        -> Equipped   {owner = X,    used = True}   via give / take
        -> Unequipped                               via unequip by X

Every entry point runs all of its checks before the first write, then
applies owner, flag, balance and event changes inside one ledger
batch.  A rejection therefore leaves no trace at all.

``take`` has two modes (``Config.take_mode``):

    "consume"  Marks the consent used and leaves ownership untouched.
               The token ends up flagged but unowned, so nobody can
               unequip it.
    "equip"    Also assigns the token to the caller, mirroring ``give``.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from soulbound.consent import ConsentProtocol
from soulbound.core.config import TAKE_MODES
from soulbound.core.context import CallContext
from soulbound.core.errors import (
    AlreadyInitialized,
    NotMinted,
    SelfTransfer,
    Unauthorized,
)
from soulbound.core.types import (
    Identity,
    IdentityLike,
    TokenInfo,
    TransferRecord,
    identity_hex,
    parse_identity,
    parse_signature,
)
from soulbound.crypto import CryptoProvider, KeccakEd25519
from soulbound.events import EventSink, LedgerEventSink
from soulbound.ledger.store import LedgerStore
from soulbound.registry import OwnershipRegistry
from soulbound.replay import ReplayGuard

log = logging.getLogger(__name__)


class SoulboundToken:
    """Consent-gated ownership engine over a ``LedgerStore``.

    Parameters
    ----------
    store:
        Ledger holding metadata, owners, flags, balances and transfers.
    crypto:
        Hash / signature collaborator (default ``KeccakEd25519``).
    events:
        Sink for transfer records (default: the ledger's transfer log).
    take_mode:
        ``"consume"`` or ``"equip"``; see the module docstring.
    """

    def __init__(
        self,
        store: LedgerStore,
        crypto: Optional[CryptoProvider] = None,
        events: Optional[EventSink] = None,
        take_mode: str = "consume",
    ) -> None:
        if take_mode not in TAKE_MODES:
            raise ValueError(
                f"Unknown take_mode {take_mode!r}; expected one of {sorted(TAKE_MODES)}"
            )
        self.store = store
        self.crypto = crypto or KeccakEd25519()
        self.events = events or LedgerEventSink(store)
        self.take_mode = take_mode

        self.replay = ReplayGuard(store)
        self.registry = OwnershipRegistry(store)
        self.consent = ConsentProtocol(self.crypto, self.replay)

    # ------------------------------------------------------------------
    # Setup
    # ------------------------------------------------------------------

    def init(self, name: str, symbol: str) -> None:
        """One-time setup of the token's name and symbol."""
        if self.store.is_initialized():
            raise AlreadyInitialized()
        with self.store.batch():
            self.store.set_token_name(name)
            self.store.set_token_symbol(symbol)
            self.store.set_initialized()
        log.info("Initialized token %s (%s)", name, symbol)

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def give(
        self,
        ctx: CallContext,
        to: IdentityLike,
        token_id: int,
        signature: bytes | str,
    ) -> int:
        """Hand *token_id* to *to*, who must have signed
        ``digest(active=caller, passive=to, token_id)``.

        Returns the token id.
        """
        sender = ctx.caller
        recipient = parse_identity(to)
        signature = parse_signature(signature)

        if sender == recipient:
            raise SelfTransfer("give: cannot give from self", token_id=token_id)
        self._require_minted(token_id)

        self.consent.verify(sender, recipient, token_id, signature)

        with self.store.batch():
            self.replay.mark_used(token_id)
            self._equip(sender, recipient, token_id)
        return token_id

    def take(
        self,
        ctx: CallContext,
        origin: IdentityLike,
        token_id: int,
        signature: bytes | str,
    ) -> int:
        """Claim *token_id* from *origin*, who must have signed
        ``digest(active=caller, passive=origin, token_id)``.

        Returns the token id.  Whether ownership moves depends on
        ``take_mode``.
        """
        taker = ctx.caller
        origin = parse_identity(origin)
        signature = parse_signature(signature)

        if taker == origin:
            raise SelfTransfer("take: cannot take from self", token_id=token_id)
        self._require_minted(token_id)

        self.consent.verify(taker, origin, token_id, signature)

        with self.store.batch():
            self.replay.mark_used(token_id)
            if self.take_mode == "equip":
                self._equip(origin, taker, token_id)

        if self.take_mode == "consume":
            log.warning(
                "take consumed the agreement for token %d without changing its "
                "owner (take_mode=consume)",
                token_id,
            )
        return token_id

    def unequip(self, ctx: CallContext, token_id: int) -> None:
        """Release *token_id*; only its current owner may do this.

        Afterwards the token is unowned and its consent flag is clear,
        so a fresh ``give``/``take`` can equip it again.
        """
        owner = self.registry.owner_of(token_id)
        if ctx.caller != owner:
            raise Unauthorized(token_id=token_id)
        self._require_minted(token_id)

        with self.store.batch():
            self.replay.clear(token_id)
            self._release(token_id, ctx)

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    def get_token_name(self) -> str:
        return self.store.get_token_name()

    def get_token_symbol(self) -> str:
        return self.store.get_token_symbol()

    def get_next_token_id(self) -> int:
        return self.store.get_next_token_id()

    def get_token_owner(self, token_id: int) -> Identity:
        return self.registry.owner_of(token_id)

    def get_user_balance(self, owner: IdentityLike) -> int:
        return self.registry.balance_of(parse_identity(owner))

    def get_used_hash(self, token_id: int) -> bool:
        return self.replay.is_used(token_id)

    def get_transfers(
        self, token_id: Optional[int] = None, limit: int = 50
    ) -> List[TransferRecord]:
        return self.store.list_transfers(token_id=token_id, limit=limit)

    def info(self) -> TokenInfo:
        return TokenInfo(
            name=self.get_token_name(),
            symbol=self.get_token_symbol(),
            next_token_id=self.get_next_token_id(),
            initialized=self.store.is_initialized(),
            take_mode=self.take_mode,
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _require_minted(self, token_id: int) -> None:
        if token_id < 0 or token_id >= self.store.get_next_token_id():
            raise NotMinted(token_id=token_id)

    def _equip(self, sender: Identity, recipient: Identity, token_id: int) -> None:
        self.registry.assign(token_id, recipient)
        self.events.emit(TransferRecord(sender, recipient, token_id))

    def _release(self, token_id: int, ctx: CallContext) -> None:
        owner = self.registry.owner_of(token_id)
        self.registry.assign(token_id, ctx.null_identity)
        self.events.emit(TransferRecord(owner, ctx.null_identity, token_id))
        log.debug("Token %d released by %s", token_id, identity_hex(owner)[:16])
