"""
Soulbound -- consent-gated ownership transfer for soulbound tokens.

    from soulbound import SoulboundSystem, CallContext, Participant

    alice, bob = Participant.generate(), Participant.generate()
    with SoulboundSystem(data_dir="./data") as sb:
        sb.ensure_initialized()
        (token_id,) = sb.allocate(1)
        sig = bob.consent(active=alice.identity, token_id=token_id)
        sb.token.give(CallContext(alice.identity), bob.identity, token_id, sig)
"""

from soulbound.core.config import Config
from soulbound.core.context import CallContext
from soulbound.core.errors import (
    AgreementAlreadyUsed,
    AlreadyInitialized,
    InvalidSignature,
    NotMinted,
    SelfTransfer,
    SoulboundError,
    Unauthorized,
)
from soulbound.core.types import NULL_IDENTITY, TokenInfo, TransferRecord
from soulbound.keys import KeyStore, Participant
from soulbound.system import SoulboundSystem
from soulbound.token import SoulboundToken

__version__ = "0.1.0"

__all__ = [
    "SoulboundSystem",
    "SoulboundToken",
    "Config",
    "CallContext",
    "Participant",
    "KeyStore",
    "NULL_IDENTITY",
    "TokenInfo",
    "TransferRecord",
    "SoulboundError",
    "Unauthorized",
    "NotMinted",
    "SelfTransfer",
    "InvalidSignature",
    "AgreementAlreadyUsed",
    "AlreadyInitialized",
]
