"""soulbound.core — Configuration, type definitions, errors, and call context."""

from soulbound.core.config import Config, TAKE_MODES
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
from soulbound.core.types import (
    DIGEST_LENGTH,
    IDENTITY_LENGTH,
    NULL_IDENTITY,
    SIGNATURE_LENGTH,
    Identity,
    TokenInfo,
    TransferRecord,
    identity_hex,
    parse_identity,
    parse_signature,
    parse_token_id,
    token_id_bytes,
)

__all__ = [
    "Config",
    "TAKE_MODES",
    "CallContext",
    "SoulboundError",
    "Unauthorized",
    "NotMinted",
    "SelfTransfer",
    "InvalidSignature",
    "AgreementAlreadyUsed",
    "AlreadyInitialized",
    "DIGEST_LENGTH",
    "IDENTITY_LENGTH",
    "NULL_IDENTITY",
    "SIGNATURE_LENGTH",
    "Identity",
    "TokenInfo",
    "TransferRecord",
    "identity_hex",
    "parse_identity",
    "parse_signature",
    "parse_token_id",
    "token_id_bytes",
]
