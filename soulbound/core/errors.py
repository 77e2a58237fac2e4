"""
soulbound.core.errors — Failure taxonomy for the transfer engine.

Every error aborts the whole invocation: the engine runs all checks
before touching storage, so a raised ``SoulboundError`` guarantees no
owner, flag, balance, or event change.  ``code`` is stable and is what
the MCP layer reports back to clients.
"""

from __future__ import annotations

from typing import Optional


class SoulboundError(Exception):
    """Base class for all protocol-level rejections."""

    code = "soulbound_error"
    default_message = "soulbound operation rejected"

    def __init__(self, message: Optional[str] = None, *, token_id: Optional[int] = None):
        self.token_id = token_id
        super().__init__(message or self.default_message)

    def to_dict(self) -> dict:
        return {"code": self.code, "message": str(self), "token_id": self.token_id}


class Unauthorized(SoulboundError):
    """Unequip attempted by someone other than the current owner."""

    code = "unauthorized"
    default_message = "unequip: sender must be owner"


class NotMinted(SoulboundError):
    """Token id outside ``[0, next_token_id)``."""

    code = "not_minted"
    default_message = "token not minted"


class SelfTransfer(SoulboundError):
    """give/take where the counterpart is the caller."""

    code = "self_transfer"
    default_message = "cannot transfer to or from self"


class InvalidSignature(SoulboundError):
    """Counterpart signature does not verify over the consent digest."""

    code = "invalid_signature"
    default_message = "consent: invalid signature"


class AgreementAlreadyUsed(SoulboundError):
    """A consent for this token is already consumed and not yet released."""

    code = "agreement_already_used"
    default_message = "consent: agreement already used"


class AlreadyInitialized(SoulboundError):
    code = "already_initialized"
    default_message = "token already initialized"


__all__ = [
    "SoulboundError",
    "Unauthorized",
    "NotMinted",
    "SelfTransfer",
    "InvalidSignature",
    "AgreementAlreadyUsed",
    "AlreadyInitialized",
]
