"""
soulbound.core.types — Data types for the soulbound token engine.

Identities are raw 32-byte values (Ed25519 public keys); the all-zero
value is the reserved null identity meaning "no owner".  Everything
else here is a plain dataclass, serialisable to dict/JSON in one call.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Union

# ---------------------------------------------------------------------------
# Identity
# ---------------------------------------------------------------------------

#: Byte length of every participant identity.
IDENTITY_LENGTH = 32

#: Byte length of a consent signature.
SIGNATURE_LENGTH = 64

#: Byte length of a consent digest (keccak-256).
DIGEST_LENGTH = 32

#: Reserved "no owner" / burn identity.
NULL_IDENTITY = bytes(IDENTITY_LENGTH)

Identity = bytes

IdentityLike = Union[bytes, bytearray, str]


def now_iso() -> str:
    """Current UTC timestamp in ISO-8601 with Z suffix."""
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def _from_hex(value: str, what: str) -> bytes:
    text = value.strip()
    if text[:2].lower() == "0x":
        text = text[2:]
    try:
        return bytes.fromhex(text)
    except ValueError:
        raise ValueError(f"{what} is not valid hex: {value!r}") from None


def parse_identity(value: IdentityLike) -> Identity:
    """Coerce hex text or raw bytes into a 32-byte identity.

    Hex may carry an optional ``0x`` prefix.  Raises ``ValueError`` on
    bad hex or the wrong length.
    """
    raw = _from_hex(value, "identity") if isinstance(value, str) else bytes(value)
    if len(raw) != IDENTITY_LENGTH:
        raise ValueError(
            f"identity must be {IDENTITY_LENGTH} bytes, got {len(raw)}"
        )
    return raw


def parse_signature(value: Union[bytes, bytearray, str]) -> bytes:
    """Coerce hex text or raw bytes into signature bytes.

    Length is *not* enforced here: a wrong-sized signature is a
    verification failure, not a malformed request.
    """
    if isinstance(value, str):
        return _from_hex(value, "signature")
    return bytes(value)


def parse_token_id(value: Union[int, str]) -> int:
    """Accept an int or decimal string; token ids are never negative."""
    token_id = int(value)
    if token_id < 0:
        raise ValueError(f"token id must be non-negative, got {token_id}")
    return token_id


def identity_hex(identity: Identity) -> str:
    return bytes(identity).hex()


def is_null(identity: Identity) -> bool:
    return identity == NULL_IDENTITY


def token_id_bytes(token_id: int) -> bytes:
    """Minimal big-endian unsigned encoding; zero encodes to ``b""``."""
    return token_id.to_bytes((token_id.bit_length() + 7) // 8, "big")


# ---------------------------------------------------------------------------
# TransferRecord — one ownership change
# ---------------------------------------------------------------------------


@dataclass
class TransferRecord:
    """
    Emitted for every ownership change.

    ``recipient`` is the null identity when a token is unequipped.
    ``seq`` is assigned by the ledger when the record is persisted.
    """

    sender: Identity
    recipient: Identity
    token_id: int
    timestamp: str = field(default_factory=now_iso)
    seq: int = 0

    @property
    def is_burn(self) -> bool:
        return is_null(self.recipient)

    def to_dict(self) -> Dict:
        return {
            "seq": self.seq,
            "from": identity_hex(self.sender),
            "to": identity_hex(self.recipient),
            "token_id": self.token_id,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, d: Dict) -> "TransferRecord":
        return cls(
            sender=parse_identity(d["from"]),
            recipient=parse_identity(d["to"]),
            token_id=int(d["token_id"]),
            timestamp=d.get("timestamp", now_iso()),
            seq=d.get("seq", 0),
        )


# ---------------------------------------------------------------------------
# TokenInfo — read-only summary of a deployed token
# ---------------------------------------------------------------------------


@dataclass
class TokenInfo:
    """Name, symbol and allocation counter of a token ledger."""

    name: str = ""
    symbol: str = ""
    next_token_id: int = 0
    initialized: bool = False
    take_mode: str = "consume"

    def to_dict(self) -> Dict:
        return {
            "name": self.name,
            "symbol": self.symbol,
            "next_token_id": self.next_token_id,
            "initialized": self.initialized,
            "take_mode": self.take_mode,
        }
