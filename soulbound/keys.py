"""
soulbound.keys — Local participant keys.

A participant's identity *is* its Ed25519 verify key, so signing a
consent needs nothing but the private seed.  ``KeyStore`` keeps one
seed per name under ``<data_dir>/keys/<name>.key`` (hex, mode 0600).

Usage::

    bob = Participant.generate()
    sig = bob.consent(active=alice.identity, token_id=0)
    token.give(CallContext(alice.identity), bob.identity, 0, sig)
"""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path
from typing import List, Optional

from nacl.signing import SigningKey

from soulbound.core.types import (
    Identity,
    IdentityLike,
    identity_hex,
    parse_identity,
    token_id_bytes,
)
from soulbound.crypto import CryptoProvider, KeccakEd25519

log = logging.getLogger(__name__)

_SAFE_NAME = re.compile(r"^[A-Za-z0-9_.-]+$")


class Participant:
    """An identity together with the key that can sign for it."""

    def __init__(
        self,
        signing_key: SigningKey,
        crypto: Optional[CryptoProvider] = None,
    ) -> None:
        self._signing_key = signing_key
        self._crypto = crypto or KeccakEd25519()

    @classmethod
    def generate(cls) -> "Participant":
        return cls(SigningKey.generate())

    @classmethod
    def from_seed(cls, seed: bytes) -> "Participant":
        return cls(SigningKey(bytes(seed)))

    @property
    def identity(self) -> Identity:
        return bytes(self._signing_key.verify_key)

    @property
    def seed(self) -> bytes:
        return bytes(self._signing_key)

    def sign(self, message: bytes) -> bytes:
        """Detached 64-byte signature over *message*."""
        return self._signing_key.sign(bytes(message)).signature

    def consent(self, active: IdentityLike, token_id: int) -> bytes:
        """Sign the consent for *active* to transfer *token_id* with us.

        We are the passive side: for ``give`` the recipient signs, for
        ``take`` the origin holder signs.
        """
        active = parse_identity(active)
        payload = active + self.identity + token_id_bytes(token_id)
        return self.sign(self._crypto.hash(payload))

    def __repr__(self) -> str:
        return f"Participant({identity_hex(self.identity)[:16]}...)"


class KeyStore:
    """Directory of named participant seeds."""

    def __init__(self, keys_dir: Path) -> None:
        self.keys_dir = Path(keys_dir)

    def _path(self, name: str) -> Path:
        if not _SAFE_NAME.match(name):
            raise ValueError(f"Key name {name!r} must match {_SAFE_NAME.pattern}")
        return self.keys_dir / f"{name}.key"

    def create(self, name: str, *, overwrite: bool = False) -> Participant:
        path = self._path(name)
        if path.exists() and not overwrite:
            raise FileExistsError(f"Key {name!r} already exists at {path}")
        participant = Participant.generate()
        self.keys_dir.mkdir(parents=True, exist_ok=True)
        path.write_text(participant.seed.hex() + "\n", encoding="utf-8")
        os.chmod(path, 0o600)
        log.info("Created key %s (%s)", name, identity_hex(participant.identity))
        return participant

    def load(self, name: str) -> Participant:
        path = self._path(name)
        if not path.exists():
            raise FileNotFoundError(f"No key named {name!r} in {self.keys_dir}")
        seed = bytes.fromhex(path.read_text(encoding="utf-8").strip())
        return Participant.from_seed(seed)

    def names(self) -> List[str]:
        if not self.keys_dir.is_dir():
            return []
        return sorted(p.stem for p in self.keys_dir.glob("*.key"))
