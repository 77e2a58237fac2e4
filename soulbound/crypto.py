"""
soulbound.crypto — Hash and signature primitives.

The engine depends only on two operations:

    hash(data) -> 32-byte digest
    verify(identity, digest, signature) -> bool

``CryptoProvider`` is the interface; ``KeccakEd25519`` is the default
implementation.  Identities are Ed25519 public keys, so a signature is
checked straight against the counterpart's identity bytes without any
key registration step.
"""

from __future__ import annotations

import logging

from Crypto.Hash import keccak
from nacl.exceptions import CryptoError
from nacl.signing import VerifyKey

from soulbound.core.types import DIGEST_LENGTH, IDENTITY_LENGTH, SIGNATURE_LENGTH

log = logging.getLogger(__name__)


def keccak256(data: bytes) -> bytes:
    """Original (pre-NIST) Keccak-256, as used for consent digests."""
    h = keccak.new(digest_bits=256)
    h.update(data)
    return h.digest()


class CryptoProvider:
    """Interface for the hash and signature-verification collaborator.

    Subclasses override both methods.  ``verify`` must return False,
    never raise, for any malformed or non-verifying input.
    """

    name = "abstract"

    def hash(self, data: bytes) -> bytes:
        raise NotImplementedError

    def verify(self, identity: bytes, digest: bytes, signature: bytes) -> bool:
        raise NotImplementedError


class KeccakEd25519(CryptoProvider):
    """keccak-256 digests, Ed25519 signatures keyed by identity bytes."""

    name = "keccak256-ed25519"

    def hash(self, data: bytes) -> bytes:
        return keccak256(data)

    def verify(self, identity: bytes, digest: bytes, signature: bytes) -> bool:
        if len(identity) != IDENTITY_LENGTH or len(signature) != SIGNATURE_LENGTH:
            return False
        if len(digest) != DIGEST_LENGTH:
            return False
        try:
            VerifyKey(bytes(identity)).verify(bytes(digest), bytes(signature))
        except (CryptoError, ValueError) as exc:
            log.debug("Signature rejected for %s: %s", identity.hex()[:16], exc)
            return False
        return True
