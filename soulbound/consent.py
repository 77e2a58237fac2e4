"""
soulbound.consent — Canonical consent digests and their verification.

A transfer needs the counterpart's pre-signed consent.  The signed
message is

    digest = keccak256(active ‖ passive ‖ big_endian(token_id))

where ``active`` initiates the call and ``passive`` is the counterpart
whose signature is required:

    give:  active = giver (caller),  passive = recipient
    take:  active = taker (caller),  passive = origin holder

Role order is part of the message, so a consent to *receive* a token
from someone can never be replayed as a consent to *hand it over* to
them.

``ConsentProtocol.verify`` only checks.  It raises on failure and never
writes; consuming the consent is the engine's job once every other
effect is known to succeed.
"""

from __future__ import annotations

import logging

from soulbound.core.errors import AgreementAlreadyUsed, InvalidSignature
from soulbound.core.types import Identity, identity_hex, token_id_bytes
from soulbound.crypto import CryptoProvider
from soulbound.replay import ReplayGuard

log = logging.getLogger(__name__)


class ConsentProtocol:
    """Builds consent digests and checks signatures against replay state.

    Usage::

        consent = ConsentProtocol(crypto, replay)
        consent.verify(active=alice, passive=bob, token_id=0, signature=sig)
    """

    def __init__(self, crypto: CryptoProvider, replay: ReplayGuard) -> None:
        self._crypto = crypto
        self._replay = replay

    def digest(self, active: Identity, passive: Identity, token_id: int) -> bytes:
        """Hash of ``active ‖ passive ‖ big_endian(token_id)``."""
        return self._crypto.hash(
            bytes(active) + bytes(passive) + token_id_bytes(token_id)
        )

    def verify(
        self,
        active: Identity,
        passive: Identity,
        token_id: int,
        signature: bytes,
    ) -> bytes:
        """Check that *passive* consented to this transfer.

        Raises ``AgreementAlreadyUsed`` while the token's consent is
        consumed (whatever the signature), otherwise ``InvalidSignature``
        if *signature* does not verify against *passive*.  Returns the
        digest on success.
        """
        digest = self.digest(active, passive, token_id)

        if self._replay.is_used(token_id):
            raise AgreementAlreadyUsed(token_id=token_id)

        if not self._crypto.verify(passive, digest, signature):
            log.debug(
                "Consent for token %d not signed by %s",
                token_id,
                identity_hex(passive)[:16],
            )
            raise InvalidSignature(token_id=token_id)

        return digest
