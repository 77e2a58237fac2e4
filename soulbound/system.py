"""
soulbound.system -- Top-level SoulboundSystem: the public API.

    from soulbound import SoulboundSystem, CallContext

    with SoulboundSystem(data_dir="./data") as sb:
        sb.token.give(CallContext(alice), bob, 0, signature)

Everything is wired up here: config, ledger, crypto, engine, keys.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Optional

from soulbound.core.config import Config
from soulbound.crypto import CryptoProvider
from soulbound.events import EventSink
from soulbound.keys import KeyStore
from soulbound.ledger.store import LedgerStore
from soulbound.token import SoulboundToken

log = logging.getLogger("soulbound.system")


class SoulboundSystem:
    """Wire a ledger, engine and keystore together from a ``Config``.

    Parameters
    ----------
    config:
        Full ``Config`` object.  If not given, ``data_dir`` and
        ``**kwargs`` are forwarded to ``Config``.
    data_dir:
        Shortcut -- if you just want to point at a directory and go.
    crypto:
        Override the hash / signature collaborator.
    events:
        Override the transfer event sink (default: ledger log).
    **kwargs:
        Extra keyword args forwarded to ``Config()``.
    """

    def __init__(
        self,
        config: Optional[Config] = None,
        data_dir: Optional[str | Path] = None,
        crypto: Optional[CryptoProvider] = None,
        events: Optional[EventSink] = None,
        **kwargs: Any,
    ) -> None:
        if config is not None:
            self.config = config
        elif data_dir is not None:
            self.config = Config.load(data_dir=data_dir, **kwargs)
        else:
            self.config = Config(**kwargs)

        self.config.ensure_directories()

        if self.config.structured_logging:
            from soulbound.core.logging import configure_logging

            configure_logging(structured=True, level=self.config.log_level)

        self.store = LedgerStore(self.config.db_path)
        self.token = SoulboundToken(
            self.store,
            crypto=crypto,
            events=events,
            take_mode=self.config.take_mode,
        )
        self.keys = KeyStore(self.config.keys_dir)

    # ------------------------------------------------------------------
    # Operator actions
    # ------------------------------------------------------------------

    def ensure_initialized(self) -> bool:
        """Run ``init`` with the configured name/symbol if not yet done.

        Returns True if this call performed the initialisation.
        """
        if self.store.is_initialized():
            return False
        self.token.init(self.config.token_name, self.config.token_symbol)
        return True

    def allocate(self, count: int = 1) -> range:
        """Make *count* more token ids valid and return them.

        The engine only ever reads ``next_token_id``; this is the one
        place that moves it, and only forward.
        """
        if count < 1:
            raise ValueError(f"count must be at least 1, got {count}")
        with self.store.batch():
            start = self.store.get_next_token_id()
            self.store.set_next_token_id(start + count)
        log.info("Allocated token ids %d..%d", start, start + count - 1)
        return range(start, start + count)

    def get_stats(self) -> Dict[str, Any]:
        stats: Dict[str, Any] = self.token.info().to_dict()
        stats.update(self.store.get_stats())
        stats["keys"] = self.keys.names()
        return stats

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        """Close the ledger connection."""
        try:
            self.store.close()
        except Exception as exc:
            log.debug("Error closing ledger: %s", exc)

    def __enter__(self) -> "SoulboundSystem":
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()
