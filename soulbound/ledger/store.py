"""
Ledger store — SQLite-backed storage for token metadata, ownership,
consent flags, balances and the transfer log.

Each record the engine needs has a typed getter and setter.  Missing
rows read back as their defaults (null owner, unused flag, zero
balance), so identifiers never need to be created explicitly.
"""

import logging
import sqlite3
from pathlib import Path
from typing import Dict, List, Optional

from soulbound.core.types import NULL_IDENTITY, Identity, TransferRecord, now_iso

log = logging.getLogger(__name__)

# Keys of the ``settings`` table.
_NAME = "token_name"
_SYMBOL = "token_symbol"
_NEXT_ID = "next_token_id"
_INITIALIZED = "initialized"


class LedgerStore:
    """SQLite-based ledger: settings, tokens, balances and transfers."""

    def __init__(self, db_path: Path):
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self.conn = sqlite3.connect(str(self.db_path))
        self.conn.row_factory = sqlite3.Row
        self.conn.execute("PRAGMA journal_mode=WAL")
        self._create_tables()

        # Batch write support: when _batch_depth > 0, individual
        # commit() calls are suppressed and a single commit runs
        # when the outermost batch context exits.
        self._batch_depth: int = 0

    # ── Batch writes ────────────────────────────────────────────

    class _BatchContext:
        """Context manager that defers commits until exit."""

        def __init__(self, store: "LedgerStore") -> None:
            self._store = store

        def __enter__(self) -> "LedgerStore":
            self._store._batch_depth += 1
            return self._store

        def __exit__(self, exc_type, exc_val, exc_tb) -> None:
            self._store._batch_depth -= 1
            if self._store._batch_depth <= 0:
                self._store._batch_depth = 0
                if exc_type is None:
                    self._store.conn.commit()
                else:
                    log.debug("Rolling back ledger batch: %s", exc_val)
                    self._store.conn.rollback()

    def batch(self) -> "_BatchContext":
        """Return a context manager that makes several writes atomic.

        Within the ``batch()`` block, per-call commits are suppressed.
        A single commit runs when the block exits successfully, or a
        rollback on exception, so either every write lands or none do.

        Usage::

            with store.batch():
                store.set_owner(token_id, recipient)
                store.set_used(token_id, True)
                store.append_transfer(record)
            # single commit happens here
        """
        return self._BatchContext(self)

    def _commit(self) -> None:
        """Commit unless inside a batch context."""
        if self._batch_depth <= 0:
            self.conn.commit()

    # ── Schema ────────────────────────────────────────────────

    def _create_tables(self):
        c = self.conn.cursor()

        c.execute("""
            CREATE TABLE IF NOT EXISTS settings (
                key     TEXT PRIMARY KEY,
                value   TEXT
            )
        """)

        # token_id is decimal text: ids are unbounded non-negative ints
        # and SQLite INTEGER stops at 2**63 - 1.
        c.execute("""
            CREATE TABLE IF NOT EXISTS tokens (
                token_id    TEXT PRIMARY KEY,
                owner       BLOB NOT NULL,
                used        INTEGER NOT NULL DEFAULT 0
            )
        """)

        c.execute("""
            CREATE TABLE IF NOT EXISTS balances (
                owner       BLOB PRIMARY KEY,
                amount      INTEGER NOT NULL DEFAULT 0
            )
        """)

        c.execute("""
            CREATE TABLE IF NOT EXISTS transfers (
                seq         INTEGER PRIMARY KEY AUTOINCREMENT,
                sender      BLOB NOT NULL,
                recipient   BLOB NOT NULL,
                token_id    TEXT NOT NULL,
                timestamp   TEXT NOT NULL
            )
        """)

        for stmt in [
            "CREATE INDEX IF NOT EXISTS idx_tokens_owner        ON tokens(owner)",
            "CREATE INDEX IF NOT EXISTS idx_transfers_token_id  ON transfers(token_id)",
        ]:
            c.execute(stmt)

        self.conn.commit()

    # ── Settings ──────────────────────────────────────────────

    def _get_setting(self, key: str) -> Optional[str]:
        row = self.conn.execute(
            "SELECT value FROM settings WHERE key = ?", (key,)
        ).fetchone()
        return row["value"] if row else None

    def _set_setting(self, key: str, value: str) -> None:
        self.conn.execute(
            "INSERT INTO settings (key, value) VALUES (?, ?) "
            "ON CONFLICT(key) DO UPDATE SET value = excluded.value",
            (key, value),
        )
        self._commit()

    def get_token_name(self) -> str:
        return self._get_setting(_NAME) or ""

    def set_token_name(self, name: str) -> None:
        self._set_setting(_NAME, name)

    def get_token_symbol(self) -> str:
        return self._get_setting(_SYMBOL) or ""

    def set_token_symbol(self, symbol: str) -> None:
        self._set_setting(_SYMBOL, symbol)

    def get_next_token_id(self) -> int:
        value = self._get_setting(_NEXT_ID)
        return int(value) if value is not None else 0

    def set_next_token_id(self, next_id: int) -> None:
        if next_id < 0:
            raise ValueError(f"next_token_id must be non-negative, got {next_id}")
        self._set_setting(_NEXT_ID, str(next_id))

    def is_initialized(self) -> bool:
        return self._get_setting(_INITIALIZED) == "1"

    def set_initialized(self) -> None:
        self._set_setting(_INITIALIZED, "1")

    # ── Tokens ────────────────────────────────────────────────

    def _token_row(self, token_id: int) -> Optional[sqlite3.Row]:
        return self.conn.execute(
            "SELECT owner, used FROM tokens WHERE token_id = ?", (str(token_id),)
        ).fetchone()

    def get_owner(self, token_id: int) -> Identity:
        row = self._token_row(token_id)
        return bytes(row["owner"]) if row else NULL_IDENTITY

    def set_owner(self, token_id: int, owner: Identity) -> None:
        self.conn.execute(
            "INSERT INTO tokens (token_id, owner) VALUES (?, ?) "
            "ON CONFLICT(token_id) DO UPDATE SET owner = excluded.owner",
            (str(token_id), bytes(owner)),
        )
        self._commit()

    def get_used(self, token_id: int) -> bool:
        row = self._token_row(token_id)
        return bool(row["used"]) if row else False

    def set_used(self, token_id: int, used: bool) -> None:
        self.conn.execute(
            "INSERT INTO tokens (token_id, owner, used) VALUES (?, ?, ?) "
            "ON CONFLICT(token_id) DO UPDATE SET used = excluded.used",
            (str(token_id), NULL_IDENTITY, int(used)),
        )
        self._commit()

    def tokens_owned_by(self, owner: Identity) -> List[int]:
        rows = self.conn.execute(
            "SELECT token_id FROM tokens WHERE owner = ?", (bytes(owner),)
        ).fetchall()
        return sorted(int(r["token_id"]) for r in rows)

    # ── Balances ──────────────────────────────────────────────

    def get_balance(self, owner: Identity) -> int:
        row = self.conn.execute(
            "SELECT amount FROM balances WHERE owner = ?", (bytes(owner),)
        ).fetchone()
        return int(row["amount"]) if row else 0

    def set_balance(self, owner: Identity, amount: int) -> None:
        if amount < 0:
            raise ValueError(f"balance cannot go negative ({amount})")
        self.conn.execute(
            "INSERT INTO balances (owner, amount) VALUES (?, ?) "
            "ON CONFLICT(owner) DO UPDATE SET amount = excluded.amount",
            (bytes(owner), amount),
        )
        self._commit()

    # ── Transfer log ──────────────────────────────────────────

    def append_transfer(self, record: TransferRecord) -> int:
        """Persist a transfer record and return its sequence number."""
        cur = self.conn.execute(
            "INSERT INTO transfers (sender, recipient, token_id, timestamp) "
            "VALUES (?, ?, ?, ?)",
            (
                bytes(record.sender),
                bytes(record.recipient),
                str(record.token_id),
                record.timestamp or now_iso(),
            ),
        )
        self._commit()
        record.seq = cur.lastrowid
        return record.seq

    def list_transfers(
        self, token_id: Optional[int] = None, limit: int = 50
    ) -> List[TransferRecord]:
        """Most recent transfers first, optionally for one token."""
        if token_id is not None:
            rows = self.conn.execute(
                "SELECT * FROM transfers WHERE token_id = ? ORDER BY seq DESC LIMIT ?",
                (str(token_id), limit),
            ).fetchall()
        else:
            rows = self.conn.execute(
                "SELECT * FROM transfers ORDER BY seq DESC LIMIT ?", (limit,)
            ).fetchall()
        return [
            TransferRecord(
                sender=bytes(r["sender"]),
                recipient=bytes(r["recipient"]),
                token_id=int(r["token_id"]),
                timestamp=r["timestamp"],
                seq=r["seq"],
            )
            for r in rows
        ]

    def count_transfers(self) -> int:
        return self.conn.execute("SELECT COUNT(*) FROM transfers").fetchone()[0]

    # ── Stats / lifecycle ─────────────────────────────────────

    def get_stats(self) -> Dict[str, int]:
        equipped = self.conn.execute(
            "SELECT COUNT(*) FROM tokens WHERE owner != ?", (NULL_IDENTITY,)
        ).fetchone()[0]
        used = self.conn.execute(
            "SELECT COUNT(*) FROM tokens WHERE used = 1"
        ).fetchone()[0]
        return {
            "next_token_id": self.get_next_token_id(),
            "equipped": equipped,
            "used_agreements": used,
            "transfers": self.count_transfers(),
        }

    def close(self):
        self.conn.close()
