"""Tests for soulbound.ledger.store, registry, replay and event sinks."""

import logging

import pytest

from soulbound.core.types import NULL_IDENTITY, TransferRecord
from soulbound.events import LedgerEventSink, MemoryEventSink
from soulbound.ledger.store import LedgerStore
from soulbound.registry import OwnershipRegistry
from soulbound.replay import ReplayGuard

A = b"\xaa" * 32
B = b"\xbb" * 32


class TestLedgerStore:
    def test_defaults(self, store):
        assert store.get_token_name() == ""
        assert store.get_next_token_id() == 0
        assert store.is_initialized() is False
        assert store.get_owner(0) == NULL_IDENTITY
        assert store.get_used(0) is False
        assert store.get_balance(A) == 0

    def test_settings(self, store):
        store.set_token_name("Badges")
        store.set_token_symbol("BDG")
        store.set_next_token_id(12)
        store.set_initialized()
        assert store.get_token_name() == "Badges"
        assert store.get_token_symbol() == "BDG"
        assert store.get_next_token_id() == 12
        assert store.is_initialized()

    def test_negative_values_rejected(self, store):
        with pytest.raises(ValueError):
            store.set_next_token_id(-1)
        with pytest.raises(ValueError):
            store.set_balance(A, -1)

    def test_owner_and_used_are_independent(self, store):
        store.set_used(3, True)
        assert store.get_owner(3) == NULL_IDENTITY
        store.set_owner(3, A)
        assert store.get_used(3) is True
        store.set_used(3, False)
        assert store.get_owner(3) == A

    def test_large_token_ids(self, store):
        big = 2**80
        store.set_owner(big, A)
        store.set_next_token_id(big + 1)
        assert store.get_owner(big) == A
        assert store.get_next_token_id() == big + 1
        assert store.tokens_owned_by(A) == [big]

    def test_persists_across_reopen(self, config):
        s = LedgerStore(config.db_path)
        s.set_owner(1, A)
        s.set_balance(A, 1)
        s.append_transfer(TransferRecord(B, A, 1))
        s.close()

        s = LedgerStore(config.db_path)
        assert s.get_owner(1) == A
        assert s.get_balance(A) == 1
        assert s.count_transfers() == 1
        s.close()

    def test_batch_commits(self, store):
        with store.batch():
            store.set_owner(1, A)
            store.set_used(1, True)
        assert store.get_owner(1) == A
        assert store.get_used(1) is True

    def test_batch_rolls_back(self, store):
        store.set_owner(1, A)
        with pytest.raises(RuntimeError):
            with store.batch():
                store.set_owner(1, B)
                store.set_used(1, True)
                store.append_transfer(TransferRecord(A, B, 1))
                raise RuntimeError("boom")
        assert store.get_owner(1) == A
        assert store.get_used(1) is False
        assert store.count_transfers() == 0

    def test_nested_batch(self, store):
        with store.batch():
            with store.batch():
                store.set_owner(1, A)
            assert store._batch_depth == 1
        assert store._batch_depth == 0
        assert store.get_owner(1) == A

    def test_list_transfers(self, store):
        for token_id in (1, 2, 1):
            store.append_transfer(TransferRecord(A, B, token_id))
        records = store.list_transfers()
        assert [r.seq for r in records] == [3, 2, 1]
        assert [r.token_id for r in store.list_transfers(token_id=1)] == [1, 1]
        assert len(store.list_transfers(limit=2)) == 2

    def test_stats(self, store):
        store.set_next_token_id(4)
        store.set_owner(0, A)
        store.set_used(0, True)
        store.set_used(1, True)
        assert store.get_stats() == {
            "next_token_id": 4,
            "equipped": 1,
            "used_agreements": 2,
            "transfers": 0,
        }


class TestOwnershipRegistry:
    def test_assign_moves_balance(self, store):
        reg = OwnershipRegistry(store)
        assert reg.assign(0, A) == NULL_IDENTITY
        assert reg.balance_of(A) == 1

        assert reg.assign(0, B) == A
        assert reg.balance_of(A) == 0
        assert reg.balance_of(B) == 1

    def test_reassign_same_owner_is_noop(self, store):
        reg = OwnershipRegistry(store)
        reg.assign(0, A)
        reg.assign(0, A)
        assert reg.balance_of(A) == 1

    def test_null_identity_has_no_balance(self, store):
        reg = OwnershipRegistry(store)
        reg.assign(0, A)
        reg.reset(0)
        assert reg.owner_of(0) == NULL_IDENTITY
        assert reg.balance_of(A) == 0
        assert reg.balance_of(NULL_IDENTITY) == 0

    def test_tokens_of(self, store):
        reg = OwnershipRegistry(store)
        for token_id in (5, 1, 3):
            reg.assign(token_id, A)
        assert reg.tokens_of(A) == [1, 3, 5]
        assert reg.balance_of(A) == len(reg.tokens_of(A))


class TestReplayGuard:
    def test_mark_and_clear(self, store):
        guard = ReplayGuard(store)
        assert not guard.is_used(2)
        guard.mark_used(2)
        assert guard.is_used(2)
        assert not guard.is_used(3)
        guard.clear(2)
        assert not guard.is_used(2)


class TestEventSinks:
    def test_memory_sink(self):
        sink = MemoryEventSink()
        sink.emit(TransferRecord(A, B, 1))
        sink.emit(TransferRecord(B, NULL_IDENTITY, 1))
        assert [r.seq for r in sink.records] == [1, 2]
        assert sink.as_tuples() == [(A, B, 1), (B, NULL_IDENTITY, 1)]

    def test_ledger_sink_persists_and_logs(self, store, caplog):
        sink = LedgerEventSink(store)
        with caplog.at_level(logging.INFO, logger="soulbound.events"):
            sink.emit(TransferRecord(A, B, 9))

        [record] = store.list_transfers()
        assert (record.sender, record.recipient, record.token_id) == (A, B, 9)
        assert record.seq == 1

        [log_record] = [r for r in caplog.records if r.name == "soulbound.events"]
        assert log_record.token_id == 9
        assert log_record.seq == 1
        assert log_record.recipient == B.hex()
