"""Shared fixtures for soulbound tests."""

import pytest

from soulbound.core.config import Config
from soulbound.events import MemoryEventSink
from soulbound.keys import Participant
from soulbound.ledger.store import LedgerStore
from soulbound.token import SoulboundToken


@pytest.fixture
def tmp_dir(tmp_path):
    """Provide a temporary directory that persists for the test."""
    return tmp_path


@pytest.fixture
def config(tmp_dir):
    """Provide a Config pointing at a temp directory."""
    cfg = Config.from_data_dir(tmp_dir)
    cfg.ensure_directories()
    return cfg


@pytest.fixture
def store(config):
    """Provide a fresh LedgerStore."""
    s = LedgerStore(config.db_path)
    yield s
    s.close()


# Fixed seeds keep identities stable across runs.
@pytest.fixture
def alice():
    return Participant.from_seed(bytes([1]) * 32)


@pytest.fixture
def bob():
    return Participant.from_seed(bytes([2]) * 32)


@pytest.fixture
def carol():
    return Participant.from_seed(bytes([3]) * 32)


@pytest.fixture
def sink():
    return MemoryEventSink()


@pytest.fixture
def token(store, sink):
    """Initialized token with ids 0..2 valid, events captured in memory."""
    t = SoulboundToken(store, events=sink)
    t.init("Badges", "BDG")
    store.set_next_token_id(3)
    return t


@pytest.fixture
def equip_token(store, sink):
    """Same as ``token`` but with take_mode="equip"."""
    t = SoulboundToken(store, events=sink, take_mode="equip")
    t.init("Badges", "BDG")
    store.set_next_token_id(3)
    return t

