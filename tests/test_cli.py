"""Tests for the soulbound command line (soulbound.__main__)."""

import json

import pytest

from soulbound.__main__ import main


def _run(capsys, *argv):
    code = main(list(argv))
    out, err = capsys.readouterr()
    return code, out, err


def _json(capsys, *argv):
    code, out, err = _run(capsys, *argv)
    assert code == 0, err
    return json.loads(out)


@pytest.fixture
def data_dir(tmp_dir, capsys):
    d = str(tmp_dir / "ledger")
    assert main(["init", "--data-dir", d, "--name", "Badges", "--allocate", "2"]) == 0
    capsys.readouterr()
    return d


class TestInit:
    def test_init_writes_config(self, data_dir):
        from soulbound.core.config import Config

        cfg = Config.from_yaml(f"{data_dir}/soulbound.yaml")
        assert cfg.token_name == "Badges"

    def test_info_after_init(self, data_dir, capsys):
        info = _json(capsys, "info", "--data-dir", data_dir)
        assert info["name"] == "Badges"
        assert info["next_token_id"] == 2

    def test_no_command_prints_help(self, capsys):
        code, out, _ = _run(capsys)
        assert code == 0
        assert "usage" in out.lower()


class TestFlow:
    def test_give_and_unequip(self, data_dir, capsys):
        alice = _json(capsys, "keygen", "alice", "--data-dir", data_dir)["identity"]
        bob = _json(capsys, "keygen", "bob", "--data-dir", data_dir)["identity"]

        signed = _json(
            capsys, "sign", "--key", "bob", "--active", alice,
            "--token-id", "0", "--data-dir", data_dir,
        )
        assert signed["passive"] == bob

        given = _json(
            capsys, "give", "--key", "alice", "--to", bob, "--token-id", "0",
            "--signature", signed["signature"], "--data-dir", data_dir,
        )
        assert given["owner"] == bob

        code, _, err = _run(
            capsys, "give", "--key", "alice", "--to", bob, "--token-id", "0",
            "--signature", signed["signature"], "--data-dir", data_dir,
        )
        assert code == 1
        assert "agreement_already_used" in err

        _json(capsys, "unequip", "--key", "bob", "--token-id", "0", "--data-dir", data_dir)
        owner = _json(capsys, "owner", "0", "--data-dir", data_dir)
        assert owner == {"token_id": 0, "owner": "00" * 32, "used": False}

        history = _json(capsys, "history", "--data-dir", data_dir)
        assert len(history) == 2

    def test_take_reports_mode(self, data_dir, capsys):
        alice = _json(capsys, "keygen", "alice", "--data-dir", data_dir)["identity"]
        bob = _json(capsys, "keygen", "bob", "--data-dir", data_dir)["identity"]
        sig = _json(
            capsys, "sign", "--key", "bob", "--active", "0x" + alice,
            "--token-id", "1", "--data-dir", data_dir,
        )["signature"]

        taken = _json(
            capsys, "take", "--key", "alice", "--origin", bob, "--token-id", "1",
            "--signature", sig, "--data-dir", data_dir,
        )
        assert taken["take_mode"] == "consume"

    def test_identity(self, data_dir, capsys):
        created = _json(capsys, "keygen", "carol", "--data-dir", data_dir)
        assert _json(capsys, "identity", "carol", "--data-dir", data_dir) == created

    def test_allocate(self, data_dir, capsys):
        data = _json(capsys, "allocate", "--count", "3", "--data-dir", data_dir)
        assert data == {"first": 2, "last": 4, "next_token_id": 5}


class TestErrors:
    def test_unauthorized_unequip(self, data_dir, capsys):
        _json(capsys, "keygen", "alice", "--data-dir", data_dir)
        code, _, err = _run(
            capsys, "unequip", "--key", "alice", "--token-id", "0", "--data-dir", data_dir
        )
        assert code == 1
        assert "unauthorized" in err

    def test_missing_key(self, data_dir, capsys):
        code, _, err = _run(capsys, "identity", "ghost", "--data-dir", data_dir)
        assert code == 2
        assert "ghost" in err

    def test_duplicate_key(self, data_dir, capsys):
        _json(capsys, "keygen", "alice", "--data-dir", data_dir)
        code, _, _ = _run(capsys, "keygen", "alice", "--data-dir", data_dir)
        assert code == 2

    def test_bad_allocate_count(self, data_dir, capsys):
        code, _, _ = _run(capsys, "allocate", "--count", "0", "--data-dir", data_dir)
        assert code == 2
