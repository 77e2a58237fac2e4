"""Tests for soulbound.core.config."""

import pytest
import yaml

from soulbound.core.config import DATA_DIR_ENV, Config


class TestConfig:
    def test_defaults(self, tmp_dir):
        cfg = Config.from_data_dir(tmp_dir)
        assert cfg.token_name == "Soulbound"
        assert cfg.token_symbol == "SBT"
        assert cfg.take_mode == "consume"
        assert cfg.structured_logging is False

    def test_derived_paths(self, tmp_dir):
        cfg = Config.from_data_dir(tmp_dir)
        assert cfg.db_path == tmp_dir.resolve() / "soulbound.db"
        assert cfg.keys_dir == tmp_dir.resolve() / "keys"
        assert cfg.config_path == tmp_dir.resolve() / "soulbound.yaml"

    def test_env_data_dir(self, tmp_dir, monkeypatch):
        monkeypatch.setenv(DATA_DIR_ENV, str(tmp_dir / "from_env"))
        assert Config().data_dir == (tmp_dir / "from_env").resolve()

    def test_take_mode_normalised(self, tmp_dir):
        assert Config.from_data_dir(tmp_dir, take_mode=" Equip ").take_mode == "equip"

    def test_unknown_take_mode(self, tmp_dir):
        with pytest.raises(ValueError, match="take_mode"):
            Config.from_data_dir(tmp_dir, take_mode="burn")

    def test_ensure_directories(self, tmp_dir):
        cfg = Config.from_data_dir(tmp_dir / "nested")
        cfg.ensure_directories()
        assert cfg.keys_dir.is_dir()


class TestYaml:
    def test_from_yaml_section(self, tmp_dir):
        path = tmp_dir / "soulbound.yaml"
        path.write_text(
            yaml.safe_dump(
                {
                    "soulbound": {
                        "data_dir": str(tmp_dir),
                        "token_name": "Badges",
                        "take_mode": "equip",
                        "unrelated": 1,
                    }
                }
            )
        )
        cfg = Config.from_yaml(path)
        assert cfg.token_name == "Badges"
        assert cfg.take_mode == "equip"
        assert cfg.data_dir == tmp_dir.resolve()

    def test_from_yaml_top_level(self, tmp_dir):
        path = tmp_dir / "flat.yaml"
        path.write_text("token_symbol: FLT\n")
        assert Config.from_yaml(path).token_symbol == "FLT"

    def test_missing_file(self, tmp_dir):
        with pytest.raises(FileNotFoundError):
            Config.from_yaml(tmp_dir / "nope.yaml")

    def test_write_and_reload(self, tmp_dir):
        cfg = Config.from_data_dir(tmp_dir, token_name="Badges", log_level="DEBUG")
        path = cfg.write_yaml()
        assert path == cfg.config_path

        loaded = Config.from_yaml(path)
        assert loaded.to_dict() == cfg.to_dict()


class TestLoad:
    def test_prefers_yaml_in_data_dir(self, tmp_dir):
        Config.from_data_dir(tmp_dir, take_mode="equip", token_name="Badges").write_yaml()
        cfg = Config.load(data_dir=tmp_dir)
        assert cfg.take_mode == "equip"
        assert cfg.token_name == "Badges"

    def test_yaml_in_data_dir_points_at_that_dir(self, tmp_dir):
        path = tmp_dir / "soulbound.yaml"
        path.write_text(
            yaml.safe_dump({"soulbound": {"data_dir": "/elsewhere", "take_mode": "equip"}})
        )
        cfg = Config.load(data_dir=tmp_dir)
        assert cfg.data_dir == tmp_dir.resolve()
        assert cfg.take_mode == "equip"

    def test_falls_back_to_defaults(self, tmp_dir):
        cfg = Config.load(data_dir=tmp_dir, token_symbol="XYZ")
        assert cfg.take_mode == "consume"
        assert cfg.token_symbol == "XYZ"
        assert cfg.data_dir == tmp_dir.resolve()

    def test_explicit_path_wins(self, tmp_dir):
        Config.from_data_dir(tmp_dir, take_mode="equip").write_yaml()
        other = tmp_dir / "other.yaml"
        other.write_text(yaml.safe_dump({"soulbound": {"token_name": "Other"}}))
        cfg = Config.load(data_dir=tmp_dir, config_path=other)
        assert cfg.token_name == "Other"
        assert cfg.take_mode == "consume"

    def test_default_data_dir_from_env(self, tmp_dir, monkeypatch):
        monkeypatch.setenv(DATA_DIR_ENV, str(tmp_dir))
        Config.from_data_dir(tmp_dir, token_name="FromEnv").write_yaml()
        assert Config.load().token_name == "FromEnv"
