"""Tests for settings resolution."""

from __future__ import annotations

from pathlib import Path

import pytest

from inspectrec.config import ConfigError, Grammar, Settings, get_config_dir, limits_for, load_settings


class TestDefaults:
    def test_defaults(self, tmp_path: Path):
        s = load_settings()
        assert isinstance(s, Settings)
        assert s.grammar is Grammar.STRICT
        assert s.capacity == 1000
        assert s.audit_path is None
        assert s.lock is True
        assert s.data_path == (tmp_path / "xdg" / "inspectrec" / "users_data.csv").resolve()

    def test_config_dir_follows_xdg(self, tmp_path: Path):
        assert get_config_dir() == (tmp_path / "xdg" / "inspectrec").resolve()

    def test_limits_per_grammar(self):
        strict = limits_for(Grammar.STRICT)
        lenient = limits_for(Grammar.LENIENT)
        assert (strict.id_max_len, strict.reg_max_len, strict.owner_max_len) == (4, 7, 40)
        assert (strict.min_year, strict.max_year) == (1990, 2026)
        assert (lenient.id_max_len, lenient.reg_max_len, lenient.owner_max_len) == (20, 20, 60)
        assert (lenient.min_year, lenient.max_year) == (1880, 2100)


class TestSources:
    def test_yaml_file(self, tmp_path: Path):
        cfg = tmp_path / "xdg" / "inspectrec" / "config.yaml"
        cfg.parent.mkdir(parents=True)
        cfg.write_text(
            "data_path: {}\ngrammar: lenient\ncapacity: 50\nlock: false\n".format(tmp_path / "d.csv"),
            encoding="utf-8",
        )
        s = load_settings()
        assert s.data_path == (tmp_path / "d.csv").resolve()
        assert s.grammar is Grammar.LENIENT
        assert s.capacity == 50
        assert s.lock is False
        assert s.limits.owner_max_len == 60

    def test_env_overrides_file(self, monkeypatch, tmp_path: Path):
        cfg = tmp_path / "custom.yaml"
        cfg.write_text("grammar: lenient\ncapacity: 50\n", encoding="utf-8")
        monkeypatch.setenv("INSPECTREC_CONFIG", str(cfg))
        monkeypatch.setenv("INSPECTREC_CAPACITY", "7")
        s = load_settings()
        assert s.grammar is Grammar.LENIENT
        assert s.capacity == 7

    def test_overrides_win_and_none_is_ignored(self, monkeypatch, tmp_path: Path):
        monkeypatch.setenv("INSPECTREC_GRAMMAR", "lenient")
        s = load_settings(grammar="STRICT", capacity=None, audit_path=str(tmp_path / "a.jsonl"))
        assert s.grammar is Grammar.STRICT
        assert s.capacity == 1000
        assert s.audit_path == (tmp_path / "a.jsonl").resolve()

    def test_explicit_path_argument(self, tmp_path: Path):
        cfg = tmp_path / "other.yaml"
        cfg.write_text("capacity: 3\n", encoding="utf-8")
        assert load_settings(str(cfg)).capacity == 3

    def test_empty_yaml_file(self, tmp_path: Path):
        cfg = tmp_path / "empty.yaml"
        cfg.write_text("", encoding="utf-8")
        assert load_settings(str(cfg)).capacity == 1000


class TestErrors:
    def test_unknown_grammar(self):
        with pytest.raises(ConfigError, match="Unknown grammar"):
            load_settings(grammar="fuzzy")

    @pytest.mark.parametrize("value", [0, -5, "many"])
    def test_bad_capacity(self, value):
        with pytest.raises(ConfigError):
            load_settings(capacity=value)

    def test_bad_lock_value(self, monkeypatch):
        monkeypatch.setenv("INSPECTREC_LOCK", "maybe")
        with pytest.raises(ConfigError):
            load_settings()

    def test_unknown_key_in_file(self, tmp_path: Path):
        cfg = tmp_path / "c.yaml"
        cfg.write_text("colour: blue\n", encoding="utf-8")
        with pytest.raises(ConfigError, match="Unknown setting"):
            load_settings(str(cfg))

    def test_non_mapping_file(self, tmp_path: Path):
        cfg = tmp_path / "c.yaml"
        cfg.write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(ConfigError):
            load_settings(str(cfg))

    def test_invalid_yaml(self, tmp_path: Path):
        cfg = tmp_path / "c.yaml"
        cfg.write_text("grammar: [unclosed\n", encoding="utf-8")
        with pytest.raises(ConfigError):
            load_settings(str(cfg))

    def test_config_error_is_value_error(self):
        assert issubclass(ConfigError, ValueError)
