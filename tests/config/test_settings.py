"""Tests for CfgSettings — unified settings with TOML source."""

from __future__ import annotations

from pathlib import Path

import click
import pytest

from cfgset.config.discovery import find_config
from cfgset.config.settings import CfgSettings


class TestDefaults:
    def test_all_defaults(self, tmp_path: Path) -> None:
        settings = CfgSettings.from_cli(start=tmp_path)
        assert settings.config_path is None
        assert settings.json_output is False
        assert settings.registry.filename == "Krmfile"
        assert settings.registry.path is None
        assert settings.setters.set_by is None
        assert settings.setters.resource_suffixes == [".yaml", ".yml"]

    def test_frozen(self, tmp_path: Path) -> None:
        settings = CfgSettings.from_cli(start=tmp_path)
        with pytest.raises(Exception):
            settings.quiet = True  # type: ignore[misc]


class TestTomlSource:
    def test_loads_sections(self, tmp_path: Path) -> None:
        (tmp_path / "cfgset.toml").write_text(
            '[registry]\nfilename = "Kptfile"\n[setters]\nset_by = "ci"\n'
        )
        settings = CfgSettings.from_cli(start=tmp_path)
        assert settings.registry.filename == "Kptfile"
        assert settings.setters.set_by == "ci"
        assert settings.setters.resource_suffixes == [".yaml", ".yml"]

    def test_walk_up(self, tmp_path: Path) -> None:
        (tmp_path / "cfgset.toml").write_text('[setters]\nset_by = "parent"\n')
        deep = tmp_path / "a" / "b"
        deep.mkdir(parents=True)
        settings = CfgSettings.from_cli(start=deep)
        assert settings.config_path == (tmp_path / "cfgset.toml").resolve()
        assert settings.setters.set_by == "parent"

    def test_explicit_config_path(self, tmp_path: Path) -> None:
        custom = tmp_path / "custom" / "my.toml"
        custom.parent.mkdir()
        custom.write_text('[registry]\nfilename = "Custom"\n')
        settings = CfgSettings.from_cli(config_path=str(custom), start=tmp_path)
        assert settings.registry.filename == "Custom"
        assert settings.config_path == custom

    def test_invalid_toml(self, tmp_path: Path) -> None:
        (tmp_path / "cfgset.toml").write_text("[registry\n")
        with pytest.raises(click.ClickException, match="Invalid TOML"):
            CfgSettings.from_cli(start=tmp_path)


class TestCliFlagsAndEnv:
    def test_cli_flags_override(self, tmp_path: Path) -> None:
        settings = CfgSettings.from_cli(start=tmp_path, json_output=True, quiet=True)
        assert settings.json_output is True
        assert settings.quiet is True

    def test_env_var_override(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CFGSET_VERBOSE", "true")
        assert CfgSettings.from_cli(start=tmp_path).verbose is True

    def test_nested_env_beats_toml(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        (tmp_path / "cfgset.toml").write_text('[setters]\nset_by = "toml"\n')
        monkeypatch.setenv("CFGSET_SETTERS__SET_BY", "env")
        assert CfgSettings.from_cli(start=tmp_path).setters.set_by == "env"


class TestFindConfig:
    def test_env_var(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        config = tmp_path / "elsewhere.toml"
        config.write_text("")
        monkeypatch.setenv("CFGSET_CONFIG", str(config))
        assert find_config(tmp_path / "unrelated") == config

    def test_env_var_missing_file(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CFGSET_CONFIG", str(tmp_path / "missing.toml"))
        assert find_config(tmp_path) is None
