"""Tests for settings loading and config path resolution."""

import os
from unittest.mock import patch

import pytest
import yaml

import quire.config as config_mod
from quire.config import (
    clear_settings_cache,
    get_config_path,
    get_settings,
    interpolate_env_vars,
    set_config_path,
)


class TestConfigPath:
    def setup_method(self):
        config_mod._config_path_override = None

    def teardown_method(self):
        config_mod._config_path_override = None

    def test_override_is_returned(self, tmp_path):
        custom = tmp_path / "custom.yaml"
        set_config_path(custom)
        assert get_config_path() == custom

    def test_environment_specific_file(self):
        with patch.dict(os.environ, {"QUIRE_ENV": "testing"}, clear=False):
            path = get_config_path()
        assert path.name == "app.testing.yaml"

    def test_production_uses_app_yaml(self):
        with patch.dict(os.environ, {"QUIRE_ENV": "production"}, clear=False):
            path = get_config_path()
        assert path.name == "app.yaml"


class TestInterpolation:
    def test_replaces_env_vars_recursively(self):
        with patch.dict(os.environ, {"DB_HOST": "db.internal"}, clear=False):
            result = interpolate_env_vars({"db": {"url": "postgresql+asyncpg://$DB_HOST/quire"}, "list": ["$DB_HOST"]})
        assert result == {"db": {"url": "postgresql+asyncpg://db.internal/quire"}, "list": ["db.internal"]}

    def test_missing_env_var_raises(self):
        with pytest.raises(ValueError, match="QUIRE_MISSING_VAR"):
            interpolate_env_vars("$QUIRE_MISSING_VAR")


class TestGetSettings:
    def test_defaults_without_config_file(self):
        settings = get_settings()
        assert settings.secret_key == "test-secret-key-for-quire"
        assert settings.ordering.max_pins == 8
        assert settings.ordering.lock_scope is True
        assert settings.db.url.startswith("sqlite+aiosqlite")

    def test_yaml_sections_are_merged(self, temp_app_yaml):
        set_config_path(temp_app_yaml({
            "debug": True,
            "db": {"url": "sqlite+aiosqlite:///./other.db"},
            "ordering": {"max_pins": 3, "lock_scope": False},
        }))
        clear_settings_cache()

        settings = get_settings()

        assert settings.debug is True
        assert settings.db.url == "sqlite+aiosqlite:///./other.db"
        assert settings.ordering.max_pins == 3
        assert settings.ordering.lock_scope is False

    def test_settings_are_cached(self):
        assert get_settings() is get_settings()

    def test_environment_key_sets_env_var(self, tmp_path, monkeypatch):
        config_file = tmp_path / "app.yaml"
        config_file.write_text(yaml.safe_dump({"environment": "staging"}))
        set_config_path(config_file)
        clear_settings_cache()
        monkeypatch.delenv("QUIRE_ENV", raising=False)

        get_settings()

        assert os.environ["QUIRE_ENV"] == "staging"
        monkeypatch.delenv("QUIRE_ENV")
