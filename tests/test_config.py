"""
Tests for Config — Store selection and the configuration hierarchy

These tests validate:
- Section validation
- Config hierarchy (env > project > user > defaults)
- set/get round trips and error messages
- build_store for each backend
"""

import pytest

from typedprefs.config import (
    BACKENDS, DEFAULT_BACKEND, Config, ConfigManager, DisplayConfig, StoreConfig,
    build_store, get_config,
)
from typedprefs.core.stores import DictStore, JsonFileStore, NamespacedStore, YamlFileStore
from typedprefs.errors import ConfigError


class TestStoreConfig:
    """Store section validation."""

    def test_defaults(self):
        """Default backend is the YAML file store."""
        config = StoreConfig()
        assert config.backend == DEFAULT_BACKEND == "yaml"
        assert config.path is None
        assert config.validate() is None

    def test_unknown_backend(self):
        """Unknown backends are reported."""
        error = StoreConfig(backend="sqlite").validate()
        assert error is not None
        assert "Unknown backend" in error

    def test_blank_namespace(self):
        """A namespace of only dots is invalid."""
        assert StoreConfig(namespace="..").validate() is not None

    def test_all_backends_valid(self):
        """Every listed backend passes validation."""
        for backend in BACKENDS:
            assert StoreConfig(backend=backend).validate() is None

    def test_display_format(self):
        """Display format is checked."""
        assert DisplayConfig(format="yaml").validate() is None
        assert "Unknown format" in DisplayConfig(format="xml").validate()


class TestConfigSerialization:
    """to_dict / from_dict."""

    def test_round_trip(self):
        """from_dict(to_dict()) preserves settings."""
        config = Config(store=StoreConfig(backend="json", path="p.json", namespace="app"),
                        display=DisplayConfig(format="yaml"))
        restored = Config.from_dict(config.to_dict())
        assert restored == config

    def test_from_partial_dict(self):
        """Missing sections fall back to defaults."""
        config = Config.from_dict({"store": {"backend": "memory"}})
        assert config.store.backend == "memory"
        assert config.display.format == "plain"

    def test_from_null_sections(self):
        """Empty YAML sections load as defaults."""
        config = Config.from_dict({"store": None})
        assert config.store.backend == DEFAULT_BACKEND


class TestConfigManager:
    """Configuration loading and saving."""

    def test_load_defaults(self, isolated_config):
        """Loads defaults when no config files exist."""
        config = ConfigManager(isolated_config).load()
        assert config.store.backend == DEFAULT_BACKEND

    def test_save_and_load_project(self, isolated_config):
        """Saves and loads project config."""
        ConfigManager(isolated_config).save_project(Config(store=StoreConfig(backend="json")))

        loaded = ConfigManager(isolated_config).load()
        assert loaded.store.backend == "json"

    def test_project_overrides_user(self, isolated_config):
        """Project config takes priority over user config."""
        manager = ConfigManager(isolated_config)
        manager.user_config_path.parent.mkdir(parents=True)
        manager.user_config_path.write_text("store:\n  backend: memory\n  namespace: user\n")
        manager.project_config_path.parent.mkdir(parents=True)
        manager.project_config_path.write_text("store:\n  backend: json\n")

        config = manager.load()

        assert config.store.backend == "json"
        assert config.store.namespace == "user"

    def test_environment_overrides_files(self, isolated_config, monkeypatch):
        """Environment variables override config files."""
        manager = ConfigManager(isolated_config)
        manager.project_config_path.parent.mkdir(parents=True)
        manager.project_config_path.write_text("store:\n  backend: json\n")
        monkeypatch.setenv("TYPEDPREFS_STORE_BACKEND", "memory")
        monkeypatch.setenv("TYPEDPREFS_NAMESPACE", "ci")

        config = manager.load()

        assert config.store.backend == "memory"
        assert config.store.namespace == "ci"

    def test_malformed_file_ignored(self, isolated_config):
        """Unreadable config files fall back to lower layers."""
        manager = ConfigManager(isolated_config)
        manager.project_config_path.parent.mkdir(parents=True)
        manager.project_config_path.write_text("store: [broken\n")

        assert manager.load().store.backend == DEFAULT_BACKEND

    def test_non_mapping_file_ignored(self, isolated_config):
        """A config file that is not a mapping is ignored."""
        manager = ConfigManager(isolated_config)
        manager.project_config_path.parent.mkdir(parents=True)
        manager.project_config_path.write_text("- store\n")

        assert manager.load().store.backend == DEFAULT_BACKEND

    def test_set_valid_config(self, isolated_config):
        """Can set valid configuration values."""
        manager = ConfigManager(isolated_config)
        assert manager.set("store.backend", "json") is None
        assert ConfigManager(isolated_config).load().store.backend == "json"

    def test_set_user_scope(self, isolated_config):
        """User scope writes the user config file."""
        manager = ConfigManager(isolated_config)
        assert manager.set("display.format", "yaml", scope="user") is None
        assert manager.user_config_path.exists()
        assert not manager.project_config_path.exists()

    def test_set_invalid_backend(self, isolated_config):
        """Set returns error for invalid backend and saves nothing."""
        manager = ConfigManager(isolated_config)
        error = manager.set("store.backend", "sqlite")
        assert "Unknown backend" in error
        assert not manager.project_config_path.exists()
        assert manager.load().store.backend == DEFAULT_BACKEND

    def test_set_invalid_key_format(self, isolated_config):
        """Set returns error for invalid key format."""
        error = ConfigManager(isolated_config).set("invalid", "value")
        assert "Invalid key format" in error

    def test_set_unknown_section_and_setting(self, isolated_config):
        """Unknown sections and settings are reported."""
        manager = ConfigManager(isolated_config)
        assert "Unknown section" in manager.set("llm.provider", "x")
        assert "Unknown store setting" in manager.set("store.color", "x")

    def test_set_none_clears_optional(self, isolated_config):
        """'none' clears path and namespace."""
        manager = ConfigManager(isolated_config)
        manager.set("store.namespace", "app")
        manager.set("store.namespace", "none")
        assert manager.get("store.namespace") is None

    def test_get_config_value(self, isolated_config):
        """Can get configuration values."""
        manager = ConfigManager(isolated_config)
        manager.set("store.backend", "memory")
        assert manager.get("store.backend") == "memory"
        assert manager.get("store.unknown") is None
        assert manager.get("nodots") is None

    def test_store_path_defaults_to_project_dir(self, isolated_config):
        """File backends default to a file in .typedprefs/."""
        manager = ConfigManager(isolated_config)
        assert manager.store_path() == isolated_config / ".typedprefs" / "preferences.yaml"

    def test_store_path_relative_and_memory(self, isolated_config):
        """Relative paths resolve against the project; memory has no path."""
        manager = ConfigManager(isolated_config)
        config = Config(store=StoreConfig(backend="json", path="data/p.json"))
        assert manager.store_path(config) == isolated_config / "data" / "p.json"
        assert manager.store_path(Config(store=StoreConfig(backend="memory"))) is None

    def test_display(self, isolated_config):
        """display() lists settings and file locations."""
        text = ConfigManager(isolated_config).display()
        assert "Backend: yaml" in text
        assert "preferences.yaml" in text
        assert "Project:" in text

    def test_get_config(self, isolated_config):
        """Convenience loader matches the manager."""
        assert get_config(isolated_config) == ConfigManager(isolated_config).load()


class TestBuildStore:
    """Store construction from configuration."""

    def test_memory(self, isolated_config):
        """memory builds a DictStore."""
        assert isinstance(build_store(Config(store=StoreConfig(backend="memory"))), DictStore)

    def test_yaml(self, isolated_config):
        """yaml builds a YamlFileStore at the resolved path."""
        store = build_store(Config(), isolated_config)
        assert isinstance(store, YamlFileStore)
        assert store.path == isolated_config / ".typedprefs" / "preferences.yaml"

    def test_json_with_namespace(self, isolated_config, tmp_path):
        """A namespace wraps the store."""
        config = Config(store=StoreConfig(backend="json", path=str(tmp_path / "p.json"),
                                          namespace="app.ui"))
        store = build_store(config, isolated_config)

        assert isinstance(store, NamespacedStore)
        assert isinstance(store.store, JsonFileStore)
        assert store.namespace == ("app", "ui")

    def test_invalid_backend_raises(self, isolated_config):
        """An invalid configuration is a ConfigError."""
        with pytest.raises(ConfigError, match="Unknown backend"):
            build_store(Config(store=StoreConfig(backend="sqlite")))
