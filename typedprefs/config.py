"""
Configuration — Which store backs the default preference context

Config hierarchy (highest to lowest priority):
  1. Environment variables
  2. Project config (.typedprefs/config.yaml)
  3. User config (~/.typedprefs/config.yaml)
  4. Defaults

Environment variables:
  TYPEDPREFS_STORE_BACKEND   memory | yaml | json
  TYPEDPREFS_STORE_PATH      file for the yaml/json backends
  TYPEDPREFS_NAMESPACE       dotted namespace every key is nested under
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .core.stores import (
    DictStore, JsonFileStore, MutableStore, NamespacedStore, YamlFileStore,
)
from .errors import ConfigError

logger = logging.getLogger(__name__)

BACKENDS = ("memory", "yaml", "json")
DEFAULT_BACKEND = "yaml"
DEFAULT_STORE_FILES = {
    "yaml": "preferences.yaml",
    "json": "preferences.json",
}


@dataclass
class StoreConfig:
    """Backing store selection."""
    backend: str = DEFAULT_BACKEND
    path: Optional[str] = None  # None = default file in the project config dir
    namespace: Optional[str] = None

    def validate(self) -> Optional[str]:
        """Validate config. Returns error message or None if valid."""
        if self.backend not in BACKENDS:
            return f"Unknown backend '{self.backend}'. Valid: {', '.join(BACKENDS)}"
        if self.namespace is not None and not self.namespace.strip("."):
            return "Namespace must contain at least one name"
        return None


@dataclass
class DisplayConfig:
    """CLI display preferences."""
    format: str = "plain"  # "plain" | "yaml"

    def validate(self) -> Optional[str]:
        """Validate config. Returns error message or None if valid."""
        valid_formats = ("plain", "yaml")
        if self.format not in valid_formats:
            return f"Unknown format '{self.format}'. Valid: {', '.join(valid_formats)}"
        return None


@dataclass
class Config:
    """Application configuration."""
    store: StoreConfig = field(default_factory=StoreConfig)
    display: DisplayConfig = field(default_factory=DisplayConfig)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "store": {
                "backend": self.store.backend,
                "path": self.store.path,
                "namespace": self.store.namespace,
            },
            "display": {
                "format": self.display.format,
            },
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Config':
        """Create from dictionary."""
        store_data = data.get("store") or {}
        display_data = data.get("display") or {}

        return cls(
            store=StoreConfig(
                backend=store_data.get("backend", DEFAULT_BACKEND),
                path=store_data.get("path"),
                namespace=store_data.get("namespace"),
            ),
            display=DisplayConfig(
                format=display_data.get("format", "plain"),
            ),
        )

    def validate(self) -> Optional[str]:
        """First error across all sections, or None."""
        return self.store.validate() or self.display.validate()


class ConfigManager:
    """
    Manages configuration loading and persistence.

    Hierarchy:
      1. Environment
      2. Project config (.typedprefs/config.yaml)
      3. User config (~/.typedprefs/config.yaml)
      4. Defaults
    """

    USER_CONFIG_DIR = Path.home() / ".typedprefs"
    USER_CONFIG_FILE = USER_CONFIG_DIR / "config.yaml"
    PROJECT_CONFIG_DIR = ".typedprefs"
    PROJECT_CONFIG_FILE = "config.yaml"

    SETTINGS = {
        "store": ("backend", "path", "namespace"),
        "display": ("format",),
    }

    def __init__(self, project_dir: Optional[Path] = None):
        self.project_dir = Path(project_dir) if project_dir else Path.cwd()
        self._config: Optional[Config] = None

    @property
    def project_config_dir(self) -> Path:
        return self.project_dir / self.PROJECT_CONFIG_DIR

    @property
    def project_config_path(self) -> Path:
        return self.project_config_dir / self.PROJECT_CONFIG_FILE

    @property
    def user_config_path(self) -> Path:
        return self.USER_CONFIG_FILE

    def _read_layer(self, path: Path) -> Dict[str, Any]:
        if not path.exists():
            return {}
        try:
            with open(path) as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            logger.warning("Ignoring unreadable config %s: %s", path, e)
            return {}
        if not isinstance(data, dict):
            logger.warning("Ignoring config %s: top level is not a mapping", path)
            return {}
        return data

    def load(self) -> Config:
        """Load configuration from all sources."""
        if self._config is not None:
            return self._config

        config_data: Dict[str, Any] = {}

        # Layer 1: User config
        config_data = self._merge(config_data, self._read_layer(self.user_config_path))

        # Layer 2: Project config (higher priority)
        config_data = self._merge(config_data, self._read_layer(self.project_config_path))

        # Layer 3: Environment overrides
        if os.environ.get("TYPEDPREFS_STORE_BACKEND"):
            config_data.setdefault("store", {})["backend"] = os.environ["TYPEDPREFS_STORE_BACKEND"]
        if os.environ.get("TYPEDPREFS_STORE_PATH"):
            config_data.setdefault("store", {})["path"] = os.environ["TYPEDPREFS_STORE_PATH"]
        if os.environ.get("TYPEDPREFS_NAMESPACE"):
            config_data.setdefault("store", {})["namespace"] = os.environ["TYPEDPREFS_NAMESPACE"]

        self._config = Config.from_dict(config_data)
        return self._config

    def _save(self, path: Path, config: Config):
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, 'w') as f:
            yaml.dump(config.to_dict(), f, default_flow_style=False)
        self._config = config

    def save_project(self, config: Config):
        """Save configuration to project config file."""
        self._save(self.project_config_path, config)

    def save_user(self, config: Config):
        """Save configuration to user config file."""
        self._save(self.user_config_path, config)

    def set(self, key: str, value: str, scope: str = "project") -> Optional[str]:
        """
        Set a configuration value.

        Args:
            key: Dot-separated key (e.g., "store.backend")
            value: Value to set ("" or "none" clears optional settings)
            scope: "project" or "user"

        Returns:
            Error message or None if successful
        """
        parts = key.split(".")
        if len(parts) != 2:
            return f"Invalid key format: {key}. Use 'section.setting' (e.g., 'store.backend')"

        section, setting = parts
        if section not in self.SETTINGS:
            return f"Unknown section: {section}. Valid: {', '.join(self.SETTINGS)}"
        if setting not in self.SETTINGS[section]:
            valid = ", ".join(self.SETTINGS[section])
            return f"Unknown {section} setting: {setting}. Valid: {valid}"

        config = Config.from_dict(self.load().to_dict())
        target = getattr(config, section)
        if setting in ("path", "namespace") and value.lower() in ("", "none"):
            setattr(target, setting, None)
        else:
            setattr(target, setting, value)

        error = target.validate()
        if error:
            return error

        if scope == "project":
            self.save_project(config)
        else:
            self.save_user(config)
        return None

    def get(self, key: str) -> Optional[str]:
        """Get a configuration value."""
        parts = key.split(".")
        if len(parts) != 2:
            return None

        section, setting = parts
        if setting not in self.SETTINGS.get(section, ()):
            return None

        value = getattr(getattr(self.load(), section), setting)
        return None if value is None else str(value)

    def store_path(self, config: Optional[Config] = None) -> Optional[Path]:
        """File backing the store, resolved against the project directory."""
        config = config or self.load()
        if config.store.backend not in DEFAULT_STORE_FILES:
            return None
        if config.store.path:
            path = Path(config.store.path).expanduser()
            return path if path.is_absolute() else self.project_dir / path
        return self.project_config_dir / DEFAULT_STORE_FILES[config.store.backend]

    def _merge(self, base: Dict, override: Dict) -> Dict:
        """Deep merge two dicts, override wins."""
        result = base.copy()
        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._merge(result[key], value)
            else:
                result[key] = value
        return result

    def display(self) -> str:
        """Format config for display."""
        config = self.load()
        store_path = self.store_path(config)

        lines = [
            "Configuration:",
            "",
            "Store:",
            f"  Backend: {config.store.backend}",
            f"  Path: {store_path if store_path else '(in memory)'}",
            f"  Namespace: {config.store.namespace or '(none)'}",
            "",
            "Display:",
            f"  Format: {config.display.format}",
            "",
            "Config files:",
            f"  User: {self.user_config_path}",
            f"  Project: {self.project_config_path}",
        ]
        return "\n".join(lines)


def build_store(config: Config, project_dir: Optional[Path] = None) -> MutableStore:
    """Create the store described by config."""
    error = config.store.validate()
    if error:
        raise ConfigError(error)

    manager = ConfigManager(project_dir)
    backend = config.store.backend
    if backend == "memory":
        store: MutableStore = DictStore()
    elif backend == "yaml":
        store = YamlFileStore(manager.store_path(config))
    else:
        store = JsonFileStore(manager.store_path(config))

    if config.store.namespace:
        store = NamespacedStore(store, config.store.namespace)
    logger.debug("Built %r from configuration", store)
    return store


# Convenience function
def get_config(project_dir: Optional[Path] = None) -> Config:
    """Load configuration for a project."""
    return ConfigManager(project_dir).load()
