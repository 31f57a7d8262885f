"""
typedprefs — Typed preferences over an untyped key-value store

Declare a preference as a key plus a transformation, then read and write
typed values while the store keeps its raw form. Derived preferences
(ensure, when_nil, transform) are new views; the original is untouched.

Usage:
    from typedprefs import DictStore, MutablePreference, INTEGER, operation

    store = DictStore()
    retries = MutablePreference(store, "retries", INTEGER)
    timeout = MutablePreference(store, "timeout", INTEGER)
    retries.set(3)
    operation(retries, timeout, lambda a, b: a + b)   # None until timeout is set
"""

__version__ = "0.1.0"

# Core layer
from .core.keys import PreferenceKey, as_key
from .core.stores import (
    RawStore, MutableStore, DictStore, FileStore, YamlFileStore, JsonFileStore,
    EnvironmentStore, NamespacedStore, LayeredStore,
)
from .core.transformation import (
    Transformation, TransformationKind, IDENTITY, compose, smart_compose,
)
from .core.converters import (
    INTEGER, FLOAT, BOOLEAN, STRING, ISO_DATETIME, PATH, enum_of, clamped, one_of,
)

# Preferences
from .preference import (
    ReadOnlyPreference, MutablePreference, operation, operation_on,
    preference, mutable_preference, is_none,
)

# Errors
from .errors import PreferencesError, StoreError, NotConfiguredError, ConfigError

# Config and default context
from .config import Config, ConfigManager, get_config, build_store
from .context import PreferenceContext, setup, teardown, get_context

__all__ = [
    # Core
    'PreferenceKey', 'as_key',
    'RawStore', 'MutableStore', 'DictStore', 'FileStore', 'YamlFileStore', 'JsonFileStore',
    'EnvironmentStore', 'NamespacedStore', 'LayeredStore',
    'Transformation', 'TransformationKind', 'IDENTITY', 'compose', 'smart_compose',
    'INTEGER', 'FLOAT', 'BOOLEAN', 'STRING', 'ISO_DATETIME', 'PATH', 'enum_of', 'clamped', 'one_of',
    # Preferences
    'ReadOnlyPreference', 'MutablePreference', 'operation', 'operation_on',
    'preference', 'mutable_preference', 'is_none',
    # Errors
    'PreferencesError', 'StoreError', 'NotConfiguredError', 'ConfigError',
    # Config
    'Config', 'ConfigManager', 'get_config', 'build_store',
    'PreferenceContext', 'setup', 'teardown', 'get_context',
]
