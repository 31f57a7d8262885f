"""
Stores — Backing store capability contracts and concrete stores

Two capabilities:
- RawStore: read-only lookup (raw_value, exists, keys)
- MutableStore: RawStore plus write and delete

Preferences only ever talk to these contracts. The concrete stores below
are collaborators shipped for convenience:
- DictStore: in-memory mapping
- YamlFileStore / JsonFileStore: flat mapping persisted to a file
- EnvironmentStore: read-only view of prefixed environment variables
- NamespacedStore: key-prefixing proxy over another mutable store
- LayeredStore: read-through hierarchy, first layer holding the key wins

Each store call is individually thread-safe. Nothing here makes a
read-then-write sequence atomic.
"""

import json
import logging
import os
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

import yaml

from ..errors import StoreError
from .keys import KeyLike, PreferenceKey, as_key

logger = logging.getLogger(__name__)


class RawStore(ABC):
    """Read-only key-value lookup."""

    @abstractmethod
    def raw_value(self, key: KeyLike) -> Any:
        """Stored value for key, or None if absent."""

    @abstractmethod
    def exists(self, key: KeyLike) -> bool:
        """True if the store holds an entry for key."""

    @abstractmethod
    def keys(self) -> List[PreferenceKey]:
        """All keys currently held."""

    def __contains__(self, key: KeyLike) -> bool:
        return self.exists(key)


class MutableStore(RawStore):
    """RawStore that can also write and delete entries."""

    @abstractmethod
    def write(self, key: KeyLike, raw: Any) -> None:
        """Store raw at key. Writing None deletes the key."""

    @abstractmethod
    def delete(self, key: KeyLike) -> None:
        """Remove key. Deleting an absent key is a no-op."""


# =============================================================================
# In-memory
# =============================================================================

class DictStore(MutableStore):
    """Mutable store backed by a dict of full key names."""

    def __init__(self, data: Optional[Mapping[str, Any]] = None):
        self._lock = threading.Lock()
        self._data: Dict[str, Any] = {}
        for name, value in (data or {}).items():
            self._data[as_key(name).full_name] = value

    def raw_value(self, key: KeyLike) -> Any:
        with self._lock:
            return self._data.get(as_key(key).full_name)

    def exists(self, key: KeyLike) -> bool:
        with self._lock:
            return as_key(key).full_name in self._data

    def keys(self) -> List[PreferenceKey]:
        with self._lock:
            return [PreferenceKey.parse(name) for name in self._data]

    def write(self, key: KeyLike, raw: Any) -> None:
        if raw is None:
            self.delete(key)
            return
        with self._lock:
            self._data[as_key(key).full_name] = raw

    def delete(self, key: KeyLike) -> None:
        with self._lock:
            self._data.pop(as_key(key).full_name, None)

    def snapshot(self) -> Dict[str, Any]:
        """Copy of the current contents."""
        with self._lock:
            return dict(self._data)

    def __repr__(self) -> str:
        return f"DictStore({len(self._data)} keys)"


# =============================================================================
# File-backed
# =============================================================================

class FileStore(MutableStore):
    """
    Flat mapping of full key names persisted to a single file.

    The parsed file is cached together with its modification time and
    size; any access that finds either changed (another store or process
    wrote the file) re-reads it. Every write or delete rewrites the whole
    file before the cache is updated, so a failed save leaves the
    in-memory view untouched. A missing file reads as empty.
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        self._lock = threading.Lock()
        self._data: Optional[Dict[str, Any]] = None
        self._signature: Optional[Tuple[int, int]] = None

    @abstractmethod
    def _decode(self, text: str) -> Any:
        """Parse file text."""

    @abstractmethod
    def _encode(self, data: Dict[str, Any]) -> str:
        """Serialize the mapping to file text."""

    def _file_signature(self) -> Optional[Tuple[int, int]]:
        try:
            stat = self.path.stat()
        except FileNotFoundError:
            return None
        return stat.st_mtime_ns, stat.st_size

    def _load(self) -> Dict[str, Any]:
        signature = self._file_signature()
        if self._data is not None and signature == self._signature:
            return self._data

        if signature is None:
            self._data = {}
            self._signature = None
            return self._data

        text = self.path.read_text(encoding="utf-8")
        data = self._decode(text) if text.strip() else {}
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise StoreError("Top level of preference file must be a mapping", self.path)

        self._data = {str(name): value for name, value in data.items()}
        self._signature = signature
        logger.debug("Loaded %d preference(s) from %s", len(self._data), self.path)
        return self._data

    def _save(self, data: Dict[str, Any]) -> None:
        text = self._encode(data)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            f.write(text)
        self._data = data
        self._signature = self._file_signature()
        logger.debug("Saved %d preference(s) to %s", len(data), self.path)

    def reload(self) -> None:
        """Drop the cache so the next access re-reads the file."""
        with self._lock:
            self._data = None
            self._signature = None

    def raw_value(self, key: KeyLike) -> Any:
        with self._lock:
            return self._load().get(as_key(key).full_name)

    def exists(self, key: KeyLike) -> bool:
        with self._lock:
            return as_key(key).full_name in self._load()

    def keys(self) -> List[PreferenceKey]:
        with self._lock:
            return [PreferenceKey.parse(name) for name in self._load()]

    def write(self, key: KeyLike, raw: Any) -> None:
        if raw is None:
            self.delete(key)
            return
        with self._lock:
            data = dict(self._load())
            data[as_key(key).full_name] = raw
            self._save(data)

    def delete(self, key: KeyLike) -> None:
        name = as_key(key).full_name
        with self._lock:
            current = self._load()
            if name not in current:
                return
            data = dict(current)
            del data[name]
            self._save(data)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({str(self.path)!r})"


class YamlFileStore(FileStore):
    """FileStore persisted as YAML."""

    def _decode(self, text: str) -> Any:
        try:
            return yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise StoreError(f"Malformed YAML: {e}", self.path) from e

    def _encode(self, data: Dict[str, Any]) -> str:
        try:
            return yaml.safe_dump(data, default_flow_style=False, sort_keys=True)
        except yaml.YAMLError as e:
            raise StoreError(f"Value cannot be stored as YAML: {e}", self.path) from e


class JsonFileStore(FileStore):
    """FileStore persisted as JSON."""

    def _decode(self, text: str) -> Any:
        try:
            return json.loads(text)
        except json.JSONDecodeError as e:
            raise StoreError(f"Malformed JSON: {e}", self.path) from e

    def _encode(self, data: Dict[str, Any]) -> str:
        try:
            return json.dumps(data, indent=2, sort_keys=True)
        except (TypeError, ValueError) as e:
            raise StoreError(f"Value cannot be stored as JSON: {e}", self.path) from e


# =============================================================================
# Environment
# =============================================================================

ENV_PREFIX = "TYPEDPREFS_PREF_"
ENV_NAMESPACE_SEPARATOR = "__"


class EnvironmentStore(RawStore):
    """
    Read-only view of environment variables.

    Key "network.max_retries" maps to TYPEDPREFS_PREF_NETWORK__MAX_RETRIES.
    Values are always strings; pair with a converter to read other types.
    """

    def __init__(self, prefix: str = ENV_PREFIX, environ: Optional[Mapping[str, str]] = None):
        self.prefix = prefix
        self._environ = os.environ if environ is None else environ

    def variable_name(self, key: KeyLike) -> str:
        """Environment variable name for key."""
        key = as_key(key)
        parts = key.namespace + (key.name,)
        return self.prefix + ENV_NAMESPACE_SEPARATOR.join(p.upper() for p in parts)

    def raw_value(self, key: KeyLike) -> Any:
        return self._environ.get(self.variable_name(key))

    def exists(self, key: KeyLike) -> bool:
        return self.variable_name(key) in self._environ

    def keys(self) -> List[PreferenceKey]:
        result = []
        for variable in self._environ:
            if not variable.startswith(self.prefix) or variable == self.prefix:
                continue
            parts = variable[len(self.prefix):].lower().split(ENV_NAMESPACE_SEPARATOR)
            if all(parts):
                result.append(PreferenceKey(parts[-1], namespace=tuple(parts[:-1])))
        return result


# =============================================================================
# Composite stores
# =============================================================================

class NamespacedStore(MutableStore):
    """
    Proxy that nests every key under a namespace of another store.

    NamespacedStore(store, "ui").write("theme", "dark") writes "ui.theme".
    keys() lists only keys inside the namespace, relative to it.
    """

    def __init__(self, store: MutableStore, namespace: Iterable[str]):
        if not isinstance(store, MutableStore):
            raise TypeError(f"NamespacedStore needs a MutableStore, got {type(store).__name__}")
        if isinstance(namespace, str):
            namespace = [p for p in namespace.split(".") if p]
        self.store = store
        self.namespace = tuple(namespace)

    def _inner(self, key: KeyLike) -> PreferenceKey:
        key = as_key(key)
        return PreferenceKey(key.name, namespace=self.namespace + key.namespace)

    def raw_value(self, key: KeyLike) -> Any:
        return self.store.raw_value(self._inner(key))

    def exists(self, key: KeyLike) -> bool:
        return self.store.exists(self._inner(key))

    def keys(self) -> List[PreferenceKey]:
        depth = len(self.namespace)
        result = []
        for key in self.store.keys():
            path = key.namespace + (key.name,)
            if len(path) > depth and path[:depth] == self.namespace:
                result.append(PreferenceKey(key.name, namespace=path[depth:-1]))
        return result

    def write(self, key: KeyLike, raw: Any) -> None:
        self.store.write(self._inner(key), raw)

    def delete(self, key: KeyLike) -> None:
        self.store.delete(self._inner(key))


class LayeredStore(RawStore):
    """
    Read-through hierarchy of stores, highest priority first.

    A key resolves to the first layer that holds it, so a layer holding
    the key shadows every layer after it even if lower layers differ.
    """

    def __init__(self, layers: Iterable[RawStore]):
        self.layers: List[RawStore] = list(layers)
        if not self.layers:
            raise ValueError("LayeredStore needs at least one layer")

    def raw_value(self, key: KeyLike) -> Any:
        for layer in self.layers:
            if layer.exists(key):
                return layer.raw_value(key)
        return None

    def exists(self, key: KeyLike) -> bool:
        return any(layer.exists(key) for layer in self.layers)

    def keys(self) -> List[PreferenceKey]:
        seen = {}
        for layer in self.layers:
            for key in layer.keys():
                seen.setdefault(key, None)
        return list(seen)
