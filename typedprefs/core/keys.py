"""
PreferenceKey — Identifier for a slot in a backing store

A key is a name plus an optional namespace path. Stores see only the
full dotted name; two keys are equal when their full names are equal.

Usage:
    PreferenceKey("retries")                        # "retries"
    PreferenceKey("retries", namespace=("network",))  # "network.retries"
    PreferenceKey.parse("network.retries")          # same as above
"""

from dataclasses import dataclass, field
from typing import Tuple, Union

SEPARATOR = "."


@dataclass(frozen=True)
class PreferenceKey:
    """Immutable, hashable identifier for a stored entry."""
    name: str = field(compare=False)
    namespace: Tuple[str, ...] = field(default=(), compare=False)
    full_name: str = field(init=False, repr=False)

    def __post_init__(self):
        if not self.name:
            raise ValueError("Preference key name must not be empty")
        namespace = self.namespace
        if isinstance(namespace, str):
            namespace = tuple(p for p in namespace.split(SEPARATOR) if p)
        else:
            namespace = tuple(namespace)
        object.__setattr__(self, "namespace", namespace)
        object.__setattr__(self, "full_name", SEPARATOR.join(namespace + (self.name,)))

    @classmethod
    def parse(cls, path: str) -> 'PreferenceKey':
        """Split a dotted path into namespace and name."""
        parts = [p for p in path.split(SEPARATOR) if p]
        if not parts:
            raise ValueError(f"Invalid preference key: {path!r}")
        return cls(parts[-1], namespace=tuple(parts[:-1]))

    def child(self, name: str) -> 'PreferenceKey':
        """Key for `name` nested under this key."""
        return PreferenceKey(name, namespace=self.namespace + (self.name,))

    def __str__(self) -> str:
        return self.full_name


KeyLike = Union[PreferenceKey, str]


def as_key(key: KeyLike) -> PreferenceKey:
    """Coerce a string or key to a PreferenceKey."""
    if isinstance(key, PreferenceKey):
        return key
    if isinstance(key, str):
        return PreferenceKey.parse(key)
    raise TypeError(f"Expected PreferenceKey or str, got {type(key).__name__}")
