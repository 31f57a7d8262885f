"""
Preference — Typed views over a backing store

A preference binds (store, key, transformation) and reads through the
transformation on every access. It holds no value of its own: two
preferences over the same key agree only because they read the same store.

- ReadOnlyPreference: value, has_value, is_empty
- MutablePreference: adds set/clear, change callbacks and derivations
  (did_set, apply, transform, ensure, when_nil)

Derivations never change the receiver. Each returns a new preference with
its own transformation, usually over the same store and key.

Usage:
    store = DictStore()
    retries = MutablePreference(store, "retries", transformation=INTEGER)
    retries.set(3)
    safe = retries.when_nil(5)      # reads 5 while "retries" is unset
"""

import logging
from typing import Any, Callable, Generic, Optional, Type, TypeVar

from .core.keys import KeyLike, PreferenceKey, as_key
from .core.stores import MutableStore, RawStore
from .core.transformation import IDENTITY, Transformation, smart_compose

logger = logging.getLogger(__name__)

T = TypeVar("T")
U = TypeVar("U")

DidSetCallback = Callable[[Optional[T], Optional[T]], None]


def is_none(value: Any) -> bool:
    """Predicate for when_nil()."""
    return value is None


class ReadOnlyPreference(Generic[T]):
    """
    Lazily evaluated, typed read view of one store key.

    Constructing a preference never touches the store.

    Args:
        store: RawStore to read from
        key: PreferenceKey or dotted name
        transformation: raw -> typed conversion (IDENTITY by default)
        value_type: if given, values that are not instances of it read as None
    """

    def __init__(self, store: RawStore, key: KeyLike,
                 transformation: Transformation = IDENTITY,
                 value_type: Optional[Type[T]] = None):
        self.store = store
        self.key: PreferenceKey = as_key(key)
        # Not safe to reassign while other threads read
        self.transformation = transformation
        self.value_type = value_type

    def _cast(self, value: Any) -> Optional[T]:
        if value is None or self.value_type is None:
            return value
        if isinstance(value, self.value_type):
            return value
        return None

    @property
    def value(self) -> Optional[T]:
        """Current value, recomputed from the store on every access."""
        return self._cast(self.transformation.get(self.key, self.store))

    def get(self) -> Optional[T]:
        return self.value

    @property
    def has_value(self) -> bool:
        """True if the store holds the key, whether or not it converts."""
        return self.store.exists(self.key)

    @property
    def is_empty(self) -> bool:
        return self.value is None

    def __repr__(self) -> str:
        return (f"{type(self).__name__}(key={self.key.full_name!r}, "
                f"transformation={self.transformation!r})")


class MutablePreference(ReadOnlyPreference[T]):
    """
    Read/write view of one store key.

    Requires a MutableStore; a read-only store is rejected here rather
    than at the first write.

    The optional on_change callback receives (new, old) after each
    successful set() or clear(). Both values are read back through the
    transformation, so the callback sees what a later read would see.
    A store error during the write propagates and skips the callback.
    """

    def __init__(self, store: MutableStore, key: KeyLike,
                 transformation: Transformation = IDENTITY,
                 value_type: Optional[Type[T]] = None,
                 on_change: Optional[DidSetCallback] = None):
        if not isinstance(store, MutableStore):
            raise TypeError(
                f"MutablePreference needs a MutableStore, got {type(store).__name__}"
            )
        super().__init__(store, key, transformation, value_type)
        self.on_change = on_change

    @property
    def value(self) -> Optional[T]:
        return self._cast(self.transformation.get(self.key, self.store))

    @value.setter
    def value(self, new_value: Optional[T]) -> None:
        self.set(new_value)

    def set(self, new_value: Optional[T]) -> None:
        """Write new_value through the transformation. None deletes the key."""
        self._notify_did_set(
            lambda: self.transformation.set(self.key, new_value, self.store)
        )
        logger.debug("Set preference %s", self.key)

    def clear(self) -> None:
        """Remove the key from the store."""
        self._notify_did_set(lambda: self.store.delete(self.key))
        logger.debug("Cleared preference %s", self.key)

    def _notify_did_set(self, change: Callable[[], None]) -> None:
        callback = self.on_change
        old = self.value if callback is not None else None
        change()
        if callback is not None:
            callback(self.value, old)

    # -------------------------------------------------------------------------
    # Derivations
    # -------------------------------------------------------------------------

    def did_set(self, callback: DidSetCallback) -> 'MutablePreference[T]':
        """New preference over the same key that calls callback after changes."""
        return MutablePreference(self.store, self.key, self.transformation,
                                 self.value_type, on_change=callback)

    def apply(self, fn: Callable[[Optional[T]], Optional[T]]) -> None:
        """
        Replace the value with fn(current value).

        Not atomic: a concurrent writer between the read and the write
        loses its update.
        """
        self.set(fn(self.value))

    def transform(self, fn: Callable[[Optional[T]], Optional[U]],
                  transformation: Transformation = IDENTITY,
                  key: Optional[KeyLike] = None,
                  value_type: Optional[Type[U]] = None) -> 'MutablePreference[U]':
        """
        Migrate the value to a new type, returning the retyped preference.

        fn(current value) is computed once and written through a new
        preference built from transformation, over the same store and, unless
        key is given, the same key. With a shared key this overwrites the
        stored value in place.
        """
        new_pref: MutablePreference[U] = MutablePreference(
            self.store, self.key if key is None else key, transformation, value_type
        )
        new_pref.set(fn(self.value))
        return new_pref

    def ensure(self, when: Callable[[Optional[T]], bool], default: T) -> 'MutablePreference[T]':
        """
        New preference that reads default whenever when(value) is true.

        when() sees the transformed value, or None for an absent key. With
        value_type set, a value of another type skips when() and reads as
        None. Only reads are affected: the stored value is never rewritten,
        and writes through the new preference behave as on this one.
        """
        value_type = self.value_type

        def substitute(value):
            if value is not None and value_type is not None and not isinstance(value, value_type):
                return value
            return default if when(value) else value

        defaulting = Transformation.keyed(forward=substitute, name="ensure")
        return MutablePreference(self.store, self.key,
                                 smart_compose(self.transformation, defaulting),
                                 self.value_type)

    def when_nil(self, default: T) -> 'MutablePreference[T]':
        """New preference that reads default while the value is None."""
        return self.ensure(is_none, default)


def operation(pref_a: ReadOnlyPreference[T], pref_b: ReadOnlyPreference[T],
              combine: Callable[[T, T], T]) -> Optional[T]:
    """combine(a, b) if both preferences have a value, else None."""
    a = pref_a.value
    if a is None:
        return None
    b = pref_b.value
    if b is None:
        return None
    return combine(a, b)


# =============================================================================
# Store helpers
# =============================================================================

def preference(store: RawStore, key: KeyLike,
               transformation: Transformation = IDENTITY,
               value_type: Optional[Type[T]] = None) -> ReadOnlyPreference[T]:
    """Read-only preference for key in store."""
    return ReadOnlyPreference(store, key, transformation, value_type)


def mutable_preference(store: MutableStore, key: KeyLike,
                       transformation: Transformation = IDENTITY,
                       value_type: Optional[Type[T]] = None) -> MutablePreference[T]:
    """Mutable preference for key in store."""
    return MutablePreference(store, key, transformation, value_type)


def operation_on(store: RawStore, key_a: KeyLike, key_b: KeyLike,
                 combine: Callable[[Any, Any], Any],
                 transformation: Transformation = IDENTITY) -> Any:
    """operation() over two keys of the same store."""
    return operation(preference(store, key_a, transformation),
                     preference(store, key_b, transformation),
                     combine)
