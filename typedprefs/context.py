"""
Context — Explicit default store for an application

Preferences always take their store as an argument. Applications that
want one process-wide default set it up once at startup and pass the
context (or read it back with get_context()) where preferences are built:

    ctx = setup(DictStore())            # or setup(config) / setup()
    retries = ctx.mutable_preference("retries", INTEGER)
    ...
    teardown()

The host owns the context's lifecycle. Nothing here creates a default on
first use: get_context() before setup() raises NotConfiguredError.
"""

import logging
import threading
from pathlib import Path
from typing import Any, Callable, Optional, Union

from .config import Config, build_store, get_config
from .core.keys import KeyLike
from .core.stores import MutableStore, RawStore
from .core.transformation import IDENTITY, Transformation
from .errors import NotConfiguredError
from .preference import MutablePreference, ReadOnlyPreference, operation

logger = logging.getLogger(__name__)


class PreferenceContext:
    """A default store plus factories for preferences over it."""

    def __init__(self, store: MutableStore):
        if not isinstance(store, MutableStore):
            raise TypeError(f"PreferenceContext needs a MutableStore, got {type(store).__name__}")
        self.store = store

    def preference(self, key: KeyLike, transformation: Transformation = IDENTITY,
                   value_type: Optional[type] = None) -> ReadOnlyPreference:
        return ReadOnlyPreference(self.store, key, transformation, value_type)

    def mutable_preference(self, key: KeyLike, transformation: Transformation = IDENTITY,
                           value_type: Optional[type] = None) -> MutablePreference:
        return MutablePreference(self.store, key, transformation, value_type)

    def operation(self, key_a: KeyLike, key_b: KeyLike, combine: Callable[[Any, Any], Any],
                  transformation: Transformation = IDENTITY) -> Any:
        """operation() over two keys of the context's store."""
        return operation(self.preference(key_a, transformation),
                         self.preference(key_b, transformation),
                         combine)

    def __enter__(self) -> 'PreferenceContext':
        return self

    def __exit__(self, exc_type, exc, tb):
        if _default is self:
            teardown()

    def __repr__(self) -> str:
        return f"PreferenceContext({self.store!r})"


_default: Optional[PreferenceContext] = None
_lock = threading.Lock()


def setup(source: Union[MutableStore, Config, PreferenceContext, None] = None,
          project_dir: Optional[Path] = None) -> PreferenceContext:
    """
    Install the process-wide default context.

    Args:
        source: a store, a Config to build one from, or a ready context.
                None loads configuration for project_dir.
        project_dir: project directory for config lookup and relative paths

    Returns:
        The installed context (also returned by get_context())
    """
    global _default

    if isinstance(source, PreferenceContext):
        context = source
    elif isinstance(source, RawStore):
        context = PreferenceContext(source)
    else:
        config = source if source is not None else get_config(project_dir)
        context = PreferenceContext(build_store(config, project_dir))

    with _lock:
        if _default is not None and _default is not context:
            logger.warning("Replacing default preference context %r", _default)
        _default = context
    logger.debug("Default preference context: %r", context)
    return context


def get_context() -> PreferenceContext:
    """The context installed by setup()."""
    context = _default
    if context is None:
        raise NotConfiguredError()
    return context


def is_configured() -> bool:
    return _default is not None


def teardown() -> None:
    """Forget the default context. Safe to call when none is installed."""
    global _default
    with _lock:
        _default = None
