"""
Converters — Ready-made KEYED transformations for common value types

Stores such as EnvironmentStore only hold strings, and YAML/JSON files
hold whatever the last writer put there. These transformations coerce
raw values on read and produce the store-friendly form on write.

Every converter returns None for None and for values it cannot convert;
a ValueError or TypeError inside a converter is a conversion failure,
never an exception for the caller.
"""

import logging
from datetime import datetime
from enum import Enum
from functools import wraps
from pathlib import Path
from typing import Any, Callable, Optional, Type

from .transformation import Transformation

logger = logging.getLogger(__name__)

TRUE_STRINGS = ("true", "1", "yes", "on")
FALSE_STRINGS = ("false", "0", "no", "off")


def _guarded(name: str, fn: Callable[[Any], Any]) -> Callable[[Any], Any]:
    """Wrap fn so None passes through and conversion errors become None."""
    @wraps(fn)
    def convert(value):
        if value is None:
            return None
        try:
            return fn(value)
        except (ValueError, TypeError) as e:
            logger.debug("%s conversion failed for %r: %s", name, value, e)
            return None
    return convert


def converter(name: str, forward: Callable[[Any], Any],
              backward: Optional[Callable[[Any], Any]] = None) -> Transformation:
    """Build a KEYED transformation from unguarded conversion functions."""
    return Transformation.keyed(
        forward=_guarded(name, forward),
        backward=_guarded(name, backward) if backward else None,
        name=name,
    )


# =============================================================================
# Scalars
# =============================================================================

def _to_int(raw: Any) -> int:
    if isinstance(raw, bool):
        raise TypeError("bool is not an integer preference")
    if isinstance(raw, int):
        return raw
    if isinstance(raw, float):
        if not raw.is_integer():
            raise ValueError("float has a fractional part")
        return int(raw)
    if isinstance(raw, str):
        return int(raw.strip())
    raise TypeError(f"cannot read {type(raw).__name__} as int")


def _to_float(raw: Any) -> float:
    if isinstance(raw, bool):
        raise TypeError("bool is not a float preference")
    if isinstance(raw, (int, float)):
        return float(raw)
    if isinstance(raw, str):
        return float(raw.strip())
    raise TypeError(f"cannot read {type(raw).__name__} as float")


def _to_bool(raw: Any) -> bool:
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, int) and raw in (0, 1):
        return bool(raw)
    if isinstance(raw, str):
        text = raw.strip().lower()
        if text in TRUE_STRINGS:
            return True
        if text in FALSE_STRINGS:
            return False
    raise ValueError(f"not a boolean: {raw!r}")


def _to_str(raw: Any) -> str:
    if isinstance(raw, bool):
        return "true" if raw else "false"
    if isinstance(raw, (str, int, float)):
        return str(raw)
    raise TypeError(f"cannot read {type(raw).__name__} as str")


INTEGER = converter("int", _to_int, _to_int)
FLOAT = converter("float", _to_float, _to_float)
BOOLEAN = converter("bool", _to_bool, _to_bool)
STRING = converter("str", _to_str, _to_str)


def _to_datetime(raw: Any) -> datetime:
    if isinstance(raw, datetime):
        return raw
    if isinstance(raw, str):
        return datetime.fromisoformat(raw.strip())
    raise TypeError(f"cannot read {type(raw).__name__} as datetime")


def _from_datetime(value: Any) -> str:
    if not isinstance(value, datetime):
        raise TypeError(f"expected datetime, got {type(value).__name__}")
    return value.isoformat()


ISO_DATETIME = converter("datetime", _to_datetime, _from_datetime)


def _to_path(raw: Any) -> Path:
    if isinstance(raw, Path):
        return raw
    if isinstance(raw, str) and raw:
        return Path(raw)
    raise TypeError(f"cannot read {raw!r} as path")


PATH = converter("path", _to_path, lambda value: str(_to_path(value)))


def enum_of(enum_cls: Type[Enum]) -> Transformation:
    """Store enum members by value; read back by value, then by member name."""
    def to_member(raw):
        if isinstance(raw, enum_cls):
            return raw
        try:
            return enum_cls(raw)
        except ValueError:
            if isinstance(raw, str) and raw in enum_cls.__members__:
                return enum_cls[raw]
            raise

    def to_raw(value):
        return to_member(value).value

    return converter(f"enum:{enum_cls.__name__}", to_member, to_raw)


TYPE_CONVERTERS = {
    "str": STRING,
    "int": INTEGER,
    "float": FLOAT,
    "bool": BOOLEAN,
}


def for_type_name(type_name: str) -> Transformation:
    """Converter for a CLI type name (str, int, float, bool)."""
    try:
        return TYPE_CONVERTERS[type_name]
    except KeyError:
        valid = ", ".join(TYPE_CONVERTERS)
        raise ValueError(f"Unknown type '{type_name}'. Valid: {valid}") from None


# =============================================================================
# Guards
# =============================================================================

def clamped(low: Any = None, high: Any = None) -> Transformation:
    """Clip values into [low, high] on read and write. None bounds are open."""
    if low is not None and high is not None and low > high:
        raise ValueError(f"low ({low}) must not exceed high ({high})")

    def clip(value):
        if low is not None and value < low:
            return low
        if high is not None and value > high:
            return high
        return value

    return converter(f"clamped({low}, {high})", clip, clip)


def one_of(*choices: Any) -> Transformation:
    """
    Only let listed values through.

    A stored value outside choices reads as None; writing one deletes the
    key, as any write whose raw form is None does.
    """
    allowed = tuple(choices)

    def check(value):
        if value not in allowed:
            raise ValueError(f"{value!r} not in {allowed!r}")
        return value

    return converter(f"one_of{allowed!r}", check, check)
