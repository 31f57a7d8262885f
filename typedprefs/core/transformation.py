"""
Transformation — Bidirectional conversion between stored and typed values

A transformation is one of three variants:
- IDENTITY: values pass through unchanged
- KEYED: a pair of plain functions (forward: raw -> value, backward: value -> raw)
- COMPOSED: two transformations chained, left on the store side, right on
  the value side

Reading runs forward functions from the store outward:
    compose(left, right).forward(raw) == right.forward(left.forward(raw))
Writing runs backward functions in the opposite order:
    compose(left, right).backward(v) == left.backward(right.backward(v))

A KEYED transformation with no function for a direction passes values
through in that direction. None always flows through the chain so a
forward function can react to absent values.

smart_compose() drops IDENTITY operands instead of wrapping them. It is
observably the same as compose(), with one node fewer per identity.

Usage:
    to_int = Transformation.keyed(forward=int_or_none, backward=str, name="int")
    pref = MutablePreference(store, "retries", transformation=to_int)
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional

from .keys import KeyLike


class TransformationKind(Enum):
    """Variant tag of a Transformation."""
    IDENTITY = "identity"
    KEYED = "keyed"
    COMPOSED = "composed"


Converter = Callable[[Any], Any]


@dataclass(frozen=True, eq=False)
class Transformation:
    """Tagged transformation variant. Build with keyed(), compose() or IDENTITY."""
    kind: TransformationKind
    forward_fn: Optional[Converter] = None
    backward_fn: Optional[Converter] = None
    left: Optional['Transformation'] = None
    right: Optional['Transformation'] = None
    name: str = ""

    @classmethod
    def keyed(cls, forward: Optional[Converter] = None,
              backward: Optional[Converter] = None,
              name: str = "") -> 'Transformation':
        """Transformation from plain functions. Functions should be pure."""
        return cls(TransformationKind.KEYED, forward_fn=forward, backward_fn=backward, name=name)

    @classmethod
    def composed(cls, left: 'Transformation', right: 'Transformation') -> 'Transformation':
        """COMPOSED node, left on the store side."""
        return cls(TransformationKind.COMPOSED, left=left, right=right)

    @property
    def is_identity(self) -> bool:
        return self.kind is TransformationKind.IDENTITY

    def forward(self, raw: Any) -> Any:
        """Convert a raw stored value (or None) to a typed value (or None)."""
        if self.kind is TransformationKind.IDENTITY:
            return raw
        if self.kind is TransformationKind.KEYED:
            if self.forward_fn is None:
                return raw
            return self.forward_fn(raw)
        return self.right.forward(self.left.forward(raw))

    def backward(self, value: Any) -> Any:
        """Convert a typed value (or None) to a raw value (or None)."""
        if self.kind is TransformationKind.IDENTITY:
            return value
        if self.kind is TransformationKind.KEYED:
            if self.backward_fn is None:
                return value
            return self.backward_fn(value)
        return self.left.backward(self.right.backward(value))

    def get(self, key: KeyLike, store) -> Any:
        """Read key from store and convert it."""
        return self.forward(store.raw_value(key))

    def set(self, key: KeyLike, value: Any, store) -> None:
        """
        Convert value and write it to store.

        Deletes key when value is None or converts to None. Store errors
        propagate to the caller.
        """
        raw = None if value is None else self.backward(value)
        if raw is None:
            store.delete(key)
        else:
            store.write(key, raw)

    def then(self, other: 'Transformation') -> 'Transformation':
        """This transformation followed (on reads) by other."""
        return smart_compose(self, other)

    def __repr__(self) -> str:
        if self.kind is TransformationKind.COMPOSED:
            return f"compose({self.left!r}, {self.right!r})"
        if self.name:
            return self.name
        return f"Transformation({self.kind.value})"


IDENTITY = Transformation(TransformationKind.IDENTITY, name="identity")


def compose(left: Transformation, right: Transformation) -> Transformation:
    """Chain two transformations, always wrapping."""
    return Transformation.composed(left, right)


def smart_compose(left: Transformation, right: Transformation) -> Transformation:
    """Chain two transformations, eliding IDENTITY operands."""
    if left.is_identity:
        return right
    if right.is_identity:
        return left
    return compose(left, right)
