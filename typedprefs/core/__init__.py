"""
Core — Keys, store contracts, transformations and converters

Everything a preference is built from. Nothing in core depends on the
preference layer above it.
"""

from .keys import PreferenceKey, as_key
from .stores import RawStore, MutableStore, DictStore
from .transformation import Transformation, TransformationKind, IDENTITY, compose, smart_compose

__all__ = [
    'PreferenceKey', 'as_key',
    'RawStore', 'MutableStore', 'DictStore',
    'Transformation', 'TransformationKind', 'IDENTITY', 'compose', 'smart_compose',
]
