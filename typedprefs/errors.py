"""
Errors — Exceptions raised by typedprefs

Conversion failures are never exceptions: a value that cannot be converted
reads as None. Only stores, configuration and the default context raise.
"""


class PreferencesError(Exception):
    """Base class for all typedprefs errors."""


class StoreError(PreferencesError):
    """
    Raised when a backing store holds content it cannot use.

    Covers malformed YAML/JSON files, a top level that is not a mapping,
    and values the file format cannot represent. The original parser or
    encoder error is chained as __cause__.
    """

    def __init__(self, message: str, path=None):
        self.path = path
        self.message = f"{message} ({path})" if path else message
        super().__init__(self.message)


class NotConfiguredError(PreferencesError):
    """Raised when the default preference context is used before setup()."""

    def __init__(self):
        super().__init__(
            "No default preference context. Call typedprefs.context.setup() first."
        )


class ConfigError(PreferencesError):
    """Raised when a store cannot be built from configuration."""
