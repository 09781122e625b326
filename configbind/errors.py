"""Error types raised by configbind.

Backend driver exceptions are never wrapped: they propagate unchanged so the
caller sees the driver's own detail.
"""


class ConfigBindError(Exception):
    """Base class for configbind errors."""


class InvalidArgumentError(ConfigBindError, ValueError):
    """Absent or malformed argument (key, type, instance). Raised before any I/O."""


class IdentifierValidationError(InvalidArgumentError):
    """Table/collection/prefix name failed the allow-list check."""

    def __init__(self, kind: str, identifier: str, reason: str) -> None:
        self.kind = kind
        self.identifier = identifier
        super().__init__(f"Invalid identifier for {kind} '{identifier}': {reason}")


class SizeLimitError(InvalidArgumentError):
    """Key, scope or value exceeds the allowed size."""

    def __init__(self, what: str, limit: int, key: str | None = None) -> None:
        self.what = what
        self.limit = limit
        self.key = key
        detail = f" (key '{key}')" if key else ""
        super().__init__(f"{what} exceeds maximum allowed length of {limit}{detail}")


class SerializationError(ConfigBindError):
    """Stored payload could not be decoded into the field type."""

    def __init__(self, target_type: object, message: str) -> None:
        self.target_type = target_type
        super().__init__(f"Cannot deserialize value as {target_type!r}: {message}")


class StoreNotConfiguredError(ConfigBindError):
    """Builder was asked to build a manager without a store."""
