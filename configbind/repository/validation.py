"""Input validation shared by every store.

Identifiers that end up inside a query or schema object are checked against
an allow-list before any connection is made; keys, scopes and values are
size-checked before any query is built.
"""

import re

from configbind.errors import IdentifierValidationError, InvalidArgumentError, SizeLimitError
from configbind.logger.logger import get_logger
from configbind.logger.types import Category, param

MAX_KEY_LENGTH = 256
MAX_SCOPE_LENGTH = 128
MAX_VALUE_LENGTH = 100 * 1024 * 1024

POSTGRES_IDENTIFIER_MAX = 63
MYSQL_IDENTIFIER_MAX = 64
SQLSERVER_IDENTIFIER_MAX = 128
MONGO_COLLECTION_MAX = 120
PREFIX_MAX = 64

_IDENTIFIER_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")


def validate_identifier(name: str, kind: str, max_length: int) -> str:
    """
    Check a table/schema/collection/prefix name against the allow-list.

    Args:
        name: Identifier to check
        kind: What the identifier names, used in the error message
        max_length: Backend-specific length ceiling

    Returns:
        The identifier unchanged

    Raises:
        IdentifierValidationError: If the name is blank, too long or has
            characters outside [A-Za-z0-9_] or starts with a digit
    """
    if name is None or not name.strip():
        raise IdentifierValidationError(kind, str(name), "must not be empty")

    if len(name) > max_length:
        get_logger().with_category(Category.SECURITY).warn(
            "Rejected identifier: too long",
            param("kind", kind),
            param("length", len(name)),
        )
        raise IdentifierValidationError(kind, name, f"longer than {max_length} characters")

    if not _IDENTIFIER_RE.fullmatch(name):
        get_logger().with_category(Category.SECURITY).warn(
            "Rejected identifier: bad characters",
            param("kind", kind),
        )
        raise IdentifierValidationError(
            kind, name, "only letters, digits and underscore are allowed, not starting with a digit"
        )

    return name


def validate_key(key: str) -> str:
    """Reject blank and oversized keys."""
    if key is None or not key.strip():
        raise InvalidArgumentError("Key must be provided.")
    if len(key) > MAX_KEY_LENGTH:
        raise SizeLimitError("Configuration key", MAX_KEY_LENGTH, key[:32])
    return key


def validate_scope(scope: str | None) -> str | None:
    """Reject oversized scopes. None passes."""
    if scope is not None and len(scope) > MAX_SCOPE_LENGTH:
        raise SizeLimitError("Scope", MAX_SCOPE_LENGTH)
    return scope


def validate_value(value: str | None, key: str) -> str:
    """Reject oversized values; None becomes empty string."""
    if value is None:
        return ""
    if len(value) > MAX_VALUE_LENGTH:
        raise SizeLimitError("Configuration value", MAX_VALUE_LENGTH, key)
    return value


def normalize_scope(scope: str | None) -> str | None:
    """Blank scopes are the global partition."""
    if scope is None or not scope.strip():
        return None
    return scope
