"""JSON serialization of field values."""

import functools
from decimal import Decimal
from enum import Enum
from typing import Any

from pydantic import PydanticSchemaGenerationError, TypeAdapter, ValidationError

from configbind.errors import SerializationError

# Типы-значения: пустая строка превращается в нулевое значение, а не в None
_ZERO_DEFAULT_TYPES: tuple[type, ...] = (int, float, bool, complex, Decimal)


class JsonSerializer:
    """
    Converts field values to and from compact JSON text.

    Serialization uses the value's runtime type rather than the declared field
    type, so a subclass stored in a field typed as its base keeps its own fields.
    """

    def serialize(self, value: Any) -> str:
        """
        Serialize a value to JSON text.

        Args:
            value: Any supported value

        Returns:
            Empty string for None, JSON text otherwise
        """
        if value is None:
            return ""

        try:
            return _adapter(type(value)).dump_json(value).decode("utf-8")
        except PydanticSchemaGenerationError as e:
            raise SerializationError(type(value), str(e)) from e

    def deserialize(self, text: str | None, target_type: Any) -> Any:
        """
        Deserialize JSON text into target_type.

        Args:
            text: Stored payload
            target_type: Declared field type

        Returns:
            Decoded value; zero/False for numeric and boolean types and None
            for everything else when text is empty
        """
        if not text:
            return self.default_for(target_type)

        try:
            return _adapter(target_type).validate_json(text)
        except ValidationError as e:
            raise SerializationError(target_type, str(e)) from e
        except PydanticSchemaGenerationError as e:
            raise SerializationError(target_type, str(e)) from e

    @staticmethod
    def default_for(target_type: Any) -> Any:
        """Default value used when no payload is stored."""
        if (
            isinstance(target_type, type)
            and issubclass(target_type, _ZERO_DEFAULT_TYPES)
            and not issubclass(target_type, Enum)
        ):
            return target_type()
        return None


def _adapter(target_type: Any) -> TypeAdapter[Any]:
    try:
        return _cached_adapter(target_type)
    except TypeError:
        # Нехешируемые аннотации не кешируем
        return TypeAdapter(target_type)


@functools.lru_cache(maxsize=512)
def _cached_adapter(target_type: Any) -> TypeAdapter[Any]:
    return TypeAdapter(target_type)
