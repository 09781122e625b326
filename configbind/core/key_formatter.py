"""Canonical entry keys for configuration fields."""

from configbind.errors import InvalidArgumentError


class KeyFormatter:
    """
    Builds entry keys as ``{TypeName}.{FieldName}``, trimmed and lower-cased.

    The key is the join between Save and Get and between backends, so it must
    not depend on locale or process; str.lower() is locale-independent.
    """

    def get_key(self, config_type: type, field_name: str) -> str:
        """
        Get the formatted key for a type and field name.

        Args:
            config_type: Configuration class
            field_name: Field name on that class

        Returns:
            Normalized key

        Raises:
            InvalidArgumentError: If config_type is None or field_name is blank
        """
        if config_type is None:
            raise InvalidArgumentError("Configuration type must be provided.")
        if field_name is None or not field_name.strip():
            raise InvalidArgumentError("Field name must be provided.")

        return self.normalize(f"{config_type.__name__}.{field_name}")

    def normalize(self, key: str) -> str:
        """Trim and lower-case a key. Empty string stays empty."""
        if key is None:
            raise InvalidArgumentError("Key must not be None.")
        return key.strip().lower()
