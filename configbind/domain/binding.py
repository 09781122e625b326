"""Field descriptor table for bound configuration types.

A bound type is a plain class (usually a dataclass) constructible without
arguments. Its eligible fields are resolved once per type and memoised, so
Get/Save never walk annotations on the hot path.
"""

import dataclasses
import functools
import typing
from dataclasses import dataclass
from typing import Any, ClassVar

from configbind.errors import InvalidArgumentError


@dataclass(frozen=True)
class FieldDescriptor:
    """One bindable field: its name and declared type."""

    name: str
    type_hint: Any

    def get(self, instance: object) -> Any:
        return getattr(instance, self.name)

    def set(self, instance: object, value: Any) -> None:
        setattr(instance, self.name, value)


def bindable_fields(config_type: type) -> tuple[FieldDescriptor, ...]:
    """
    Return the readable and writable public fields of a configuration type.

    Args:
        config_type: Configuration class

    Returns:
        Field descriptors in declaration order

    Raises:
        InvalidArgumentError: If config_type is None, not a class or a frozen
            dataclass
    """
    if config_type is None:
        raise InvalidArgumentError("Configuration type must be provided.")
    if not isinstance(config_type, type):
        raise InvalidArgumentError(f"Configuration type must be a class, got {config_type!r}.")
    return _resolve_fields(config_type)


@functools.lru_cache(maxsize=None)
def _resolve_fields(config_type: type) -> tuple[FieldDescriptor, ...]:
    hints = typing.get_type_hints(config_type)

    if dataclasses.is_dataclass(config_type):
        # frozen-датакласс нельзя заполнить при чтении
        if config_type.__dataclass_params__.frozen:  # type: ignore[attr-defined]
            raise InvalidArgumentError(
                f"Configuration type {config_type.__name__} is a frozen dataclass; "
                "its fields cannot be bound."
            )
        return tuple(
            FieldDescriptor(f.name, hints.get(f.name, f.type))
            for f in dataclasses.fields(config_type)
            if _is_public(f.name)
        )

    descriptors: list[FieldDescriptor] = []
    seen: set[str] = set()

    for name, hint in hints.items():
        if not _is_public(name) or _is_class_var(hint):
            continue
        attr = _class_attribute(config_type, name)
        if isinstance(attr, property) and attr.fset is None:
            continue
        descriptors.append(FieldDescriptor(name, hint))
        seen.add(name)

    # Свойства с сеттером без аннотации на уровне класса
    for klass in reversed(config_type.__mro__):
        for name, attr in vars(klass).items():
            if name in seen or not _is_public(name):
                continue
            if isinstance(attr, property) and attr.fget is not None and attr.fset is not None:
                hint = typing.get_type_hints(attr.fget).get("return", Any)
                descriptors.append(FieldDescriptor(name, hint))
                seen.add(name)

    return tuple(descriptors)


def _is_public(name: str) -> bool:
    return not name.startswith("_")


def _is_class_var(hint: Any) -> bool:
    return hint is ClassVar or typing.get_origin(hint) is ClassVar


def _class_attribute(config_type: type, name: str) -> Any:
    for klass in config_type.__mro__:
        if name in vars(klass):
            return vars(klass)[name]
    return None
