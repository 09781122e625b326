"""Tests for JSON serialization of field values."""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum

import pytest

from configbind.core.serializer import JsonSerializer
from configbind.errors import SerializationError
from tests.models import NestedData


class Color(Enum):
    RED = "red"
    BLUE = "blue"


@dataclass
class DetailedData(NestedData):
    extra: str = "x"


class TestSerialize:
    """Test cases for JsonSerializer.serialize."""

    @pytest.fixture
    def serializer(self) -> JsonSerializer:
        return JsonSerializer()

    def test_none_is_empty_string(self, serializer: JsonSerializer) -> None:
        assert serializer.serialize(None) == ""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (321, "321"),
            (9876543210, "9876543210"),
            (True, "true"),
            ("Leanwork", '"Leanwork"'),
            (["sql", "integration"], '["sql","integration"]'),
            (Color.BLUE, '"blue"'),
        ],
    )
    def test_compact_json(self, serializer: JsonSerializer, value: object, expected: str) -> None:
        assert serializer.serialize(value) == expected

    def test_dataclass(self, serializer: JsonSerializer) -> None:
        text = serializer.serialize(NestedData(level=9, description="From SQL"))
        assert text == '{"level":9,"description":"From SQL"}'

    def test_datetime_iso_format(self, serializer: JsonSerializer) -> None:
        assert serializer.serialize(datetime(2024, 10, 1)) == '"2024-10-01T00:00:00"'

    def test_unicode_kept(self, serializer: JsonSerializer) -> None:
        assert serializer.deserialize(serializer.serialize("Привет"), str) == "Привет"


class TestDeserialize:
    """Test cases for JsonSerializer.deserialize."""

    @pytest.fixture
    def serializer(self) -> JsonSerializer:
        return JsonSerializer()

    @pytest.mark.parametrize(
        ("target_type", "expected"),
        [
            (int, 0),
            (float, 0.0),
            (bool, False),
            (Decimal, Decimal(0)),
            (str, None),
            (list[str], None),
            (NestedData, None),
            (Color, None),
        ],
    )
    @pytest.mark.parametrize("text", ["", None])
    def test_empty_payload_gives_default(
        self,
        serializer: JsonSerializer,
        text: str | None,
        target_type: object,
        expected: object,
    ) -> None:
        assert serializer.deserialize(text, target_type) == expected

    def test_nested_dataclass(self, serializer: JsonSerializer) -> None:
        value = serializer.deserialize('{"level":9,"description":"From SQL"}', NestedData | None)
        assert value == NestedData(level=9, description="From SQL")

    def test_optional_datetime(self, serializer: JsonSerializer) -> None:
        value = serializer.deserialize('"2024-10-01T00:00:00"', datetime | None)
        assert value == datetime(2024, 10, 1)

    def test_list(self, serializer: JsonSerializer) -> None:
        assert serializer.deserialize('["a","b"]', list[str]) == ["a", "b"]

    def test_enum(self, serializer: JsonSerializer) -> None:
        assert serializer.deserialize('"red"', Color) is Color.RED

    def test_mismatched_payload_raises(self, serializer: JsonSerializer) -> None:
        with pytest.raises(SerializationError) as exc_info:
            serializer.deserialize('"abc"', int)
        assert exc_info.value.target_type is int

    def test_malformed_json_raises(self, serializer: JsonSerializer) -> None:
        with pytest.raises(SerializationError):
            serializer.deserialize("{not json", NestedData)

    def test_subclass_serialized_by_runtime_type(self, serializer: JsonSerializer) -> None:
        text = serializer.serialize(DetailedData(level=1, description="sub"))
        assert '"extra":"x"' in text
        assert serializer.deserialize(text, NestedData) == NestedData(level=1, description="sub")
