"""Tests for the portable value model."""

import math
import uuid
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal
from enum import Enum

from sqlscope.database.values import (
    INT64_MAX,
    NULL,
    Value,
    ValueKind,
    coerce_native,
    parse_timestamp,
    to_utc,
)


class Colour(Enum):
    RED = "red"


class TestValueConstructors:
    """Test the tagged Value constructors."""

    def test_integer_in_range(self):
        value = Value.integer(42)
        assert value.kind is ValueKind.INTEGER
        assert value.value == 42

    def test_integer_overflow_becomes_text(self):
        """Values outside signed 64 bits keep their digits as text."""
        value = Value.integer(INT64_MAX + 1)
        assert value.kind is ValueKind.TEXT
        assert value.value == str(INT64_MAX + 1)

    def test_null_is_singleton(self):
        assert Value.null() is NULL
        assert NULL.is_null

    def test_timestamp_is_normalized_to_utc(self):
        eastern = timezone(timedelta(hours=-5))
        value = Value.timestamp(datetime(2024, 1, 1, 7, 0, tzinfo=eastern))
        assert value.value == datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


class TestToJson:
    """Test JSON rendering of values."""

    def test_blob_renders_as_byte_list(self):
        assert Value.blob(b"\x00\x01\xff").to_json() == [0, 1, 255]

    def test_timestamp_renders_iso(self):
        value = Value.timestamp(datetime(2024, 3, 1, 12, 30))
        assert value.to_json() == "2024-03-01T12:30:00+00:00"

    def test_non_finite_float_renders_as_text(self):
        assert Value.real(math.inf).to_json() == "inf"
        assert Value.real(math.nan).to_json() == "nan"

    def test_scalars_pass_through(self):
        assert Value.integer(3).to_json() == 3
        assert Value.text("x").to_json() == "x"
        assert Value.boolean(True).to_json() is True
        assert NULL.to_json() is None


class TestCoerceNative:
    """Test coercion of driver objects into values."""

    def test_none(self):
        assert coerce_native(None) is NULL

    def test_bool_before_int(self):
        """bool is an int subclass but must stay boolean."""
        assert coerce_native(True) == Value(ValueKind.BOOLEAN, True)

    def test_int_and_float(self):
        assert coerce_native(7) == Value(ValueKind.INTEGER, 7)
        assert coerce_native(1.5) == Value(ValueKind.FLOAT, 1.5)

    def test_decimal_becomes_float(self):
        assert coerce_native(Decimal("12.50")) == Value(ValueKind.FLOAT, 12.5)

    def test_decimal_nan(self):
        value = coerce_native(Decimal("NaN"))
        assert value.kind is ValueKind.FLOAT
        assert math.isnan(value.value)

    def test_bytes_like(self):
        assert coerce_native(bytearray(b"ab")) == Value(ValueKind.BLOB, b"ab")
        assert coerce_native(memoryview(b"ab")) == Value(ValueKind.BLOB, b"ab")

    def test_date_is_midnight_utc(self):
        value = coerce_native(date(2023, 5, 17))
        assert value.kind is ValueKind.TIMESTAMP
        assert value.value == datetime(2023, 5, 17, tzinfo=timezone.utc)

    def test_time_of_day_and_interval_are_text(self):
        assert coerce_native(time(13, 5)) == Value(ValueKind.TEXT, "13:05:00")
        assert coerce_native(timedelta(days=1, seconds=5)) == Value(ValueKind.TEXT, "1 day, 0:00:05")

    def test_uuid_and_enum_are_text(self):
        ident = uuid.UUID("12345678-1234-5678-1234-567812345678")
        assert coerce_native(ident) == Value(ValueKind.TEXT, str(ident))
        assert coerce_native(Colour.RED) == Value(ValueKind.TEXT, "red")

    def test_structured_values_become_json_text(self):
        assert coerce_native([1, 2, 3]) == Value(ValueKind.TEXT, "[1,2,3]")
        assert coerce_native({"a": 1}) == Value(ValueKind.TEXT, '{"a":1}')

    def test_set_becomes_sorted_list(self):
        assert coerce_native({"b", "a"}) == Value(ValueKind.TEXT, "a,b")

    def test_unknown_object_is_text(self):
        class Thing:
            def __str__(self):
                return "thing"

        assert coerce_native(Thing()) == Value(ValueKind.TEXT, "thing")


class TestTimestamps:
    """Test timestamp parsing and normalization."""

    def test_naive_datetime_is_taken_as_utc(self):
        assert to_utc(datetime(2024, 1, 1)).tzinfo is timezone.utc

    def test_parse_with_zulu_suffix(self):
        assert parse_timestamp("2024-01-02T03:04:05Z") == datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)

    def test_parse_applies_zone_to_naive_text(self):
        plus_two = timezone(timedelta(hours=2))
        parsed = parse_timestamp("2024-01-02 10:00:00", tz=plus_two)
        assert parsed == datetime(2024, 1, 2, 8, 0, tzinfo=timezone.utc)

    def test_parse_date_only(self):
        assert parse_timestamp("2024-01-02") == datetime(2024, 1, 2, tzinfo=timezone.utc)

    def test_parse_garbage_returns_none(self):
        assert parse_timestamp("not a date") is None
