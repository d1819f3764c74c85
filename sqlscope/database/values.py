"""Portable value model.

Every cell that leaves an adapter is a :class:`Value` of exactly one
:class:`ValueKind`. Drivers hand back whatever Python objects they like;
:func:`coerce_native` folds them into the seven kinds below. Coercion never
raises: anything unrecognized becomes text.

Known limitation: arbitrary-precision decimals are converted to 64-bit floats
and may lose precision.
"""

import json
import math
import uuid
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

INT64_MIN = -(2 ** 63)
INT64_MAX = 2 ** 63 - 1


class ValueKind(str, Enum):
    """Closed set of portable scalar kinds."""
    NULL = "null"
    INTEGER = "integer"
    FLOAT = "float"
    TEXT = "text"
    BOOLEAN = "boolean"
    BLOB = "blob"
    TIMESTAMP = "timestamp"


@dataclass(frozen=True)
class Value:
    """A tagged scalar."""
    kind: ValueKind
    value: Any = None

    @classmethod
    def null(cls) -> "Value":
        return NULL

    @classmethod
    def integer(cls, value: int) -> "Value":
        """Integer if it fits in signed 64 bits, decimal text otherwise."""
        if INT64_MIN <= value <= INT64_MAX:
            return cls(ValueKind.INTEGER, int(value))
        return cls(ValueKind.TEXT, str(value))

    @classmethod
    def real(cls, value: float) -> "Value":
        return cls(ValueKind.FLOAT, float(value))

    @classmethod
    def text(cls, value: str) -> "Value":
        return cls(ValueKind.TEXT, value)

    @classmethod
    def boolean(cls, value: bool) -> "Value":
        return cls(ValueKind.BOOLEAN, bool(value))

    @classmethod
    def blob(cls, value: bytes) -> "Value":
        return cls(ValueKind.BLOB, bytes(value))

    @classmethod
    def timestamp(cls, value: datetime) -> "Value":
        return cls(ValueKind.TIMESTAMP, to_utc(value))

    @property
    def is_null(self) -> bool:
        return self.kind is ValueKind.NULL

    def to_json(self) -> Any:
        """Render as a JSON-ready Python object."""
        if self.kind is ValueKind.BLOB:
            return list(self.value)
        if self.kind is ValueKind.TIMESTAMP:
            return self.value.isoformat()
        if self.kind is ValueKind.FLOAT and not math.isfinite(self.value):
            # JSON has no NaN/Infinity literals
            return str(self.value)
        return self.value


NULL = Value(ValueKind.NULL, None)


def to_utc(value: datetime) -> datetime:
    """Normalize a datetime to UTC; naive values are taken as UTC."""
    if value.tzinfo is None or value.tzinfo.utcoffset(value) is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def json_text(value: Any) -> str:
    """Compact JSON text for structured values."""
    return json.dumps(value, separators=(",", ":"), default=str, ensure_ascii=False)


def coerce_native(value: Any) -> Value:
    """Coerce a Python object produced by a driver into a Value."""
    if value is None:
        return NULL
    if isinstance(value, Value):
        return value
    # bool is a subclass of int
    if isinstance(value, bool):
        return Value.boolean(value)
    if isinstance(value, int):
        return Value.integer(value)
    if isinstance(value, float):
        return Value.real(value)
    if isinstance(value, Decimal):
        return _decimal_value(value)
    if isinstance(value, str):
        return Value.text(value)
    if isinstance(value, (bytes, bytearray, memoryview)):
        return Value.blob(bytes(value))
    if isinstance(value, datetime):
        return Value.timestamp(value)
    if isinstance(value, date):
        return Value.timestamp(datetime(value.year, value.month, value.day, tzinfo=timezone.utc))
    if isinstance(value, time):
        return Value.text(value.isoformat())
    if isinstance(value, timedelta):
        return Value.text(str(value))
    if isinstance(value, uuid.UUID):
        return Value.text(str(value))
    if isinstance(value, Enum):
        return Value.text(str(value.value))
    if isinstance(value, (list, tuple, dict)):
        return Value.text(json_text(value))
    if isinstance(value, (set, frozenset)):
        return Value.text(",".join(sorted(str(v) for v in value)))
    return Value.text(str(value))


def _decimal_value(value: Decimal) -> Value:
    if value.is_nan():
        return Value.real(math.nan)
    if value.is_infinite():
        return Value.real(math.inf if value > 0 else -math.inf)
    return Value.real(float(value))


def parse_timestamp(text: str, tz: Optional[Any] = None) -> Optional[datetime]:
    """Parse an ISO-like timestamp string.

    Returns None when the text is not a timestamp. ``tz`` is applied to naive
    results before normalizing to UTC.
    """
    candidate = text.strip().replace("Z", "+00:00")
    try:
        parsed = datetime.fromisoformat(candidate)
    except ValueError:
        try:
            parsed_date = date.fromisoformat(candidate)
        except ValueError:
            return None
        parsed = datetime(parsed_date.year, parsed_date.month, parsed_date.day)
    if parsed.tzinfo is None and tz is not None:
        parsed = parsed.replace(tzinfo=tz)
    return to_utc(parsed)
