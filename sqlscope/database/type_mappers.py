"""Database-specific type mapping strategies.

Each mapper answers two questions for its engine: which :class:`ValueKind`
a declared column type maps to, and how a native driver object becomes a
:class:`Value`.
"""

import base64
import json
import re
from abc import ABC, abstractmethod
from datetime import timezone
from typing import Any, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .values import NULL, Value, ValueKind, coerce_native, json_text, parse_timestamp


class TypeMapper(ABC):
    """Abstract base class for database type mapping."""

    @abstractmethod
    def value_kind(self, db_type: str) -> ValueKind:
        """Value kind a declared database type maps to."""
        pass

    def to_value(self, raw: Any, db_type: Optional[str] = None) -> Value:
        """Convert a native driver value into a Value."""
        if raw is None:
            return NULL
        return coerce_native(raw)


class SQLiteTypeMapper(TypeMapper):
    """Type mapper for SQLite, following SQLite's column affinity rules."""

    def value_kind(self, db_type: str) -> ValueKind:
        type_upper = (db_type or "").upper()

        if "INT" in type_upper:
            return ValueKind.INTEGER
        elif any(t in type_upper for t in ["CHAR", "CLOB", "TEXT"]):
            return ValueKind.TEXT
        elif "BLOB" in type_upper or not type_upper:
            return ValueKind.BLOB
        elif any(t in type_upper for t in ["REAL", "FLOA", "DOUB"]):
            return ValueKind.FLOAT
        elif "BOOL" in type_upper:
            return ValueKind.BOOLEAN
        elif "DATE" in type_upper or "TIME" in type_upper:
            return ValueKind.TIMESTAMP
        return ValueKind.FLOAT


class LibSQLTypeMapper(SQLiteTypeMapper):
    """Type mapper for libSQL servers.

    Hrana encodes every cell as ``{"type": ..., "value": ...}``; 64-bit
    integers travel as strings and blobs as base64.
    """

    def to_value(self, raw: Any, db_type: Optional[str] = None) -> Value:
        if not isinstance(raw, dict) or "type" not in raw:
            return super().to_value(raw, db_type)

        kind = raw["type"]
        if kind == "null":
            return NULL
        elif kind == "integer":
            return Value.integer(int(raw["value"]))
        elif kind == "float":
            return Value.real(float(raw["value"]))
        elif kind == "text":
            return Value.text(raw["value"])
        elif kind == "blob":
            return Value.blob(base64.b64decode(raw.get("base64", "")))
        return Value.text(json_text(raw))


class DuckDBTypeMapper(TypeMapper):
    """Type mapper for DuckDB database types."""

    def value_kind(self, db_type: str) -> ValueKind:
        type_upper = (db_type or "").upper()

        # Nested types are rendered as JSON text
        if type_upper.endswith("[]") or type_upper.startswith(("STRUCT", "MAP", "LIST", "UNION")):
            return ValueKind.TEXT

        # INTERVAL would otherwise match INT
        if "INTERVAL" in type_upper:
            return ValueKind.TEXT

        # String types
        if any(t in type_upper for t in ["VARCHAR", "TEXT", "STRING", "CHAR", "UUID", "JSON", "ENUM"]):
            return ValueKind.TEXT

        # Huge integers may overflow into text at coercion time
        elif "INT" in type_upper:
            return ValueKind.INTEGER

        # Floating point types
        elif any(t in type_upper for t in ["DOUBLE", "FLOAT", "REAL", "NUMERIC", "DECIMAL"]):
            return ValueKind.FLOAT

        # Boolean
        elif any(t in type_upper for t in ["BOOLEAN", "BOOL"]):
            return ValueKind.BOOLEAN

        # Date/Time types
        elif type_upper == "DATE" or "TIMESTAMP" in type_upper:
            return ValueKind.TIMESTAMP
        elif type_upper.startswith("TIME"):
            return ValueKind.TEXT

        # Binary types
        elif "BLOB" in type_upper or "BYTEA" in type_upper or type_upper == "BIT":
            return ValueKind.BLOB

        return ValueKind.TEXT


class PostgresTypeMapper(TypeMapper):
    """Type mapper for PostgreSQL, driven by ``pg_type`` names."""

    INTEGER_TYPES = {"smallint", "integer", "bigint", "int2", "int4", "int8", "oid"}
    FLOAT_TYPES = {"real", "double precision", "float4", "float8", "numeric", "decimal", "money"}
    # pg_type OIDs reported in cursor.description
    TYPE_OIDS = {114: "json", 3802: "jsonb"}

    def type_name(self, type_code: Any) -> Optional[str]:
        return self.TYPE_OIDS.get(type_code)

    def value_kind(self, db_type: str) -> ValueKind:
        type_lower = (db_type or "").lower()
        base = type_lower.split("(")[0].strip()

        if type_lower.endswith("[]") or type_lower.startswith("_"):
            return ValueKind.TEXT
        elif base in self.INTEGER_TYPES:
            return ValueKind.INTEGER
        elif base in self.FLOAT_TYPES:
            return ValueKind.FLOAT
        elif base in ("boolean", "bool"):
            return ValueKind.BOOLEAN
        elif base == "bytea":
            return ValueKind.BLOB
        elif base == "date" or base.startswith("timestamp"):
            return ValueKind.TIMESTAMP
        return ValueKind.TEXT

    def to_value(self, raw: Any, db_type: Optional[str] = None) -> Value:
        if raw is not None and db_type in ("json", "jsonb"):
            return Value.text(json_text(raw))
        if isinstance(raw, (list, tuple)):
            return Value.text(self.array_literal(raw))
        if isinstance(raw, dict):
            return Value.text(json_text(raw))
        return super().to_value(raw, db_type)

    def array_literal(self, items) -> str:
        """Render a Python sequence as a PostgreSQL array literal, e.g. ``{1,2}``."""
        return "{" + ",".join(self._array_element(item) for item in items) + "}"

    def _array_element(self, item: Any) -> str:
        if item is None:
            return "NULL"
        if isinstance(item, (list, tuple)):
            return self.array_literal(item)
        if isinstance(item, bool):
            return "t" if item else "f"
        if isinstance(item, dict):
            item = json_text(item)
        text = str(item)
        if text == "" or re.search(r'[{},"\\\s]', text) or text.upper() == "NULL":
            escaped = text.replace("\\", "\\\\").replace('"', '\\"')
            return f'"{escaped}"'
        return text


class MySQLTypeMapper(TypeMapper):
    """Type mapper for MySQL and MariaDB ``information_schema.columns.data_type``."""

    def value_kind(self, db_type: str) -> ValueKind:
        type_lower = (db_type or "").lower()

        if type_lower in ("tinyint(1)", "bool", "boolean"):
            return ValueKind.BOOLEAN
        elif "int" in type_lower or type_lower == "year":
            return ValueKind.INTEGER
        elif any(t in type_lower for t in ["decimal", "numeric", "float", "double", "real"]):
            return ValueKind.FLOAT
        elif any(t in type_lower for t in ["blob", "binary", "bit"]):
            return ValueKind.BLOB
        elif type_lower in ("date", "datetime", "timestamp"):
            return ValueKind.TIMESTAMP
        return ValueKind.TEXT

    def to_value(self, raw: Any, db_type: Optional[str] = None) -> Value:
        if isinstance(raw, (set, frozenset)):
            return Value.text(",".join(sorted(str(v) for v in raw)))
        if isinstance(raw, str) and db_type and db_type.lower() == "json":
            try:
                return Value.text(json_text(json.loads(raw)))
            except ValueError:
                return Value.text(raw)
        return super().to_value(raw, db_type)


class ClickHouseTypeMapper(TypeMapper):
    """Type mapper for ClickHouse ``JSONCompact`` output.

    The HTTP interface sends 64-bit and wider integers as quoted strings and
    temporal values as text, so decoding has to follow the declared type.
    """

    WRAPPER = re.compile(r"^(Nullable|LowCardinality)\((.*)\)$")

    def unwrap(self, db_type: str) -> str:
        """Strip ``Nullable(...)`` and ``LowCardinality(...)`` wrappers."""
        current = (db_type or "").strip()
        match = self.WRAPPER.match(current)
        while match:
            current = match.group(2).strip()
            match = self.WRAPPER.match(current)
        return current

    def is_nullable(self, db_type: str) -> bool:
        """True for ``Nullable(T)``, also under ``LowCardinality(...)``."""
        current = (db_type or "").strip()
        while current.startswith("LowCardinality(") and current.endswith(")"):
            current = current[len("LowCardinality("):-1].strip()
        return current.startswith("Nullable(")

    def value_kind(self, db_type: str) -> ValueKind:
        base = self.unwrap(db_type)

        if base.startswith(("Int", "UInt")):
            return ValueKind.INTEGER
        elif base.startswith(("Float", "Decimal")):
            return ValueKind.FLOAT
        elif base == "Bool":
            return ValueKind.BOOLEAN
        elif base.startswith(("Date", "DateTime")):
            return ValueKind.TIMESTAMP
        return ValueKind.TEXT

    def to_value(self, raw: Any, db_type: Optional[str] = None) -> Value:
        if raw is None:
            return NULL
        if db_type is None:
            return super().to_value(raw)

        base = self.unwrap(db_type)
        try:
            if base.startswith(("Int", "UInt")):
                return Value.integer(int(raw))
            elif base.startswith(("Float", "Decimal")):
                return Value.real(float(raw))
            elif base == "Bool":
                return Value.boolean(raw if isinstance(raw, bool) else str(raw).lower() == "true")
            elif base.startswith("DateTime"):
                return self._datetime_value(str(raw), base)
            elif base.startswith("Date"):
                parsed = parse_timestamp(str(raw))
                return Value.timestamp(parsed) if parsed else Value.text(str(raw))
        except ValueError:
            return Value.text(str(raw))

        if isinstance(raw, (list, dict)):
            return Value.text(json_text(raw))
        return super().to_value(raw, db_type)

    def _datetime_value(self, text: str, base: str) -> Value:
        tz = self._zone(base)
        # DateTime64(9) carries nanoseconds, datetime keeps microseconds
        text = re.sub(r"(\.\d{6})\d+", r"\1", text)
        parsed = parse_timestamp(text, tz=tz or timezone.utc)
        if parsed is None:
            return Value.text(text)
        return Value.timestamp(parsed)

    def _zone(self, base: str):
        match = re.search(r"'([^']+)'", base)
        if not match:
            return None
        try:
            return ZoneInfo(match.group(1))
        except (ZoneInfoNotFoundError, ValueError):
            return None


class SnowflakeTypeMapper(TypeMapper):
    """Type mapper for Snowflake database types."""

    def value_kind(self, db_type: str) -> ValueKind:
        type_upper = (db_type or "").upper()

        if any(t in type_upper for t in ["VARCHAR", "TEXT", "STRING", "CHAR"]):
            return ValueKind.TEXT
        elif "NUMBER" in type_upper or "NUMERIC" in type_upper or "DECIMAL" in type_upper:
            # NUMBER(38,0) is an integer, any positive scale is not
            match = re.search(r"\(\s*\d+\s*,\s*(\d+)\s*\)", type_upper)
            if match and int(match.group(1)) > 0:
                return ValueKind.FLOAT
            return ValueKind.INTEGER
        elif "INT" in type_upper:
            return ValueKind.INTEGER
        elif any(t in type_upper for t in ["FLOAT", "DOUBLE", "REAL"]):
            return ValueKind.FLOAT
        elif "BOOL" in type_upper:
            return ValueKind.BOOLEAN
        elif "TIMESTAMP" in type_upper or "DATETIME" in type_upper:
            return ValueKind.TIMESTAMP
        elif "DATE" in type_upper:
            return ValueKind.TIMESTAMP
        elif "BINARY" in type_upper:
            return ValueKind.BLOB
        return ValueKind.TEXT
