"""
Data models for measurement-point schemas and decoded protocol streams.

Field types are a closed enumeration checked at declaration time; sample
values are converted through their field type at injection time.
"""

from __future__ import annotations

import numbers
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Optional, Union

from loguru import logger
from pydantic import BaseModel, field_validator

from .errors import ConfigurationError, SampleValueError

INT32_MIN = -(2**31)
INT32_MAX = 2**31 - 1

# Deprecated type names still accepted in declarations
TYPE_ALIASES = {"long": "int32", "boolean": "int32"}

Value = Union[str, int, float, bool]


class FieldType(str, Enum):
    """Wire types supported by the text protocol."""

    STRING = "string"
    INT32 = "int32"
    DOUBLE = "double"

    @classmethod
    def parse(cls, name: Union[str, "FieldType", None]) -> "FieldType":
        """Resolve a declared type name, normalizing deprecated aliases."""
        if name is None:
            return cls.STRING
        if isinstance(name, cls):
            return name
        key = str(name).strip().lower()
        if key in TYPE_ALIASES:
            logger.warning(f"'{key}' is deprecated, use '{TYPE_ALIASES[key]}' instead")
            key = TYPE_ALIASES[key]
        try:
            return cls(key)
        except ValueError:
            valid = ", ".join(t.value for t in cls)
            raise ConfigurationError(f"Unknown field type '{name}'. Must be one of {valid}")

    def to_wire(self, value: Any) -> str:
        """Render ``value`` as a protocol field, raising SampleValueError if it does not fit."""
        if self is FieldType.STRING:
            if not isinstance(value, str):
                raise SampleValueError(f"Expected str for string field, got {type(value).__name__}")
            if "\t" in value or "\n" in value:
                raise SampleValueError("String values must not contain tabs or newlines")
            return value

        # booleans travel as 1/0 on every numeric type
        if isinstance(value, bool):
            return "1" if value else "0"

        if self is FieldType.INT32:
            if not isinstance(value, numbers.Integral):
                raise SampleValueError(f"Expected int for int32 field, got {type(value).__name__}")
            if not INT32_MIN <= int(value) <= INT32_MAX:
                raise SampleValueError(f"Value {value} out of int32 range")
            return str(int(value))

        if not isinstance(value, numbers.Real):
            raise SampleValueError(f"Expected number for double field, got {type(value).__name__}")
        try:
            return repr(float(value))
        except OverflowError:
            raise SampleValueError(f"Value {value} does not fit a double field")

    def from_wire(self, text: str) -> Value:
        if self is FieldType.INT32:
            return int(text)
        if self is FieldType.DOUBLE:
            return float(text)
        return text


class FieldDef(BaseModel):
    """One named, typed field of a measurement point."""

    name: str
    type: FieldType = FieldType.STRING

    @field_validator("type", mode="before")
    @classmethod
    def _normalize_type(cls, v):
        return FieldType.parse(v)

    @field_validator("name")
    @classmethod
    def _validate_name(cls, v):
        if not v or any(c.isspace() for c in v) or ":" in v:
            raise ValueError(f"Invalid field name: {v!r}")
        return v

    def schema_token(self) -> str:
        return f"{self.name}:{self.type.value}"


@dataclass
class MeasurementPointSchema:
    """Declared layout and sample counter of a measurement point type."""

    name: Optional[str] = None
    fields: List[FieldDef] = field(default_factory=list)
    seq_no: int = 0

    @property
    def arity(self) -> int:
        return len(self.fields)


# --- Decoded stream (see protocol.parse_stream) ---


class SchemaRecord(BaseModel):
    index: int
    name: str
    fields: List[FieldDef] = []


class SampleRecord(BaseModel):
    time: float
    schema_index: int
    seq_no: int
    values: List[Value] = []


class StreamHeader(BaseModel):
    protocol: int
    experiment_id: str
    start_time: int
    sender_id: str
    app_name: str
    content: str = "text"


class ParsedStream(BaseModel):
    """Structured view of one connection's worth of protocol text."""

    header: StreamHeader
    schemas: List[SchemaRecord] = []
    samples: List[SampleRecord] = []

    def schema(self, index: int) -> SchemaRecord:
        for s in self.schemas:
            if s.index == index:
                return s
        raise KeyError(index)
