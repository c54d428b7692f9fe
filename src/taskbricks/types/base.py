"""Value type descriptors for the five base wire types.

Each value type knows how to turn a wire value into its Python value
(``decode``) and back (``encode``). The base set is closed: boolean, long,
double, string and timestamp, one singleton each. Decoding ``None`` yields
``None``; rejecting explicit nulls is the decoder's job, not the type's.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Annotated, Any, Callable, ClassVar, Optional

from pydantic import Field, StrictBool, StrictFloat, StrictInt, StrictStr, TypeAdapter

LONG_MIN = -(2**63)
LONG_MAX = 2**63 - 1

NestedDecodeFn = Callable[[Any, Any, str], Any]


@dataclass(frozen=True)
class DecodeContext:
    """Where in the wire object a value sits, plus the hook used for nested task kinds."""

    path: str = "$"
    decode_nested: Optional[NestedDecodeFn] = None

    def child(self, key: str) -> "DecodeContext":
        return replace(self, path=f"{self.path}.{key}")

    def item(self, index: int) -> "DecodeContext":
        return replace(self, path=f"{self.path}[{index}]")


class ValueType:
    """A wire data kind with a decode rule and its exact inverse encode rule."""

    name: str = "-"
    nullable: ClassVar[bool] = False

    def decode(self, wire: Any, ctx: DecodeContext) -> Any:
        raise NotImplementedError

    def encode(self, value: Any) -> Any:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"


class _AdapterBackedType(ValueType):
    """Base type whose decode rule is a strict pydantic TypeAdapter."""

    _adapter: ClassVar[TypeAdapter]

    def decode(self, wire: Any, ctx: DecodeContext) -> Any:
        if wire is None:
            return None
        return self._adapter.validate_python(wire)

    def encode(self, value: Any) -> Any:
        return value


class BooleanType(_AdapterBackedType):
    name = "boolean"
    _adapter = TypeAdapter(StrictBool)


class LongType(_AdapterBackedType):
    name = "long"
    _adapter = TypeAdapter(Annotated[StrictInt, Field(ge=LONG_MIN, le=LONG_MAX)])


class DoubleType(_AdapterBackedType):
    name = "double"
    _adapter = TypeAdapter(StrictFloat)

    def decode(self, wire: Any, ctx: DecodeContext) -> Any:
        value = super().decode(wire, ctx)
        return None if value is None else float(value)


class StringType(_AdapterBackedType):
    name = "string"
    _adapter = TypeAdapter(StrictStr)


class TimestampType(_AdapterBackedType):
    """ISO-8601 text (or epoch seconds) on the wire, aware ``datetime`` in memory.

    Naive timestamps are read as UTC so every decoded value is comparable.
    """

    name = "timestamp"
    _adapter = TypeAdapter(datetime)

    def decode(self, wire: Any, ctx: DecodeContext) -> Any:
        if isinstance(wire, bool):
            raise ValueError("Input should be a valid datetime, got a boolean")
        value = super().decode(wire, ctx)
        if value is not None and value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value

    def encode(self, value: datetime) -> str:
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.isoformat()


BOOLEAN = BooleanType()
LONG = LongType()
DOUBLE = DoubleType()
STRING = StringType()
TIMESTAMP = TimestampType()
