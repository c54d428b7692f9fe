"""Value types for nested wire data.

These wrap other value types (or a nested task kind) and recurse through
the same decode path, so the null and range rules of the element types still
apply at every depth.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from pydantic import TypeAdapter

from taskbricks.types.base import DecodeContext, ValueType


@dataclass(frozen=True, repr=False)
class OptionType(ValueType):
    """The only null-capable type: an explicit ``null`` decodes to ``None``."""

    inner: ValueType
    nullable = True

    @property
    def name(self) -> str:  # type: ignore[override]
        return f"optional<{self.inner.name}>"

    def decode(self, wire: Any, ctx: DecodeContext) -> Any:
        if wire is None:
            return None
        return self.inner.decode(wire, ctx)

    def encode(self, value: Any) -> Any:
        return None if value is None else self.inner.encode(value)


@dataclass(frozen=True, repr=False)
class SequenceType(ValueType):
    element: ValueType
    as_tuple: bool = False

    @property
    def name(self) -> str:  # type: ignore[override]
        return f"sequence<{self.element.name}>"

    def decode(self, wire: Any, ctx: DecodeContext) -> Any:
        if wire is None:
            return None
        if not isinstance(wire, (list, tuple)):
            raise ValueError(f"Input should be a valid list, got {type(wire).__name__}")
        items = [self.element.decode(item, ctx.item(i)) for i, item in enumerate(wire)]
        return tuple(items) if self.as_tuple else items

    def encode(self, value: Any) -> Any:
        return [None if item is None else self.element.encode(item) for item in value]


@dataclass(frozen=True, repr=False)
class MappingType(ValueType):
    value: ValueType

    @property
    def name(self) -> str:  # type: ignore[override]
        return f"mapping<{self.value.name}>"

    def decode(self, wire: Any, ctx: DecodeContext) -> Any:
        if wire is None:
            return None
        if not isinstance(wire, Mapping):
            raise ValueError(f"Input should be a valid object, got {type(wire).__name__}")
        out = {}
        for key, item in wire.items():
            if not isinstance(key, str):
                raise ValueError(f"Object keys should be strings, got {type(key).__name__}")
            out[key] = self.value.decode(item, ctx.child(key))
        return out

    def encode(self, value: Any) -> Any:
        return {key: None if item is None else self.value.encode(item) for key, item in value.items()}


@dataclass(frozen=True, repr=False)
class NestedTaskType(ValueType):
    """A field whose value is itself a task of another kind.

    Decoding is delegated back to the decoder that is running, so the nested
    object gets the same policy, default handling and validation.
    """

    kind: Any

    @property
    def name(self) -> str:  # type: ignore[override]
        return f"task<{self.kind.name}>"

    def decode(self, wire: Any, ctx: DecodeContext) -> Any:
        if wire is None:
            return None
        if not isinstance(wire, Mapping):
            raise ValueError(f"Input should be a valid object, got {type(wire).__name__}")
        if ctx.decode_nested is None:
            raise ValueError(f"Nested task kind '{self.kind.name}' needs a decoder")
        return ctx.decode_nested(self.kind, wire, ctx.path)

    def encode(self, value: Any) -> Any:
        from taskbricks.serde.encoder import encode_task

        return encode_task(value)


class ValueTypeNameType(ValueType):
    """A field holding a value type, written on the wire as its canonical name."""

    name = "value_type"

    def decode(self, wire: Any, ctx: DecodeContext) -> Any:
        from taskbricks.types.registry import resolve_type

        if wire is None:
            return None
        if not isinstance(wire, str):
            raise ValueError(f"Input should be a type name string, got {type(wire).__name__}")
        return resolve_type(wire)

    def encode(self, value: ValueType) -> str:
        from taskbricks.types.registry import format_type

        return format_type(value)


VALUE_TYPE_NAME = ValueTypeNameType()


@dataclass(frozen=True, repr=False)
class AdapterType(ValueType):
    """Anything else (pydantic models, enums, ``Any``) goes through a pydantic TypeAdapter."""

    annotation: Any
    _adapter: TypeAdapter = field(init=False, compare=False, hash=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "_adapter", TypeAdapter(self.annotation))

    @property
    def name(self) -> str:  # type: ignore[override]
        return getattr(self.annotation, "__name__", None) or repr(self.annotation)

    def decode(self, wire: Any, ctx: DecodeContext) -> Any:
        if wire is None:
            return None
        return self._adapter.validate_python(wire)

    def encode(self, value: Any) -> Any:
        return self._adapter.dump_python(value, mode="json")
