from __future__ import annotations

import types
import typing
from collections.abc import Mapping as AbcMapping, Sequence as AbcSequence
from datetime import datetime
from typing import Any, ClassVar, Dict, List

from taskbricks.core.exceptions import SchemaDefinitionError, UnknownTypeError
from taskbricks.types.base import BOOLEAN, DOUBLE, LONG, STRING, TIMESTAMP, ValueType
from taskbricks.types.composite import (
    VALUE_TYPE_NAME,
    AdapterType,
    MappingType,
    NestedTaskType,
    OptionType,
    SequenceType,
)


class ValueTypeRegistry:
    """Canonical name → base value type. Fixed at import time; the set is closed."""

    _registry: ClassVar[Dict[str, ValueType]] = {}

    @classmethod
    def _register(cls, value_type: ValueType) -> None:
        if value_type.name in cls._registry:
            raise SchemaDefinitionError(f"Value type already registered: {value_type.name!r}")
        cls._registry[value_type.name] = value_type

    @classmethod
    def resolve(cls, name: str) -> ValueType:
        try:
            return cls._registry[name]
        except KeyError:
            raise UnknownTypeError(name, cls.names()) from None

    @classmethod
    def format(cls, value_type: ValueType) -> str:
        registered = cls._registry.get(value_type.name)
        if registered is not value_type:
            raise UnknownTypeError(value_type.name, cls.names())
        return value_type.name

    @classmethod
    def names(cls) -> List[str]:
        return list(cls._registry)


for _base in (BOOLEAN, LONG, DOUBLE, STRING, TIMESTAMP):
    ValueTypeRegistry._register(_base)


def resolve_type(name: str) -> ValueType:
    return ValueTypeRegistry.resolve(name)


def format_type(value_type: ValueType) -> str:
    return ValueTypeRegistry.format(value_type)


_PYTHON_TYPES: Dict[Any, ValueType] = {
    bool: BOOLEAN,
    int: LONG,
    float: DOUBLE,
    str: STRING,
    datetime: TIMESTAMP,
}


def resolve_annotation(annotation: Any) -> ValueType:
    """Map a field declaration to the value type that decodes it.

    Accepts ValueType instances, canonical type names and Python annotations.
    Unrecognized annotations fall through to a pydantic TypeAdapter.
    """
    from taskbricks.models.task_kind import TaskKind

    if isinstance(annotation, ValueType):
        return annotation
    if isinstance(annotation, str):
        return resolve_type(annotation)
    if isinstance(annotation, TaskKind):
        return NestedTaskType(annotation)
    if isinstance(annotation, type) and annotation in _PYTHON_TYPES:
        return _PYTHON_TYPES[annotation]
    if annotation is ValueType:
        return VALUE_TYPE_NAME

    nested = getattr(annotation, "__task_kind__", None)
    if isinstance(nested, TaskKind):
        return NestedTaskType(nested)

    origin = typing.get_origin(annotation)
    args = typing.get_args(annotation)

    if origin is typing.Annotated:
        return resolve_annotation(args[0])

    if origin is typing.Union or origin is types.UnionType:
        members = [a for a in args if a is not type(None)]
        if len(members) == 1 and len(members) < len(args):
            return OptionType(resolve_annotation(members[0]))
        if len(members) < len(args):
            return OptionType(AdapterType(typing.Union[tuple(members)]))
        return AdapterType(annotation)

    if origin in (list, AbcSequence) and len(args) == 1:
        return SequenceType(resolve_annotation(args[0]))

    if origin is tuple and len(args) == 2 and args[1] is Ellipsis:
        return SequenceType(resolve_annotation(args[0]), as_tuple=True)

    if origin in (dict, AbcMapping) and len(args) == 2 and args[0] is str:
        return MappingType(resolve_annotation(args[1]))

    return AdapterType(annotation)


def value_type_for(value: Any) -> ValueType:
    """Base value type whose encode rule applies to a runtime value."""
    if isinstance(value, bool):
        return BOOLEAN
    if isinstance(value, int):
        return LONG
    if isinstance(value, float):
        return DOUBLE
    if isinstance(value, str):
        return STRING
    if isinstance(value, datetime):
        return TIMESTAMP
    raise KeyError(type(value).__name__)
