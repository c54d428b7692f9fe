"""Field schema construction and the process-wide schema cache.

A schema is the ordered ``wire_key -> FieldDescriptor`` mapping the decoder
matches incoming keys against. It is a pure function of (kind, policy), so
building it twice yields equal results; the cache only makes sure each pair
is built once per process.
"""

from __future__ import annotations

import json
import threading
from dataclasses import dataclass
from typing import Any, ClassVar, Dict, Iterator, Optional, Tuple

from pydantic import PydanticUserError

from taskbricks.core.exceptions import SchemaDefinitionError, UnknownTypeError
from taskbricks.core.logger import get_logger
from taskbricks.models.policy import TASK_POLICY, SchemaPolicy
from taskbricks.models.task_kind import FieldSpec, KindRef, TaskKind, kind_of
from taskbricks.types.base import ValueType
from taskbricks.types.registry import resolve_annotation

logger = get_logger(__name__)


@dataclass(frozen=True)
class FieldDescriptor:
    wire_key: str
    field_name: str
    value_type: ValueType
    default_literal: Optional[str] = None

    @property
    def required(self) -> bool:
        return self.default_literal is None


@dataclass(frozen=True, eq=False)
class TaskSchema:
    kind: TaskKind
    policy: SchemaPolicy
    descriptors: Tuple[FieldDescriptor, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "_by_wire_key", {d.wire_key: d for d in self.descriptors})

    def match(self, wire_key: str) -> Optional[FieldDescriptor]:
        return self._by_wire_key.get(wire_key)  # type: ignore[attr-defined]

    @property
    def wire_keys(self) -> Tuple[str, ...]:
        return tuple(d.wire_key for d in self.descriptors)

    @property
    def field_names(self) -> Tuple[str, ...]:
        return tuple(d.field_name for d in self.descriptors)

    def __iter__(self) -> Iterator[FieldDescriptor]:
        return iter(self.descriptors)

    def __len__(self) -> int:
        return len(self.descriptors)


def _wire_key_for(spec: FieldSpec, policy: SchemaPolicy) -> Optional[str]:
    if policy.wire_key == "identity":
        return spec.name
    return spec.wire_key


def _default_for(kind: TaskKind, spec: FieldSpec, policy: SchemaPolicy) -> Optional[str]:
    if policy.default == "none" or not spec.default:
        return None
    try:
        json.loads(spec.default)
    except ValueError as exc:
        raise SchemaDefinitionError(
            f"Default literal {spec.default!r} of {kind.name}.{spec.name} is not valid JSON: {exc}"
        ) from exc
    return spec.default


def build_schema(kind: TaskKind, policy: SchemaPolicy = TASK_POLICY) -> TaskSchema:
    """Build the schema of ``kind`` under ``policy`` without touching the cache."""
    descriptors = []
    by_wire_key: Dict[str, str] = {}
    for spec in kind.fields:
        wire_key = _wire_key_for(spec, policy)
        if wire_key is None:
            logger.debug("Field %s.%s has no wire key; left out of the schema", kind.name, spec.name)
            continue
        if wire_key in by_wire_key:
            raise SchemaDefinitionError(
                f"Task kind {kind.name!r} maps fields {by_wire_key[wire_key]!r} and {spec.name!r} "
                f"to the same wire key {wire_key!r}"
            )
        try:
            value_type = resolve_annotation(spec.value_type)
        except (UnknownTypeError, PydanticUserError) as exc:
            raise SchemaDefinitionError(f"Field {kind.name}.{spec.name}: {exc}") from exc
        by_wire_key[wire_key] = spec.name
        descriptors.append(
            FieldDescriptor(
                wire_key=wire_key,
                field_name=spec.name,
                value_type=value_type,
                default_literal=_default_for(kind, spec, policy),
            )
        )
    return TaskSchema(kind=kind, policy=policy, descriptors=tuple(descriptors))


class FieldSchemaBuilder:
    """Compute-once cache of task schemas keyed by kind identity and policy."""

    _cache: ClassVar[Dict[Tuple[int, SchemaPolicy], TaskSchema]] = {}
    _lock: ClassVar[threading.Lock] = threading.Lock()

    @classmethod
    def build(cls, kind: KindRef, policy: SchemaPolicy = TASK_POLICY) -> TaskSchema:
        resolved = kind_of(kind)
        key = (id(resolved), policy)
        schema = cls._cache.get(key)
        if schema is not None and schema.kind is resolved:
            return schema
        with cls._lock:
            schema = cls._cache.get(key)
            if schema is None or schema.kind is not resolved:
                schema = build_schema(resolved, policy)
                cls._cache[key] = schema
                logger.debug(
                    "Built %s schema for task kind %s: %s",
                    policy.name,
                    resolved.name,
                    ", ".join(schema.wire_keys) or "<empty>",
                )
        return schema

    @classmethod
    def clear(cls) -> None:
        with cls._lock:
            cls._cache.clear()


def describe_schema(kind: KindRef, policy: SchemaPolicy = TASK_POLICY) -> Dict[str, Dict[str, Any]]:
    """Human-readable view of a schema, in wire order (used by the CLI)."""
    schema = FieldSchemaBuilder.build(kind, policy)
    return {
        d.wire_key: {
            "field": d.field_name,
            "type": d.value_type.name,
            "required": d.required,
            "default": d.default_literal,
        }
        for d in schema
    }
