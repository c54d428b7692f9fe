from __future__ import annotations

import keyword
import typing
from dataclasses import dataclass
from typing import Any, Callable, Optional, Tuple, Type, Union

from taskbricks.core.exceptions import SchemaDefinitionError


@dataclass(frozen=True)
class Config:
    """Wire key of a field under the explicit wire-key policy."""

    value: str


@dataclass(frozen=True)
class ConfigDefault:
    """Default wire literal (a JSON fragment) of a field under the explicit default policy."""

    value: str


@dataclass(frozen=True)
class FieldSpec:
    """Explicit per-field configuration supplied when a task kind is declared.

    ``value_type`` is a ValueType, a canonical type name ("long") or a Python
    annotation (``int``, ``Optional[str]``, ``List[OtherKind]`` ...); it is
    resolved when the schema is built.
    """

    name: str
    value_type: Any
    wire_key: Optional[str] = None
    default: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.name.isidentifier() or keyword.iskeyword(self.name) or self.name.startswith("_"):
            raise SchemaDefinitionError(
                f"Field name {self.name!r} must be a public Python identifier"
            )
        if self.wire_key is not None and not self.wire_key:
            raise SchemaDefinitionError(f"Field {self.name!r} has an empty wire key")


TaskValidator = Callable[[Any], Any]


@dataclass(frozen=True, eq=False)
class TaskKind:
    """A named field contract. Compared and cached by identity."""

    name: str
    fields: Tuple[FieldSpec, ...]
    validator: Optional[TaskValidator] = None
    interface: Optional[type] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "fields", tuple(self.fields))
        seen = set()
        for spec in self.fields:
            if spec.name in seen:
                raise SchemaDefinitionError(
                    f"Task kind {self.name!r} declares field {spec.name!r} more than once"
                )
            seen.add(spec.name)

    def field(self, name: str) -> FieldSpec:
        for spec in self.fields:
            if spec.name == name:
                return spec
        raise KeyError(name)

    def __repr__(self) -> str:
        return f"TaskKind({self.name!r}, fields={[f.name for f in self.fields]})"


KindRef = Union[TaskKind, Type[Any], str]


def _field_specs_from_class(cls: type) -> Tuple[FieldSpec, ...]:
    hints = typing.get_type_hints(cls, include_extras=True)
    specs = []
    for name, hint in hints.items():
        if name.startswith("_") or typing.get_origin(hint) is typing.ClassVar:
            continue
        attr = getattr(cls, name, None)
        if attr is not None and not isinstance(attr, property):
            raise SchemaDefinitionError(
                f"{cls.__name__}.{name} has a class-level value; use ConfigDefault for defaults"
            )

        wire_key: Optional[str] = None
        default: Optional[str] = None
        annotation = hint
        if typing.get_origin(hint) is typing.Annotated:
            annotation, *metadata = typing.get_args(hint)
            for item in metadata:
                if isinstance(item, Config):
                    wire_key = item.value
                elif isinstance(item, ConfigDefault):
                    default = item.value
        specs.append(FieldSpec(name=name, value_type=annotation, wire_key=wire_key, default=default))
    return tuple(specs)


def task_kind(
    cls: Optional[type] = None,
    *,
    name: Optional[str] = None,
    validator: Optional[TaskValidator] = None,
    register: bool = True,
    overwrite: bool = False,
):
    """Declare a task kind from an interface class.

    Annotations become fields in declaration order; ``Annotated[..., Config("key"),
    ConfigDefault("0")]`` carries the per-field wire key and default literal.
    The kind is attached to the class as ``__task_kind__`` and, unless
    ``register=False``, added to the TaskKindRegistry under its name.

    Example:
        >>> @task_kind
        ... class Foo:
        ...     bar: Annotated[str, Config("bar")]
        ...     baz: Annotated[int, Config("baz"), ConfigDefault("0")]
    """

    def decorator(target: type) -> type:
        kind = TaskKind(
            name=name or target.__name__,
            fields=_field_specs_from_class(target),
            validator=validator or getattr(target, "validate_task", None),
            interface=target,
        )
        target.__task_kind__ = kind
        if register:
            from taskbricks.schema.registry import TaskKindRegistry

            TaskKindRegistry.register(kind, overwrite=overwrite)
        return target

    if cls is not None:
        return decorator(cls)
    return decorator


def kind_of(ref: KindRef) -> TaskKind:
    """Accept a TaskKind, a decorated interface class or a registered kind name."""
    if isinstance(ref, TaskKind):
        return ref
    if isinstance(ref, str):
        from taskbricks.schema.registry import TaskKindRegistry

        return TaskKindRegistry.get(ref)
    kind = getattr(ref, "__task_kind__", None)
    if isinstance(kind, TaskKind):
        return kind
    raise SchemaDefinitionError(f"{ref!r} is not a task kind; decorate it with @task_kind")
