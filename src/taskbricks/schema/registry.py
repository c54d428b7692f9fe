from __future__ import annotations

from typing import ClassVar, Dict, List, Optional

from taskbricks.core.exceptions import TaskKindRegistryError
from taskbricks.models.task_kind import FieldSpec, TaskKind, TaskValidator


class TaskKindRegistry:
    _registry: ClassVar[Dict[str, TaskKind]] = {}

    @classmethod
    def register(cls, kind: TaskKind, *, overwrite: bool = False) -> None:
        if not overwrite and kind.name in cls._registry:
            existing = cls._registry[kind.name]
            if existing is kind:
                return
            raise TaskKindRegistryError(
                f"Task kind already registered under name={kind.name!r}: {existing!r}"
            )
        cls._registry[kind.name] = kind

    @classmethod
    def get(cls, name: str) -> TaskKind:
        try:
            return cls._registry[name]
        except KeyError as exc:
            raise TaskKindRegistryError(f"No task kind registered under name={name!r}") from exc

    @classmethod
    def try_get(cls, name: str) -> Optional[TaskKind]:
        return cls._registry.get(name)

    @classmethod
    def names(cls) -> List[str]:
        return list(cls._registry)

    @classmethod
    def clear(cls) -> None:
        cls._registry.clear()


def register_task_kind(
    name: str,
    *fields: FieldSpec,
    validator: Optional[TaskValidator] = None,
    overwrite: bool = False,
) -> TaskKind:
    """Build a TaskKind from explicit field specs and register it."""
    kind = TaskKind(name=name, fields=tuple(fields), validator=validator)
    TaskKindRegistry.register(kind, overwrite=overwrite)
    return kind
