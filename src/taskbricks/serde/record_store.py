"""Backing store for one task instance and the typed view handed to callers.

The store is a plain ordered ``field_name -> value`` map. Its ``dispatch()``
view is an instance of a class generated once per task kind: every field is a
read-only property that routes to ``RecordStore.get``. When the kind was
declared from an interface class, the generated class subclasses it, so
``isinstance`` checks and helper methods defined on the interface work.
"""

from __future__ import annotations

import threading
import types
from typing import Any, ClassVar, Dict, Iterator, Tuple

from taskbricks.core.exceptions import MissingFieldError, RecordSealedError
from taskbricks.models.task_kind import TaskKind

_UNSET = object()


class RecordStore:
    def __init__(self, kind: TaskKind):
        self.kind = kind
        self._values: Dict[str, Any] = {}
        self._sealed = False

    def get(self, field_name: str) -> Any:
        value = self._values.get(field_name, _UNSET)
        if value is _UNSET:
            raise MissingFieldError(field_name)
        return value

    def set(self, field_name: str, value: Any) -> None:
        if self._sealed:
            raise RecordSealedError(
                f"Task of kind {self.kind.name!r} is read-only; cannot set {field_name!r}"
            )
        self._values[field_name] = value

    def seal(self) -> "RecordStore":
        self._sealed = True
        return self

    @property
    def sealed(self) -> bool:
        return self._sealed

    def snapshot(self) -> Tuple[Tuple[str, Any], ...]:
        return tuple(self._values.items())

    def dispatch(self) -> "TaskView":
        return view_class_for(self.kind)(self)

    def __contains__(self, field_name: object) -> bool:
        return field_name in self._values

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RecordStore):
            return NotImplemented
        return self.snapshot() == other.snapshot()

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        body = ", ".join(f"{k}={v!r}" for k, v in self._values.items())
        return f"RecordStore[{self.kind.name}]({body})"


class TaskView:
    """Read-only accessor object backed by a RecordStore."""

    __task_fields__: ClassVar[Tuple[str, ...]] = ()

    def __init__(self, store: RecordStore):
        object.__setattr__(self, "_store", store)

    def __setattr__(self, name: str, value: Any) -> None:
        raise RecordSealedError(f"Task of kind {self._store.kind.name!r} is read-only; cannot set {name!r}")

    def __delattr__(self, name: str) -> None:
        raise RecordSealedError(f"Task of kind {self._store.kind.name!r} is read-only; cannot delete {name!r}")

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TaskView):
            return NotImplemented
        return self._store == other._store

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        body = ", ".join(f"{k}={v!r}" for k, v in self._store.snapshot())
        return f"{type(self).__name__}({body})"


def _accessor(field_name: str) -> property:
    def fget(self: TaskView) -> Any:
        return self._store.get(field_name)

    fget.__name__ = field_name
    return property(fget, doc=f"Value of task field {field_name!r}.")


_VIEW_CLASSES: Dict[int, Tuple[TaskKind, type]] = {}
_VIEW_LOCK = threading.Lock()


def view_class_for(kind: TaskKind) -> type:
    """Generated view class for ``kind``, built once per kind."""
    with _VIEW_LOCK:
        cached = _VIEW_CLASSES.get(id(kind))
        if cached is not None and cached[0] is kind:
            return cached[1]

        names = tuple(spec.name for spec in kind.fields)
        namespace: Dict[str, Any] = {name: _accessor(name) for name in names}
        namespace["__task_fields__"] = names
        namespace["__task_kind__"] = kind
        namespace["__module__"] = __name__
        bases: Tuple[type, ...] = (TaskView,)
        if kind.interface is not None:
            bases = (TaskView, kind.interface)
            namespace["__module__"] = kind.interface.__module__
        cls = types.new_class(f"{kind.name}Task", bases, exec_body=lambda ns: ns.update(namespace))
        _VIEW_CLASSES[id(kind)] = (kind, cls)
    return cls


def store_of(task: Any) -> RecordStore:
    """Return the RecordStore behind a view (or the store itself)."""
    if isinstance(task, RecordStore):
        return task
    if isinstance(task, TaskView):
        return task._store
    raise TypeError(f"{type(task).__name__} is not a task")
