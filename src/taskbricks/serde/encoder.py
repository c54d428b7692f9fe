"""Encode task records back to wire objects.

The encoder only needs the record-store capability: it walks the snapshot
and encodes each value by its runtime type with the inverse of the matching
decode rule. It never looks at the originating kind, so any task this
package produced (nested ones included) can be persisted and re-decoded
later.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel
from pydantic_core import PydanticSerializationError, to_jsonable_python

from taskbricks.core.exceptions import UnsupportedValueError
from taskbricks.core.logger import get_logger, push_task_kind, reset_task_kind
from taskbricks.serde.record_store import RecordStore, TaskView, store_of
from taskbricks.serde.wire import dumps_wire
from taskbricks.types.base import LONG_MAX, LONG_MIN, ValueType
from taskbricks.types.registry import format_type, value_type_for

logger = get_logger(__name__)


class TaskEncoder:
    def encode(self, task: Any) -> Dict[str, Any]:
        if not isinstance(task, (RecordStore, TaskView)):
            raise UnsupportedValueError(task)
        store = store_of(task)
        token = push_task_kind(store.kind.name)
        try:
            wire = {name: self.encode_value(value) for name, value in store.snapshot()}
        finally:
            reset_task_kind(token)
        logger.debug("Encoded %s with %d fields", store.kind.name, len(wire))
        return wire

    def encode_value(self, value: Any) -> Any:
        if value is None:
            return None
        if isinstance(value, (RecordStore, TaskView)):
            return self.encode(value)
        if isinstance(value, ValueType):
            return format_type(value)
        if isinstance(value, (bool, str, float, datetime)):
            return value_type_for(value).encode(value)
        if isinstance(value, int):
            if not LONG_MIN <= value <= LONG_MAX:
                raise UnsupportedValueError(value, f"Integer {value} does not fit in a 64-bit long")
            return value_type_for(value).encode(value)
        if isinstance(value, Mapping):
            return {str(k): self.encode_value(v) for k, v in value.items()}
        if isinstance(value, (list, tuple)):
            return [self.encode_value(item) for item in value]
        if isinstance(value, BaseModel):
            return value.model_dump(mode="json")
        try:
            return to_jsonable_python(value)
        except PydanticSerializationError as exc:
            raise UnsupportedValueError(value) from exc


_ENCODER = TaskEncoder()


def encode_task(task: Any) -> Dict[str, Any]:
    """Wire object (insertion-ordered dict) for a task view or record store."""
    return _ENCODER.encode(task)


def dumps_task(task: Any, *, indent: Optional[int] = None) -> str:
    """JSON text of a task, suitable for persisting and decoding again later."""
    return dumps_wire(encode_task(task), indent=indent)
