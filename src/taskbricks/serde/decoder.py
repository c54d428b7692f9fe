"""Decode wire objects into task records.

The decoder walks the wire pairs once in input order. Keys the schema knows
are decoded through their field's value type and stored under the field
name; everything else is skipped, nested content included. Fields that never
showed up are then filled from their default literal, in schema order, or the
call fails. Validator hooks see the finished, sealed record.
"""

from __future__ import annotations

import json
from typing import Any, Optional, Set

from pydantic import ValidationError

from taskbricks.core.exceptions import (
    InvalidValueError,
    NullValueNotAllowedError,
    RequiredFieldMissingError,
)
from taskbricks.core.logger import get_logger, push_task_kind, reset_task_kind
from taskbricks.models.policy import CONFIG_POLICY, TASK_POLICY, SchemaPolicy
from taskbricks.models.task_kind import KindRef, TaskKind, TaskValidator, kind_of
from taskbricks.schema.builder import FieldDescriptor, FieldSchemaBuilder, TaskSchema
from taskbricks.serde.record_store import RecordStore, TaskView
from taskbricks.serde.validation import run_validators
from taskbricks.serde.wire import WireInput, iter_pairs
from taskbricks.types.base import DecodeContext

logger = get_logger(__name__)


def _describe(exc: ValueError) -> str:
    if isinstance(exc, ValidationError):
        return "; ".join(err["msg"] for err in exc.errors())
    return str(exc)


class TaskDecoder:
    """
    Turns wire objects into sealed RecordStores for a given schema policy.

    Args:
        policy: How fields map to wire keys and whether defaults apply.
        validator: Optional hook run on every decoded task (after the kind's own
                   validator), nested tasks included.

    Example:
        >>> decoder = TaskDecoder(CONFIG_POLICY)
        >>> store = decoder.decode(Foo, {"bar": "hello"})
        >>> store.dispatch().baz
        0
    """

    def __init__(self, policy: SchemaPolicy = TASK_POLICY, validator: Optional[TaskValidator] = None):
        self.policy = policy
        self.validator = validator

    def schema_for(self, kind: KindRef) -> TaskSchema:
        return FieldSchemaBuilder.build(kind, self.policy)

    def decode(self, kind: KindRef, wire: WireInput) -> RecordStore:
        return self._decode(kind_of(kind), wire, "$")

    def decode_view(self, kind: KindRef, wire: WireInput) -> TaskView:
        return self.decode(kind, wire).dispatch()

    def _decode(self, kind: TaskKind, wire: Any, location: str) -> RecordStore:
        schema = FieldSchemaBuilder.build(kind, self.policy)
        token = push_task_kind(kind.name)
        try:
            try:
                pairs = iter_pairs(wire)
            except ValueError as exc:
                raise InvalidValueError(None, str(exc), location=location) from exc

            ctx = DecodeContext(path=location, decode_nested=self._decode_nested)
            store = RecordStore(kind)
            seen: Set[str] = set()

            for key, raw in pairs:
                descriptor = schema.match(key)
                if descriptor is None:
                    logger.debug("Ignoring unknown key %r at %s", key, location)
                    continue
                store.set(descriptor.field_name, self._decode_field(descriptor, raw, ctx))
                seen.add(key)

            defaulted = 0
            for descriptor in schema:
                if descriptor.wire_key in seen:
                    continue
                if descriptor.default_literal is None:
                    raise RequiredFieldMissingError(descriptor.wire_key, location=location)
                raw = json.loads(descriptor.default_literal)
                store.set(descriptor.field_name, self._decode_field(descriptor, raw, ctx))
                defaulted += 1

            store.seal()
            run_validators(kind, store.dispatch(), (kind.validator, self.validator), location=location)
            logger.debug(
                "Decoded %s at %s with %d fields (%d defaulted)", kind.name, location, len(store), defaulted
            )
            return store
        finally:
            reset_task_kind(token)

    def _decode_nested(self, kind: TaskKind, wire: Any, location: str) -> TaskView:
        return self._decode(kind, wire, location).dispatch()

    def _decode_field(self, descriptor: FieldDescriptor, raw: Any, ctx: DecodeContext) -> Any:
        try:
            value = descriptor.value_type.decode(raw, ctx.child(descriptor.wire_key))
        except ValueError as exc:
            raise InvalidValueError(descriptor.wire_key, _describe(exc), location=ctx.path) from exc
        if value is None and not descriptor.value_type.nullable:
            raise NullValueNotAllowedError(descriptor.wire_key, location=ctx.path)
        return value


_TASK_DECODER = TaskDecoder(TASK_POLICY)
_CONFIG_DECODER = TaskDecoder(CONFIG_POLICY)


def decode_task(kind: KindRef, wire: WireInput) -> TaskView:
    """Decode an internal task carrier (field names on the wire, no defaults)."""
    return _TASK_DECODER.decode_view(kind, wire)


def decode_config(kind: KindRef, wire: WireInput) -> TaskView:
    """Decode a user configuration object (Config wire keys, ConfigDefault defaults)."""
    return _CONFIG_DECODER.decode_view(kind, wire)
