"""taskbricks.

Schema-driven mapping between JSON-like wire objects and typed task records.

Task kinds are declared once (an interface class with ``@task_kind`` or an
explicit list of ``FieldSpec``s); decoding validates required fields,
defaults and nulls and returns a read-only typed view; encoding turns that
view back into a wire object so the task can be persisted and resumed.
"""

from taskbricks.core.exceptions import (
    DecodeError,
    InvalidValueError,
    MissingFieldError,
    NullValueNotAllowedError,
    RecordSealedError,
    RequiredFieldMissingError,
    SchemaDefinitionError,
    TaskbricksException,
    TaskKindRegistryError,
    UnknownTypeError,
    UnsupportedValueError,
    ValidationFailedError,
)
from taskbricks.models.policy import CONFIG_POLICY, TASK_POLICY, SchemaPolicy
from taskbricks.models.task_kind import Config, ConfigDefault, FieldSpec, TaskKind, task_kind
from taskbricks.schema.builder import FieldSchemaBuilder
from taskbricks.schema.registry import TaskKindRegistry, register_task_kind
from taskbricks.serde.decoder import TaskDecoder, decode_config, decode_task
from taskbricks.serde.encoder import TaskEncoder, dumps_task, encode_task
from taskbricks.serde.record_store import RecordStore, TaskView
from taskbricks.types.base import BOOLEAN, DOUBLE, LONG, STRING, TIMESTAMP, ValueType
from taskbricks.types.registry import ValueTypeRegistry, format_type, resolve_type

__version__ = "0.1.0"

__all__ = [
    "BOOLEAN",
    "CONFIG_POLICY",
    "Config",
    "ConfigDefault",
    "DOUBLE",
    "DecodeError",
    "FieldSchemaBuilder",
    "FieldSpec",
    "InvalidValueError",
    "LONG",
    "MissingFieldError",
    "NullValueNotAllowedError",
    "RecordSealedError",
    "RecordStore",
    "RequiredFieldMissingError",
    "STRING",
    "SchemaDefinitionError",
    "SchemaPolicy",
    "TASK_POLICY",
    "TIMESTAMP",
    "TaskDecoder",
    "TaskEncoder",
    "TaskKind",
    "TaskKindRegistry",
    "TaskKindRegistryError",
    "TaskView",
    "TaskbricksException",
    "UnknownTypeError",
    "UnsupportedValueError",
    "ValidationFailedError",
    "ValueType",
    "ValueTypeRegistry",
    "decode_config",
    "decode_task",
    "dumps_task",
    "encode_task",
    "format_type",
    "register_task_kind",
    "resolve_type",
    "task_kind",
]
