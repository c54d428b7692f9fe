"""
Custom exception classes for the taskbricks framework.

Every failure raised while building schemas, decoding wire objects into task
records, or encoding them back is a subclass of ``TaskbricksException``.
None of them is retried internally; the caller decides what to do with the
enclosing job.
"""

from typing import Any, Iterable, List, Optional, Sequence


class TaskbricksException(Exception):
    """Base exception class for all taskbricks exceptions."""

    pass


class UnknownTypeError(TaskbricksException):
    """Raised when a value type name does not match any registered type."""

    def __init__(self, name: str, supported: Sequence[str]):
        self.name = name
        self.supported = list(supported)
        super().__init__(
            f"Unknown type name '{name}'. Supported types are: {', '.join(self.supported)}"
        )


class SchemaDefinitionError(TaskbricksException):
    """Raised when a task kind declaration cannot be turned into a schema."""

    pass


class TaskKindRegistryError(RuntimeError, TaskbricksException):
    pass


class DecodeError(TaskbricksException):
    """
    Base class for failures while decoding a wire object.

    Carries the wire key of the offending field (when there is one) and the
    JSON path of the object being decoded, e.g. ``$`` or ``$.inner.items[2]``.
    """

    def __init__(self, reason: str, *, wire_key: Optional[str] = None, location: Optional[str] = None):
        self.reason = reason
        self.wire_key = wire_key
        self.location = location
        message = reason
        if location:
            message += f" (at {location})"
        super().__init__(message)


class RequiredFieldMissingError(DecodeError):
    """
    Raised when a required field is absent from the wire object.

    Example:
        >>> raise RequiredFieldMissingError("bar", location="$")
        Traceback (most recent call last):
        ...
        RequiredFieldMissingError: Field 'bar' is required but not set (at $)
    """

    def __init__(self, wire_key: str, location: Optional[str] = None):
        super().__init__(
            f"Field '{wire_key}' is required but not set",
            wire_key=wire_key,
            location=location,
        )


class NullValueNotAllowedError(DecodeError):
    """Raised when a field is explicitly null and its type is not Optional."""

    def __init__(self, wire_key: str, location: Optional[str] = None):
        super().__init__(
            f"Setting null to field '{wire_key}' is not allowed. "
            "Declare the field Optional[...] to model an absent value",
            wire_key=wire_key,
            location=location,
        )


class InvalidValueError(DecodeError):
    """Raised when a wire value does not fit the field's value type."""

    def __init__(
        self,
        wire_key: Optional[str],
        details: str,
        location: Optional[str] = None,
    ):
        self.details = details
        subject = f"field '{wire_key}'" if wire_key else "value"
        super().__init__(
            f"Invalid value for {subject}: {details}",
            wire_key=wire_key,
            location=location,
        )


class ValidationFailedError(DecodeError):
    """
    Raised when a validator hook rejects an assembled task.

    ``details`` holds every message the hooks produced, in the order they ran.
    """

    def __init__(self, kind_name: str, details: Iterable[str], location: Optional[str] = None):
        self.kind_name = kind_name
        self.details: List[str] = list(details)
        super().__init__(
            f"Validation failed for task kind '{kind_name}': {'; '.join(self.details)}",
            location=location,
        )


class MissingFieldError(TaskbricksException, KeyError):
    """Raised by RecordStore.get for a field that was never stored."""

    def __init__(self, field_name: str):
        self.field_name = field_name
        super().__init__(f"Field '{field_name}' is not set")

    def __str__(self) -> str:
        return self.args[0]


class RecordSealedError(TaskbricksException):
    """Raised when a sealed RecordStore is mutated."""

    pass


class UnsupportedValueError(TaskbricksException, TypeError):
    """Raised when the encoder is handed something it cannot serialize."""

    def __init__(self, value: Any, reason: Optional[str] = None):
        self.value = value
        super().__init__(reason or f"Serializing {type(value).__name__} is not supported")
