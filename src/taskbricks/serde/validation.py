from __future__ import annotations

from collections.abc import Iterable as AbcIterable
from typing import Any, Iterable, List, Optional

from pydantic import ValidationError

from taskbricks.core.exceptions import ValidationFailedError
from taskbricks.models.task_kind import TaskKind, TaskValidator


def _messages_from(exc: Exception) -> List[str]:
    if isinstance(exc, ValidationError):
        return [
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" if err.get("loc") else err["msg"]
            for err in exc.errors()
        ]
    return [str(exc) or type(exc).__name__]


def collect_problems(validator: TaskValidator, view: Any) -> List[str]:
    """Run one hook; a raised ValueError/AssertionError or returned messages are problems.

    Only ValueError (pydantic's ValidationError included) and AssertionError count as
    validation failures. Any other exception raised by the hook propagates unchanged.
    """
    try:
        result = validator(view)
    except (ValueError, AssertionError) as exc:
        return _messages_from(exc)
    if result is None or result is True:
        return []
    if result is False:
        return ["validator returned False"]
    if isinstance(result, str) or not isinstance(result, AbcIterable):
        return [str(result)]
    return [str(message) for message in result]


def run_validators(
    kind: TaskKind,
    view: Any,
    validators: Iterable[Optional[TaskValidator]],
    *,
    location: Optional[str] = None,
) -> None:
    """Run every non-None hook in order and raise ValidationFailedError with all their messages."""
    problems: List[str] = []
    for validator in validators:
        if validator is not None:
            problems.extend(collect_problems(validator, view))
    if problems:
        raise ValidationFailedError(kind.name, problems, location=location)
