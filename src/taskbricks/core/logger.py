import logging
import sys
import contextvars
from typing import Optional, TextIO

# Context variable carrying the task kind currently being decoded or encoded
_TASK_KIND: contextvars.ContextVar[str] = contextvars.ContextVar("task_kind", default="-")


class _TaskKindFilter(logging.Filter):
    """Logging filter that injects the current task kind from contextvars into the record."""

    def filter(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        record.task_kind = _TASK_KIND.get()
        return True


def _build_formatter() -> logging.Formatter:
    return logging.Formatter(
        fmt="%(asctime)s | %(levelname)-8s | %(name)s | kind=%(task_kind)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def configure_root_logger(level: str = "INFO", stream: Optional[TextIO] = None) -> None:
    """
    Configure the root handler and the taskbricks logger.

    The root logger stays at INFO so library noise is suppressed; only the
    taskbricks namespace follows the requested level. Records go to
    ``stream`` (stdout by default).

    Safe to call multiple times; it will not duplicate handlers (idempotent).
    """
    root = logging.getLogger()
    taskbricks_logger = logging.getLogger("taskbricks")

    for h in root.handlers:
        if isinstance(h, logging.StreamHandler) and any(isinstance(f, _TaskKindFilter) for f in h.filters):
            taskbricks_logger.setLevel(getattr(logging, level.upper(), logging.INFO))
            return

    handler = logging.StreamHandler(stream if stream is not None else sys.stdout)
    handler.setFormatter(_build_formatter())
    handler.addFilter(_TaskKindFilter())
    handler.setLevel(logging.DEBUG)
    root.addHandler(handler)
    if root.level == logging.NOTSET or root.level > logging.INFO:
        root.setLevel(logging.INFO)

    taskbricks_logger.setLevel(getattr(logging, level.upper(), logging.INFO))


def get_logger(name: str = "taskbricks") -> logging.Logger:
    """
    Get a module logger under the taskbricks namespace.

    Unlike ``configure_root_logger`` this never touches handlers, so library
    modules can call it at import time.
    """
    return logging.getLogger(name)


def push_task_kind(kind_name: Optional[str]) -> Optional[contextvars.Token]:
    """Set the current task kind in context and return a token for later reset."""
    if not kind_name:
        return None
    return _TASK_KIND.set(kind_name)


def reset_task_kind(token: Optional[contextvars.Token]) -> None:
    """Reset the task kind context using the provided token (if any)."""
    if token is None:
        return
    _TASK_KIND.reset(token)


def current_task_kind() -> str:
    return _TASK_KIND.get()
