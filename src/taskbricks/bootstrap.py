from __future__ import annotations

import importlib
import sys
from typing import Iterable, Set

_LOADED: Set[str] = set()


def load_kind_modules(modules: Iterable[str], *, reload: bool = False) -> None:
    """Import modules that declare task kinds so their @task_kind decorators register.

    In production, call with reload=False (default) so repeated imports are cheap.
    In tests, call with reload=True after clearing the registry to re-run decorators.
    """

    modules = list(modules)
    if reload:
        from taskbricks.schema.builder import FieldSchemaBuilder
        from taskbricks.schema.registry import TaskKindRegistry

        TaskKindRegistry.clear()
        FieldSchemaBuilder.clear()

    for module_name in modules:
        if module_name in _LOADED and not reload:
            continue
        if reload:
            sys.modules.pop(module_name, None)
        importlib.import_module(module_name)
        _LOADED.add(module_name)
