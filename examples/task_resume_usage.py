"""
Example: Declaring a task kind, decoding user config, persisting the task.

This shows the two policies working on the same declaration:
- Config policy: what users write (aliased keys, declared defaults)
- Task policy: what the pipeline persists between stages and re-reads on resume
"""

from datetime import datetime
from typing import Annotated, List, Optional

from taskbricks import (
    Config,
    ConfigDefault,
    ValueType,
    decode_config,
    decode_task,
    dumps_task,
    task_kind,
)


@task_kind
class ColumnTask:
    name: Annotated[str, Config("name")]
    type: Annotated[ValueType, Config("type")]


@task_kind
class CsvInputTask:
    path: Annotated[str, Config("path")]
    delimiter: Annotated[str, Config("delimiter"), ConfigDefault('","')]
    skip_header_lines: Annotated[int, Config("skip_header_lines"), ConfigDefault("1")]
    columns: Annotated[List[ColumnTask], Config("columns")]
    last_modified_after: Annotated[Optional[datetime], Config("last_modified_after"), ConfigDefault("null")]

    def validate_task(self):
        if self.skip_header_lines < 0:
            raise ValueError("skip_header_lines must not be negative")


# =============================================================================
# Example 1: Decode what the user wrote
# =============================================================================
user_config = {
    "path": "/data/in.csv",
    "columns": [{"name": "id", "type": "long"}, {"name": "created", "type": "timestamp"}],
    "comment": "keys the kind does not declare are ignored",
}

task = decode_config(CsvInputTask, user_config)
print(f"path={task.path} delimiter={task.delimiter!r} skip={task.skip_header_lines}")
print(f"columns={[(c.name, c.type.name) for c in task.columns]}")


# =============================================================================
# Example 2: Persist the task and resume it later
# =============================================================================
persisted = dumps_task(task, indent=2)
print(persisted)

resumed = decode_task(CsvInputTask, persisted)
assert resumed == task
