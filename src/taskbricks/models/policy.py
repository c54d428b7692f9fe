from __future__ import annotations

from typing import Dict, Literal

from pydantic import BaseModel, ConfigDict

from taskbricks.core.exceptions import SchemaDefinitionError

WireKeyPolicy = Literal["identity", "explicit"]
DefaultPolicy = Literal["none", "explicit"]


class SchemaPolicy(BaseModel):
    """How a task kind's fields are turned into a wire schema.

    ``wire_key``:
        - identity: every field is on the wire under its own name.
        - explicit: only fields carrying a ``Config`` wire key are on the wire;
          the rest are left out of the schema without error.
    ``default``:
        - none: every field in the schema is required.
        - explicit: a non-empty ``ConfigDefault`` literal makes a field optional.
    """

    model_config = ConfigDict(frozen=True)

    name: str = "custom"
    wire_key: WireKeyPolicy = "identity"
    default: DefaultPolicy = "none"


# User-facing configuration objects: aliased keys, declared defaults.
CONFIG_POLICY = SchemaPolicy(name="config", wire_key="explicit", default="explicit")

# Internal carrier between pipeline stages: field names on the wire, nothing defaulted.
TASK_POLICY = SchemaPolicy(name="task", wire_key="identity", default="none")

_PRESETS: Dict[str, SchemaPolicy] = {
    CONFIG_POLICY.name: CONFIG_POLICY,
    TASK_POLICY.name: TASK_POLICY,
}


def policy_named(name: str) -> SchemaPolicy:
    try:
        return _PRESETS[name]
    except KeyError as exc:
        raise SchemaDefinitionError(
            f"Unknown schema policy {name!r}. Supported policies are: {', '.join(_PRESETS)}"
        ) from exc
