"""Wire object helpers: normalize accepted inputs to ordered pairs, read files."""

from __future__ import annotations

import json
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Iterable, List, Tuple, Union

WirePairs = List[Tuple[str, Any]]
WireInput = Union[Mapping, Iterable[Tuple[str, Any]], str, bytes]


def loads_wire(text: Union[str, bytes]) -> Any:
    """Parse JSON text keeping every object as a dict in document order."""
    return json.loads(text)


def iter_pairs(wire: WireInput) -> WirePairs:
    """Normalize a wire object to a list of (key, value) pairs in input order."""
    if isinstance(wire, (str, bytes)):
        wire = loads_wire(wire)
    if isinstance(wire, Mapping):
        return list(wire.items())
    if isinstance(wire, (list, tuple)):
        pairs: WirePairs = []
        for item in wire:
            if not isinstance(item, (list, tuple)) or len(item) != 2 or not isinstance(item[0], str):
                raise ValueError("Input should be an object or a sequence of (key, value) pairs")
            pairs.append((item[0], item[1]))
        return pairs
    raise ValueError(f"Input should be a valid object, got {type(wire).__name__}")


def load_wire_file(path: Union[str, Path]) -> Any:
    """Read a JSON or YAML document from disk."""
    config_file = Path(path)
    if not config_file.exists():
        raise FileNotFoundError(f"Task file not found: {path}")

    with open(config_file, "r", encoding="utf-8") as f:
        if config_file.suffix == ".json":
            return json.load(f)
        if config_file.suffix in (".yaml", ".yml"):
            import yaml

            return yaml.safe_load(f)
    raise ValueError(f"Unsupported task file format: {config_file.suffix}. Use .json or .yaml")


def dumps_wire(wire: Mapping, *, indent: int | None = None) -> str:
    return json.dumps(wire, indent=indent, ensure_ascii=False)
