"""
Command-line interface for taskbricks.

Subcommands:
- validate:  decode a task/config file against a registered kind and report problems.
- normalize: decode, then print the re-encoded task JSON (the form persisted for resumption).
- schema:    print the wire schema of a kind under a policy.

Kinds come from modules passed with ``--module``; importing them runs their
``@task_kind`` / ``register_task_kind`` declarations.
"""

import argparse
import json
import sys
from typing import Any, Dict, List, Optional, Sequence

from taskbricks.bootstrap import load_kind_modules
from taskbricks.core.exceptions import TaskbricksException
from taskbricks.core.logger import configure_root_logger, get_logger
from taskbricks.models.policy import policy_named
from taskbricks.schema.builder import describe_schema
from taskbricks.serde.decoder import TaskDecoder
from taskbricks.serde.encoder import encode_task
from taskbricks.serde.wire import dumps_wire, load_wire_file

logger = get_logger(__name__)


def validate_task_file(
    path: str,
    kind: str,
    *,
    modules: Sequence[str] = (),
    policy: str = "config",
) -> Dict[str, Any]:
    """
    Decode ``path`` as task kind ``kind`` and return the re-encoded wire object.

    Raises:
        FileNotFoundError: If the file doesn't exist
        TaskbricksException: If the document does not decode

    Example:
        >>> validate_task_file("/path/to/task.yaml", "csv_input", modules=["my_plugin.tasks"])
        {'path': '/data/in.csv', 'delimiter': ','}
    """
    load_kind_modules(modules)
    wire = load_wire_file(path)
    logger.info(f"Decoding {path} as {kind} ({policy} policy)")
    store = TaskDecoder(policy_named(policy)).decode(kind, wire)
    return encode_task(store)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="taskbricks",
        description="Decode, validate and normalize task configuration objects",
    )
    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    for command, help_text in (
        ("validate", "Validate a task file against a task kind"),
        ("normalize", "Print the re-encoded (resumable) form of a task file"),
    ):
        sub = subparsers.add_parser(command, help=help_text)
        sub.add_argument("path", help="Path to the task file (JSON or YAML)")
        sub.add_argument("--kind", "-k", required=True, help="Registered task kind name")
        sub.add_argument("--policy", choices=("config", "task"), default="config")
        sub.add_argument("--module", "-m", action="append", default=[], help="Module declaring task kinds")
        sub.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")

    schema_parser = subparsers.add_parser("schema", help="Print the wire schema of a task kind")
    schema_parser.add_argument("--kind", "-k", required=True)
    schema_parser.add_argument("--policy", choices=("config", "task"), default="config")
    schema_parser.add_argument("--module", "-m", action="append", default=[])
    schema_parser.add_argument("--verbose", "-v", action="store_true")
    return parser


def cli(argv: Optional[List[str]] = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    configure_root_logger("DEBUG" if args.verbose else "INFO", stream=sys.stderr)

    try:
        if args.command == "schema":
            load_kind_modules(args.module)
            print(json.dumps(describe_schema(args.kind, policy_named(args.policy)), indent=2))
            return 0

        wire = validate_task_file(args.path, args.kind, modules=args.module, policy=args.policy)
        if args.command == "normalize":
            print(dumps_wire(wire, indent=2))
        else:
            logger.info(f"{args.path} is a valid {args.kind} task")
        return 0
    except (TaskbricksException, FileNotFoundError, ValueError, ImportError) as e:
        logger.error(f"{args.command} failed: {e}")
        return 1


def main() -> None:
    sys.exit(cli())


if __name__ == "__main__":
    main()
