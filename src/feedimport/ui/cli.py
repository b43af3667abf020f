# ruff: noqa: T201

from __future__ import annotations

import argparse
import logging
import sys
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from feedimport.app import (
    clear_source,
    expire_source,
    forget_source,
    import_source,
    run_scheduled,
    source_status,
    unlock_source,
)
from feedimport.config import (
    ConfigurationError,
    configure_logging,
    get_importer_config_path,
    load_importer_definition,
)
from feedimport.domain.errors import (
    MalformedInputError,
    MappingConfigurationError,
    SourceLockedError,
    SourceUnavailableError,
)

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from feedimport.config import ImporterDefinition
    from feedimport.domain.batch import SourceStatus

log = logging.getLogger(__name__)

_OPERATIONS = {
    "import": import_source,
    "clear": clear_source,
    "expire": expire_source,
}

# failures confined to one source; the remaining sources still run
_SOURCE_FAILURES = (SourceUnavailableError, MalformedInputError, SourceLockedError)


def _add_source_arguments(parser: argparse.ArgumentParser) -> None:
    group = parser.add_mutually_exclusive_group(required=True)
    group.add_argument(
        "--source",
        action="append",
        dest="sources",
        metavar="SOURCE_ID",
        help="Source to operate on (repeatable)",
    )
    group.add_argument(
        "--all",
        action="store_true",
        dest="all_sources",
        help="Operate on every configured source",
    )


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Import feeds into the entity store")
    parser.add_argument(
        "--config",
        type=str,
        help="Importer definition (TOML); defaults to $FEEDIMPORT_CONFIG",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log debug output",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    for name, help_text in (
        ("import", "Import sources"),
        ("clear", "Delete every entity imported from sources"),
        ("expire", "Delete entities older than the configured age"),
    ):
        operation = subparsers.add_parser(name, help=help_text)
        _add_source_arguments(operation)
        operation.add_argument(
            "--chunk",
            action="store_true",
            help="Run a single chunk and return; re-invoke to continue",
        )

    unlock = subparsers.add_parser("unlock", help="Force-release a source lock and progress")
    _add_source_arguments(unlock)

    forget = subparsers.add_parser(
        "forget", help="Drop item bookkeeping of sources; imported entities are kept"
    )
    _add_source_arguments(forget)

    status = subparsers.add_parser("status", help="Show lock, progress and item counts")
    _add_source_arguments(status)

    subparsers.add_parser("schedule", help="Run one chunk of every due operation")

    return parser.parse_args(list(argv))


def _selected_sources(args: argparse.Namespace, definition: ImporterDefinition) -> list[str]:
    if getattr(args, "all_sources", False):
        if not definition.sources:
            raise ValueError(f"Importer {definition.importer.id!r} has no sources")
        return [source.id for source in definition.sources]
    source_ids: list[str] = args.sources
    for source_id in source_ids:
        definition.source(source_id)
    return source_ids


def _print_status(status: SourceStatus) -> None:
    lock = status.lock_operation.value if status.lock_operation else "unlocked"
    print(f"{status.source_id}: {status.item_count} item(s), {lock}")
    for kind, progress in status.progress.items():
        if progress.total is None and not progress.processed:
            continue
        print(
            f"  {kind.value}: {progress.phase.value} {progress.processed}/{progress.total} "
            f"{progress.fraction:.0%} "
            f"(created={progress.created}, updated={progress.updated}, "
            f"failed={progress.failed}, deleted={progress.deleted})"
        )


def _execute_source(
    args: argparse.Namespace, definition: ImporterDefinition, source_id: str
) -> None:
    if args.command in _OPERATIONS:
        _OPERATIONS[args.command](definition, source_id, single_chunk=args.chunk)
    elif args.command == "unlock":
        unlock_source(definition, source_id)
    elif args.command == "status":
        _print_status(source_status(definition, source_id))
    elif args.command == "forget":
        removed = forget_source(definition, source_id)
        print(f"{source_id}: forgot {removed} item(s)")
    else:
        raise ValueError(f"Unsupported command: {args.command}")


def _execute(args: argparse.Namespace, definition: ImporterDefinition) -> list[str]:
    """Run the command for every selected source and return the ids that failed."""

    if args.command == "schedule":
        run_scheduled(definition)
        return []

    failed: list[str] = []
    for source_id in _selected_sources(args, definition):
        try:
            _execute_source(args, definition, source_id)
        except _SOURCE_FAILURES as exc:
            log.error("%s of %s failed: %s", args.command.capitalize(), source_id, exc)
            failed.append(source_id)
    return failed


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    load_dotenv()
    signal(SIGINT, sigint_handler)
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    try:
        parsed_args = _parse_args(args_list)
        configure_logging(level=logging.DEBUG if parsed_args.verbose else logging.INFO)
        definition = load_importer_definition(get_importer_config_path(parsed_args.config))
    except (ValueError, ConfigurationError):
        configure_logging()
        log.exception("CLI validation error")
        sys.exit(2)

    try:
        failed = _execute(parsed_args, definition)
    except (ValueError, ConfigurationError, MappingConfigurationError):
        log.exception("Invalid importer configuration")
        sys.exit(2)
    except Exception:
        log.exception("Fatal error during %s", parsed_args.command)
        sys.exit(1)
    if failed:
        log.error("%s failed for: %s", parsed_args.command.capitalize(), ", ".join(failed))
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


if __name__ == "__main__":
    main()
