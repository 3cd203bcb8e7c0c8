"""CLI entrypoint for streamawait."""

from __future__ import annotations

import argparse
import asyncio
from collections.abc import Sequence
from importlib import metadata
import logging
from pathlib import Path
import sys
from typing import Any

from .config import load_config
from .exceptions import StreamAwaitError
from .logging_utils import configure_logging
from .operations import bifurcate, extract, stream_from_string, wait
from .streams import FileReadStream, FileWriteStream

LOGGER = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="streamawait",
        description="Await, extract and fork file streams",
    )
    parser.add_argument(
        "--version",
        action="store_true",
        help="Print version and exit",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to a TOML config file",
    )
    commands = parser.add_subparsers(dest="command")

    cat = commands.add_parser("cat", help="Extract files and print their contents")
    cat.add_argument("paths", nargs="+", type=Path)

    tee = commands.add_parser("tee", help="Copy one file into two destinations")
    tee.add_argument("source", type=Path)
    tee.add_argument("output1", type=Path)
    tee.add_argument("output2", type=Path)

    echo = commands.add_parser("echo", help="Write a string into a file")
    echo.add_argument("text")
    echo.add_argument("output", type=Path)
    return parser


async def _cat(paths: Sequence[Path], streams_config: dict[str, Any]) -> None:
    for path in paths:
        source = FileReadStream(
            path,
            encoding=streams_config["encoding"],
            chunk_size=streams_config["chunk_size"],
        )
        sys.stdout.write(await extract(source))
    sys.stdout.flush()


async def _echo(text: str, output: Path, streams_config: dict[str, Any]) -> None:
    destination = FileWriteStream(output, encoding=streams_config["encoding"])
    done = wait(destination)
    stream_from_string(text, chunk_size=streams_config["string_chunk_size"]).pipe(
        destination
    )
    await done


async def _tee(
    source_path: Path,
    output1: Path,
    output2: Path,
    streams_config: dict[str, Any],
) -> None:
    source = FileReadStream(source_path, chunk_size=streams_config["chunk_size"])
    # bifurcate() only watches the outputs; source errors surface here.
    source_done = wait(source)
    await asyncio.gather(
        bifurcate(
            source,
            FileWriteStream(output1, encoding=streams_config["encoding"]),
            FileWriteStream(output2, encoding=streams_config["encoding"]),
        ),
        source_done,
    )


def main(argv: Sequence[str] | None = None) -> int:
    """Load configuration, handle CLI flags, and run the selected command."""

    parser = _build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    if args.version:
        try:
            version = metadata.version("streamawait")
        except metadata.PackageNotFoundError:
            version = "0.0.0"
        print(f"streamawait {version}")
        return 0

    if args.command is None:
        parser.print_help()
        return 0

    config = load_config(config_path=args.config)
    configure_logging(config["logging"])

    try:
        if args.command == "cat":
            asyncio.run(_cat(args.paths, config["streams"]))
        elif args.command == "echo":
            asyncio.run(_echo(args.text, args.output, config["streams"]))
        else:
            asyncio.run(
                _tee(args.source, args.output1, args.output2, config["streams"])
            )
    except (OSError, ValueError, StreamAwaitError) as exc:
        LOGGER.error(
            "cli.command.failed",
            extra={"event": "cli.command.failed", "command": args.command},
        )
        print(f"streamawait: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
