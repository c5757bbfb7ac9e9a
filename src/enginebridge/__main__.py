"""Entry point for running the bridge as a stdio language server.

Usage:
    python -m enginebridge --root /path/to/project --engine mypkg.engine:new_server

The editor launches this process and talks LSP over stdin/stdout; every
message is relayed to the in-process engine.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from typing import TYPE_CHECKING

from enginebridge.logging import get_logger, setup_logging

if TYPE_CHECKING:
    from enginebridge.config.schema import Config

log = get_logger()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="enginebridge",
        description="Serve an in-process analysis engine over LSP stdio.",
    )
    parser.add_argument("--root", default=".", help="Workspace root to mirror (default: cwd)")
    parser.add_argument("--engine", help="Engine entry point as module:attribute")
    parser.add_argument("--verbose", "-v", type=int, choices=range(0, 5), help="Verbosity 0-4")
    parser.add_argument("--log", help="Log file path")
    return parser


async def _main(root: str, config: Config) -> int:
    from enginebridge.bridge import start_bridge
    from enginebridge.exceptions import StartupError
    from enginebridge.stdio import open_stdio, serve

    try:
        session = await start_bridge(root, config)
    except StartupError as e:
        log.error("Failed to start bridge: %s", e)
        print(f"Failed to start language server: {e}", file=sys.stderr)
        return 1

    reader, writer = await open_stdio()
    log.info("Ready to accept LSP messages")
    try:
        await serve(session, reader, writer)
    except (BrokenPipeError, ConnectionResetError):
        log.info("Pipe closed, shutting down...")
    return 0


def main(argv: list[str] | None = None) -> None:
    """Run the stdio bridge."""
    from enginebridge.config import load_config

    args = build_parser().parse_args(argv)

    # Load config before logging so config.logging applies
    config = load_config(workspace_root=args.root)
    if args.engine:
        config.engine.factory = args.engine
    if args.verbose is not None:
        config.logging.verbose = args.verbose
    if args.log:
        config.logging.file = args.log

    setup_logging(config.logging)
    log.info("Starting enginebridge for %s", args.root)

    sys.exit(asyncio.run(_main(args.root, config)))


if __name__ == "__main__":
    main()
