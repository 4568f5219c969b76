"""
=============================================================================
FILE SERVER CLI ENTRY POINT
=============================================================================

    # Serve the current directory on 127.0.0.1:7878
    python -m fileserver

    # Serve ./public on every interface, port 8000
    python -m fileserver --root ./public --host 0.0.0.0 --port 8000

    # Same thing, through the environment
    FILESERVER_ROOT=./public FILESERVER_PORT=8000 pyfileserver

Environment variables (see ServerConfig.from_env) set the defaults;
command-line flags override them.

Exit status: 0 after a normal shutdown (Ctrl+C, SIGTERM), 1 when the
server cannot start (bad configuration, port in use).

=============================================================================
"""

import argparse
import sys
from typing import Optional, Sequence

from . import __version__
from .config import LOG_FORMATS, LOG_LEVELS, ServerConfig
from .server import FileServer


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pyfileserver",
        description="Minimal multi-threaded HTTP file server",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m fileserver                          # Serve CWD on 127.0.0.1:7878
  python -m fileserver --root ./public          # Serve another directory
  python -m fileserver --host 0.0.0.0 -p 8000   # All interfaces, port 8000
  python -m fileserver --log-level DEBUG        # Verbose logging
        """,
    )

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--host", "-H",
        help="Host to bind to (default: 127.0.0.1)",
    )
    parser.add_argument(
        "--port", "-p",
        type=int,
        help="Port to listen on (default: 7878)",
    )
    parser.add_argument(
        "--timeout", "-t",
        type=float,
        help="Per-connection deadline in seconds (default: 30)",
    )

    # ─────────────────────────────────────────────────────────────────────
    # SERVING ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--root", "-r",
        help="Directory to serve (default: current directory)",
    )
    parser.add_argument(
        "--workers", "-w",
        type=int,
        help="Maximum number of worker threads (default: 16)",
    )

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--log-level", "-l",
        choices=LOG_LEVELS,
        type=str.upper,
        help="Logging level (default: INFO)",
    )
    parser.add_argument(
        "--log-format",
        choices=LOG_FORMATS,
        help="Access log format (default: text)",
    )

    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"pyfileserver {__version__}",
    )
    return parser


def build_config(args: argparse.Namespace) -> ServerConfig:
    """
    Environment defaults overlaid with the flags that were given.

    Raises:
        ValueError: If an environment variable does not parse.
    """
    config = ServerConfig.from_env()

    if args.host is not None:
        config.host = args.host
    if args.port is not None:
        config.port = args.port
    if args.timeout is not None:
        config.timeout = args.timeout
    if args.root is not None:
        config.root_dir = args.root
    if args.workers is not None:
        config.max_workers = args.workers
        config.min_workers = min(config.min_workers, args.workers)
    if args.log_level is not None:
        config.log_level = args.log_level
    if args.log_format is not None:
        config.log_format = args.log_format

    return config


def main(argv: Optional[Sequence[str]] = None) -> int:
    """
    CLI entry point.

    Returns:
        Process exit status.
    """
    args = build_parser().parse_args(argv)

    try:
        server = FileServer(build_config(args))
        server.run()
    except (ValueError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
