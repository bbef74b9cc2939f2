"""
=============================================================================
HTTPCHAIN CLI ENTRY POINT
=============================================================================

    # Serve the demo app (reads HTTP_* / AUTH_* from the environment)
    AUTH_JWT_SECRET=... python -m httpchain
    AUTH_JWT_SECRET=... python -m httpchain serve --port 3000 --workers 8

    # Print a bearer token for /post, signed with the same secret
    AUTH_JWT_SECRET=... python -m httpchain token --subject alice

    curl -H "Authorization: Bearer $(python -m httpchain token)" \\
         http://127.0.0.1:8080/post

Settings come from ServerConfig.from_env(); command-line flags override
them. ``serve`` is the default command.

=============================================================================
"""

import argparse
import sys
from typing import List, Optional

from . import __version__
from .app import create_app, create_verifier
from .config import ServerConfig, LOG_LEVELS
from .errors import ConfigError
from .server import HTTPServer


COMMANDS = ("serve", "token")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="httpchain",
        description="Middleware-chain HTTP server",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  httpchain                                 # Serve with settings from the environment
  httpchain serve --port 3000               # Custom port
  httpchain serve --host 0.0.0.0 -w 8       # All interfaces, 8 workers
  httpchain token --subject alice           # Token for /post
        """,
    )
    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"httpchain {__version__}",
    )

    commands = parser.add_subparsers(dest="command")

    # ─────────────────────────────────────────────────────────────────────
    # serve
    # ─────────────────────────────────────────────────────────────────────

    serve = commands.add_parser("serve", help="Run the HTTP server (default)")
    serve.add_argument(
        "--host", "-H",
        default=None,
        help="Host to bind to (default: $HTTP_HOST or 127.0.0.1)",
    )
    serve.add_argument(
        "--port", "-p",
        type=int,
        default=None,
        help="Port to listen on (default: $HTTP_PORT or 8080)",
    )
    serve.add_argument(
        "--workers", "-w",
        type=int,
        default=None,
        help="Worker threads (default: $HTTP_WORKERS or 8, max is 2x this)",
    )
    serve.add_argument(
        "--log-level", "-l",
        choices=LOG_LEVELS,
        default=None,
        help="Logging level (default: $HTTP_LOG_LEVEL or INFO)",
    )
    serve.add_argument(
        "--log-format",
        choices=("text", "json"),
        default=None,
        help="Access log format (default: $HTTP_LOG_FORMAT or text)",
    )

    # ─────────────────────────────────────────────────────────────────────
    # token
    # ─────────────────────────────────────────────────────────────────────

    token = commands.add_parser("token", help="Print a signed bearer token")
    token.add_argument(
        "--subject", "-s",
        default="demo",
        help="Value of the 'sub' claim (default: demo)",
    )
    token.add_argument(
        "--expires-in", "-e",
        type=int,
        default=3600,
        help="Lifetime in seconds, 0 for no expiry (default: 3600)",
    )

    return parser


def config_from_args(args: argparse.Namespace) -> ServerConfig:
    """Environment settings with any command-line overrides applied."""
    config = ServerConfig.from_env()

    if args.host is not None:
        config.host = args.host
    if args.port is not None:
        config.port = args.port
    if args.workers is not None:
        config.min_workers = args.workers
        config.max_workers = args.workers * 2
    if args.log_level is not None:
        config.log_level = args.log_level
    if args.log_format is not None:
        config.log_format = args.log_format

    return config


def serve(args: argparse.Namespace) -> int:
    config = config_from_args(args)
    config.validate()

    server = HTTPServer(create_app(config), config)
    server.run()
    return 0


def token(args: argparse.Namespace) -> int:
    verifier = create_verifier(ServerConfig.from_env())
    expires_in = args.expires_in if args.expires_in > 0 else None
    print(verifier.issue({"sub": args.subject}, expires_in=expires_in))
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    argv = list(sys.argv[1:] if argv is None else argv)

    # "httpchain --port 3000" means "httpchain serve --port 3000".
    if not argv or (argv[0] not in COMMANDS and argv[0] not in ("-h", "--help", "-v", "--version")):
        argv.insert(0, "serve")

    args = build_parser().parse_args(argv)

    try:
        if args.command == "token":
            return token(args)
        return serve(args)
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
