"""Command-line interface for Inbox Notifier.

This module provides the main entry point for the CLI application.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

import structlog

from inbox_notifier import __version__
from inbox_notifier.auth.credentials import CredentialStore
from inbox_notifier.auth.flow import authorize
from inbox_notifier.config import Settings, get_settings
from inbox_notifier.exceptions import ConfigurationError, InboxNotifierError
from inbox_notifier.gmail.client import GmailClient

logger = structlog.get_logger()


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="inbox-notifier", description="Gmail new-mail notifier")
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve_parser = subparsers.add_parser("serve", help="Run the poller and the control API")
    serve_parser.add_argument("--host", default=None, help="Bind address (default: settings host)")
    serve_parser.add_argument("--port", type=int, default=None, help="Port (default: settings port)")

    auth_parser = subparsers.add_parser(
        "authorize",
        help="One-time Gmail OAuth; writes the token file",
    )
    auth_parser.add_argument(
        "--port",
        type=int,
        default=0,
        help="Local OAuth callback port (default: any free port)",
    )
    auth_parser.add_argument(
        "--no-browser",
        action="store_true",
        help="Print the consent URL instead of opening a browser",
    )
    auth_parser.add_argument(
        "--force",
        action="store_true",
        help="Re-authorize even if a token file already exists",
    )

    subparsers.add_parser("check", help="Print the current unread messages once")

    return parser


def _cmd_serve(args: argparse.Namespace, settings: Settings) -> int:
    import uvicorn

    from inbox_notifier.api.app import create_app

    host = args.host or settings.host
    port = args.port or settings.port
    print(f"Inbox Notifier listening on http://{host}:{port}")

    # uvicorn handles SIGINT/SIGTERM and runs the app shutdown hook.
    uvicorn.run(create_app(settings), host=host, port=port, log_level=settings.log_level.lower())
    return 0


def _cmd_authorize(args: argparse.Namespace, settings: Settings) -> int:
    try:
        written = authorize(
            settings,
            port=args.port,
            open_browser=not args.no_browser,
            force=args.force,
        )
    except ConfigurationError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    if written:
        print(f"Authentication successful. Token saved to {settings.gmail_token_path}")
        print("Start the service with: inbox-notifier serve")
    else:
        print(
            f"Token file {settings.gmail_token_path} already exists; "
            "use --force to re-authorize."
        )
    return 0


async def _cmd_check(settings: Settings) -> int:
    store = CredentialStore(settings)
    if not store.load():
        print("Not authenticated. Run: inbox-notifier authorize", file=sys.stderr)
        return 1

    client = GmailClient(store, settings)
    try:
        emails = await client.fetch_unread()
    except InboxNotifierError as exc:
        print(f"Failed to fetch emails: {exc}", file=sys.stderr)
        return 1

    print(f"{len(emails)} unread message(s)")
    for e in emails:
        print(f"- {e.date}\t{e.sender}\t{e.subject}")
    return 0


def configure_logging(settings: Settings) -> None:
    level = getattr(logging, settings.log_level.upper(), logging.INFO)
    structlog.configure(wrapper_class=structlog.make_filtering_bound_logger(level))


def main(args: list[str] | None = None) -> int:
    """Main entry point for the Inbox Notifier CLI.

    Args:
        args: Command-line arguments. If None, uses sys.argv.

    Returns:
        Exit code (0 for success, non-zero for failure).
    """
    if args is None:
        args = sys.argv[1:]

    settings = get_settings()
    configure_logging(settings)

    parser = _build_parser()
    parsed = parser.parse_args(args)

    logger.info("inbox_notifier_started", version=__version__, command=parsed.command)

    if parsed.command == "serve":
        return _cmd_serve(parsed, settings)
    if parsed.command == "authorize":
        return _cmd_authorize(parsed, settings)
    if parsed.command == "check":
        return asyncio.run(_cmd_check(settings))

    logger.error("unknown_command", command=parsed.command)
    return 2


if __name__ == "__main__":
    sys.exit(main())
