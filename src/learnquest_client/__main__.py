"""Command-line entry point for learnquest-client.

Subcommands:
- ``probe``: check every candidate endpoint and report which one is live
- ``signin``: sign in and persist the session tokens
- ``logout``: end the session on the server and forget the tokens
- ``watch``: mirror notifications and print push events until interrupted
"""

import argparse
import asyncio
import getpass
import logging
import signal
import sys
from collections.abc import Sequence
from pathlib import Path
from typing import NoReturn

from learnquest_client.api.client import ApiClient
from learnquest_client.api.session import FileSessionStore, InMemorySessionStore
from learnquest_client.core.config import (
    ConfigurationError,
    EnvironmentVariableError,
    MainConfig,
    load_main_config,
)
from learnquest_client.facades.auth import AuthFacade
from learnquest_client.facades.notifications import NotificationFacade
from learnquest_client.models.auth import SigninRequest
from learnquest_client.realtime.event_bus import Event
from learnquest_client.realtime.synchronizer import NotificationSynchronizer
from learnquest_client.types.protocols import SessionStore
from learnquest_client.utils.logging import configure_logging

__all__ = ["main"]

EXIT_SUCCESS = 0
EXIT_FAILURE = 1

logger = logging.getLogger(__name__)


def parse_arguments(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments.

    CLI Arguments:
        --config, -c: Path to the YAML configuration file
        --log-level: Override log level from config
        command: probe | signin | logout | watch
    """
    parser = argparse.ArgumentParser(
        prog="learnquest",
        description="LearnQuest API client: endpoint probing, sessions and live notifications",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  learnquest probe
  learnquest --config learnquest.yaml signin --email a@b.com
  learnquest --log-level DEBUG watch --duration 60
        """,
    )
    _ = parser.add_argument(
        "--config",
        "-c",
        type=Path,
        default=None,
        help="Path to the YAML configuration file (defaults plus environment when omitted)",
        metavar="PATH",
    )
    _ = parser.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Override log level from configuration",
        metavar="LEVEL",
    )

    commands = parser.add_subparsers(dest="command", required=True)
    _ = commands.add_parser("probe", help="Probe the candidate endpoints")

    signin = commands.add_parser("signin", help="Sign in and store the session")
    _ = signin.add_argument("--email", required=True)
    _ = signin.add_argument("--password", help="Prompted for when omitted")
    _ = signin.add_argument("--remember-me", action="store_true")

    _ = commands.add_parser("logout", help="Sign out and forget the stored session")

    watch = commands.add_parser("watch", help="Print notifications as they arrive")
    _ = watch.add_argument(
        "--duration",
        type=float,
        default=None,
        help="Stop after this many seconds (runs until interrupted by default)",
    )

    return parser.parse_args(argv)


def build_session_store(config: MainConfig) -> SessionStore:
    if config.session.storage_path is None:
        return InMemorySessionStore()
    return FileSessionStore(config.session.storage_path)


async def run_probe(client: ApiClient) -> int:
    for candidate in client.candidates:
        result = await client.resolver.probe(candidate)
        status = result.status if result.status is not None else "unreachable"
        print(f"{'alive' if result.alive else 'down':5}  {candidate}  ({status})")

    active = await client.resolver.resolve()
    if active is None:
        print("No endpoint reachable", file=sys.stderr)
        return EXIT_FAILURE
    print(f"Active endpoint: {active}")
    return EXIT_SUCCESS


async def run_signin(client: ApiClient, email: str, password: str | None, remember_me: bool) -> int:
    if password is None:
        password = getpass.getpass("Password: ")
    auth = AuthFacade(client)
    response = await auth.signin(SigninRequest(email=email, password=password, remember_me=remember_me))
    if not response.success:
        print(f"Sign-in failed: {response.message}", file=sys.stderr)
        return EXIT_FAILURE
    if type(client.session_store) is InMemorySessionStore:
        logger.warning("No session.storage_path configured; the session is not persisted")
    print("Signed in")
    return EXIT_SUCCESS


async def run_logout(client: ApiClient) -> int:
    response = await AuthFacade(client).logout()
    print("Signed out" if response.success else f"Signed out locally ({response.message})")
    return EXIT_SUCCESS


async def run_watch(client: ApiClient, config: MainConfig, duration: float | None) -> int:
    if client.session_store.access_token is None:
        print("Not signed in; run 'learnquest signin' first", file=sys.stderr)
        return EXIT_FAILURE

    _ = AuthFacade(client)
    facade = NotificationFacade(client, stream_path=config.realtime.stream_path)
    synchronizer = NotificationSynchronizer(
        facade,
        page_size=config.realtime.page_size,
        auto_connect=config.realtime.auto_connect,
    )

    def print_event(event: Event) -> None:
        print(f"[{event.topic.name}] {event.data}")

    _ = synchronizer.event_bus.subscribe("notifications.received", print_event)
    _ = synchronizer.event_bus.subscribe("connection.*", print_event)

    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop.set)

    try:
        await synchronizer.set_authenticated(True)
        snapshot = synchronizer.snapshot()
        unread = snapshot.stats.unread_count if snapshot.stats is not None else snapshot.local_unread
        print(f"{len(snapshot.notifications)} notification(s), {unread} unread")
        if snapshot.error is not None:
            print(f"Warning: {snapshot.error}", file=sys.stderr)

        try:
            async with asyncio.timeout(duration):
                _ = await stop.wait()
        except TimeoutError:
            pass
    finally:
        for sig in (signal.SIGINT, signal.SIGTERM):
            _ = loop.remove_signal_handler(sig)
        await synchronizer.close()
    return EXIT_SUCCESS


async def async_main(args: argparse.Namespace) -> int:
    """Load configuration, build the client and run the selected command.

    Raises:
        ConfigurationError: If configuration is invalid
        EnvironmentVariableError: If a referenced environment variable is unset
    """
    config_path: Path | None = args.config  # pyright: ignore[reportAny]  # argparse boundary
    log_level: str | None = args.log_level  # pyright: ignore[reportAny]  # argparse boundary
    command: str = args.command  # pyright: ignore[reportAny]  # argparse boundary

    config = load_main_config(config_path)
    if log_level is not None:
        config.application.log_level = log_level

    configure_logging(log_level=config.application.log_level, log_file=config.application.log_file)
    logger.info("Using endpoints: %s", ", ".join(config.api.candidates()))

    async with ApiClient.from_config(config, session_store=build_session_store(config)) as client:
        if command == "probe":
            return await run_probe(client)
        if command == "signin":
            return await run_signin(
                client,
                args.email,  # pyright: ignore[reportAny]
                args.password,  # pyright: ignore[reportAny]
                args.remember_me,  # pyright: ignore[reportAny]
            )
        if command == "logout":
            return await run_logout(client)
        return await run_watch(client, config, args.duration)  # pyright: ignore[reportAny]


def main(argv: Sequence[str] | None = None) -> NoReturn:
    """Main entry point.

    Exit Codes:
        0: Command succeeded
        1: Configuration error, runtime error or failed command
    """
    args = parse_arguments(argv)

    try:
        exit_code = asyncio.run(async_main(args))

    except ConfigurationError as exc:
        print(f"Configuration error:\n{exc}", file=sys.stderr)
        sys.exit(EXIT_FAILURE)

    except EnvironmentVariableError as exc:
        print(f"Environment variable error:\n{exc}", file=sys.stderr)
        sys.exit(EXIT_FAILURE)

    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        sys.exit(EXIT_SUCCESS)

    except Exception as exc:
        print(f"Unexpected error: {exc}", file=sys.stderr)
        logging.exception("Unexpected error during execution")
        sys.exit(EXIT_FAILURE)

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
