"""Entry point for the reload server."""

import argparse
import asyncio
import contextlib
import signal
import sys
from collections.abc import Sequence

import structlog
import uvicorn

from reloadhub.app import create_app
from reloadhub.config import Settings
from reloadhub.lifecycle import GracefulShutdown
from reloadhub.logging import configure_logging

logger = structlog.get_logger()


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse command-line flags.

    Flags left unset fall back to RELOAD_* environment variables and the
    .env file.

    Args:
        argv: Arguments to parse. Defaults to sys.argv.

    Returns:
        Parsed flags.
    """
    parser = argparse.ArgumentParser(
        prog="reloadhub",
        description="Push a reload message to WebSocket clients when files change.",
    )
    parser.add_argument("-p", "--port", type=int, help="port to run the WebSocket server on")
    parser.add_argument("-w", "--watch", dest="watch_dir", help="directory to watch for changes")
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=None,
        help="enable verbose logging",
    )
    parser.add_argument(
        "-i",
        "--ignore",
        action="append",
        default=[],
        help="comma-separated list of directories or files to ignore (repeatable)",
    )
    return parser.parse_args(argv)


def load_settings(argv: Sequence[str] | None = None) -> Settings:
    """Resolve settings from flags, environment and .env file.

    Args:
        argv: Arguments to parse. Defaults to sys.argv.

    Returns:
        Resolved configuration.
    """
    args = parse_args(argv)
    overrides: dict[str, object] = {}
    if args.port is not None:
        overrides["port"] = args.port
    if args.watch_dir is not None:
        overrides["watch_dir"] = args.watch_dir
    if args.verbose is not None:
        overrides["verbose"] = args.verbose
    if args.ignore:
        overrides["ignore_raw"] = ",".join(args.ignore)
    return Settings(**overrides)


async def serve(settings: Settings) -> bool:
    """Run uvicorn server with graceful shutdown support.

    Handles SIGTERM/SIGINT for clean shutdown.

    Args:
        settings: Server configuration.

    Returns:
        True if the server started, False if startup failed.
    """
    shutdown = GracefulShutdown(timeout=settings.shutdown_timeout)
    app = create_app(settings, shutdown=shutdown)

    config = uvicorn.Config(
        app,
        host=settings.host,
        port=settings.port,
        log_level="warning",
        access_log=False,
        timeout_graceful_shutdown=int(settings.shutdown_timeout),
    )
    server = uvicorn.Server(config)

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, shutdown.trigger)

    async def shutdown_server() -> None:
        """Wait for shutdown signal and stop server."""
        await shutdown.wait_for_trigger()
        server.should_exit = True

    stopper = asyncio.create_task(shutdown_server())
    try:
        await server.serve()
    finally:
        stopper.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await stopper

    return server.started


def main(argv: Sequence[str] | None = None) -> None:
    """Entry point for python -m reloadhub."""
    settings = load_settings(argv)
    configure_logging(verbose=settings.verbose)
    if settings.verbose:
        logger.debug("verbose_logging_enabled")

    try:
        started = asyncio.run(serve(settings))
    except KeyboardInterrupt:
        sys.exit(0)

    if not started:
        logger.error("startup_failed", watch_dir=settings.watch_dir)
        sys.exit(1)

    logger.info("server_stopped")
    sys.exit(0)


if __name__ == "__main__":
    main()
