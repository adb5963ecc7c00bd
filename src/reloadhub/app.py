"""FastAPI application factory and lifespan management."""

import asyncio
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI

from reloadhub import __version__
from reloadhub.clients import ClientRegistry, OriginPolicy, origin_policy
from reloadhub.config import Settings
from reloadhub.errors import SetupError
from reloadhub.events import DirectoryWatcher, IgnoreMatcher, ReloadDispatcher
from reloadhub.lifecycle import GracefulShutdown
from reloadhub.routes import health, reload

logger = structlog.get_logger()


async def close_sessions_on_shutdown(
    shutdown: GracefulShutdown,
    registry: ClientRegistry,
) -> None:
    """Cancel every client session once shutdown is triggered.

    Args:
        shutdown: Shutdown coordinator instance.
        registry: Registry holding the sessions to cancel.
    """
    await shutdown.wait_for_trigger()
    await registry.close_all()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Manage application lifecycle events.

    Registers the watch tree, then runs the reload dispatcher for the
    lifetime of the application. On shutdown, stops the dispatcher,
    closes client sessions within the grace period and releases the
    filesystem observer.

    Args:
        app: FastAPI application instance.

    Yields:
        None during application runtime.

    Raises:
        SetupError: If the watch tree cannot be registered.
    """
    settings: Settings = app.state.settings
    shutdown: GracefulShutdown = app.state.shutdown or GracefulShutdown(
        timeout=settings.shutdown_timeout,
    )
    logger.info(
        "server_startup",
        host=settings.host,
        port=settings.port,
        watch_dir=settings.watch_dir,
        ws_path=settings.ws_path,
    )

    registry = ClientRegistry(send_timeout=settings.send_timeout)
    ignore = IgnoreMatcher(settings.ignore_list, root=settings.watch_dir)
    watcher = DirectoryWatcher(settings.watch_dir, ignore)

    try:
        watcher.start()
    except SetupError as e:
        logger.error("watch_setup_failed", path=e.path, error=str(e))
        raise

    dispatcher = ReloadDispatcher(
        watcher,
        registry,
        shutdown,
        debounce_ms=settings.debounce_ms,
        watch_new_dirs=settings.watch_new_dirs,
    )

    app.state.registry = registry
    app.state.watcher = watcher
    app.state.dispatcher = dispatcher

    dispatch_task = asyncio.create_task(dispatcher.run(), name="reload-dispatcher")
    closer_task = asyncio.create_task(
        close_sessions_on_shutdown(shutdown, registry),
        name="session-closer",
    )

    try:
        yield
    finally:
        shutdown.trigger()
        await shutdown.drain(dispatch_task)
        await shutdown.drain(closer_task)
        await registry.wait_empty(timeout=shutdown.timeout)

        watcher.stop()
        logger.info("server_shutdown", broadcasts=dispatcher.broadcasts)


def create_app(
    settings: Settings | None = None,
    shutdown: GracefulShutdown | None = None,
    policy: OriginPolicy | None = None,
) -> FastAPI:
    """Factory function to create configured FastAPI application.

    Args:
        settings: Configuration instance. Creates default if None.
        shutdown: Process-wide shutdown coordinator. A fresh one is made
            for each lifespan if None.
        policy: Origin check for the upgrade endpoint. Built from the
            configured allowed origins if None.

    Returns:
        Configured FastAPI application.
    """
    if settings is None:
        settings = Settings()

    app = FastAPI(
        title="reloadhub",
        version=__version__,
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.settings = settings
    app.state.shutdown = shutdown
    app.state.origin_policy = policy or origin_policy(settings.allowed_origins)

    app.include_router(health.router)
    app.include_router(reload.create_router(settings.ws_path))

    return app
