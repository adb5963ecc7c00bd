"""Control loop turning filesystem changes into reload broadcasts."""

import asyncio
import contextlib
from typing import Protocol

import structlog

from reloadhub.clients.registry import ClientRegistry
from reloadhub.errors import SetupError, WatchError
from reloadhub.events.types import RELOAD_PAYLOAD, ChangeEvent, ChangeKind
from reloadhub.lifecycle import GracefulShutdown

logger = structlog.get_logger()


class ChangeSource(Protocol):
    """What the dispatcher needs from a watcher."""

    events: asyncio.Queue[ChangeEvent]
    errors: asyncio.Queue[WatchError]

    def add_tree(self, path: str) -> list[str]: ...


class ReloadDispatcher:
    """Consumes watcher output and broadcasts reloads to clients.

    Each change is broadcast and awaited before the next one is taken,
    so every client sees reloads in the order the changes were observed.
    Watch errors are logged and otherwise ignored.

    Attributes:
        debounce_ms: Coalescing window. Zero broadcasts once per change.
        watch_new_dirs: Register directories created after startup.
    """

    def __init__(
        self,
        source: ChangeSource,
        registry: ClientRegistry,
        shutdown: GracefulShutdown,
        debounce_ms: int = 0,
        watch_new_dirs: bool = False,
    ) -> None:
        """Initialize reload dispatcher.

        Args:
            source: Watcher providing change and error queues.
            registry: Clients to notify.
            shutdown: Process-wide shutdown signal that ends the loop.
            debounce_ms: Window in which further changes are folded into
                the same broadcast.
            watch_new_dirs: Register newly created directory trees with
                the source.
        """
        self._source = source
        self._registry = registry
        self._shutdown = shutdown
        self._debounce = debounce_ms / 1000.0
        self._watch_new_dirs = watch_new_dirs
        self._broadcasts = 0

    @property
    def broadcasts(self) -> int:
        """Number of reload broadcasts sent so far."""
        return self._broadcasts

    async def run(self) -> None:
        """Dispatch until shutdown is triggered."""
        logger.info(
            "dispatcher_started",
            debounce_ms=int(self._debounce * 1000),
            watch_new_dirs=self._watch_new_dirs,
        )

        stop = asyncio.create_task(self._shutdown.wait_for_trigger())
        next_change = asyncio.create_task(self._source.events.get())
        next_error = asyncio.create_task(self._source.errors.get())

        try:
            while True:
                done, _ = await asyncio.wait(
                    {stop, next_change, next_error},
                    return_when=asyncio.FIRST_COMPLETED,
                )
                if stop in done:
                    return

                if next_error in done:
                    self._log_watch_error(next_error.result())
                    next_error = asyncio.create_task(self._source.errors.get())

                if next_change in done:
                    changes = [next_change.result()]
                    if self._debounce > 0:
                        changes.extend(await self._collect_burst())
                    await self._dispatch(changes)
                    next_change = asyncio.create_task(self._source.events.get())
        finally:
            for task in (stop, next_change, next_error):
                task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await task
            logger.info("dispatcher_stopped", broadcasts=self._broadcasts)

    async def _collect_burst(self) -> list[ChangeEvent]:
        """Gather changes arriving within the debounce window."""
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self._debounce
        burst: list[ChangeEvent] = []

        while True:
            remaining = deadline - loop.time()
            if remaining <= 0:
                break
            try:
                burst.append(
                    await asyncio.wait_for(self._source.events.get(), timeout=remaining)
                )
            except TimeoutError:
                break

        return burst

    async def _dispatch(self, changes: list[ChangeEvent]) -> None:
        for change in changes:
            logger.debug(
                "change_detected",
                path=change.path,
                kind=change.kind.value,
                is_directory=change.is_directory,
            )
            if self._watch_new_dirs:
                self._register_new_directory(change)

        delivered = await self._registry.broadcast(RELOAD_PAYLOAD)
        self._broadcasts += 1
        logger.debug(
            "reload_broadcast",
            delivered_to=delivered,
            coalesced=len(changes),
        )

    def _register_new_directory(self, change: ChangeEvent) -> None:
        if not change.is_directory:
            return
        if change.kind is ChangeKind.CREATED:
            path = change.path
        elif change.kind is ChangeKind.MOVED and change.dest_path:
            path = change.dest_path
        else:
            return

        try:
            added = self._source.add_tree(path)
        except SetupError as e:
            self._log_watch_error(WatchError(str(e), e.path))
            return

        if added:
            logger.info("directories_added", path=path, directories=len(added))

    def _log_watch_error(self, error: WatchError) -> None:
        logger.warning("watch_error", error=str(error), path=error.path)
