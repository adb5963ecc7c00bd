"""Per-directory filesystem watcher bridged onto asyncio queues."""

import asyncio
import os
from collections.abc import Callable

import structlog
from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer
from watchdog.observers.api import BaseObserver

from reloadhub.errors import SetupError, WatchError
from reloadhub.events.ignore import IgnoreMatcher
from reloadhub.events.normalizer import decode_path, normalize_event
from reloadhub.events.types import ChangeEvent

logger = structlog.get_logger()


class ForwardingHandler(FileSystemEventHandler):
    """Watchdog event handler that hands changes to an event loop.

    Runs on watchdog's observer thread. Nothing here touches asyncio
    state directly; items are scheduled onto the loop thread instead.
    Exceptions raised while handling a notification are reported as
    WatchError values rather than killing the observer thread.
    """

    def __init__(
        self,
        loop: asyncio.AbstractEventLoop,
        on_change: Callable[[ChangeEvent], None],
        on_error: Callable[[WatchError], None],
    ) -> None:
        """Initialize forwarding handler.

        Args:
            loop: Event loop that owns the consumers.
            on_change: Called on the loop thread with each change.
            on_error: Called on the loop thread with each fault.
        """
        super().__init__()
        self._loop = loop
        self._on_change = on_change
        self._on_error = on_error

    def on_any_event(self, event: FileSystemEvent) -> None:
        """Normalize a raw event and forward it to the loop.

        Args:
            event: Raw watchdog filesystem event.
        """
        try:
            change = normalize_event(event)
        except Exception as e:
            path = decode_path(event.src_path)
            self._forward(self._on_error, WatchError(f"Bad notification: {e}", path))
            return

        if change is not None:
            self._forward(self._on_change, change)

    def _forward(self, callback: Callable[..., None], item: object) -> None:
        try:
            self._loop.call_soon_threadsafe(callback, item)
        except RuntimeError:
            # Loop already closed; the observer is being torn down.
            logger.debug("watcher_event_after_loop_closed")


class DirectoryWatcher:
    """Recursively registers directories and streams their changes.

    Every directory under the root gets its own non-recursive watch, so
    ignored subtrees never cost a watch. Registration happens during
    start(); directories created later are only watched if add_tree()
    is called for them.

    Attributes:
        events: Queue of change events for all registered directories.
        errors: Queue of faults reported after startup.
    """

    def __init__(
        self,
        root: str,
        ignore: IgnoreMatcher,
        loop: asyncio.AbstractEventLoop | None = None,
        observer_factory: Callable[[], BaseObserver] = Observer,
        join_timeout: float = 5.0,
    ) -> None:
        """Initialize directory watcher.

        Args:
            root: Directory tree to watch.
            ignore: Matcher for paths to leave unwatched.
            loop: Event loop for the queues. Defaults to the running loop
                at start().
            observer_factory: Builds the watchdog observer.
            join_timeout: Seconds to wait for the observer thread on stop.
        """
        self._root = os.path.normpath(root)
        self._ignore = ignore
        self._loop = loop
        self._observer_factory = observer_factory
        self._join_timeout = join_timeout
        self._observer: BaseObserver | None = None
        self._handler: ForwardingHandler | None = None
        self._watched: set[str] = set()
        self.events: asyncio.Queue[ChangeEvent] = asyncio.Queue()
        self.errors: asyncio.Queue[WatchError] = asyncio.Queue()

    @property
    def root(self) -> str:
        """Directory tree being watched."""
        return self._root

    @property
    def watched(self) -> frozenset[str]:
        """Directories currently registered with the observer."""
        return frozenset(self._watched)

    @property
    def running(self) -> bool:
        """Whether the observer thread is alive."""
        return self._observer is not None and self._observer.is_alive()

    def start(self) -> None:
        """Start the observer and register the whole tree under the root.

        Raises:
            SetupError: If the root or any directory below it cannot be
                read or registered.
            RuntimeError: If the watcher was already started.
        """
        if self._observer is not None:
            raise RuntimeError("Watcher already started")
        if not os.path.isdir(self._root):
            raise SetupError(f"Watch root is not a directory: {self._root}", self._root)

        loop = self._loop or asyncio.get_running_loop()
        self._handler = ForwardingHandler(
            loop,
            self.events.put_nowait,
            self.errors.put_nowait,
        )

        observer = self._observer_factory()
        observer.start()
        self._observer = observer

        try:
            self.add_tree(self._root)
        except SetupError:
            self.stop()
            raise

        logger.info(
            "watcher_started",
            root=self._root,
            directories=len(self._watched),
        )

    def add_tree(self, path: str) -> list[str]:
        """Register a directory and every unignored directory below it.

        Directories that are already registered are skipped, as is the
        whole subtree of an ignored directory. Symbolic links are not
        followed.

        Args:
            path: Directory to register.

        Returns:
            Newly registered directories, in walk order.

        Raises:
            SetupError: If a directory cannot be read or registered.
        """
        if self._observer is None or self._handler is None:
            raise RuntimeError("Watcher is not started")

        added: list[str] = []
        pending = [os.path.normpath(path)]

        while pending:
            directory = pending.pop()

            if self._ignore.should_ignore(directory):
                logger.debug("directory_ignored", path=directory)
                continue
            if directory in self._watched:
                continue

            try:
                with os.scandir(directory) as entries:
                    subdirs = [
                        os.path.normpath(os.path.join(directory, entry.name))
                        for entry in entries
                        if entry.is_dir(follow_symlinks=False)
                    ]
            except OSError as e:
                raise SetupError(f"Cannot read directory: {e}", directory) from e

            try:
                self._observer.schedule(self._handler, directory, recursive=False)
            except OSError as e:
                raise SetupError(f"Cannot watch directory: {e}", directory) from e

            self._watched.add(directory)
            added.append(directory)
            logger.debug("directory_watched", path=directory)

            pending.extend(sorted(subdirs, reverse=True))

        return added

    def stop(self) -> None:
        """Stop the observer and release its OS resources.

        Idempotent.
        """
        observer, self._observer = self._observer, None
        if observer is None:
            return

        observer.stop()
        observer.join(timeout=self._join_timeout)
        logger.info("watcher_stopped", directories=len(self._watched))
