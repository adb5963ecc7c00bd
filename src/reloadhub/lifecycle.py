"""Graceful shutdown coordinator for the server's async tasks."""
import asyncio

import structlog

logger = structlog.get_logger()


class GracefulShutdown:
    """Coordinates graceful shutdown across async tasks.

    The dispatcher loop, the client sessions and the HTTP server all
    watch the same trigger, so one signal stops all of them.

    Attributes:
        is_triggered: Whether shutdown has been triggered.
        timeout: Grace period for in-flight work after the trigger.
    """

    def __init__(self, timeout: float = 10.0) -> None:
        """Initialize shutdown coordinator.

        Args:
            timeout: Seconds allowed for in-flight work once triggered.
        """
        self._event = asyncio.Event()
        self._timeout = timeout

    @property
    def is_triggered(self) -> bool:
        """Check if shutdown has been triggered.

        Returns:
            True if shutdown signal received.
        """
        return self._event.is_set()

    @property
    def timeout(self) -> float:
        """Grace period in seconds."""
        return self._timeout

    def trigger(self) -> None:
        """Signal all waiting tasks to begin shutdown.

        Idempotent - calling multiple times has no additional effect.
        """
        if self._event.is_set():
            return
        logger.info("shutdown_triggered")
        self._event.set()

    async def wait_for_trigger(self) -> None:
        """Wait indefinitely for shutdown signal.

        Blocks until trigger() is called from another task or signal handler.
        """
        await self._event.wait()

    async def drain(self, task: asyncio.Task[None], timeout: float | None = None) -> bool:
        """Wait for a task to finish within the grace period.

        The task is cancelled if it is still running when the grace
        period expires.

        Args:
            task: Task expected to stop on its own after the trigger.
            timeout: Seconds to wait, uses default if None.

        Returns:
            True if the task finished within the grace period.
        """
        t = timeout if timeout is not None else self._timeout
        done, _ = await asyncio.wait({task}, timeout=t)
        if task in done:
            return True

        logger.warning("shutdown_timeout", task=task.get_name(), timeout_seconds=t)
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        return False
