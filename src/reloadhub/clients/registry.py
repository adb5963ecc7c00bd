"""Concurrency-safe table of connected reload clients."""

import asyncio
import uuid
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol

import structlog

logger = structlog.get_logger()


class MessageChannel(Protocol):
    """Bidirectional message channel produced by a successful upgrade.

    Starlette's WebSocket satisfies this protocol.
    """

    async def send_text(self, data: str) -> None: ...

    async def receive(self) -> Mapping[str, Any]: ...

    async def close(self, code: int = 1000, reason: str | None = None) -> None: ...


class Cancellation:
    """Idempotent cancellation trigger for one client session."""

    def __init__(self) -> None:
        self._event = asyncio.Event()

    @property
    def cancelled(self) -> bool:
        """Whether cancel() has been called."""
        return self._event.is_set()

    def cancel(self) -> None:
        """Trigger cancellation. Safe to call more than once."""
        self._event.set()

    async def wait(self) -> None:
        """Block until cancel() is called."""
        await self._event.wait()


@dataclass(frozen=True)
class ClientEntry:
    """One registered client.

    Attributes:
        channel: Connection used to push messages to the client.
        cancellation: Trigger that tears down the client's session.
        client_id: Identifier used in log records.
    """

    channel: MessageChannel
    cancellation: Cancellation = field(default_factory=Cancellation)
    client_id: str = field(default_factory=lambda: str(uuid.uuid4()))


class ClientRegistry:
    """Registry of connected clients with fault-isolated broadcast.

    The table is guarded by a lock for insert, delete and snapshot.
    Sends happen outside the lock, so a client registering or leaving
    during a broadcast is never blocked by it. Entries are keyed by the
    channel's identity; the entry keeps the channel alive, so the key
    cannot be reused while it is registered.

    Attributes:
        send_timeout: Seconds a single client may take to accept a message.
    """

    def __init__(self, send_timeout: float = 5.0) -> None:
        """Initialize client registry.

        Args:
            send_timeout: Deadline for each individual send.
        """
        self._clients: dict[int, ClientEntry] = {}
        self._lock = asyncio.Lock()
        self._empty = asyncio.Event()
        self._empty.set()
        self._send_timeout = send_timeout

    @property
    def count(self) -> int:
        """Number of registered clients."""
        return len(self._clients)

    @property
    def send_timeout(self) -> float:
        """Deadline for each individual send, in seconds."""
        return self._send_timeout

    def __contains__(self, channel: object) -> bool:
        entry = self._clients.get(id(channel))
        return entry is not None and entry.channel is channel

    async def register(self, channel: MessageChannel) -> Cancellation:
        """Add a client to the table.

        Args:
            channel: Upgraded connection to the client.

        Returns:
            Cancellation trigger for the client's session.

        Raises:
            ValueError: If the channel is already registered.
        """
        async with self._lock:
            if id(channel) in self._clients:
                raise ValueError("Channel already registered")

            entry = ClientEntry(channel=channel)
            self._clients[id(channel)] = entry
            self._empty.clear()

        logger.info(
            "client_registered",
            client_id=entry.client_id,
            clients=len(self._clients),
        )
        return entry.cancellation

    async def unregister(self, channel: MessageChannel) -> None:
        """Remove a client from the table.

        Idempotent: removing an absent channel is a no-op.

        Args:
            channel: Connection to remove.
        """
        async with self._lock:
            entry = self._clients.get(id(channel))
            if entry is None or entry.channel is not channel:
                return

            del self._clients[id(channel)]
            if not self._clients:
                self._empty.set()

        logger.info(
            "client_unregistered",
            client_id=entry.client_id,
            clients=len(self._clients),
        )

    async def broadcast(self, payload: str) -> int:
        """Send a payload to every registered client.

        Sends run concurrently. A client whose send fails or exceeds the
        deadline is removed and its session cancelled; the remaining
        clients still receive the payload.

        Args:
            payload: Text message to send.

        Returns:
            Number of clients the payload was delivered to.
        """
        async with self._lock:
            entries = list(self._clients.values())

        if not entries:
            return 0

        results = await asyncio.gather(
            *(self._deliver(entry, payload) for entry in entries)
        )
        return sum(results)

    async def _deliver(self, entry: ClientEntry, payload: str) -> bool:
        if self._clients.get(id(entry.channel)) is not entry:
            # Left after the snapshot was taken.
            return False

        try:
            await asyncio.wait_for(
                entry.channel.send_text(payload),
                timeout=self._send_timeout,
            )
        except TimeoutError:
            logger.warning(
                "client_send_timeout",
                client_id=entry.client_id,
                timeout_seconds=self._send_timeout,
            )
        except Exception as e:
            logger.warning(
                "client_send_failed",
                client_id=entry.client_id,
                error=str(e) or type(e).__name__,
            )
        else:
            return True

        await self.unregister(entry.channel)
        entry.cancellation.cancel()
        return False

    async def close_all(self) -> int:
        """Cancel every registered client's session.

        Entries are removed by the sessions themselves as they close.

        Returns:
            Number of sessions cancelled.
        """
        async with self._lock:
            entries = list(self._clients.values())

        for entry in entries:
            entry.cancellation.cancel()

        logger.info("clients_closing", clients=len(entries))
        return len(entries)

    async def wait_empty(self, timeout: float | None = None) -> bool:
        """Wait until no clients remain registered.

        Args:
            timeout: Seconds to wait, or None to wait indefinitely.

        Returns:
            True if the table drained within the timeout.
        """
        try:
            await asyncio.wait_for(self._empty.wait(), timeout=timeout)
            return True
        except TimeoutError:
            logger.warning(
                "clients_drain_timeout",
                timeout_seconds=timeout,
                clients=len(self._clients),
            )
            return False
