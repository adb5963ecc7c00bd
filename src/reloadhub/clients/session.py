"""Per-client connection lifecycle."""

import asyncio
import contextlib
from enum import Enum

import structlog

from reloadhub.clients.registry import ClientRegistry, MessageChannel
from reloadhub.errors import SessionError

logger = structlog.get_logger()

DISCONNECT_MESSAGE = "websocket.disconnect"


class SessionState(str, Enum):
    """Lifecycle states of a client session."""

    CONNECTING = "connecting"
    OPEN = "open"
    CLOSING = "closing"
    CLOSED = "closed"


class ConnectionSession:
    """Owns one upgraded connection from registration to release.

    The client is not expected to send anything. Inbound frames are read
    and discarded; the read loop only exists to notice the peer going
    away. The session ends on whichever comes first: the peer closing or
    failing, or the session's cancellation being triggered by a failed
    broadcast or by server shutdown.
    """

    def __init__(self, channel: MessageChannel, registry: ClientRegistry) -> None:
        """Initialize session for an accepted connection.

        Args:
            channel: Upgraded connection, owned by this session.
            registry: Registry to join while open.
        """
        self._channel = channel
        self._registry = registry
        self._state = SessionState.CONNECTING
        self._peer_closed = False

    @property
    def state(self) -> SessionState:
        """Current lifecycle state."""
        return self._state

    async def run(self) -> None:
        """Serve the connection until it closes or is cancelled.

        Never raises for per-client failures; those end this session only.
        """
        cancellation = await self._registry.register(self._channel)
        self._state = SessionState.OPEN

        reader = asyncio.create_task(self._read_until_closed())
        cancelled = asyncio.create_task(cancellation.wait())

        try:
            done, _ = await asyncio.wait(
                {reader, cancelled},
                return_when=asyncio.FIRST_COMPLETED,
            )
            if reader in done:
                self._log_read_outcome(reader)
            else:
                logger.debug("session_cancelled")
        finally:
            self._state = SessionState.CLOSING
            for task in (reader, cancelled):
                task.cancel()
            for task in (reader, cancelled):
                with contextlib.suppress(asyncio.CancelledError, SessionError):
                    await task

            await self._registry.unregister(self._channel)
            cancellation.cancel()
            await self._release()
            self._state = SessionState.CLOSED

    async def _read_until_closed(self) -> None:
        """Discard inbound frames until the peer disconnects.

        Raises:
            SessionError: If reading from the connection fails.
        """
        while True:
            try:
                message = await self._channel.receive()
            except Exception as e:
                raise SessionError(f"Read failed: {e}") from e

            if message.get("type") == DISCONNECT_MESSAGE:
                self._peer_closed = True
                return

    def _log_read_outcome(self, reader: asyncio.Task[None]) -> None:
        error = reader.exception()
        if error is None:
            logger.debug("session_peer_closed")
        else:
            logger.debug("session_read_failed", error=str(error))

    async def _release(self) -> None:
        if self._peer_closed:
            return
        try:
            await self._channel.close()
        except Exception as e:
            logger.debug("session_close_failed", error=str(e))
