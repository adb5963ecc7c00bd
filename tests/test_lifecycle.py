"""Shutdown coordination tests."""

import asyncio
from pathlib import Path

import pytest
from conftest import FakeChannel, wait_until

from reloadhub.app import close_sessions_on_shutdown
from reloadhub.clients import ClientRegistry, ConnectionSession, SessionState
from reloadhub.events import DirectoryWatcher, IgnoreMatcher, ReloadDispatcher
from reloadhub.lifecycle import GracefulShutdown


@pytest.mark.asyncio
async def test_trigger_is_idempotent() -> None:
    """Triggering twice leaves shutdown triggered."""
    shutdown = GracefulShutdown()
    assert not shutdown.is_triggered
    shutdown.trigger()
    shutdown.trigger()
    assert shutdown.is_triggered
    await asyncio.wait_for(shutdown.wait_for_trigger(), timeout=0.1)


@pytest.mark.asyncio
async def test_drain_cancels_stuck_task() -> None:
    """A task that outlives the grace period is cancelled."""
    shutdown = GracefulShutdown(timeout=0.05)
    stuck = asyncio.create_task(asyncio.sleep(10))

    assert not await shutdown.drain(stuck)
    assert stuck.cancelled()


@pytest.mark.asyncio
async def test_drain_returns_finished_task() -> None:
    """A task finishing within the grace period drains cleanly."""
    shutdown = GracefulShutdown(timeout=1.0)
    quick = asyncio.create_task(asyncio.sleep(0.01))

    assert await shutdown.drain(quick)


@pytest.mark.asyncio
async def test_shutdown_drains_watcher_dispatcher_and_sessions(watch_root: Path) -> None:
    """One trigger stops dispatch, closes sessions and frees the watcher."""
    shutdown = GracefulShutdown(timeout=1.0)
    registry = ClientRegistry()
    watcher = DirectoryWatcher(str(watch_root), IgnoreMatcher([], root=str(watch_root)))
    watcher.start()

    dispatcher = ReloadDispatcher(watcher, registry, shutdown)
    dispatch_task = asyncio.create_task(dispatcher.run())
    closer_task = asyncio.create_task(close_sessions_on_shutdown(shutdown, registry))

    channels = [FakeChannel() for _ in range(3)]
    sessions = [ConnectionSession(channel, registry) for channel in channels]
    session_tasks = [asyncio.create_task(session.run()) for session in sessions]
    await wait_until(lambda: registry.count == 3)

    shutdown.trigger()

    assert await shutdown.drain(dispatch_task)
    assert await shutdown.drain(closer_task)
    await asyncio.wait_for(asyncio.gather(*session_tasks), timeout=1.0)
    assert await registry.wait_empty(timeout=0.1)
    watcher.stop()

    assert not watcher.running
    assert all(session.state is SessionState.CLOSED for session in sessions)
    assert all(channel.closed for channel in channels)
