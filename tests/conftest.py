"""Pytest configuration and fixtures."""

import asyncio
import sys
from pathlib import Path
from typing import Any

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import pytest
from fastapi import FastAPI

from reloadhub.app import create_app
from reloadhub.config import Settings


class FakeChannel:
    """In-memory stand-in for an upgraded WebSocket."""

    def __init__(
        self,
        fail_with: Exception | None = None,
        send_delay: float = 0.0,
    ) -> None:
        self.sent: list[str] = []
        self.closed = False
        self.fail_with = fail_with
        self.send_delay = send_delay
        self._inbound: asyncio.Queue[dict[str, Any]] = asyncio.Queue()

    async def send_text(self, data: str) -> None:
        if self.send_delay:
            await asyncio.sleep(self.send_delay)
        if self.fail_with is not None:
            raise self.fail_with
        self.sent.append(data)

    async def receive(self) -> dict[str, Any]:
        message = await self._inbound.get()
        if isinstance(message.get("error"), Exception):
            raise message["error"]
        return message

    async def close(self, code: int = 1000, reason: str | None = None) -> None:
        self.closed = True

    def push(self, text: str) -> None:
        self._inbound.put_nowait({"type": "websocket.receive", "text": text})

    def disconnect(self, code: int = 1001) -> None:
        self._inbound.put_nowait({"type": "websocket.disconnect", "code": code})

    def break_transport(self) -> None:
        self._inbound.put_nowait({"error": ConnectionResetError("connection reset")})


async def wait_until(predicate: Any, timeout: float = 2.0) -> None:
    """Poll until predicate() is truthy or fail the test."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            pytest.fail("condition not reached in time")
        await asyncio.sleep(0.01)


@pytest.fixture
def watch_root(tmp_path: Path) -> Path:
    """Create an empty project directory to watch."""
    root = tmp_path / "proj"
    root.mkdir()
    return root


@pytest.fixture
def settings(watch_root: Path) -> Settings:
    """Create test settings."""
    return Settings(
        host="127.0.0.1",
        port=8080,
        watch_dir=str(watch_root),
        send_timeout=1.0,
        shutdown_timeout=2.0,
    )


@pytest.fixture
def app(settings: Settings) -> FastAPI:
    """Create configured app."""
    return create_app(settings)
