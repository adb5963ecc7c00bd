"""Health check endpoints for liveness and readiness probes."""
from pathlib import Path
from typing import Literal

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from reloadhub.clients import ClientRegistry
from reloadhub.events import DirectoryWatcher

router = APIRouter(prefix="/health", tags=["health"])


class LivenessResponse(BaseModel):
    """Response model for liveness probe.

    Attributes:
        status: Always 'alive' when process is running.
    """

    status: Literal["alive"]


class ReadinessCheck(BaseModel):
    """Individual dependency check result.

    Attributes:
        name: Identifier for the dependency being checked.
        status: Result of the check ('ok' or 'failed').
        message: Error details when status is 'failed'.
    """

    name: str
    status: Literal["ok", "failed"]
    message: str | None = None


class ReadinessResponse(BaseModel):
    """Response model for readiness probe.

    Attributes:
        status: Overall readiness ('ready' or 'not_ready').
        checks: List of individual dependency check results.
        clients: Number of connected reload clients.
        watched_directories: Number of directories under watch.
    """

    status: Literal["ready", "not_ready"]
    checks: list[ReadinessCheck]
    clients: int
    watched_directories: int


def _check_directory(path: str) -> ReadinessCheck:
    """Verify directory exists and is accessible.

    Args:
        path: Path to directory.

    Returns:
        Check result with status and optional error message.
    """
    try:
        p = Path(path)
        if p.is_dir():
            next(p.iterdir(), None)
            return ReadinessCheck(name=f"dir:{path}", status="ok")
        return ReadinessCheck(
            name=f"dir:{path}",
            status="failed",
            message="Directory not found",
        )
    except PermissionError as e:
        return ReadinessCheck(
            name=f"dir:{path}",
            status="failed",
            message=f"Permission denied: {e}",
        )
    except OSError as e:
        return ReadinessCheck(
            name=f"dir:{path}",
            status="failed",
            message=str(e),
        )


def _check_watcher(watcher: DirectoryWatcher) -> ReadinessCheck:
    if watcher.running:
        return ReadinessCheck(name="watcher", status="ok")
    return ReadinessCheck(name="watcher", status="failed", message="Observer not running")


@router.get("/live", response_model=LivenessResponse)
async def liveness() -> LivenessResponse:
    """Liveness probe endpoint.

    Returns immediate success if the process is running.

    Returns:
        Liveness status response.
    """
    return LivenessResponse(status="alive")


@router.get("/ready", response_model=ReadinessResponse)
async def readiness(request: Request) -> JSONResponse:
    """Readiness probe endpoint.

    Validates that the watch root is readable and the filesystem
    observer is running. Returns 200 if all checks pass, 503 if any fail.

    Returns:
        Readiness status with individual check results and counters.
    """
    watcher: DirectoryWatcher = request.app.state.watcher
    registry: ClientRegistry = request.app.state.registry

    checks = [
        _check_directory(watcher.root),
        _check_watcher(watcher),
    ]
    all_ok = all(c.status == "ok" for c in checks)
    response = ReadinessResponse(
        status="ready" if all_ok else "not_ready",
        checks=checks,
        clients=registry.count,
        watched_directories=len(watcher.watched),
    )
    code = status.HTTP_200_OK if all_ok else status.HTTP_503_SERVICE_UNAVAILABLE
    return JSONResponse(content=response.model_dump(), status_code=code)
