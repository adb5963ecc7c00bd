"""WebSocket upgrade endpoint for reload clients."""

import structlog
from fastapi import APIRouter, WebSocket, status

from reloadhub.clients import ClientRegistry, ConnectionSession, OriginPolicy
from reloadhub.errors import UpgradeError

logger = structlog.get_logger()


async def upgrade(websocket: WebSocket, policy: OriginPolicy) -> None:
    """Complete the WebSocket handshake if the origin policy allows it.

    Args:
        websocket: Pending WebSocket connection.
        policy: Predicate deciding whether the origin may connect.

    Raises:
        UpgradeError: If the origin is refused or the handshake fails.
    """
    origin = websocket.headers.get("origin")
    if not policy(origin):
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        raise UpgradeError("Origin not allowed", origin)

    try:
        await websocket.accept()
    except Exception as e:
        raise UpgradeError(f"Handshake failed: {e}", origin) from e


async def reload_socket(websocket: WebSocket) -> None:
    """Push a "reload" message to the client whenever the watch tree changes.

    The connection stays open until the client leaves, a send to it
    fails, or the server shuts down. Messages from the client are ignored.

    Args:
        websocket: Incoming WebSocket connection.
    """
    registry: ClientRegistry = websocket.app.state.registry
    policy: OriginPolicy = websocket.app.state.origin_policy
    client = websocket.client.host if websocket.client else None

    try:
        await upgrade(websocket, policy)
    except UpgradeError as e:
        logger.warning(
            "websocket_upgrade_failed",
            error=str(e),
            origin=e.origin,
            client=client,
        )
        return

    logger.debug("websocket_connected", client=client)
    await ConnectionSession(websocket, registry).run()
    logger.debug("websocket_closed", client=client)


def create_router(path: str) -> APIRouter:
    """Build the router serving the upgrade endpoint.

    Args:
        path: URL path clients connect to.

    Returns:
        Router with the WebSocket route registered.
    """
    router = APIRouter(tags=["reload"])
    router.add_api_websocket_route(path, reload_socket)
    return router
