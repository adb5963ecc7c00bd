"""Client bookkeeping and per-connection sessions."""
from reloadhub.clients.origin import AllowedOrigins, OriginPolicy, allow_any_origin, origin_policy
from reloadhub.clients.registry import Cancellation, ClientRegistry, MessageChannel
from reloadhub.clients.session import ConnectionSession, SessionState

__all__ = [
    "AllowedOrigins",
    "Cancellation",
    "ClientRegistry",
    "ConnectionSession",
    "MessageChannel",
    "OriginPolicy",
    "SessionState",
    "allow_any_origin",
    "origin_policy",
]
