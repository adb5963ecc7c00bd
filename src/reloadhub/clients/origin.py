"""Pluggable origin checks for the upgrade endpoint."""
from collections.abc import Callable, Iterable

OriginPolicy = Callable[[str | None], bool]


def allow_any_origin(origin: str | None) -> bool:
    """Accept every origin, including requests without one."""
    return True


class AllowedOrigins:
    """Accept only origins from a fixed list.

    Requests without an Origin header are refused.
    """

    def __init__(self, origins: Iterable[str]) -> None:
        self._origins = frozenset(origin.rstrip("/") for origin in origins)

    def __call__(self, origin: str | None) -> bool:
        return origin is not None and origin.rstrip("/") in self._origins


def origin_policy(allowed_origins: list[str]) -> OriginPolicy:
    """Build the policy for a configured origin list.

    Args:
        allowed_origins: Allowed origin URLs. Empty accepts any origin.

    Returns:
        Predicate deciding whether an upgrade may proceed.
    """
    if not allowed_origins:
        return allow_any_origin
    return AllowedOrigins(allowed_origins)
