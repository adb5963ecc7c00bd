"""Error taxonomy for the reload server."""


class ReloadHubError(Exception):
    """Base class for all reload server errors."""


class SetupError(ReloadHubError):
    """Raised when the watch tree cannot be registered at startup.

    Fatal: the process cannot serve reloads without its watch set.
    """

    def __init__(self, message: str, path: str) -> None:
        """Initialize setup error.

        Args:
            message: Error description.
            path: Directory that failed to be read or registered.
        """
        super().__init__(message)
        self.path = path


class UpgradeError(ReloadHubError):
    """Raised when a WebSocket handshake fails or is refused."""

    def __init__(self, message: str, origin: str | None = None) -> None:
        """Initialize upgrade error.

        Args:
            message: Error description.
            origin: Origin header sent by the client, if any.
        """
        super().__init__(message)
        self.origin = origin


class SessionError(ReloadHubError):
    """Raised when reading from or sending to a single client fails."""


class WatchError(ReloadHubError):
    """Fault reported by the filesystem observer after startup."""

    def __init__(self, message: str, path: str | None = None) -> None:
        """Initialize watch error.

        Args:
            message: Error description.
            path: Path involved in the fault, if known.
        """
        super().__init__(message)
        self.path = path
