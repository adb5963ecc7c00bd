"""Server configuration loaded from environment variables."""
from pydantic import computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


def _split_csv(raw: str) -> list[str]:
    return [item.strip() for item in raw.split(",") if item.strip()]


class Settings(BaseSettings):
    """Reload server configuration loaded from environment variables.

    Attributes:
        host: Bind address for the server.
        port: Port number for the server.
        watch_dir: Directory tree to watch for changes.
        verbose: Enable debug-level logging.
        ignore_raw: Raw comma-separated list of paths to leave unwatched.
        ws_path: URL path of the WebSocket upgrade endpoint.
        allowed_origins_raw: Raw comma-separated allowed origins. Empty
            accepts any origin.
        send_timeout: Seconds a single client may take to accept a message.
        shutdown_timeout: Seconds to wait for graceful shutdown.
        debounce_ms: Coalescing window for bursts of events. Zero sends
            one reload per filesystem event.
        watch_new_dirs: Register directories created after startup.
    """

    model_config = SettingsConfigDict(
        env_prefix="RELOAD_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    host: str = "0.0.0.0"
    port: int = 8080
    watch_dir: str = "."
    verbose: bool = False
    ignore_raw: str = ""
    ws_path: str = "/ws"
    allowed_origins_raw: str = ""
    send_timeout: float = 5.0
    shutdown_timeout: float = 10.0

    debounce_ms: int = 0
    watch_new_dirs: bool = False

    @computed_field
    @property
    def ignore_list(self) -> list[str]:
        """Parse ignored paths from comma-separated string.

        Returns:
            Paths excluded from watching, in configured order.
        """
        return _split_csv(self.ignore_raw)

    @computed_field
    @property
    def allowed_origins(self) -> list[str]:
        """Parse allowed origins from comma-separated string.

        Returns:
            List of allowed origin URLs. Empty means any origin.
        """
        return _split_csv(self.allowed_origins_raw)
