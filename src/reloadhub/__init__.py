"""Live-reload server: pushes "reload" to WebSocket clients on file changes."""

__version__ = "0.1.0"
