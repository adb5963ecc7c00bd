"""Change event types for filesystem monitoring."""
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field

RELOAD_PAYLOAD = "reload"


class ChangeKind(str, Enum):
    """Kinds of filesystem change that trigger a reload."""

    CREATED = "created"
    MODIFIED = "modified"
    DELETED = "deleted"
    MOVED = "moved"


class ChangeEvent(BaseModel):
    """Normalized filesystem change.

    Attributes:
        path: Path the change was reported for.
        kind: What happened to the path.
        is_directory: Whether the path is a directory.
        dest_path: New location for moves.
        timestamp: When the change was observed (UTC).
    """

    path: str = Field(description="Changed path")
    kind: ChangeKind = Field(description="Change kind")
    is_directory: bool = Field(default=False, description="Path is a directory")
    dest_path: str | None = Field(default=None, description="Destination of a move")
    timestamp: datetime = Field(description="Observation timestamp (UTC)")
