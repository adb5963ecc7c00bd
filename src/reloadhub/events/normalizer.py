"""Translation of raw watchdog notifications into change events."""

from datetime import UTC, datetime

from watchdog.events import (
    DirCreatedEvent,
    DirDeletedEvent,
    DirMovedEvent,
    FileCreatedEvent,
    FileDeletedEvent,
    FileModifiedEvent,
    FileMovedEvent,
    FileSystemEvent,
)

from reloadhub.events.types import ChangeEvent, ChangeKind

# DirModifiedEvent is left out: watchdog synthesizes one for the parent
# directory alongside every create/delete/move inside it. Open/close
# notifications are not changes.
EVENT_KINDS: dict[type[FileSystemEvent], ChangeKind] = {
    FileCreatedEvent: ChangeKind.CREATED,
    DirCreatedEvent: ChangeKind.CREATED,
    FileModifiedEvent: ChangeKind.MODIFIED,
    FileDeletedEvent: ChangeKind.DELETED,
    DirDeletedEvent: ChangeKind.DELETED,
    FileMovedEvent: ChangeKind.MOVED,
    DirMovedEvent: ChangeKind.MOVED,
}


def decode_path(raw: str | bytes) -> str:
    """Return a watchdog path as text.

    Args:
        raw: Path as reported by watchdog.

    Returns:
        The path as a string; undecodable bytes are replaced.
    """
    if isinstance(raw, str):
        return raw
    return bytes(raw).decode("utf-8", errors="replace")


def normalize_event(raw_event: FileSystemEvent) -> ChangeEvent | None:
    """Transform a raw filesystem event into a change event.

    Args:
        raw_event: Raw watchdog filesystem event.

    Returns:
        Normalized change event, or None if the notification is not a change.
    """
    kind = EVENT_KINDS.get(type(raw_event))
    if kind is None:
        return None

    dest_path = None
    if kind is ChangeKind.MOVED:
        dest_path = decode_path(raw_event.dest_path)

    return ChangeEvent(
        path=decode_path(raw_event.src_path),
        kind=kind,
        is_directory=raw_event.is_directory,
        dest_path=dest_path,
        timestamp=datetime.now(UTC),
    )
