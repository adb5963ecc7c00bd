"""Event normalization tests."""

import pytest
from watchdog.events import (
    DirCreatedEvent,
    DirModifiedEvent,
    DirMovedEvent,
    FileClosedEvent,
    FileCreatedEvent,
    FileDeletedEvent,
    FileModifiedEvent,
    FileMovedEvent,
    FileOpenedEvent,
    FileSystemEvent,
)

from reloadhub.events import ChangeKind
from reloadhub.events.normalizer import decode_path, normalize_event


@pytest.mark.parametrize(
    ("raw_event", "kind"),
    [
        (FileCreatedEvent("/p/a.txt"), ChangeKind.CREATED),
        (DirCreatedEvent("/p/sub"), ChangeKind.CREATED),
        (FileModifiedEvent("/p/a.txt"), ChangeKind.MODIFIED),
        (FileDeletedEvent("/p/a.txt"), ChangeKind.DELETED),
    ],
)
def test_changes_are_normalized(raw_event: FileSystemEvent, kind: ChangeKind) -> None:
    """Create, modify and delete map onto change kinds."""
    event = normalize_event(raw_event)
    assert event is not None
    assert event.kind is kind
    assert event.path == raw_event.src_path
    assert event.is_directory == raw_event.is_directory
    assert event.dest_path is None


def test_move_keeps_destination() -> None:
    """Moves carry both ends."""
    event = normalize_event(FileMovedEvent("/p/a.txt", "/p/b.txt"))
    assert event is not None
    assert event.kind is ChangeKind.MOVED
    assert event.path == "/p/a.txt"
    assert event.dest_path == "/p/b.txt"


def test_directory_move_is_directory() -> None:
    """Directory moves are flagged as directories."""
    event = normalize_event(DirMovedEvent("/p/old", "/p/new"))
    assert event is not None
    assert event.is_directory


@pytest.mark.parametrize(
    "raw_event",
    [
        DirModifiedEvent("/p"),
        FileOpenedEvent("/p/a.txt"),
        FileClosedEvent("/p/a.txt"),
    ],
)
def test_non_changes_are_dropped(raw_event: FileSystemEvent) -> None:
    """Parent-directory echoes and open/close notifications are dropped."""
    assert normalize_event(raw_event) is None


def test_bytes_paths_are_decoded() -> None:
    """Byte paths become text, replacing invalid sequences."""
    assert decode_path(b"/p/a.txt") == "/p/a.txt"
    assert decode_path(b"/p/\xff.txt") == "/p/\ufffd.txt"
