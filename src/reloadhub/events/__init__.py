"""Events subsystem for filesystem monitoring and reload dispatch."""
from reloadhub.events.dispatcher import ReloadDispatcher
from reloadhub.events.ignore import IgnoreMatcher
from reloadhub.events.types import RELOAD_PAYLOAD, ChangeEvent, ChangeKind
from reloadhub.events.watcher import DirectoryWatcher

__all__ = [
    "RELOAD_PAYLOAD",
    "ChangeEvent",
    "ChangeKind",
    "DirectoryWatcher",
    "IgnoreMatcher",
    "ReloadDispatcher",
]
