"""Exact-match path exclusion for the directory walk."""
import os
from collections.abc import Iterable


class IgnoreMatcher:
    """Decides whether a path is excluded from watching.

    Matching is exact string equality after lexical normalization. There is
    no glob or prefix matching: ``node_modules`` excludes the directory of
    that name, not ``node_modules_old`` and not ``node_modules/foo``.

    When a root is given, paths under it are also compared in their
    root-relative form, so an entry may be written either way.
    """

    def __init__(self, ignore_list: Iterable[str], root: str | None = None) -> None:
        self._entries: tuple[str, ...] = tuple(
            os.path.normpath(entry) for entry in ignore_list if entry
        )
        self._root = os.path.normpath(root) if root is not None else None

    @property
    def entries(self) -> tuple[str, ...]:
        """Normalized ignore entries, in configured order."""
        return self._entries

    def should_ignore(self, path: str) -> bool:
        """Check whether a path is listed in the ignore list.

        Args:
            path: Filesystem path, built the same way the watch walk builds it.

        Returns:
            True if the path matches an ignore entry exactly.
        """
        if not self._entries:
            return False

        candidates = {os.path.normpath(path)}
        if self._root is not None:
            relative = os.path.relpath(os.path.normpath(path), self._root)
            if relative != os.pardir and not relative.startswith(os.pardir + os.sep):
                candidates.add(relative)

        return any(entry in candidates for entry in self._entries)
