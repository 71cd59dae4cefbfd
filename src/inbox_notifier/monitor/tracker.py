"""Seen-set tracking for new-mail detection."""

from __future__ import annotations

from collections.abc import Iterable


class SeenSetTracker:
    """Remembers the unread ids observed by the last successful poll.

    The remembered set is replaced on every commit, never accumulated, so a
    message that was read and later marked unread again is reported as new.
    """

    def __init__(self) -> None:
        self._seen: frozenset[str] = frozenset()
        self._primed = False

    @property
    def seen(self) -> frozenset[str]:
        return self._seen

    @property
    def primed(self) -> bool:
        """Whether at least one poll has been committed."""
        return self._primed

    def diff(self, current_ids: Iterable[str]) -> set[str]:
        """Return the ids in `current_ids` that were not seen last time."""
        return set(current_ids) - self._seen

    def commit(self, current_ids: Iterable[str]) -> None:
        """Replace the remembered set with `current_ids`."""
        self._seen = frozenset(current_ids)
        self._primed = True
