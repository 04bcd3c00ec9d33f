"""Recent-topics list persisted to a single JSON slot on disk.

The list holds up to ``max_entries`` distinct topics (compared
case-insensitively), most recent first. Re-submitting a known topic moves it
to the front instead of duplicating it. Storage problems are logged and never
interrupt a generation request.
"""

from __future__ import annotations

import logging
from pathlib import Path

from lumina.core.utils.json import read_json, write_json

logger = logging.getLogger(__name__)

HISTORY_FILENAME = "lumina_history.json"
DEFAULT_MAX_ENTRIES = 8


def push_recent(history: list[str], topic: str, limit: int = DEFAULT_MAX_ENTRIES) -> list[str]:
    """Return a new history with ``topic`` moved or inserted at the front.

    Args:
        history: Existing topics, most recent first.
        topic: Topic being submitted.
        limit: Maximum number of entries to keep.

    Returns:
        Updated list (input is not modified).
    """
    folded = topic.casefold()
    kept = [entry for entry in history if entry.casefold() != folded]
    return [topic, *kept][:limit]


class RecentTopics:
    """JSON-file-backed recent topics list.

    Args:
        path: File holding the JSON array.
        max_entries: Maximum number of topics retained.

    Example:
        >>> topics = RecentTopics(Path("~/.lumina/lumina_history.json").expanduser())
        >>> topics.add("Black Holes")
        ['Black Holes']
    """

    def __init__(self, path: Path, *, max_entries: int = DEFAULT_MAX_ENTRIES) -> None:
        if max_entries < 1:
            raise ValueError(f"max_entries must be >= 1, got {max_entries}")
        self._path = Path(path)
        self._max_entries = max_entries

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> list[str]:
        """Read the stored topics.

        Missing, unreadable or malformed storage yields an empty list.
        """
        if not self._path.exists():
            return []
        try:
            data = read_json(self._path)
        except (OSError, ValueError):
            logger.warning("Could not read topic history from %s", self._path, exc_info=True)
            return []

        if not isinstance(data, list):
            logger.warning("Ignoring topic history in %s: expected a JSON array", self._path)
            return []

        # Hand-edited files may contain duplicates or junk entries
        topics: list[str] = []
        seen: set[str] = set()
        for entry in data:
            if not isinstance(entry, str) or not entry.strip():
                continue
            key = entry.casefold()
            if key not in seen:
                seen.add(key)
                topics.append(entry)
        return topics[: self._max_entries]

    def add(self, topic: str) -> list[str]:
        """Record a submitted topic and persist the list.

        Returns:
            The updated list (also returned when persisting fails).
        """
        history = push_recent(self.load(), topic, self._max_entries)
        try:
            write_json(self._path, history)
        except OSError:
            logger.warning("Could not save topic history to %s", self._path, exc_info=True)
        return history

    def clear(self) -> None:
        """Remove all stored topics."""
        try:
            self._path.unlink(missing_ok=True)
        except OSError:
            logger.warning("Could not clear topic history at %s", self._path, exc_info=True)
