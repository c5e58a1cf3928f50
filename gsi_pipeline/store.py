import logging
import threading
from typing import Optional, Tuple

from .schemas import Snapshot

logger = logging.getLogger(__name__)

SnapshotPair = Tuple[Optional[Snapshot], Optional[Snapshot]]


class SnapshotStore:
    """Holds the two most recent snapshots so consecutive states can be diffed."""

    def __init__(self):
        self._lock = threading.Lock()
        self._current: Optional[Snapshot] = None
        self._previous: Optional[Snapshot] = None

    def ingest(self, snapshot: Snapshot) -> SnapshotPair:
        """
        Rotates the held current snapshot into previous and stores the new one.

        :param snapshot: The freshly parsed snapshot.
        :return: The (current, previous) pair produced by this call.
        """
        with self._lock:
            self._previous = self._current
            self._current = snapshot
            logger.debug(f"Stored snapshot at game time {snapshot.game_time}")
            return self._current, self._previous

    def pair(self) -> SnapshotPair:
        with self._lock:
            return self._current, self._previous

    @property
    def current(self) -> Optional[Snapshot]:
        with self._lock:
            return self._current

    def clear(self):
        with self._lock:
            self._current = None
            self._previous = None
