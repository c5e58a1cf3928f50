import logging
import threading
from typing import List, Optional, Tuple

from gsi_pipeline.schemas import Snapshot
from gsi_pipeline.store import SnapshotStore

from coach.engagement import EngagementDetector
from coach.insights import compose_insights
from coach.performance import PerformanceTracker
from coach.position_tracker import EnemyPositionTracker

logger = logging.getLogger(__name__)


class CoachAgent:
    """
    Orchestrates the analytical components: stores each incoming snapshot and
    feeds the (current, previous) pair to the position tracker, the engagement
    detector and the performance tracker, then composes advice on demand.
    """

    def __init__(self):
        self._ingest_lock = threading.Lock()
        self.store = SnapshotStore()
        self.position_tracker = EnemyPositionTracker()
        self.engagement_detector = EngagementDetector()
        self.performance_tracker = PerformanceTracker()

    def ingest(self, snapshot: Snapshot) -> bool:
        """
        Stores a snapshot and updates every component from it.

        :param snapshot: A parsed snapshot from the ingestion boundary.
        :return: False when the snapshot's clock was not newer than the current one and it was dropped.
        """
        with self._ingest_lock:
            held = self.store.current
            if held is not None and self._is_new_match(held, snapshot):
                logger.info(f"New match detected ({snapshot.map.match_id}). Resetting coach state.")
                self.reset()
                held = None

            if held is not None and held.game_time is not None:
                # an unknown or non-increasing clock cannot be ordered against the held snapshot
                if snapshot.game_time is None or snapshot.game_time <= held.game_time:
                    logger.debug(f"Dropping snapshot at {snapshot.game_time} (current {held.game_time})")
                    return False

            current, previous = self.store.ingest(snapshot)
            self._run("position tracker", self.position_tracker.update, current)
            self._run("engagement detector", self.engagement_detector.update, current, previous)
            self._run("performance tracker", self.performance_tracker.update, current, previous)
            return True

    @staticmethod
    def _is_new_match(held: Snapshot, incoming: Snapshot) -> bool:
        old_id = held.map.match_id if held.map else None
        new_id = incoming.map.match_id if incoming.map else None
        return old_id is not None and new_id is not None and old_id != new_id

    @staticmethod
    def _run(label: str, update, *args):
        # one failing component must not starve the others
        try:
            update(*args)
        except Exception:
            logger.exception(f"Error updating {label}")

    def reset(self):
        self.store.clear()
        self.position_tracker.reset()
        self.engagement_detector.reset()
        self.performance_tracker.reset()

    # -------------------------
    # Query surface
    # -------------------------
    def current_snapshot(self) -> Optional[Snapshot]:
        return self.store.current

    def game_time(self) -> Optional[int]:
        snapshot = self.store.current
        return snapshot.game_time if snapshot else None

    def engagement_status(self) -> Optional[str]:
        now = self.game_time()
        return self.engagement_detector.status_at(now) if now is not None else None

    def enemy_movements(self) -> List[str]:
        now = self.game_time()
        return self.position_tracker.describe_recent(now) if now is not None else []

    def predictions(self) -> List[Tuple[str, Tuple[int, int]]]:
        now = self.game_time()
        return self.position_tracker.predict(now) if now is not None else []

    def performance_report(self) -> List[str]:
        now = self.game_time()
        return self.performance_tracker.report(now) if now is not None else []

    def insights(self) -> List[str]:
        """Composes the advisory list for the latest snapshot; empty before any data."""
        snapshot = self.store.current
        if snapshot is None or snapshot.game_time is None:
            return []
        now = snapshot.game_time
        return compose_insights(
            snapshot,
            self.engagement_detector.status_at(now),
            self.position_tracker.describe_recent(now),
            self.position_tracker.predict(now),
            self.performance_tracker.report(now),
            self.position_tracker.last_sightings(),
        )
