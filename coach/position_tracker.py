import logging
import threading
from collections import deque
from typing import Deque, Dict, List, Optional, Tuple

from gsi_pipeline.parsing import format_hero_name
from gsi_pipeline.schemas import MarkerIcon, Snapshot

logger = logging.getLogger(__name__)

HISTORY_LIMIT = 100
DESCRIBE_WINDOW = 60
PREDICT_WINDOW = 30

RADIANT_TEAM_ID = 2
DIRE_TEAM_ID = 3

Position = Tuple[int, int]
PositionSample = Tuple[int, Position]
Sighting = Tuple[str, int, Position, int]


def enemy_team_id(team_name: Optional[str]) -> int:
    """Team id of the opposing side; an unknown player team is assumed to be Radiant, so Dire (3) is hostile."""
    if team_name == "dire":
        return RADIANT_TEAM_ID
    return DIRE_TEAM_ID


def movement_direction(previous: Position, latest: Position) -> Optional[str]:
    dx = latest[0] - previous[0]
    dy = latest[1] - previous[1]
    if dx == 0 and dy == 0:
        return None
    if abs(dx) >= abs(dy):
        return "East" if dx > 0 else "West"
    return "North" if dy > 0 else "South"


def extrapolate(previous: PositionSample, latest: PositionSample, now: int) -> Optional[Position]:
    """Linear projection of latest along the previous->latest vector, truncated to ints."""
    dt = latest[0] - previous[0]
    if dt <= 0:
        return None
    factor = (now - latest[0]) / dt
    dx = latest[1][0] - previous[1][0]
    dy = latest[1][1] - previous[1][1]
    return (latest[1][0] + int(dx * factor), latest[1][1] + int(dy * factor))


class EnemyPositionTracker:
    """
    Tracks where enemy heroes were seen on the minimap, one bounded history per hero.
    """

    def __init__(self, history_limit: int = HISTORY_LIMIT):
        self._lock = threading.Lock()
        self.history_limit = history_limit
        self.positions: Dict[str, Deque[PositionSample]] = {}
        self.spotted: Dict[str, int] = {}
        self.last_game_time: Optional[int] = None

    def update(self, snapshot: Snapshot):
        """
        Appends the positions of every visible enemy hero in the snapshot.

        Snapshots whose clock is unknown or not newer than the last processed one
        are ignored, so replays and duplicates never touch the histories.
        """
        game_time = snapshot.game_time
        if game_time is None:
            return

        hostile_team = enemy_team_id(snapshot.team_name)
        visible: Dict[str, Position] = {}
        for marker in (snapshot.minimap or {}).values():
            if marker.icon != MarkerIcon.ENEMY_HERO or marker.team != hostile_team:
                continue
            if not marker.name:
                continue
            visible[format_hero_name(marker.name)] = marker.position

        with self._lock:
            if self.last_game_time is not None and game_time <= self.last_game_time:
                logger.debug(f"Ignoring enemy positions at {game_time} (already at {self.last_game_time})")
                return
            for name, position in visible.items():
                history = self.positions.get(name)
                if history is None:
                    history = deque(maxlen=self.history_limit)
                    self.positions[name] = history
                    logger.info(f"Enemy hero spotted for the first time: {name}")
                history.append((game_time, position))
                self.spotted[name] = self.spotted.get(name, 0) + 1
            self.last_game_time = game_time

    def snapshot_histories(self) -> Dict[str, List[PositionSample]]:
        """Copies every history under the lock; callers compute on the copy."""
        with self._lock:
            return {name: list(history) for name, history in self.positions.items()}

    def history(self, name: str) -> List[PositionSample]:
        with self._lock:
            return list(self.positions.get(name, ()))

    def times_spotted(self, name: str) -> int:
        with self._lock:
            return self.spotted.get(name, 0)

    def last_sightings(self) -> List[Sighting]:
        """(name, last seen time, last position, times spotted) per enemy, sorted by name."""
        with self._lock:
            return [
                (name, history[-1][0], history[-1][1], self.spotted.get(name, 0))
                for name, history in sorted(self.positions.items())
                if history
            ]

    def describe_recent(self, now: int) -> List[str]:
        """
        Describes every enemy seen within the last minute, most recent first.

        :param now: Current game clock in seconds.
        :return: One line per hero, with the movement direction when known.
        """
        histories = self.snapshot_histories()
        recent = [
            (name, samples) for name, samples in histories.items()
            if samples and now - samples[-1][0] <= DESCRIBE_WINDOW
        ]
        recent.sort(key=lambda item: item[1][-1][0], reverse=True)

        lines = []
        for name, samples in recent:
            seen_at, (x, y) = samples[-1]
            line = f"{name}: last seen {now - seen_at} seconds ago at ({x}, {y})"
            if len(samples) >= 2:
                direction = movement_direction(samples[-2][1], samples[-1][1])
                if direction:
                    line += f", moving {direction}"
            lines.append(line)
        return lines

    def predict(self, now: int) -> List[Tuple[str, Position]]:
        """
        Extrapolates where recently seen enemies are likely to be at `now`.

        :param now: Current game clock in seconds.
        :return: (hero name, predicted position) pairs, sorted by name.
        """
        predictions = []
        for name, samples in sorted(self.snapshot_histories().items()):
            if len(samples) < 2:
                continue
            since = now - samples[-1][0]
            if since < 0 or since > PREDICT_WINDOW:
                continue
            predicted = extrapolate(samples[-2], samples[-1], now)
            if predicted is not None:
                predictions.append((name, predicted))
        return predictions

    def reset(self):
        with self._lock:
            self.positions.clear()
            self.spotted.clear()
            self.last_game_time = None
