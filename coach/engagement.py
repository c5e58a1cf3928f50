import logging
import threading
from enum import Enum
from typing import Dict, List, Optional

from gsi_pipeline.parsing import victim_name
from gsi_pipeline.schemas import EngagementEvent, Snapshot

logger = logging.getLogger(__name__)

FIGHT_QUIET_SECONDS = 15
FIGHT_WINDOW = 30
FIGHT_MIN_EVENTS = 3
SKIRMISH_WINDOW = 60
SKIRMISH_MIN_EVENTS = 2

PLAYER_SUBJECT = "you"


class EngagementState(Enum):
    CALM = "calm"
    ENGAGED = "engaged"


class EngagementDetector:
    """
    Diffs consecutive snapshots for deaths and kills, and flags team fights when
    several of them land inside a short window.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self.player_deaths: List[EngagementEvent] = []
        self.enemy_deaths: Dict[str, List[EngagementEvent]] = {}
        self.last_game_time: Optional[int] = None
        self.last_event_time: Optional[int] = None
        self.state = EngagementState.CALM
        self.fight_start: Optional[int] = None

    def update(self, current: Snapshot, previous: Optional[Snapshot]):
        """
        Records the events between `previous` and `current` and advances the
        team fight state machine to the current clock.

        A kill counter that jumps by N between two snapshots is recorded as N
        kills at the current clock. Snapshots whose clock is not newer than the
        last processed one are ignored.
        """
        game_time = current.game_time
        if game_time is None:
            return

        new_events = self._diff(current, previous, game_time) if previous is not None else []

        with self._lock:
            if self.last_game_time is not None and game_time <= self.last_game_time:
                logger.debug(f"Ignoring engagement update at {game_time} (already at {self.last_game_time})")
                return
            self.last_game_time = game_time
            for event in new_events:
                if event.victim == PLAYER_SUBJECT:
                    self.player_deaths.append(event)
                else:
                    self.enemy_deaths.setdefault(event.victim, []).append(event)
                self.last_event_time = game_time
            self._advance(game_time)

    def _diff(self, current: Snapshot, previous: Snapshot, game_time: int) -> List[EngagementEvent]:
        events = []

        if current.hero is not None and previous.hero is not None:
            if previous.hero.alive is True and current.hero.alive is False:
                events.append(EngagementEvent(game_time, PLAYER_SUBJECT, PLAYER_SUBJECT))
                logger.info(f"Player death detected at {game_time}")

        current_kills = current.player.kill_list if current.player else None
        previous_kills = previous.player.kill_list if previous.player else None
        if current_kills is not None and previous_kills is not None:
            for victim_id, count in current_kills.items():
                gained = count - previous_kills.get(victim_id, 0)
                if gained <= 0:
                    continue
                name = victim_name(victim_id)
                events.extend(EngagementEvent(game_time, PLAYER_SUBJECT, name) for _ in range(gained))
                logger.info(f"Kill on {name} detected at {game_time} (+{gained})")

        return events

    def _advance(self, game_time: int):
        if self.last_event_time is None:
            return
        quiet_for = game_time - self.last_event_time

        if self.state == EngagementState.CALM and quiet_for < FIGHT_QUIET_SECONDS:
            if self._count_in_window(game_time, FIGHT_WINDOW) >= FIGHT_MIN_EVENTS:
                self.state = EngagementState.ENGAGED
                self.fight_start = game_time
                logger.info(f"Team fight started at {game_time}")
        elif self.state == EngagementState.ENGAGED and quiet_for >= FIGHT_QUIET_SECONDS:
            self.state = EngagementState.CALM
            logger.info(f"Team fight over at {game_time} (lasted {game_time - self.fight_start}s)")

    def _count_in_window(self, game_time: int, window: int) -> int:
        window_start = game_time - window
        count = sum(1 for e in self.player_deaths if e.game_time >= window_start)
        for deaths in self.enemy_deaths.values():
            count += sum(1 for e in deaths if e.game_time >= window_start)
        return count

    def count_events_in_window(self, game_time: int, window: int) -> int:
        with self._lock:
            return self._count_in_window(game_time, window)

    @property
    def is_engaged(self) -> bool:
        with self._lock:
            return self.state == EngagementState.ENGAGED

    @property
    def event_count(self) -> int:
        with self._lock:
            return len(self.player_deaths) + sum(len(d) for d in self.enemy_deaths.values())

    def events(self) -> List[EngagementEvent]:
        """All recorded events ordered by game clock."""
        with self._lock:
            collected = list(self.player_deaths)
            for deaths in self.enemy_deaths.values():
                collected.extend(deaths)
        return sorted(collected, key=lambda e: e.game_time)

    def status_at(self, now: int) -> Optional[str]:
        with self._lock:
            state = self.state
            fight_start = self.fight_start
            recent = self._count_in_window(now, SKIRMISH_WINDOW)

        if state == EngagementState.ENGAGED:
            return f"TEAM FIGHT IN PROGRESS! Started {now - fight_start} seconds ago"
        if recent >= SKIRMISH_MIN_EVENTS:
            return "Skirmishes detected - team fight may be developing!"
        return None

    def reset(self):
        with self._lock:
            self.player_deaths.clear()
            self.enemy_deaths.clear()
            self.last_game_time = None
            self.last_event_time = None
            self.state = EngagementState.CALM
            self.fight_start = None
