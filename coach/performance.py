import logging
import threading
from collections import deque
from typing import Deque, Dict, List, Optional, Tuple

from gsi_pipeline.schemas import Snapshot

logger = logging.getLogger(__name__)

SERIES_LIMIT = 20

SIGNIFICANT_DELTA = 100
MILD_DELTA = 20

EARLY_GAME_MINUTES = 10
# (excellent, good, needs improvement below) CS per minute
EARLY_CS_BENCHMARKS = (7.0, 5.0, 3.0)
LATE_CS_BENCHMARKS = (8.0, 6.0, 4.0)

HIGH_DEATH_RATE = 0.2
SURVIVAL_STREAK_SECONDS = 300

METRICS = (
    ("gpm", "GPM"),
    ("xpm", "XPM"),
    ("last_hits", "Last hits"),
)

Sample = Tuple[int, int]


def classify_trend(latest: float, mean: float) -> str:
    delta = latest - mean
    if delta >= SIGNIFICANT_DELTA:
        return "trending up significantly"
    if delta >= MILD_DELTA:
        return "trending up"
    if delta <= -SIGNIFICANT_DELTA:
        return "trending down significantly"
    if delta <= -MILD_DELTA:
        return "trending down"
    return "steady"


def classify_cs_rate(cs_per_min: float, minutes: int) -> Optional[str]:
    if minutes < EARLY_GAME_MINUTES:
        (excellent, good, poor), phase = EARLY_CS_BENCHMARKS, "early game CS"
    else:
        (excellent, good, poor), phase = LATE_CS_BENCHMARKS, "CS"
    if cs_per_min >= excellent:
        return f"Excellent {phase}"
    if cs_per_min >= good:
        return f"Good {phase}"
    if cs_per_min < poor:
        return f"{phase[0].upper()}{phase[1:]} needs improvement"
    return None


class PerformanceTracker:
    """Rolling GPM / XPM / last-hit samples for the local hero, plus death stats."""

    def __init__(self, series_limit: int = SERIES_LIMIT):
        self._lock = threading.Lock()
        self.series: Dict[str, Deque[Sample]] = {
            key: deque(maxlen=series_limit) for key, _ in METRICS
        }
        self.last_game_time: Optional[int] = None
        self.death_count = 0
        self.last_death_time: Optional[int] = None

    def update(self, current: Snapshot, previous: Optional[Snapshot] = None):
        game_time = current.game_time
        if game_time is None:
            return

        died = (
            previous is not None
            and previous.hero is not None
            and current.hero is not None
            and previous.hero.alive is True
            and current.hero.alive is False
        )

        with self._lock:
            if self.last_game_time is not None and game_time <= self.last_game_time:
                return
            self.last_game_time = game_time

            if died:
                self.death_count += 1
                self.last_death_time = game_time

            if current.player is None:
                return
            for key, _ in METRICS:
                value = getattr(current.player, key)
                if value is not None:
                    self.series[key].append((game_time, value))

    def series_length(self, key: str) -> int:
        with self._lock:
            return len(self.series[key])

    def report(self, now: int) -> List[str]:
        """
        Summarises the rolling series against their averages and CS benchmarks.

        :param now: Current game clock in seconds.
        :return: Report lines, empty when nothing has been sampled twice yet.
        """
        with self._lock:
            series = {key: list(samples) for key, samples in self.series.items()}
            death_count = self.death_count
            last_death_time = self.last_death_time

        lines = []
        for key, label in METRICS:
            samples = series[key]
            if len(samples) < 2:
                continue
            latest = samples[-1][1]
            mean = sum(value for _, value in samples) / len(samples)
            lines.append(f"{label}: {latest} (Avg: {mean:.0f})")
            lines.append(f"  {label} {classify_trend(latest, mean)}")

        last_hits = series["last_hits"]
        minutes = now // 60
        if len(last_hits) >= 2 and minutes > 0:
            cs_per_min = last_hits[-1][1] / minutes
            lines.append(f"CS/min: {cs_per_min:.1f}")
            verdict = classify_cs_rate(cs_per_min, minutes)
            if verdict:
                lines.append(f"  {verdict}")

        lines.extend(self._death_lines(now, death_count, last_death_time))
        return lines

    @staticmethod
    def _death_lines(now: int, death_count: int, last_death_time: Optional[int]) -> List[str]:
        if death_count == 0:
            return ["Deaths: 0 - Excellent survival!"]
        lines = [f"Deaths: {death_count}"]
        minutes = now // 60
        if minutes > 0 and death_count / minutes > HIGH_DEATH_RATE:
            lines.append("  High death rate, play more cautiously")
        if last_death_time is not None and now - last_death_time > SURVIVAL_STREAK_SECONDS:
            lines.append(f"  Good survival streak: {(now - last_death_time) // 60} minutes without dying")
        return lines

    def reset(self):
        with self._lock:
            for samples in self.series.values():
                samples.clear()
            self.last_game_time = None
            self.death_count = 0
            self.last_death_time = None
