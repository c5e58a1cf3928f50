import math
from typing import List, Optional, Sequence, Tuple

from gsi_pipeline.parsing import format_game_time
from gsi_pipeline.schemas import Snapshot

EARLY_GAME_END = 10 * 60
MID_GAME_END = 25 * 60

PROXIMITY_WARNING_DISTANCE = 2000

# (upper bound, label), nearest first
DISTANCE_BANDS = (
    (1000, "VERY CLOSE!"),
    (2000, "Nearby"),
    (4000, "Medium distance"),
)
FAR_AWAY = "Far away"
FRESH_SIGHTING_SECONDS = 30

BUILDING_PREFIXES = ("dota_goodguys_", "dota_badguys_")

EXPECTED_CS_PER_MINUTE = 10
STACK_WINDOW = (45, 48)
RUNE_WARNING_SECOND = 55

# (gold threshold, advice), highest first
GOLD_ITEM_TIERS = (
    (4000, "You have sufficient gold for major items (BKB, Blink, etc.)"),
    (2000, "You have gold for mid-tier items (Force Staff, Eul's, etc.)"),
    (1000, "Consider purchasing support/utility items"),
)

# (minute, expected net worth, items) for a core hero
ITEM_BENCHMARKS = (
    (10, 4000, "Power Treads + Wraith Bands"),
    (15, 7000, "Core farming item (Battlefury/Maelstrom)"),
    (20, 11000, "Second major item (BKB/Desolator)"),
    (30, 18000, "Third major item (Satanic/Butterfly)"),
)
NET_WORTH_TOLERANCE = 1000

READINESS_TIERS = (
    (4, "Excellent! All systems ready for team fight."),
    (2, "Good. Most resources available."),
    (0, "Caution advised. Limited resources."),
)
NOT_READY = "Not ready for team fight. Consider retreating."

Prediction = Tuple[str, Tuple[int, int]]
# (name, last seen time, last position, times spotted)
Sighting = Tuple[str, int, Tuple[int, int], int]


def distance(a: Tuple[int, int], b: Tuple[int, int]) -> float:
    return math.hypot(a[0] - b[0], a[1] - b[1])


def readiness_score(snapshot: Snapshot) -> int:
    """Integer heuristic over hero health/mana percentages and ability availability."""
    score = 0
    hero = snapshot.hero
    if hero is not None:
        if hero.health_percent is not None:
            if hero.health_percent > 80:
                score += 2
            elif hero.health_percent > 50:
                score += 1
            else:
                score -= 1
        if hero.mana_percent is not None:
            if hero.mana_percent > 70:
                score += 2
            elif hero.mana_percent > 40:
                score += 1
            else:
                score -= 1

    if snapshot.abilities is not None:
        abilities = list(snapshot.abilities.values())
        if any(a.ultimate and a.can_cast for a in abilities):
            score += 2
        # unknown passive flag counts as passive; no active abilities still counts as ready
        if all(a.can_cast for a in abilities if a.passive is False):
            score += 1
    return score


def readiness_tier(score: int) -> str:
    for threshold, label in READINESS_TIERS:
        if score >= threshold:
            return label
    return NOT_READY


def suggest_items(gold: int) -> Optional[str]:
    for threshold, advice in GOLD_ITEM_TIERS:
        if gold >= threshold:
            return advice
    return None


def _tracking_lines(snapshot: Snapshot, movements: Sequence[str], predictions: Sequence[Prediction]) -> List[str]:
    lines = list(movements)
    hero_position = snapshot.hero.position if snapshot.hero else None
    for name, (x, y) in predictions:
        lines.append(f"{name} likely at ({x}, {y})")
        if hero_position is not None and distance((x, y), hero_position) < PROXIMITY_WARNING_DISTANCE:
            lines.append(f"  WARNING: {name} may be very close to you!")
    return lines


def distance_band(d: float) -> str:
    for limit, label in DISTANCE_BANDS:
        if d < limit:
            return label
    return FAR_AWAY


def estimate_hero_level(game_time: int) -> int:
    """Rough level of a hero at `game_time`, piecewise by minute."""
    minutes = max(game_time, 0) // 60
    if minutes < 10:
        return minutes // 2 + 1
    if minutes < 20:
        return minutes // 3 + 5
    return minutes // 5 + 10


def enemy_overview_lines(snapshot: Snapshot, sightings: Sequence[Sighting], now: int) -> List[str]:
    """
    One block per enemy ever spotted, most recently seen first: estimated level,
    last sighting, distance band from the local hero and spot count.
    """
    if not sightings:
        return []
    hero_position = snapshot.hero.position if snapshot.hero else None

    lines = ["Enemy Heroes:"]
    for name, seen_at, (x, y), times in sorted(sightings, key=lambda s: (-s[1], s[0])):
        label = "Level" if now - seen_at < FRESH_SIGHTING_SECONDS else "Est. Level"
        lines.append(
            f"{name} ({label} {estimate_hero_level(seen_at)}): "
            f"last seen {format_game_time(seen_at)} at ({x}, {y})"
        )
        if hero_position is not None:
            d = distance((x, y), hero_position)
            lines.append(f"  Distance from you: {distance_band(d)} ({d:.0f} units)")
        lines.append(f"  Times spotted: {times}")
    return lines


def format_building_name(name: str) -> str:
    """dota_badguys_tower1_mid -> tower1 mid"""
    for prefix in BUILDING_PREFIXES:
        name = name.replace(prefix, "")
    return name.replace("_", " ")


def building_status_advice(snapshot: Snapshot) -> List[str]:
    team = snapshot.team_name
    if not snapshot.buildings or team not in ("radiant", "dire"):
        return []
    enemy = "dire" if team == "radiant" else "radiant"

    lines = ["Building Status:"]
    for heading, side in (("Your team", team), ("Enemy team", enemy)):
        lines.append(f"  {heading} ({side.upper()}):")
        buildings = snapshot.buildings.get(side)
        if not buildings:
            lines.append("    No building data available")
            continue
        for name, building in sorted(buildings.items()):
            if building.max_health <= 0:
                continue
            percent = int(building.health / building.max_health * 100)
            lines.append(f"    {format_building_name(name)}: {percent}%")
    return lines


def _early_game(snapshot: Snapshot, game_time: int) -> List[str]:
    lines = ["Early Game Phase:"]
    minutes, seconds = divmod(game_time, 60)

    last_hits = snapshot.player.last_hits if snapshot.player else None
    if last_hits is not None and minutes > 0:
        expected = minutes * EXPECTED_CS_PER_MINUTE
        if last_hits < expected / 2:
            lines.append(f"  Your last hits are low ({last_hits}). Focus more on last hitting.")
        elif last_hits >= expected:
            lines.append(f"  Good job on last hitting! You have {last_hits} CS.")

    if STACK_WINDOW[0] <= seconds <= STACK_WINDOW[1]:
        lines.append("  Stack camps now! Pull at X:53.")
    if minutes > 0 and minutes % 2 == 0 and seconds >= RUNE_WARNING_SECOND:
        lines.append("  Water runes spawning in a few seconds!")
    return lines


def _mid_game(snapshot: Snapshot) -> List[str]:
    lines = ["Mid Game Phase:"]
    gold = snapshot.player.gold if snapshot.player else None
    if gold is not None:
        advice = suggest_items(gold)
        if advice:
            lines.append(f"  {advice}")
    lines.append("  Roshan is available. Consider checking/taking with team coordination.")
    return lines


def _late_game(snapshot: Snapshot) -> List[str]:
    lines = ["Late Game Phase:"]
    buyback_cost = snapshot.hero.buyback_cost if snapshot.hero else None
    gold = snapshot.player.gold if snapshot.player else None
    if buyback_cost is not None and gold is not None:
        if gold < buyback_cost:
            lines.append(f"  You don't have buyback gold! Need {buyback_cost - gold} more gold.")
        else:
            lines.append(f"  You have buyback available ({buyback_cost} gold).")

    score = readiness_score(snapshot)
    lines.append(f"  Team fight readiness ({score}): {readiness_tier(score)}")
    return lines


def phase_advice(snapshot: Snapshot) -> List[str]:
    game_time = snapshot.game_time
    if game_time is None or game_time < 0:
        return []
    if game_time < EARLY_GAME_END:
        return _early_game(snapshot, game_time)
    if game_time < MID_GAME_END:
        return _mid_game(snapshot)
    return _late_game(snapshot)


def item_timing_advice(snapshot: Snapshot) -> List[str]:
    net_worth = snapshot.player.net_worth if snapshot.player else None
    game_time = snapshot.game_time
    if net_worth is None or game_time is None:
        return []
    minutes = game_time // 60

    reached = [b for b in ITEM_BENCHMARKS if b[0] <= minutes]
    if not reached:
        return []
    benchmark_minute, benchmark_worth, items = reached[-1]

    lines = ["Item Timing Analysis:"]
    diff = net_worth - benchmark_worth
    if diff >= NET_WORTH_TOLERANCE:
        lines.append(f"  You're ahead of item timings! +{diff} gold")
    elif diff >= -NET_WORTH_TOLERANCE:
        lines.append("  You're on track with item timings")
    else:
        lines.append(f"  You're behind on item timings: {diff} gold")
    lines.append(f"  Current benchmark ({benchmark_minute} min): {items}")

    upcoming = [b for b in ITEM_BENCHMARKS if b[0] > minutes]
    if upcoming:
        next_minute, next_worth, next_items = upcoming[0]
        time_left = next_minute - minutes
        gold_needed = next_worth - net_worth
        lines.append(f"  Next goal ({next_minute} min): {next_items}")
        lines.append(f"  Need {gold_needed} gold in {time_left} minutes ({gold_needed // time_left} GPM)")
    return lines


def map_control_advice(snapshot: Snapshot) -> List[str]:
    team = snapshot.team_name
    if not snapshot.buildings or team not in ("radiant", "dire"):
        return []
    enemy = "dire" if team == "radiant" else "radiant"

    def towers(side: str) -> int:
        return sum(1 for name in snapshot.buildings.get(side, {}) if "tower" in name)

    ours, theirs = towers(team), towers(enemy)
    diff = ours - theirs
    lines = [
        "Map Control Analysis:",
        f"  Your team has {ours} towers, enemy has {theirs} towers",
    ]
    if diff >= 3:
        lines.append("  Strong map control advantage. Consider aggressive warding.")
    elif diff >= 1:
        lines.append("  Slight map control advantage. Maintain pressure.")
    elif diff == 0:
        lines.append("  Even map control. Focus on objectives.")
    elif diff >= -2:
        lines.append("  Losing map control. Defend remaining towers.")
    else:
        lines.append("  Significant map control disadvantage. Play defensively.")

    if diff < 0:
        lines.append("  Tip: When behind in towers, focus on smoke ganks and pick-offs.")
    elif diff > 0:
        lines.append("  Tip: Use your map control to secure Roshan and invade jungle.")
    return lines


def compose_insights(
    snapshot: Snapshot,
    engagement_status: Optional[str],
    movements: Sequence[str],
    predictions: Sequence[Prediction],
    metrics: Sequence[str],
    sightings: Sequence[Sighting] = (),
) -> List[str]:
    """
    Builds the ordered advisory list for one refresh of the coach.

    Order: engagement status, enemy tracking and predictions, the enemy
    overview, performance metrics, phase advice, then item timing, map control
    and building status when data allows.

    :param snapshot: The latest snapshot.
    :param engagement_status: EngagementDetector.status_at output.
    :param movements: EnemyPositionTracker.describe_recent output.
    :param predictions: EnemyPositionTracker.predict output.
    :param metrics: PerformanceTracker.report output.
    :param sightings: EnemyPositionTracker.last_sightings output.
    :return: Advisory strings, in display order.
    """
    insights: List[str] = []
    if engagement_status:
        insights.append(engagement_status)
    insights.extend(_tracking_lines(snapshot, movements, predictions))
    if snapshot.game_time is not None:
        insights.extend(enemy_overview_lines(snapshot, sightings, snapshot.game_time))
    insights.extend(metrics)
    insights.extend(phase_advice(snapshot))
    insights.extend(item_timing_advice(snapshot))
    insights.extend(map_control_advice(snapshot))
    insights.extend(building_status_advice(snapshot))
    return insights
