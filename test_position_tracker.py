from coach.position_tracker import (
    EnemyPositionTracker,
    enemy_team_id,
    extrapolate,
    movement_direction,
)
from gsi_pipeline.schemas import MapState, MarkerIcon, MinimapMarker, PlayerState, Snapshot


def make_snapshot(game_time, enemies, team_name="radiant", enemy_team=3):
    minimap = {
        f"o{i}": MinimapMarker(
            name=f"npc_dota_hero_{name}", team=enemy_team, xpos=x, ypos=y, icon=MarkerIcon.ENEMY_HERO
        )
        for i, (name, (x, y)) in enumerate(enemies.items())
    }
    return Snapshot(
        map=MapState(game_time=game_time),
        player=PlayerState(team_name=team_name),
        minimap=minimap,
    )


def test_enemy_team_from_player_team():
    assert enemy_team_id("radiant") == 3
    assert enemy_team_id("dire") == 2
    assert enemy_team_id(None) == 3


def test_update_tracks_only_hostile_icons_of_enemy_team():
    snapshot = Snapshot(
        map=MapState(game_time=100),
        player=PlayerState(team_name="radiant"),
        minimap={
            "o1": MinimapMarker(name="npc_dota_hero_axe", team=3, xpos=10, ypos=20, icon=MarkerIcon.ENEMY_HERO),
            "o2": MinimapMarker(name="npc_dota_hero_lina", team=2, xpos=0, ypos=0, icon=MarkerIcon.ENEMY_HERO),
            "o3": MinimapMarker(name="npc_dota_creep", team=3, xpos=5, ypos=5, icon=MarkerIcon.OTHER),
            "o4": MinimapMarker(name=None, team=3, xpos=5, ypos=5, icon=MarkerIcon.ENEMY_HERO),
        },
    )
    tracker = EnemyPositionTracker()
    tracker.update(snapshot)

    assert list(tracker.snapshot_histories()) == ["Axe"]
    assert tracker.history("Axe") == [(100, (10, 20))]


def test_history_is_capped_and_ordered():
    tracker = EnemyPositionTracker()
    for t in range(1, 151):
        tracker.update(make_snapshot(t, {"axe": (t, 0)}))

    history = tracker.history("Axe")
    assert len(history) == 100
    assert history[0] == (51, (51, 0))
    times = [t for t, _ in history]
    assert times == sorted(times)
    assert tracker.times_spotted("Axe") == 150


def test_replayed_snapshot_leaves_history_unchanged():
    tracker = EnemyPositionTracker()
    tracker.update(make_snapshot(10, {"axe": (0, 0)}))
    tracker.update(make_snapshot(20, {"axe": (100, 0)}))
    before = tracker.snapshot_histories()

    tracker.update(make_snapshot(20, {"axe": (999, 999)}))
    tracker.update(make_snapshot(15, {"axe": (500, 500), "lina": (1, 1)}))

    assert tracker.snapshot_histories() == before


def test_unknown_clock_is_ignored():
    tracker = EnemyPositionTracker()
    tracker.update(Snapshot(minimap={
        "o1": MinimapMarker(name="npc_dota_hero_axe", team=3, xpos=1, ypos=1, icon=MarkerIcon.ENEMY_HERO),
    }))
    assert tracker.snapshot_histories() == {}


def test_predict_linear_extrapolation():
    tracker = EnemyPositionTracker()
    tracker.update(make_snapshot(100, {"axe": (0, 0)}))
    tracker.update(make_snapshot(110, {"axe": (10, 0)}))

    assert tracker.predict(120) == [("Axe", (20, 0))]


def test_predict_truncates_and_skips_stale_or_single_samples():
    tracker = EnemyPositionTracker()
    tracker.update(make_snapshot(100, {"axe": (0, 0), "lina": (5, 5)}))
    tracker.update(make_snapshot(103, {"axe": (10, -10)}))

    # 10 * 4/3 = 13.33 -> 13, -13.33 -> -13
    assert tracker.predict(107) == [("Axe", (23, -23))]
    assert tracker.predict(134) == []


def test_extrapolate_guards_zero_delta():
    assert extrapolate((10, (0, 0)), (10, (5, 5)), 20) is None
    assert extrapolate((12, (0, 0)), (10, (5, 5)), 20) is None


def test_movement_direction_prefers_horizontal_on_ties():
    assert movement_direction((0, 0), (5, 5)) == "East"
    assert movement_direction((0, 0), (-5, 5)) == "West"
    assert movement_direction((0, 0), (1, 7)) == "North"
    assert movement_direction((0, 0), (1, -7)) == "South"
    assert movement_direction((3, 3), (3, 3)) is None


def test_describe_recent_lists_recent_enemies_newest_first():
    tracker = EnemyPositionTracker()
    tracker.update(make_snapshot(100, {"axe": (0, 0), "lina": (50, 50)}))
    tracker.update(make_snapshot(110, {"axe": (0, -300)}))

    lines = tracker.describe_recent(130)
    assert lines == [
        "Axe: last seen 20 seconds ago at (0, -300), moving South",
        "Lina: last seen 30 seconds ago at (50, 50)",
    ]
    assert tracker.describe_recent(171) == []


def test_last_sightings_sorted_by_name_with_spot_counts():
    tracker = EnemyPositionTracker()
    tracker.update(make_snapshot(10, {"lina": (0, 0), "axe": (5, 5)}))
    tracker.update(make_snapshot(20, {"lina": (10, 0)}))

    assert tracker.last_sightings() == [
        ("Axe", 10, (5, 5), 1),
        ("Lina", 20, (10, 0), 2),
    ]
