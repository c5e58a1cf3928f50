from coach.engagement import EngagementDetector, EngagementState
from gsi_pipeline.schemas import HeroState, MapState, PlayerState, Snapshot


def make_snapshot(game_time, kill_list=None, alive=True):
    return Snapshot(
        map=MapState(game_time=game_time),
        player=PlayerState(team_name="radiant", kill_list=kill_list if kill_list is not None else {}),
        hero=HeroState(alive=alive),
    )


def feed(detector, snapshots):
    previous = None
    for snapshot in snapshots:
        detector.update(snapshot, previous)
        previous = snapshot
    return previous


def test_player_death_emits_single_event_at_later_clock():
    detector = EngagementDetector()
    feed(detector, [make_snapshot(200, alive=True), make_snapshot(203, alive=False), make_snapshot(204, alive=False)])

    events = detector.events()
    assert len(events) == 1
    assert events[0].game_time == 203
    assert events[0].subject == "you"


def test_unknown_alive_flag_is_not_a_death():
    detector = EngagementDetector()
    unknown = Snapshot(map=MapState(game_time=10), hero=HeroState(alive=None))
    detector.update(make_snapshot(11, alive=False), unknown)
    assert detector.event_count == 0


def test_kill_counter_increase_emits_one_event_per_kill():
    detector = EngagementDetector()
    feed(detector, [
        make_snapshot(300, {"victimid_5": 1}),
        make_snapshot(301, {"victimid_5": 3, "victimid_7": 1}),
    ])

    events = detector.events()
    assert len(events) == 3
    assert sorted(e.victim for e in events) == ["Enemy5", "Enemy5", "Enemy7"]
    assert all(e.game_time == 301 for e in events)
    assert detector.player_deaths == []
    assert len(detector.enemy_deaths["Enemy5"]) == 2


def test_same_clock_update_is_ignored():
    detector = EngagementDetector()
    feed(detector, [make_snapshot(100, {"victimid_2": 0}), make_snapshot(101, {"victimid_2": 1})])
    detector.update(make_snapshot(101, {"victimid_2": 2}), make_snapshot(100, {"victimid_2": 0}))
    assert detector.event_count == 1


def test_three_kills_in_twenty_seconds_start_a_fight_that_ends_after_quiet():
    detector = EngagementDetector()
    last = feed(detector, [
        make_snapshot(500, {}),
        make_snapshot(505, {"victimid_1": 1}),
        make_snapshot(515, {"victimid_1": 1, "victimid_2": 1}),
    ])
    assert detector.state == EngagementState.CALM
    assert detector.status_at(515) == "Skirmishes detected - team fight may be developing!"

    third = make_snapshot(525, {"victimid_1": 1, "victimid_2": 1, "victimid_3": 1})
    detector.update(third, last)
    assert detector.is_engaged
    assert detector.fight_start == 525

    quiet = make_snapshot(535, third.player.kill_list)
    detector.update(quiet, third)
    assert detector.is_engaged
    assert detector.status_at(535) == "TEAM FIGHT IN PROGRESS! Started 10 seconds ago"

    later = make_snapshot(541, third.player.kill_list)
    detector.update(later, quiet)
    assert not detector.is_engaged


def test_duplicate_snapshot_does_not_add_events():
    detector = EngagementDetector()
    first = make_snapshot(50, {"victimid_1": 0})
    second = make_snapshot(60, {"victimid_1": 1})
    feed(detector, [first, second])
    assert detector.event_count == 1

    detector.update(second, second)
    assert detector.event_count == 1


def test_no_status_when_quiet():
    detector = EngagementDetector()
    feed(detector, [make_snapshot(10), make_snapshot(20)])
    assert detector.status_at(20) is None
    assert detector.count_events_in_window(20, 60) == 0


def test_missing_kill_list_on_either_side_emits_nothing():
    detector = EngagementDetector()
    without = Snapshot(map=MapState(game_time=10), player=PlayerState())
    detector.update(make_snapshot(11, {"victimid_1": 4}), without)
    assert detector.event_count == 0
