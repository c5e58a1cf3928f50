from coach.performance import PerformanceTracker, classify_cs_rate, classify_trend
from gsi_pipeline.schemas import HeroState, MapState, PlayerState, Snapshot


def make_snapshot(game_time, gpm=None, xpm=None, last_hits=None, alive=True):
    return Snapshot(
        map=MapState(game_time=game_time),
        player=PlayerState(gpm=gpm, xpm=xpm, last_hits=last_hits),
        hero=HeroState(alive=alive),
    )


def test_classify_trend_thresholds():
    assert classify_trend(500, 400) == "trending up significantly"
    assert classify_trend(430, 400) == "trending up"
    assert classify_trend(300, 400) == "trending down significantly"
    assert classify_trend(370, 400) == "trending down"
    assert classify_trend(410, 400) == "steady"


def test_report_flags_significant_gpm_rise():
    tracker = PerformanceTracker()
    for t, gpm in [(60, 300), (70, 300), (80, 300), (90, 600)]:
        tracker.update(make_snapshot(t, gpm=gpm))

    lines = tracker.report(90)
    assert "GPM: 600 (Avg: 375)" in lines
    assert "  GPM trending up significantly" in lines


def test_report_flags_significant_gpm_drop():
    tracker = PerformanceTracker()
    for t, gpm in [(60, 700), (70, 700), (80, 700), (90, 400)]:
        tracker.update(make_snapshot(t, gpm=gpm))

    assert "  GPM trending down significantly" in tracker.report(90)


def test_series_capped_at_twenty_samples():
    tracker = PerformanceTracker()
    for t in range(1, 40):
        tracker.update(make_snapshot(t, gpm=t, xpm=t))
    assert tracker.series_length("gpm") == 20
    assert tracker.series_length("last_hits") == 0


def test_duplicate_clock_does_not_grow_series():
    tracker = PerformanceTracker()
    snapshot = make_snapshot(100, gpm=400)
    tracker.update(snapshot)
    tracker.update(snapshot, snapshot)
    tracker.update(make_snapshot(90, gpm=100))
    assert tracker.series_length("gpm") == 1


def test_single_sample_reports_nothing_but_deaths():
    tracker = PerformanceTracker()
    tracker.update(make_snapshot(100, gpm=400, last_hits=10))
    assert tracker.report(100) == ["Deaths: 0 - Excellent survival!"]


def test_cs_per_minute_benchmarks():
    assert classify_cs_rate(7.5, 5) == "Excellent early game CS"
    assert classify_cs_rate(5.0, 5) == "Good early game CS"
    assert classify_cs_rate(2.0, 5) == "Early game CS needs improvement"
    assert classify_cs_rate(4.5, 5) is None
    assert classify_cs_rate(8.0, 12) == "Excellent CS"
    assert classify_cs_rate(3.0, 12) == "CS needs improvement"


def test_cs_rate_skipped_before_first_minute():
    tracker = PerformanceTracker()
    tracker.update(make_snapshot(20, last_hits=1))
    tracker.update(make_snapshot(40, last_hits=3))
    assert not any(line.startswith("CS/min") for line in tracker.report(40))

    tracker.update(make_snapshot(120, last_hits=14))
    assert "CS/min: 7.0" in tracker.report(120)


def test_deaths_are_counted_from_alive_transitions():
    tracker = PerformanceTracker()
    alive = make_snapshot(60, alive=True)
    dead = make_snapshot(65, alive=False)
    tracker.update(alive)
    tracker.update(dead, alive)

    lines = tracker.report(120)
    assert "Deaths: 1" in lines
    assert "  High death rate, play more cautiously" in lines

    assert "  Good survival streak: 5 minutes without dying" in tracker.report(400)


def test_death_on_repeated_clock_is_not_counted_again():
    tracker = PerformanceTracker()
    alive = make_snapshot(60, alive=True)
    dead = make_snapshot(65, alive=False)
    tracker.update(alive)
    tracker.update(dead, alive)
    tracker.update(make_snapshot(65, alive=False), make_snapshot(65, alive=True))
    assert tracker.death_count == 1
