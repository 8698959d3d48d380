import math

from roadnav.router.models import Position
from roadnav.router.nav_config import NavConfig
from roadnav.router.position_tracker import PositionTracker

from conftest import Walker


def test_first_sample_is_accepted(walker: Walker) -> None:
    tracker = PositionTracker()
    sample = walker.at(0)

    assert tracker.ingest(sample) is sample
    assert tracker.last_good is sample
    assert tracker.has_fix


def test_jitter_below_epsilon_is_ignored(walker: Walker) -> None:
    tracker = PositionTracker()
    first = walker.at(0)
    tracker.ingest(first)

    assert tracker.ingest(walker.at(1.0)) is None
    assert tracker.last_good is first
    assert tracker.rejected_count == 1


def test_jitter_is_accepted_when_accuracy_improves(walker: Walker) -> None:
    tracker = PositionTracker()
    tracker.ingest(walker.at(0, accuracy_m=10.0))

    better = walker.at(1.0, accuracy_m=4.0)
    assert tracker.ingest(better) is better


def test_poor_accuracy_rejected_once_a_better_fix_exists(walker: Walker) -> None:
    tracker = PositionTracker(NavConfig(accuracy_ceiling_m=100.0))
    tracker.ingest(walker.at(0, accuracy_m=8.0))

    assert tracker.ingest(walker.at(50, accuracy_m=150.0)) is None
    assert tracker.ingest(walker.at(60, accuracy_m=90.0)) is not None


def test_poor_accuracy_accepted_without_a_better_fix(walker: Walker) -> None:
    tracker = PositionTracker()
    coarse = walker.at(0, accuracy_m=400.0)
    assert tracker.ingest(coarse) is coarse


def test_begin_session_forgets_best_accuracy(walker: Walker) -> None:
    tracker = PositionTracker()
    tracker.ingest(walker.at(0, accuracy_m=5.0))
    tracker.begin_session()

    coarse = walker.at(100, accuracy_m=150.0)
    assert tracker.ingest(coarse) is coarse
    assert tracker.last_good is coarse


def test_out_of_order_sample_is_rejected() -> None:
    tracker = PositionTracker()
    tracker.ingest(Position(lat=0.0, lon=0.0, accuracy_m=5.0, captured_at_ms=2_000))

    stale = Position(lat=0.001, lon=0.0, accuracy_m=5.0, captured_at_ms=1_000)
    assert tracker.ingest(stale) is None


def test_invalid_samples_are_rejected() -> None:
    tracker = PositionTracker()
    assert tracker.ingest(Position(lat=math.nan, lon=0.0, accuracy_m=5.0, captured_at_ms=1)) is None
    assert tracker.ingest(Position(lat=91.0, lon=0.0, accuracy_m=5.0, captured_at_ms=2)) is None
    assert tracker.ingest(Position(lat=0.0, lon=0.0, accuracy_m=-1.0, captured_at_ms=3)) is None
    assert not tracker.has_fix


def test_reset_clears_everything(walker: Walker) -> None:
    tracker = PositionTracker()
    tracker.ingest(walker.at(0))
    tracker.reset()

    assert tracker.last_good is None
    assert tracker.accepted_count == 0
