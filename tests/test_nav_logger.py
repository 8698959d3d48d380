import json

from roadnav.router.models import NavigationSession, NavigationSnapshot, NavState, ProgressResult, RouteStatus
from roadnav.router.nav_config import NavConfig
from roadnav.router.nav_logger import NavLogger

from conftest import Walker, at


def make_logger(tmp_path) -> NavLogger:
    return NavLogger(NavConfig(log_dir=str(tmp_path / "logs")))


def test_save_and_load_route(tmp_path, route) -> None:
    nav_logger = make_logger(tmp_path)

    assert nav_logger.save_route(route)
    with open(nav_logger.config.route_filepath, encoding="utf-8") as f:
        saved = json.load(f)
    assert saved["step_count"] == 3
    assert saved["version"] == 1
    assert "session_id" not in saved

    assert nav_logger.load_route() == route


def test_save_route_with_session(tmp_path, route) -> None:
    nav_logger = make_logger(tmp_path)
    session = NavigationSession(route=route, destination=at(800), travel_mode="cycling")

    assert nav_logger.save_route(route, session)
    with open(nav_logger.config.route_filepath, encoding="utf-8") as f:
        saved = json.load(f)
    assert saved["session_id"] == session.session_id
    assert saved["travel_mode"] == "cycling"


def test_load_missing_or_corrupt_route(tmp_path) -> None:
    nav_logger = make_logger(tmp_path)
    assert nav_logger.load_route() is None

    broken = tmp_path / "broken.json"
    broken.write_text("{not json", encoding="utf-8")
    assert nav_logger.load_route(str(broken)) is None


def test_log_event_appends_jsonl(tmp_path) -> None:
    nav_logger = make_logger(tmp_path)
    walker = Walker()
    snapshot = NavigationSnapshot(state=NavState.NAVIGATING, current_step_index=1, remaining_distance_m=312.34)

    nav_logger.log_event(ProgressResult(RouteStatus.PROGRESSING, "ok", 20.0, snapshot=snapshot), walker.at(100))
    nav_logger.log_event(ProgressResult(RouteStatus.INACTIVE, "Navigation is not active."), walker.at(200))

    with open(nav_logger.config.events_filepath, encoding="utf-8") as f:
        lines = [json.loads(line) for line in f]

    assert len(lines) == 2
    assert lines[0]["status"] == "progressing"
    assert lines[0]["state"] == "navigating"
    assert lines[0]["step_index"] == 1
    assert lines[0]["remaining_m"] == 312.3
    assert lines[1]["captured_at_ms"] == 2000
    assert "state" not in lines[1]
