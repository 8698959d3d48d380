from roadnav.router.announcer import AnnouncementDispatcher
from roadnav.router.models import NavigationSession
from roadnav.router.nav_config import NavConfig

from conftest import at


def _session(route) -> NavigationSession:
    return NavigationSession(route=route, destination=at(800))


def test_announces_once_inside_radius(route, spoken) -> None:
    dispatcher = AnnouncementDispatcher(spoken.append)
    session = _session(route)

    assert dispatcher.dispatch(session, 350.0) is None
    assert dispatcher.dispatch(session, 190.0) == "In 190 m, Turn right onto Oak Avenue"
    for d in (150.0, 199.0, 210.0, 180.0, 30.0):
        assert dispatcher.dispatch(session, d) is None

    assert spoken == ["In 190 m, Turn right onto Oak Avenue"]
    assert session.last_announced_step_index == 0


def test_new_step_is_announced_again(route, spoken) -> None:
    dispatcher = AnnouncementDispatcher(spoken.append)
    session = _session(route)
    dispatcher.dispatch(session, 100.0)

    session.current_step_index = 1
    assert dispatcher.should_announce(session, 150.0)
    assert dispatcher.dispatch(session, 150.0) == "In 150 m, you will arrive at your destination"


def test_reset_allows_announcing_step_zero_again(route, spoken) -> None:
    dispatcher = AnnouncementDispatcher(spoken.append)
    session = _session(route)
    dispatcher.dispatch(session, 100.0)

    dispatcher.reset(session)
    assert dispatcher.should_announce(session, 100.0)


def test_speech_failure_is_swallowed(route) -> None:
    def broken(text: str) -> None:
        raise RuntimeError("no audio device")

    dispatcher = AnnouncementDispatcher(broken)
    session = _session(route)

    assert dispatcher.dispatch(session, 50.0) is not None
    assert session.last_announced_step_index == 0


def test_voice_disabled_stays_silent(route, spoken) -> None:
    dispatcher = AnnouncementDispatcher(spoken.append, NavConfig(voice_enabled=False))
    dispatcher.say("Recalculating route")
    dispatcher.dispatch(_session(route), 50.0)
    assert spoken == []


def test_custom_radius(route, spoken) -> None:
    dispatcher = AnnouncementDispatcher(spoken.append, NavConfig(announcement_radius_m=500.0))
    assert dispatcher.should_announce(_session(route), 450.0)
