import argparse

import pytest

from roadnav.router.geo_utils import distance
from roadnav.router.main import main, parse_coord, walk_polyline
from roadnav.router.models import Coord
from roadnav.router.nav_config import NavConfig
from roadnav.router.nav_logger import NavLogger

from conftest import at, straight_route


def test_parse_coord() -> None:
    assert parse_coord("39.92409,32.845382") == Coord(39.92409, 32.845382)
    with pytest.raises(argparse.ArgumentTypeError):
        parse_coord("39.92409")


def test_walk_polyline_spacing() -> None:
    samples = list(walk_polyline([at(0), at(100), at(130)], 25.0))

    alongs = [along for _, along in samples]
    assert alongs[:6] == [0.0, 25.0, 50.0, 75.0, 100.0, 125.0]
    assert alongs[-1] == pytest.approx(130.0)
    assert distance(samples[2][0], at(50)) < 0.01
    assert samples[-1][0] == at(130)


def test_main_replays_saved_route(tmp_path, capsys) -> None:
    NavLogger(NavConfig(log_dir=str(tmp_path))).save_route(straight_route())

    code = main(["--route", str(tmp_path / "active_route.json"), "--log-dir", str(tmp_path)])

    out = capsys.readouterr().out
    assert code == 0
    assert "[FINISHED]" in out
    assert (tmp_path / "nav_session.jsonl").exists()


def test_main_requires_a_route_source(tmp_path) -> None:
    assert main(["--log-dir", str(tmp_path)]) == 2
