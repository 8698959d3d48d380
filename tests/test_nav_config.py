import os

import pytest

from roadnav.router.nav_config import DEFAULT_OSRM_URL, NavConfig


def test_defaults() -> None:
    config = NavConfig()
    assert config.completion_radius_m == 20.0
    assert config.off_route_threshold_m == 50.0
    assert config.off_route_debounce_s == 3.0
    assert config.announcement_radius_m == 200.0
    assert config.osrm_base_url == DEFAULT_OSRM_URL
    assert config.route_filepath == os.path.join(".", "active_route.json")


def test_accuracy_scaling_is_opt_in() -> None:
    assert NavConfig().off_route_threshold_for(80.0) == 50.0

    scaled = NavConfig(scale_with_accuracy=True)
    assert scaled.off_route_threshold_for(80.0) == 120.0
    assert scaled.off_route_threshold_for(10.0) == 50.0
    assert scaled.completion_radius_for(20.0) == 30.0
    assert scaled.completion_radius_for(None) == 20.0


def test_from_env_reads_prefixed_variables(monkeypatch, tmp_path) -> None:
    monkeypatch.setenv("ROADNAV_OFF_ROUTE_THRESHOLD_M", "40")
    monkeypatch.setenv("ROADNAV_VOICE_ENABLED", "false")
    monkeypatch.setenv("ROADNAV_SCALE_WITH_ACCURACY", "yes")
    monkeypatch.setenv("ROADNAV_OSRM_BASE_URL", "http://localhost:5000")

    config = NavConfig.from_env(str(tmp_path / "missing.env"), completion_radius_m=15.0)

    assert config.off_route_threshold_m == 40.0
    assert config.voice_enabled is False
    assert config.scale_with_accuracy is True
    assert config.osrm_base_url == "http://localhost:5000"
    assert config.completion_radius_m == 15.0


def test_from_env_loads_dotenv_file(tmp_path) -> None:
    dotenv = tmp_path / ".env"
    dotenv.write_text("ROADNAV_TRAVEL_MODE=walking\nROADNAV_ANNOUNCEMENT_RADIUS_M=120\n", encoding="utf-8")
    try:
        config = NavConfig.from_env(str(dotenv))
    finally:
        os.environ.pop("ROADNAV_TRAVEL_MODE", None)
        os.environ.pop("ROADNAV_ANNOUNCEMENT_RADIUS_M", None)

    assert config.travel_mode == "walking"
    assert config.announcement_radius_m == 120.0


def test_from_env_rejects_unknown_travel_mode(tmp_path) -> None:
    with pytest.raises(ValueError):
        NavConfig.from_env(str(tmp_path / "missing.env"), travel_mode="flying")
