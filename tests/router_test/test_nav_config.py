import os

from wayfinder.router.nav_config import NavConfig


def test_defaults():
    config = NavConfig()

    assert config.deviation_threshold_m == 80.0
    assert config.reroute_cooldown_s == 0.0
    assert config.max_samples == 15
    assert (config.nearby_limit, config.route_limit) == (30, 50)
    assert 15.0 <= config.nearby_timeout_s <= config.route_timeout_s <= 25.0
    assert config.route_filepath == os.path.join(".", "last_route.json")


def test_from_env(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("GRAPHHOPPER_API_KEY", "abc123")
    monkeypatch.setenv("WAYFINDER_DEVIATION_M", "45.5")
    monkeypatch.setenv("WAYFINDER_REROUTE_COOLDOWN_S", "20")
    monkeypatch.setenv("WAYFINDER_DATA_DIR", str(tmp_path))

    config = NavConfig.from_env()

    assert config.graphhopper_api_key == "abc123"
    assert config.deviation_threshold_m == 45.5
    assert config.reroute_cooldown_s == 20.0
    assert config.route_filepath == os.path.join(str(tmp_path), "last_route.json")


def test_from_env_reads_dotenv_file(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    # setenv first so teardown removes whatever load_dotenv writes
    monkeypatch.setenv("GRAPHHOPPER_API_KEY", "placeholder")
    monkeypatch.delenv("GRAPHHOPPER_API_KEY")
    (tmp_path / ".env").write_text("GRAPHHOPPER_API_KEY=from-dotenv\n")

    assert NavConfig.from_env().graphhopper_api_key == "from-dotenv"
