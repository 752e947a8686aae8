from wayfinder.main import main


def test_missing_api_key_prints_config_error(monkeypatch, tmp_path, capsys):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("GRAPHHOPPER_API_KEY", "")

    assert main(["Meskel Square"]) == 2
    assert "GRAPHHOPPER_API_KEY" in capsys.readouterr().out
