from pathlib import Path

import config


def _point_config_at(tmp_path: Path, monkeypatch) -> Path:
    config_dir = tmp_path / ".leetcurve"
    config_path = config_dir / "config.toml"
    monkeypatch.setattr(config, "CONFIG_DIR", config_dir)
    monkeypatch.setattr(config, "CONFIG_PATH", config_path)
    for name in ("LEETCURVE_COOLDOWN_MINUTES", "LEETCURVE_INTERVAL_MODE", "LEETCURVE_BACKUP_ENABLED"):
        monkeypatch.delenv(name, raising=False)
    return config_path


def test_example_config_is_copied_on_first_load(tmp_path, monkeypatch):
    config_path = _point_config_at(tmp_path, monkeypatch)

    loaded = config.load_config()

    assert config_path.exists()
    assert loaded["schedule"]["cooldown_minutes"] == 60
    assert loaded["schedule"]["interval_mode"] == "elapsed"
    assert loaded["backup"]["enabled"] is True
    assert loaded["server"]["port"] == 8000


def test_environment_overrides_file_values(tmp_path, monkeypatch):
    config_path = _point_config_at(tmp_path, monkeypatch)
    config_path.parent.mkdir()
    config_path.write_text("[schedule]\ncooldown_minutes = 30\ninterval_mode = \"Calendar\"\n", encoding="utf-8")
    monkeypatch.setenv("LEETCURVE_COOLDOWN_MINUTES", "15")
    monkeypatch.setenv("LEETCURVE_BACKUP_ENABLED", "off")

    loaded = config.load_config()

    assert loaded["schedule"]["cooldown_minutes"] == 15
    assert loaded["schedule"]["interval_mode"] == "calendar"
    assert loaded["schedule"]["day_boundary_hour"] == 2
    assert loaded["backup"]["enabled"] is False
    assert loaded["schedule"]["recent_days"] == 7
