import tomllib
import shutil
from pathlib import Path
from typing import Any, Dict
from dotenv import load_dotenv
import os

CONFIG_DIR = Path.home() / ".leetcurve"
CONFIG_PATH = CONFIG_DIR / "config.toml"
PROJECT_CONFIG_EXAMPLE = Path(__file__).parent / "config.toml"


def _as_bool(value: Any) -> bool:
    return str(value).strip().lower() in ("1", "true", "yes", "on")


def load_config() -> Dict[str, Any]:
    """Load config from ~/.leetcurve/config.toml, copy example if missing, load .env overrides."""
    load_dotenv()  # Load .env for overrides (e.g., LEETCURVE_COOLDOWN_MINUTES)
    if not CONFIG_PATH.exists():
        CONFIG_DIR.mkdir(parents=True, exist_ok=True)
        shutil.copy(PROJECT_CONFIG_EXAMPLE, CONFIG_PATH)
    with open(CONFIG_PATH, "rb") as f:
        config = tomllib.load(f)

    schedule_cfg = config.get("schedule", {})
    interval_mode = os.getenv("LEETCURVE_INTERVAL_MODE", schedule_cfg.get("interval_mode", "elapsed"))
    config["schedule"] = {
        "cooldown_minutes": float(os.getenv(
            "LEETCURVE_COOLDOWN_MINUTES", schedule_cfg.get("cooldown_minutes", 60)
        )),
        "interval_mode": str(interval_mode).strip().lower(),
        "day_boundary_hour": int(os.getenv(
            "LEETCURVE_DAY_BOUNDARY_HOUR", schedule_cfg.get("day_boundary_hour", 2)
        )),
        "recent_days": int(os.getenv("LEETCURVE_RECENT_DAYS", schedule_cfg.get("recent_days", 7))),
    }
    backup_cfg = config.get("backup", {})
    config["backup"] = {
        "enabled": _as_bool(os.getenv("LEETCURVE_BACKUP_ENABLED", backup_cfg.get("enabled", True))),
        "debounce_seconds": float(os.getenv(
            "LEETCURVE_BACKUP_DEBOUNCE_SECONDS", backup_cfg.get("debounce_seconds", 5)
        )),
        "keep": int(backup_cfg.get("keep", 7)),
    }
    server_cfg = config.get("server", {})
    config["server"] = {
        "host": server_cfg.get("host", "127.0.0.1"),
        "port": int(os.getenv("LEETCURVE_PORT", server_cfg.get("port", 8000))),
    }
    logging_cfg = config.get("logging", {})
    config["logging"] = {
        "level": os.getenv("LEETCURVE_LOG_LEVEL", logging_cfg.get("level", "INFO")).upper(),
    }
    return config

