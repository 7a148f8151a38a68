# wlog/utils/config.py
# Rev 0.1.0
from __future__ import annotations
import json
import os
from datetime import time
from pathlib import Path
from typing import Any, Dict, Optional

from .logging_setup import get_logger
from .paths import DEFAULT_DB_PATH, config_dir

_log = get_logger(__name__)

DEFAULT_DAY_CHANGE_THRESHOLD = "12:00"

_DEFAULTS: Dict[str, Any] = {
    "data_path": str(DEFAULT_DB_PATH),
    # before this local time "today" still means yesterday
    "day_change_threshold": DEFAULT_DAY_CHANGE_THRESHOLD,
}


def settings_file() -> Path:
    return config_dir() / "settings.json"


def load_settings(path: Optional[Path] = None) -> Dict[str, Any]:
    path = path or settings_file()
    if path.exists():
        try:
            return {**_DEFAULTS, **json.loads(path.read_text(encoding="utf-8"))}
        except (OSError, ValueError):
            _log.warning("Unreadable settings file %s, falling back to defaults", path, exc_info=True)
            return _DEFAULTS.copy()
    return _DEFAULTS.copy()


def save_settings(data: Dict[str, Any], path: Optional[Path] = None) -> None:
    path = path or settings_file()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")
    _log.info("Settings written to %s", path)


def update_setting(key: str, value: Any, path: Optional[Path] = None) -> Dict[str, Any]:
    if key not in _DEFAULTS:
        raise KeyError(f"Unknown setting: {key}")
    data = load_settings(path)
    data[key] = value
    save_settings(data, path)
    return data


def reset_settings(path: Optional[Path] = None) -> Dict[str, Any]:
    data = _DEFAULTS.copy()
    save_settings(data, path)
    return data


def resolve_db_path(settings: Optional[Dict[str, Any]] = None) -> Path:
    """WLOG_DB wins over settings.json, which wins over the XDG default."""
    env = os.environ.get("WLOG_DB")
    if env:
        return Path(env).expanduser()
    settings = settings if settings is not None else load_settings()
    return Path(settings.get("data_path") or DEFAULT_DB_PATH).expanduser()


def day_change_threshold(settings: Optional[Dict[str, Any]] = None) -> time:
    settings = settings if settings is not None else load_settings()
    raw = settings.get("day_change_threshold") or DEFAULT_DAY_CHANGE_THRESHOLD
    try:
        return time.fromisoformat(raw)
    except (TypeError, ValueError):
        _log.warning("Invalid day_change_threshold %r, using %s", raw, DEFAULT_DAY_CHANGE_THRESHOLD)
        return time.fromisoformat(DEFAULT_DAY_CHANGE_THRESHOLD)
