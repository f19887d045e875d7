from __future__ import annotations

import logging
import os
import yaml
from pathlib import Path
from typing import Dict, Any, Optional

DEFAULT_CONFIG_PATH = Path.home() / ".taskcore_config.yaml"

DEFAULT_REVIEW_INTERVAL_DAYS = 7
DEFAULT_LOG_LEVEL = "WARNING"
_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

logger = logging.getLogger("taskcore.config")


def config_path() -> Path:
    override = os.environ.get("TASKCORE_CONFIG", "").strip()
    return Path(override).expanduser() if override else DEFAULT_CONFIG_PATH


def _load_config() -> Dict[str, Any]:
    path = config_path()
    if not path.exists():
        return {}
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except (OSError, yaml.YAMLError) as exc:
        logger.warning("ignoring unreadable config %s: %s", path, exc)
        return {}
    if not isinstance(data, dict):
        logger.warning("ignoring config %s: top level must be a mapping", path)
        return {}
    return data


def _save_config(data: Dict[str, Any]) -> None:
    path = config_path()
    if not data:
        if path.exists():
            path.unlink()
        return
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(yaml.safe_dump(data, allow_unicode=True), encoding="utf-8")


def _set(key: str, value: Any) -> None:
    data = _load_config()
    if value is None:
        data.pop(key, None)
    else:
        data[key] = value
    _save_config(data)


def get_review_interval_days() -> int:
    raw = _load_config().get("review_interval_days", DEFAULT_REVIEW_INTERVAL_DAYS)
    try:
        value = int(raw)
    except (TypeError, ValueError):
        logger.warning("invalid review_interval_days %r, using %s", raw, DEFAULT_REVIEW_INTERVAL_DAYS)
        return DEFAULT_REVIEW_INTERVAL_DAYS
    if value < 1:
        logger.warning("review_interval_days must be positive, got %s", value)
        return DEFAULT_REVIEW_INTERVAL_DAYS
    return value


def set_review_interval_days(value: Optional[int]) -> None:
    if value is not None and int(value) < 1:
        raise ValueError("review_interval_days must be positive")
    _set("review_interval_days", None if value is None else int(value))


def _get_flag(key: str) -> bool:
    raw = _load_config().get(key, False)
    if isinstance(raw, bool):
        return raw
    logger.warning("invalid %s %r, expected true/false", key, raw)
    return False


def get_hide_non_actionable() -> bool:
    return _get_flag("hide_non_actionable")


def set_hide_non_actionable(value: bool) -> None:
    _set("hide_non_actionable", bool(value) or None)


def get_show_completed() -> bool:
    return _get_flag("show_completed")


def set_show_completed(value: bool) -> None:
    _set("show_completed", bool(value) or None)


def get_log_level() -> str:
    raw = str(_load_config().get("log_level", DEFAULT_LOG_LEVEL) or "").strip().upper()
    if raw not in _LOG_LEVELS:
        logger.warning("invalid log_level %r, using %s", raw, DEFAULT_LOG_LEVEL)
        return DEFAULT_LOG_LEVEL
    return raw


def get_snapshot_path() -> Optional[Path]:
    raw = str(_load_config().get("snapshot", "") or "").strip()
    return Path(raw).expanduser() if raw else None


def set_snapshot_path(value: Optional[str]) -> None:
    value = (value or "").strip()
    _set("snapshot", value or None)
