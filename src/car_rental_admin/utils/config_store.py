"""Shared JSON configuration storage."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from car_rental_admin.logging_config import get_logger

logger = get_logger("config_store")


def load_config_data(config_path: Path) -> dict[str, Any]:
    """Load configuration JSON data from disk.

    A missing or unreadable file yields an empty mapping so that every
    setting falls back to its default.
    """
    if not config_path.exists():
        return {}
    try:
        data = json.loads(config_path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError):
        logger.warning("Ignoring unreadable config file %s", config_path)
        return {}
    if isinstance(data, dict):
        return data
    logger.warning("Ignoring config file %s: top level is not an object", config_path)
    return {}


def save_config_data(config_path: Path, data: dict[str, Any]) -> None:
    """Persist configuration JSON data to disk, replacing the file atomically."""
    config_path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = config_path.with_suffix(config_path.suffix + ".tmp")
    tmp_path.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")
    tmp_path.replace(config_path)
