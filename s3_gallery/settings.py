from __future__ import annotations
"""Application settings persistence helpers."""

from dataclasses import dataclass
import json
import logging
from pathlib import Path


@dataclass
class AppSettings:
    """Simple container for persistent app settings."""

    page_size: int = 20
    deduplicate_keys: bool = False
    confirm_delete: bool = True
    remember_last_connection: bool = True
    last_connection: str = ""


def resolve_log_level(value: str | None, default: int = logging.WARNING) -> int:
    """Map a level name such as ``"debug"`` to its numeric value, or ``default``."""
    level = getattr(logging, (value or "").strip().upper(), None)
    if isinstance(level, bool) or not isinstance(level, int):
        return default
    return level


def _coerce_bool(value: object, default: bool) -> bool:
    return value if isinstance(value, bool) else default


class SettingsStorage:
    """JSON-backed persistence for :class:`AppSettings`."""

    def __init__(self, storage_path: str | Path | None = None):
        if storage_path is None:
            storage_path = Path.home() / ".s3_gallery_settings.json"
        self._path = Path(storage_path)

    def load(self) -> AppSettings:
        if not self._path.exists():
            return AppSettings()
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError):
            return AppSettings()
        if not isinstance(data, dict):
            return AppSettings()
        try:
            page_size = int(data.get("page_size", AppSettings.page_size))
        except (TypeError, ValueError):
            page_size = AppSettings.page_size
        if page_size <= 0:
            page_size = AppSettings.page_size
        last_connection = data.get("last_connection")
        return AppSettings(
            page_size=page_size,
            deduplicate_keys=_coerce_bool(data.get("deduplicate_keys"), AppSettings.deduplicate_keys),
            confirm_delete=_coerce_bool(data.get("confirm_delete"), AppSettings.confirm_delete),
            remember_last_connection=_coerce_bool(
                data.get("remember_last_connection"), AppSettings.remember_last_connection
            ),
            last_connection=last_connection if isinstance(last_connection, str) else "",
        )

    def save(self, settings: AppSettings) -> None:
        payload = {
            "page_size": max(int(settings.page_size), 1),
            "deduplicate_keys": bool(settings.deduplicate_keys),
            "confirm_delete": bool(settings.confirm_delete),
            "remember_last_connection": bool(settings.remember_last_connection),
            "last_connection": settings.last_connection or "",
        }
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        except OSError:
            # Persist best-effort; ignore filesystem issues.
            return
