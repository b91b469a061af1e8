"""Simple JSON-based config store."""

from __future__ import annotations

import json
from pathlib import Path

DEFAULT_HOTKEY = "Key.f9"
DEFAULT_LOCALE = "fr-FR"
DEFAULT_RESET_DELAY_S = 3.0
DEFAULT_CITY = "Paris"


class JsonConfigStore:
    def __init__(self, path: Path | None = None) -> None:
        self._path = path or Path.home() / ".config" / "worldclock_voice" / "config.json"
        self._path.parent.mkdir(parents=True, exist_ok=True)

    def get_api_key(self) -> str:
        data = self._read_all()
        return str(data.get("api_key", ""))

    def set_api_key(self, key: str) -> None:
        self._update("api_key", key)

    def get_hotkey(self) -> str:
        data = self._read_all()
        return str(data.get("hotkey", DEFAULT_HOTKEY))

    def set_hotkey(self, hotkey: str) -> None:
        self._update("hotkey", hotkey)

    def get_locale(self) -> str:
        data = self._read_all()
        return str(data.get("locale", DEFAULT_LOCALE))

    def set_locale(self, locale: str) -> None:
        self._update("locale", locale)

    def get_reset_delay_s(self) -> float:
        data = self._read_all()
        try:
            value = float(data.get("reset_delay_s", DEFAULT_RESET_DELAY_S))
        except (TypeError, ValueError):
            return DEFAULT_RESET_DELAY_S
        return value if value >= 0 else DEFAULT_RESET_DELAY_S

    def set_reset_delay_s(self, delay_s: float) -> None:
        self._update("reset_delay_s", float(delay_s))

    def get_default_city(self) -> str:
        data = self._read_all()
        return str(data.get("default_city", DEFAULT_CITY)) or DEFAULT_CITY

    def set_default_city(self, city: str) -> None:
        self._update("default_city", city)

    def _update(self, key: str, value: object) -> None:
        data = self._read_all()
        data[key] = value
        self._write_all(data)

    def _read_all(self) -> dict:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError):
            return {}
        return data if isinstance(data, dict) else {}

    def _write_all(self, data: dict) -> None:
        self._path.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")
