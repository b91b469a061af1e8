"""Protocol interfaces used by SpeechSession and CommandDispatcher."""

from __future__ import annotations

from datetime import date
from typing import Callable, Optional, Protocol

from models import CaptureEvent, CityRecord

CaptureCallback = Callable[[CaptureEvent], None]


class CaptureStream(Protocol):
    def stop(self) -> None: ...

    def abort(self) -> None: ...


class CaptureCapability(Protocol):
    def supported(self) -> bool: ...

    def open(
        self,
        locale: str,
        interim_results: bool,
        on_event: CaptureCallback,
    ) -> CaptureStream: ...


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    def call_later(self, delay_s: float, callback: Callable[[], None]) -> TimerHandle: ...


class CommandSinks(Protocol):
    def create_event(
        self,
        title: str,
        description: str,
        date: date,
        time: Optional[str],
        timezone: str,
        city: str,
        color: str,
    ) -> None: ...

    def create_note(self, content: str, color: str) -> None: ...

    def search_city(self, query: str) -> None: ...


class CityDirectory(Protocol):
    def resolve(self, name: str) -> Optional[CityRecord]: ...


class ConfigStore(Protocol):
    def get_api_key(self) -> str: ...

    def set_api_key(self, key: str) -> None: ...

    def get_hotkey(self) -> str: ...

    def set_hotkey(self, hotkey: str) -> None: ...

    def get_locale(self) -> str: ...

    def get_reset_delay_s(self) -> float: ...

    def get_default_city(self) -> str: ...
