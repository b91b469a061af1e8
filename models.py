"""Core data models for the voice command interpreter."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Optional


class SessionState(str, Enum):
    IDLE = "IDLE"
    LISTENING = "LISTENING"
    ERROR = "ERROR"


class CommandKind(str, Enum):
    ADD_EVENT = "ADD_EVENT"
    ADD_NOTE = "ADD_NOTE"
    SEARCH_CITY = "SEARCH_CITY"
    UNKNOWN = "UNKNOWN"


class CaptureEventKind(str, Enum):
    STARTED = "started"
    RESULT = "result"
    ERROR = "error"
    ENDED = "ended"


@dataclass
class AudioFrame:
    pcm16_bytes: bytes
    sample_rate: int = 16000
    channels: int = 1
    timestamp_ms: int = 0


@dataclass
class CaptureEvent:
    kind: str
    text: str = ""
    is_final: bool = False
    code: str = ""
    message: str = ""


@dataclass(frozen=True)
class ParsedCommand:
    """Structured command extracted from one finalized transcript."""

    kind: CommandKind
    raw_text: str
    title: Optional[str] = None
    description: Optional[str] = None
    date: Optional[date] = None
    time: Optional[str] = None
    city: Optional[str] = None
    note: Optional[str] = None


@dataclass(frozen=True)
class CityRecord:
    capital: str
    country: str
    timezone: str
