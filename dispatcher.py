"""Routes parsed voice commands to the dashboard sinks."""

from __future__ import annotations

import logging
from datetime import date
from typing import Callable, Iterable, Optional

from interfaces import CityDirectory, CommandSinks
from models import CityRecord, CommandKind, ParsedCommand

logger = logging.getLogger(__name__)

DEFAULT_CITY = "Paris"
DEFAULT_TIMEZONE = "Europe/Paris"
EVENT_COLOR = "bg-blue-500"
NOTE_COLOR = "bg-yellow-100"
NOTE_PREVIEW_CHARS = 50


class InMemoryCityDirectory:
    """Strict lookup: a name matches a capital or a country, case-insensitively."""

    def __init__(self, records: Iterable[CityRecord] = ()) -> None:
        self._records = list(records)

    def resolve(self, name: str) -> Optional[CityRecord]:
        key = name.strip().lower()
        if not key:
            return None
        for record in self._records:
            if record.capital.lower() == key or record.country.lower() == key:
                return record
        return None


class CommandDispatcher:
    def __init__(
        self,
        sinks: CommandSinks,
        directory: Optional[CityDirectory] = None,
        default_city: str = DEFAULT_CITY,
        default_timezone: str = DEFAULT_TIMEZONE,
        today: Optional[Callable[[], date]] = None,
    ) -> None:
        self._sinks = sinks
        self._directory = directory or InMemoryCityDirectory()
        self._default_city = default_city
        self._default_timezone = default_timezone
        self._today = today or date.today

    def dispatch(self, command: ParsedCommand) -> Optional[str]:
        """Run ``command`` against its sink and describe what was done.

        Returns ``None`` when the command was dropped because its required
        field is empty.
        """
        if command.kind == CommandKind.ADD_EVENT:
            return self._add_event(command)
        if command.kind == CommandKind.ADD_NOTE:
            return self._add_note(command)
        if command.kind == CommandKind.SEARCH_CITY:
            return self._search_city(command)
        logger.info("Unrecognized voice command: %r", command.raw_text)
        return f'Commande non reconnue: "{command.raw_text}"'

    def _add_event(self, command: ParsedCommand) -> Optional[str]:
        title = (command.title or "").strip()
        if not title:
            logger.info("Dropping event without title: %r", command.raw_text)
            return None

        city = command.city or self._default_city
        timezone = self._default_timezone
        record = self._directory.resolve(city)
        if record is not None:
            city = record.capital
            timezone = record.timezone

        self._sinks.create_event(
            title=title,
            description=command.description or "",
            date=command.date or self._today(),
            time=command.time,
            timezone=timezone,
            city=city,
            color=EVENT_COLOR,
        )
        logger.info("Event added: %s (%s, %s)", title, city, timezone)
        return f"Événement ajouté: {title}"

    def _add_note(self, command: ParsedCommand) -> Optional[str]:
        note = (command.note or "").strip()
        if not note:
            logger.info("Dropping empty note: %r", command.raw_text)
            return None
        self._sinks.create_note(content=note, color=NOTE_COLOR)
        logger.info("Note added (%d chars)", len(note))
        preview = note[:NOTE_PREVIEW_CHARS]
        suffix = "..." if len(note) > NOTE_PREVIEW_CHARS else ""
        return f'Note ajoutée: "{preview}{suffix}"'

    def _search_city(self, command: ParsedCommand) -> Optional[str]:
        query = (command.city or "").strip()
        if not query:
            logger.info("Dropping city search without a name: %r", command.raw_text)
            return None
        self._sinks.search_city(query)
        logger.info("City search: %s", query)
        return f"Recherche de: {query}"
