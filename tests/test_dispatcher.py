from __future__ import annotations

from datetime import date

from dispatcher import CommandDispatcher, InMemoryCityDirectory
from models import CityRecord, CommandKind, ParsedCommand

TODAY = date(2026, 3, 10)

CAPITALS = [
    CityRecord("Paris", "France", "Europe/Paris"),
    CityRecord("Tokyo", "Japon", "Asia/Tokyo"),
    CityRecord("Berlin", "Allemagne", "Europe/Berlin"),
]


class FakeSinks:
    def __init__(self) -> None:
        self.events: list[dict] = []
        self.notes: list[tuple[str, str]] = []
        self.searches: list[str] = []

    def create_event(self, title, description, date, time, timezone, city, color) -> None:  # noqa: ANN001
        self.events.append(
            {
                "title": title,
                "description": description,
                "date": date,
                "time": time,
                "timezone": timezone,
                "city": city,
                "color": color,
            }
        )

    def create_note(self, content: str, color: str) -> None:
        self.notes.append((content, color))

    def search_city(self, query: str) -> None:
        self.searches.append(query)


def _dispatcher(sinks: FakeSinks) -> CommandDispatcher:
    return CommandDispatcher(sinks, InMemoryCityDirectory(CAPITALS), today=lambda: TODAY)


def test_event_resolves_city_through_directory() -> None:
    sinks = FakeSinks()
    command = ParsedCommand(
        kind=CommandKind.ADD_EVENT,
        raw_text="Planifie une réunion demain à 14h à tokyo",
        title="demain à 14h à tokyo",
        date=date(2026, 3, 11),
        time="14:00",
        city="tokyo",
    )

    message = _dispatcher(sinks).dispatch(command)

    assert message == "Événement ajouté: demain à 14h à tokyo"
    assert sinks.events == [
        {
            "title": "demain à 14h à tokyo",
            "description": "",
            "date": date(2026, 3, 11),
            "time": "14:00",
            "timezone": "Asia/Tokyo",
            "city": "Tokyo",
            "color": "bg-blue-500",
        }
    ]


def test_event_matches_country_name() -> None:
    sinks = FakeSinks()
    command = ParsedCommand(kind=CommandKind.ADD_EVENT, raw_text="x", title="x", city="Allemagne")

    _dispatcher(sinks).dispatch(command)

    assert sinks.events[0]["city"] == "Berlin"
    assert sinks.events[0]["timezone"] == "Europe/Berlin"
    assert sinks.events[0]["date"] == TODAY


def test_event_defaults_to_paris() -> None:
    sinks = FakeSinks()
    command = ParsedCommand(kind=CommandKind.ADD_EVENT, raw_text="x", title="dentiste", date=TODAY)

    _dispatcher(sinks).dispatch(command)

    assert sinks.events[0]["city"] == "Paris"
    assert sinks.events[0]["timezone"] == "Europe/Paris"


def test_unknown_city_keeps_spoken_name_and_default_timezone() -> None:
    sinks = FakeSinks()
    command = ParsedCommand(kind=CommandKind.ADD_EVENT, raw_text="x", title="x", city="Tokio")

    _dispatcher(sinks).dispatch(command)

    assert sinks.events[0]["city"] == "Tokio"
    assert sinks.events[0]["timezone"] == "Europe/Paris"


def test_event_without_title_is_dropped() -> None:
    sinks = FakeSinks()
    command = ParsedCommand(kind=CommandKind.ADD_EVENT, raw_text="Ajoute un rendez-vous", title="")

    assert _dispatcher(sinks).dispatch(command) is None
    assert sinks.events == []


def test_note_message_is_truncated() -> None:
    sinks = FakeSinks()
    long_note = "a" * 60

    message = _dispatcher(sinks).dispatch(
        ParsedCommand(kind=CommandKind.ADD_NOTE, raw_text="x", note=long_note)
    )

    assert sinks.notes == [(long_note, "bg-yellow-100")]
    assert message == f'Note ajoutée: "{"a" * 50}..."'


def test_short_note_message() -> None:
    sinks = FakeSinks()
    message = _dispatcher(sinks).dispatch(
        ParsedCommand(kind=CommandKind.ADD_NOTE, raw_text="x", note="appeler le client")
    )
    assert message == 'Note ajoutée: "appeler le client"'


def test_empty_note_is_dropped() -> None:
    sinks = FakeSinks()
    assert _dispatcher(sinks).dispatch(ParsedCommand(kind=CommandKind.ADD_NOTE, raw_text="x", note=" ")) is None
    assert sinks.notes == []


def test_search_city() -> None:
    sinks = FakeSinks()
    message = _dispatcher(sinks).dispatch(
        ParsedCommand(kind=CommandKind.SEARCH_CITY, raw_text="Cherche Japon", city="Japon")
    )
    assert sinks.searches == ["Japon"]
    assert message == "Recherche de: Japon"


def test_empty_search_is_dropped() -> None:
    sinks = FakeSinks()
    assert _dispatcher(sinks).dispatch(ParsedCommand(kind=CommandKind.SEARCH_CITY, raw_text="x", city="")) is None
    assert sinks.searches == []


def test_unknown_command_only_reports() -> None:
    sinks = FakeSinks()
    message = _dispatcher(sinks).dispatch(ParsedCommand(kind=CommandKind.UNKNOWN, raw_text="Bonjour"))

    assert message == 'Commande non reconnue: "Bonjour"'
    assert sinks.events == [] and sinks.notes == [] and sinks.searches == []


def test_directory_is_strict() -> None:
    directory = InMemoryCityDirectory(CAPITALS)
    assert directory.resolve(" PARIS ") == CAPITALS[0]
    assert directory.resolve("Pari") is None
    assert directory.resolve("") is None
