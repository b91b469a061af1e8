"""Tests for CommandParser and the French rule tables."""

from __future__ import annotations

import dataclasses
from datetime import date, timedelta

import pytest

from command_parser import CommandParser, classify
from grammar import FRENCH, NOTE_RULES, RuleGroup
from models import CommandKind, ParsedCommand

TODAY = date(2026, 3, 10)


@pytest.fixture
def parser() -> CommandParser:
    return CommandParser(today=lambda: TODAY)


# ---------------------------------------------------------------
# Examples from the voice help card
# ---------------------------------------------------------------

def test_event_without_date_defaults_to_today(parser: CommandParser) -> None:
    command = parser.classify("Ajoute un rendez-vous avec Paul")

    assert command.kind == CommandKind.ADD_EVENT
    assert command.title == "avec Paul"
    assert command.date == TODAY
    assert command.time is None
    assert command.city is None
    assert command.raw_text == "Ajoute un rendez-vous avec Paul"


def test_event_with_relative_date_time_and_city(parser: CommandParser) -> None:
    command = parser.classify("Planifie une réunion demain à 14h à Tokyo")

    assert command.kind == CommandKind.ADD_EVENT
    assert command.time == "14:00"
    assert command.date == TODAY + timedelta(days=1)
    assert command.city == "Tokyo"
    assert command.title == "demain à 14h à Tokyo"


def test_note_extraction(parser: CommandParser) -> None:
    command = parser.classify("Note que je dois appeler le client")

    assert command == ParsedCommand(
        kind=CommandKind.ADD_NOTE,
        raw_text="Note que je dois appeler le client",
        note="je dois appeler le client",
    )


def test_city_search(parser: CommandParser) -> None:
    command = parser.classify("Quelle heure est-il à Berlin")

    assert command.kind == CommandKind.SEARCH_CITY
    assert command.city == "Berlin"
    assert command.title is None
    assert command.date is None


def test_city_search_drops_trailing_question_mark(parser: CommandParser) -> None:
    assert parser.classify("Quelle heure est-il à Tokyo ?").city == "Tokyo"


@pytest.mark.parametrize(
    ("text", "city"),
    [
        ("Cherche Buenos Aires", "Buenos Aires"),
        ("Affiche l'heure de Rome", "Rome"),
        ("Donne-moi l'heure à Ottawa", "Ottawa"),
        ("quelle heure est il a Dakar", "Dakar"),
    ],
)
def test_search_phrasings(parser: CommandParser, text: str, city: str) -> None:
    command = parser.classify(text)
    assert command.kind == CommandKind.SEARCH_CITY
    assert command.city == city


# ---------------------------------------------------------------
# Rule priority
# ---------------------------------------------------------------

def test_event_group_wins_over_note_group(parser: CommandParser) -> None:
    text = "Note que je dois aller chez le médecin"
    # Both groups have a matching trigger for this sentence.
    assert NOTE_RULES[0].pattern.search(text) is not None

    command = parser.classify(text)

    assert command.kind == CommandKind.ADD_EVENT
    assert command.title == "chez le médecin"
    assert parser.match_trigger(text).rule == "obligation"


def test_group_order_is_configuration() -> None:
    by_kind = {group.kind: group for group in FRENCH.groups}
    notes_first = dataclasses.replace(
        FRENCH,
        groups=(
            by_kind[CommandKind.ADD_NOTE],
            by_kind[CommandKind.ADD_EVENT],
            by_kind[CommandKind.SEARCH_CITY],
        ),
    )
    parser = CommandParser(grammar=notes_first, today=lambda: TODAY)

    command = parser.classify("Note que je dois aller chez le médecin")

    assert command.kind == CommandKind.ADD_NOTE
    assert command.note == "je dois aller chez le médecin"


def test_grammar_without_groups_classifies_everything_unknown() -> None:
    parser = CommandParser(grammar=dataclasses.replace(FRENCH, groups=()), today=lambda: TODAY)
    assert parser.classify("Ajoute un rendez-vous demain").kind == CommandKind.UNKNOWN


def test_rule_groups_are_ordered_event_note_search() -> None:
    assert [group.kind for group in FRENCH.groups] == [
        CommandKind.ADD_EVENT,
        CommandKind.ADD_NOTE,
        CommandKind.SEARCH_CITY,
    ]
    assert all(isinstance(group, RuleGroup) for group in FRENCH.groups)


# ---------------------------------------------------------------
# Fallback and determinism
# ---------------------------------------------------------------

@pytest.mark.parametrize("text", ["", "   ", "Bonjour tout le monde", "12345"])
def test_unmatched_text_is_unknown(parser: CommandParser, text: str) -> None:
    command = parser.classify(text)
    assert command == ParsedCommand(kind=CommandKind.UNKNOWN, raw_text=text)


def test_classify_is_deterministic(parser: CommandParser) -> None:
    text = "Planifie une réunion demain à 14h à Tokyo"
    first = parser.classify(text)
    parser.classify("Note que rien")
    parser.classify("")
    assert parser.classify(text) == first


def test_matching_is_case_insensitive(parser: CommandParser) -> None:
    command = parser.classify("NOTE QUE tout va bien")
    assert command.kind == CommandKind.ADD_NOTE
    assert command.note == "tout va bien"


def test_module_level_classify() -> None:
    command = classify("Quelle heure est-il à Berlin")
    assert command.kind == CommandKind.SEARCH_CITY
    assert command.city == "Berlin"


# ---------------------------------------------------------------
# Field assembly
# ---------------------------------------------------------------

def test_empty_residual_is_kept(parser: CommandParser) -> None:
    command = parser.classify("Ajoute un rendez-vous")
    assert command.kind == CommandKind.ADD_EVENT
    assert command.title == ""
    assert command.date == TODAY


def test_note_does_not_carry_date_or_time(parser: CommandParser) -> None:
    command = parser.classify("Note que demain à 10h je vois Marie")

    assert command.kind == CommandKind.ADD_NOTE
    assert command.note == "demain à 10h je vois Marie"
    assert command.date is None
    assert command.time is None
    assert command.city is None


def test_obligation_phrase(parser: CommandParser) -> None:
    command = parser.classify("j'ai un rendez-vous à 15h")
    assert command.kind == CommandKind.ADD_EVENT
    assert command.title == "à 15h"
    assert command.time == "15:00"


def test_reminder_phrase(parser: CommandParser) -> None:
    command = parser.classify("Rappelle-moi d'acheter du pain demain")
    assert command.kind == CommandKind.ADD_EVENT
    assert command.title == "d'acheter du pain demain"
    assert command.date == TODAY + timedelta(days=1)


def test_remember_phrase_is_a_note(parser: CommandParser) -> None:
    command = parser.classify("Souviens-toi que la clé est sous le paillasson")
    assert command.kind == CommandKind.ADD_NOTE
    assert command.note == "la clé est sous le paillasson"


# ---------------------------------------------------------------
# Date extraction
# ---------------------------------------------------------------

@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("rendez-vous demain", TODAY + timedelta(days=1)),
        ("rendez-vous le lendemain", TODAY + timedelta(days=1)),
        ("rendez-vous après-demain", TODAY + timedelta(days=2)),
        ("rendez-vous après demain", TODAY + timedelta(days=2)),
        ("rendez-vous aujourd'hui", TODAY),
        ("dîner ce soir", TODAY),
        ("rendez-vous le 14 juillet", date(2026, 7, 14)),
        ("rendez-vous le 1er mai", date(2026, 5, 1)),
        ("rendez-vous le 3 Août", date(2026, 8, 3)),
        ("rendez-vous le 25/12", date(2026, 12, 25)),
    ],
)
def test_extract_date(parser: CommandParser, text: str, expected: date) -> None:
    assert parser.extract_date(text) == expected


def test_relative_keyword_beats_explicit_date(parser: CommandParser) -> None:
    assert parser.extract_date("demain, pas le 14 juillet") == TODAY + timedelta(days=1)


def test_impossible_date_falls_through(parser: CommandParser) -> None:
    assert parser.extract_date("le 31 février") is None
    command = parser.classify("Ajoute un rendez-vous le 31 février")
    assert command.date == TODAY


def test_explicit_dates_on_events(parser: CommandParser) -> None:
    command = parser.classify("Programme une réunion le 25/12 à 10h")
    assert command.date == date(2026, 12, 25)
    assert command.time == "10:00"
    assert command.title == "25/12 à 10h"


# ---------------------------------------------------------------
# Time and city extraction
# ---------------------------------------------------------------

@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("à 14h", "14:00"),
        ("à 9h30", "09:30"),
        ("à 8:05", "08:05"),
        ("à 14 h", "14:00"),
        ("à 25h puis 7h", "07:00"),
        ("sans heure", None),
    ],
)
def test_extract_time(parser: CommandParser, text: str, expected: str | None) -> None:
    assert parser.extract_time(text) == expected


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("rendez-vous à Tokyo", "Tokyo"),
        ("rendez-vous pour demain à Lisbonne", "Lisbonne"),
        ("réunion à 14h en Allemagne", "Allemagne"),
        ("rendez-vous avec Paul", None),
    ],
)
def test_extract_city(parser: CommandParser, text: str, expected: str | None) -> None:
    assert parser.extract_city(text) == expected
