"""Ordered rule tables for the French voice command grammar.

Rule order is the tie-break: groups are tried in the order of
``Grammar.groups`` and, inside a group, trigger rules in listed order.
The first trigger that matches decides the command kind, so more specific
phrasings must be listed before general ones.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Callable, Optional

from models import CommandKind

_FLAGS = re.IGNORECASE

DateResolver = Callable[["re.Match[str]", date], Optional[date]]


@dataclass(frozen=True)
class TriggerRule:
    """A trigger phrase; the last capture group is the residual clause."""

    name: str
    pattern: re.Pattern


@dataclass(frozen=True)
class RuleGroup:
    kind: CommandKind
    rules: tuple[TriggerRule, ...]


@dataclass(frozen=True)
class DateRule:
    name: str
    pattern: re.Pattern
    resolve: DateResolver


@dataclass(frozen=True)
class Grammar:
    locale: str
    groups: tuple[RuleGroup, ...]
    date_rules: tuple[DateRule, ...]
    time_pattern: re.Pattern
    city_pattern: re.Pattern
    non_city_words: frozenset[str]


def _rule(name: str, pattern: str) -> TriggerRule:
    return TriggerRule(name=name, pattern=re.compile(pattern, _FLAGS))


def _offset(days: int) -> DateResolver:
    def resolve(match: "re.Match[str]", today: date) -> Optional[date]:
        return today + timedelta(days=days)

    return resolve


FRENCH_MONTHS = {
    "janvier": 1,
    "février": 2,
    "fevrier": 2,
    "mars": 3,
    "avril": 4,
    "mai": 5,
    "juin": 6,
    "juillet": 7,
    "août": 8,
    "aout": 8,
    "septembre": 9,
    "octobre": 10,
    "novembre": 11,
    "décembre": 12,
    "decembre": 12,
}


def _calendar_date(year: int, month: int, day: int) -> Optional[date]:
    try:
        return date(year, month, day)
    except ValueError:
        return None


def _day_month_name(match: "re.Match[str]", today: date) -> Optional[date]:
    month = FRENCH_MONTHS.get(match.group(2).lower())
    if month is None:
        return None
    return _calendar_date(today.year, month, int(match.group(1)))


def _day_month_numeric(match: "re.Match[str]", today: date) -> Optional[date]:
    return _calendar_date(today.year, int(match.group(2)), int(match.group(1)))


_EVENT_NOUNS = r"(?:événement|évènement|evenement|rendez\s*-?\s*vous|réunion|reunion|rdv|meeting)"

EVENT_RULES = (
    _rule(
        "create_event",
        r"\b(?:ajoute|ajouter|crée|créer|cree|creer|nouveau|nouvel|nouvelle|planifie|programme)\s+"
        r"(?:un\s+|une\s+)?" + _EVENT_NOUNS + r"(?:\s+(?:pour|le|à)\b)?\s*(.*)",
    ),
    _rule(
        "obligation",
        r"\b(?:je\s+)?(?:dois|ai\s+une?|ai)\s+"
        r"(?:être|etre|aller|rendez\s*-?\s*vous|réunion|reunion|rdv)\s+(.*)",
    ),
    _rule("reminder", r"\b(?:rappelle\s*-?\s*moi|rappel)\s+(?:que\s+|de\s+)?(.*)"),
)

NOTE_RULES = (
    _rule(
        "take_note",
        r"\b(?:prends\s+en\s+note|prends\s+note|note|noter|mémorise|memorise)\s+(?:que\s+)?(.*)",
    ),
    _rule("remember", r"\bsouviens\s*-?\s*(?:toi|moi)\s+(?:que\s+|de\s+)?(.*)"),
)

SEARCH_RULES = (
    _rule(
        "find_city",
        r"\b(?:cherche|trouve|affiche|donne\s*-?\s*moi)\s+"
        r"(?:l['’]heure\s+(?:de|à|a|au|en)\s+)?(.*)",
    ),
    _rule("what_time", r"\bquelle\s+heure\s+est\s*-?\s*il\s+(?:à|a|au|en)\s+(.*)"),
    _rule("time_in", r"\bl['’]heure\s+(?:de|à|a|au|en)\s+(.*)"),
)

DATE_RULES = (
    # "après-demain" contains "demain", so it has to come first.
    DateRule("day_after_tomorrow", re.compile(r"\baprès\s*-?\s*demain\b", _FLAGS), _offset(2)),
    DateRule("tomorrow", re.compile(r"\b(?:demain|le\s+lendemain)\b", _FLAGS), _offset(1)),
    DateRule(
        "today",
        re.compile(
            r"\b(?:aujourd['’]\s*hui|ce\s+soir|ce\s+matin|cette\s+après\s*-?\s*midi)\b", _FLAGS
        ),
        _offset(0),
    ),
    DateRule(
        "day_month_name",
        re.compile(r"\b(\d{1,2})(?:er)?\s+(" + "|".join(FRENCH_MONTHS) + r")\b", _FLAGS),
        _day_month_name,
    ),
    DateRule(
        "day_month_numeric",
        re.compile(r"\ble\s+(\d{1,2})/(\d{1,2})\b", _FLAGS),
        _day_month_numeric,
    ),
)

TIME_PATTERN = re.compile(r"\b(\d{1,2})\s?[h:](\d{2})?", _FLAGS)

CITY_PATTERN = re.compile(r"\b(?:à|a|au|en|pour|dans|de)\s+([^\W\d_][\w-]*)", _FLAGS)

NON_CITY_WORDS = frozenset(
    {
        "le", "la", "les", "l", "un", "une", "des", "du", "ce", "cette", "mon", "ma",
        "moi", "toi", "lui", "nous", "vous", "eux",
        "demain", "après-demain", "aujourd", "midi", "minuit", "heure", "heures",
        "propos", "partir",
    }
)

FRENCH = Grammar(
    locale="fr-FR",
    groups=(
        RuleGroup(CommandKind.ADD_EVENT, EVENT_RULES),
        RuleGroup(CommandKind.ADD_NOTE, NOTE_RULES),
        RuleGroup(CommandKind.SEARCH_CITY, SEARCH_RULES),
    ),
    date_rules=DATE_RULES,
    time_pattern=TIME_PATTERN,
    city_pattern=CITY_PATTERN,
    non_city_words=NON_CITY_WORDS,
)
