"""Voice command parser.

Turns a finalized transcript into a ``ParsedCommand`` by running the ordered
rule tables from ``grammar`` against the text. Classification never fails:
text that matches no trigger comes back as ``CommandKind.UNKNOWN``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Callable, Optional

from grammar import FRENCH, Grammar
from models import CommandKind, ParsedCommand

logger = logging.getLogger(__name__)

_CITY_TRAILING = " \t\n?!.,;:"


@dataclass(frozen=True)
class TriggerMatch:
    kind: CommandKind
    rule: str
    residual: str


class CommandParser:
    """Stateless classifier; safe to share between sessions and threads."""

    def __init__(
        self,
        grammar: Grammar = FRENCH,
        today: Optional[Callable[[], date]] = None,
    ) -> None:
        self._grammar = grammar
        self._today = today or date.today

    @property
    def locale(self) -> str:
        return self._grammar.locale

    def classify(self, text: str) -> ParsedCommand:
        match = self.match_trigger(text)
        if match is None:
            logger.debug("No trigger matched: %r", text)
            return ParsedCommand(kind=CommandKind.UNKNOWN, raw_text=text)

        logger.debug("Trigger %s matched (%s): %r", match.rule, match.kind.value, text)
        if match.kind == CommandKind.ADD_EVENT:
            today = self._today()
            return ParsedCommand(
                kind=match.kind,
                raw_text=text,
                title=match.residual.strip(),
                date=self.extract_date(text, today) or today,
                time=self.extract_time(text),
                city=self.extract_city(text),
            )
        if match.kind == CommandKind.ADD_NOTE:
            return ParsedCommand(kind=match.kind, raw_text=text, note=match.residual.strip())
        if match.kind == CommandKind.SEARCH_CITY:
            return ParsedCommand(
                kind=match.kind,
                raw_text=text,
                city=match.residual.strip(_CITY_TRAILING),
            )
        return ParsedCommand(kind=CommandKind.UNKNOWN, raw_text=text)

    def match_trigger(self, text: str) -> Optional[TriggerMatch]:
        """Return the first trigger of the first group that matches ``text``."""
        for group in self._grammar.groups:
            for rule in group.rules:
                m = rule.pattern.search(text)
                if m is None:
                    continue
                residual = m.group(m.re.groups) if m.re.groups else ""
                return TriggerMatch(kind=group.kind, rule=rule.name, residual=residual or "")
        return None

    def extract_date(self, text: str, today: Optional[date] = None) -> Optional[date]:
        today = today or self._today()
        for rule in self._grammar.date_rules:
            m = rule.pattern.search(text)
            if m is None:
                continue
            resolved = rule.resolve(m, today)
            if resolved is not None:
                return resolved
        return None

    def extract_time(self, text: str) -> Optional[str]:
        for m in self._grammar.time_pattern.finditer(text):
            hour = int(m.group(1))
            minute = int(m.group(2) or 0)
            if hour > 23 or minute > 59:
                continue
            return f"{hour:02d}:{minute:02d}"
        return None

    def extract_city(self, text: str) -> Optional[str]:
        for m in self._grammar.city_pattern.finditer(text):
            token = m.group(1)
            if token.lower() in self._grammar.non_city_words:
                continue
            return token
        return None


_default_parser = CommandParser()


def classify(text: str) -> ParsedCommand:
    return _default_parser.classify(text)
