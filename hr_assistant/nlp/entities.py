"""
Entity extraction from raw utterances.

Each entity type is scanned independently; relative dates are resolved
against the current day.
"""

import logging
from datetime import date, datetime, timedelta
from typing import Any, Optional, Sequence

from .patterns import ENTITY_RULES, WEEKDAY_INDEX

logger = logging.getLogger(__name__)

NUMERIC_DATE_FORMATS = ("%m/%d/%Y", "%m-%d-%Y", "%m/%d/%y", "%m-%d-%y")


def resolve_relative_date(text: str, today: Optional[date] = None) -> Optional[date]:
    """
    Resolve a date mention to an absolute date.

    Weekday names always move forward: asking for "monday" on a Monday
    gives the Monday one week later.

    Args:
        text: Raw date mention ("tomorrow", "friday", "12/24/2025")
        today: Reference day, defaults to the current local date

    Returns:
        The resolved date, or None if the text cannot be parsed
    """
    today = today or date.today()
    lower = text.lower().strip()

    if lower == "today":
        return today
    if lower == "tomorrow":
        return today + timedelta(days=1)
    if lower == "yesterday":
        return today - timedelta(days=1)

    if lower in WEEKDAY_INDEX:
        days_ahead = (WEEKDAY_INDEX[lower] - today.weekday()) % 7
        return today + timedelta(days=days_ahead or 7)

    for fmt in NUMERIC_DATE_FORMATS:
        try:
            return datetime.strptime(lower, fmt).date()
        except ValueError:
            continue

    return None


class EntityExtractor:
    """Pulls typed spans out of an utterance using the entity rule table."""

    def __init__(self, rules: Sequence = ENTITY_RULES):
        self.rules = tuple(rules)

    def extract(self, message: str, today: Optional[date] = None) -> dict[str, Any]:
        """
        Extract entities from the original-case utterance.

        A single hit is returned as a string, several hits as a list.
        When a date is present, ``parsed_date`` holds the resolution of
        the first date mention (None if unparseable).

        Args:
            message: Raw user utterance
            today: Reference day for relative dates

        Returns:
            Mapping of entity type to value(s)
        """
        entities: dict[str, Any] = {}

        for entity_type, pattern in self.rules:
            matches = [m.group(0) for m in pattern.finditer(message)]
            if matches:
                entities[entity_type] = matches[0] if len(matches) == 1 else matches

        if "date" in entities:
            first = entities["date"]
            if isinstance(first, list):
                first = first[0]
            entities["parsed_date"] = resolve_relative_date(first, today)

        if entities:
            logger.debug(f"Extracted entities: {sorted(entities)}")
        return entities
