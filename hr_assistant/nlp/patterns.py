"""
Static rule tables for intent and entity recognition.

Tables are immutable tuples compiled once at import time. Order matters:
intents are scanned top to bottom and an earlier intent keeps a tie.
"""

import re
from typing import NamedTuple

_FLAGS = re.IGNORECASE


class IntentRule(NamedTuple):
    """Ordered pattern rules for one intent."""

    intent: str
    patterns: tuple[re.Pattern, ...]


def _rule(intent: str, *patterns: str) -> IntentRule:
    return IntentRule(intent, tuple(re.compile(p, _FLAGS) for p in patterns))


INTENT_RULES: tuple[IntentRule, ...] = (
    _rule(
        "leave.check_balance",
        r"how many (leave|days|holidays)",
        r"leave balance",
        r"remaining leave",
        r"available leave",
        r"check.*(leave|pto|vacation)",
    ),
    _rule(
        "leave.apply",
        r"apply.*(leave|pto|vacation|time off)",
        r"request.*(leave|pto|vacation|time off)",
        r"take.*(leave|day off|time off)",
        r"book.*(leave|holiday)",
        r"want.*(leave|day off)",
    ),
    _rule(
        "leave.status",
        r"leave.*status",
        r"status.*leave",
        r"leave.*approved",
        r"pending.*leave",
    ),
    _rule(
        "attendance.check_in",
        r"check.?in",
        r"clock.?in",
        r"start.*(work|day|shift)",
        r"punch.?in",
    ),
    _rule(
        "attendance.check_out",
        r"check.?out",
        r"clock.?out",
        r"end.*(work|day|shift)",
        r"punch.?out",
    ),
    _rule(
        "attendance.status",
        r"attendance.*status",
        r"my attendance",
        r"attendance.*today",
        r"working hours",
    ),
    _rule(
        "payroll.salary",
        r"salary",
        r"pay.?slip",
        r"pay.?check",
        r"compensation",
        r"earnings",
    ),
    _rule(
        "payroll.tax",
        r"tax.*deduction",
        r"income.*tax",
        r"tax.*details",
        r"tax.*statement",
    ),
    _rule(
        "employee.profile",
        r"my profile",
        r"personal.*details",
        r"update.*information",
        r"employee.*details",
    ),
    _rule(
        "employee.directory",
        r"find.*employee",
        r"employee.*directory",
        r"contact.*colleague",
        r"who is",
    ),
    _rule(
        "policy.general",
        r"company.*policy",
        r"hr.*policy",
        r"what.*policy",
        r"guidelines",
    ),
    _rule(
        "benefits.info",
        r"benefits",
        r"insurance",
        r"health.*plan",
        r"perks",
    ),
    _rule(
        "help.general",
        r"help",
        r"what can you do",
        r"how.*work",
        r"assist",
    ),
    _rule(
        "greeting",
        r"^(hi|hello|hey|good morning|good afternoon|good evening)",
        r"^(howdy|greetings)",
    ),
    _rule(
        "farewell",
        r"^(bye|goodbye|see you|thank you|thanks)",
        r"^(that'?s all|done)",
    ),
)


_WEEKDAYS = "monday|tuesday|wednesday|thursday|friday|saturday|sunday"
_MONTHS = (
    "january|february|march|april|may|june|july|august|september|october|"
    "november|december|jan|feb|mar|apr|jun|jul|aug|sep|oct|nov|dec"
)

# Entity type -> pattern, scanned independently in this order.
ENTITY_RULES: tuple[tuple[str, re.Pattern], ...] = (
    (
        "date",
        re.compile(
            r"\b(\d{1,2}[-/]\d{1,2}[-/]\d{2,4}|today|tomorrow|yesterday|"
            rf"next week|this week|{_WEEKDAYS})\b",
            _FLAGS,
        ),
    ),
    ("number", re.compile(r"\b\d+\b")),
    (
        "leave_type",
        re.compile(
            r"\b(sick|casual|annual|maternity|paternity|unpaid|comp.?off|"
            r"bereavement|medical)\b",
            _FLAGS,
        ),
    ),
    ("duration", re.compile(r"\b(\d+)\s*(days?|weeks?|hours?)\b", _FLAGS)),
    ("month", re.compile(rf"\b({_MONTHS})\b", _FLAGS)),
)

WEEKDAY_INDEX: dict[str, int] = {
    name: index for index, name in enumerate(_WEEKDAYS.split("|"))
}

MONTH_INDEX: dict[str, int] = {}
for _number, _name in enumerate(_MONTHS.split("|")[:12], start=1):
    MONTH_INDEX[_name] = _number
    MONTH_INDEX[_name[:3]] = _number

POSITIVE_WORDS = frozenset({
    "thanks", "great", "good", "excellent", "happy", "pleased",
    "appreciate", "helpful", "wonderful", "amazing",
})

NEGATIVE_WORDS = frozenset({
    "bad", "poor", "terrible", "awful", "unhappy", "frustrated", "angry",
    "disappointed", "problem", "issue", "urgent", "asap",
})

CONFIRMATION_WORDS = frozenset({"yes", "confirm", "okay", "sure", "submit"})

# "t" covers contractions such as "don't" and "can't" once tokenized.
NEGATION_WORDS = frozenset({"not", "no", "never", "dont", "don", "cannot", "t"})
