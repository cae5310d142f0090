"""
Query triage for routing hand-offs to the right HR contact.
"""

import re
from dataclasses import dataclass
from typing import Optional

URGENT_KEYWORDS = ("urgent", "asap", "emergency", "immediately", "critical")

# First matching category wins.
CATEGORY_RULES: tuple[tuple[str, re.Pattern], ...] = tuple(
    (category, re.compile(pattern, re.IGNORECASE))
    for category, pattern in (
        ("leave", r"leave|pto|vacation"),
        ("payroll", r"salary|pay|compensation"),
        ("attendance", r"attendance|check.?in|check.?out"),
        ("policy", r"policy|guideline"),
        ("benefits", r"benefit|insurance"),
        ("sensitive", r"complain|harass|discriminat"),
    )
)


@dataclass(frozen=True)
class Triage:
    category: str
    priority: str
    suggested_assignee: Optional[str] = None


def triage(query: str) -> Triage:
    """
    Categorize a query and decide its priority.

    Sensitive topics and urgent wording are high priority; sensitive
    topics go to an HR manager.
    """
    lower = query.lower()
    is_urgent = any(keyword in lower for keyword in URGENT_KEYWORDS)

    category = "general"
    for name, pattern in CATEGORY_RULES:
        if pattern.search(query):
            category = name
            break

    sensitive = category == "sensitive"
    return Triage(
        category=category,
        priority="high" if is_urgent or sensitive else "normal",
        suggested_assignee="hr_manager" if sensitive else None,
    )
