"""Shared value types for intent recognition."""

from dataclasses import dataclass, field
from typing import Any

UNKNOWN_INTENT = "unknown"


@dataclass(frozen=True)
class DetectedIntent:
    """An intent candidate produced by one recognition source."""

    name: str
    confidence: float
    entities: dict[str, Any] = field(default_factory=dict)
    source: str = "pattern"

    @classmethod
    def unknown(cls) -> "DetectedIntent":
        """The empty candidate every fold starts from."""
        return cls(name=UNKNOWN_INTENT, confidence=0.0, source="none")

    @property
    def domain(self) -> str:
        """Leading segment of a dotted intent name (``leave`` for ``leave.apply``)."""
        return self.name.split(".")[0]
