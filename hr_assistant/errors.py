"""
Error taxonomy for the HR Assistant.

Only ValidationFailure, NotFound and PersistenceFailure are meant to reach
callers. CollaboratorUnavailable is raised by collaborator adapters and is
always converted into a fallback path inside the pipeline.
"""


class AssistantError(Exception):
    """Base class for all HR Assistant errors."""


class ValidationFailure(AssistantError):
    """Request rejected before entering the pipeline."""


class NotFound(AssistantError):
    """Unknown session or message id."""

    def __init__(self, kind: str, identifier: str):
        self.kind = kind
        self.identifier = identifier
        super().__init__(f"{kind} not found: {identifier}")


class CollaboratorUnavailable(AssistantError):
    """An external collaborator could not be reached or timed out."""

    def __init__(self, collaborator: str, reason: str):
        self.collaborator = collaborator
        self.reason = reason
        super().__init__(f"{collaborator} unavailable: {reason}")


class PersistenceFailure(AssistantError):
    """A conversation state write failed."""
