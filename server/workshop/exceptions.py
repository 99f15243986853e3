"""Domain errors raised by the store, validators and workflow service.

All of them are recoverable at the API boundary; ``workshop.main`` maps each
type to an HTTP status.
"""

from typing import Any, Optional


class WorkshopError(Exception):
    """Base class for workshop domain errors."""

    def to_dict(self) -> dict:
        return {"error": type(self).__name__, "detail": str(self)}


class NotFound(WorkshopError):
    """A referenced entity does not exist."""

    def __init__(self, entity: str, entity_id: Any):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} {entity_id} not found")

    def to_dict(self) -> dict:
        return {**super().to_dict(), "entity": self.entity, "id": self.entity_id}


class Conflict(WorkshopError):
    """A uniqueness constraint was violated."""

    def __init__(self, entity: str, field: str):
        self.entity = entity
        self.field = field
        super().__init__(f"{entity} with this {field} already exists")

    def to_dict(self) -> dict:
        return {**super().to_dict(), "entity": self.entity, "field": self.field}


class ValidationError(WorkshopError):
    """A business rule on an input field was violated."""

    def __init__(self, field: str, reason: str):
        self.field = field
        self.reason = reason
        super().__init__(f"{field}: {reason}")

    def to_dict(self) -> dict:
        return {**super().to_dict(), "field": self.field, "reason": self.reason}


class InvalidTransition(WorkshopError):
    """The service order cannot accept this event in its current status."""

    def __init__(self, current: Any, event: Any, reason: Optional[str] = None):
        self.current = getattr(current, "value", current)
        self.event = getattr(event, "value", event)
        self.reason = reason
        message = f"cannot apply {self.event} to order in status {self.current}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)

    def to_dict(self) -> dict:
        return {
            **super().to_dict(),
            "from": self.current,
            "event": self.event,
            "reason": self.reason,
        }
