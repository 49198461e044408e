from typing import Any


class SlaError(Exception):
    """Base class for SLA engine errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class ConfigurationError(SlaError):
    """Template, rule, calendar or contract needed for a calculation is missing.

    Always fatal to the calculation: the triggering ticket operation must be
    blocked instead of falling back to a guessed SLA.
    """


class TicketNotFoundError(SlaError):
    def __init__(self, ticket_id: int):
        self.ticket_id = ticket_id
        super().__init__(f"Ticket {ticket_id} not found", {"ticket_id": ticket_id})


class PersistenceWarning(Warning):
    """Writing the calculation history failed. Never fatal to the calculation."""
