"""Domain errors raised by the services and mapped to HTTP responses in main."""

from __future__ import annotations


class SacDeskError(Exception):
    """Base class for failures surfaced to the initiating user."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(SacDeskError):
    """Caller input violates a precondition. Never retried."""


class PersistenceFailure(SacDeskError):
    """The persistence gateway call itself failed."""


class NotFound(SacDeskError):
    """A referenced entity no longer exists."""

    def __init__(self, entity: str, identifier: object | None = None):
        message = f"{entity} not found"
        if identifier is not None:
            message = f"{entity} {identifier} not found"
        super().__init__(message)
        self.entity = entity
        self.identifier = identifier


class Forbidden(SacDeskError):
    """The acting user may not touch this record."""
