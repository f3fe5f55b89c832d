class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class NotFoundError(DomainError):
    """Raised when a referenced record does not exist."""


class ChecklistError(DomainError):
    """Raised when an escalation checklist is driven outside its legal transitions."""


class TrackingError(DomainError):
    """Raised by the carrier tracking client when a lookup cannot be completed."""
