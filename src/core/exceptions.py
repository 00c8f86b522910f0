"""Custom exception classes for the CIRA ticketing service.

This module defines application-specific exceptions following Google Python
Style Guide.
"""

from typing import Dict, Optional


class CiraError(Exception):
    """Base exception for all CIRA errors."""

    pass


class TicketNotFoundError(CiraError):
    """Raised when a requested ticket cannot be found."""

    def __init__(self, ticket_id: str):
        """Initialize the exception.

        Args:
            ticket_id: The ID of the ticket that was not found.
        """
        self.ticket_id = ticket_id
        super().__init__(f"Ticket '{ticket_id}' not found")


class UserNotFoundError(CiraError):
    """Raised when a requested user cannot be found."""

    def __init__(self, user_id: str):
        self.user_id = user_id
        super().__init__(f"User '{user_id}' not found")


class UserAlreadyExistsError(CiraError):
    """Raised when trying to create a user whose email is already taken."""

    pass


class ConfigurationError(CiraError):
    """Raised when there is a configuration error."""

    pass


class ValidationError(CiraError):
    """Raised when data validation fails."""

    pass


class SignupValidationError(ValidationError):
    """Raised when a signup form has one or more invalid fields."""

    def __init__(self, fields: Dict[str, str]):
        """Initialize the exception.

        Args:
            fields: Mapping of field name to a human readable error.
        """
        self.fields = fields
        super().__init__("; ".join(f"{k}: {v}" for k, v in fields.items()))


class TransitionRejected(CiraError):
    """Raised when a ticket workflow action is not allowed."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(reason)


class ResolutionNoteRequired(TransitionRejected):
    """Raised when resolving a ticket without a resolution note."""

    def __init__(self):
        super().__init__("A resolution note is required to resolve a ticket")


class PermissionDeniedError(CiraError):
    """Raised when the acting user may not perform an operation."""

    pass


class UnknownRoleError(CiraError):
    """Raised when a user carries a role no dashboard is defined for."""

    def __init__(self, role: Optional[str]):
        self.role = role
        super().__init__(f"Unrecognized role: {role!r}")


class AuthError(CiraError):
    """Raised when authentication fails."""

    pass


class EmailNotVerifiedError(AuthError):
    """Raised when an unverified account tries to log in."""

    pass


class VerificationError(CiraError):
    """Raised when a verification or reset code is wrong, expired or used up."""

    pass


class DeliveryError(CiraError):
    """Raised when a verification message cannot be delivered."""

    pass
