"""Domain exceptions.

Errors raised by list-entry services when a request cannot be honoured.
The API layer maps each family onto a transport status; adapter failures
(index client, database) are not wrapped and propagate as raised.
"""

from typing import Any


class DomainError(Exception):
    """Base class for all domain exceptions.

    All domain errors should inherit from this class to allow
    catching domain-specific errors at the API layer.
    """

    error_code = "DOMAIN_ERROR"

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """Initialize domain error.

        Args:
            message: Human-readable error message.
            details: Optional dictionary with additional error context.
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}


# ============================================================================
# Authorization Errors
# ============================================================================


class AuthorizationDeniedError(DomainError):
    """Raised when the authorization gate rejects an operation."""

    error_code = "AUTHORIZATION_DENIED"

    def __init__(self, permission: str, subject: str) -> None:
        """Initialize authorization denied error.

        Args:
            permission: Permission that was checked (read, update, delete).
            subject: Short description of what was being authorized.
        """
        super().__init__(
            f"Permission '{permission}' denied for {subject}",
            details={"permission": permission, "subject": subject},
        )


# ============================================================================
# Validation Errors
# ============================================================================


class ValidationFailedError(DomainError):
    """Raised when a request is malformed or targets something invalid.

    Validation happens before any entity is loaded or mutated.
    """

    error_code = "VALIDATION_FAILED"

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message, details={"field": field} if field else None)
        self.field = field


class InvalidMoveTargetError(ValidationFailedError):
    """Raised when entries are moved into a virtual catalog."""

    error_code = "INVALID_MOVE_TARGET"

    def __init__(self, catalog_id: str) -> None:
        super().__init__(
            f"Unable to move to a virtual catalog: {catalog_id}",
            field="catalog_id",
        )
        self.catalog_id = catalog_id


# ============================================================================
# Lookup Errors
# ============================================================================


class EntityNotFoundError(DomainError):
    """Raised when named entries cannot be resolved within their kind."""

    error_code = "ENTITY_NOT_FOUND"

    def __init__(self, kind: str, ids: list[str]) -> None:
        """Initialize entity not found error.

        Args:
            kind: Entry kind that was searched (category, product).
            ids: Identifiers that did not resolve.
        """
        super().__init__(
            f"{kind.capitalize()} not found: {', '.join(ids)}",
            details={"kind": kind, "ids": ids},
        )
        self.kind = kind
        self.ids = ids


# ============================================================================
# State Machine Errors
# ============================================================================


class InvalidStateTransitionError(DomainError):
    """Raised when an invalid state transition is attempted.

    This error indicates that the requested operation cannot be performed
    in the current state of the object.
    """

    error_code = "INVALID_STATE_TRANSITION"

    def __init__(
        self,
        entity_type: str,
        entity_id: str,
        current_state: str,
        target_state: str,
        allowed_transitions: list[str] | None = None,
    ) -> None:
        """Initialize invalid state transition error.

        Args:
            entity_type: Type of object (e.g., "MoveBatch").
            entity_id: ID of the object.
            current_state: Current state.
            target_state: Attempted target state.
            allowed_transitions: List of allowed target states from current state.
        """
        allowed = allowed_transitions or []
        message = (
            f"Cannot transition {entity_type}({entity_id}) "
            f"from '{current_state}' to '{target_state}'. "
            f"Allowed transitions: {allowed}"
        )
        super().__init__(
            message,
            details={
                "entity_type": entity_type,
                "entity_id": entity_id,
                "current_state": current_state,
                "target_state": target_state,
                "allowed_transitions": allowed,
            },
        )
