"""
Exception hierarchy for the session and order stores.

Validation errors are raised synchronously to the caller. Storage errors
are raised by the storage backends and caught by the managers. Missing
sessions and orders are reported as None, never as exceptions.
"""


class HeyPaytmError(Exception):
    """Base class for all application errors."""


class ValidationError(HeyPaytmError, ValueError):
    """Caller supplied data that the store refuses."""


class InvalidPhoneNumber(ValidationError):
    """Phone number does not contain exactly 10 digits."""


class InvalidTableNumber(ValidationError):
    """Table number outside the dining room."""


class InvalidStatusTransition(ValidationError):
    """Order status change moves backward along the kitchen workflow."""

    def __init__(self, current: str, requested: str):
        self.current = current
        self.requested = requested
        super().__init__(f"Cannot move order from '{current}' back to '{requested}'")


class SessionConflictError(ValidationError):
    """Table already has a session that is not completed."""

    def __init__(self, table_number: int, session_id: str):
        self.table_number = table_number
        self.session_id = session_id
        super().__init__(
            f"Table {table_number} already has an open session ({session_id})"
        )


class SessionStateError(ValidationError):
    """Operation not allowed in the session's current status."""


class StorageError(HeyPaytmError):
    """Reading or writing local persistent storage failed."""
