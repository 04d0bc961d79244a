"""Domain errors that routes translate into HTTP responses."""


class FieldValidationError(Exception):
    """A user-correctable problem with one submitted field (HTTP 400)."""

    def __init__(self, field: str, message: str):
        super().__init__(message)
        self.field = field
        self.message = message


class EmailTakenError(Exception):
    """Another account already uses this email (HTTP 409)."""
