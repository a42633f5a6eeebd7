"""Errors raised by the registration services beyond Django's own."""


class ConflictError(Exception):
    """Raised when a write collides with the current state of a record.

    The API layer maps it to ``409 Conflict``.
    """
