"""Deterministic document keys for checkouts and self-registrations.

A user holds at most one checkout and one self-registration per event. Both
are keyed by the same composite identifier, always in ``eventId_userId``
order, so repeated writes for the same pair land on the same row.
"""

import secrets

SEPARATOR = "_"


def compose_document_id(event_id: str, user_id: str) -> str:
    """Return the canonical ``eventId_userId`` key.

    Args:
        event_id: The event identifier. Must not contain the separator so the
            key can be split back unambiguously.
        user_id: The owning user's identifier.

    Raises:
        ValueError: If either part is empty or the event id contains the
            separator.
    """
    event_id = str(event_id or "").strip()
    user_id = str(user_id or "").strip()
    if not event_id or not user_id:
        msg = "Both event_id and user_id are required to compose a document id"
        raise ValueError(msg)
    if SEPARATOR in event_id:
        msg = f"event_id must not contain {SEPARATOR!r}: {event_id!r}"
        raise ValueError(msg)
    return f"{event_id}{SEPARATOR}{user_id}"


def split_document_id(document_id: str) -> tuple[str, str]:
    """Split a composite key back into ``(event_id, user_id)``.

    Raises:
        ValueError: If *document_id* is not a composite key.
    """
    event_id, sep, user_id = document_id.partition(SEPARATOR)
    if not sep or not event_id or not user_id:
        msg = f"Not a composite document id: {document_id!r}"
        raise ValueError(msg)
    return event_id, user_id


def generate_document_id() -> str:
    """Return a random key for rows that are not unique per user."""
    return secrets.token_hex(10)
