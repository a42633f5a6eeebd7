"""TOML loader for event bootstrap configuration.

Loads and validates an events TOML file (see ``events.example.toml``) so that
events and their price breakpoints can be created programmatically::

    [[events]]
    id = "congresso-2026"
    name = "Congresso 2026"
    max_participants = 300

    [[events.price_breakpoints]]
    min_quantity = 1
    price_in_cents = 50000
"""

import re
import tomllib
from pathlib import Path
from typing import Any

from django_checkout.registration.services.pricing import (
    Breakpoint,
    PricingConfigurationError,
    validate_breakpoints,
)

_REQUIRED_EVENT_FIELDS: set[str] = {"id", "price_breakpoints"}
_REQUIRED_BREAKPOINT_FIELDS: set[str] = {"min_quantity", "price_in_cents"}
_EVENT_STATUSES: frozenset[str] = frozenset({"open", "closed", "canceled"})
_EVENT_ID_RE = re.compile(r"^[A-Za-z0-9-]+$")


def _validate_mapping(mapping: object, required: set[str], label: str) -> None:
    """Validate that *mapping* is a dict containing all *required* keys.

    Raises:
        TypeError: If *mapping* is not a dict.
        ValueError: If *mapping* is missing required keys.
    """
    if not isinstance(mapping, dict):
        msg = f"{label} must be a mapping, got {type(mapping).__name__}"
        raise TypeError(msg)
    missing = required - mapping.keys()
    if missing:
        msg = f"{label} is missing required fields: {', '.join(sorted(missing))}"
        raise ValueError(msg)


def _validate_non_negative_int(value: object, label: str) -> None:
    if not isinstance(value, int) or isinstance(value, bool) or value < 0:
        msg = f"{label} must be a non-negative integer"
        raise ValueError(msg)


def _validate_event(event: dict[str, Any], label: str) -> None:
    _validate_mapping(event, _REQUIRED_EVENT_FIELDS, label)

    event_id = event["id"]
    if not isinstance(event_id, str) or not _EVENT_ID_RE.match(event_id):
        msg = f"{label}.id must contain only letters, digits and hyphens"
        raise ValueError(msg)

    status = event.setdefault("status", "open")
    if status not in _EVENT_STATUSES:
        msg = f"{label}.status must be one of: {', '.join(sorted(_EVENT_STATUSES))}"
        raise ValueError(msg)

    _validate_non_negative_int(event.setdefault("max_participants", 0), f"{label}.max_participants")
    event.setdefault("name", "")

    raw = event["price_breakpoints"]
    if not isinstance(raw, list):
        msg = f"{label}.price_breakpoints must be a list"
        raise ValueError(msg)
    breakpoints = []
    for idx, item in enumerate(raw):
        bp_label = f"{label}.price_breakpoints[{idx}]"
        _validate_mapping(item, _REQUIRED_BREAKPOINT_FIELDS, bp_label)
        _validate_non_negative_int(item["min_quantity"], f"{bp_label}.min_quantity")
        _validate_non_negative_int(item["price_in_cents"], f"{bp_label}.price_in_cents")
        breakpoints.append(Breakpoint(item["min_quantity"], item["price_in_cents"]))
    try:
        validate_breakpoints(breakpoints)
    except PricingConfigurationError as exc:
        msg = f"{label}.price_breakpoints: {exc}"
        raise ValueError(msg) from exc
    event["price_breakpoints"] = breakpoints


def load_events_config(path: str | Path) -> list[dict[str, Any]]:
    """Load and validate an events TOML configuration file.

    Args:
        path: Filesystem path to the TOML file.

    Returns:
        The list of event mappings, each with ``status`` and
        ``max_participants`` defaults filled in and ``price_breakpoints``
        converted to :class:`Breakpoint` tuples.

    Raises:
        FileNotFoundError: If *path* does not exist.
        TypeError: If an event or breakpoint is not a table.
        ValueError: If required keys are missing, identifiers repeat,
            breakpoints break the pricing invariant, or the file is not
            valid TOML.
    """
    path = Path(path)
    if not path.exists():
        msg = f"Events config file not found: {path}"
        raise FileNotFoundError(msg)

    with path.open("rb") as fh:
        try:
            data: dict[str, Any] = tomllib.load(fh)
        except tomllib.TOMLDecodeError as exc:
            msg = f"Invalid TOML in {path}: {exc}"
            raise ValueError(msg) from exc

    events = data.get("events")
    if not isinstance(events, list) or not events:
        msg = "Missing required [[events]] tables in config file"
        raise ValueError(msg)

    seen: set[str] = set()
    for idx, event in enumerate(events):
        label = f"events[{idx}]"
        _validate_event(event, label)
        if event["id"] in seen:
            msg = f"events has duplicate id: {event['id']}"
            raise ValueError(msg)
        seen.add(event["id"])
    return events
