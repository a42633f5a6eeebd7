"""Quantity-breakpoint pricing for event registrations.

An event publishes an ordered list of ``(min_quantity, price_in_cents)``
breakpoints. A purchase of ``N`` slots is charged the unit price of the
greatest breakpoint whose ``min_quantity`` does not exceed ``N``, applied to
the whole quantity (no proration across tiers). All amounts are integer
cents.
"""

from collections.abc import Iterable, Sequence
from typing import TYPE_CHECKING, NamedTuple, Protocol

if TYPE_CHECKING:
    from django_checkout.events.models import Event


class PricingConfigurationError(Exception):
    """Raised when an event's breakpoints cannot produce a price."""


class BreakpointLike(Protocol):
    """Anything exposing the two breakpoint attributes (model rows included)."""

    min_quantity: int
    price_in_cents: int


class Breakpoint(NamedTuple):
    """A quantity threshold at which the per-unit price changes."""

    min_quantity: int
    price_in_cents: int


def validate_breakpoints(breakpoints: Sequence[BreakpointLike]) -> None:
    """Check the ordering invariant of an event's breakpoint list.

    The list must be non-empty, start at ``min_quantity == 1``, have strictly
    increasing ``min_quantity`` values and non-negative prices.

    Raises:
        PricingConfigurationError: If any rule is violated.
    """
    if not breakpoints:
        msg = "Event has no price breakpoints configured"
        raise PricingConfigurationError(msg)
    if breakpoints[0].min_quantity != 1:
        msg = f"First breakpoint must start at quantity 1, got {breakpoints[0].min_quantity}"
        raise PricingConfigurationError(msg)
    previous = 0
    for idx, bp in enumerate(breakpoints):
        if bp.min_quantity <= previous:
            msg = f"breakpoints[{idx}].min_quantity must be greater than {previous}, got {bp.min_quantity}"
            raise PricingConfigurationError(msg)
        if bp.price_in_cents < 0:
            msg = f"breakpoints[{idx}].price_in_cents must not be negative"
            raise PricingConfigurationError(msg)
        previous = bp.min_quantity


def unit_price(breakpoints: Iterable[BreakpointLike], quantity: int) -> int:
    """Return the per-unit price in cents for *quantity* slots.

    Breakpoints are sorted by ``min_quantity`` before matching, so callers may
    pass them in any order.

    Raises:
        ValueError: If *quantity* is lower than 1.
        PricingConfigurationError: If there are no breakpoints, or the
            smallest breakpoint is above *quantity*.
    """
    if quantity < 1:
        msg = f"quantity must be at least 1, got {quantity}"
        raise ValueError(msg)
    ordered = sorted(breakpoints, key=lambda bp: bp.min_quantity)
    if not ordered:
        msg = "Event has no price breakpoints configured"
        raise PricingConfigurationError(msg)

    matched: BreakpointLike | None = None
    for bp in ordered:
        if bp.min_quantity > quantity:
            break
        matched = bp
    if matched is None:
        msg = f"No breakpoint applies to quantity {quantity} (lowest is {ordered[0].min_quantity})"
        raise PricingConfigurationError(msg)
    return matched.price_in_cents


def calculate_total_price(breakpoints: Iterable[BreakpointLike], quantity: int) -> int:
    """Return the total price in cents for *quantity* slots.

    Example::

        >>> calculate_total_price([Breakpoint(1, 50000), Breakpoint(4, 40000)], 3)
        150000
        >>> calculate_total_price([Breakpoint(1, 50000), Breakpoint(4, 40000)], 5)
        200000
    """
    return unit_price(breakpoints, quantity) * quantity


def quote_for_event(event: "Event", quantity: int) -> int:
    """Price *quantity* slots of *event* using its stored breakpoints."""
    return calculate_total_price(list(event.price_breakpoints.all()), quantity)
