"""Tests for quantity-breakpoint pricing."""

import pytest

from django_checkout.registration.services.pricing import (
    Breakpoint,
    PricingConfigurationError,
    calculate_total_price,
    quote_for_event,
    unit_price,
    validate_breakpoints,
)

TIERS = [Breakpoint(1, 50000), Breakpoint(4, 40000), Breakpoint(10, 30000)]


@pytest.mark.parametrize(
    ("quantity", "expected"),
    [(1, 50000), (3, 150000), (4, 160000), (9, 360000), (10, 300000), (25, 750000)],
)
def test_calculate_total_price_applies_tier_to_whole_quantity(quantity, expected):
    assert calculate_total_price(TIERS, quantity) == expected


def test_unit_price_accepts_unsorted_breakpoints():
    shuffled = [TIERS[2], TIERS[0], TIERS[1]]
    assert unit_price(shuffled, 5) == 40000


def test_unit_price_rejects_quantity_below_one():
    with pytest.raises(ValueError, match="at least 1"):
        unit_price(TIERS, 0)


def test_unit_price_requires_breakpoints():
    with pytest.raises(PricingConfigurationError, match="no price breakpoints"):
        unit_price([], 1)


def test_unit_price_fails_when_lowest_breakpoint_is_above_quantity():
    with pytest.raises(PricingConfigurationError, match="No breakpoint applies"):
        unit_price([Breakpoint(5, 100)], 2)


def test_free_tier_is_allowed():
    assert calculate_total_price([Breakpoint(1, 0)], 3) == 0


class TestValidateBreakpoints:
    def test_accepts_well_formed_list(self):
        validate_breakpoints(TIERS)

    def test_rejects_empty_list(self):
        with pytest.raises(PricingConfigurationError, match="no price breakpoints"):
            validate_breakpoints([])

    def test_rejects_first_breakpoint_above_one(self):
        with pytest.raises(PricingConfigurationError, match="must start at quantity 1"):
            validate_breakpoints([Breakpoint(2, 100)])

    def test_rejects_repeated_quantity(self):
        with pytest.raises(PricingConfigurationError, match=r"breakpoints\[1\]"):
            validate_breakpoints([Breakpoint(1, 100), Breakpoint(1, 90)])

    def test_rejects_negative_price(self):
        with pytest.raises(PricingConfigurationError, match="must not be negative"):
            validate_breakpoints([Breakpoint(1, -5)])


@pytest.mark.django_db
def test_quote_for_event_uses_stored_breakpoints(event):
    assert quote_for_event(event, 2) == 100000
    assert quote_for_event(event, 4) == 160000
