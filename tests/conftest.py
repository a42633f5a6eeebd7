"""Shared fixtures for the django-checkout test suite."""

import pytest
from django.contrib.auth import get_user_model

from django_checkout.events.models import Event, PriceBreakpoint

User = get_user_model()


# -- Fixtures -----------------------------------------------------------------


@pytest.fixture
def buyer(db):
    return User.objects.create_user(username="buyer", email="buyer@example.com", password="testpass123")


@pytest.fixture
def other_user(db):
    return User.objects.create_user(username="outsider", email="outsider@example.com", password="testpass123")


@pytest.fixture
def attendee(db):
    return User.objects.create_user(username="attendee", email="attendee@example.com", password="testpass123")


@pytest.fixture
def staff(db):
    return User.objects.create_user(
        username="staff",
        email="staff@example.com",
        password="testpass123",
        is_staff=True,
    )


@pytest.fixture
def event(db):
    event = Event.objects.create(id="congresso-2026", name="Congresso 2026")
    PriceBreakpoint.objects.create(event=event, min_quantity=1, price_in_cents=50000)
    PriceBreakpoint.objects.create(event=event, min_quantity=4, price_in_cents=40000)
    return event
