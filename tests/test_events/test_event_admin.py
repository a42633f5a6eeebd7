"""Tests for the event admin and its price tier formset."""

import pytest
from django.contrib.admin.sites import AdminSite
from django.contrib.auth import get_user_model
from django.contrib.messages import get_messages
from django.contrib.messages.storage.fallback import FallbackStorage
from django.forms import inlineformset_factory

from django_checkout.events.admin import EventAdmin, PriceBreakpointFormSet
from django_checkout.events.models import Event, PriceBreakpoint
from django_checkout.registration.services.checkout import CheckoutService
from tests.helpers import pf_billing

TierFormSet = inlineformset_factory(
    Event,
    PriceBreakpoint,
    formset=PriceBreakpointFormSet,
    fields=("min_quantity", "price_in_cents"),
    extra=0,
    can_delete=True,
)


def _formset(*tiers, deleted=()):
    data = {
        "tiers-TOTAL_FORMS": str(len(tiers)),
        "tiers-INITIAL_FORMS": "0",
        "tiers-MIN_NUM_FORMS": "0",
        "tiers-MAX_NUM_FORMS": "1000",
    }
    for idx, (quantity, price) in enumerate(tiers):
        data[f"tiers-{idx}-min_quantity"] = str(quantity)
        data[f"tiers-{idx}-price_in_cents"] = str(price)
        if idx in deleted:
            data[f"tiers-{idx}-DELETE"] = "on"
    event = Event.objects.create(id="novo-evento")
    return TierFormSet(data, instance=event, prefix="tiers")


@pytest.mark.django_db
class TestPriceBreakpointFormSet:
    def test_accepts_valid_tiers(self):
        assert _formset((1, 50000), (5, 40000)).is_valid()

    def test_rejects_tiers_not_starting_at_one(self):
        formset = _formset((2, 50000))

        assert not formset.is_valid()
        assert "must start at quantity 1" in formset.non_form_errors()[0]

    def test_rejects_repeated_quantities(self):
        formset = _formset((1, 50000), (1, 40000))
        assert not formset.is_valid()

    def test_deleted_rows_are_ignored(self):
        assert _formset((1, 50000), (1, 40000), deleted=(1,)).is_valid()

    def test_empty_formset_is_valid(self):
        assert _formset().is_valid()


@pytest.mark.django_db
def test_event_id_is_readonly_after_creation(rf, event):
    model_admin = EventAdmin(Event, AdminSite())
    request = rf.get("/")

    assert "id" in model_admin.get_readonly_fields(request, event)
    assert "id" not in model_admin.get_readonly_fields(request)


@pytest.mark.django_db
def test_event_changelist_renders(client, event):
    superuser = get_user_model().objects.create_superuser(
        username="root", email="root@example.com", password="testpass123"
    )
    client.force_login(superuser)

    response = client.get("/admin/checkout_events/event/")

    assert response.status_code == 200
    assert b"congresso-2026" in response.content


def _admin_request(rf, user):
    request = rf.post("/admin/checkout_events/event/")
    request.user = user
    request.session = {}
    request._messages = FallbackStorage(request)
    return request


@pytest.mark.django_db
class TestRecomputeCheckoutTotalsAction:
    def test_reprices_selected_events(self, rf, staff, buyer, event):
        checkout = CheckoutService.create(
            buyer,
            {
                "eventId": event.pk,
                "checkoutType": "acquire",
                "amount": 2,
                "legalEntity": "pf",
                "billingDetails": pf_billing(),
            },
        )
        event.price_breakpoints.filter(min_quantity=1).update(price_in_cents=45000)
        request = _admin_request(rf, staff)

        EventAdmin(Event, AdminSite()).recompute_checkout_totals(request, Event.objects.all())

        checkout.refresh_from_db()
        assert checkout.total_value == 90000
        assert [str(m) for m in get_messages(request)] == ["congresso-2026: 1 checkout(s) updated, 0 skipped."]

    def test_event_without_tiers_is_reported(self, rf, staff, db):
        Event.objects.create(id="sem-preco")
        request = _admin_request(rf, staff)

        EventAdmin(Event, AdminSite()).recompute_checkout_totals(request, Event.objects.all())

        messages = [str(m) for m in get_messages(request)]
        assert len(messages) == 1
        assert messages[0].startswith("sem-preco: ")
