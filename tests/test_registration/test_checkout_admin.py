"""Tests for the checkout admin actions."""

from types import SimpleNamespace

import pytest
from django.contrib.admin.sites import AdminSite
from django.contrib.auth import get_user_model
from django.contrib.messages import get_messages
from django.contrib.messages.storage.fallback import FallbackStorage

from django_checkout.registration.admin import CheckoutAdmin, RegistrationAdmin
from django_checkout.registration.models import Checkout, Registration, Voucher
from django_checkout.registration.services.checkout import CheckoutService
from tests.helpers import pf_billing

# -- Fixtures -----------------------------------------------------------------


@pytest.fixture
def model_admin():
    return CheckoutAdmin(Checkout, AdminSite())


@pytest.fixture
def admin_request(rf, staff):
    request = rf.post("/admin/checkout_registration/checkout/")
    request.user = staff
    request.session = {}
    request._messages = FallbackStorage(request)
    return request


@pytest.fixture
def checkout(buyer, event):
    return CheckoutService.create(
        buyer,
        {
            "eventId": event.pk,
            "checkoutType": "acquire",
            "amount": 2,
            "legalEntity": "pf",
            "billingDetails": pf_billing(),
        },
    )


def _messages(request):
    return [str(message) for message in get_messages(request)]


# -- Actions ------------------------------------------------------------------


@pytest.mark.django_db
class TestCheckoutActions:
    def test_mark_paid(self, model_admin, admin_request, checkout):
        model_admin.mark_paid(admin_request, Checkout.objects.all())

        checkout.refresh_from_db()
        assert checkout.status == Checkout.Status.PAID
        assert _messages(admin_request) == ["1 checkout(s) updated."]

    def test_invalid_transition_is_reported(self, model_admin, admin_request, checkout):
        model_admin.mark_refunded(admin_request, Checkout.objects.all())

        checkout.refresh_from_db()
        assert checkout.status == Checkout.Status.PENDING
        messages = _messages(admin_request)
        assert len(messages) == 1
        assert messages[0].startswith("congresso-2026_buyer: ")

    def test_cancel_disables_vouchers(self, model_admin, admin_request, checkout):
        model_admin.cancel_checkouts(admin_request, Checkout.objects.all())

        checkout.refresh_from_db()
        assert checkout.status == Checkout.Status.DELETED
        assert checkout.deleted_at is not None
        assert not Voucher.objects.filter(checkout=checkout, active=True).exists()

    def test_restore_only_touches_cancelled_checkouts(self, model_admin, admin_request, buyer, other_user, event):
        cancelled = CheckoutService.create(
            other_user,
            {
                "eventId": event.pk,
                "checkoutType": "acquire",
                "amount": 1,
                "legalEntity": "pf",
                "billingDetails": pf_billing(),
            },
        )
        CheckoutService.cancel(cancelled, other_user)
        active = CheckoutService.create(
            buyer,
            {
                "eventId": event.pk,
                "checkoutType": "acquire",
                "amount": 1,
                "legalEntity": "pf",
                "billingDetails": pf_billing(),
            },
        )

        model_admin.restore_checkouts(admin_request, Checkout.objects.all())

        cancelled.refresh_from_db()
        active.refresh_from_db()
        assert cancelled.status == Checkout.Status.PENDING
        assert active.status == Checkout.Status.PENDING
        assert _messages(admin_request) == ["1 checkout(s) updated."]

    def test_non_staff_user_is_refused(self, model_admin, admin_request, buyer, checkout):
        admin_request.user = buyer

        model_admin.mark_paid(admin_request, Checkout.objects.all())

        checkout.refresh_from_db()
        assert checkout.status == Checkout.Status.PENDING


@pytest.mark.django_db
def test_editing_total_in_admin_marks_it_overridden(model_admin, admin_request, checkout):
    checkout.total_value = 1000
    form = SimpleNamespace(changed_data=["total_value"])

    model_admin.save_model(admin_request, checkout, form, change=True)

    checkout.refresh_from_db()
    assert checkout.total_value_overridden
    assert checkout.total_value == 1000


def test_admins_cannot_add_records(rf):
    request = rf.get("/")
    assert not CheckoutAdmin(Checkout, AdminSite()).has_add_permission(request)
    assert not RegistrationAdmin(Registration, AdminSite()).has_add_permission(request)


@pytest.mark.django_db
@pytest.mark.parametrize("model_name", ["checkout", "registration", "voucher", "attachment"])
def test_changelists_render(client, checkout, model_name):
    superuser = get_user_model().objects.create_superuser(
        username="root", email="root@example.com", password="testpass123"
    )
    client.force_login(superuser)

    response = client.get(f"/admin/checkout_registration/{model_name}/")

    assert response.status_code == 200
