from io import StringIO

import pytest
from django.core.management import call_command
from django.core.management.base import CommandError

from django_checkout.registration.models import Checkout
from django_checkout.registration.services.checkout import CheckoutService
from django_checkout.registration.services.registration import RegistrationService
from tests.helpers import pf_billing, registration_form


@pytest.fixture
def checkout(buyer, staff, event):
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
    RegistrationService.create(buyer, {"eventId": event.pk, "checkoutId": checkout.pk, **registration_form()})
    return checkout


@pytest.mark.django_db
def test_unknown_event():
    with pytest.raises(CommandError, match="does not exist"):
        call_command("export_event_report", "nope", stdout=StringIO())


@pytest.mark.django_db
def test_registrations_to_stdout_are_masked(checkout):
    out = StringIO()

    call_command("export_event_report", checkout.event_id, stdout=out)

    lines = out.getvalue().splitlines()
    assert lines[0].startswith("ID da Inscrição;")
    assert len(lines) == 2
    assert "529.***.***-25" in lines[1]
    assert "MARIA DA SILVA" in lines[1]


@pytest.mark.django_db
def test_unmasked_documents(checkout):
    out = StringIO()
    call_command("export_event_report", checkout.event_id, unmask_documents=True, stdout=out)
    assert "529.982.247-25" in out.getvalue()


@pytest.mark.django_db
def test_checkouts_to_file_with_status_filter(checkout, staff, tmp_path):
    target = tmp_path / "checkouts.csv"

    call_command(
        "export_event_report",
        checkout.event_id,
        kind="checkouts",
        status="pending",
        output=str(target),
        stderr=StringIO(),
    )

    text = target.read_text(encoding="utf-8")
    assert text.startswith("\ufeffID do Checkout;")
    assert "congresso-2026_buyer" in text

    CheckoutService.set_status(checkout, Checkout.Status.PAID, staff)
    call_command(
        "export_event_report",
        checkout.event_id,
        kind="checkouts",
        status="pending",
        output=str(target),
        stderr=StringIO(),
    )
    assert "congresso-2026_buyer" not in target.read_text(encoding="utf-8")
