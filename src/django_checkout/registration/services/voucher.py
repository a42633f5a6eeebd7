"""Voucher gate: issuing, validating, redeeming and toggling voucher codes.

A voucher lets attendees register under a buyer's checkout without a new
purchase. Codes are cryptographically random uppercase alphanumerics whose
length comes from ``DJANGO_CHECKOUT["voucher_code_length"]``.
"""

import logging
import secrets
import string
from collections.abc import Mapping
from dataclasses import dataclass

from django.core.exceptions import PermissionDenied, ValidationError
from django.db import IntegrityError, transaction
from django.http import Http404

from django_checkout.auth import is_admin
from django_checkout.events.models import Event
from django_checkout.registration.models import Checkout, Registration, Voucher
from django_checkout.registration.services.registration import (
    active_registration_count,
    ensure_event_capacity,
    form_to_fields,
    initial_status_for,
    lock_checkout,
)
from django_checkout.registration.signals import registration_created
from django_checkout.registration.validators import validate_registration_form
from django_checkout.settings import get_config

logger = logging.getLogger(__name__)

_CODE_ALPHABET = string.ascii_uppercase + string.digits
_REDEEMABLE_STATUSES = frozenset(
    {Checkout.Status.PENDING, Checkout.Status.COMPLETED, Checkout.Status.APPROVED, Checkout.Status.PAID}
)


@dataclass(frozen=True, slots=True)
class VoucherCheck:
    """Outcome of the voucher gate.

    Attributes:
        valid: Whether the voucher can be redeemed right now.
        message: Why it cannot, in Portuguese; empty when valid.
    """

    valid: bool
    message: str = ""


def _generate_code() -> str:
    length = get_config().voucher_code_length
    return "".join(secrets.choice(_CODE_ALPHABET) for _ in range(length))


def get_voucher(code: str) -> Voucher:
    """Return the voucher for *code* or raise ``Http404``."""
    try:
        return Voucher.objects.select_related("checkout", "checkout__event").get(code=code)
    except Voucher.DoesNotExist as exc:
        raise Http404("Voucher não encontrado.") from exc


class VoucherService:
    """Stateless service for voucher operations."""

    @staticmethod
    def validate(voucher: Voucher) -> VoucherCheck:
        """Run the voucher gate against the current state of its checkout.

        Fails when the voucher is inactive, its checkout is cancelled,
        refunded or missing, the event no longer takes registrations, the
        checkout has no purchased amount, or every slot (purchased plus
        complimentary) is already taken.
        """
        if not voucher.active:
            return VoucherCheck(False, "Voucher foi desabilitado pelo comprador. Entre em contato com o responsável.")

        checkout = voucher.checkout
        if checkout.status == Checkout.Status.DELETED:
            return VoucherCheck(
                False,
                "Comprador não encontrado. Por favor, entre em contato com o responsável pela compra.",
            )
        if checkout.status not in _REDEEMABLE_STATUSES:
            return VoucherCheck(
                False,
                "Compra de inscrições incompleta. Por favor, entre em contato com o responsável pela compra.",
            )

        event = checkout.event
        if event.status == Event.Status.CLOSED:
            return VoucherCheck(False, "Evento já ocorreu e não está mais disponível para inscrições.")
        if event.status == Event.Status.CANCELED:
            return VoucherCheck(False, "Evento cancelado e não está mais disponível para inscrições.")

        if not checkout.amount:
            return VoucherCheck(False, "Compra do voucher não tem um número válido de inscrições.")
        if active_registration_count(checkout) >= checkout.capacity:
            return VoucherCheck(False, "Número máximo de inscrições já atingido para este voucher.")
        return VoucherCheck(True)

    @staticmethod
    @transaction.atomic
    def redeem(voucher: Voucher, actor: object, event_id: str, form: Mapping) -> Registration:
        """Register *actor* under the voucher's checkout.

        The gate runs again while the issuing checkout is locked, so the
        last free slot cannot be redeemed twice.

        Raises:
            PermissionDenied: If the voucher gate fails.
            ValidationError: If the event does not match or the form is invalid.
        """
        if not isinstance(form, Mapping):
            raise ValidationError("Dados da inscrição são obrigatórios")
        validate_registration_form(form)

        checkout = lock_checkout(voucher.checkout_id)
        voucher = Voucher.objects.select_for_update().get(pk=voucher.pk)
        voucher.checkout = checkout
        check = VoucherService.validate(voucher)
        if not check.valid:
            logger.warning("Refused redemption of voucher %s: %s", voucher.code, check.message)
            raise PermissionDenied(check.message)
        if event_id != checkout.event_id:
            raise ValidationError("Voucher não pertence a este evento")

        status = initial_status_for(checkout)
        if status in Registration.ACTIVE_STATUSES:
            ensure_event_capacity(checkout.event)

        registration = Registration.objects.create(
            event=checkout.event,
            checkout=checkout,
            attendee=actor,
            created_by=actor,
            created_by_role=Registration.Role.ATTENDEE,
            voucher_code=voucher.code,
            status=status,
            **form_to_fields(form),
        )
        logger.info("Voucher %s redeemed by %s as registration %s", voucher.code, actor, registration.pk)
        registration_created.send(sender=Registration, registration=registration, voucher=voucher)
        return registration

    @staticmethod
    @transaction.atomic
    def set_active(voucher: Voucher, active: object, actor: object) -> Voucher:
        """Enable or disable further redemptions of *voucher*.

        Existing registrations are not touched.

        Raises:
            ValidationError: If *active* is not a boolean.
            PermissionDenied: If the actor is neither the buyer nor an admin.
        """
        if not isinstance(active, bool):
            raise ValidationError("Estado do voucher é obrigatório.")
        if voucher.checkout.user_id != getattr(actor, "pk", None) and not is_admin(actor):
            raise PermissionDenied("Você não tem permissão para ativar este voucher.")
        voucher.active = active
        voucher.save(update_fields=["active", "updated_at"])
        logger.info("Voucher %s %s by %s", voucher.code, "enabled" if active else "disabled", actor)
        return voucher

    @staticmethod
    def issue(checkout: Checkout) -> Voucher:
        """Create a voucher with a fresh, collision-free code for *checkout*."""
        while True:
            code = _generate_code()
            try:
                with transaction.atomic():
                    voucher = Voucher.objects.create(code=code, checkout=checkout)
            except IntegrityError:
                continue
            logger.info("Issued voucher %s for checkout %s", code, checkout.pk)
            return voucher
