"""Checkout service: creation, buyer edits and the admin status machine.

A checkout is keyed by ``eventId_userId`` so each user holds at most one per
event. Status changes go through :meth:`CheckoutService.transition`, which
checks :attr:`Checkout.ALLOWED_TRANSITIONS` and, in the same transaction,
re-derives the dependent registrations and toggles the checkout's vouchers.
All methods are stateless and operate on model instances directly.
"""

import logging
from collections.abc import Mapping

from django.core.exceptions import PermissionDenied, ValidationError
from django.db import IntegrityError, transaction
from django.http import Http404
from django.utils import timezone

from django_checkout.auth import is_admin, user_identity
from django_checkout.events.models import Event
from django_checkout.registration.exceptions import ConflictError
from django_checkout.registration.models import Checkout, Payment
from django_checkout.registration.services.ids import compose_document_id
from django_checkout.registration.services.pricing import (
    PricingConfigurationError,
    calculate_total_price,
    quote_for_event,
    validate_breakpoints,
)
from django_checkout.registration.services.registration import (
    active_registration_count,
    lock_checkout,
    sync_registrations_with_checkout,
)
from django_checkout.registration.services.voucher import VoucherService, get_voucher
from django_checkout.registration.signals import checkout_status_changed
from django_checkout.registration.validators import validate_billing_details

logger = logging.getLogger(__name__)

CREATE_FIELDS: tuple[str, ...] = (
    "eventId",
    "userId",
    "checkoutType",
    "legalEntity",
    "billingDetails",
    "amount",
    "voucher",
    "registrateMyself",
)
UPDATE_FIELDS: tuple[str, ...] = (
    "checkoutType",
    "legalEntity",
    "billingDetails",
    "amount",
    "voucher",
    "registrateMyself",
)
ADMIN_UPDATE_FIELDS: tuple[str, ...] = ("totalValue",)
DUPLICATE_CHECKOUT_MESSAGE = "Uma outra aquisição de inscrições já existe para esse usuário."

# Checkouts whose money has moved; repricing only fills in a missing total.
_SETTLED_STATUSES = frozenset({Checkout.Status.PAID, Checkout.Status.REFUNDED, Checkout.Status.DELETED})

# Commitment payment stage -> checkout status.
COMMITMENT_CHECKOUT_STATUS: dict[str, str] = {
    Payment.Status.PENDING: Checkout.Status.PENDING,
    Payment.Status.COMMITTED: Checkout.Status.APPROVED,
    Payment.Status.PAID: Checkout.Status.PAID,
}
_CHECKOUT_COMMITMENT_STAGE = {value: key for key, value in COMMITMENT_CHECKOUT_STATUS.items()}


def _is_positive_int(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


def _is_non_negative_int(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


def _validate_common(data: Mapping) -> None:
    checkout_type = data.get("checkoutType")
    if checkout_type is not None and checkout_type not in Checkout.Type.values:
        raise ValidationError("Tipo de aquisição inválido")
    legal_entity = data.get("legalEntity")
    if legal_entity is not None and legal_entity not in Checkout.LegalEntity.values:
        raise ValidationError("Tipo de pessoa inválido")
    amount = data.get("amount")
    if amount is not None and not _is_positive_int(amount):
        raise ValidationError("Quantidade de inscrições deve ser um número inteiro positivo")
    voucher = data.get("voucher")
    if voucher is not None and not isinstance(voucher, str):
        raise ValidationError("Voucher deve ser um texto")
    registrate_myself = data.get("registrateMyself")
    if registrate_myself is not None and not isinstance(registrate_myself, bool):
        raise ValidationError("registrateMyself deve ser verdadeiro ou falso")
    total_value = data.get("totalValue")
    if total_value is not None and not _is_non_negative_int(total_value):
        raise ValidationError("Valor total deve ser um número inteiro não negativo")


def _price(event: Event, amount: int | None) -> int | None:
    if not amount:
        return None
    try:
        return quote_for_event(event, amount)
    except PricingConfigurationError as exc:
        logger.warning("Cannot price event %s: %s", event.pk, exc)
        raise ValidationError("Evento sem tabela de preços configurada") from exc


def _payment_method_for(billing_details: object) -> str:
    if isinstance(billing_details, Mapping) and billing_details.get("paymentByCommitment") is True:
        return Payment.Method.EMPENHO
    return Payment.Method.CARD


def _reset_payment(checkout: Checkout) -> None:
    payment = Payment.objects.filter(checkout=checkout).first()
    if payment is None:
        return
    for attachment in payment.attachments.all():
        attachment.file.delete(save=False)
    payment.delete()


def _ensure_voucher_passes(code: object) -> None:
    if not code:
        raise ValidationError("Voucher é obrigatório para aquisições por voucher")
    check = VoucherService.validate(get_voucher(code))
    if not check.valid:
        raise PermissionDenied(check.message)


def get_checkout(checkout_id: str, actor: object) -> Checkout:
    """Return the checkout if *actor* owns it or is an admin.

    Raises:
        Http404: If no such checkout exists.
        PermissionDenied: If *actor* may not see it.
    """
    try:
        checkout = Checkout.objects.select_related("event", "user").get(pk=checkout_id)
    except Checkout.DoesNotExist as exc:
        raise Http404("Aquisição não encontrada") from exc
    if checkout.user_id != getattr(actor, "pk", None) and not is_admin(actor):
        raise PermissionDenied("Usuário não tem permissão para acessar esta aquisição")
    return checkout


class CheckoutService:
    """Stateless service for checkout operations."""

    @staticmethod
    def extract_create_data(body: object) -> dict:
        """Pick the creation fields present in a request body."""
        if not isinstance(body, Mapping):
            raise ValidationError("Dados inválidos para criação do checkout")
        return {key: body[key] for key in CREATE_FIELDS if key in body}

    @staticmethod
    def extract_update_data(body: object, *, admin: bool = False) -> dict:
        """Pick the update fields present in a request body.

        Admins may additionally override ``totalValue``.
        """
        if not isinstance(body, Mapping):
            raise ValidationError("Dados inválidos para atualização do checkout")
        fields = UPDATE_FIELDS + ADMIN_UPDATE_FIELDS if admin else UPDATE_FIELDS
        return {key: body[key] for key in fields if key in body}

    @staticmethod
    def validate_create_data(data: Mapping) -> None:
        """Validate checkout creation data.

        Raises:
            ValidationError: With a Portuguese message naming the first problem.
        """
        event_id = data.get("eventId")
        if not isinstance(event_id, str) or not event_id.strip():
            raise ValidationError("eventId é obrigatório")
        if not data.get("checkoutType"):
            raise ValidationError("Tipo de aquisição é obrigatório")
        _validate_common(data)
        if data.get("checkoutType") == Checkout.Type.VOUCHER and not data.get("voucher"):
            raise ValidationError("Voucher é obrigatório para aquisições por voucher")
        if data.get("billingDetails") is not None:
            validate_billing_details(data.get("legalEntity"), data["billingDetails"])

    @staticmethod
    def validate_update_data(data: Mapping) -> None:
        """Validate checkout update data; the status is never writable here.

        Raises:
            ValidationError: If a ``status`` key is present, ``amount`` is null,
                or a field is invalid.
        """
        if not isinstance(data, Mapping):
            raise ValidationError("Dados inválidos para atualização do checkout")
        if "status" in data:
            raise ValidationError("A situação da aquisição não pode ser alterada por esta operação")
        if "amount" in data and data["amount"] is None:
            raise ValidationError("Quantidade de inscrições é obrigatória")
        _validate_common(data)

    @staticmethod
    def build_checkout_document(data: Mapping) -> dict:
        """Return the stored document for creation *data*.

        Every request field is kept as given, plus ``status``, the creation
        timestamps and the default payment sub-document.
        """
        now = timezone.now()
        return {
            **data,
            "status": Checkout.Status.PENDING.value,
            "createdAt": now,
            "updatedAt": now,
            "payment": {"method": _payment_method_for(data.get("billingDetails")), "value": 0},
        }

    @staticmethod
    @transaction.atomic
    def create(user: object, data: Mapping) -> Checkout:
        """Create (or overwrite a cancelled) checkout for *user*.

        The authenticated user's identity replaces any client-supplied
        ``userId``. Acquire and admin checkouts without a voucher code get a
        freshly issued voucher.

        Raises:
            ValidationError: If the data is invalid, the event is not open or
                an active checkout already exists.
            PermissionDenied: If a non-admin requests an admin checkout, or
                the referenced voucher fails the gate.
            Http404: If the event or voucher does not exist.
        """
        data = dict(data)
        identity = user_identity(user)
        if data.get("userId") not in (None, identity):
            logger.warning("Replaced client-supplied userId %r with %s", data.get("userId"), identity)
        data["userId"] = identity
        CheckoutService.validate_create_data(data)

        if data["checkoutType"] == Checkout.Type.ADMIN and not is_admin(user):
            raise PermissionDenied("Apenas administradores podem criar aquisições administrativas")

        event = Event.objects.filter(pk=data["eventId"].strip()).first()
        if event is None:
            raise Http404("Evento não encontrado.")
        if not event.is_open:
            raise ValidationError("Evento não está aberto para inscrições")

        checkout_id = compose_document_id(event.pk, identity)
        existing = Checkout.objects.select_for_update().filter(pk=checkout_id).first()
        if existing is not None and existing.status != Checkout.Status.DELETED:
            raise ValidationError(DUPLICATE_CHECKOUT_MESSAGE)

        if data["checkoutType"] == Checkout.Type.VOUCHER:
            _ensure_voucher_passes(data["voucher"])

        document = CheckoutService.build_checkout_document(data)
        total_value = _price(event, document.get("amount"))
        if existing is not None:
            _reset_payment(existing)
            logger.info("Overwriting cancelled checkout %s", checkout_id)

        try:
            with transaction.atomic():
                checkout, _ = Checkout.objects.update_or_create(
                    pk=checkout_id,
                    defaults={
                        "event": event,
                        "user": user,
                        "checkout_type": document["checkoutType"],
                        "legal_entity": document.get("legalEntity") or "",
                        "billing_details": document.get("billingDetails"),
                        "amount": document.get("amount"),
                        "complimentary": 0,
                        "voucher": document.get("voucher") or "",
                        "registrate_myself": document.get("registrateMyself"),
                        "total_value": total_value,
                        "total_value_overridden": False,
                        "status": document["status"],
                        "created_at": document["createdAt"],
                        "updated_at": document["updatedAt"],
                        "deleted_at": None,
                    },
                )
                Payment.objects.create(
                    checkout=checkout,
                    method=document["payment"]["method"],
                    value=total_value or 0,
                )
        except IntegrityError as exc:
            logger.warning("Concurrent creation of checkout %s", checkout_id)
            raise ValidationError(DUPLICATE_CHECKOUT_MESSAGE) from exc

        if checkout.checkout_type != Checkout.Type.VOUCHER and not checkout.voucher:
            checkout.voucher = VoucherService.issue(checkout).code
            checkout.save(update_fields=["voucher"])

        logger.info("Created checkout %s (%s, amount=%s)", checkout.pk, checkout.checkout_type, checkout.amount)
        return checkout

    @staticmethod
    @transaction.atomic
    def update(checkout: Checkout, body: Mapping, actor: object) -> Checkout:
        """Apply a buyer or admin edit to *checkout*.

        Buyers may only edit a pending checkout. When ``amount`` changes the
        total is recomputed, unless an admin had overridden it.

        Raises:
            PermissionDenied: If the actor is neither the owner nor an admin,
                a buyer requests the admin checkout type, or a referenced
                voucher fails the gate.
            ValidationError: If the data is invalid, the billing details do
                not match the legal entity, the checkout is no longer
                editable, or the new amount is below the active registrations.
            Http404: If a referenced voucher does not exist.
        """
        admin = is_admin(actor)
        if checkout.user_id != getattr(actor, "pk", None) and not admin:
            raise PermissionDenied("Usuário não tem permissão para atualizar esta aquisição")
        CheckoutService.validate_update_data(body)
        data = CheckoutService.extract_update_data(body, admin=admin)

        checkout = lock_checkout(checkout.pk)
        if not admin and checkout.status != Checkout.Status.PENDING:
            raise ValidationError("A aquisição só pode ser alterada enquanto estiver pendente")
        if data.get("checkoutType") == Checkout.Type.ADMIN and not admin:
            raise PermissionDenied("Apenas administradores podem criar aquisições administrativas")

        legal_entity = data.get("legalEntity", checkout.legal_entity) or None
        billing_details = data.get("billingDetails", checkout.billing_details)
        if ("legalEntity" in data or "billingDetails" in data) and billing_details is not None:
            validate_billing_details(legal_entity, billing_details)

        checkout_type = data.get("checkoutType", checkout.checkout_type)
        if checkout_type == Checkout.Type.VOUCHER and ("checkoutType" in data or "voucher" in data):
            _ensure_voucher_passes(data.get("voucher", checkout.voucher))

        old_amount = checkout.amount

        if "checkoutType" in data:
            checkout.checkout_type = data["checkoutType"]
        if "legalEntity" in data:
            checkout.legal_entity = data["legalEntity"] or ""
        if "billingDetails" in data:
            checkout.billing_details = data["billingDetails"]
        if "voucher" in data:
            checkout.voucher = data["voucher"] or ""
        if "registrateMyself" in data:
            checkout.registrate_myself = data["registrateMyself"]
        if "amount" in data and data["amount"] != old_amount:
            new_amount = data["amount"]
            if (new_amount or 0) + checkout.complimentary < active_registration_count(checkout):
                raise ValidationError("Quantidade menor que o número de inscrições ativas")
            checkout.amount = new_amount
            if not checkout.total_value_overridden:
                checkout.total_value = _price(checkout.event, new_amount)
        if admin and "totalValue" in data:
            checkout.total_value_overridden = data["totalValue"] is not None
            if checkout.total_value_overridden:
                checkout.total_value = data["totalValue"]
            else:
                checkout.total_value = _price(checkout.event, checkout.amount)

        checkout.updated_at = timezone.now()
        checkout.save()

        payment, _ = Payment.objects.get_or_create(checkout=checkout)
        payment.value = checkout.total_value or 0
        if payment.status == Payment.Status.PENDING and not payment.attachments.exists():
            payment.method = _payment_method_for(checkout.billing_details)
        payment.save()

        logger.info("Updated checkout %s by %s", checkout.pk, actor)
        return checkout

    @staticmethod
    def transition(checkout: Checkout, new_status: str, actor: object) -> Checkout:
        """Move a locked *checkout* to *new_status* and cascade the change.

        Must run inside a transaction holding the checkout's row lock. The
        dependent registrations are re-derived, the vouchers are disabled on
        cancellation and re-enabled on reactivation, and commitment payments
        follow the checkout's stage.

        Raises:
            ValidationError: If the transition is not allowed.
        """
        previous = checkout.status
        if new_status == previous:
            return checkout
        if not checkout.can_transition_to(new_status):
            raise ValidationError(f"Transição de situação inválida: {previous} → {new_status}")

        now = timezone.now()
        checkout.status = new_status
        checkout.updated_at = now
        if new_status == Checkout.Status.DELETED:
            checkout.deleted_at = now
            checkout.vouchers.update(active=False, updated_at=now)
        reactivating = previous == Checkout.Status.DELETED
        if reactivating:
            checkout.deleted_at = None
            checkout.vouchers.update(active=True, updated_at=now)
        checkout.save(update_fields=["status", "updated_at", "deleted_at"])

        payment = Payment.objects.filter(checkout=checkout).first()
        stage = _CHECKOUT_COMMITMENT_STAGE.get(new_status)
        if payment is not None and payment.is_commitment and stage and payment.status != stage:
            payment.status = stage
            payment.save(update_fields=["status", "updated_at"])

        sync_registrations_with_checkout(checkout, restoring=reactivating)
        logger.info("Checkout %s moved from %s to %s by %s", checkout.pk, previous, new_status, actor)
        checkout_status_changed.send(sender=Checkout, checkout=checkout, previous_status=previous, actor=actor)
        return checkout

    @staticmethod
    @transaction.atomic
    def set_status(checkout: Checkout, new_status: object, actor: object) -> Checkout:
        """Admin status change following :attr:`Checkout.ALLOWED_TRANSITIONS`.

        Raises:
            PermissionDenied: If the actor is not an admin.
            ValidationError: If the status is unknown or not reachable.
        """
        if not is_admin(actor):
            raise PermissionDenied("Apenas administradores podem alterar a situação da aquisição")
        if new_status not in Checkout.Status.values:
            raise ValidationError("Situação inválida")
        checkout = lock_checkout(checkout.pk)
        return CheckoutService.transition(checkout, new_status, actor)

    @staticmethod
    @transaction.atomic
    def cancel(checkout: Checkout, actor: object) -> Checkout:
        """Soft-delete *checkout* and invalidate its registrations.

        Buyers may only cancel while the event is open.

        Raises:
            PermissionDenied: If the actor is neither the owner nor an admin,
                or a buyer cancels after the event closed.
            ConflictError: If the checkout is already cancelled.
            ValidationError: If the checkout was refunded.
        """
        admin = is_admin(actor)
        if checkout.user_id != getattr(actor, "pk", None) and not admin:
            raise PermissionDenied("Usuário não tem permissão para cancelar esta aquisição")
        checkout = lock_checkout(checkout.pk)
        if not admin and not checkout.event.is_open:
            raise PermissionDenied("Não é possível cancelar a aquisição de um evento encerrado")
        if checkout.status == Checkout.Status.DELETED:
            raise ConflictError("A aquisição já está cancelada")
        return CheckoutService.transition(checkout, Checkout.Status.DELETED, actor)

    @staticmethod
    @transaction.atomic
    def restore(checkout: Checkout, actor: object) -> Checkout:
        """Reactivate a cancelled checkout (``deleted -> pending``).

        Raises:
            PermissionDenied: If the actor is not an admin.
            ConflictError: If the checkout is not cancelled.
        """
        if not is_admin(actor):
            raise PermissionDenied("Apenas administradores podem restaurar aquisições")
        checkout = lock_checkout(checkout.pk)
        if checkout.status != Checkout.Status.DELETED:
            raise ConflictError("Já existe uma aquisição ativa para este usuário e evento")
        return CheckoutService.transition(checkout, Checkout.Status.PENDING, actor)

    @staticmethod
    @transaction.atomic
    def set_complimentary(checkout: Checkout, count: object, actor: object) -> Checkout:
        """Grant *count* complimentary slots on top of the purchased amount.

        Raises:
            PermissionDenied: If the actor is not an admin.
            ValidationError: If *count* is not a non-negative integer or would
                leave fewer slots than active registrations.
        """
        if not is_admin(actor):
            raise PermissionDenied("Apenas administradores podem conceder cortesias")
        if not _is_non_negative_int(count):
            raise ValidationError("Número de cortesias deve ser um inteiro não negativo")
        checkout = lock_checkout(checkout.pk)
        if (checkout.amount or 0) + count < active_registration_count(checkout):
            raise ValidationError("Número de vagas menor que o número de inscrições ativas")
        checkout.complimentary = count
        checkout.updated_at = timezone.now()
        checkout.save(update_fields=["complimentary", "updated_at"])
        logger.info("Checkout %s complimentary slots set to %d by %s", checkout.pk, count, actor)
        return checkout

    @staticmethod
    @transaction.atomic
    def recompute_totals(event: Event) -> dict:
        """Reprice the acquire checkouts of *event* from its current breakpoints.

        Checkouts without an amount and totals an admin fixed by hand are
        skipped, as are those already at the current price. Settled checkouts
        (paid, refunded or cancelled) only get a total when they have none.
        A checkout that cannot be priced is listed in ``errors`` and left as
        it was.

        Returns:
            A dict with the ``updated`` and ``skipped`` counts and the
            ``errors`` list of ``{"checkoutId", "error"}`` entries.

        Raises:
            ValidationError: If the event has no usable price table.
        """
        breakpoints = list(event.price_breakpoints.all())
        try:
            validate_breakpoints(breakpoints)
        except PricingConfigurationError as exc:
            raise ValidationError(f"Evento {event.pk} não possui tabela de preços configurada") from exc

        updated = skipped = 0
        errors: list[dict[str, str]] = []
        checkouts = Checkout.objects.select_for_update().filter(event=event, checkout_type=Checkout.Type.ACQUIRE)
        for checkout in checkouts:
            if not checkout.amount or checkout.total_value_overridden:
                skipped += 1
                continue
            if checkout.status in _SETTLED_STATUSES and checkout.total_value is not None:
                skipped += 1
                continue
            try:
                total = calculate_total_price(breakpoints, checkout.amount)
            except PricingConfigurationError as exc:
                errors.append({"checkoutId": checkout.pk, "error": str(exc)})
                continue
            if total == checkout.total_value:
                skipped += 1
                continue
            checkout.total_value = total
            checkout.updated_at = timezone.now()
            checkout.save(update_fields=["total_value", "updated_at"])
            payment = Payment.objects.filter(checkout=checkout).first()
            if payment is not None:
                payment.value = total
                payment.save(update_fields=["value", "updated_at"])
            updated += 1

        logger.info(
            "Recomputed totals of event %s: %d updated, %d skipped, %d errors",
            event.pk,
            updated,
            skipped,
            len(errors),
        )
        return {"updated": updated, "skipped": skipped, "errors": errors}

    @staticmethod
    def availability(checkout: Checkout) -> dict[str, int]:
        """Return ``capacity``, ``used`` and ``available`` slot counts."""
        used = active_registration_count(checkout)
        capacity = checkout.capacity
        return {"capacity": capacity, "used": used, "available": max(capacity - used, 0)}
