"""Registration lifecycle: creation, edits, status changes and checkout cascade.

A registration's status follows its checkout. Whenever a checkout changes
status, :func:`sync_registrations_with_checkout` re-derives every dependent
registration inside the same transaction. Activating a registration takes a
row lock on the checkout so two concurrent requests cannot both claim the
last slot.
"""

import logging
from collections.abc import Mapping

from django.contrib.auth import get_user_model
from django.core.exceptions import PermissionDenied, ValidationError
from django.db import transaction
from django.http import Http404

from django_checkout.auth import is_admin, user_identity
from django_checkout.events.models import Event
from django_checkout.registration.models import Checkout, Registration
from django_checkout.registration.services.ids import compose_document_id
from django_checkout.registration.signals import registration_created
from django_checkout.registration.validators import only_digits, validate_registration_form

logger = logging.getLogger(__name__)

FORM_FIELDS: dict[str, str] = {
    "fullName": "full_name",
    "cpf": "cpf",
    "phone": "phone",
    "email": "email",
    "credentialName": "credential_name",
    "occupation": "occupation",
    "employer": "employer",
    "city": "city",
    "howDidYouHearAboutUs": "how_did_you_hear_about_us",
    "howDidYouHearAboutUsOther": "how_did_you_hear_about_us_other",
    "isPhoneWhatsapp": "is_phone_whatsapp",
    "useImage": "use_image",
}
UPPERCASE_FIELDS = frozenset(
    {"fullName", "credentialName", "occupation", "howDidYouHearAboutUs", "howDidYouHearAboutUsOther"}
)
BOOLEAN_FIELDS = frozenset({"isPhoneWhatsapp", "useImage"})
DIGIT_FIELDS = frozenset({"cpf", "phone"})


def registration_status_for_checkout(
    checkout_status: str,
    checkout_type: str,
    current: str,
    *,
    restoring: bool = False,
) -> str:
    """Derive a registration's status from its checkout's status.

    Args:
        checkout_status: The checkout's new status.
        checkout_type: The checkout's type; ``admin`` checkouts confirm
            registrations without payment.
        current: The registration's current status.
        restoring: True when the registration was invalidated by this
            checkout's cancellation and the checkout is being reactivated.

    Returns:
        The registration status to store.
    """
    if current == Registration.Status.INVALID and not restoring:
        return Registration.Status.INVALID
    if current == Registration.Status.CANCELLED:
        return Registration.Status.CANCELLED
    if checkout_status in Checkout.INACTIVE_STATUSES:
        return Registration.Status.INVALID
    if checkout_status in Checkout.SETTLED_STATUSES or checkout_type == Checkout.Type.ADMIN:
        return Registration.Status.OK
    return Registration.Status.PENDING


def initial_status_for(checkout: Checkout | None) -> str:
    """Return the status a new registration under *checkout* starts with.

    Registrations without a checkout are only created by admins and are
    confirmed immediately.
    """
    if checkout is None:
        return Registration.Status.OK
    return registration_status_for_checkout(checkout.status, checkout.checkout_type, Registration.Status.PENDING)


def sync_registrations_with_checkout(checkout: Checkout, *, restoring: bool = False) -> int:
    """Re-derive the status of every registration under *checkout*.

    Must run inside the transaction that changed the checkout's status.
    Registrations invalidated here are flagged so a later reactivation of the
    checkout restores exactly those.

    Returns:
        The number of registrations whose status changed.
    """
    changed = 0
    for registration in checkout.registrations.select_for_update():
        restore_this = restoring and registration.invalidated_by_checkout
        new_status = registration_status_for_checkout(
            checkout.status,
            checkout.checkout_type,
            registration.status,
            restoring=restore_this,
        )
        if new_status == registration.status:
            continue
        if new_status == Registration.Status.INVALID:
            registration.invalidated_by_checkout = True
        elif restore_this:
            registration.invalidated_by_checkout = False
        registration.status = new_status
        registration.save(update_fields=["status", "invalidated_by_checkout", "updated_at"])
        changed += 1
    if changed:
        logger.info("Updated %d registrations of checkout %s to follow status %s", changed, checkout.pk, checkout.status)
    return changed


def lock_checkout(checkout_id: str) -> Checkout:
    """Return the checkout row locked with ``select_for_update()``."""
    return Checkout.objects.select_for_update().select_related("event").get(pk=checkout_id)


def active_registration_count(checkout: Checkout, *, exclude: Registration | None = None) -> int:
    """Count registrations occupying a slot of *checkout*."""
    qs = checkout.registrations.filter(status__in=Registration.ACTIVE_STATUSES)
    if exclude is not None and exclude.pk:
        qs = qs.exclude(pk=exclude.pk)
    return qs.count()


def ensure_slot_available(checkout: Checkout, *, exclude: Registration | None = None) -> None:
    """Refuse a new active registration under *checkout* unless a slot is free.

    The caller must hold the row lock from :func:`lock_checkout`.

    Raises:
        PermissionDenied: If the checkout is cancelled or refunded, has no
            purchased amount, or every slot is taken.
    """
    if checkout.status == Checkout.Status.REFUNDED:
        raise PermissionDenied("Não é possível ativar uma inscrição cuja compra foi estornada.")
    if checkout.status == Checkout.Status.DELETED:
        raise PermissionDenied("Não é possível ativar uma inscrição cuja compra foi cancelada.")
    if not checkout.amount:
        raise PermissionDenied("Aquisição não possui um número de inscrições")
    if checkout.capacity - active_registration_count(checkout, exclude=exclude) <= 0:
        logger.warning("Refused registration for checkout %s: no slot available", checkout.pk)
        raise PermissionDenied("Compra já atingiu o número máximo de inscrições ativas")


def ensure_event_capacity(event: Event, *, exclude: Registration | None = None) -> None:
    """Refuse a new active registration when the event is full.

    Acquires a row lock on the event so concurrent registrations for the same
    event are serialized.

    Raises:
        PermissionDenied: If ``max_participants`` is set and reached.
    """
    locked = Event.objects.select_for_update().get(pk=event.pk)
    if not locked.max_participants:
        return
    qs = Registration.objects.filter(event=locked, status__in=Registration.ACTIVE_STATUSES)
    if exclude is not None and exclude.pk:
        qs = qs.exclude(pk=exclude.pk)
    if qs.count() >= locked.max_participants:
        logger.warning("Refused registration for event %s: event is full", locked.pk)
        raise PermissionDenied("Evento atingiu o número máximo de participantes")


def form_to_fields(form: Mapping) -> dict[str, object]:
    """Map a camelCase attendee form to model field values.

    Strings are stripped, name-like fields upper-cased and CPF/phone reduced
    to digits. Keys absent from *form* are left out.
    """
    fields: dict[str, object] = {}
    for key, field_name in FORM_FIELDS.items():
        if key not in form or form[key] is None:
            continue
        value = form[key]
        if key in BOOLEAN_FIELDS:
            if not isinstance(value, bool):
                raise ValidationError(f"{key} deve ser verdadeiro ou falso")
            fields[field_name] = value
            continue
        if not isinstance(value, str):
            raise ValidationError(f"{key} deve ser um texto")
        value = value.strip()
        if key in UPPERCASE_FIELDS:
            value = value.upper()
        elif key in DIGIT_FIELDS:
            value = only_digits(value)
        fields[field_name] = value
    return fields


def is_registration_owner(registration: Registration, user: object) -> bool:
    """Whether *user* is the attendee or the creator of *registration*."""
    pk = getattr(user, "pk", None)
    if pk is None:
        return False
    return pk in (registration.attendee_id, registration.created_by_id)


def get_registration(registration_id: str) -> Registration:
    """Return the registration or raise ``Http404``."""
    try:
        return Registration.objects.select_related("checkout", "event").get(pk=registration_id)
    except Registration.DoesNotExist as exc:
        raise Http404("Inscrição não encontrada") from exc


class RegistrationService:
    """Stateless service for registration operations."""

    @staticmethod
    @transaction.atomic
    def create(actor: object, data: Mapping) -> Registration:
        """Create a registration from a buyer or admin request.

        ``data`` carries the attendee form plus ``eventId``, an optional
        ``checkoutId``, an optional ``attendeeUserId`` and an optional
        ``registrateMyself`` flag. A buyer registering themselves gets the
        composite ``eventId_userId`` key, which makes the self-registration
        unique; everyone else gets a random key.

        Raises:
            ValidationError: If the form is invalid, the event is not open or
                the self-registration already exists.
            PermissionDenied: If the actor may not register under the
                checkout, or no slot is free.
            Http404: If the event or checkout does not exist.
        """
        if not isinstance(data, Mapping):
            raise ValidationError("Valores inválidos para criação da inscrição")
        event_id = data.get("eventId")
        if not isinstance(event_id, str) or not event_id.strip():
            raise ValidationError("eventId é obrigatório")
        validate_registration_form(data)

        admin = is_admin(actor)
        event = Event.objects.filter(pk=event_id.strip()).first()
        if event is None:
            raise Http404("Evento não encontrado.")
        if not event.is_open and not admin:
            raise ValidationError("Evento não está aberto para inscrições")

        checkout = None
        checkout_id = data.get("checkoutId")
        if checkout_id:
            try:
                checkout = lock_checkout(checkout_id)
            except Checkout.DoesNotExist as exc:
                raise Http404("Compra da inscrição não encontrada") from exc
            if checkout.event_id != event.pk:
                raise ValidationError("A compra informada não pertence a este evento")
            if checkout.user_id != actor.pk and not admin:
                raise PermissionDenied("Usuário não tem permissão para criar inscrição")
        elif not admin:
            raise PermissionDenied("Inscrição não está vinculada a uma aquisição")

        registrate_myself = data.get("registrateMyself") is True
        if registrate_myself:
            attendee = actor
            registration_id = compose_document_id(event.pk, user_identity(actor))
            if Registration.objects.filter(pk=registration_id).exists():
                raise ValidationError("Inscrição já existe")
        else:
            attendee = _resolve_attendee(data.get("attendeeUserId"))
            registration_id = None

        if checkout is not None:
            ensure_slot_available(checkout)
        ensure_event_capacity(event)
        status = initial_status_for(checkout)

        role = Registration.Role.BUYER
        if admin and (checkout is None or checkout.user_id != actor.pk):
            role = Registration.Role.ADMIN

        registration = Registration(
            event=event,
            checkout=checkout,
            attendee=attendee,
            created_by=actor,
            created_by_role=role,
            status=status,
            **form_to_fields(data),
        )
        if registration_id is not None:
            registration.pk = registration_id
        registration.save(force_insert=True)
        logger.info("Created registration %s for event %s (%s)", registration.pk, event.pk, status)
        registration_created.send(sender=Registration, registration=registration, voucher=None)
        return registration

    @staticmethod
    @transaction.atomic
    def update(registration: Registration, data: Mapping, actor: object) -> Registration:
        """Replace the attendee form of *registration*.

        The full form is required, including both consent booleans.

        Raises:
            PermissionDenied: If the actor is neither the owner nor an admin.
            ValidationError: If the form is incomplete or invalid.
        """
        if not is_registration_owner(registration, actor) and not is_admin(actor):
            raise PermissionDenied("Usuário não tem permissão para atualizar esta inscrição")
        if not isinstance(data, Mapping):
            raise ValidationError("Dados inválidos para atualização da inscrição")
        validate_registration_form(data)
        for key in BOOLEAN_FIELDS:
            if not isinstance(data.get(key), bool):
                raise ValidationError("Dados inválidos para atualização da inscrição")

        fields = form_to_fields(data)
        for name, value in fields.items():
            setattr(registration, name, value)
        registration.save(update_fields=[*fields, "updated_at"])
        logger.info("Updated registration %s", registration.pk)
        return registration

    @staticmethod
    @transaction.atomic
    def set_status(registration: Registration, status: object, actor: object) -> Registration:
        """Change a registration's status.

        Moving a registration into an active status (``ok`` or ``pending``)
        claims a slot of its checkout: the checkout row is locked and the
        slot count excludes the registration itself.

        Raises:
            ValidationError: If *status* is not a registration status.
            PermissionDenied: If the actor is not the attendee, the
                checkout's buyer or an admin, or no slot is free.
        """
        if status not in Registration.Status.values:
            raise ValidationError("Valor inválido para situação da inscrição")

        checkout = None
        if registration.checkout_id:
            try:
                checkout = lock_checkout(registration.checkout_id)
            except Checkout.DoesNotExist as exc:
                raise Http404("Compra da inscrição não encontrada") from exc

        allowed = (
            is_registration_owner(registration, actor)
            or (checkout is not None and checkout.user_id == actor.pk)
            or is_admin(actor)
        )
        if not allowed:
            raise PermissionDenied("Usuário não tem permissão para atualizar esta inscrição")

        registration = Registration.objects.select_for_update().get(pk=registration.pk)
        if status in Registration.ACTIVE_STATUSES and not registration.is_active:
            if checkout is not None:
                ensure_slot_available(checkout, exclude=registration)
            ensure_event_capacity(registration.event, exclude=registration)
        elif status == Registration.Status.OK and checkout is not None and not checkout.is_active:
            ensure_slot_available(checkout, exclude=registration)

        registration.status = status
        registration.invalidated_by_checkout = False
        registration.save(update_fields=["status", "invalidated_by_checkout", "updated_at"])
        logger.info("Registration %s set to %s by %s", registration.pk, status, actor)
        return registration

    @staticmethod
    @transaction.atomic
    def delete(registration: Registration, actor: object) -> None:
        """Remove a voucher registration at the attendee's own request.

        Raises:
            PermissionDenied: If the registration was not created through a
                voucher by *actor*.
        """
        pk = getattr(actor, "pk", None)
        own = pk is not None and registration.attendee_id == pk and registration.created_by_id == pk
        if not registration.voucher_code or not own:
            msg = "Somente inscrições feitas por voucher podem ser removidas pelo próprio participante"
            raise PermissionDenied(msg)
        logger.info("Attendee %s deleted voucher registration %s", actor, registration.pk)
        registration.delete()


def _resolve_attendee(username: object):
    if not username:
        return None
    if not isinstance(username, str):
        raise ValidationError("attendeeUserId deve ser um texto")
    user_model = get_user_model()
    try:
        return user_model.objects.get(**{user_model.USERNAME_FIELD: username})
    except user_model.DoesNotExist as exc:
        raise Http404("Participante não encontrado") from exc

