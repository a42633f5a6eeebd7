"""Commitment ("empenho") payment workflow and payment attachments.

Institutional buyers pay through a multi-stage workflow tracked by
``Payment.status``: ``pending -> committed -> paid``. The stage decides
which attachment may be uploaded or removed, and an admin moves it one step
at a time. Each stage change is mirrored onto the checkout status (and from
there onto its registrations) in the same transaction.
"""

import logging

from django.core.exceptions import PermissionDenied, ValidationError
from django.core.files.uploadedfile import UploadedFile
from django.db import transaction
from django.http import Http404

from django_checkout.auth import is_admin
from django_checkout.registration.models import Attachment, Checkout, Payment
from django_checkout.registration.services.checkout import COMMITMENT_CHECKOUT_STATUS, CheckoutService
from django_checkout.registration.services.pricing import PricingConfigurationError, quote_for_event
from django_checkout.registration.services.registration import lock_checkout
from django_checkout.settings import get_config

logger = logging.getLogger(__name__)


def _ensure_owner_or_admin(checkout: Checkout, actor: object) -> None:
    if checkout.user_id != getattr(actor, "pk", None) and not is_admin(actor):
        raise PermissionDenied("Usuário não autorizado")


def _ensure_file(file: UploadedFile | None) -> UploadedFile:
    if file is None:
        raise ValidationError("Arquivo não fornecido")
    max_bytes = get_config().attachment_max_bytes
    if file.size is not None and file.size > max_bytes:
        raise ValidationError(f"Arquivo excede o tamanho máximo de {max_bytes} bytes")
    return file


def _store_attachment(payment: Payment, kind: str, file: UploadedFile, actor: object) -> Attachment:
    """Replace the attachment of *kind* on *payment* with *file*."""
    existing = payment.attachments.filter(kind=kind).first()
    if existing is not None:
        existing.file.delete(save=False)
        existing.delete()
    attachment = Attachment(
        payment=payment,
        kind=kind,
        file_name=file.name or f"{kind}Attachment",
        content_type=getattr(file, "content_type", "") or "",
        uploaded_by=actor if getattr(actor, "pk", None) else None,
    )
    attachment.file.save(attachment.file_name, file, save=False)
    attachment.save()
    logger.info("Stored %s attachment for checkout %s at %s", kind, payment.checkout_id, attachment.storage_path)
    return attachment


def _payment_for(checkout: Checkout) -> Payment:
    payment, _ = Payment.objects.select_for_update().get_or_create(checkout=checkout)
    return payment


class PaymentService:
    """Stateless service for payment attachments and commitment stages."""

    @staticmethod
    @transaction.atomic
    def upload_commitment_receipt(checkout: Checkout, file: UploadedFile | None, actor: object) -> Attachment:
        """Upload the commitment note and (re)start the commitment workflow.

        Raises:
            PermissionDenied: If the actor is neither the owner nor an admin.
            ValidationError: If no file is given, the buyer is not an
                organization paying by commitment, the checkout is inactive,
                or the commitment was already validated.
        """
        _ensure_owner_or_admin(checkout, actor)
        file = _ensure_file(file)
        checkout = lock_checkout(checkout.pk)
        if not checkout.pays_by_commitment:
            raise ValidationError("Recibo de empenho só pode ser enviado para aquisições por empenho.")
        if not checkout.is_active:
            raise ValidationError("Aquisição cancelada não aceita anexos")

        payment = _payment_for(checkout)
        if payment.is_commitment and payment.status != Payment.Status.PENDING:
            raise ValidationError("Recibo de empenho já validado pela organização não pode ser modificado.")

        try:
            value = quote_for_event(checkout.event, checkout.amount) if checkout.amount else 0
        except PricingConfigurationError as exc:
            raise ValidationError("Evento sem tabela de preços configurada") from exc
        payment.method = Payment.Method.EMPENHO
        payment.status = Payment.Status.PENDING
        payment.value = checkout.total_value if checkout.total_value is not None else value
        payment.save()
        return _store_attachment(payment, Attachment.Kind.COMMITMENT, file, actor)

    @staticmethod
    @transaction.atomic
    def upload_payment_receipt(checkout: Checkout, file: UploadedFile | None, actor: object) -> Attachment:
        """Upload the proof of payment.

        Raises:
            PermissionDenied: If the actor is neither the owner nor an admin.
            ValidationError: If no file is given, the checkout is inactive or
                the payment was already validated.
        """
        _ensure_owner_or_admin(checkout, actor)
        file = _ensure_file(file)
        checkout = lock_checkout(checkout.pk)
        if not checkout.is_active:
            raise ValidationError("Aquisição cancelada não aceita anexos")
        payment = _payment_for(checkout)
        if payment.status == Payment.Status.PAID or checkout.status == Checkout.Status.PAID:
            raise ValidationError("Comprovante de pagamento já validado pela organização não pode ser modificado.")
        return _store_attachment(payment, Attachment.Kind.PAYMENT, file, actor)

    @staticmethod
    @transaction.atomic
    def upload_invoice(checkout: Checkout, file: UploadedFile | None, actor: object) -> Attachment:
        """Upload the invoice issued for a settled checkout (admins only).

        Raises:
            PermissionDenied: If the actor is not an admin.
            ValidationError: If no file is given or the checkout is not paid.
        """
        if not is_admin(actor):
            raise PermissionDenied("Apenas administradores podem enviar a nota fiscal")
        file = _ensure_file(file)
        checkout = lock_checkout(checkout.pk)
        if checkout.status not in (Checkout.Status.PAID, Checkout.Status.COMPLETED):
            raise ValidationError("Nota fiscal só pode ser enviada para aquisições pagas")
        payment = _payment_for(checkout)
        return _store_attachment(payment, Attachment.Kind.INVOICE, file, actor)

    @staticmethod
    @transaction.atomic
    def delete_attachment(checkout: Checkout, kind: object, actor: object) -> None:
        """Remove an uploaded attachment and its stored file.

        Raises:
            ValidationError: If *kind* is unknown or the stage forbids removal.
            PermissionDenied: If the actor may not remove it.
            Http404: If no such attachment exists.
        """
        if kind not in Attachment.Kind.values:
            raise ValidationError("Tipo de anexo inválido")
        if kind == Attachment.Kind.INVOICE:
            if not is_admin(actor):
                raise PermissionDenied("Apenas administradores podem remover a nota fiscal")
        else:
            _ensure_owner_or_admin(checkout, actor)

        checkout = lock_checkout(checkout.pk)
        payment = Payment.objects.select_for_update().filter(checkout=checkout).first()
        if payment is None:
            raise Http404("Aquisição não tem informações de pagamento")
        if kind == Attachment.Kind.COMMITMENT and payment.status != Payment.Status.PENDING:
            raise ValidationError("Recibo de empenho já validado pela organização não pode ser modificado")
        if kind == Attachment.Kind.PAYMENT and payment.status == Payment.Status.PAID:
            raise ValidationError("Comprovante de pagamento já validado pela organização não pode ser modificado")

        attachment = payment.attachment(kind)
        if attachment is None:
            raise Http404("Anexo não encontrado")
        attachment.file.delete(save=False)
        attachment.delete()
        logger.info("Removed %s attachment of checkout %s by %s", kind, checkout.pk, actor)

    @staticmethod
    @transaction.atomic
    def set_commitment_status(checkout: Checkout, new_status: object, actor: object) -> Payment:
        """Move a commitment payment one stage and mirror it on the checkout.

        Raises:
            PermissionDenied: If the actor is not an admin.
            ValidationError: If the status is unknown, the checkout is
                cancelled or refunded, the payment is not a commitment, or the
                move skips a stage.
            Http404: If the checkout has no payment record.
        """
        if new_status not in Payment.Status.values:
            raise ValidationError("Situação inválida")
        if not is_admin(actor):
            raise PermissionDenied("Apenas administradores podem alterar o status do pagamento")

        checkout = lock_checkout(checkout.pk)
        if not checkout.is_active:
            raise ValidationError("Pagamento por empenho não pode ser modificado pois a aquisição está cancelada")
        payment = Payment.objects.select_for_update().filter(checkout=checkout).first()
        if payment is None:
            raise Http404("Aquisição não tem informações de pagamento")
        if not payment.is_commitment:
            raise ValidationError("Pagamento da aquisição não consiste em pagamento por empenho")

        current = Payment.STAGES.index(payment.status)
        target = Payment.STAGES.index(new_status)
        if current == target:
            return payment
        if abs(target - current) > 1:
            if target > current:
                raise ValidationError("Não é possível marcar como pago sem antes marcar como empenhado")
            raise ValidationError("Não é possível alterar a situação de pago para pendente de uma só vez.")

        payment.status = new_status
        payment.save(update_fields=["status", "updated_at"])
        CheckoutService.transition(checkout, COMMITMENT_CHECKOUT_STATUS[new_status], actor)
        logger.info("Commitment payment of checkout %s moved to %s by %s", checkout.pk, new_status, actor)
        return payment

    @staticmethod
    def validate_stage(checkout: Checkout, actor: object) -> Payment:
        """Advance the commitment payment one stage."""
        payment = Payment.objects.filter(checkout=checkout).first()
        if payment is None:
            raise Http404("Aquisição não tem informações de pagamento")
        index = Payment.STAGES.index(payment.status)
        if index == len(Payment.STAGES) - 1:
            raise ValidationError("Pagamento já está na última etapa")
        return PaymentService.set_commitment_status(checkout, Payment.STAGES[index + 1], actor)

    @staticmethod
    def invalidate_stage(checkout: Checkout, actor: object) -> Payment:
        """Move the commitment payment back one stage."""
        payment = Payment.objects.filter(checkout=checkout).first()
        if payment is None:
            raise Http404("Aquisição não tem informações de pagamento")
        index = Payment.STAGES.index(payment.status)
        if index == 0:
            raise ValidationError("Pagamento já está na primeira etapa")
        return PaymentService.set_commitment_status(checkout, Payment.STAGES[index - 1], actor)
