"""camelCase JSON documents for the checkout API.

The API keeps the document shapes its browser clients already consume, so
model instances are rendered to plain dicts here rather than through a
serializer framework.
"""

import datetime

from django_checkout.registration.models import Attachment, Checkout, Payment, Registration, Voucher


def _iso(value: datetime.datetime | None) -> str | None:
    return value.isoformat() if value else None


def attachment_document(attachment: Attachment) -> dict[str, object]:
    """Render an attachment reference."""
    return {
        "fileName": attachment.file_name,
        "contentType": attachment.content_type,
        "storagePath": attachment.storage_path,
        "uploadedAt": _iso(attachment.uploaded_at),
    }


def payment_document(payment: Payment | None) -> dict[str, object] | None:
    """Render the payment sub-document, attachments keyed ``<kind>Attachment``."""
    if payment is None:
        return None
    document: dict[str, object] = {
        "method": payment.method,
        "value": payment.value,
    }
    if payment.is_commitment:
        document["status"] = payment.status
    if payment.external_data:
        document["externalData"] = payment.external_data
    for attachment in payment.attachments.all():
        document[f"{attachment.kind}Attachment"] = attachment_document(attachment)
    return document


def checkout_document(checkout: Checkout) -> dict[str, object]:
    """Render a checkout as its stored document."""
    payment = Payment.objects.filter(checkout=checkout).prefetch_related("attachments").first()
    document: dict[str, object] = {
        "eventId": checkout.event_id,
        "userId": checkout.user.get_username(),
        "checkoutType": checkout.checkout_type,
        "status": checkout.status,
        "amount": checkout.amount,
        "complimentary": checkout.complimentary,
        "totalValue": checkout.total_value,
        "voucher": checkout.voucher or None,
        "registrateMyself": checkout.registrate_myself,
        "legalEntity": checkout.legal_entity or None,
        "billingDetails": checkout.billing_details,
        "payment": payment_document(payment),
        "createdAt": _iso(checkout.created_at),
        "updatedAt": _iso(checkout.updated_at),
        "deletedAt": _iso(checkout.deleted_at),
    }
    return document


def checkout_response(checkout: Checkout) -> dict[str, object]:
    """Wrap a checkout as ``{documentId, document}``."""
    return {"documentId": checkout.pk, "document": checkout_document(checkout)}


def registration_document(registration: Registration) -> dict[str, object]:
    """Render a registration as its stored document."""
    return {
        "eventId": registration.event_id,
        "checkoutId": registration.checkout_id,
        "attendeeUserId": registration.attendee.get_username() if registration.attendee_id else None,
        "createdByUserId": registration.created_by.get_username() if registration.created_by_id else None,
        "createdByRole": registration.created_by_role,
        "voucher": registration.voucher_code or None,
        "fullName": registration.full_name,
        "cpf": registration.cpf,
        "phone": registration.phone,
        "email": registration.email,
        "credentialName": registration.credential_name,
        "occupation": registration.occupation,
        "employer": registration.employer,
        "city": registration.city,
        "howDidYouHearAboutUs": registration.how_did_you_hear_about_us,
        "howDidYouHearAboutUsOther": registration.how_did_you_hear_about_us_other,
        "isPhoneWhatsapp": registration.is_phone_whatsapp,
        "useImage": registration.use_image,
        "status": registration.status,
        "createdAt": _iso(registration.created_at),
        "updatedAt": _iso(registration.updated_at),
    }


def registration_response(registration: Registration) -> dict[str, object]:
    """Wrap a registration as ``{documentId, document}``."""
    return {"documentId": registration.pk, "document": registration_document(registration)}


def voucher_document(voucher: Voucher) -> dict[str, object]:
    """Render a voucher."""
    return {
        "code": voucher.code,
        "checkoutId": voucher.checkout_id,
        "active": voucher.active,
        "createdAt": _iso(voucher.created_at),
        "updatedAt": _iso(voucher.updated_at),
    }
