"""Spreadsheet report rows for checkouts and registrations.

The row builders are pure: they take model instances and return ordered
dicts keyed by Portuguese column labels, with Brazilian currency and date
formatting. :func:`write_csv` streams a list of rows in a format spreadsheet
tools open directly (``;`` delimiter, UTF-8 byte order mark).
"""

import csv
import datetime
import zoneinfo
from collections.abc import Iterable
from typing import IO

from django_checkout.registration.models import Checkout, Registration
from django_checkout.registration.validators import only_digits
from django_checkout.settings import get_config

EMPTY = "-"

CHECKOUT_STATUS_DISPLAY: dict[str, str] = {
    Checkout.Status.PENDING: "Pendente",
    Checkout.Status.COMPLETED: "Concluído",
    Checkout.Status.APPROVED: "Aprovado",
    Checkout.Status.PAID: "Pago",
    Checkout.Status.REFUNDED: "Estornado",
    Checkout.Status.DELETED: "Cancelado",
}
REGISTRATION_STATUS_DISPLAY: dict[str, str] = {
    Registration.Status.OK: "Confirmada",
    Registration.Status.PENDING: "Pendente",
    Registration.Status.CANCELLED: "Cancelada",
    Registration.Status.INVALID: "Inválida",
}


def format_currency(cents: int | None) -> str:
    """Format integer cents as Brazilian reais, e.g. ``R$ 1.500,00``."""
    if cents is None:
        return EMPTY
    sign = "-" if cents < 0 else ""
    reais, centavos = divmod(abs(cents), 100)
    grouped = f"{reais:,}".replace(",", ".")
    return f"{sign}R$ {grouped},{centavos:02d}"


def format_datetime(value: datetime.datetime | None) -> str:
    """Format *value* as ``dd/mm/yyyy HH:MM`` in the configured time zone."""
    if value is None:
        return EMPTY
    tz = zoneinfo.ZoneInfo(get_config().export.timezone)
    if value.tzinfo is not None:
        value = value.astimezone(tz)
    return value.strftime("%d/%m/%Y %H:%M")


def format_cpf(value: str | None) -> str:
    """Format a CPF as ``000.000.000-00``."""
    digits = only_digits(value)
    if len(digits) != 11:
        return value or EMPTY
    return f"{digits[:3]}.{digits[3:6]}.{digits[6:9]}-{digits[9:]}"


def mask_cpf(value: str | None) -> str:
    """Hide the middle digits of a CPF: ``123.***.***-09``."""
    digits = only_digits(value)
    if len(digits) != 11:
        return "***.***.***-**"
    return f"{digits[:3]}.***.***-{digits[9:]}"


def format_cnpj(value: str | None) -> str:
    """Format a CNPJ as ``00.000.000/0000-00``."""
    digits = only_digits(value)
    if len(digits) != 14:
        return value or EMPTY
    return f"{digits[:2]}.{digits[2:5]}.{digits[5:8]}/{digits[8:12]}-{digits[12:]}"


def _yes_no(value: bool | None) -> str:
    return "Sim" if value else "Não"


def format_checkout_row(checkout: Checkout, event: object | None = None) -> dict[str, object]:
    """Flatten a checkout into a report row.

    Billing columns depend on the legal entity: person checkouts list the
    buyer's contact, organization checkouts list the organization and the
    responsible person.
    """
    event = event or checkout.event
    is_pf = checkout.legal_entity == Checkout.LegalEntity.PF
    details = checkout.billing_details if isinstance(checkout.billing_details, dict) else {}

    row: dict[str, object] = {
        "ID do Checkout": checkout.pk,
        "Evento": getattr(event, "name", "") or checkout.event_id,
        "Tipo de Pessoa": "Física" if is_pf else "Jurídica",
        "Status": CHECKOUT_STATUS_DISPLAY.get(checkout.status, "Desconhecido"),
        "Valor Total": format_currency(checkout.total_value) if checkout.amount else EMPTY,
        "Inscrições adquiridas": checkout.amount or 0,
        "Cortesias": checkout.complimentary or 0,
        "Inscrição para si mesmo": _yes_no(checkout.registrate_myself),
        "Voucher": checkout.voucher or EMPTY,
        "Data de Criação": format_datetime(checkout.created_at),
        "Data de Atualização": format_datetime(checkout.updated_at),
        "Data de Exclusão": format_datetime(checkout.deleted_at),
    }
    if is_pf and "fullName" in details:
        row.update(
            {
                "Nome Completo": details.get("fullName", ""),
                "Email": details.get("email", ""),
                "Telefone": details.get("phone", ""),
            }
        )
    elif not is_pf and "orgName" in details:
        row.update(
            {
                "Nome da Organização": details.get("orgName", ""),
                "CNPJ": format_cnpj(details.get("orgCnpj")),
                "Endereço": details.get("orgAddress", ""),
                "CEP": details.get("orgZip", ""),
                "Telefone da Organização": details.get("orgPhone", ""),
                "Nome do Responsável": details.get("responsibleName", ""),
                "Telefone do Responsável": details.get("responsiblePhone", ""),
                "Email do Responsável": details.get("responsibleEmail", ""),
                "Pagamento por Empenho": _yes_no(details.get("paymentByCommitment")),
            }
        )
    return row


def format_registration_row(registration: Registration, *, mask_documents: bool = True) -> dict[str, object]:
    """Flatten a registration into a report row.

    CPF numbers are masked unless *mask_documents* is False.
    """
    cpf = mask_cpf(registration.cpf) if mask_documents else format_cpf(registration.cpf)
    return {
        "ID da Inscrição": registration.pk,
        "Nome Completo": registration.full_name,
        "Email": registration.email or EMPTY,
        "Telefone": registration.phone or EMPTY,
        "CPF": cpf,
        "Situação": REGISTRATION_STATUS_DISPLAY.get(registration.status, "Desconhecido"),
        "Data de Inscrição": format_datetime(registration.created_at),
        "Data de Atualização": format_datetime(registration.updated_at),
        "ID do Checkout": registration.checkout_id or EMPTY,
        "Nome no Credencial": registration.credential_name or EMPTY,
        "Como soube do evento": registration.how_did_you_hear_about_us or EMPTY,
        "Como soube do evento (outro)": registration.how_did_you_hear_about_us_other or EMPTY,
        "Ocupação": registration.occupation or EMPTY,
        "Telefone é WhatsApp": _yes_no(registration.is_phone_whatsapp),
        "Autoriza uso de imagem": _yes_no(registration.use_image),
    }


def write_csv(rows: Iterable[dict[str, object]], stream: IO[str], *, bom: bool = True) -> int:
    """Write *rows* to *stream* as CSV and return the number of data rows.

    The header is the union of all row keys in first-seen order, so rows
    with different billing columns share one table.
    """
    rows = list(rows)
    fieldnames: list[str] = []
    for row in rows:
        for key in row:
            if key not in fieldnames:
                fieldnames.append(key)
    if bom:
        stream.write("\ufeff")
    writer = csv.DictWriter(stream, fieldnames=fieldnames, delimiter=get_config().export.delimiter, restval="")
    writer.writeheader()
    writer.writerows(rows)
    return len(rows)
