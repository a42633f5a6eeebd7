"""Input validators for Brazilian document numbers, phones and request forms.

Each ``validate_*`` function raises :class:`django.core.exceptions.ValidationError`
with a Portuguese message suitable for returning to the buyer, and can be
attached to model or form fields as a regular Django validator.
"""

import re
from collections.abc import Mapping

from django.core.exceptions import ValidationError
from django.core.validators import EmailValidator

_NON_DIGITS = re.compile(r"\D")
_REPEATED = re.compile(r"^(\d)\1+$")

BILLING_REQUIRED_FIELDS: dict[str, tuple[str, ...]] = {
    "pf": ("fullName", "email", "phone"),
    "pj": (
        "orgName",
        "orgCnpj",
        "orgPhone",
        "orgAddress",
        "orgCity",
        "orgState",
        "orgZip",
        "responsibleName",
        "responsiblePhone",
        "responsibleEmail",
    ),
}

REGISTRATION_REQUIRED_FIELDS: tuple[str, ...] = ("fullName", "cpf", "phone", "email")

_email_validator = EmailValidator(message="Email inválido")


def only_digits(value: str | None) -> str:
    """Strip every non-digit character from *value*."""
    return _NON_DIGITS.sub("", value or "")


def _check_digit(digits: str, weights: list[int]) -> int:
    total = sum(int(d) * w for d, w in zip(digits, weights, strict=False))
    remainder = total % 11
    return 0 if remainder < 2 else 11 - remainder


def is_valid_cpf(value: str | None) -> bool:
    """Return True when *value* is a CPF with valid check digits."""
    digits = only_digits(value)
    if len(digits) != 11 or _REPEATED.match(digits):
        return False
    first = _check_digit(digits[:9], list(range(10, 1, -1)))
    second = _check_digit(digits[:10], list(range(11, 1, -1)))
    return digits[9:] == f"{first}{second}"


def is_valid_cnpj(value: str | None) -> bool:
    """Return True when *value* is a CNPJ with valid check digits."""
    digits = only_digits(value)
    if len(digits) != 14 or _REPEATED.match(digits):
        return False
    first = _check_digit(digits[:12], [5, 4, 3, 2, 9, 8, 7, 6, 5, 4, 3, 2])
    second = _check_digit(digits[:13], [6, 5, 4, 3, 2, 9, 8, 7, 6, 5, 4, 3, 2])
    return digits[12:] == f"{first}{second}"


def is_valid_phone(value: str | None) -> bool:
    """Return True for a Brazilian landline (10 digits) or mobile (11 digits) number.

    The area code must be between 11 and 99, and mobile numbers must start
    with a 9 after the area code.
    """
    digits = only_digits(value)
    if len(digits) not in (10, 11):
        return False
    if not 11 <= int(digits[:2]) <= 99:
        return False
    if len(digits) == 11 and digits[2] != "9":
        return False
    return not _REPEATED.match(digits)


def validate_cpf(value: str | None) -> None:
    """Django validator for CPF numbers."""
    if not value or not value.strip():
        raise ValidationError("CPF é obrigatório")
    if len(only_digits(value)) != 11:
        raise ValidationError("CPF deve ter 11 dígitos")
    if not is_valid_cpf(value):
        raise ValidationError("CPF inválido")


def validate_cnpj(value: str | None) -> None:
    """Django validator for CNPJ numbers."""
    if not value or not value.strip():
        raise ValidationError("CNPJ é obrigatório")
    if len(only_digits(value)) != 14:
        raise ValidationError("CNPJ deve ter 14 dígitos")
    if not is_valid_cnpj(value):
        raise ValidationError("CNPJ inválido")


def validate_phone(value: str | None) -> None:
    """Django validator for Brazilian phone numbers."""
    if not value or not value.strip():
        raise ValidationError("Telefone é obrigatório")
    if not is_valid_phone(value):
        raise ValidationError("Telefone inválido")


def validate_email(value: str | None) -> None:
    """Django validator for e-mail addresses with a Portuguese message."""
    if not value or not value.strip():
        raise ValidationError("Email é obrigatório")
    _email_validator(value.strip())


def _missing(data: Mapping, fields: tuple[str, ...]) -> list[str]:
    missing = []
    for name in fields:
        value = data.get(name)
        if value is None or (isinstance(value, str) and not value.strip()):
            missing.append(name)
    return missing


def validate_billing_details(legal_entity: str | None, details: object) -> None:
    """Check billing details against the required-fields table for *legal_entity*.

    Raises:
        ValidationError: If the legal entity is unknown, the details are not
            an object, a required field is missing, or a document number,
            phone or e-mail is malformed.
    """
    if legal_entity not in BILLING_REQUIRED_FIELDS:
        raise ValidationError("Tipo de pessoa inválido para os dados de cobrança")
    if not isinstance(details, Mapping):
        raise ValidationError("Dados de cobrança devem ser um objeto")

    missing = _missing(details, BILLING_REQUIRED_FIELDS[legal_entity])
    if missing:
        raise ValidationError(f"Dados de cobrança incompletos: {', '.join(missing)}")

    if legal_entity == "pf":
        validate_email(details["email"])
        validate_phone(details["phone"])
        return

    validate_cnpj(details["orgCnpj"])
    validate_phone(details["orgPhone"])
    validate_phone(details["responsiblePhone"])
    validate_email(details["responsibleEmail"])
    commitment = details.get("paymentByCommitment", False)
    if not isinstance(commitment, bool):
        raise ValidationError("paymentByCommitment deve ser verdadeiro ou falso")


def validate_registration_form(form: Mapping) -> None:
    """Check an attendee form: required fields present, CPF, phone and e-mail valid."""
    missing = _missing(form, REGISTRATION_REQUIRED_FIELDS)
    if missing:
        raise ValidationError(f"Campos obrigatórios ausentes: {', '.join(missing)}")
    validate_cpf(form["cpf"])
    validate_phone(form["phone"])
    validate_email(form["email"])
