"""Tests for document, phone and form validators."""

import pytest
from django.core.exceptions import ValidationError

from django_checkout.registration.validators import (
    is_valid_cnpj,
    is_valid_cpf,
    is_valid_phone,
    only_digits,
    validate_billing_details,
    validate_cpf,
    validate_email,
    validate_registration_form,
)
from tests.helpers import OTHER_CPF, VALID_CNPJ, VALID_CPF, pf_billing, pj_billing, registration_form


def test_only_digits():
    assert only_digits("529.982.247-25") == "52998224725"
    assert only_digits(None) == ""


@pytest.mark.parametrize("value", [VALID_CPF, OTHER_CPF, "52998224725"])
def test_is_valid_cpf_accepts_valid_numbers(value):
    assert is_valid_cpf(value)


@pytest.mark.parametrize("value", ["529.982.247-26", "111.111.111-11", "1234", "", None])
def test_is_valid_cpf_rejects_invalid_numbers(value):
    assert not is_valid_cpf(value)


def test_is_valid_cnpj():
    assert is_valid_cnpj(VALID_CNPJ)
    assert not is_valid_cnpj("11.222.333/0001-82")
    assert not is_valid_cnpj("00.000.000/0000-00")


@pytest.mark.parametrize("value", ["(11) 98765-4321", "1933334444", "21 99999-0000"])
def test_is_valid_phone_accepts_landline_and_mobile(value):
    assert is_valid_phone(value)


@pytest.mark.parametrize("value", ["(11) 88765-4321", "(01) 3333-4444", "123", "1111111111"])
def test_is_valid_phone_rejects_malformed_numbers(value):
    assert not is_valid_phone(value)


def test_validate_cpf_messages():
    with pytest.raises(ValidationError, match="CPF é obrigatório"):
        validate_cpf("  ")
    with pytest.raises(ValidationError, match="11 dígitos"):
        validate_cpf("123")
    with pytest.raises(ValidationError, match="CPF inválido"):
        validate_cpf("529.982.247-26")


def test_validate_email_message():
    with pytest.raises(ValidationError, match="Email inválido"):
        validate_email("not-an-email")


class TestValidateBillingDetails:
    def test_accepts_person_details(self):
        validate_billing_details("pf", pf_billing())

    def test_accepts_organization_details(self):
        validate_billing_details("pj", pj_billing())

    def test_rejects_unknown_legal_entity(self):
        with pytest.raises(ValidationError, match="Tipo de pessoa"):
            validate_billing_details("xx", pf_billing())

    def test_rejects_non_object(self):
        with pytest.raises(ValidationError, match="objeto"):
            validate_billing_details("pf", ["a"])

    def test_lists_missing_fields(self):
        with pytest.raises(ValidationError, match="orgName, orgZip"):
            validate_billing_details("pj", pj_billing(orgName="", orgZip=None))

    def test_checks_cnpj(self):
        with pytest.raises(ValidationError, match="CNPJ inválido"):
            validate_billing_details("pj", pj_billing(orgCnpj="11.222.333/0001-82"))

    def test_checks_commitment_flag_type(self):
        with pytest.raises(ValidationError, match="paymentByCommitment"):
            validate_billing_details("pj", pj_billing(paymentByCommitment="yes"))


def test_validate_registration_form_accepts_complete_form():
    validate_registration_form(registration_form())


def test_validate_registration_form_lists_missing_fields():
    with pytest.raises(ValidationError, match="fullName, email"):
        validate_registration_form(registration_form(fullName=" ", email=None))


def test_validate_registration_form_checks_phone():
    with pytest.raises(ValidationError, match="Telefone inválido"):
        validate_registration_form(registration_form(phone="123"))
