"""Tests for bearer token authentication in django_checkout.auth."""

import pytest
from django.contrib.auth import get_user_model
from django.test import override_settings

from django_checkout.auth import (
    AuthenticationFailed,
    authenticate_request,
    decode_token,
    get_bearer_token,
    is_admin,
    resolve_user,
    user_identity,
)
from tests.helpers import TOKEN_SECRET, make_token

User = get_user_model()


# -- Header parsing -------------------------------------------------------------


def test_get_bearer_token_reads_header(rf):
    request = rf.get("/", HTTP_AUTHORIZATION="Bearer abc.def.ghi")
    assert get_bearer_token(request) == "abc.def.ghi"


def test_get_bearer_token_is_case_insensitive(rf):
    request = rf.get("/", HTTP_AUTHORIZATION="bearer abc")
    assert get_bearer_token(request) == "abc"


def test_get_bearer_token_ignores_other_schemes(rf):
    assert get_bearer_token(rf.get("/", HTTP_AUTHORIZATION="Basic dXNlcjpwYXNz")) is None
    assert get_bearer_token(rf.get("/")) is None
    assert get_bearer_token(rf.get("/", HTTP_AUTHORIZATION="Bearer   ")) is None


# -- Token decoding ---------------------------------------------------------------


def test_decode_token_returns_claims():
    claims = decode_token(make_token("maria", email="maria@example.com"))
    assert claims["sub"] == "maria"
    assert claims["email"] == "maria@example.com"


def test_decode_token_rejects_expired_token():
    with pytest.raises(AuthenticationFailed, match="Token expirado"):
        decode_token(make_token("maria", expires_in=-60))


def test_decode_token_rejects_wrong_signature():
    token = make_token("maria", secret="another-secret-that-is-long-enough-to-sign")
    with pytest.raises(AuthenticationFailed, match="Token inválido"):
        decode_token(token)


def test_decode_token_rejects_garbage():
    with pytest.raises(AuthenticationFailed, match="Token inválido"):
        decode_token("not-a-token")


def test_decode_token_requires_identity_claim():
    token = make_token("")
    with pytest.raises(AuthenticationFailed, match="sem identificação"):
        decode_token(token)


def test_decode_token_checks_configured_audience():
    config = {"auth": {"secret_key": TOKEN_SECRET, "audience": "checkout-api"}}
    with override_settings(DJANGO_CHECKOUT=config):
        assert decode_token(make_token("maria", aud="checkout-api"))["sub"] == "maria"
        with pytest.raises(AuthenticationFailed, match="Token inválido"):
            decode_token(make_token("maria", aud="someone-else"))


def test_decode_token_checks_configured_issuer():
    config = {"auth": {"secret_key": TOKEN_SECRET, "issuer": "https://auth.example.com"}}
    with override_settings(DJANGO_CHECKOUT=config):
        with pytest.raises(AuthenticationFailed, match="Token inválido"):
            decode_token(make_token("maria", iss="https://evil.example.com"))


def test_decode_token_honours_custom_user_claim():
    config = {"auth": {"secret_key": TOKEN_SECRET, "user_claim": "uid"}}
    with override_settings(DJANGO_CHECKOUT=config):
        assert decode_token(make_token("ignored", uid="firebase-uid"))["uid"] == "firebase-uid"


# -- User resolution ------------------------------------------------------------


@pytest.mark.django_db
class TestResolveUser:
    def test_provisions_unknown_user(self):
        user = resolve_user({"sub": "novo", "email": "novo@example.com"})

        assert user.username == "novo"
        assert user.email == "novo@example.com"
        assert not user.has_usable_password()

    def test_returns_existing_user(self, buyer):
        assert resolve_user({"sub": "buyer"}) == buyer

    def test_refuses_unknown_user_when_provisioning_disabled(self):
        config = {"auth": {"secret_key": TOKEN_SECRET, "create_users": False}}
        with override_settings(DJANGO_CHECKOUT=config):
            with pytest.raises(AuthenticationFailed, match="Usuário não encontrado"):
                resolve_user({"sub": "ghost"})

    def test_refuses_inactive_user(self, buyer):
        buyer.is_active = False
        buyer.save()
        with pytest.raises(AuthenticationFailed, match="Usuário inativo"):
            resolve_user({"sub": "buyer"})


@pytest.mark.django_db
def test_authenticate_request_requires_header(rf):
    with pytest.raises(AuthenticationFailed, match="ausente"):
        authenticate_request(rf.get("/"))


@pytest.mark.django_db
def test_authenticate_request_returns_user(rf, buyer):
    request = rf.get("/", HTTP_AUTHORIZATION=f"Bearer {make_token('buyer')}")
    assert authenticate_request(request) == buyer


# -- Roles ------------------------------------------------------------------------


@pytest.mark.django_db
def test_is_admin_for_staff_and_superusers(buyer, staff):
    superuser = User.objects.create_superuser(username="root", email="root@example.com", password="x")

    assert is_admin(staff)
    assert is_admin(superuser)
    assert not is_admin(buyer)
    assert not is_admin(None)


@pytest.mark.django_db
def test_user_identity_is_username(buyer):
    assert user_identity(buyer) == "buyer"
