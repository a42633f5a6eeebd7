"""Bearer identity-token authentication for the checkout API.

Callers send ``Authorization: Bearer <jwt>``. The token is verified with
PyJWT against the key, algorithms, audience and issuer configured under
``DJANGO_CHECKOUT['auth']``; the configured claim (``sub`` by default) is the
user's identity and becomes the Django ``username``.
"""

import logging

import jwt
from django.conf import settings
from django.contrib.auth import get_user_model
from django.http import HttpRequest

from django_checkout.settings import get_config

logger = logging.getLogger(__name__)

_BEARER_PREFIX = "bearer "


class AuthenticationFailed(Exception):
    """Raised when a request carries no usable identity token.

    The API layer maps it to ``401 Unauthorized``.
    """


def get_bearer_token(request: HttpRequest) -> str | None:
    """Return the raw token from the ``Authorization`` header, if any."""
    header = request.headers.get("Authorization", "")
    if not header.lower().startswith(_BEARER_PREFIX):
        return None
    token = header[len(_BEARER_PREFIX) :].strip()
    return token or None


def decode_token(token: str) -> dict:
    """Verify *token* and return its claims.

    Raises:
        AuthenticationFailed: If the signature, expiry, audience or issuer
            check fails, or the identity claim is missing.
    """
    auth = get_config().auth
    key = auth.secret_key or settings.SECRET_KEY
    options = {"verify_aud": auth.audience is not None}
    try:
        claims = jwt.decode(
            token,
            key,
            algorithms=list(auth.algorithms),
            audience=auth.audience,
            issuer=auth.issuer,
            leeway=auth.leeway,
            options=options,
        )
    except jwt.ExpiredSignatureError as exc:
        logger.info("Rejected expired identity token")
        raise AuthenticationFailed("Token expirado") from exc
    except jwt.InvalidTokenError as exc:
        logger.warning("Rejected invalid identity token: %s", exc)
        raise AuthenticationFailed("Token inválido") from exc

    identity = claims.get(auth.user_claim)
    if not isinstance(identity, str) or not identity.strip():
        raise AuthenticationFailed("Token sem identificação de usuário")
    return claims


def resolve_user(claims: dict):
    """Return the Django user named by *claims*, provisioning it when allowed.

    Raises:
        AuthenticationFailed: If the user does not exist and automatic
            provisioning is disabled, or the account is inactive.
    """
    auth = get_config().auth
    user_model = get_user_model()
    username = claims[auth.user_claim].strip()
    lookup = {user_model.USERNAME_FIELD: username}

    if auth.create_users:
        defaults = {}
        email = claims.get(auth.email_claim)
        if isinstance(email, str) and email:
            defaults["email"] = email
        user, created = user_model.objects.get_or_create(**lookup, defaults=defaults)
        if created:
            user.set_unusable_password()
            user.save(update_fields=["password"])
            logger.info("Provisioned user %s from identity token", username)
    else:
        try:
            user = user_model.objects.get(**lookup)
        except user_model.DoesNotExist as exc:
            raise AuthenticationFailed("Usuário não encontrado") from exc

    if not user.is_active:
        raise AuthenticationFailed("Usuário inativo")
    return user


def authenticate_request(request: HttpRequest):
    """Authenticate *request* from its bearer token and return the user.

    Raises:
        AuthenticationFailed: If the header is missing or the token is rejected.
    """
    token = get_bearer_token(request)
    if token is None:
        raise AuthenticationFailed("Token de autenticação ausente")
    return resolve_user(decode_token(token))


def is_admin(user: object) -> bool:
    """Return True for staff or superuser accounts."""
    if user is None or not getattr(user, "is_authenticated", False):
        return False
    return bool(getattr(user, "is_staff", False) or getattr(user, "is_superuser", False))


def user_identity(user: object) -> str:
    """Return the identity string used in composite document ids."""
    return user.get_username()
