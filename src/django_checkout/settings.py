"""Typed configuration for django-checkout.

Reads a single ``DJANGO_CHECKOUT`` dict from Django settings and exposes it as
composed, frozen dataclasses with sensible defaults.

Usage::

    from django_checkout.settings import get_config

    config = get_config()
    config.auth.secret_key
    config.export.timezone
    config.currency
"""

import functools
import zoneinfo
from collections.abc import Mapping
from dataclasses import dataclass, field

from django.conf import settings
from django.test.signals import setting_changed


@dataclass(frozen=True, slots=True)
class AuthConfig:
    """Bearer identity-token verification settings."""

    secret_key: str | None = None
    algorithms: tuple[str, ...] = ("HS256",)
    audience: str | None = None
    issuer: str | None = None
    user_claim: str = "sub"
    email_claim: str = "email"
    leeway: int = 0
    create_users: bool = True


@dataclass(frozen=True, slots=True)
class ExportConfig:
    """Spreadsheet report settings."""

    timezone: str = "America/Sao_Paulo"
    delimiter: str = ";"


@dataclass(frozen=True, slots=True)
class CheckoutConfig:
    """Top-level django-checkout configuration."""

    auth: AuthConfig = field(default_factory=AuthConfig)
    export: ExportConfig = field(default_factory=ExportConfig)
    voucher_code_length: int = 8
    attachment_max_bytes: int = 10 * 1024 * 1024
    currency: str = "BRL"


@functools.lru_cache(maxsize=1)
def get_config() -> CheckoutConfig:
    """Build and return the checkout configuration.

    Reads ``settings.DJANGO_CHECKOUT`` (a plain dict) and returns a frozen
    :class:`CheckoutConfig`.  The result is cached; the cache is cleared
    automatically when Django's ``setting_changed`` signal fires (e.g. inside
    ``override_settings``).
    """
    raw = getattr(settings, "DJANGO_CHECKOUT", {})
    if not isinstance(raw, Mapping):
        msg = "DJANGO_CHECKOUT must be a mapping (dict-like object)"
        raise TypeError(msg)
    raw_data = dict(raw)

    auth_data = raw_data.pop("auth", {})
    export_data = raw_data.pop("export", {})
    if not isinstance(auth_data, Mapping):
        msg = "DJANGO_CHECKOUT['auth'] must be a mapping (dict-like object)"
        raise TypeError(msg)
    if not isinstance(export_data, Mapping):
        msg = "DJANGO_CHECKOUT['export'] must be a mapping (dict-like object)"
        raise TypeError(msg)

    auth_data = dict(auth_data)
    if "algorithms" in auth_data:
        algorithms = auth_data["algorithms"]
        if isinstance(algorithms, str):
            algorithms = [algorithms]
        auth_data["algorithms"] = tuple(algorithms)

    config = CheckoutConfig(
        auth=AuthConfig(**auth_data),
        export=ExportConfig(**dict(export_data)),
        **raw_data,
    )
    _validate_checkout_config(config)
    return config


def _validate_checkout_config(config: CheckoutConfig) -> None:
    """Validate high-impact configuration values with clear error messages."""
    if not config.auth.algorithms or not all(isinstance(a, str) and a for a in config.auth.algorithms):
        msg = "DJANGO_CHECKOUT['auth']['algorithms'] must be a non-empty list of strings"
        raise ValueError(msg)
    if not isinstance(config.auth.user_claim, str) or not config.auth.user_claim.strip():
        msg = "DJANGO_CHECKOUT['auth']['user_claim'] must be a non-empty string"
        raise ValueError(msg)
    if not isinstance(config.auth.leeway, int) or config.auth.leeway < 0:
        msg = "DJANGO_CHECKOUT['auth']['leeway'] must be a non-negative integer"
        raise ValueError(msg)
    if not isinstance(config.auth.create_users, bool):
        msg = "DJANGO_CHECKOUT['auth']['create_users'] must be a boolean"
        raise TypeError(msg)
    if not isinstance(config.voucher_code_length, int) or not 6 <= config.voucher_code_length <= 32:
        msg = "DJANGO_CHECKOUT['voucher_code_length'] must be an integer between 6 and 32"
        raise ValueError(msg)
    if not isinstance(config.attachment_max_bytes, int) or config.attachment_max_bytes <= 0:
        msg = "DJANGO_CHECKOUT['attachment_max_bytes'] must be a positive integer"
        raise ValueError(msg)
    if not isinstance(config.currency, str) or not config.currency.strip():
        msg = "DJANGO_CHECKOUT['currency'] must be a non-empty string"
        raise ValueError(msg)
    if not isinstance(config.export.delimiter, str) or len(config.export.delimiter) != 1:
        msg = "DJANGO_CHECKOUT['export']['delimiter'] must be a single character"
        raise ValueError(msg)
    try:
        zoneinfo.ZoneInfo(config.export.timezone)
    except (zoneinfo.ZoneInfoNotFoundError, ValueError) as exc:
        msg = f"DJANGO_CHECKOUT['export']['timezone'] is not a known time zone: {config.export.timezone!r}"
        raise ValueError(msg) from exc


def _clear_config_cache(*, setting: str, **kwargs: object) -> None:  # noqa: ARG001
    """Clear the cached config when Django settings change during tests."""
    if setting == "DJANGO_CHECKOUT":
        get_config.cache_clear()


setting_changed.connect(_clear_config_cache, dispatch_uid="django_checkout.settings.clear_config_cache")
