import pytest
from django.test import override_settings

from django_checkout.settings import AuthConfig, CheckoutConfig, get_config


def test_get_config_defaults_without_setting() -> None:
    with override_settings(DJANGO_CHECKOUT={}):
        config = get_config()

    assert isinstance(config, CheckoutConfig)
    assert config.auth == AuthConfig()
    assert config.export.timezone == "America/Sao_Paulo"
    assert config.export.delimiter == ";"
    assert config.voucher_code_length == 8
    assert config.currency == "BRL"


def test_get_config_rejects_non_mapping_root() -> None:
    with override_settings(DJANGO_CHECKOUT=["bad"]):
        with pytest.raises(TypeError, match="must be a mapping"):
            get_config()


def test_get_config_rejects_non_mapping_nested_sections() -> None:
    with override_settings(DJANGO_CHECKOUT={"auth": ["bad"]}):
        with pytest.raises(TypeError, match=r"DJANGO_CHECKOUT\['auth'\] must be a mapping"):
            get_config()

    with override_settings(DJANGO_CHECKOUT={"export": "bad"}):
        with pytest.raises(TypeError, match=r"DJANGO_CHECKOUT\['export'\] must be a mapping"):
            get_config()


def test_get_config_accepts_single_algorithm_string() -> None:
    with override_settings(DJANGO_CHECKOUT={"auth": {"algorithms": "HS512"}}):
        assert get_config().auth.algorithms == ("HS512",)


def test_get_config_validates_primitive_values() -> None:
    with override_settings(DJANGO_CHECKOUT={"auth": {"algorithms": []}}):
        with pytest.raises(ValueError, match="algorithms"):
            get_config()

    with override_settings(DJANGO_CHECKOUT={"auth": {"leeway": -1}}):
        with pytest.raises(ValueError, match="leeway"):
            get_config()

    with override_settings(DJANGO_CHECKOUT={"auth": {"create_users": "yes"}}):
        with pytest.raises(TypeError, match="create_users"):
            get_config()

    with override_settings(DJANGO_CHECKOUT={"voucher_code_length": 4}):
        with pytest.raises(ValueError, match="voucher_code_length"):
            get_config()

    with override_settings(DJANGO_CHECKOUT={"attachment_max_bytes": 0}):
        with pytest.raises(ValueError, match="attachment_max_bytes"):
            get_config()

    with override_settings(DJANGO_CHECKOUT={"currency": " "}):
        with pytest.raises(ValueError, match="currency"):
            get_config()

    with override_settings(DJANGO_CHECKOUT={"export": {"delimiter": ";;"}}):
        with pytest.raises(ValueError, match="delimiter"):
            get_config()

    with override_settings(DJANGO_CHECKOUT={"export": {"timezone": "Mars/Olympus"}}):
        with pytest.raises(ValueError, match="time zone"):
            get_config()


def test_get_config_rejects_unknown_keys() -> None:
    with override_settings(DJANGO_CHECKOUT={"gateway": {}}):
        with pytest.raises(TypeError):
            get_config()


def test_get_config_cache_clears_on_setting_changed() -> None:
    with override_settings(DJANGO_CHECKOUT={"currency": "USD"}):
        assert get_config().currency == "USD"
    with override_settings(DJANGO_CHECKOUT={"currency": "EUR"}):
        assert get_config().currency == "EUR"
