"""Django app configuration for the registration app."""

from django.apps import AppConfig


class DjangoCheckoutRegistrationConfig(AppConfig):
    """Configuration for the registration app."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "django_checkout.registration"
    label = "checkout_registration"
    verbose_name = "Registration"
