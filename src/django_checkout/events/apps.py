"""Django app configuration for the events app."""

from django.apps import AppConfig


class DjangoCheckoutEventsConfig(AppConfig):
    """Configuration for the events app."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "django_checkout.events"
    label = "checkout_events"
    verbose_name = "Events"
