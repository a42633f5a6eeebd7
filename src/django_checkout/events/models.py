"""Event and price breakpoint models for django-checkout."""

from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator, RegexValidator
from django.db import models

from django_checkout.registration.services.pricing import PricingConfigurationError, validate_breakpoints

event_id_validator = RegexValidator(
    regex=r"^[A-Za-z0-9-]+$",
    message="Event identifiers may only contain letters, digits and hyphens.",
)


class Event(models.Model):
    """An event open for registration purchases.

    The primary key is shared with the CMS entry that carries the marketing
    copy (title, date, price text), so it is a plain string chosen by the
    admin rather than an auto-increment. Underscores are not allowed because
    the identifier is the first half of composite checkout keys.
    """

    class Status(models.TextChoices):
        """Lifecycle states for an event."""

        OPEN = "open", "Open"
        CLOSED = "closed", "Closed"
        CANCELED = "canceled", "Canceled"

    id = models.CharField(primary_key=True, max_length=100, validators=[event_id_validator])
    name = models.CharField(max_length=200, blank=True, default="")
    max_participants = models.PositiveIntegerField(
        default=0,
        help_text="Maximum number of participants. 0 means unlimited.",
    )
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.OPEN)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return self.name or self.id

    @property
    def is_open(self) -> bool:
        """Whether new purchases and registrations are accepted."""
        return self.status == self.Status.OPEN

    def clean(self) -> None:
        """Validate the stored breakpoint list against the pricing invariant."""
        super().clean()
        if self._state.adding:
            return
        try:
            validate_breakpoints(list(self.price_breakpoints.all()))
        except PricingConfigurationError as exc:
            raise ValidationError({"price_breakpoints": str(exc)}) from exc


class PriceBreakpoint(models.Model):
    """A quantity threshold at which the per-unit price of an event changes."""

    event = models.ForeignKey(Event, on_delete=models.CASCADE, related_name="price_breakpoints")
    min_quantity = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    price_in_cents = models.PositiveIntegerField()

    class Meta:
        ordering = ["min_quantity"]
        unique_together = [("event", "min_quantity")]

    def __str__(self) -> str:
        return f"{self.event_id}: {self.min_quantity}+ @ {self.price_in_cents}"
