"""Django admin configuration for the events app."""

from typing import TYPE_CHECKING

from django.contrib import admin, messages
from django.core.exceptions import ValidationError
from django.forms.models import BaseInlineFormSet

from django_checkout.events.models import Event, PriceBreakpoint
from django_checkout.registration.services.checkout import CheckoutService
from django_checkout.registration.services.pricing import (
    Breakpoint,
    PricingConfigurationError,
    validate_breakpoints,
)

if TYPE_CHECKING:
    from django.db.models import QuerySet
    from django.http import HttpRequest


class PriceBreakpointFormSet(BaseInlineFormSet):
    """Inline formset that checks the submitted tiers as a whole.

    ``Event.clean`` only sees the rows already stored, so the tiers being
    edited are validated here before anything is saved.
    """

    def clean(self) -> None:
        """Reject a breakpoint list that would make pricing ambiguous."""
        super().clean()
        breakpoints = []
        for form in self.forms:
            if not hasattr(form, "cleaned_data") or not form.cleaned_data:
                continue
            if form.cleaned_data.get("DELETE"):
                continue
            data = form.cleaned_data
            if data.get("min_quantity") is None or data.get("price_in_cents") is None:
                continue
            breakpoints.append(Breakpoint(data["min_quantity"], data["price_in_cents"]))
        if not breakpoints:
            return
        try:
            validate_breakpoints(breakpoints)
        except PricingConfigurationError as exc:
            raise ValidationError(str(exc)) from exc


class PriceBreakpointInline(admin.TabularInline):
    """Inline editor for an event's quantity price tiers."""

    model = PriceBreakpoint
    formset = PriceBreakpointFormSet
    extra = 1


@admin.register(Event)
class EventAdmin(admin.ModelAdmin):
    """Admin interface for events.

    Price tiers are edited inline. The identifier cannot change after
    creation because it is embedded in every checkout key of the event.
    """

    list_display = ("id", "name", "status", "max_participants", "created_at")
    list_filter = ("status",)
    search_fields = ("id", "name")
    inlines = (PriceBreakpointInline,)
    actions = ("recompute_checkout_totals",)

    def get_readonly_fields(self, request: "HttpRequest", obj: Event | None = None) -> tuple[str, ...]:  # noqa: ARG002, D102
        if obj is not None:
            return ("id", "created_at", "updated_at")
        return ("created_at", "updated_at")

    @admin.action(description="Recompute checkout totals from the current price tiers")
    def recompute_checkout_totals(self, request: "HttpRequest", queryset: "QuerySet[Event]") -> None:  # noqa: D102
        for event in queryset:
            try:
                result = CheckoutService.recompute_totals(event)
            except ValidationError as exc:
                self.message_user(request, f"{event.pk}: {exc.message}", level=messages.ERROR)
                continue
            for error in result["errors"]:
                self.message_user(request, f"{error['checkoutId']}: {error['error']}", level=messages.ERROR)
            self.message_user(
                request,
                f"{event.pk}: {result['updated']} checkout(s) updated, {result['skipped']} skipped.",
                level=messages.WARNING if result["errors"] else messages.SUCCESS,
            )
