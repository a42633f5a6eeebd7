"""Management command to reprice an event's checkouts after its tiers change."""

import logging
from typing import Any

from django.core.exceptions import ValidationError
from django.core.management.base import BaseCommand, CommandError, CommandParser

from django_checkout.events.models import Event
from django_checkout.registration.services.checkout import CheckoutService

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    """Recompute the totals of an event's acquire checkouts.

    Usage::

        manage.py recompute_checkout_totals congresso-2026
    """

    help = "Recompute the totals of an event's acquire checkouts from its current price tiers."

    def add_arguments(self, parser: CommandParser) -> None:
        """Define the command-line arguments accepted by this command."""
        parser.add_argument("event_id", help="Identifier of the event to reprice.")

    def handle(self, *args: Any, **options: Any) -> None:
        """Execute the repricing."""
        event = Event.objects.filter(pk=options["event_id"]).first()
        if event is None:
            msg = f"Event '{options['event_id']}' does not exist."
            raise CommandError(msg)

        try:
            result = CheckoutService.recompute_totals(event)
        except ValidationError as exc:
            raise CommandError(exc.message) from exc

        for error in result["errors"]:
            self.stderr.write(f"{error['checkoutId']}: {error['error']}")
        summary = f"{result['updated']} checkout(s) updated, {result['skipped']} skipped, {len(result['errors'])} errors."
        if result["errors"]:
            self.stdout.write(self.style.WARNING(summary))
        else:
            self.stdout.write(self.style.SUCCESS(summary))
