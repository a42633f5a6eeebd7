"""Management command to bootstrap events from a TOML configuration file."""

from typing import Any

from django.core.management.base import BaseCommand, CommandError, CommandParser
from django.db import transaction

from django_checkout.config_loader import load_events_config
from django_checkout.events.models import Event, PriceBreakpoint


class Command(BaseCommand):
    """Create or update events and their price breakpoints from a TOML file.

    Usage::

        manage.py bootstrap_events --config events.toml
        manage.py bootstrap_events --config events.toml --update
        manage.py bootstrap_events --config events.toml --dry-run
    """

    help = "Create or update events and their price breakpoints from a TOML config file."

    def add_arguments(self, parser: CommandParser) -> None:
        """Define the command-line arguments accepted by this command."""
        parser.add_argument(
            "--config",
            required=True,
            help="Path to the events TOML configuration file.",
        )
        parser.add_argument(
            "--update",
            action="store_true",
            default=False,
            help="Update existing events instead of failing on a duplicate id.",
        )
        parser.add_argument(
            "--dry-run",
            action="store_true",
            default=False,
            help="Validate the config and print what would be created without saving.",
        )

    def handle(self, *args: Any, **options: Any) -> None:
        """Execute the bootstrap command."""
        try:
            events = load_events_config(options["config"])
        except (FileNotFoundError, TypeError, ValueError) as exc:
            raise CommandError(str(exc)) from exc

        if options["dry_run"]:
            self.stdout.write(self.style.NOTICE("Dry run: nothing will be saved."))
            for data in events:
                tiers = ", ".join(f"{bp.min_quantity}+ @ {bp.price_in_cents}" for bp in data["price_breakpoints"])
                self.stdout.write(f"  Event '{data['id']}' ({data['status']}): {tiers}")
            return

        created = updated = 0
        with transaction.atomic():
            for data in events:
                if self._bootstrap_event(data, update=options["update"]):
                    created += 1
                else:
                    updated += 1

        self.stdout.write(self.style.SUCCESS(f"Events: {created} created, {updated} updated."))

    def _bootstrap_event(self, data: dict[str, Any], *, update: bool) -> bool:
        """Create or update one event and replace its breakpoints.

        Returns:
            True if the event was created, False if it was updated.
        """
        fields = {
            "name": data["name"],
            "max_participants": data["max_participants"],
            "status": data["status"],
        }
        event = Event.objects.filter(pk=data["id"]).first()
        if event is not None and not update:
            msg = f"Event '{data['id']}' already exists. Use --update to modify it."
            raise CommandError(msg)

        created = event is None
        if created:
            event = Event.objects.create(id=data["id"], **fields)
        else:
            for name, value in fields.items():
                setattr(event, name, value)
            event.save()
            event.price_breakpoints.all().delete()

        PriceBreakpoint.objects.bulk_create(
            PriceBreakpoint(event=event, min_quantity=bp.min_quantity, price_in_cents=bp.price_in_cents)
            for bp in data["price_breakpoints"]
        )
        return created
