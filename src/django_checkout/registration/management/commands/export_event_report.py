"""Management command to export an event's checkouts or registrations as CSV."""

import logging
from pathlib import Path
from typing import Any

from django.core.management.base import BaseCommand, CommandError, CommandParser

from django_checkout.events.models import Event
from django_checkout.registration.models import Checkout, Registration
from django_checkout.registration.services.export import format_checkout_row, format_registration_row, write_csv

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    """Write a spreadsheet report for one event.

    Usage::

        manage.py export_event_report congresso-2026 --kind registrations
        manage.py export_event_report congresso-2026 --kind checkouts --output checkouts.csv
        manage.py export_event_report congresso-2026 --unmask-documents
    """

    help = "Export the checkouts or registrations of an event as CSV."

    def add_arguments(self, parser: CommandParser) -> None:
        """Define the command-line arguments accepted by this command."""
        parser.add_argument("event_id", help="Identifier of the event to export.")
        parser.add_argument(
            "--kind",
            choices=("checkouts", "registrations"),
            default="registrations",
            help="Which report to write (default: registrations).",
        )
        parser.add_argument(
            "--output",
            default="",
            help="File to write; standard output when omitted.",
        )
        parser.add_argument(
            "--status",
            default="",
            help="Only include rows with this status.",
        )
        parser.add_argument(
            "--unmask-documents",
            action="store_true",
            default=False,
            help="Write full CPF numbers instead of masked ones.",
        )

    def handle(self, *args: Any, **options: Any) -> None:
        """Execute the export."""
        event = Event.objects.filter(pk=options["event_id"]).first()
        if event is None:
            msg = f"Event '{options['event_id']}' does not exist."
            raise CommandError(msg)

        kind: str = options["kind"]
        status: str = options["status"]
        if kind == "checkouts":
            qs = Checkout.objects.filter(event=event)
            if status:
                qs = qs.filter(status=status)
            rows = [format_checkout_row(c, event) for c in qs]
        else:
            qs = Registration.objects.filter(event=event)
            if status:
                qs = qs.filter(status=status)
            mask = not options["unmask_documents"]
            rows = [format_registration_row(r, mask_documents=mask) for r in qs]

        output: str = options["output"]
        if output:
            with Path(output).open("w", encoding="utf-8", newline="") as fh:
                count = write_csv(rows, fh)
            self.stderr.write(self.style.SUCCESS(f"Wrote {count} {kind} rows to {output}."))
        else:
            count = write_csv(rows, self.stdout, bom=False)
        logger.info("Exported %d %s rows of event %s", count, kind, event.pk)
