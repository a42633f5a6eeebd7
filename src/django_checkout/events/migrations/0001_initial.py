import django.core.validators
import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Event",
            fields=[
                (
                    "id",
                    models.CharField(
                        max_length=100,
                        primary_key=True,
                        serialize=False,
                        validators=[
                            django.core.validators.RegexValidator(
                                message="Event identifiers may only contain letters, digits and hyphens.",
                                regex="^[A-Za-z0-9-]+$",
                            )
                        ],
                    ),
                ),
                ("name", models.CharField(blank=True, default="", max_length=200)),
                (
                    "max_participants",
                    models.PositiveIntegerField(
                        default=0,
                        help_text="Maximum number of participants. 0 means unlimited.",
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[("open", "Open"), ("closed", "Closed"), ("canceled", "Canceled")],
                        default="open",
                        max_length=20,
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "ordering": ["-created_at"],
            },
        ),
        migrations.CreateModel(
            name="PriceBreakpoint",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "min_quantity",
                    models.PositiveIntegerField(validators=[django.core.validators.MinValueValidator(1)]),
                ),
                ("price_in_cents", models.PositiveIntegerField()),
                (
                    "event",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="price_breakpoints",
                        to="checkout_events.event",
                    ),
                ),
            ],
            options={
                "ordering": ["min_quantity"],
                "unique_together": {("event", "min_quantity")},
            },
        ),
    ]
