from django.db import migrations, models


class Migration(migrations.Migration):
    dependencies = [
        ("checkout_registration", "0001_initial"),
    ]

    operations = [
        migrations.AddField(
            model_name="checkout",
            name="total_value_overridden",
            field=models.BooleanField(
                default=False,
                help_text="Set when an admin fixed the total by hand; repricing leaves it alone.",
            ),
        ),
    ]
