import django.db.models.deletion
import encrypted_fields.fields
from django.conf import settings
from django.db import migrations, models

import django_checkout.registration.models
import django_checkout.registration.services.ids


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        ("checkout_events", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Checkout",
            fields=[
                ("id", models.CharField(max_length=255, primary_key=True, serialize=False)),
                (
                    "checkout_type",
                    models.CharField(
                        choices=[("acquire", "Acquire"), ("voucher", "Voucher"), ("admin", "Admin")],
                        default="acquire",
                        max_length=20,
                    ),
                ),
                (
                    "legal_entity",
                    models.CharField(
                        blank=True,
                        choices=[("pf", "Pessoa física"), ("pj", "Pessoa jurídica")],
                        default="",
                        max_length=2,
                    ),
                ),
                ("billing_details", models.JSONField(blank=True, null=True)),
                (
                    "amount",
                    models.PositiveIntegerField(blank=True, help_text="Number of slots purchased.", null=True),
                ),
                (
                    "complimentary",
                    models.PositiveIntegerField(default=0, help_text="Free slots granted by an admin."),
                ),
                ("voucher", models.CharField(blank=True, default="", max_length=64)),
                ("registrate_myself", models.BooleanField(blank=True, null=True)),
                ("total_value", models.PositiveIntegerField(blank=True, help_text="Total in cents.", null=True)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("pending", "Pendente"),
                            ("completed", "Concluído"),
                            ("approved", "Aprovado"),
                            ("paid", "Pago"),
                            ("refunded", "Estornado"),
                            ("deleted", "Cancelado"),
                        ],
                        default="pending",
                        max_length=20,
                    ),
                ),
                ("created_at", models.DateTimeField()),
                ("updated_at", models.DateTimeField()),
                ("deleted_at", models.DateTimeField(blank=True, null=True)),
                (
                    "event",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="checkouts",
                        to="checkout_events.event",
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="checkouts",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
            },
        ),
        migrations.CreateModel(
            name="Payment",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "method",
                    models.CharField(
                        choices=[("card", "Cartão"), ("boleto", "Boleto"), ("pix", "Pix"), ("empenho", "Empenho")],
                        default="card",
                        max_length=20,
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[("pending", "Pendente"), ("committed", "Empenhado"), ("paid", "Pago")],
                        default="pending",
                        max_length=20,
                    ),
                ),
                ("value", models.PositiveIntegerField(default=0, help_text="Amount in cents.")),
                ("external_data", models.JSONField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "checkout",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="payment",
                        to="checkout_registration.checkout",
                    ),
                ),
            ],
        ),
        migrations.CreateModel(
            name="Attachment",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "kind",
                    models.CharField(
                        choices=[
                            ("commitment", "Nota de empenho"),
                            ("payment", "Comprovante de pagamento"),
                            ("invoice", "Nota fiscal"),
                        ],
                        max_length=20,
                    ),
                ),
                (
                    "file",
                    models.FileField(
                        max_length=300,
                        upload_to=django_checkout.registration.models.attachment_upload_path,
                    ),
                ),
                ("file_name", models.CharField(max_length=255)),
                ("content_type", models.CharField(blank=True, default="", max_length=100)),
                ("uploaded_at", models.DateTimeField(auto_now_add=True)),
                (
                    "payment",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="attachments",
                        to="checkout_registration.payment",
                    ),
                ),
                (
                    "uploaded_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="checkout_attachments",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "unique_together": {("payment", "kind")},
            },
        ),
        migrations.CreateModel(
            name="Registration",
            fields=[
                (
                    "id",
                    models.CharField(
                        default=django_checkout.registration.services.ids.generate_document_id,
                        max_length=255,
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                (
                    "created_by_role",
                    models.CharField(
                        choices=[("attendee", "Attendee"), ("buyer", "Buyer"), ("admin", "Admin")],
                        default="attendee",
                        max_length=20,
                    ),
                ),
                ("voucher_code", models.CharField(blank=True, default="", max_length=64)),
                ("full_name", models.CharField(max_length=200)),
                ("cpf", encrypted_fields.fields.EncryptedCharField(max_length=14)),
                ("phone", models.CharField(max_length=20)),
                ("email", models.EmailField(blank=True, default="", max_length=254)),
                ("credential_name", models.CharField(blank=True, default="", max_length=200)),
                ("occupation", models.CharField(blank=True, default="", max_length=200)),
                ("employer", models.CharField(blank=True, default="", max_length=200)),
                ("city", models.CharField(blank=True, default="", max_length=200)),
                ("how_did_you_hear_about_us", models.CharField(blank=True, default="", max_length=200)),
                ("how_did_you_hear_about_us_other", models.CharField(blank=True, default="", max_length=200)),
                ("is_phone_whatsapp", models.BooleanField(default=False)),
                ("use_image", models.BooleanField(default=False)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("ok", "Confirmada"),
                            ("pending", "Pendente"),
                            ("cancelled", "Cancelada"),
                            ("invalid", "Inválida"),
                        ],
                        default="pending",
                        max_length=20,
                    ),
                ),
                ("invalidated_by_checkout", models.BooleanField(default=False)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "attendee",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="registrations",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "checkout",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="registrations",
                        to="checkout_registration.checkout",
                    ),
                ),
                (
                    "created_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="created_registrations",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "event",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="registrations",
                        to="checkout_events.event",
                    ),
                ),
            ],
            options={
                "ordering": ["created_at"],
            },
        ),
        migrations.CreateModel(
            name="Voucher",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("code", models.CharField(max_length=64, unique=True)),
                ("active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "checkout",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="vouchers",
                        to="checkout_registration.checkout",
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
            },
        ),
    ]
