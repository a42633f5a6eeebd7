"""Checkout, payment, registration and voucher models for django-checkout."""

from django.conf import settings
from django.db import models
from encrypted_fields import EncryptedCharField

from django_checkout.registration.services.ids import generate_document_id


class Checkout(models.Model):
    """A purchase of one or more registration slots for an event.

    There is exactly one checkout per ``(event, user)`` pair: the primary key
    is the composite ``eventId_userId`` identifier, so creating a checkout for
    a pair that already has one overwrites the row instead of adding another.
    Cancellation is a soft ``DELETED`` status, never a row deletion.
    """

    class Type(models.TextChoices):
        """How the checkout was started."""

        ACQUIRE = "acquire", "Acquire"
        VOUCHER = "voucher", "Voucher"
        ADMIN = "admin", "Admin"

    class LegalEntity(models.TextChoices):
        """Shape of the billing details."""

        PF = "pf", "Pessoa física"
        PJ = "pj", "Pessoa jurídica"

    class Status(models.TextChoices):
        """Lifecycle states for a checkout."""

        PENDING = "pending", "Pendente"
        COMPLETED = "completed", "Concluído"
        APPROVED = "approved", "Aprovado"
        PAID = "paid", "Pago"
        REFUNDED = "refunded", "Estornado"
        DELETED = "deleted", "Cancelado"

    ALLOWED_TRANSITIONS: dict[str, frozenset[str]] = {
        Status.PENDING: frozenset({Status.COMPLETED, Status.APPROVED, Status.PAID, Status.DELETED}),
        Status.COMPLETED: frozenset({Status.PENDING, Status.REFUNDED, Status.DELETED}),
        Status.APPROVED: frozenset({Status.PENDING, Status.PAID, Status.REFUNDED, Status.DELETED}),
        Status.PAID: frozenset({Status.APPROVED, Status.REFUNDED, Status.DELETED}),
        Status.REFUNDED: frozenset(),
        Status.DELETED: frozenset({Status.PENDING}),
    }
    SETTLED_STATUSES: frozenset[str] = frozenset({Status.COMPLETED, Status.APPROVED, Status.PAID})
    INACTIVE_STATUSES: frozenset[str] = frozenset({Status.REFUNDED, Status.DELETED})

    id = models.CharField(primary_key=True, max_length=255)
    event = models.ForeignKey(
        "checkout_events.Event",
        on_delete=models.PROTECT,
        related_name="checkouts",
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="checkouts",
    )
    checkout_type = models.CharField(max_length=20, choices=Type.choices, default=Type.ACQUIRE)
    legal_entity = models.CharField(max_length=2, choices=LegalEntity.choices, blank=True, default="")
    billing_details = models.JSONField(null=True, blank=True)
    amount = models.PositiveIntegerField(null=True, blank=True, help_text="Number of slots purchased.")
    complimentary = models.PositiveIntegerField(default=0, help_text="Free slots granted by an admin.")
    voucher = models.CharField(max_length=64, blank=True, default="")
    registrate_myself = models.BooleanField(null=True, blank=True)
    total_value = models.PositiveIntegerField(null=True, blank=True, help_text="Total in cents.")
    total_value_overridden = models.BooleanField(
        default=False,
        help_text="Set when an admin fixed the total by hand; repricing leaves it alone.",
    )
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDING)
    created_at = models.DateTimeField()
    updated_at = models.DateTimeField()
    deleted_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return self.id

    @property
    def is_active(self) -> bool:
        """Whether the checkout still backs registrations."""
        return self.status not in self.INACTIVE_STATUSES

    @property
    def is_settled(self) -> bool:
        """Whether registrations under this checkout count as confirmed.

        Admin-issued checkouts are complimentary by nature, so they confirm
        registrations while pending as well.
        """
        if not self.is_active:
            return False
        return self.status in self.SETTLED_STATUSES or self.checkout_type == self.Type.ADMIN

    @property
    def pays_by_commitment(self) -> bool:
        """Whether the billing details request institutional commitment payment."""
        details = self.billing_details
        return (
            self.legal_entity == self.LegalEntity.PJ
            and isinstance(details, dict)
            and details.get("paymentByCommitment") is True
        )

    @property
    def capacity(self) -> int:
        """Total registrations this checkout can back (purchased plus complimentary)."""
        return (self.amount or 0) + self.complimentary

    def can_transition_to(self, status: str) -> bool:
        """Return True when *status* is reachable from the current status."""
        return status in self.ALLOWED_TRANSITIONS.get(self.status, frozenset())


class Payment(models.Model):
    """The payment sub-record of a checkout.

    For commitment ("empenho") payments the ``status`` tracks the
    institutional workflow ``pending -> committed -> paid``, which gates which
    attachment may be uploaded next.
    """

    class Method(models.TextChoices):
        """Payment methods."""

        CARD = "card", "Cartão"
        BOLETO = "boleto", "Boleto"
        PIX = "pix", "Pix"
        EMPENHO = "empenho", "Empenho"

    class Status(models.TextChoices):
        """Commitment payment stages."""

        PENDING = "pending", "Pendente"
        COMMITTED = "committed", "Empenhado"
        PAID = "paid", "Pago"

    STAGES: tuple[str, ...] = (Status.PENDING, Status.COMMITTED, Status.PAID)

    checkout = models.OneToOneField(Checkout, on_delete=models.CASCADE, related_name="payment")
    method = models.CharField(max_length=20, choices=Method.choices, default=Method.CARD)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDING)
    value = models.PositiveIntegerField(default=0, help_text="Amount in cents.")
    external_data = models.JSONField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self) -> str:
        return f"{self.get_method_display()} - {self.checkout_id} ({self.status})"

    @property
    def is_commitment(self) -> bool:
        """Whether this payment follows the commitment workflow."""
        return self.method == self.Method.EMPENHO

    def attachment(self, kind: str) -> "Attachment | None":
        """Return the stored attachment of *kind*, or ``None``."""
        return self.attachments.filter(kind=kind).first()


def attachment_upload_path(instance: "Attachment", filename: str) -> str:  # noqa: ARG001
    """Build the storage path: ``checkouts/<checkout id>/<kind>Attachment``."""
    return f"checkouts/{instance.payment.checkout_id}/{instance.kind}Attachment"


class Attachment(models.Model):
    """A file uploaded during the payment workflow of a checkout."""

    class Kind(models.TextChoices):
        """Attachment roles."""

        COMMITMENT = "commitment", "Nota de empenho"
        PAYMENT = "payment", "Comprovante de pagamento"
        INVOICE = "invoice", "Nota fiscal"

    payment = models.ForeignKey(Payment, on_delete=models.CASCADE, related_name="attachments")
    kind = models.CharField(max_length=20, choices=Kind.choices)
    file = models.FileField(upload_to=attachment_upload_path, max_length=300)
    file_name = models.CharField(max_length=255)
    content_type = models.CharField(max_length=100, blank=True, default="")
    uploaded_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="checkout_attachments",
    )
    uploaded_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        unique_together = [("payment", "kind")]

    def __str__(self) -> str:
        return f"{self.get_kind_display()}: {self.file_name}"

    @property
    def storage_path(self) -> str:
        """The path of the stored file inside the storage backend."""
        return self.file.name


class Registration(models.Model):
    """One attendee's slot at an event.

    A registration is usually backed by a checkout, which decides whether it
    is confirmed (``OK``) or waiting on payment (``PENDING``). When the
    checkout is cancelled or refunded the registration becomes ``INVALID``;
    ``invalidated_by_checkout`` remembers that so a reactivated checkout can
    bring it back.
    """

    class Status(models.TextChoices):
        """Lifecycle states for a registration."""

        OK = "ok", "Confirmada"
        PENDING = "pending", "Pendente"
        CANCELLED = "cancelled", "Cancelada"
        INVALID = "invalid", "Inválida"

    class Role(models.TextChoices):
        """Who filled in the registration."""

        ATTENDEE = "attendee", "Attendee"
        BUYER = "buyer", "Buyer"
        ADMIN = "admin", "Admin"

    ACTIVE_STATUSES: frozenset[str] = frozenset({Status.OK, Status.PENDING})

    id = models.CharField(primary_key=True, max_length=255, default=generate_document_id)
    event = models.ForeignKey(
        "checkout_events.Event",
        on_delete=models.PROTECT,
        related_name="registrations",
    )
    checkout = models.ForeignKey(
        Checkout,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="registrations",
    )
    attendee = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="registrations",
    )
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="created_registrations",
    )
    created_by_role = models.CharField(max_length=20, choices=Role.choices, default=Role.ATTENDEE)
    voucher_code = models.CharField(max_length=64, blank=True, default="")

    full_name = models.CharField(max_length=200)
    cpf = EncryptedCharField(max_length=14)
    phone = models.CharField(max_length=20)
    email = models.EmailField(blank=True, default="")
    credential_name = models.CharField(max_length=200, blank=True, default="")
    occupation = models.CharField(max_length=200, blank=True, default="")
    employer = models.CharField(max_length=200, blank=True, default="")
    city = models.CharField(max_length=200, blank=True, default="")
    how_did_you_hear_about_us = models.CharField(max_length=200, blank=True, default="")
    how_did_you_hear_about_us_other = models.CharField(max_length=200, blank=True, default="")
    is_phone_whatsapp = models.BooleanField(default=False)
    use_image = models.BooleanField(default=False)

    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDING)
    invalidated_by_checkout = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["created_at"]

    def __str__(self) -> str:
        return f"{self.full_name} ({self.event_id})"

    @property
    def is_active(self) -> bool:
        """Whether this registration occupies a slot of its checkout."""
        return self.status in self.ACTIVE_STATUSES


class Voucher(models.Model):
    """A shareable code that lets attendees register under a buyer's checkout.

    Redeeming a voucher creates a :class:`Registration` against the issuing
    checkout without creating a new checkout. Deactivating it blocks further
    redemptions but leaves existing registrations untouched.
    """

    code = models.CharField(max_length=64, unique=True)
    checkout = models.ForeignKey(Checkout, on_delete=models.CASCADE, related_name="vouchers")
    active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"{self.code} ({self.checkout_id})"
