"""Django admin configuration for the registration app."""

from typing import TYPE_CHECKING

from django.contrib import admin, messages
from django.core.exceptions import PermissionDenied, ValidationError

from django_checkout.registration.exceptions import ConflictError
from django_checkout.registration.models import Attachment, Checkout, Payment, Registration, Voucher
from django_checkout.registration.services.checkout import CheckoutService

if TYPE_CHECKING:
    from django.db.models import QuerySet
    from django.forms import ModelForm
    from django.http import HttpRequest


def _run_transition(
    modeladmin: admin.ModelAdmin,
    request: "HttpRequest",
    queryset: "QuerySet[Checkout]",
    status: str,
) -> None:
    """Move each selected checkout to *status* through the checkout service."""
    moved = 0
    for checkout in queryset:
        try:
            CheckoutService.set_status(checkout, status, request.user)
        except (ConflictError, PermissionDenied, ValidationError) as exc:
            modeladmin.message_user(request, f"{checkout.pk}: {exc}", level=messages.ERROR)
        else:
            moved += 1
    if moved:
        modeladmin.message_user(request, f"{moved} checkout(s) updated.", level=messages.SUCCESS)


class PaymentInline(admin.StackedInline):
    """Read-only view of a checkout's payment.

    Payment stages change through the commitment endpoints so the checkout
    status stays in step; the admin only displays them.
    """

    model = Payment
    extra = 0
    can_delete = False
    readonly_fields = ("method", "status", "value", "external_data", "created_at", "updated_at")


class VoucherInline(admin.TabularInline):
    """Vouchers issued for the checkout."""

    model = Voucher
    extra = 0
    fields = ("code", "active", "created_at")
    readonly_fields = ("code", "created_at")


@admin.register(Checkout)
class CheckoutAdmin(admin.ModelAdmin):
    """Admin interface for checkouts.

    Status changes are only available as actions so that registrations,
    vouchers and commitment payments are cascaded the same way the API
    does it. The status field itself is read-only.
    """

    list_display = (
        "id",
        "event",
        "user",
        "checkout_type",
        "legal_entity",
        "amount",
        "complimentary",
        "total_value",
        "status",
        "created_at",
    )
    list_filter = ("event", "status", "checkout_type", "legal_entity")
    search_fields = ("id", "user__username", "user__email", "voucher")
    readonly_fields = (
        "id",
        "event",
        "user",
        "status",
        "total_value_overridden",
        "created_at",
        "updated_at",
        "deleted_at",
    )
    inlines = (PaymentInline, VoucherInline)
    actions = ("mark_completed", "mark_approved", "mark_paid", "mark_refunded", "cancel_checkouts", "restore_checkouts")

    def has_add_permission(self, request: "HttpRequest") -> bool:  # noqa: ARG002, D102
        return False

    def save_model(  # noqa: D102
        self,
        request: "HttpRequest",
        obj: Checkout,
        form: "ModelForm",
        change: bool,  # noqa: FBT001
    ) -> None:
        if "total_value" in form.changed_data:
            obj.total_value_overridden = obj.total_value is not None
        super().save_model(request, obj, form, change)

    @admin.action(description="Mark selected checkouts as completed")
    def mark_completed(self, request: "HttpRequest", queryset: "QuerySet[Checkout]") -> None:  # noqa: D102
        _run_transition(self, request, queryset, Checkout.Status.COMPLETED)

    @admin.action(description="Mark selected checkouts as approved")
    def mark_approved(self, request: "HttpRequest", queryset: "QuerySet[Checkout]") -> None:  # noqa: D102
        _run_transition(self, request, queryset, Checkout.Status.APPROVED)

    @admin.action(description="Mark selected checkouts as paid")
    def mark_paid(self, request: "HttpRequest", queryset: "QuerySet[Checkout]") -> None:  # noqa: D102
        _run_transition(self, request, queryset, Checkout.Status.PAID)

    @admin.action(description="Mark selected checkouts as refunded")
    def mark_refunded(self, request: "HttpRequest", queryset: "QuerySet[Checkout]") -> None:  # noqa: D102
        _run_transition(self, request, queryset, Checkout.Status.REFUNDED)

    @admin.action(description="Cancel selected checkouts")
    def cancel_checkouts(self, request: "HttpRequest", queryset: "QuerySet[Checkout]") -> None:  # noqa: D102
        _run_transition(self, request, queryset, Checkout.Status.DELETED)

    @admin.action(description="Restore selected cancelled checkouts")
    def restore_checkouts(self, request: "HttpRequest", queryset: "QuerySet[Checkout]") -> None:  # noqa: D102
        _run_transition(self, request, queryset.filter(status=Checkout.Status.DELETED), Checkout.Status.PENDING)


@admin.register(Attachment)
class AttachmentAdmin(admin.ModelAdmin):
    """Admin interface for uploaded receipts and invoices."""

    list_display = ("payment", "kind", "file_name", "content_type", "uploaded_by", "uploaded_at")
    list_filter = ("kind",)
    search_fields = ("payment__checkout__id", "file_name")
    readonly_fields = ("payment", "kind", "file", "file_name", "content_type", "uploaded_by", "uploaded_at")

    def has_add_permission(self, request: "HttpRequest") -> bool:  # noqa: ARG002, D102
        return False


@admin.register(Registration)
class RegistrationAdmin(admin.ModelAdmin):
    """Admin interface for registrations.

    The CPF column is encrypted at rest, so it is not searchable; look
    registrations up by name, e-mail or checkout instead.
    """

    list_display = (
        "id",
        "full_name",
        "event",
        "checkout",
        "attendee",
        "created_by_role",
        "status",
        "invalidated_by_checkout",
        "created_at",
    )
    list_filter = ("event", "status", "created_by_role", "invalidated_by_checkout")
    search_fields = ("id", "full_name", "email", "checkout__id", "voucher_code")
    readonly_fields = (
        "id",
        "event",
        "checkout",
        "attendee",
        "created_by",
        "created_by_role",
        "voucher_code",
        "status",
        "invalidated_by_checkout",
        "created_at",
        "updated_at",
    )

    def has_add_permission(self, request: "HttpRequest") -> bool:  # noqa: ARG002, D102
        return False


@admin.register(Voucher)
class VoucherAdmin(admin.ModelAdmin):
    """Admin interface for vouchers."""

    list_display = ("code", "checkout", "active", "created_at")
    list_filter = ("active",)
    search_fields = ("code", "checkout__id")
    readonly_fields = ("code", "checkout", "created_at", "updated_at")

    def has_add_permission(self, request: "HttpRequest") -> bool:  # noqa: ARG002, D102
        return False
