"""URL configuration for the checkout API.

Mount these under an API prefix in the host project::

    urlpatterns = [
        path("api/", include("django_checkout.registration.urls")),
    ]
"""

from django.urls import path

from django_checkout.registration.views import (
    CheckoutComplimentaryView,
    CheckoutDetailView,
    CheckoutListView,
    CheckoutRestoreView,
    CheckoutStatusView,
    CommitmentStatusView,
    CommitmentView,
    EventPriceView,
    EventReportView,
    RegistrationDetailView,
    RegistrationListView,
    RegistrationStatusView,
    VoucherActivateView,
    VoucherRegistrateView,
    VoucherValidateView,
)

app_name = "checkout"

urlpatterns = [
    path("events/<str:event_id>/price/", EventPriceView.as_view(), name="event-price"),
    path(
        "events/<str:event_id>/report/<str:kind>/",
        EventReportView.as_view(),
        name="event-report",
    ),
    path("checkouts/", CheckoutListView.as_view(), name="checkout-list"),
    path("checkouts/<str:checkout_id>/", CheckoutDetailView.as_view(), name="checkout-detail"),
    path("checkouts/<str:checkout_id>/status/", CheckoutStatusView.as_view(), name="checkout-status"),
    path("checkouts/<str:checkout_id>/restore/", CheckoutRestoreView.as_view(), name="checkout-restore"),
    path(
        "checkouts/<str:checkout_id>/complimentary/",
        CheckoutComplimentaryView.as_view(),
        name="checkout-complimentary",
    ),
    path("checkouts/<str:checkout_id>/commitment/", CommitmentView.as_view(), name="checkout-commitment"),
    path(
        "checkouts/<str:checkout_id>/commitment/status/",
        CommitmentStatusView.as_view(),
        name="checkout-commitment-status",
    ),
    path("registrations/", RegistrationListView.as_view(), name="registration-list"),
    path(
        "registrations/<str:registration_id>/",
        RegistrationDetailView.as_view(),
        name="registration-detail",
    ),
    path(
        "registrations/<str:registration_id>/status/",
        RegistrationStatusView.as_view(),
        name="registration-status",
    ),
    path("voucher/<str:code>/validate/", VoucherValidateView.as_view(), name="voucher-validate"),
    path("voucher/<str:code>/activate/", VoucherActivateView.as_view(), name="voucher-activate"),
    path("voucher/<str:code>/registrate/", VoucherRegistrateView.as_view(), name="voucher-registrate"),
]
