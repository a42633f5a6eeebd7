"""JSON API views for checkouts, payments, registrations and vouchers.

Every view derives from :class:`ApiView`, which authenticates the bearer
token and turns service exceptions into ``{"error": "..."}`` responses:

* ``AuthenticationFailed`` -> 401
* ``ValidationError`` -> 400
* ``PermissionDenied`` -> 403
* ``Http404`` -> 404
* ``ConflictError`` -> 409
* anything else -> 500, logged with its traceback
"""

import json
import logging

from django.core.exceptions import PermissionDenied, ValidationError
from django.http import Http404, HttpRequest, HttpResponse, JsonResponse
from django.utils.decorators import method_decorator
from django.views import View
from django.views.decorators.csrf import csrf_exempt

from django_checkout.auth import AuthenticationFailed, authenticate_request, is_admin, user_identity
from django_checkout.events.models import Event
from django_checkout.registration.exceptions import ConflictError
from django_checkout.registration.models import Checkout, Registration
from django_checkout.registration.serializers import (
    checkout_response,
    payment_document,
    registration_document,
    registration_response,
    voucher_document,
)
from django_checkout.registration.services.checkout import CheckoutService, get_checkout
from django_checkout.registration.services.export import format_checkout_row, format_registration_row, write_csv
from django_checkout.registration.services.payment import PaymentService
from django_checkout.registration.services.pricing import PricingConfigurationError, quote_for_event
from django_checkout.registration.services.registration import RegistrationService, get_registration
from django_checkout.registration.services.voucher import VoucherService, get_voucher
from django_checkout.settings import get_config

logger = logging.getLogger(__name__)

GENERIC_ERROR = "Erro interno do servidor"


def error_response(message: str, status: int) -> JsonResponse:
    """Build the ``{"error": message}`` body every failure shares."""
    return JsonResponse({"error": message}, status=status)


def _message(exc: Exception, default: str) -> str:
    if isinstance(exc, ValidationError):
        return "; ".join(exc.messages) or default
    text = str(exc.args[0]) if exc.args else ""
    return text or default


@method_decorator(csrf_exempt, name="dispatch")
class ApiView(View):
    """Base view: bearer authentication plus the JSON error boundary.

    Set ``public_methods`` to the HTTP methods that skip authentication.
    """

    public_methods: frozenset[str] = frozenset()

    def dispatch(self, request: HttpRequest, *args: str, **kwargs: str) -> HttpResponse:
        """Authenticate, run the handler and map exceptions to responses."""
        try:
            if request.method.lower() not in self.public_methods:
                request.user = authenticate_request(request)
            return super().dispatch(request, *args, **kwargs)
        except AuthenticationFailed as exc:
            return error_response(
                _message(exc, "Não autorizado. Token de autenticação inválido ou expirado."), 401
            )
        except ValidationError as exc:
            return error_response(_message(exc, "Dados inválidos"), 400)
        except PermissionDenied as exc:
            return error_response(_message(exc, "Usuário não autorizado"), 403)
        except Http404 as exc:
            return error_response(_message(exc, "Não encontrado"), 404)
        except ConflictError as exc:
            return error_response(_message(exc, "Conflito"), 409)
        except Exception:
            logger.exception("Unhandled error in %s %s", request.method, request.path)
            return error_response(GENERIC_ERROR, 500)

    @staticmethod
    def json_body(request: HttpRequest) -> dict:
        """Decode the JSON object in the request body.

        Raises:
            ValidationError: If the body is not a JSON object.
        """
        try:
            data = json.loads(request.body or b"{}")
        except (UnicodeDecodeError, ValueError) as exc:
            raise ValidationError("Corpo da requisição não é um JSON válido") from exc
        if not isinstance(data, dict):
            raise ValidationError("Corpo da requisição deve ser um objeto JSON")
        return data

    @staticmethod
    def uploaded_file(request: HttpRequest, field: str = "file"):
        """Return the uploaded file of a multipart request, for any method.

        Django only parses multipart bodies for POST, so PUT and PATCH are
        parsed here with the same upload handlers.
        """
        if request.method == "POST":
            return request.FILES.get(field)
        if not request.content_type.startswith("multipart/"):
            return None
        _, files = request.parse_file_upload(request.META, request)
        return files.get(field)


# -- Events ------------------------------------------------------------------


class EventPriceView(ApiView):
    """Quote the price of ``quantity`` slots of an event."""

    public_methods = frozenset({"get"})

    def get(self, request: HttpRequest, event_id: str) -> JsonResponse:
        """Return the unit price and total in cents."""
        event = Event.objects.filter(pk=event_id).first()
        if event is None:
            raise Http404("Evento não encontrado.")
        raw = request.GET.get("quantity", "1")
        try:
            quantity = int(raw)
        except ValueError as exc:
            raise ValidationError("Quantidade inválida") from exc
        if quantity < 1:
            raise ValidationError("Quantidade deve ser no mínimo 1")
        try:
            total = quote_for_event(event, quantity)
        except PricingConfigurationError as exc:
            logger.warning("Price requested for unpriced event %s", event.pk)
            raise ValidationError("Evento sem tabela de preços configurada") from exc
        return JsonResponse(
            {
                "eventId": event.pk,
                "quantity": quantity,
                "unitPrice": total // quantity,
                "totalValue": total,
                "currency": get_config().currency,
            }
        )


class EventReportView(ApiView):
    """Download the checkouts or registrations of an event as CSV (admins only)."""

    def get(self, request: HttpRequest, event_id: str, kind: str) -> HttpResponse:
        """Stream the report as a spreadsheet-friendly CSV attachment."""
        if not is_admin(request.user):
            raise PermissionDenied("Apenas administradores podem exportar relatórios")
        event = Event.objects.filter(pk=event_id).first()
        if event is None:
            raise Http404("Evento não encontrado.")

        if kind == "checkouts":
            rows = [format_checkout_row(c, event) for c in Checkout.objects.filter(event=event)]
        elif kind == "registrations":
            rows = [format_registration_row(r) for r in Registration.objects.filter(event=event)]
        else:
            raise Http404("Relatório não encontrado")

        response = HttpResponse(content_type="text/csv; charset=utf-8")
        response["Content-Disposition"] = f'attachment; filename="{event.pk}-{kind}.csv"'
        count = write_csv(rows, response)
        logger.info("Exported %d %s rows of event %s for %s", count, kind, event.pk, request.user)
        return response


# -- Checkouts ---------------------------------------------------------------


class CheckoutListView(ApiView):
    """Create a checkout for the authenticated user."""

    def post(self, request: HttpRequest) -> JsonResponse:
        """Create the checkout and return ``{documentId, document}``."""
        data = CheckoutService.extract_create_data(self.json_body(request))
        checkout = CheckoutService.create(request.user, data)
        return JsonResponse(checkout_response(checkout), status=201)


class CheckoutDetailView(ApiView):
    """Read, edit or cancel one checkout."""

    def get(self, request: HttpRequest, checkout_id: str) -> JsonResponse:
        """Return the checkout with its slot availability and vouchers."""
        checkout = get_checkout(checkout_id, request.user)
        body = checkout_response(checkout)
        body["availability"] = CheckoutService.availability(checkout)
        body["vouchers"] = [voucher_document(v) for v in checkout.vouchers.all()]
        return JsonResponse(body)

    def put(self, request: HttpRequest, checkout_id: str) -> JsonResponse:
        """Apply an edit and return the updated checkout."""
        checkout = get_checkout(checkout_id, request.user)
        checkout = CheckoutService.update(checkout, self.json_body(request), request.user)
        return JsonResponse(checkout_response(checkout))

    def delete(self, request: HttpRequest, checkout_id: str) -> HttpResponse:
        """Cancel the checkout."""
        checkout = get_checkout(checkout_id, request.user)
        CheckoutService.cancel(checkout, request.user)
        return HttpResponse(status=204)


class CheckoutStatusView(ApiView):
    """Admin status change."""

    def patch(self, request: HttpRequest, checkout_id: str) -> JsonResponse:
        """Move the checkout to ``status``."""
        checkout = get_checkout(checkout_id, request.user)
        checkout = CheckoutService.set_status(checkout, self.json_body(request).get("status"), request.user)
        return JsonResponse(checkout_response(checkout))


class CheckoutRestoreView(ApiView):
    """Admin reactivation of a cancelled checkout."""

    def post(self, request: HttpRequest, checkout_id: str) -> JsonResponse:
        """Restore the checkout to ``pending``."""
        checkout = get_checkout(checkout_id, request.user)
        checkout = CheckoutService.restore(checkout, request.user)
        return JsonResponse(checkout_response(checkout))


class CheckoutComplimentaryView(ApiView):
    """Admin grant of complimentary slots."""

    def patch(self, request: HttpRequest, checkout_id: str) -> JsonResponse:
        """Set the number of complimentary slots."""
        checkout = get_checkout(checkout_id, request.user)
        count = self.json_body(request).get("complimentary")
        checkout = CheckoutService.set_complimentary(checkout, count, request.user)
        return JsonResponse(checkout_response(checkout))


class CommitmentView(ApiView):
    """Payment attachments: commitment note, proof of payment and invoice."""

    def post(self, request: HttpRequest, checkout_id: str) -> JsonResponse:
        """Upload the commitment note."""
        checkout = get_checkout(checkout_id, request.user)
        PaymentService.upload_commitment_receipt(checkout, self.uploaded_file(request), request.user)
        return JsonResponse({"message": "Arquivo enviado com sucesso"}, status=201)

    def patch(self, request: HttpRequest, checkout_id: str) -> JsonResponse:
        """Upload the proof of payment."""
        checkout = get_checkout(checkout_id, request.user)
        PaymentService.upload_payment_receipt(checkout, self.uploaded_file(request), request.user)
        return JsonResponse({"message": "Arquivo enviado com sucesso"}, status=201)

    def put(self, request: HttpRequest, checkout_id: str) -> JsonResponse:
        """Upload the invoice (admins only)."""
        checkout = get_checkout(checkout_id, request.user)
        PaymentService.upload_invoice(checkout, self.uploaded_file(request), request.user)
        return JsonResponse({"message": "Arquivo enviado com sucesso"}, status=201)

    def delete(self, request: HttpRequest, checkout_id: str) -> HttpResponse:
        """Remove the attachment named by ``attachmentType``."""
        checkout = get_checkout(checkout_id, request.user)
        kind = self.json_body(request).get("attachmentType")
        PaymentService.delete_attachment(checkout, kind, request.user)
        return HttpResponse(status=204)


class CommitmentStatusView(ApiView):
    """Admin move of the commitment payment stage."""

    def put(self, request: HttpRequest, checkout_id: str) -> JsonResponse:
        """Move the commitment payment to ``status``."""
        checkout = get_checkout(checkout_id, request.user)
        payment = PaymentService.set_commitment_status(
            checkout, self.json_body(request).get("status"), request.user
        )
        return JsonResponse(
            {"message": "Status do pagamento atualizado com sucesso", "payment": payment_document(payment)}
        )


# -- Registrations -----------------------------------------------------------


class RegistrationListView(ApiView):
    """Create a registration."""

    def post(self, request: HttpRequest) -> JsonResponse:
        """Create the registration and return ``{documentId, document}``."""
        registration = RegistrationService.create(request.user, self.json_body(request))
        return JsonResponse(registration_response(registration), status=201)


class RegistrationDetailView(ApiView):
    """Edit or withdraw one registration."""

    def put(self, request: HttpRequest, registration_id: str) -> JsonResponse:
        """Replace the attendee form."""
        registration = get_registration(registration_id)
        registration = RegistrationService.update(registration, self.json_body(request), request.user)
        return JsonResponse(registration_response(registration))

    def delete(self, request: HttpRequest, registration_id: str) -> HttpResponse:
        """Delete a voucher registration at the attendee's request."""
        registration = get_registration(registration_id)
        RegistrationService.delete(registration, request.user)
        return HttpResponse(status=204)


class RegistrationStatusView(ApiView):
    """Change a registration's status."""

    def patch(self, request: HttpRequest, registration_id: str) -> JsonResponse:
        """Move the registration to ``status``."""
        registration = get_registration(registration_id)
        status = self.json_body(request).get("status")
        registration = RegistrationService.set_status(registration, status, request.user)
        return JsonResponse(
            {"message": "Situação da inscrição atualizada com sucesso", **registration_response(registration)}
        )


# -- Vouchers ----------------------------------------------------------------


class VoucherValidateView(ApiView):
    """Public voucher gate check."""

    public_methods = frozenset({"get"})

    def get(self, request: HttpRequest, code: str) -> JsonResponse:  # noqa: ARG002
        """Return ``{valid}`` or ``{valid, message}`` with 403/404."""
        try:
            voucher = get_voucher(code)
        except Http404:
            return JsonResponse({"valid": False, "message": "Voucher não encontrado."}, status=404)
        check = VoucherService.validate(voucher)
        if not check.valid:
            return JsonResponse({"valid": False, "message": check.message}, status=403)
        return JsonResponse({"valid": True})


class VoucherActivateView(ApiView):
    """Enable or disable a voucher."""

    def patch(self, request: HttpRequest, code: str) -> HttpResponse:
        """Set ``active`` on the voucher."""
        voucher = get_voucher(code)
        VoucherService.set_active(voucher, self.json_body(request).get("active"), request.user)
        return HttpResponse(status=204)


class VoucherRegistrateView(ApiView):
    """Redeem a voucher into a registration."""

    def post(self, request: HttpRequest, code: str) -> JsonResponse:
        """Register the authenticated user under the voucher's checkout."""
        body = self.json_body(request)
        user_id = body.get("userId")
        if user_id is not None and user_id != user_identity(request.user):
            raise PermissionDenied("Usuário não tem permissão para usar este voucher")
        voucher = get_voucher(code)
        registration = VoucherService.redeem(voucher, request.user, body.get("eventId"), body.get("registration"))
        return JsonResponse(
            {"registrationId": registration.pk, "registration": registration_document(registration)},
            status=201,
        )
