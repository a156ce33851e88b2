# checkout/services/checkout_service.py
import uuid

from checkout.domain.errors import ValidationError
from checkout.domain.money import to_minor_units
from checkout.domain.schemas import CaptureIn, CheckoutCreate, CheckoutOut, PaymentRecord, SessionDetails
from checkout.services.order_service import normalize_coupon
from checkout.services.payment_gateway import PaymentGateway
from checkout.utils.logging import get_logger

logger = get_logger(__name__)


class CheckoutService:
    """Tworzenie hostowanego checkoutu u providera. Nie zapisuje nic w bazie."""

    def __init__(self, gateway: PaymentGateway):
        self.gateway = gateway

    def initiate_checkout(self, payload: CheckoutCreate) -> CheckoutOut:
        amount_minor = to_minor_units(payload.total)

        currency = payload.currency.strip().upper()
        if len(currency) != 3 or not currency.isalpha():
            raise ValidationError("Invalid currency")

        return_url = (payload.return_url or "").strip()
        if not return_url:
            raise ValidationError("Missing return_url")
        cancel_url = (payload.cancel_url or "").strip() or None

        # nowy klucz na każde wywołanie: ponowiona próba checkoutu to nowa sesja,
        # retry transportu wewnątrz jednego wywołania używa tego samego klucza
        idempotency_key = str(uuid.uuid4())

        session = self.gateway.create_hosted_checkout(
            amount_minor=amount_minor,
            currency=currency,
            redirect_url=return_url,
            cancel_url=cancel_url,
            idempotency_key=idempotency_key,
            order_id=(payload.order_id or "").strip() or None,
            coupon=normalize_coupon(payload.coupon),
            item_count=len(payload.items),
        )

        logger.info(
            f"{self.gateway.name} checkout created for order {payload.order_id or '-'}: "
            f"{amount_minor} {currency} (ref {session.reference})"
        )

        return CheckoutOut(
            url=session.url,
            provider=self.gateway.name,
            reference=session.reference,
            idempotency_key=idempotency_key,
            amount_minor=amount_minor,
            currency=currency,
        )

    def capture_payment(self, payload: CaptureIn) -> PaymentRecord:
        reference = (payload.payment_reference or "").strip()
        if not reference:
            raise ValidationError("Missing payment_reference")

        record = self.gateway.capture_payment(reference, str(uuid.uuid4()))
        logger.info(f"{self.gateway.name} capture {reference}: {record.provider_status}")
        return record

    def session_details(self, session_id: str | None) -> SessionDetails:
        session_id = (session_id or "").strip()
        if not session_id:
            raise ValidationError("Missing session_id")
        return self.gateway.get_session_details(session_id)
