# checkout/services/square_gateway.py
from typing import Any, Callable, Dict, List, Optional

import httpx
from square import Square
from square.core.api_error import ApiError
from square.environment import SquareEnvironment

from checkout.domain.errors import ConfigurationError, GatewayError
from checkout.domain.schemas import CheckoutSession, PaymentRecord
from checkout.services.payment_gateway import PaymentGateway
from checkout.utils.logging import get_logger
from checkout.utils.settings import Config

logger = get_logger(__name__)

SQUARE_ENVIRONMENTS = {
    "production": SquareEnvironment.PRODUCTION,
    "sandbox": SquareEnvironment.SANDBOX,
}
SQUARE_COMPLETED = "COMPLETED"


def _errors(response: Any) -> List[Dict[str, Any]]:
    return [
        {"category": e.category, "code": e.code, "detail": e.detail}
        for e in (getattr(response, "errors", None) or [])
    ]


def normalize_payment_link(response: Any) -> CheckoutSession:
    link = response.payment_link
    url = (link.url or link.long_url) if link is not None else None
    if not url:
        raise GatewayError(
            "Square did not return a checkout URL",
            detail={"errors": _errors(response), "payment_link_id": link.id if link is not None else None},
            provider="square",
        )
    return CheckoutSession(url=url, reference=link.order_id or link.id)


def normalize_payment(response: Any) -> PaymentRecord:
    payment = response.payment
    if payment is None or not payment.id or not payment.status:
        raise GatewayError(
            "Square returned an unexpected payment payload",
            detail={"errors": _errors(response)},
            provider="square",
        )

    money = payment.total_money or payment.amount_money
    amount = money.amount if money is not None else None
    return PaymentRecord(
        reference=str(payment.id),
        completed=str(payment.status).upper() == SQUARE_COMPLETED,
        provider_status=str(payment.status),
        amount_minor=int(amount) if amount is not None else None,
        currency=str(money.currency) if money is not None and money.currency else None,
    )


class SquareGateway(PaymentGateway):
    """Square Hosted Checkout (Payment Links) + odczyt płatności przez oficjalny SDK."""

    name = "square"

    def __init__(self, config: Config, client: Square | None = None):
        super().__init__(config)
        self._client = client

    def ensure_configured(self) -> None:
        token = (self.config.square_access_token or "").strip()
        location = (self.config.square_location_id or "").strip()
        if not token or not location:
            raise ConfigurationError("Missing SQUARE_ACCESS_TOKEN / SQUARE_LOCATION_ID")
        if self.config.square_env not in SQUARE_ENVIRONMENTS:
            raise ConfigurationError(f"Invalid SQUARE_ENV {self.config.square_env!r}")

    @property
    def client(self) -> Square:
        if self._client is None:
            self._client = Square(
                token=self.config.square_access_token.strip(),
                environment=SQUARE_ENVIRONMENTS[self.config.square_env],
                timeout=self.timeout,
            )
        return self._client

    def _call(self, fn: Callable, **kwargs) -> Any:
        """Wywołanie SDK; ApiError / błąd transportu -> GatewayError."""
        try:
            return fn(**kwargs)
        except ApiError as e:
            logger.error(f"square returned HTTP {e.status_code}: {e.body}")
            raise GatewayError(f"square returned HTTP {e.status_code}", detail=e.body, provider=self.name) from e
        except httpx.HTTPError as e:
            logger.error(f"square request failed: {e}")
            raise GatewayError("square request failed", detail={"error": str(e)}, provider=self.name) from e

    def create_hosted_checkout(
        self,
        amount_minor: int,
        currency: str,
        redirect_url: str,
        cancel_url: Optional[str],
        idempotency_key: str,
        order_id: Optional[str] = None,
        coupon: Optional[str] = None,
        item_count: int = 0,
    ) -> CheckoutSession:
        self.ensure_configured()

        # jedna pozycja równa sumie koszyka
        line_items = [
            {
                "name": "Order",
                "quantity": "1",
                "base_price_money": {"amount": amount_minor, "currency": currency},
            }
        ]

        note_parts = []
        if order_id:
            note_parts.append(f"Order: {order_id}")
        if coupon:
            note_parts.append(f"Coupon: {coupon}")
        if item_count:
            note_parts.append(f"Items: {item_count}")

        checkout_options: Dict[str, Any] = {
            "redirect_url": redirect_url,
            "ask_for_shipping_address": True,
        }
        if self.config.square_support_email:
            checkout_options["merchant_support_email"] = self.config.square_support_email

        kwargs: Dict[str, Any] = {
            "idempotency_key": idempotency_key,
            "order": {
                "location_id": self.config.square_location_id.strip(),
                "line_items": line_items,
            },
            "checkout_options": checkout_options,
            "description": " | ".join(note_parts) or "Checkout",
        }
        if order_id:
            kwargs["payment_note"] = f"Order: {order_id}"

        logger.info(f"square create payment link ({amount_minor} {currency}, order {order_id or '-'})")
        response = self._call(self.client.checkout.payment_links.create, **kwargs)
        return normalize_payment_link(response)

    def get_payment(self, reference: str) -> PaymentRecord:
        self.ensure_configured()
        response = self._call(self.client.payments.get, payment_id=reference)
        return normalize_payment(response)
