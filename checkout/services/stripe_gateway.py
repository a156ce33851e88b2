# checkout/services/stripe_gateway.py
from typing import Any, Callable, Dict, Optional

import stripe

from checkout.domain.errors import ConfigurationError, GatewayError, ValidationError
from checkout.domain.money import from_minor_units
from checkout.domain.schemas import CheckoutSession, PaymentRecord, SessionDetails, SessionItem
from checkout.services.payment_gateway import PaymentGateway
from checkout.utils.logging import get_logger
from checkout.utils.settings import Config

logger = get_logger(__name__)

STRIPE_PAID = "paid"
STRIPE_NETWORK_RETRIES = 2
SESSION_DETAILS_EXPAND = ["payment_intent", "line_items.data.price.product"]


def _as_dict(obj: Any) -> Dict[str, Any]:
    # StripeObject dziedziczy po dict
    if obj is None:
        return {}
    return obj if isinstance(obj, dict) else obj.to_dict()


def normalize_session(data: Dict[str, Any]) -> PaymentRecord:
    session_id = data.get("id")
    status = data.get("payment_status")
    if not session_id or not status:
        raise GatewayError("Stripe returned an unexpected session payload", detail=data, provider="stripe")

    amount = data.get("amount_total")
    currency = data.get("currency")
    return PaymentRecord(
        reference=str(session_id),
        completed=status == STRIPE_PAID,
        provider_status=str(status),
        amount_minor=int(amount) if amount is not None else None,
        currency=currency.upper() if currency else None,
    )


def normalize_session_details(data: Dict[str, Any]) -> SessionDetails:
    """
    Sesja z rozwiniętym payment_intent i line_items -> SessionDetails.
    transaction_id to id payment intentu, a gdy go brak - id sesji.
    """
    if not data.get("id"):
        raise GatewayError("Stripe returned an unexpected session payload", detail=data, provider="stripe")

    payment_intent = data.get("payment_intent")
    if isinstance(payment_intent, str):
        transaction_id = payment_intent
    else:
        transaction_id = _as_dict(payment_intent).get("id") or data["id"]

    items = []
    for line in _as_dict(data.get("line_items")).get("data") or []:
        price = _as_dict(line.get("price"))
        product = price.get("product")
        product = _as_dict(product) if not isinstance(product, str) else {}
        items.append(SessionItem(
            item_id=product.get("id") or price.get("id") or "unknown",
            item_name=product.get("name") or line.get("description") or "Item",
            price=from_minor_units(price.get("unit_amount") or 0),
            quantity=line.get("quantity") or 1,
        ))

    metadata = _as_dict(data.get("metadata"))
    return SessionDetails(
        session_id=data["id"],
        transaction_id=transaction_id,
        value=from_minor_units(data.get("amount_total") or 0),
        currency=(data.get("currency") or "usd").upper(),
        items=items,
        coupon_code=metadata.get("coupon_code") or "",
        promotion_code_id=metadata.get("promotion_code_id") or "",
    )


class StripeGateway(PaymentGateway):
    """Stripe Checkout Sessions + promotion codes przez oficjalny SDK."""

    name = "stripe"

    def __init__(self, config: Config, client: stripe.StripeClient | None = None):
        super().__init__(config)
        self._client = client

    def ensure_configured(self) -> None:
        key = (self.config.stripe_secret_key or "").strip()
        if not key:
            raise ConfigurationError("Missing STRIPE_SECRET_KEY")
        if not key.startswith(("sk_", "rk_")):
            raise ConfigurationError("STRIPE_SECRET_KEY is malformed")

    @property
    def client(self) -> stripe.StripeClient:
        if self._client is None:
            self._client = stripe.StripeClient(
                self.config.stripe_secret_key.strip(),
                http_client=stripe.RequestsClient(timeout=self.timeout),
                max_network_retries=STRIPE_NETWORK_RETRIES,
            )
        return self._client

    def _call(self, fn: Callable, *args, **kwargs) -> Dict[str, Any]:
        """Wywołanie SDK; StripeError -> GatewayError z surowym body odpowiedzi."""
        try:
            return _as_dict(fn(*args, **kwargs))
        except stripe.StripeError as e:
            message = f"stripe returned HTTP {e.http_status}" if e.http_status else "stripe request failed"
            logger.error(f"{message}: {e}")
            raise GatewayError(message, detail=e.json_body or {"error": str(e)}, provider=self.name) from e

    def find_promotion_code(self, code: str) -> str:
        data = self._call(
            self.client.promotion_codes.list,
            params={"code": code, "active": True, "limit": 1},
        )
        promos = data.get("data") or []
        if not promos:
            raise ValidationError("Invalid coupon code")
        return _as_dict(promos[0])["id"]

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
        if not cancel_url:
            raise ValidationError("Missing return_url/cancel_url")

        metadata = {
            "order_id": order_id or "",
            "coupon_code": coupon or "",
            "item_count": str(item_count),
        }
        if coupon:
            # total jest już po rabacie, kod tylko walidujemy i zapisujemy w metadata
            metadata["promotion_code_id"] = self.find_promotion_code(coupon)

        params: Dict[str, Any] = {
            "mode": "payment",
            "success_url": redirect_url,
            "cancel_url": cancel_url,
            "line_items": [
                {
                    "quantity": 1,
                    "price_data": {
                        "currency": currency.lower(),
                        "unit_amount": amount_minor,
                        "product_data": {"name": f"Order {order_id}" if order_id else "Order"},
                    },
                }
            ],
            "metadata": metadata,
        }
        if order_id:
            params["client_reference_id"] = order_id

        data = self._call(
            self.client.checkout.sessions.create,
            params=params,
            options={"idempotency_key": idempotency_key},
        )
        url = data.get("url")
        if not url:
            raise GatewayError("Stripe did not return a checkout URL", detail=data, provider=self.name)
        return CheckoutSession(url=url, reference=data.get("id"))

    def get_payment(self, reference: str) -> PaymentRecord:
        self.ensure_configured()
        return normalize_session(self._call(self.client.checkout.sessions.retrieve, reference))

    def get_session_details(self, reference: str) -> SessionDetails:
        self.ensure_configured()
        data = self._call(
            self.client.checkout.sessions.retrieve,
            reference,
            params={"expand": SESSION_DETAILS_EXPAND},
        )
        return normalize_session_details(data)
