# checkout/services/paypal_gateway.py
from typing import Any, Dict, Optional

import requests
from requests import RequestException

from checkout.domain.errors import ConfigurationError, GatewayError, ValidationError
from checkout.domain.money import format_major, to_minor_units
from checkout.domain.schemas import CheckoutSession, PaymentRecord
from checkout.services.payment_gateway import PaymentGateway
from checkout.utils.logging import get_logger
from checkout.utils.retry import http_retry
from checkout.utils.settings import Config

logger = get_logger(__name__)

PAYPAL_BASE_URLS = {
    "live": "https://api-m.paypal.com",
    "sandbox": "https://api-m.sandbox.paypal.com",
}
PAYPAL_COMPLETED = "COMPLETED"


def _unit_amount(unit: Dict[str, Any]) -> Dict[str, Any]:
    # odpowiedź capture nie ma purchase_units[0].amount, kwota siedzi w payments.captures[0]
    if unit.get("amount"):
        return unit["amount"]
    captures = (unit.get("payments") or {}).get("captures") or []
    if captures:
        return (captures[0] or {}).get("amount") or {}
    return {}


def normalize_order(data: Dict[str, Any]) -> PaymentRecord:
    """Order z Orders API v2 (albo wynik capture) -> PaymentRecord. Kwota z pierwszej purchase_unit."""
    order_id = data.get("id")
    status = data.get("status")
    if not order_id or not status:
        raise GatewayError("PayPal returned an unexpected order payload", detail=data, provider="paypal")

    amount_minor = None
    currency = None
    units = data.get("purchase_units") or []
    if units:
        amount = _unit_amount(units[0] or {})
        currency = amount.get("currency_code")
        if amount.get("value") is not None:
            try:
                amount_minor = to_minor_units(amount["value"])
            except ValidationError:
                amount_minor = None

    return PaymentRecord(
        reference=str(order_id),
        completed=str(status).upper() == PAYPAL_COMPLETED,
        provider_status=str(status),
        amount_minor=amount_minor,
        currency=currency,
    )


def approve_url(data: Dict[str, Any]) -> Optional[str]:
    for link in data.get("links") or []:
        if link.get("rel") in ("approve", "payer-action") and link.get("href"):
            return link["href"]
    return None


class PayPalGateway(PaymentGateway):
    """PayPal Orders API v2: create order -> approve URL, capture, odczyt statusu."""

    name = "paypal"

    def __init__(self, config: Config, session: requests.Session | None = None):
        super().__init__(config)
        self.session = session or requests.Session()

    def ensure_configured(self) -> None:
        if not self.config.paypal_client_id or not self.config.paypal_client_secret:
            raise ConfigurationError("Missing PAYPAL_CLIENT_ID / PAYPAL_CLIENT_SECRET")
        if self.config.paypal_env not in PAYPAL_BASE_URLS:
            raise ConfigurationError(f"Invalid PAYPAL_ENV {self.config.paypal_env!r}")

    @property
    def base_url(self) -> str:
        return PAYPAL_BASE_URLS[self.config.paypal_env]

    # ---- HTTP ----
    @http_retry()
    def _send(self, method: str, url: str, **kwargs) -> requests.Response:
        logger.info(f"{self.name} {method} {url}")
        return self.session.request(method, url, timeout=self.timeout, **kwargs)

    def request(self, method: str, url: str, **kwargs) -> Dict[str, Any]:
        """
        Wywołanie PayPala z timeoutem i retry na błędach transportu.
        Odpowiedź nie-2xx albo nie-JSON -> GatewayError z surowym payloadem.
        """
        try:
            resp = self._send(method, url, **kwargs)
        except RequestException as e:
            logger.error(f"{self.name} request failed: {e}")
            raise GatewayError(
                f"{self.name} request failed",
                detail={"error": str(e)},
                provider=self.name,
            ) from e

        try:
            data = resp.json()
        except ValueError:
            data = {"raw": resp.text}

        if not resp.ok:
            logger.error(f"{self.name} returned HTTP {resp.status_code}: {data}")
            raise GatewayError(
                f"{self.name} returned HTTP {resp.status_code}",
                detail=data,
                provider=self.name,
            )
        if not isinstance(data, dict):
            raise GatewayError(f"{self.name} returned an unexpected payload", detail=data, provider=self.name)
        return data

    def access_token(self) -> str:
        data = self.request(
            "POST",
            f"{self.base_url}/v1/oauth2/token",
            auth=(self.config.paypal_client_id, self.config.paypal_client_secret),
            data={"grant_type": "client_credentials"},
            headers={"Content-Type": "application/x-www-form-urlencoded"},
        )
        token = data.get("access_token")
        if not token:
            raise GatewayError("PayPal token error", detail=data, provider=self.name)
        return token

    def _headers(self, idempotency_key: Optional[str] = None) -> Dict[str, str]:
        headers = {
            "Authorization": f"Bearer {self.access_token()}",
            "Content-Type": "application/json",
        }
        if idempotency_key:
            headers["PayPal-Request-Id"] = idempotency_key
        return headers

    # ---- capabilities ----
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

        unit: Dict[str, Any] = {
            "amount": {"currency_code": currency, "value": format_major(amount_minor)},
            "description": f"Order {order_id}" if order_id else "Order",
        }
        if order_id:
            unit["custom_id"] = order_id

        payload = {
            "intent": "CAPTURE",
            "purchase_units": [unit],
            "application_context": {
                "brand_name": self.config.paypal_brand_name,
                "user_action": "PAY_NOW",
                "return_url": redirect_url,
                "cancel_url": cancel_url,
            },
        }

        data = self.request(
            "POST",
            f"{self.base_url}/v2/checkout/orders",
            json=payload,
            headers=self._headers(idempotency_key),
        )
        url = approve_url(data)
        if not url:
            raise GatewayError("PayPal did not return an approve URL", detail=data, provider=self.name)
        return CheckoutSession(url=url, reference=data.get("id"))

    def get_payment(self, reference: str) -> PaymentRecord:
        self.ensure_configured()
        data = self.request(
            "GET",
            f"{self.base_url}/v2/checkout/orders/{reference}",
            headers=self._headers(),
        )
        return normalize_order(data)

    def capture_payment(self, reference: str, idempotency_key: str) -> PaymentRecord:
        self.ensure_configured()
        data = self.request(
            "POST",
            f"{self.base_url}/v2/checkout/orders/{reference}/capture",
            headers=self._headers(idempotency_key),
        )
        return normalize_order(data)
