# checkout/services/order_service.py
import hmac
import secrets
import time
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from checkout.data.models.order import OrderModel, utcnow
from checkout.domain.errors import AuthorizationError, ValidationError
from checkout.domain.money import MINOR_UNITS_PER_MAJOR, from_minor_units, quantize_cents
from checkout.domain.schemas import (
    ConfirmOut,
    ConfirmResult,
    OrderConfirm,
    OrderCreate,
    OrderOut,
    OrderSnapshot,
    OrderStatus,
    PaymentRecord,
    PaymentStatus,
    ShippingStatus,
    TotalsIn,
)
from checkout.repos.order_repo import OrderRepo
from checkout.services.payment_gateway import PaymentGateway
from checkout.utils.logging import get_logger
from checkout.utils.settings import Config

logger = get_logger(__name__)

MAX_LIST_LIMIT = 1000


def normalize_coupon(code: Optional[str]) -> Optional[str]:
    normalized = (code or "").strip().upper()
    return normalized or None


def generate_order_id() -> str:
    # fallback gdy klient nie podał order_id: znacznik czasu + losowy sufiks
    return f"ORD-{int(time.time() * 1000)}-{secrets.token_hex(3)}"


def check_totals(totals: TotalsIn) -> Dict[str, Decimal]:
    """total == subtotal - discount + shipping_cost (z dokładnością do centa)."""
    subtotal = quantize_cents(totals.subtotal)
    discount = quantize_cents(totals.discount)
    shipping_cost = quantize_cents(totals.shipping_cost)
    total = quantize_cents(totals.total)

    if subtotal - discount + shipping_cost != total:
        raise ValidationError(
            f"Invalid totals: total {total} != subtotal {subtotal} - discount {discount} + shipping_cost {shipping_cost}"
        )
    return {
        "subtotal": subtotal,
        "discount": discount,
        "shipping_cost": shipping_cost,
        "total": total,
    }


class OrderService:
    """
    Cykl życia zamówienia: utworzenie (przed płatnością), potwierdzenie
    (po płatności, możliwie zduplikowane / poza kolejnością) oraz operacje admina.
    """

    def __init__(self, db: Session, gateway: PaymentGateway, notifier, config: Config):
        self.repo = OrderRepo(db)
        self.gateway = gateway
        self.notifier = notifier
        self.config = config

    # =====================================================
    # COMMANDS
    # =====================================================
    def create_order(self, payload: OrderCreate) -> OrderOut:
        if not payload.items:
            raise ValidationError("No items provided")

        amounts = check_totals(payload.totals)
        order_id = (payload.order_id or "").strip() or generate_order_id()

        order = OrderModel(
            order_id=order_id,
            items=[i.model_dump(mode="json", exclude_none=True) for i in payload.items],
            currency=payload.currency.upper(),
            coupon=normalize_coupon(payload.coupon),
            shipping_address=payload.shipping_address,
            status=OrderStatus.NEW.value,
            payment_status=PaymentStatus.PENDING.value,
            shipping_status=ShippingStatus.NOT_SHIPPED.value,
            client_timestamp=payload.client_timestamp,
            **amounts,
        )
        created = self.repo.insert(order)

        logger.info(f"Order {created.order_id} created (row {created.id}, total {created.total})")
        return OrderOut.model_validate(created)

    def confirm_order(self, payload: OrderConfirm) -> ConfirmOut:
        """
        Potwierdzenie płatności.
        1. walidacja order_id / payment_reference
        2. zamówienie już opłacone -> zwracamy je bez zmian (idempotencja)
        3. weryfikacja u providera (albo snapshot klienta w trybie trust)
        4. nie completed albo kwota / waluta inna niż w zamówieniu -> not_paid, bez zapisu
        5. upsert: update pending -> paid, a gdy brak wiersza insert;
           referencja przypięta do innego zamówienia -> ConflictError
        """
        order_id = (payload.order_id or "").strip()
        payment_reference = (payload.payment_reference or "").strip()
        if not order_id or not payment_reference:
            raise ValidationError("Missing order_id or payment_reference")

        existing = self.repo.get_by_order_id(order_id)
        if existing and existing.payment_status == PaymentStatus.PAID.value:
            logger.info(f"Order {order_id} already paid, confirmation is a no-op")
            return ConfirmOut(
                result=ConfirmResult.PAID,
                provider_status=None,
                already_paid=True,
                order=OrderOut.model_validate(existing),
            )

        trusting = self.config.trust_client_confirmation and payload.order is not None
        if trusting:
            record = self._record_from_snapshot(payment_reference, payload.order)
        else:
            record = self.gateway.get_payment(payment_reference)

        if not record.completed:
            logger.info(f"Order {order_id}: payment {payment_reference} not completed ({record.provider_status})")
            return ConfirmOut(
                result=ConfirmResult.NOT_PAID,
                provider_status=record.provider_status,
                order=OrderOut.model_validate(existing) if existing else None,
            )

        if existing and not trusting and not self._payment_covers(existing, record):
            return ConfirmOut(
                result=ConfirmResult.NOT_PAID,
                provider_status=record.provider_status,
                order=OrderOut.model_validate(existing),
            )

        patch = {
            "status": OrderStatus.PAID.value,
            "payment_status": PaymentStatus.PAID.value,
            "paid_at": utcnow(),
            "payment_reference": payment_reference,
            "payment_provider": "client" if trusting else self.gateway.name,
            "paid_amount_minor": record.amount_minor,
        }
        if trusting:
            patch.update(self._snapshot_fields(payload.order))

        new_order = self._paid_order(order_id, patch, payload.order, record)
        order, transitioned = self.repo.upsert_paid(order_id, patch, new_order)

        if transitioned:
            logger.info(f"Order {order_id} paid (payment {payment_reference})")
            self.notifier.send_order_paid(order.order_id, order.payment_reference)
        else:
            logger.info(f"Order {order_id} was confirmed concurrently, returning stored record")

        return ConfirmOut(
            result=ConfirmResult.PAID,
            provider_status=record.provider_status,
            already_paid=not transitioned,
            order=OrderOut.model_validate(order),
        )

    def set_shipping_status(self, admin_token: Optional[str], row_id: int, shipped: bool) -> OrderOut:
        self.authorize_admin(admin_token)
        order = self.repo.update_shipping(row_id, shipped)
        logger.info(f"Order row {row_id} shipping_status -> {order.shipping_status}")
        return OrderOut.model_validate(order)

    # =====================================================
    # QUERY
    # =====================================================
    def list_orders(self, admin_token: Optional[str], limit: int = 200) -> List[OrderOut]:
        self.authorize_admin(admin_token)
        if limit < 1 or limit > MAX_LIST_LIMIT:
            raise ValidationError(f"limit must be between 1 and {MAX_LIST_LIMIT}")
        return [OrderOut.model_validate(o) for o in self.repo.select_recent(limit)]

    # =====================================================
    # helpers
    # =====================================================
    def authorize_admin(self, admin_token: Optional[str]) -> None:
        expected = self.config.admin_token
        if not expected:
            logger.error("ADMIN_TOKEN is not configured, rejecting admin request")
            raise AuthorizationError()
        if not admin_token or not hmac.compare_digest(admin_token.encode(), expected.encode()):
            logger.warning("Rejected admin request with invalid token")
            raise AuthorizationError()

    def _payment_covers(self, order: OrderModel, record: PaymentRecord) -> bool:
        """Kwota i waluta płatności u providera muszą odpowiadać zapisanemu zamówieniu."""
        expected = int(quantize_cents(Decimal(order.total)) * MINOR_UNITS_PER_MAJOR)
        if record.amount_minor != expected:
            logger.warning(
                f"Order {order.order_id}: payment {record.reference} amount {record.amount_minor} "
                f"!= stored total {expected} (minor units), not marking paid"
            )
            return False
        if record.currency and record.currency.upper() != (order.currency or "").upper():
            logger.warning(
                f"Order {order.order_id}: payment {record.reference} currency {record.currency} "
                f"!= order currency {order.currency}, not marking paid"
            )
            return False
        return True

    def _record_from_snapshot(self, payment_reference: str, snapshot: OrderSnapshot) -> PaymentRecord:
        if snapshot.totals is None:
            raise ValidationError("Order snapshot without totals")
        amounts = check_totals(snapshot.totals)
        return PaymentRecord(
            reference=payment_reference,
            completed=True,
            provider_status="client_confirmed",
            amount_minor=int(amounts["total"] * MINOR_UNITS_PER_MAJOR),
            currency=snapshot.currency,
        )

    def _snapshot_fields(self, snapshot: OrderSnapshot) -> Dict[str, Any]:
        fields: Dict[str, Any] = {}
        if snapshot.items:
            fields["items"] = [i.model_dump(mode="json", exclude_none=True) for i in snapshot.items]
        if snapshot.totals is not None:
            fields.update(check_totals(snapshot.totals))
        if snapshot.shipping_address is not None:
            fields["shipping_address"] = snapshot.shipping_address
        if snapshot.coupon:
            fields["coupon"] = normalize_coupon(snapshot.coupon)
        return fields

    def _paid_order(
        self,
        order_id: str,
        patch: Dict[str, Any],
        snapshot: Optional[OrderSnapshot],
        record: PaymentRecord,
    ) -> OrderModel:
        """
        Wiersz dla potwierdzenia bez wcześniejszego create.
        Kwoty z providera, pozycje i adres ze snapshotu (informacyjnie).
        """
        amount = from_minor_units(record.amount_minor) if record.amount_minor is not None else Decimal("0.00")
        fields: Dict[str, Any] = {
            "items": [],
            "subtotal": amount,
            "discount": Decimal("0.00"),
            "shipping_cost": Decimal("0.00"),
            "total": amount,
            "currency": (record.currency or "USD").upper(),
            "shipping_status": ShippingStatus.NOT_SHIPPED.value,
        }
        if snapshot is not None:
            fields["items"] = [i.model_dump(mode="json", exclude_none=True) for i in snapshot.items]
            fields["shipping_address"] = snapshot.shipping_address
            fields["coupon"] = normalize_coupon(snapshot.coupon)
        fields.update(patch)
        return OrderModel(order_id=order_id, **fields)
