from sqlalchemy import JSON, BigInteger, Column, DateTime, Integer, Numeric, String, UniqueConstraint
from datetime import datetime, timezone

from checkout.data.database import Base
from checkout.domain.schemas import OrderStatus, PaymentStatus, ShippingStatus


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class OrderModel(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True)
    order_id = Column(String(64), nullable=False)

    items = Column(JSON, nullable=False, default=list)
    subtotal = Column(Numeric(12, 2), nullable=False, default=0)
    discount = Column(Numeric(12, 2), nullable=False, default=0)
    shipping_cost = Column(Numeric(12, 2), nullable=False, default=0)
    total = Column(Numeric(12, 2), nullable=False)
    currency = Column(String(3), nullable=False, default="USD")
    coupon = Column(String(64), nullable=True)
    shipping_address = Column(JSON, nullable=True)

    status = Column(String(20), nullable=False, default=OrderStatus.NEW.value)  # new, paid
    payment_status = Column(String(20), nullable=False, default=PaymentStatus.PENDING.value)  # pending, paid
    paid_at = Column(DateTime(timezone=True), nullable=True)
    payment_reference = Column(String(255), nullable=True)
    payment_provider = Column(String(20), nullable=True)
    paid_amount_minor = Column(BigInteger, nullable=True)

    shipping_status = Column(String(20), nullable=False, default=ShippingStatus.NOT_SHIPPED.value)
    shipped_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    client_timestamp = Column(DateTime(timezone=True), nullable=True)

    # jeden wiersz na order_id, jedna płatność na jedno zamówienie
    __table_args__ = (
        UniqueConstraint("order_id", name="u_orders_order_id"),
        UniqueConstraint("payment_reference", name="u_orders_payment_reference"),
    )
