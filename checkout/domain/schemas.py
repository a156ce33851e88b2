# checkout/domain/schemas.py
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class OrderStatus(str, Enum):
    NEW = "new"
    PAID = "paid"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"


class ShippingStatus(str, Enum):
    NOT_SHIPPED = "not_shipped"
    SHIPPED = "shipped"


class ConfirmResult(str, Enum):
    PAID = "paid"
    NOT_PAID = "not_paid"


# =====================================================
# REQUEST
# =====================================================
class OrderItemIn(BaseModel):
    """Pozycja zamówienia (sku albo id z koszyka)."""

    sku: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("sku", "id"),
        description="SKU / price id produktu",
    )
    quantity: int = Field(..., gt=0, description="Ilość (musi być > 0)")
    unit_price: Optional[Decimal] = Field(None, ge=0, description="Cena jednostkowa")
    name: Optional[str] = None


class TotalsIn(BaseModel):
    subtotal: Decimal = Field(..., ge=0)
    discount: Decimal = Field(Decimal("0"), ge=0)
    shipping_cost: Decimal = Field(Decimal("0"), ge=0)
    total: Decimal = Field(..., ge=0)


class OrderCreate(BaseModel):
    """Schema dla tworzenia zamówienia (przed płatnością)."""

    items: List[OrderItemIn]
    totals: TotalsIn
    order_id: Optional[str] = Field(None, max_length=64)
    coupon: Optional[str] = Field(None, max_length=64)
    shipping_address: Optional[Dict[str, Any]] = None
    client_timestamp: Optional[datetime] = None
    currency: str = Field("USD", min_length=3, max_length=3)


class OrderSnapshot(BaseModel):
    """Odtworzone przez klienta zamówienie wysyłane razem z potwierdzeniem."""

    items: List[OrderItemIn] = Field(default_factory=list)
    totals: Optional[TotalsIn] = None
    shipping_address: Optional[Dict[str, Any]] = None
    coupon: Optional[str] = Field(None, max_length=64)
    currency: Optional[str] = Field(None, min_length=3, max_length=3)


class OrderConfirm(BaseModel):
    order_id: Optional[str] = Field(None, max_length=64)
    payment_reference: Optional[str] = Field(None, max_length=255)
    order: Optional[OrderSnapshot] = None


class ShippingUpdate(BaseModel):
    shipped: bool


class CheckoutCreate(BaseModel):
    """Schema dla utworzenia hostowanego checkoutu u providera."""

    total: Union[int, float, str, None] = None
    currency: str = Field("USD", min_length=3, max_length=3)
    return_url: Optional[str] = None
    cancel_url: Optional[str] = None
    order_id: Optional[str] = Field(None, max_length=64)
    coupon: Optional[str] = Field(None, max_length=64)
    items: List[OrderItemIn] = Field(default_factory=list)


class CaptureIn(BaseModel):
    payment_reference: Optional[str] = Field(None, max_length=255)


# =====================================================
# GATEWAY (znormalizowany kształt, niezależny od providera)
# =====================================================
class CheckoutSession(BaseModel):
    url: str
    reference: Optional[str] = None


class PaymentRecord(BaseModel):
    reference: str
    completed: bool
    provider_status: str
    amount_minor: Optional[int] = None
    currency: Optional[str] = None


class SessionItem(BaseModel):
    item_id: str
    item_name: str
    price: Decimal
    quantity: int


class SessionDetails(BaseModel):
    """Szczegóły opłaconej sesji checkoutu (np. dla analityki po powrocie klienta)."""

    session_id: str
    transaction_id: str
    value: Decimal
    currency: str
    items: List[SessionItem] = Field(default_factory=list)
    coupon_code: str = ""
    promotion_code_id: str = ""


# =====================================================
# RESPONSE
# =====================================================
class OrderOut(BaseModel):
    id: int
    order_id: str
    items: List[Dict[str, Any]]
    subtotal: Decimal
    discount: Decimal
    shipping_cost: Decimal
    total: Decimal
    currency: str
    coupon: Optional[str] = None
    shipping_address: Optional[Dict[str, Any]] = None
    status: OrderStatus
    payment_status: PaymentStatus
    paid_at: Optional[datetime] = None
    payment_reference: Optional[str] = None
    payment_provider: Optional[str] = None
    paid_amount_minor: Optional[int] = None
    shipping_status: ShippingStatus
    shipped_at: Optional[datetime] = None
    created_at: datetime
    client_timestamp: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class ConfirmOut(BaseModel):
    result: ConfirmResult
    provider_status: Optional[str] = None
    already_paid: bool = False
    order: Optional[OrderOut] = None


class CheckoutOut(BaseModel):
    url: str
    provider: str
    reference: Optional[str] = None
    idempotency_key: str
    amount_minor: int
    currency: str


class ErrorOut(BaseModel):
    ok: bool = False
    kind: str
    message: str
    detail: Any = None
