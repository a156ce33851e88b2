# checkout/api/routers/admin.py
from typing import List, Optional

from fastapi import APIRouter, Depends, Header, Query

from checkout.api.deps import get_order_service
from checkout.domain.schemas import OrderOut, ShippingUpdate
from checkout.services.order_service import OrderService

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/orders", response_model=List[OrderOut])
def list_orders(
    limit: int = Query(200),
    x_admin_token: Optional[str] = Header(None),
    svc: OrderService = Depends(get_order_service),
):
    return svc.list_orders(x_admin_token, limit=limit)


@router.post("/orders/{row_id}/ship", response_model=OrderOut)
def set_shipping_status(
    row_id: int,
    payload: ShippingUpdate,
    x_admin_token: Optional[str] = Header(None),
    svc: OrderService = Depends(get_order_service),
):
    return svc.set_shipping_status(x_admin_token, row_id, payload.shipped)
