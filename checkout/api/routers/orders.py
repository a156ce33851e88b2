# checkout/api/routers/orders.py
from fastapi import APIRouter, Depends

from checkout.api.deps import get_order_service
from checkout.domain.schemas import ConfirmOut, OrderConfirm, OrderCreate, OrderOut
from checkout.services.order_service import OrderService

router = APIRouter(prefix="/orders", tags=["orders"])


@router.post("/create", response_model=OrderOut, status_code=201)
def create_order(payload: OrderCreate, svc: OrderService = Depends(get_order_service)):
    """
    Tworzy zamówienie przed płatnością (status new, payment_status pending).
    """
    return svc.create_order(payload)


@router.post("/confirm", response_model=ConfirmOut)
def confirm_order(payload: OrderConfirm, svc: OrderService = Depends(get_order_service)):
    """
    Potwierdza płatność po powrocie z providera.
    Niezapłacone -> 200 z result=not_paid, nie błąd.
    """
    return svc.confirm_order(payload)
