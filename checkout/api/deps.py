# checkout/api/deps.py
from fastapi import Depends, Request
from sqlalchemy.orm import Session

from checkout.data.database import get_db
from checkout.services.checkout_service import CheckoutService
from checkout.services.order_service import OrderService


def get_order_service(request: Request, db: Session = Depends(get_db)) -> OrderService:
    state = request.app.state
    return OrderService(
        db=db,
        gateway=state.gateway,
        notifier=state.notifier,
        config=state.config,
    )


def get_checkout_service(request: Request) -> CheckoutService:
    return CheckoutService(gateway=request.app.state.gateway)
