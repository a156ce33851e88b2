# checkout/api/routers/checkout.py
from typing import Optional

from fastapi import APIRouter, Depends, Query

from checkout.api.deps import get_checkout_service
from checkout.domain.schemas import CaptureIn, CheckoutCreate, CheckoutOut, PaymentRecord, SessionDetails
from checkout.services.checkout_service import CheckoutService

router = APIRouter(prefix="/checkout", tags=["checkout"])


@router.post("/create", response_model=CheckoutOut)
def create_checkout(payload: CheckoutCreate, svc: CheckoutService = Depends(get_checkout_service)):
    return svc.initiate_checkout(payload)


@router.post("/capture", response_model=PaymentRecord)
def capture_payment(payload: CaptureIn, svc: CheckoutService = Depends(get_checkout_service)):
    """Capture zatwierdzonego zamówienia (PayPal)."""
    return svc.capture_payment(payload)


@router.get("/session", response_model=SessionDetails)
def get_session(session_id: Optional[str] = Query(None), svc: CheckoutService = Depends(get_checkout_service)):
    """Szczegóły sesji Stripe po powrocie klienta (transakcja, pozycje, kupon)."""
    return svc.session_details(session_id)
