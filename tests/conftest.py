from typing import Dict, List, Optional

import pytest
from fastapi.testclient import TestClient

from checkout.data.database import Base, make_engine, make_session_factory
from checkout.data.models import OrderModel  # noqa: F401
from checkout.domain.errors import GatewayError
from checkout.domain.schemas import CheckoutSession, PaymentRecord
from checkout.main import create_app
from checkout.services.order_service import OrderService
from checkout.services.payment_gateway import PaymentGateway
from checkout.utils.settings import Config

ADMIN_TOKEN = "s3cret-admin-token"


class FakeGateway(PaymentGateway):
    """Gateway w pamięci: statusy płatności ustawiane w teście."""

    name = "fake"

    def __init__(self, config: Config):
        super().__init__(config)
        self.payments: Dict[str, PaymentRecord] = {}
        self.checkouts: List[dict] = []
        self.get_calls: List[str] = []
        self.fail_with: Optional[GatewayError] = None

    def set_payment(self, reference: str, status: str = "COMPLETED", amount_minor: int = 8000, currency: str = "USD"):
        self.payments[reference] = PaymentRecord(
            reference=reference,
            completed=status == "COMPLETED",
            provider_status=status,
            amount_minor=amount_minor,
            currency=currency,
        )

    def create_hosted_checkout(self, amount_minor, currency, redirect_url, cancel_url, idempotency_key,
                               order_id=None, coupon=None, item_count=0):
        if self.fail_with:
            raise self.fail_with
        self.checkouts.append({
            "amount_minor": amount_minor,
            "currency": currency,
            "redirect_url": redirect_url,
            "cancel_url": cancel_url,
            "idempotency_key": idempotency_key,
            "order_id": order_id,
            "coupon": coupon,
            "item_count": item_count,
        })
        return CheckoutSession(url=f"https://pay.example/{len(self.checkouts)}", reference=f"chk_{len(self.checkouts)}")

    def get_payment(self, reference):
        self.get_calls.append(reference)
        if self.fail_with:
            raise self.fail_with
        if reference not in self.payments:
            raise GatewayError("payment not found", detail={"errors": [{"code": "NOT_FOUND"}]}, provider=self.name)
        return self.payments[reference]


class FakeNotifier:
    def __init__(self):
        self.sent = []

    def send_order_paid(self, order_id, payment_reference):
        self.sent.append((order_id, payment_reference))


@pytest.fixture
def config():
    return Config(
        database_url="sqlite://",
        admin_token=ADMIN_TOKEN,
        payment_provider="fake",
        gateway_timeout_seconds=1.0,
    )


@pytest.fixture
def gateway(config):
    return FakeGateway(config)


@pytest.fixture
def notifier():
    return FakeNotifier()


@pytest.fixture
def session_factory():
    engine = make_engine("sqlite://")
    Base.metadata.create_all(bind=engine)
    yield make_session_factory(engine)
    engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def order_service(db, gateway, notifier, config):
    return OrderService(db=db, gateway=gateway, notifier=notifier, config=config)


@pytest.fixture
def client(config, gateway, notifier):
    app = create_app(config, gateway=gateway, notifier=notifier)
    with TestClient(app) as c:
        yield c
    app.state.engine.dispose()
