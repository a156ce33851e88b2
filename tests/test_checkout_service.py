import pytest

from checkout.domain.errors import GatewayError, ValidationError
from checkout.domain.schemas import CaptureIn, CheckoutCreate
from checkout.services.checkout_service import CheckoutService


@pytest.fixture
def svc(gateway):
    return CheckoutService(gateway)


def checkout(**overrides):
    data = {
        "total": 19.99,
        "currency": "usd",
        "return_url": "https://shop.example/success",
        "cancel_url": "https://shop.example/cart",
    }
    data.update(overrides)
    return CheckoutCreate(**data)


def test_initiate_checkout_converts_to_minor_units(svc, gateway):
    out = svc.initiate_checkout(checkout(order_id="ORD-1", coupon=" spring ", items=[{"sku": "a", "quantity": 2}]))

    assert out.amount_minor == 1999
    assert out.currency == "USD"
    assert out.url == "https://pay.example/1"
    assert out.provider == "fake"
    call = gateway.checkouts[0]
    assert call["amount_minor"] == 1999
    assert call["redirect_url"] == "https://shop.example/success"
    assert call["order_id"] == "ORD-1"
    assert call["coupon"] == "SPRING"
    assert call["item_count"] == 1
    assert call["idempotency_key"] == out.idempotency_key


def test_initiate_checkout_rounds_half_up(svc):
    assert svc.initiate_checkout(checkout(total="19.945")).amount_minor == 1995


@pytest.mark.parametrize("total", [0, -10, "abc", None, "NaN"])
def test_initiate_checkout_rejects_bad_totals(svc, gateway, total):
    with pytest.raises(ValidationError):
        svc.initiate_checkout(checkout(total=total))
    assert gateway.checkouts == []


def test_initiate_checkout_requires_return_url(svc, gateway):
    with pytest.raises(ValidationError):
        svc.initiate_checkout(checkout(return_url=" "))
    assert gateway.checkouts == []


def test_initiate_checkout_rejects_bad_currency(svc):
    with pytest.raises(ValidationError):
        svc.initiate_checkout(checkout(currency="U$D"))


def test_each_attempt_gets_fresh_idempotency_key(svc, gateway):
    first = svc.initiate_checkout(checkout(order_id="ORD-1"))
    second = svc.initiate_checkout(checkout(order_id="ORD-1"))

    assert first.idempotency_key != second.idempotency_key
    assert "ORD-1" not in first.idempotency_key
    assert len(gateway.checkouts) == 2


def test_initiate_checkout_propagates_gateway_error(svc, gateway):
    gateway.fail_with = GatewayError("square returned HTTP 400", detail={"errors": [{"code": "INVALID"}]})
    with pytest.raises(GatewayError) as exc:
        svc.initiate_checkout(checkout())
    assert exc.value.detail == {"errors": [{"code": "INVALID"}]}


def test_capture_requires_reference(svc):
    with pytest.raises(ValidationError):
        svc.capture_payment(CaptureIn(payment_reference=""))


def test_capture_not_supported_by_self_settling_gateway(svc):
    with pytest.raises(ValidationError):
        svc.capture_payment(CaptureIn(payment_reference="pay_1"))


@pytest.mark.parametrize("session_id", [None, "", "   "])
def test_session_details_requires_id(svc, session_id):
    with pytest.raises(ValidationError):
        svc.session_details(session_id)


def test_session_details_delegates_to_gateway(svc, gateway, monkeypatch):
    seen = []
    monkeypatch.setattr(gateway, "get_session_details", lambda ref: seen.append(ref) or "details")

    assert svc.session_details(" cs_1 ") == "details"
    assert seen == ["cs_1"]
