import pytest

from checkout.domain.errors import AuthorizationError, NotFoundError, ValidationError
from checkout.domain.schemas import OrderCreate
from checkout.services.order_service import OrderService

ADMIN_TOKEN = "s3cret-admin-token"


def seed(order_service, n=3):
    created = []
    for i in range(n):
        created.append(order_service.create_order(OrderCreate(
            order_id=f"ORD-{i}",
            items=[{"sku": "a", "quantity": 1}],
            totals={"subtotal": 10, "total": 10},
        )))
    return created


@pytest.mark.parametrize("token", [None, "", "wrong", ADMIN_TOKEN + "x", ADMIN_TOKEN.upper()])
def test_list_orders_rejects_bad_tokens(order_service, token):
    seed(order_service)
    with pytest.raises(AuthorizationError) as exc:
        order_service.list_orders(token)
    assert exc.value.public_message() == "Unauthorized"


def test_list_orders_rejects_everything_when_secret_not_configured(db, gateway, notifier, config):
    svc = OrderService(db=db, gateway=gateway, notifier=notifier, config=config.model_copy(update={"admin_token": None}))
    with pytest.raises(AuthorizationError):
        svc.list_orders("")
    with pytest.raises(AuthorizationError):
        svc.list_orders(None)


def test_list_orders_newest_first_with_limit(order_service):
    seed(order_service, n=3)

    orders = order_service.list_orders(ADMIN_TOKEN)
    assert [o.order_id for o in orders] == ["ORD-2", "ORD-1", "ORD-0"]

    limited = order_service.list_orders(ADMIN_TOKEN, limit=2)
    assert [o.order_id for o in limited] == ["ORD-2", "ORD-1"]


@pytest.mark.parametrize("limit", [0, -5, 1001])
def test_list_orders_limit_bounds(order_service, limit):
    with pytest.raises(ValidationError):
        order_service.list_orders(ADMIN_TOKEN, limit=limit)


def test_shipping_toggle_is_independent_of_payment(order_service):
    order = seed(order_service, n=1)[0]
    assert order.payment_status == "pending"

    shipped = order_service.set_shipping_status(ADMIN_TOKEN, order.id, True)
    assert shipped.shipping_status == "shipped"
    assert shipped.shipped_at is not None
    assert shipped.payment_status == "pending"

    reverted = order_service.set_shipping_status(ADMIN_TOKEN, order.id, False)
    assert reverted.shipping_status == "not_shipped"
    assert reverted.shipped_at is None


def test_shipping_requires_admin(order_service):
    order = seed(order_service, n=1)[0]
    with pytest.raises(AuthorizationError):
        order_service.set_shipping_status("nope", order.id, True)


def test_shipping_unknown_row(order_service):
    with pytest.raises(NotFoundError):
        order_service.set_shipping_status(ADMIN_TOKEN, 999, True)
