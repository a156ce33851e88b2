# checkout/repos/order_repo.py
from typing import Any, Dict, List, Tuple

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from checkout.data.models.order import OrderModel, utcnow
from checkout.domain.errors import ConflictError, NotFoundError
from checkout.domain.schemas import PaymentStatus, ShippingStatus
from checkout.utils.logging import get_logger

logger = get_logger(__name__)


class OrderRepo:
    def __init__(self, db: Session):
        self.db = db

    def insert(self, order: OrderModel) -> OrderModel:
        self.db.add(order)
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise ConflictError(f"Order {order.order_id} already exists") from e
        self.db.refresh(order)
        return order

    def get(self, row_id: int) -> OrderModel | None:
        return self.db.get(OrderModel, row_id)

    def get_by_order_id(self, order_id: str) -> OrderModel | None:
        return self.db.execute(
            select(OrderModel).where(OrderModel.order_id == order_id)
        ).scalar_one_or_none()

    def get_by_payment_reference(self, payment_reference: str) -> OrderModel | None:
        return self.db.execute(
            select(OrderModel).where(OrderModel.payment_reference == payment_reference)
        ).scalar_one_or_none()

    def mark_paid_if_pending(self, order_id: str, patch: Dict[str, Any]) -> int:
        """
        Warunkowy update: tylko wiersz w stanie pending.
        update orders set ... where order_id = X and payment_status = 'pending'
        Zwraca rowcount (0 = brak wiersza albo już opłacony).
        Referencja płatności zajęta przez inne zamówienie -> ConflictError.
        """
        try:
            rowcount = (
                self.db.query(OrderModel)
                .filter(
                    OrderModel.order_id == order_id,
                    OrderModel.payment_status == PaymentStatus.PENDING.value,
                )
                .update(patch, synchronize_session=False)
            )
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise ConflictError(
                f"Payment {patch.get('payment_reference')} is already attached to another order"
            ) from e
        return rowcount

    def upsert_paid(
        self,
        order_id: str,
        patch: Dict[str, Any],
        new_order: OrderModel,
    ) -> Tuple[OrderModel, bool]:
        """
        Upsert po order_id:
        - referencja płatności przypięta do innego zamówienia -> ConflictError
        - wiersz pending -> patch (przejście pending -> paid)
        - wiersz paid -> bez zmian
        - brak wiersza -> insert new_order
        Zwraca (order, transitioned). transitioned=True tylko gdy ten call zrobił przejście.
        """
        reference = patch.get("payment_reference")
        if reference:
            owner = self.get_by_payment_reference(reference)
            if owner is not None and owner.order_id != order_id:
                logger.warning(f"Payment {reference} already confirmed order {owner.order_id}, rejecting {order_id}")
                raise ConflictError(f"Payment {reference} is already attached to another order")

        if self.mark_paid_if_pending(order_id, patch):
            return self.get_by_order_id(order_id), True

        existing = self.get_by_order_id(order_id)
        if existing:
            return existing, False

        try:
            return self.insert(new_order), True
        except ConflictError:
            # przegrany wyścig: ktoś wstawił wiersz między update a insert
            logger.warning(f"Concurrent insert for order {order_id}, falling back to update")

        if self.mark_paid_if_pending(order_id, patch):
            return self.get_by_order_id(order_id), True

        existing = self.get_by_order_id(order_id)
        if existing is None:
            # insert odrzucony przez unikalny payment_reference, nie order_id
            raise ConflictError(f"Payment {reference} is already attached to another order")
        return existing, False

    def select_recent(self, limit: int) -> List[OrderModel]:
        return list(
            self.db.execute(
                select(OrderModel)
                .order_by(OrderModel.created_at.desc(), OrderModel.id.desc())
                .limit(limit)
            ).scalars()
        )

    def update_shipping(self, row_id: int, shipped: bool) -> OrderModel:
        order = self.get(row_id)
        if not order:
            raise NotFoundError(f"Order row {row_id} not found")

        if shipped:
            order.shipping_status = ShippingStatus.SHIPPED.value
            order.shipped_at = utcnow()
        else:
            order.shipping_status = ShippingStatus.NOT_SHIPPED.value
            order.shipped_at = None

        self.db.commit()
        self.db.refresh(order)
        return order
