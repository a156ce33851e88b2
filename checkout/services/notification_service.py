# checkout/services/notification_service.py
from checkout.celery_worker import celery_app
from checkout.utils.logging import get_logger

logger = get_logger(__name__)


class NotificationService:
    """
    Powiadomienia o opłaconych zamówieniach.
    Używa Celery do asynchronicznego przetwarzania.
    """

    def __init__(self, enabled: bool = True):
        self.enabled = enabled

    def send_order_paid(self, order_id: str, payment_reference: str):
        """
        Wywoływane tylko przy przejściu pending -> paid.
        Niedostępny broker nie cofa potwierdzenia płatności.
        """
        if not self.enabled:
            logger.info(f"Notifications disabled, skipping order {order_id}")
            return
        try:
            send_order_paid_task.delay(order_id, payment_reference)
        except Exception as e:
            logger.warning(f"Failed to enqueue paid notification for order {order_id}: {e}")


@celery_app.task(name="checkout.services.notification_service.send_order_paid_task")
def send_order_paid_task(order_id: str, payment_reference: str):
    """
    Celery task - w prawdziwym systemie wysłałby email do klienta / sklepu.
    Teraz tylko loguje.
    """
    logger.info(f"[NOTIFICATION] Order {order_id} paid (payment {payment_reference})")

    return {"order_id": order_id, "payment_reference": payment_reference, "status": "sent"}
