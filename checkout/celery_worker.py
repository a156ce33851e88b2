# checkout/celery_worker.py
from celery import Celery

from checkout.utils.settings import load_config

_config = load_config()

celery_app = Celery(
    "checkout",
    broker=_config.celery_broker_url,
    backend=_config.celery_result_backend,
)

# Explicite importuj taski, żeby Celery je zarejestrował
celery_app.conf.imports = (
    "checkout.services.notification_service",
)

celery_app.conf.timezone = "UTC"
