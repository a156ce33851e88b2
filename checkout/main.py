# checkout/main.py
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import uvicorn

from checkout.api import register_api
from checkout.data.database import Base, make_engine, make_session_factory
from checkout.services.payment_gateway import PaymentGateway, build_gateway
from checkout.utils.logging import get_logger
from checkout.utils.settings import Config, load_config

# IMPORT WSZYSTKICH MODELI PRZED CREATE_ALL
from checkout.data.models import OrderModel  # noqa: F401

logger = get_logger(__name__)


def create_app(
    config: Config | None = None,
    gateway: PaymentGateway | None = None,
    notifier=None,
) -> FastAPI:
    """
    Buduje aplikację. Config, gateway i notifier są wstrzykiwane
    (testy podają fake'i), domyślnie budowane z env.
    """
    config = config or load_config()

    engine = make_engine(config.database_url)
    logger.info(f"Models registered in Base.metadata: {list(Base.metadata.tables.keys())}")
    Base.metadata.create_all(bind=engine)

    if notifier is None:
        from checkout.services.notification_service import NotificationService

        notifier = NotificationService(enabled=config.notifications_enabled)

    app = FastAPI(
        title="Checkout Service",
        version="1.0.0",
    )
    app.state.config = config
    app.state.engine = engine
    app.state.session_factory = make_session_factory(engine)
    app.state.gateway = gateway or build_gateway(config)
    app.state.notifier = notifier

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(config.allowed_origins),
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "x-admin-token"],
    )

    register_api(app)

    logger.info(f"Checkout service ready (provider: {app.state.gateway.name})")
    return app


if __name__ == "__main__":
    uvicorn.run("checkout.asgi:app", host="0.0.0.0", port=8000)
