# checkout/services/payment_gateway.py
from typing import Optional

from checkout.domain.errors import ConfigurationError, ValidationError
from checkout.domain.schemas import CheckoutSession, PaymentRecord, SessionDetails
from checkout.utils.logging import get_logger
from checkout.utils.settings import Config

logger = get_logger(__name__)


class PaymentGateway:
    """
    Wspólny interfejs providerów płatności.
    Każdy provider normalizuje swoje odpowiedzi do CheckoutSession / PaymentRecord,
    serwisy nie widzą surowych pól providera.
    """

    name = "base"

    def __init__(self, config: Config):
        self.config = config
        self.timeout = config.gateway_timeout_seconds

    # ---- capabilities ----
    def create_hosted_checkout(
        self,
        amount_minor: int,
        currency: str,
        redirect_url: str,
        cancel_url: Optional[str],
        idempotency_key: str,
        order_id: Optional[str] = None,
        coupon: Optional[str] = None,
        item_count: int = 0,
    ) -> CheckoutSession:
        raise NotImplementedError

    def get_payment(self, reference: str) -> PaymentRecord:
        raise NotImplementedError

    def capture_payment(self, reference: str, idempotency_key: str) -> PaymentRecord:
        raise ValidationError(f"{self.name} payments do not need a capture step")

    def get_session_details(self, reference: str) -> SessionDetails:
        raise ValidationError(f"{self.name} does not expose checkout session details")

    def ensure_configured(self) -> None:
        pass


class UnconfiguredGateway(PaymentGateway):
    """Provider nieznany albo nieobsługiwany - każde wywołanie kończy się ConfigurationError."""

    def __init__(self, config: Config, reason: str):
        super().__init__(config)
        self.name = config.payment_provider or "none"
        self.reason = reason

    def ensure_configured(self) -> None:
        raise ConfigurationError(self.reason)

    def create_hosted_checkout(self, *args, **kwargs) -> CheckoutSession:
        self.ensure_configured()

    def get_payment(self, reference: str) -> PaymentRecord:
        self.ensure_configured()

    def capture_payment(self, reference: str, idempotency_key: str) -> PaymentRecord:
        self.ensure_configured()

    def get_session_details(self, reference: str) -> SessionDetails:
        self.ensure_configured()


def build_gateway(config: Config) -> PaymentGateway:
    # importy lokalne: moduły providerów importują PaymentGateway z tego pliku
    from checkout.services.paypal_gateway import PayPalGateway
    from checkout.services.square_gateway import SquareGateway
    from checkout.services.stripe_gateway import StripeGateway

    providers = {
        SquareGateway.name: SquareGateway,
        PayPalGateway.name: PayPalGateway,
        StripeGateway.name: StripeGateway,
    }
    gateway_cls = providers.get(config.payment_provider)
    if gateway_cls is None:
        logger.error(f"Unknown PAYMENT_PROVIDER {config.payment_provider!r}")
        return UnconfiguredGateway(config, f"Unknown payment provider {config.payment_provider!r}")

    gateway = gateway_cls(config)
    try:
        gateway.ensure_configured()
    except ConfigurationError as e:
        # nie wywracamy procesu, błąd wyjdzie przy pierwszym użyciu
        logger.warning(f"{gateway.name} gateway is not configured: {e.message}")
    return gateway
