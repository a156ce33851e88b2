# checkout/domain/errors.py
from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    VALIDATION = "validation_error"
    CONFIGURATION = "configuration_error"
    GATEWAY = "gateway_error"
    CONFLICT = "conflict_error"
    AUTHORIZATION = "authorization_error"
    NOT_FOUND = "not_found"


class ServiceError(Exception):
    """
    Bazowy błąd serwisu.
    kind - tag z taksonomii błędów, status_code - mapowanie na HTTP,
    detail - dane diagnostyczne (np. surowa odpowiedź providera).
    """

    kind: ErrorKind
    status_code: int = 500
    public: bool = True

    def __init__(self, message: str, detail: Any = None):
        super().__init__(message)
        self.message = message
        self.detail = detail

    def public_message(self) -> str:
        return self.message


class ValidationError(ServiceError):
    kind = ErrorKind.VALIDATION
    status_code = 400


class ConfigurationError(ServiceError):
    kind = ErrorKind.CONFIGURATION
    status_code = 500
    public = False

    def public_message(self) -> str:
        return "Payment provider is not configured on the server"


class GatewayError(ServiceError):
    kind = ErrorKind.GATEWAY
    status_code = 502

    def __init__(self, message: str, detail: Any = None, provider: str | None = None):
        super().__init__(message, detail)
        self.provider = provider


class ConflictError(ServiceError):
    kind = ErrorKind.CONFLICT
    status_code = 409


class AuthorizationError(ServiceError):
    kind = ErrorKind.AUTHORIZATION
    status_code = 401
    public = False

    def __init__(self, message: str = "Unauthorized", detail: Any = None):
        super().__init__(message, detail)

    def public_message(self) -> str:
        return "Unauthorized"


class NotFoundError(ServiceError):
    kind = ErrorKind.NOT_FOUND
    status_code = 404
