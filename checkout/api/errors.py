# checkout/api/errors.py
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from checkout.domain.errors import ErrorKind, ServiceError
from checkout.domain.schemas import ErrorOut
from checkout.utils.logging import get_logger

logger = get_logger(__name__)


def error_body(kind: str, message: str, detail=None) -> dict:
    return ErrorOut(kind=kind, message=message, detail=detail).model_dump(mode="json")


async def service_error_handler(request: Request, exc: ServiceError):
    if exc.public:
        detail = exc.detail
    else:
        # konfiguracja / autoryzacja: tylko ogólny komunikat, szczegóły w logu
        logger.error(f"{exc.kind.value} on {request.method} {request.url.path}: {exc.message}")
        detail = None

    if exc.kind == ErrorKind.GATEWAY:
        logger.error(f"gateway_error on {request.method} {request.url.path}: {exc.message}")

    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(exc.kind.value, exc.public_message(), detail),
    )


async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = [
        {"loc": list(e.get("loc", ())), "msg": e.get("msg")}
        for e in exc.errors()
    ]
    return JSONResponse(
        status_code=400,
        content=error_body(ErrorKind.VALIDATION.value, "Invalid request", errors),
    )


def register_error_handlers(app: FastAPI):
    app.add_exception_handler(ServiceError, service_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
