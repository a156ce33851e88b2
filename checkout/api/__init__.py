# checkout/api/__init__.py
from fastapi import FastAPI
from checkout.api.errors import register_error_handlers
from checkout.api.routers import admin, checkout, health, orders


def register_api(app: FastAPI):
    register_error_handlers(app)
    app.include_router(health.router)
    app.include_router(orders.router)
    app.include_router(checkout.router)
    app.include_router(admin.router)
