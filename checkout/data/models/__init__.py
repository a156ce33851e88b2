# import wszystkich modeli, żeby SQLAlchemy je zarejestrował w base metadata

from checkout.data.models.order import OrderModel

__all__ = ["OrderModel"]
