# baoleme/models/__init__.py
from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()

# models import `db` from here, so they come after it
from .account import User, Merchant, Rider, Admin, AuthToken  # noqa: E402
from .store import Store, Product, Favorite, Review, ViewHistory  # noqa: E402
from .order import Order, OrderItem, Cart, Coupon, Sale  # noqa: E402
from .message import Message  # noqa: E402

__all__ = [
    "db",
    "User", "Merchant", "Rider", "Admin", "AuthToken",
    "Store", "Product", "Favorite", "Review", "ViewHistory",
    "Order", "OrderItem", "Cart", "Coupon", "Sale",
    "Message",
]
