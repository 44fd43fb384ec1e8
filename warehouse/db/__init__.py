"""SQLAlchemy models. Importing this package registers every table on Base.metadata."""

from .database import Base
from .users import User
from .category import Category
from .supplier import Supplier
from .product import Product
from .order import Order, OrderItem, OrderStatusHistory
from .inventory import StockMovement

__all__ = [
    "Base",
    "User",
    "Category",
    "Supplier",
    "Product",
    "Order",
    "OrderItem",
    "OrderStatusHistory",
    "StockMovement",
]
