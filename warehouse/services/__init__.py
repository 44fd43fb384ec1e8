from .base import ServiceBase
from .ledger import InventoryQuery, StockLedger
from .orders import OrderLine, OrderService, OrderStatusPolicy
from .products import ProductService, ProductStore, SqlProductStore
from .warehouse import StockItem, WarehouseService

__all__ = [
    "ServiceBase",
    "InventoryQuery",
    "StockLedger",
    "OrderLine",
    "OrderService",
    "OrderStatusPolicy",
    "ProductService",
    "ProductStore",
    "SqlProductStore",
    "StockItem",
    "WarehouseService",
]
