"""
Stock ledger.

Models:
- StockMovement (append-only facts; current stock is their signed sum per product)
"""

from .movement import (
    MOVEMENT_RECEIPT,
    MOVEMENT_RESERVE,
    MOVEMENT_TYPES,
    MOVEMENT_WRITE_OFF,
    StockMovement,
)

__all__ = [
    "MOVEMENT_RECEIPT",
    "MOVEMENT_RESERVE",
    "MOVEMENT_TYPES",
    "MOVEMENT_WRITE_OFF",
    "StockMovement",
]
