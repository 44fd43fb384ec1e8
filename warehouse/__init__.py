"""Warehouse management API: products, suppliers, stock ledger and orders."""

__version__ = "0.1.0"
