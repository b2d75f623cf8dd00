"""
Orders domain package.

Public API:
- Domain model: Order
- Coordinate alias: LatLon
"""
from .models import Order, LatLon, DEFAULT_CUSTOMER_NAME, DEFAULT_ADDRESS

__all__ = [
    "Order",
    "LatLon",
    "DEFAULT_CUSTOMER_NAME",
    "DEFAULT_ADDRESS",
]
