"""
Drivers domain package.

Public API:
- Domain models: Driver, DriverStatus
"""
from .models import Driver, DriverStatus

__all__ = [
    "Driver",
    "DriverStatus",
]
