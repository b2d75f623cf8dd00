"""
Console package: the route management page wiring and its configuration.

Public API:
- RouteConsole, Notification, RouteStats
- ConsolePolicy, default_console_policy
"""
from .policy import ConsolePolicy, default_console_policy
from .session import RouteConsole, Notification, RouteStats, ORDERS_POOL_ID, DRIVERS_POOL_ID

__all__ = [
    "ConsolePolicy",
    "default_console_policy",
    "RouteConsole",
    "Notification",
    "RouteStats",
    "ORDERS_POOL_ID",
    "DRIVERS_POOL_ID",
]
