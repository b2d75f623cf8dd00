"""
Assignment package.

Public API:
- Item identity: ItemKind, ItemRef, OrderItem, DriverItem, UNASSIGNED
- Store: AssignmentStore, MoveResult, MoveStatus, StoreEvent, StoreEventType
- Errors: InvalidMoveError, RemoteMutationError
"""
from .items import (
    UNASSIGNED,
    DriverItem,
    Item,
    ItemKind,
    ItemRef,
    MoveRequest,
    OrderItem,
    item_for,
    with_route,
)
from .store import (
    AssignmentStore,
    InvalidMoveError,
    MoveResult,
    MoveStatus,
    RemoteMutationError,
    StoreEvent,
    StoreEventType,
)

__all__ = [
    "UNASSIGNED",
    "DriverItem",
    "Item",
    "ItemKind",
    "ItemRef",
    "MoveRequest",
    "OrderItem",
    "item_for",
    "with_route",
    "AssignmentStore",
    "InvalidMoveError",
    "MoveResult",
    "MoveStatus",
    "RemoteMutationError",
    "StoreEvent",
    "StoreEventType",
]
