"""
Purpose: Identity and tagged variants for anything that can be placed on a route.
What it does:
- ItemKind: the two namespaces (orders, drivers).
- ItemRef: the (kind, id) pair that identifies an item; an order and a driver may share
  a numeric id without colliding.
- OrderItem / DriverItem: the tagged variants carrying the domain entity.
- MoveRequest: what the store hands to a remote mutation.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional, Union

from drivers.models import Driver
from orders.models import Order

# Pseudo-route key for items with no route.
UNASSIGNED = None


class ItemKind(str, Enum):
    ORDER = "order"
    DRIVER = "driver"


@dataclass(frozen=True)
class ItemRef:
    kind: ItemKind
    id: int

    def __str__(self) -> str:
        return f"{self.kind.value}-{self.id}"


@dataclass(frozen=True)
class OrderItem:
    value: Order

    @property
    def kind(self) -> ItemKind:
        return ItemKind.ORDER

    @property
    def ref(self) -> ItemRef:
        return ItemRef(ItemKind.ORDER, self.value.id)


@dataclass(frozen=True)
class DriverItem:
    value: Driver

    @property
    def kind(self) -> ItemKind:
        return ItemKind.DRIVER

    @property
    def ref(self) -> ItemRef:
        return ItemRef(ItemKind.DRIVER, self.value.id)


Item = Union[OrderItem, DriverItem]


def item_for(entity: Union[Order, Driver]) -> Item:
    if isinstance(entity, Order):
        return OrderItem(entity)
    if isinstance(entity, Driver):
        return DriverItem(entity)
    raise TypeError(f"Cannot place {type(entity).__name__} on a route")


def with_route(item: Item, route_id: Optional[str]) -> Item:
    """
    Copy of the item whose entity carries the given route.
    """
    if isinstance(item, OrderItem):
        return OrderItem(replace(item.value, route_id=route_id))
    if isinstance(item, DriverItem):
        return DriverItem(replace(item.value, route_id=route_id))
    raise TypeError(f"Unknown item variant {type(item).__name__}")


@dataclass(frozen=True)
class MoveRequest:
    """
    Remote mutation input: "set this item's route to route_id" (None = unassign).
    previous_route_id and position (1-based place in the lane) are what the backend
    needs to remove the old membership and order deliveries.
    """
    item: ItemRef
    route_id: Optional[str]
    previous_route_id: Optional[str]
    position: int = 0
