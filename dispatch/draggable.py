"""
Purpose: The visual handle for one order or driver that the operator can pick up.
What it does:
- Tags itself as a drag source with {kind, entity}.
- Keeps the card content it rendered last; updates that arrive mid-drag are held
  until the drag ends so the card never disappears or changes under the pointer.
- Reports the visual state: reduced opacity while dragging, an "Asignado" badge when assigned.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from assignment.items import DriverItem, Item, ItemKind, ItemRef, OrderItem
from orders.models import DEFAULT_ADDRESS, DEFAULT_CUSTOMER_NAME

ASSIGNED_BADGE = "Asignado"

Offset = Tuple[float, float]


def format_amount(total: float) -> str:
    """
    Money the way the console shows it (es-CO grouping): 90000 -> "$90.000".
    """
    return "$" + f"{total:,.0f}".replace(",", ".")


@dataclass(frozen=True)
class CardContent:
    title: str
    subtitle: str
    detail: str
    badges: Tuple[str, ...] = ()


def card_for(item: Item, is_assigned: bool) -> CardContent:
    badges: Tuple[str, ...] = ()

    if isinstance(item, OrderItem):
        order = item.value
        if is_assigned:
            badges = (ASSIGNED_BADGE,)
        return CardContent(
            title=order.customer_name or DEFAULT_CUSTOMER_NAME,
            subtitle=order.address or DEFAULT_ADDRESS,
            detail=format_amount(order.total),
            badges=badges,
        )

    if isinstance(item, DriverItem):
        driver = item.value
        badges = (driver.status_label,)
        if is_assigned:
            badges += (ASSIGNED_BADGE,)
        return CardContent(
            title=driver.full_name,
            subtitle=driver.vehicle_type,
            detail=driver.phone or "Sin teléfono",
            badges=badges,
        )

    raise TypeError(f"Unknown item variant {type(item).__name__}")


class DraggableItem:
    """
    Drag source wrapping a single order or driver.
    Being assigned is informational only; it never prevents a new drag.
    """

    def __init__(
        self,
        item: Item,
        is_assigned: bool = False,
        *,
        dragging_opacity: float = 0.5,
        assigned_opacity: float = 0.6,
    ):
        self.item = item
        self.is_assigned = is_assigned
        self.dragging_opacity = dragging_opacity
        self.assigned_opacity = assigned_opacity

        self.card = card_for(item, is_assigned)
        self.is_dragging = False
        self.offset: Offset = (0.0, 0.0)
        self._deferred: Optional[Tuple[Item, bool]] = None

    @property
    def ref(self) -> ItemRef:
        return self.item.ref

    @property
    def kind(self) -> ItemKind:
        return self.item.kind

    @property
    def draggable_id(self) -> str:
        return str(self.ref)

    @property
    def payload(self) -> Dict[str, Any]:
        return {"kind": self.kind.value, "entity": self.item.value}

    @property
    def opacity(self) -> float:
        if self.is_dragging:
            return self.dragging_opacity
        if self.is_assigned:
            return self.assigned_opacity
        return 1.0

    def start_drag(self) -> None:
        self.is_dragging = True
        self.offset = (0.0, 0.0)

    def move_to(self, offset: Offset) -> None:
        if self.is_dragging:
            self.offset = offset

    def end_drag(self) -> None:
        """
        Back to the resting position; a committed drop re-renders the card in its new lane.
        """
        self.is_dragging = False
        self.offset = (0.0, 0.0)
        if self._deferred is not None:
            item, is_assigned = self._deferred
            self._deferred = None
            self._apply(item, is_assigned)

    def refresh(self, item: Item, is_assigned: bool) -> None:
        if item.ref != self.ref:
            raise ValueError(f"Cannot refresh {self.ref} with {item.ref}")
        if self.is_dragging:
            self._deferred = (item, is_assigned)
            return
        self._apply(item, is_assigned)

    def _apply(self, item: Item, is_assigned: bool) -> None:
        self.item = item
        self.is_assigned = is_assigned
        self.card = card_for(item, is_assigned)

    def __repr__(self) -> str:
        return f"DraggableItem({self.draggable_id}, assigned={self.is_assigned}, dragging={self.is_dragging})"
