"""
Purpose: Marker descriptors, the visual projection of one order's assignment.
What it does:
- Marker: coordinate + route color + popup content, keyed by order id.
- Popup: display number, customer, address and route label, with an HTML rendering
  for map widgets that take popup markup.

Rule: Derived data only. Markers are recomputed from the store, never read back.
"""

from __future__ import annotations

import html
from dataclasses import dataclass
from typing import Optional

from orders.models import DEFAULT_CUSTOMER_NAME, LatLon, Order
from routing.palette import RoutePalette
from routing.registry import RouteRegistry

UNASSIGNED_LABEL = "Sin asignar"


@dataclass(frozen=True)
class Popup:
    display_number: str
    customer_name: str
    address: str
    route_label: str

    def html(self) -> str:
        return (
            '<div class="p-2">'
            f'<h3 class="font-semibold">{html.escape(self.display_number)}</h3>'
            f'<p class="text-sm text-gray-600">{html.escape(self.customer_name)}</p>'
            f'<p class="text-xs text-gray-500">{html.escape(self.address)}</p>'
            f'<p class="text-xs font-medium">{html.escape(self.route_label)}</p>'
            "</div>"
        )


@dataclass(frozen=True)
class Marker:
    order_id: int
    coordinate: LatLon
    color: str
    popup: Popup
    route_id: Optional[str] = None


def route_label(route_id: Optional[str], registry: RouteRegistry, unassigned_label: str = UNASSIGNED_LABEL) -> str:
    """
    Routes the registry does not know read as unassigned, matching their color and legend count.
    """
    route = registry.get(route_id) if route_id is not None else None
    return route.label if route else unassigned_label


def build_marker(
    order: Order,
    registry: RouteRegistry,
    palette: RoutePalette,
    unassigned_label: str = UNASSIGNED_LABEL,
) -> Optional[Marker]:
    """
    Marker for the order's current route, or None when it has no coordinates
    (no geocoding here; such orders still take part in assignment).
    """
    if order.coordinates is None:
        return None

    return Marker(
        order_id=order.id,
        coordinate=order.coordinates,
        color=palette.color_for(order.route_id, registry),
        popup=Popup(
            display_number=order.display_number,
            customer_name=order.customer_name or DEFAULT_CUSTOMER_NAME,
            address=order.address,
            route_label=route_label(order.route_id, registry, unassigned_label),
        ),
        route_id=order.route_id,
    )
