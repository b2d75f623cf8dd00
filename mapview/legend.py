from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from orders.models import Order
from routing.palette import RoutePalette
from routing.registry import RouteRegistry

from .markers import UNASSIGNED_LABEL


@dataclass(frozen=True)
class LegendEntry:
    route_id: Optional[str]  # None for the unassigned entry
    label: str
    color: str
    order_count: int

    @property
    def text(self) -> str:
        return f"{self.label} ({self.order_count} pedidos)"


def build_legend(
    orders: Iterable[Order],
    registry: RouteRegistry,
    palette: RoutePalette,
    unassigned_label: str = UNASSIGNED_LABEL,
) -> List[LegendEntry]:
    """
    One entry per active route in display order, then the unassigned entry.

    Counts every order, with or without coordinates. Orders on a route the registry
    does not know are drawn with the unassigned color, so they count as unassigned here.
    """
    counts: Dict[Optional[str], int] = {route_id: 0 for route_id in registry.route_ids()}
    unassigned = 0
    for order in orders:
        if order.route_id in counts:
            counts[order.route_id] += 1
        else:
            unassigned += 1

    entries = [
        LegendEntry(route.id, route.label, palette.color_for(route.id, registry), counts[route.id])
        for route in registry
    ]
    entries.append(LegendEntry(None, unassigned_label, palette.unassigned_color, unassigned))
    return entries
