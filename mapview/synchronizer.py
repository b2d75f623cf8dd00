"""
Purpose: Keeps the map markers in lockstep with the AssignmentStore.
What it does:
- Holds exactly one marker per order that has coordinates, keyed by order id.
- On every store change affecting orders it diffs the desired markers against the
  ones on the map: removes markers of orders that are gone, adds new ones, and
  updates those whose color, popup or position changed.
- Pushes the legend (route colors, order counts, unassigned count) when it changes.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Dict, Hashable, List, Optional, Tuple

from assignment.items import ItemKind
from assignment.store import AssignmentStore, StoreEvent
from routing.palette import RoutePalette

from .legend import LegendEntry, build_legend
from .markers import UNASSIGNED_LABEL, Marker, build_marker
from .surface import MapSurface

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SyncStats:
    added: int = 0
    removed: int = 0
    updated: int = 0
    legend_changed: bool = False

    @property
    def changed(self) -> bool:
        return bool(self.added or self.removed or self.updated or self.legend_changed)


class MapSynchronizer:
    """
    Store listener that patches markers in place instead of clearing and recreating them.
    """

    def __init__(
        self,
        store: AssignmentStore,
        surface: MapSurface,
        palette: Optional[RoutePalette] = None,
        *,
        unassigned_label: str = UNASSIGNED_LABEL,
    ):
        self.store = store
        self.surface = surface
        self.palette = palette or RoutePalette()
        self.unassigned_label = unassigned_label

        self._handles: Dict[int, Tuple[Hashable, Marker]] = {}
        self._legend: List[LegendEntry] = []
        self._unsubscribe: Optional[Callable[[], None]] = None

    @property
    def markers(self) -> Dict[int, Marker]:
        return {order_id: marker for order_id, (_, marker) in self._handles.items()}

    @property
    def legend(self) -> List[LegendEntry]:
        return list(self._legend)

    def attach(self) -> SyncStats:
        if self._unsubscribe is None:
            self._unsubscribe = self.store.subscribe(self._on_store_event)
        return self.sync()

    def detach(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def sync(self) -> SyncStats:
        orders = self.store.orders()
        registry = self.store.registry

        desired: Dict[int, Marker] = {}
        for order in orders:
            marker = build_marker(order, registry, self.palette, self.unassigned_label)
            if marker is not None:
                desired[order.id] = marker

        removed = [order_id for order_id in self._handles if order_id not in desired]
        for order_id in removed:
            handle, _ = self._handles.pop(order_id)
            self.surface.remove_marker(handle)

        added = updated = 0
        for order_id, marker in desired.items():
            current = self._handles.get(order_id)
            if current is None:
                self._handles[order_id] = (self.surface.add_marker(marker), marker)
                added += 1
            elif current[1] != marker:
                self.surface.update_marker(current[0], marker)
                self._handles[order_id] = (current[0], marker)
                updated += 1

        legend = build_legend(orders, registry, self.palette, self.unassigned_label)
        legend_changed = legend != self._legend
        if legend_changed:
            self.surface.set_legend(legend)
            self._legend = legend

        stats = SyncStats(added=added, removed=len(removed), updated=updated, legend_changed=legend_changed)
        if stats.changed:
            logger.debug("Map sync: %s", stats)
        return stats

    def _on_store_event(self, event: StoreEvent) -> None:
        if event.affects(ItemKind.ORDER):
            self.sync()
