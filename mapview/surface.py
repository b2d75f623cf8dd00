"""
Purpose: The boundary to the map widget.
What it does:
- MapSurface: what the synchronizer needs from a map (add / update / remove marker, set legend).
  Pan, zoom and tiles belong to the widget.
- InMemoryMapSurface: keeps markers in a dict and can export them as GeoJSON,
  used by the console simulation and the tests.
"""

from __future__ import annotations

from typing import Any, Dict, Hashable, List, Protocol, Sequence, Tuple

from .legend import LegendEntry
from .markers import Marker


class MapSurface(Protocol):
    def add_marker(self, marker: Marker) -> Hashable:
        ...

    def update_marker(self, handle: Hashable, marker: Marker) -> None:
        ...

    def remove_marker(self, handle: Hashable) -> None:
        ...

    def set_legend(self, entries: Sequence[LegendEntry]) -> None:
        ...


class InMemoryMapSurface:
    def __init__(self):
        self.markers: Dict[int, Marker] = {}
        self.legend: List[LegendEntry] = []
        self.operations: List[Tuple[str, int]] = []  # (op, order_id), in call order

    def add_marker(self, marker: Marker) -> int:
        if marker.order_id in self.markers:
            raise ValueError(f"Marker for order {marker.order_id} already on the map")
        self.markers[marker.order_id] = marker
        self.operations.append(("add", marker.order_id))
        return marker.order_id

    def update_marker(self, handle: int, marker: Marker) -> None:
        if handle not in self.markers:
            raise KeyError(handle)
        self.markers[handle] = marker
        self.operations.append(("update", handle))

    def remove_marker(self, handle: int) -> None:
        del self.markers[handle]
        self.operations.append(("remove", handle))

    def set_legend(self, entries: Sequence[LegendEntry]) -> None:
        self.legend = list(entries)

    def colors(self) -> Dict[int, str]:
        return {order_id: marker.color for order_id, marker in self.markers.items()}

    def as_feature_collection(self) -> Dict[str, Any]:
        """
        GeoJSON (lon, lat order) for widgets that load a FeatureCollection.
        """
        features = []
        for marker in self.markers.values():
            lat, lon = marker.coordinate
            features.append(
                {
                    "type": "Feature",
                    "id": marker.order_id,
                    "geometry": {"type": "Point", "coordinates": [lon, lat]},
                    "properties": {
                        "color": marker.color,
                        "route": marker.route_id,
                        "popup": marker.popup.html(),
                    },
                }
            )
        return {"type": "FeatureCollection", "features": features}
