"""
Map view package: marker descriptors, legend, map surface boundary and the synchronizer.

Public API:
- Marker, Popup, build_marker, UNASSIGNED_LABEL
- LegendEntry, build_legend
- MapSurface, InMemoryMapSurface
- MapSynchronizer, SyncStats
"""
from .markers import Marker, Popup, build_marker, route_label, UNASSIGNED_LABEL
from .legend import LegendEntry, build_legend
from .surface import MapSurface, InMemoryMapSurface
from .synchronizer import MapSynchronizer, SyncStats

__all__ = [
    "Marker",
    "Popup",
    "build_marker",
    "route_label",
    "UNASSIGNED_LABEL",
    "LegendEntry",
    "build_legend",
    "MapSurface",
    "InMemoryMapSurface",
    "MapSynchronizer",
    "SyncStats",
]
