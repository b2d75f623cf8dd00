"""
Purpose: Fixed, deterministic mapping from route identifier to display color.
What it does:
- Binds the default letters A-F to their lane colors.
- Gives active routes without a configured color a procedural color derived from the id.
- Falls back to the single "no route" color for unassigned or unrecognized routes.

Rule: No rendering here. Colors only.
"""

from __future__ import annotations

import colorsys
import hashlib
from typing import Container, Dict, Mapping, Optional

DEFAULT_ROUTE_COLORS: Dict[str, str] = {
    "A": "#E91E63",  # pink
    "B": "#FF9800",  # orange
    "C": "#4CAF50",  # green
    "D": "#2196F3",  # blue
    "E": "#9C27B0",  # purple
    "F": "#FF5722",  # deep orange
}
UNASSIGNED_COLOR = "#757575"


def procedural_color(route_id: str) -> str:
    """
    Stable color for a route id with no configured color.
    The hue comes from a hash of the id so it survives restarts.
    """
    digest = hashlib.md5(route_id.encode("utf-8")).digest()
    hue = int.from_bytes(digest[:2], "big") / 0xFFFF
    red, green, blue = colorsys.hls_to_rgb(hue, 0.45, 0.65)
    return "#{:02X}{:02X}{:02X}".format(round(red * 255), round(green * 255), round(blue * 255))


class RoutePalette:
    """
    Color lookup for route lanes and map markers.
    """

    def __init__(
        self,
        colors: Optional[Mapping[str, str]] = None,
        unassigned_color: str = UNASSIGNED_COLOR,
    ):
        self.colors: Dict[str, str] = dict(DEFAULT_ROUTE_COLORS if colors is None else colors)
        self.unassigned_color = unassigned_color

    def color_for(self, route_id: Optional[str], active_routes: Optional[Container[str]] = None) -> str:
        """
        active_routes: the ids currently registered. When given, ids outside it count as
        unrecognized and get the unassigned color; ids inside it without a configured
        color get a procedural one. Without it, only configured ids are recognized.
        """
        if route_id is None:
            return self.unassigned_color

        if active_routes is not None and route_id not in active_routes:
            return self.unassigned_color

        if route_id in self.colors:
            return self.colors[route_id]

        if active_routes is None:
            return self.unassigned_color

        return procedural_color(route_id)
