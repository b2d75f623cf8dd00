"""
Purpose: Central configuration for the route console.
What it does:

Stores all tunable values for lanes, markers and remote moves:

ROUTE_COLORS = A..F fixed palette, UNASSIGNED_COLOR = #757575
REMOTE_TIMEOUT_SECONDS = 15, MAX_DRIVERS_PER_ROUTE = 1
DRAGGING_OPACITY = 0.5, ASSIGNED_OPACITY = 0.6

Rule: No logic here, just parameters so you can tune without rewriting code.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Dict, Optional

from routing.palette import DEFAULT_ROUTE_COLORS, UNASSIGNED_COLOR, RoutePalette

_HEX_COLOR = re.compile(r"^#[0-9A-Fa-f]{6}$")


@dataclass(frozen=True)
class ConsolePolicy:
    """
    Central configuration for the route assignment console.
    """

    # --- Colors ---
    # Routes without an entry here get a procedural color derived from their id.
    route_colors: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_ROUTE_COLORS))
    unassigned_color: str = UNASSIGNED_COLOR
    unassigned_label: str = "Sin asignar"

    # --- Remote moves ---
    # A move whose backend call takes longer than this is treated as failed and rolled back.
    # None disables the timeout.
    remote_timeout_seconds: Optional[float] = 15.0

    # --- Lanes ---
    # The backend route holds a single driver; assigning another replaces it.
    # None lifts the cap.
    max_drivers_per_route: Optional[int] = 1

    # --- Cards ---
    dragging_opacity: float = 0.5
    assigned_opacity: float = 0.6

    # --- Loading ---
    unassigned_page_size: int = 50

    def validate(self) -> None:
        """
        Basic sanity checks.
        """
        for route_id, color in self.route_colors.items():
            if not _HEX_COLOR.match(color):
                raise ValueError(f"Color for route {route_id} must be #RRGGBB, got {color!r}")

        if not _HEX_COLOR.match(self.unassigned_color):
            raise ValueError("unassigned_color must be #RRGGBB")

        if self.remote_timeout_seconds is not None and self.remote_timeout_seconds <= 0:
            raise ValueError("remote_timeout_seconds must be > 0 (or None)")

        for name in ("dragging_opacity", "assigned_opacity"):
            value = getattr(self, name)
            if not 0 < value <= 1:
                raise ValueError(f"{name} must be in (0, 1]")

        if self.max_drivers_per_route is not None and self.max_drivers_per_route <= 0:
            raise ValueError("max_drivers_per_route must be > 0 (or None)")

        if self.unassigned_page_size <= 0:
            raise ValueError("unassigned_page_size must be > 0")

    def palette(self) -> RoutePalette:
        return RoutePalette(self.route_colors, self.unassigned_color)


def default_console_policy() -> ConsolePolicy:
    """
    Convenience factory for the default policy.
    """
    p = ConsolePolicy()
    p.validate()
    return p
