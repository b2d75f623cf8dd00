#Marks routing as a package.
#Re-exports the route registry and palette so other modules import from routing
#without knowing internal file names.
#No business logic.

from .registry import Route, RouteRegistry, ROUTE_ALPHABET
from .palette import RoutePalette, DEFAULT_ROUTE_COLORS, UNASSIGNED_COLOR, procedural_color

__all__ = [
    "Route",
    "RouteRegistry",
    "ROUTE_ALPHABET",
    "RoutePalette",
    "DEFAULT_ROUTE_COLORS",
    "UNASSIGNED_COLOR",
    "procedural_color",
]
