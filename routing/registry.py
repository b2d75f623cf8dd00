#Purpose: The route registry.
#Holds the set of active routes for the day and their display order.
#A route here is a named bucket (a letter per lane), not a geometric path.
#Typical responsibilities:
#membership checks used to validate moves
#display order for lanes and the map legend
#next free letter when the operator creates a manual route
#It should not contain assignment state; that lives in assignment/store.py.

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, List, Optional, Union

ROUTE_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZ"


@dataclass(frozen=True)
class Route:
    """
    One active route lane.

    id is the short identifier shown to the operator ("A", "B", ...).
    remote_id is the backend primary key, when the route exists remotely.
    """
    id: str
    remote_id: Optional[int] = None
    name: Optional[str] = None

    @property
    def label(self) -> str:
        return self.name or f"Ruta {self.id}"


class RouteRegistry:
    """
    Ordered set of active routes, supplied by the surrounding page.
    """

    def __init__(self, routes: Iterable[Union[Route, str]] = ()):
        self._routes: Dict[str, Route] = {}
        for route in routes:
            self.add(route)

    def __contains__(self, route_id: object) -> bool:
        return route_id in self._routes

    def __iter__(self) -> Iterator[Route]:
        return iter(list(self._routes.values()))

    def __len__(self) -> int:
        return len(self._routes)

    def route_ids(self) -> List[str]:
        return list(self._routes)

    def get(self, route_id: str) -> Optional[Route]:
        return self._routes.get(route_id)

    def remote_id_for(self, route_id: Optional[str]) -> Optional[int]:
        if route_id is None:
            return None
        route = self._routes.get(route_id)
        return route.remote_id if route else None

    def add(self, route: Union[Route, str]) -> Route:
        if isinstance(route, str):
            route = Route(id=route)
        if not route.id:
            raise ValueError("Route id must be a non-empty string")
        if route.id in self._routes:
            raise ValueError(f"Route {route.id} is already registered")
        self._routes[route.id] = route
        return route

    def remove(self, route_id: str) -> Route:
        if route_id not in self._routes:
            raise KeyError(route_id)
        return self._routes.pop(route_id)

    def replace(self, routes: Iterable[Union[Route, str]]) -> None:
        self._routes = {}
        for route in routes:
            self.add(route)

    def next_route_id(self) -> str:
        """
        First unused letter A..Z, then A2..Z2, A3... (deterministic, never reuses a live id).
        """
        round_number = 1
        while True:
            suffix = "" if round_number == 1 else str(round_number)
            for letter in ROUTE_ALPHABET:
                candidate = f"{letter}{suffix}"
                if candidate not in self._routes:
                    return candidate
            round_number += 1
