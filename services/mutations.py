from __future__ import annotations

import asyncio
import logging
from typing import Callable, Optional

from assignment.items import MoveRequest
from orders.models import LatLon
from routing.registry import RouteRegistry

from .routes_client import RoutesAPIError, RoutesClient

logger = logging.getLogger(__name__)

CoordinatesLookup = Callable[[int], Optional[LatLon]]


class RemoteRouteMutations:
    """
    Adapts routes_client.RoutesClient into the async remote mutations the
    AssignmentStore calls. The blocking HTTP calls run in a worker thread so the
    event loop keeps processing drags while a move is in flight.
    """
    def __init__(self, client: RoutesClient, registry: RouteRegistry,
                 coordinates_for: Optional[CoordinatesLookup] = None):
        self.client = client
        self.registry = registry
        self.coordinates_for = coordinates_for

    async def move_order(self, request: MoveRequest) -> None:
        # read the store on the loop thread; the worker only talks HTTP
        coordinates = self.coordinates_for(request.item.id) if self.coordinates_for else None
        await asyncio.to_thread(self._move_order, request, coordinates)

    async def move_driver(self, request: MoveRequest) -> None:
        await asyncio.to_thread(self._move_driver, request)

    def _remote_id(self, route_id: Optional[str]) -> Optional[int]:
        if route_id is None:
            return None
        remote_id = self.registry.remote_id_for(route_id)
        if remote_id is None:
            raise RoutesAPIError(f"Route {route_id} has no backend id")
        return remote_id

    def _move_order(self, request: MoveRequest, coordinates: Optional[LatLon] = None) -> None:
        order_id = request.item.id
        target = self._remote_id(request.route_id)
        # resolve both ids before touching the backend
        previous = self._remote_id(request.previous_route_id) if request.previous_route_id in self.registry else None

        if previous is not None:
            self.client.remove_order_from_route(previous, order_id)
        if target is not None:
            self.client.assign_order_to_route(target, order_id, request.position, coordinates)

        logger.info("Order %s moved %s -> %s", order_id, request.previous_route_id, request.route_id)

    def _move_driver(self, request: MoveRequest) -> None:
        driver_id = request.item.id
        target = self._remote_id(request.route_id)
        previous = self._remote_id(request.previous_route_id) if request.previous_route_id in self.registry else None

        if previous is not None:
            self.client.unassign_driver_from_route(previous)
        if target is not None:
            self.client.assign_driver_to_route(target, driver_id)

        logger.info("Driver %s moved %s -> %s", driver_id, request.previous_route_id, request.route_id)
