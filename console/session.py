"""
Purpose: The route management page, without the widgets.
What it does:
Loads the day's routes, unassigned orders and drivers from the backend, then wires
the pieces together:
- RouteRegistry (lanes) + AssignmentStore (who is where, with remote moves)
- DragCoordinator with an orders pool, a drivers pool and one lane per route
- MapSynchronizer pushing markers and the legend to a map surface
Failed moves end up in `notifications`, the transient error the operator sees.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

from assignment.items import UNASSIGNED, Item, ItemKind, ItemRef, OrderItem
from assignment.store import AssignmentStore
from dispatch.coordinator import DragCoordinator, DropResult
from dispatch.draggable import DraggableItem, Offset
from dispatch.drop_target import DropTarget
from mapview.surface import InMemoryMapSurface, MapSurface
from mapview.synchronizer import MapSynchronizer
from orders.models import LatLon, Order
from routing.registry import Route, RouteRegistry
from services.mutations import RemoteRouteMutations
from services.routes_client import RoutesClient, parse_route_rows

from .policy import ConsolePolicy, default_console_policy

logger = logging.getLogger(__name__)

ORDERS_POOL_ID = "unassigned-orders"
DRIVERS_POOL_ID = "unassigned-drivers"


@dataclass(frozen=True)
class Notification:
    level: str
    message: str
    item: Optional[ItemRef] = None


@dataclass(frozen=True)
class RouteStats:
    total_orders: int
    total_value: float


class RouteConsole:
    def __init__(
        self,
        client: RoutesClient,
        *,
        policy: Optional[ConsolePolicy] = None,
        surface: Optional[MapSurface] = None,
    ):
        self.client = client
        self.policy = policy or default_console_policy()
        self.fecha: Optional[str] = None
        self.ciudad: Optional[int] = None

        self.registry = RouteRegistry()
        self.mutations = RemoteRouteMutations(client, self.registry, self._coordinates_for)
        self.store = AssignmentStore(
            self.registry,
            order_mutation=self.mutations.move_order,
            driver_mutation=self.mutations.move_driver,
            remote_timeout_seconds=self.policy.remote_timeout_seconds,
            max_drivers_per_route=self.policy.max_drivers_per_route,
        )
        self.store.on_error(self._on_move_error)
        self.notifications: List[Notification] = []

        self.coordinator = DragCoordinator(self.store)
        self.orders_pool = self.coordinator.register_target(
            DropTarget.unassigned_pool(ORDERS_POOL_ID, accept={ItemKind.ORDER})
        )
        self.drivers_pool = self.coordinator.register_target(
            DropTarget.unassigned_pool(DRIVERS_POOL_ID, accept={ItemKind.DRIVER})
        )

        self.surface = surface if surface is not None else InMemoryMapSurface()
        self.synchronizer = MapSynchronizer(
            self.store, self.surface, self.policy.palette(), unassigned_label=self.policy.unassigned_label
        )
        self.synchronizer.attach()

    # --- Loading ---

    def load(self, fecha: str, ciudad: Optional[int] = None) -> None:
        """
        Fetch the backend's current truth for a day (and city) and replace everything.
        """
        routes, routed_orders, routed_drivers = parse_route_rows(self.client.get_routes_by_date(fecha, ciudad))
        unassigned_orders = self.client.get_unassigned_orders(fecha, ciudad, limit=self.policy.unassigned_page_size)
        available_drivers = self.client.get_available_drivers(fecha, ciudad)

        # an entity already on a route wins over the "available" lists
        routed_order_ids = {order.id for order in routed_orders}
        routed_driver_ids = {driver.id for driver in routed_drivers}
        orders = routed_orders + [order for order in unassigned_orders if order.id not in routed_order_ids]
        drivers = routed_drivers + [driver for driver in available_drivers if driver.id not in routed_driver_ids]

        self._replace_lanes(routes)
        self.store.load_initial(orders, drivers)
        self.fecha, self.ciudad = fecha, ciudad
        logger.info("Console loaded %s: %d routes, %d orders, %d drivers", fecha, len(routes), len(orders), len(drivers))

    # --- Lanes ---

    def lane(self, route_id: str) -> DropTarget:
        target = self.coordinator.get_target(DropTarget.route_lane(route_id).target_id)
        if target is None:
            raise KeyError(route_id)
        return target

    def create_route(self, fecha: Optional[str] = None, ciudad: Optional[int] = None) -> Route:
        """
        "Nueva ruta manual": next free letter, created on the backend, then added as a lane.
        """
        route_id = self.registry.next_route_id()
        ciudad = ciudad if ciudad is not None else self.ciudad
        fecha = fecha or self.fecha
        if ciudad is None or fecha is None:
            raise ValueError("Load a day (or pass fecha and ciudad) before creating routes")

        payload = self.client.create_route(f"Ruta {route_id}", fecha, ciudad) or {}
        route = self.registry.add(Route(id=route_id, remote_id=payload.get("id"), name=payload.get("nombre_ruta")))
        self.coordinator.register_target(DropTarget.route_lane(route.id))
        self.synchronizer.sync()
        return route

    def delete_route(self, route_id: str) -> List[ItemRef]:
        """
        Delete the route remotely, then unassign everything that was in it.
        """
        route = self.registry.get(route_id)
        if route is None:
            raise KeyError(route_id)

        if route.remote_id is not None:
            self.client.delete_route(route.remote_id)

        self.registry.remove(route_id)
        self.coordinator.unregister_target(DropTarget.route_lane(route_id).target_id)
        return self.store.forget_route(route_id)

    def lanes(self) -> Dict[Optional[str], List[Item]]:
        return self.store.get_assignments_by_route()

    def unassigned_orders(self) -> List[Order]:
        return [item.value for item in self.store.unassigned() if isinstance(item, OrderItem)]

    def route_stats(self, route_id: str) -> RouteStats:
        orders = [item.value for item in self.lanes()[route_id] if isinstance(item, OrderItem)]
        return RouteStats(total_orders=len(orders), total_value=sum(order.total for order in orders))

    # --- Dragging ---

    def draggables(self) -> List[DraggableItem]:
        return [
            DraggableItem(
                item,
                is_assigned=item.value.route_id is not UNASSIGNED,
                dragging_opacity=self.policy.dragging_opacity,
                assigned_opacity=self.policy.assigned_opacity,
            )
            for item in self.store.items()
        ]

    def drag_and_drop(self, ref: ItemRef, target_id: str, offset: Offset = (0.0, 0.0)) -> DropResult:
        """
        One full gesture (down, move over target, up) for scripted use.
        """
        item = self.store.get_item(ref)
        origin = self._origin_of(item)
        draggable = DraggableItem(item, is_assigned=item.value.route_id is not UNASSIGNED)

        self.coordinator.pointer_down(draggable, origin)
        self.coordinator.pointer_move(offset, self.coordinator.get_target(target_id))
        return self.coordinator.pointer_up()

    # ---- Internal helpers ----

    def _replace_lanes(self, routes: List[Route]) -> None:
        for route_id in self.registry.route_ids():
            self.coordinator.unregister_target(DropTarget.route_lane(route_id).target_id)
        self.registry.replace(routes)
        for route in routes:
            self.coordinator.register_target(DropTarget.route_lane(route.id))

    def _origin_of(self, item: Item) -> Optional[DropTarget]:
        if item.value.route_id is not UNASSIGNED:
            return self.coordinator.get_target(DropTarget.route_lane(item.value.route_id).target_id)
        return self.orders_pool if item.kind == ItemKind.ORDER else self.drivers_pool

    def _coordinates_for(self, order_id: int) -> Optional[LatLon]:
        ref = ItemRef(ItemKind.ORDER, order_id)
        if not self.store.knows(ref):
            return None
        return self.store.get_item(ref).value.coordinates

    def _on_move_error(self, ref: ItemRef, error: BaseException) -> None:
        message = f"No se pudo mover {ref}: {error}"
        logger.warning(message)
        self.notifications.append(Notification("error", message, ref))
