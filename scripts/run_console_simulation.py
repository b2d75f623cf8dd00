import asyncio
import json
import logging
import os
import random
from typing import Any, Dict, List, Optional

import pandas as pd

from assignment.items import ItemKind, ItemRef
from console import ConsolePolicy, RouteConsole
from dispatch.coordinator import DropOutcome
from drivers.models import Driver
from orders.models import Order
from services.routes_client import RoutesAPIError

FECHA = "2024-06-03"
CIUDAD = 1


class CsvRoutesBackend:
    """
    In-process stand-in for the routes backend, fed from the sample CSVs.
    Each mutation fails with `failure_rate` probability, so some drops roll back.
    """

    def __init__(self, orders_df: pd.DataFrame, drivers_df: pd.DataFrame, route_names: List[str],
                 failure_rate: float = 0.15):
        self.orders_df = orders_df
        self.drivers_df = drivers_df
        self.failure_rate = failure_rate
        self.routes: Dict[int, Dict[str, Any]] = {}
        self._next_id = 100
        for index, name in enumerate(route_names):
            self.create_route(name, FECHA, CIUDAD)["orden_prioridad"] = index

    def _maybe_fail(self, action: str):
        if random.random() < self.failure_rate:
            raise RoutesAPIError(f"{action}: backend timeout", status_code=503)

    def get_routes_by_date(self, fecha, ciudad=None):
        return list(self.routes.values())

    def get_unassigned_orders(self, fecha, ciudad=None, page=1, limit=50):
        orders = []
        for row in self.orders_df.head(limit).itertuples(index=False):
            has_coordinates = not (pd.isna(row.lat) or pd.isna(row.lng))
            orders.append(Order(
                id=int(row.id),
                order_number=row.numero_pedido,
                customer_name=row.cliente,
                address=row.direccion_entrega,
                total=float(row.total),
                coordinates=(float(row.lat), float(row.lng)) if has_coordinates else None,
            ))
        return orders

    def get_available_drivers(self, fecha=None, ciudad=None):
        return [Driver.from_api(row) for row in self.drivers_df.to_dict("records")]

    def create_route(self, nombre_ruta, fecha_ruta, fkid_ciudad, fkid_repartidor=None, notas=None):
        self._next_id += 1
        route = {"id": self._next_id, "nombre_ruta": nombre_ruta, "fecha_ruta": fecha_ruta, "pedidos": []}
        self.routes[route["id"]] = route
        return route

    def delete_route(self, route_remote_id):
        self.routes.pop(route_remote_id, None)

    def assign_order_to_route(self, route_remote_id, order_id, position, coordinates=None):
        self._maybe_fail(f"assign order {order_id}")
        self.routes[route_remote_id]["pedidos"].append({"fkid_pedido": order_id, "orden_entrega": position})

    def remove_order_from_route(self, route_remote_id, order_id):
        self._maybe_fail(f"remove order {order_id}")
        pedidos = self.routes[route_remote_id]["pedidos"]
        pedidos[:] = [row for row in pedidos if row["fkid_pedido"] != order_id]

    def assign_driver_to_route(self, route_remote_id, driver_id):
        self._maybe_fail(f"assign driver {driver_id}")
        self.routes[route_remote_id]["fkid_repartidor"] = driver_id

    def unassign_driver_from_route(self, route_remote_id):
        self._maybe_fail("unassign driver")
        self.routes[route_remote_id].pop("fkid_repartidor", None)


def load_sample_data(base_dir: str):
    orders_df = pd.read_csv(os.path.join(base_dir, "sampledata/orders.csv"))
    drivers_df = pd.read_csv(os.path.join(base_dir, "sampledata/drivers.csv"), dtype={"telefono": str})
    return orders_df, drivers_df


async def run_simulation(output_path: Optional[str] = None):
    print("=== STARTING ROUTE CONSOLE SIMULATION ===")

    # 1. Load Data
    base_dir = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
    orders_df, drivers_df = load_sample_data(base_dir)
    backend = CsvRoutesBackend(orders_df, drivers_df, ["Ruta A", "Ruta B", "Ruta C"])

    console = RouteConsole(backend, policy=ConsolePolicy(remote_timeout_seconds=5))
    console.load(FECHA, CIUDAD)
    print(f"Loaded {len(console.store.orders())} Orders and {len(console.store.drivers())} Drivers.\n")

    # 2. The operator opens one more lane
    route = console.create_route()
    print(f"Created manual route {route.label} (backend id {route.remote_id})\n")

    # 3. Drag every unassigned order onto a random lane, every driver onto its own lane
    route_ids = console.registry.route_ids()
    tasks = []
    for order in console.unassigned_orders():
        result = console.drag_and_drop(ItemRef(ItemKind.ORDER, order.id), f"route-{random.choice(route_ids)}")
        if result.outcome == DropOutcome.COMMITTED:
            tasks.append(result.task)

    for driver, route_id in zip(console.store.drivers(), route_ids):
        result = console.drag_and_drop(ItemRef(ItemKind.DRIVER, driver.id), f"route-{route_id}")
        if result.outcome == DropOutcome.COMMITTED:
            tasks.append(result.task)

    # An order dropped on the drivers pool is simply ignored
    first_order = console.store.orders()[0]
    rejected = console.drag_and_drop(ItemRef(ItemKind.ORDER, first_order.id), console.drivers_pool.target_id)
    print(f"Order {first_order.display_number} dropped on the drivers pool -> {rejected.outcome.value}")

    results = await asyncio.gather(*tasks)
    confirmed = sum(1 for result in results if result.ok)
    print(f"Moves confirmed: {confirmed} / {len(results)}\n")

    # 4. Report
    print("--- Lanes ---")
    for route_id, items in console.lanes().items():
        label = console.registry.get(route_id).label if route_id else console.policy.unassigned_label
        orders = [item.value.display_number for item in items if item.kind == ItemKind.ORDER]
        drivers = [item.value.full_name for item in items if item.kind == ItemKind.DRIVER]
        print(f"{label}: {len(orders)} orders, drivers: {drivers or '-'}")

    print("\n--- Legend ---")
    for entry in console.synchronizer.legend:
        print(f"  {entry.color}  {entry.text}")

    print(f"\n--- Notifications ({len(console.notifications)}) ---")
    for notification in console.notifications:
        print(f"  [{notification.level}] {notification.message}")

    output_path = output_path or os.path.join(base_dir, "route_markers.geojson")
    with open(output_path, "w") as file:
        json.dump(console.surface.as_feature_collection(), file, indent=2)

    print("\n=== SIMULATION COMPLETE ===")
    print(f"Markers on map: {len(console.synchronizer.markers)}")
    print(f"Results written to '{output_path}'.")


if __name__ == "__main__":
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "WARNING"),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    asyncio.run(run_simulation())
