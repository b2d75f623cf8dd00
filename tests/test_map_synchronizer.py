import asyncio

import pytest

from assignment.items import ItemKind
from assignment.store import AssignmentStore, MoveStatus
from mapview.legend import build_legend
from mapview.markers import build_marker
from mapview.surface import InMemoryMapSurface
from mapview.synchronizer import MapSynchronizer
from orders.models import Order
from routing.palette import DEFAULT_ROUTE_COLORS, UNASSIGNED_COLOR, RoutePalette
from routing.registry import RouteRegistry

from conftest import settle

CDMX = (19.4326, -99.1332)


@pytest.fixture
def two_orders():
    return [
        Order(1, "MM-2024-0001", "Ana Pérez", "Av. Insurgentes Sur 120", 90000, None, CDMX),
        Order(2, "MM-2024-0002", "Luis García", "Calle Durango 45", 45500, None, (19.4201, -99.1625)),
    ]


def test_orders_moved_to_route_b_are_drawn_in_b_color(two_orders):
    registry = RouteRegistry(["A", "B"])
    store = AssignmentStore(registry)
    store.load_initial(two_orders, [])
    surface = InMemoryMapSurface()
    sync = MapSynchronizer(store, surface)
    sync.attach()

    assert surface.colors() == {1: UNASSIGNED_COLOR, 2: UNASSIGNED_COLOR}

    async def scenario():
        await store.move_item(ItemKind.ORDER, 1, "B")
        await store.move_item(ItemKind.ORDER, 2, "B")

    asyncio.run(scenario())

    assert surface.colors() == {1: DEFAULT_ROUTE_COLORS["B"], 2: DEFAULT_ROUTE_COLORS["B"]}
    assert surface.markers[1].popup.route_label == "Ruta B"

    legend = {entry.route_id: entry for entry in surface.legend}
    assert legend["B"].text == "Ruta B (2 pedidos)"
    assert legend["B"].color == "#FF9800"
    assert legend["A"].order_count == 0
    assert legend[None].text == "Sin asignar (0 pedidos)"


def test_markers_are_patched_in_place(two_orders):
    store = AssignmentStore(RouteRegistry(["A", "B"]))
    store.load_initial(two_orders, [])
    surface = InMemoryMapSurface()
    MapSynchronizer(store, surface).attach()

    async def scenario():
        await store.move_item(ItemKind.ORDER, 1, "A")

    asyncio.run(scenario())

    assert surface.operations == [("add", 1), ("add", 2), ("update", 1)]


def test_rollback_restores_marker_color(two_orders, remote):
    registry = RouteRegistry(["A", "B"])
    store = AssignmentStore(registry, order_mutation=remote)
    store.load_initial(two_orders, [])
    surface = InMemoryMapSurface()
    MapSynchronizer(store, surface).attach()

    async def scenario():
        task = store.move_item(ItemKind.ORDER, 1, "A")
        # the optimistic color shows right away
        assert surface.colors()[1] == DEFAULT_ROUTE_COLORS["A"]
        await settle()
        remote.fail()
        return await task

    result = asyncio.run(scenario())

    assert result.status == MoveStatus.ROLLED_BACK
    assert surface.colors()[1] == UNASSIGNED_COLOR
    assert surface.markers[1].popup.route_label == "Sin asignar"
    assert [entry.order_count for entry in surface.legend] == [0, 0, 2]


def test_orders_without_coordinates_are_counted_but_not_drawn(orders, drivers, registry):
    store = AssignmentStore(registry)
    store.load_initial(orders, drivers)
    surface = InMemoryMapSurface()
    sync = MapSynchronizer(store, surface)
    sync.attach()

    assert set(sync.markers) == {1, 2, 3}
    legend = {entry.route_id: entry.order_count for entry in sync.legend}
    assert legend == {"A": 2, "B": 0, "C": 0, None: 2}


def test_driver_moves_do_not_touch_the_map(orders, drivers, registry):
    store = AssignmentStore(registry)
    store.load_initial(orders, drivers)
    surface = InMemoryMapSurface()
    MapSynchronizer(store, surface).attach()
    operations = list(surface.operations)

    async def scenario():
        await store.move_item(ItemKind.DRIVER, 2, "B")

    asyncio.run(scenario())

    assert surface.operations == operations


def test_reload_removes_markers_of_orders_that_are_gone(two_orders):
    store = AssignmentStore(RouteRegistry(["A"]))
    store.load_initial(two_orders, [])
    surface = InMemoryMapSurface()
    sync = MapSynchronizer(store, surface)
    sync.attach()

    store.load_initial(two_orders[:1], [])

    assert set(surface.markers) == {1}
    assert surface.operations[-1] == ("remove", 2)


def test_unknown_route_is_drawn_as_unassigned():
    registry = RouteRegistry(["A"])
    palette = RoutePalette()
    order = Order(5, "MM-5", "Cliente", "Calle 5", route_id="Q", coordinates=CDMX)

    marker = build_marker(order, registry, palette)
    legend = build_legend([order], registry, palette)

    assert marker.color == UNASSIGNED_COLOR
    assert marker.popup.route_label == "Sin asignar"
    assert [(entry.route_id, entry.order_count) for entry in legend] == [("A", 0), (None, 1)]


def test_popup_html_escapes_content():
    order = Order(6, "MM-6", "Ana <b>", "Calle & 5", route_id=None, coordinates=CDMX)
    marker = build_marker(order, RouteRegistry(), RoutePalette())

    html = marker.popup.html()
    assert "Ana &lt;b&gt;" in html
    assert "Calle &amp; 5" in html
    assert "Sin asignar" in html


def test_detach_stops_updates(two_orders):
    store = AssignmentStore(RouteRegistry(["A"]))
    store.load_initial(two_orders, [])
    surface = InMemoryMapSurface()
    sync = MapSynchronizer(store, surface)
    sync.attach()
    sync.detach()

    store.load_initial([], [])

    assert set(surface.markers) == {1, 2}


def test_feature_collection_uses_lon_lat():
    surface = InMemoryMapSurface()
    order = Order(7, "MM-7", "Cliente", "Calle 7", coordinates=CDMX)
    surface.add_marker(build_marker(order, RouteRegistry(), RoutePalette()))

    feature = surface.as_feature_collection()["features"][0]
    assert feature["geometry"]["coordinates"] == [-99.1332, 19.4326]
    assert feature["properties"]["color"] == UNASSIGNED_COLOR
