import re

import pytest

from console.policy import ConsolePolicy, default_console_policy
from drivers.models import Driver, DriverStatus
from orders.models import Order
from routing.palette import DEFAULT_ROUTE_COLORS, UNASSIGNED_COLOR, RoutePalette, procedural_color
from routing.registry import Route, RouteRegistry


def test_fixed_route_colors():
    palette = RoutePalette()
    assert palette.color_for("A") == "#E91E63"
    assert palette.color_for("B") == "#FF9800"
    assert palette.color_for("C") == "#4CAF50"
    assert palette.color_for("D") == "#2196F3"
    assert palette.color_for("E") == "#9C27B0"
    assert palette.color_for("F") == "#FF5722"
    assert palette.color_for(None) == UNASSIGNED_COLOR == "#757575"


def test_unrecognized_route_gets_unassigned_color():
    palette = RoutePalette()
    assert palette.color_for("Z") == UNASSIGNED_COLOR
    assert palette.color_for("A", active_routes={"B"}) == UNASSIGNED_COLOR


def test_active_route_without_configured_color_gets_stable_procedural_color():
    palette = RoutePalette()
    registry = RouteRegistry(["A", "G"])

    color = palette.color_for("G", registry)

    assert re.match(r"^#[0-9A-F]{6}$", color)
    assert color == procedural_color("G")
    assert color not in DEFAULT_ROUTE_COLORS.values()
    assert color != UNASSIGNED_COLOR


def test_custom_palette():
    palette = RoutePalette({"A": "#000000"}, unassigned_color="#FFFFFF")
    assert palette.color_for("A") == "#000000"
    assert palette.color_for("B") == "#FFFFFF"


def test_registry_keeps_insertion_order_and_labels():
    registry = RouteRegistry([Route("B", remote_id=7, name="Ruta B"), "A"])

    assert registry.route_ids() == ["B", "A"]
    assert "A" in registry and "Q" not in registry
    assert registry.get("A").label == "Ruta A"
    assert registry.remote_id_for("B") == 7
    assert registry.remote_id_for("A") is None


def test_registry_rejects_duplicates_and_missing_ids():
    registry = RouteRegistry(["A"])
    with pytest.raises(ValueError):
        registry.add("A")
    with pytest.raises(ValueError):
        registry.add("")
    with pytest.raises(KeyError):
        registry.remove("B")


def test_next_route_id_fills_gaps_then_wraps():
    registry = RouteRegistry(["A", "C"])
    assert registry.next_route_id() == "B"

    full = RouteRegistry(list("ABCDEFGHIJKLMNOPQRSTUVWXYZ"))
    assert full.next_route_id() == "A2"


def test_order_from_api_payload():
    order = Order.from_api({
        "id": "12",
        "numero_pedido": "MM-2024-0012",
        "direccion_entrega": "Calle Orizaba 8",
        "total": "45500.00",
        "cliente": {"nombre_completo": "María López", "lat": "19.415", "lng": "-99.158"},
    })

    assert order.id == 12
    assert order.display_number == "MM-2024-0012"
    assert order.customer_name == "María López"
    assert order.total == 45500.0
    assert order.coordinates == (19.415, -99.158)
    assert order.route_id is None


def test_order_null_coordinates_fall_back_to_customer():
    order = Order.from_api({
        "id": 13,
        "lat": None,
        "lng": None,
        "cliente": {"nombre_completo": "Luis", "lat": 19.42, "lng": -99.16},
    })

    assert order.coordinates == (19.42, -99.16)


def test_order_without_number_or_coordinates():
    order = Order.from_api({"id": 3, "cliente": {"nombre_completo": "Ana"}})
    assert order.display_number == "#3"
    assert not order.has_coordinates


def test_driver_from_api_keeps_unknown_status():
    known = Driver.from_api({"id": 1, "nombre_completo": "Carlos", "estado": "en_ruta"}, route_id="A")
    unknown = Driver.from_api({"id": 2, "nombre_completo": "Sofía", "estado": "vacaciones"})

    assert known.status == DriverStatus.ON_ROUTE
    assert known.status_label == "En ruta"
    assert known.route_id == "A"
    assert unknown.status == "vacaciones"
    assert unknown.status_label == "vacaciones"
    assert Driver(3, "REP-003", "Diego", "auto").status_label == "Disponible"


def test_default_policy_is_valid():
    policy = default_console_policy()
    assert policy.remote_timeout_seconds == 15.0
    assert policy.palette().color_for("B") == "#FF9800"


@pytest.mark.parametrize(
    "overrides",
    [
        {"route_colors": {"A": "pink"}},
        {"unassigned_color": "#12345"},
        {"remote_timeout_seconds": 0},
        {"max_drivers_per_route": 0},
        {"dragging_opacity": 1.5},
        {"unassigned_page_size": 0},
    ],
)
def test_policy_validation(overrides):
    with pytest.raises(ValueError):
        ConsolePolicy(**overrides).validate()
