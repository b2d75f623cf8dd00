import asyncio
import json
import threading
from unittest.mock import MagicMock, call

import pytest
import requests

from assignment.items import ItemKind, ItemRef, MoveRequest
from routing.registry import Route, RouteRegistry
from services.mutations import RemoteRouteMutations
from services.routes_client import RoutesAPIError, RoutesClient, parse_route_rows, route_letter


def make_response(status=200, body=None):
    response = MagicMock()
    response.ok = 200 <= status < 400
    response.status_code = status
    response.content = b"" if body is None else json.dumps(body).encode()
    response.json.return_value = body
    return response


@pytest.fixture
def session():
    return MagicMock()


@pytest.fixture
def client(session):
    return RoutesClient(base_url="https://api.example.test/api/", token="secret", timeout=3, session=session)


def test_requires_base_url(monkeypatch):
    monkeypatch.setattr("services.routes_client.API_BASE_URL", None)
    with pytest.raises(ValueError):
        RoutesClient(base_url=None)


def test_get_unassigned_orders_sends_filters_and_parses(client, session):
    session.request.return_value = make_response(body={
        "success": True,
        "data": {"pedidos": [
            {"id": 5, "numero_pedido": "MM-5", "direccion_entrega": "Calle 5", "total": 1000,
             "cliente": {"nombre_completo": "Ana", "lat": 19.4, "lng": -99.1}},
        ]},
    })

    orders = client.get_unassigned_orders("2024-06-03", ciudad=None, limit=20)

    assert [order.id for order in orders] == [5]
    assert orders[0].coordinates == (19.4, -99.1)
    session.request.assert_called_once_with(
        "GET",
        "https://api.example.test/api/rutas/pedidos-sin-asignar/2024-06-03",
        params={"page": 1, "limit": 20},
        json=None,
        headers={"Content-Type": "application/json", "Authorization": "Bearer secret"},
        timeout=3,
    )


def test_backend_error_message_is_surfaced(client, session):
    session.request.return_value = make_response(400, {"success": False, "message": "Pedido ya asignado"})

    with pytest.raises(RoutesAPIError) as excinfo:
        client.assign_order_to_route(101, 5, 1)

    assert str(excinfo.value) == "Pedido ya asignado"
    assert excinfo.value.status_code == 400


def test_http_error_without_json_body(client, session):
    response = make_response(502)
    response.json.side_effect = ValueError("no json")
    session.request.return_value = response

    with pytest.raises(RoutesAPIError, match="HTTP error! status: 502"):
        client.delete_route(101)


def test_network_failure_is_wrapped(client, session):
    session.request.side_effect = requests.ConnectionError("connection refused")

    with pytest.raises(RoutesAPIError):
        client.get_routes_by_date("2024-06-03")


def test_mutation_endpoints(client, session):
    session.request.return_value = make_response(body={"success": True})

    client.assign_order_to_route(101, 5, 2, coordinates=(19.4, -99.1))
    client.remove_order_from_route(101, 5)
    client.assign_driver_to_route(102, 9)
    client.unassign_driver_from_route(102)

    sent = [(c.args[0], c.args[1], c.kwargs["json"]) for c in session.request.call_args_list]
    base = "https://api.example.test/api"
    assert sent == [
        ("POST", f"{base}/rutas/101/pedidos",
         {"pedidos": [{"fkid_pedido": 5, "orden_entrega": 2, "lat": 19.4, "lng": -99.1}]}),
        ("DELETE", f"{base}/rutas/101/pedidos/5", None),
        ("PUT", f"{base}/rutas/102", {"fkid_repartidor": 9}),
        ("DELETE", f"{base}/rutas/102/repartidor", None),
    ]


def test_create_route_drops_empty_fields(client, session):
    session.request.return_value = make_response(201, {"success": True, "data": {"id": 300, "nombre_ruta": "Ruta D"}})

    created = client.create_route("Ruta D", "2024-06-03", 1)

    assert created == {"id": 300, "nombre_ruta": "Ruta D"}
    assert session.request.call_args.kwargs["json"] == {
        "nombre_ruta": "Ruta D", "fecha_ruta": "2024-06-03", "fkid_ciudad": 1,
    }


def test_route_letter():
    assert route_letter("Ruta B") == "B"
    assert route_letter(" Ruta C2 ") == "C2"
    assert route_letter("Zona norte") is None
    assert route_letter(None) is None


def test_parse_route_rows():
    rows = [
        {"id": 8, "nombre_ruta": "Zona norte", "orden_prioridad": 2},
        {
            "id": 7,
            "nombre_ruta": "Ruta B",
            "orden_prioridad": 1,
            "repartidor": {"id": 4, "nombre_completo": "Carlos Ruiz", "tipo_vehiculo": "moto"},
            "pedidos": [
                {"fkid_pedido": 11, "orden_entrega": 2, "pedido": {"numero_pedido": "MM-11"}},
                {"fkid_pedido": 10, "orden_entrega": 1, "lat": 19.41, "lng": -99.15,
                 "pedido": {"numero_pedido": "MM-10", "cliente": {"nombre_completo": "Ana"}}},
            ],
        },
    ]

    routes, orders, drivers = parse_route_rows(rows)

    assert [(route.id, route.remote_id, route.label) for route in routes] == [
        ("B", 7, "Ruta B"),
        ("A", 8, "Zona norte"),
    ]
    assert [(order.id, order.route_id) for order in orders] == [(10, "B"), (11, "B")]
    assert orders[0].coordinates == (19.41, -99.15)
    assert orders[1].coordinates is None
    assert [(driver.id, driver.route_id) for driver in drivers] == [(4, "B")]


def test_remote_mutations_move_order_between_routes():
    client = MagicMock()
    registry = RouteRegistry([Route("A", remote_id=101), Route("B", remote_id=102)])
    lookups = []

    def coordinates_for(order_id):
        lookups.append((order_id, threading.get_ident()))
        return (19.4, -99.1)

    mutations = RemoteRouteMutations(client, registry, coordinates_for=coordinates_for)

    request = MoveRequest(ItemRef(ItemKind.ORDER, 5), route_id="B", previous_route_id="A", position=3)
    asyncio.run(mutations.move_order(request))

    # looked up on the event loop thread, not in the HTTP worker
    assert lookups == [(5, threading.get_ident())]
    assert client.mock_calls == [
        call.remove_order_from_route(101, 5),
        call.assign_order_to_route(102, 5, 3, (19.4, -99.1)),
    ]


def test_remote_mutations_unassign_driver():
    client = MagicMock()
    registry = RouteRegistry([Route("A", remote_id=101)])
    mutations = RemoteRouteMutations(client, registry)

    request = MoveRequest(ItemRef(ItemKind.DRIVER, 9), route_id=None, previous_route_id="A")
    asyncio.run(mutations.move_driver(request))

    assert client.mock_calls == [call.unassign_driver_from_route(101)]


def test_remote_mutations_need_a_backend_id():
    client = MagicMock()
    mutations = RemoteRouteMutations(client, RouteRegistry(["A"]))

    request = MoveRequest(ItemRef(ItemKind.ORDER, 5), route_id="A", previous_route_id=None, position=1)
    with pytest.raises(RoutesAPIError):
        asyncio.run(mutations.move_order(request))

    assert client.mock_calls == []
