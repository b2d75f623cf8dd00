#Purpose: The routes backend "adapter/client".
#Sole responsibility: talk to the delivery backend via HTTP and return normalized outputs.
#Encapsulates backend-specific details:
#URL construction (/rutas, /rutas/{id}/pedidos, etc.)
#auth header, timeouts, error handling
#parsing response JSON into Order / Driver / Route
#It should not contain assignment rules or drag logic.


from dotenv import load_dotenv
import logging
import os
import re
from typing import Any, Dict, List, Optional, Tuple

import requests

from drivers.models import Driver
from orders.models import Order
from routing.registry import Route, RouteRegistry

# Read backend settings from environment
# Example in .env:
# API_BASE_URL=https://backend.example.com/api
# API_TOKEN=eyJhbGciOi...
load_dotenv()
API_BASE_URL = os.getenv("API_BASE_URL")
API_TOKEN = os.getenv("API_TOKEN")
API_TIMEOUT_SECONDS = float(os.getenv("API_TIMEOUT_SECONDS", "10"))

logger = logging.getLogger(__name__)

_ROUTE_NAME_LETTER = re.compile(r"^Ruta\s+([A-Z][0-9]*)$")


class RoutesAPIError(Exception):
    """Raised when the backend rejects a request or cannot be reached."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


def _unwrap(payload: Any) -> Any:
    """The backend wraps most bodies as {"success": ..., "data": ...}."""
    if isinstance(payload, dict) and "data" in payload:
        return payload["data"]
    return payload


def _as_list(payload: Any, *keys: str) -> List[Dict[str, Any]]:
    data = _unwrap(payload)
    if isinstance(data, dict):
        for key in keys:
            if isinstance(data.get(key), list):
                return data[key]
        return []
    return data or []


def route_letter(name: Optional[str]) -> Optional[str]:
    """'Ruta B' -> 'B'; anything else -> None."""
    if not name:
        return None
    match = _ROUTE_NAME_LETTER.match(name.strip())
    return match.group(1) if match else None


class RoutesClient:
    """
    Routes backend Adapter / Client

    Sole responsibility:
    - Talk to the backend via HTTP
    - Return Orders, Drivers and Routes in the console's own shapes
    """
    def __init__(
        self,
        base_url: Optional[str] = None,
        token: Optional[str] = None,
        timeout: float = API_TIMEOUT_SECONDS,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = (base_url or API_BASE_URL or "").rstrip("/")
        self.token = token if token is not None else API_TOKEN
        self.timeout = timeout #seconds to wait for the backend before giving up
        self.session = session or requests.Session()

        if not self.base_url:
            raise ValueError("API base URL not set. Please set API_BASE_URL in the .env file.")

    #----------------
    # Internal helper for URL construction, headers and error handling
    #----------------
    def _request(self, method: str, endpoint: str, *, params: Optional[Dict[str, Any]] = None,
                 json: Optional[Dict[str, Any]] = None) -> Any:
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"

        #drop empty query values so filters are optional
        if params:
            params = {key: value for key, value in params.items() if value is not None}

        url = f"{self.base_url}{endpoint}"
        try:
            response = self.session.request(
                method, url, params=params, json=json, headers=headers, timeout=self.timeout
            )
        except requests.RequestException as exc:
            raise RoutesAPIError(f"{method} {endpoint} failed: {exc}") from exc

        if not response.ok:
            try:
                body = response.json()
            except ValueError:
                body = None
            message = body.get("message") if isinstance(body, dict) else None
            logger.warning("%s %s -> %s", method, endpoint, response.status_code)
            raise RoutesAPIError(
                message or f"HTTP error! status: {response.status_code}",
                status_code=response.status_code,
            )

        if not response.content:
            return None
        return response.json()

    #----------------
    # Reads: what the console loads at mount
    #----------------
    def get_routes_by_date(self, fecha: str, ciudad: Optional[int] = None) -> List[Dict[str, Any]]:
        """
        Raw route rows for a date: id, nombre_ruta, repartidor, pedidos[...] (route orders).
        """
        payload = self._request("GET", f"/rutas/fecha/{fecha}", params={"fkid_ciudad": ciudad})
        return _as_list(payload, "rutas")

    def get_unassigned_orders(self, fecha: str, ciudad: Optional[int] = None,
                              page: int = 1, limit: int = 50) -> List[Order]:
        payload = self._request(
            "GET",
            f"/rutas/pedidos-sin-asignar/{fecha}",
            params={"fkid_ciudad": ciudad, "page": page, "limit": limit},
        )
        return [Order.from_api(row) for row in _as_list(payload, "pedidos")]

    def get_available_drivers(self, fecha: Optional[str] = None, ciudad: Optional[int] = None) -> List[Driver]:
        payload = self._request(
            "GET", "/rutas/repartidores-disponibles", params={"fecha": fecha, "ciudad": ciudad}
        )
        return [Driver.from_api(row) for row in _as_list(payload, "repartidores")]

    #----------------
    # Route lifecycle
    #----------------
    def create_route(self, nombre_ruta: str, fecha_ruta: str, fkid_ciudad: int,
                     fkid_repartidor: Optional[int] = None, notas: Optional[str] = None) -> Dict[str, Any]:
        body = {
            "nombre_ruta": nombre_ruta,
            "fecha_ruta": fecha_ruta,
            "fkid_ciudad": fkid_ciudad,
            "fkid_repartidor": fkid_repartidor,
            "notas": notas,
        }
        payload = self._request("POST", "/rutas", json={k: v for k, v in body.items() if v is not None})
        return _unwrap(payload)

    def delete_route(self, route_remote_id: int) -> None:
        self._request("DELETE", f"/rutas/{route_remote_id}")

    #----------------
    # Mutations used by the assignment store
    #----------------
    def assign_order_to_route(self, route_remote_id: int, order_id: int, position: int,
                              coordinates: Optional[tuple] = None) -> Any:
        row: Dict[str, Any] = {"fkid_pedido": order_id, "orden_entrega": position}
        if coordinates is not None:
            row["lat"], row["lng"] = coordinates
        return self._request("POST", f"/rutas/{route_remote_id}/pedidos", json={"pedidos": [row]})

    def remove_order_from_route(self, route_remote_id: int, order_id: int) -> Any:
        return self._request("DELETE", f"/rutas/{route_remote_id}/pedidos/{order_id}")

    def assign_driver_to_route(self, route_remote_id: int, driver_id: int) -> Any:
        return self._request("PUT", f"/rutas/{route_remote_id}", json={"fkid_repartidor": driver_id})

    def unassign_driver_from_route(self, route_remote_id: int) -> Any:
        return self._request("DELETE", f"/rutas/{route_remote_id}/repartidor")


def parse_route_rows(rows: List[Dict[str, Any]]) -> Tuple[List[Route], List[Order], List[Driver]]:
    """
    Turn backend route rows into (routes, orders, drivers) for the console.

    Rows are taken in orden_prioridad, then id, order. A route keeps the letter in its
    name ("Ruta B") when that letter is free; the others get the next unused letter.
    """
    registry = RouteRegistry()
    rows = sorted(rows, key=lambda row: (row.get("orden_prioridad") or 0, row.get("id") or 0))

    letters: Dict[int, str] = {}
    for index, row in enumerate(rows):
        letter = route_letter(row.get("nombre_ruta"))
        if letter and letter not in registry:
            registry.add(Route(id=letter, remote_id=row.get("id"), name=row.get("nombre_ruta")))
            letters[index] = letter

    for index, row in enumerate(rows):
        if index not in letters:
            letter = registry.next_route_id()
            registry.add(Route(id=letter, remote_id=row.get("id"), name=row.get("nombre_ruta")))
            letters[index] = letter

    routes: List[Route] = []
    orders: List[Order] = []
    drivers: List[Driver] = []
    for index, row in enumerate(rows):
        letter = letters[index]
        routes.append(registry.get(letter))

        for route_order in sorted(row.get("pedidos") or [], key=lambda item: item.get("orden_entrega") or 0):
            order_payload = dict(route_order.get("pedido") or {})
            order_payload.setdefault("id", route_order.get("fkid_pedido"))
            #the route row carries the delivery point used on the map
            if route_order.get("lat") is not None and route_order.get("lng") is not None:
                order_payload["lat"] = route_order["lat"]
                order_payload["lng"] = route_order["lng"]
            orders.append(Order.from_api(order_payload, route_id=letter))

        if row.get("repartidor"):
            drivers.append(Driver.from_api(row["repartidor"], route_id=letter))

    return routes, orders, drivers
