"""
Purpose: Domain models for the Orders capability.
What it does:
- Defines the Order record the route console works with:
  id, display number, customer, delivery address, total, route, coordinates.
- Parses the backend "available order" payload into an Order.

Rule: No HTTP calls, no assignment logic. Models only.
The assigned route stored here is the value loaded from the backend;
the live value is owned by assignment.store.AssignmentStore.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

LatLon = Tuple[float, float]

DEFAULT_CUSTOMER_NAME = "Cliente"
DEFAULT_ADDRESS = "Sin dirección"


@dataclass(frozen=True)
class Order:
    """
    A pending order as seen by the route console.
    """

    id: int
    order_number: str
    customer_name: str
    address: str
    total: float = 0.0

    route_id: Optional[str] = None  # None = unassigned
    coordinates: Optional[LatLon] = None  # (lat, lon); orders without it are not drawn on the map
    city: Optional[str] = None

    @property
    def display_number(self) -> str:
        return self.order_number or f"#{self.id}"

    @property
    def has_coordinates(self) -> bool:
        return self.coordinates is not None

    @classmethod
    def from_api(cls, payload: Dict[str, Any], route_id: Optional[str] = None) -> Order:
        """
        Build an Order from the backend shape:

            {
                "id": 12, "numero_pedido": "MM-2024-0001", "direccion_entrega": "...",
                "total": 90000, "cliente": {"nombre_completo": "...", "lat": 19.4, "lng": -99.1}
            }

        Coordinates are taken from the payload itself first (route order rows carry lat/lng),
        then from the customer record.
        """
        customer = payload.get("cliente") or {}

        lat, lng = payload.get("lat"), payload.get("lng")
        if lat is None or lng is None:
            lat, lng = customer.get("lat"), customer.get("lng")
        coordinates = (float(lat), float(lng)) if lat is not None and lng is not None else None

        address = payload.get("direccion_entrega") or customer.get("direccion_entrega") or ""

        return cls(
            id=int(payload["id"]),
            order_number=payload.get("numero_pedido") or "",
            customer_name=customer.get("nombre_completo") or "",
            address=address,
            total=float(payload.get("total") or 0),
            route_id=route_id,
            coordinates=coordinates,
            city=(payload.get("ciudad") or {}).get("nombre"),
        )
