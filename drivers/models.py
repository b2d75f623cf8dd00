"""
Purpose: Core data models for the drivers domain.
What it does:
Defines the structure of a Driver and their status as the route console sees them
(code, name, vehicle, phone, availability, assigned route).
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Union


class DriverStatus(str, Enum):
    """
    Standardizes the availability values the backend sends for a driver.
    """
    ACTIVE = "activo"
    INACTIVE = "inactivo"
    BUSY = "ocupado"
    AVAILABLE = "disponible"
    ON_ROUTE = "en_ruta"

    @property
    def label(self) -> str:
        return self.value.replace("_", " ").capitalize()


KNOWN_STATUSES = {status.value for status in DriverStatus}


@dataclass(frozen=True)
class Driver:
    """
    A stateless representation of a Driver at load time.
    """
    id: int
    code: str
    full_name: str
    vehicle_type: str

    phone: Optional[str] = None
    # Unknown backend values are kept as the raw string.
    status: Optional[Union[DriverStatus, str]] = None
    route_id: Optional[str] = None

    @property
    def status_label(self) -> str:
        if self.status is None or self.status == DriverStatus.AVAILABLE:
            return "Disponible"
        if isinstance(self.status, DriverStatus):
            return self.status.label
        return self.status

    @classmethod
    def from_api(cls, payload: Dict[str, Any], route_id: Optional[str] = None) -> Driver:
        status = payload.get("estado")
        if status in KNOWN_STATUSES:
            status = DriverStatus(status)

        return cls(
            id=int(payload["id"]),
            code=payload.get("codigo_repartidor") or "",
            full_name=payload.get("nombre_completo") or "",
            vehicle_type=payload.get("tipo_vehiculo") or "",
            phone=payload.get("telefono"),
            status=status,
            route_id=route_id,
        )
