import asyncio
from typing import List

import pytest

from assignment.items import MoveRequest
from drivers.models import Driver, DriverStatus
from orders.models import Order
from routing.registry import Route, RouteRegistry


class ControlledRemote:
    """
    Remote mutation whose calls stay pending until the test resolves them.
    """

    def __init__(self):
        self.calls: List[MoveRequest] = []
        self._pending: List[asyncio.Future] = []

    async def __call__(self, request: MoveRequest):
        future = asyncio.get_running_loop().create_future()
        self.calls.append(request)
        self._pending.append(future)
        return await future

    def succeed(self, index: int = 0):
        self._pending[index].set_result(None)

    def reject(self, index: int = 0):
        self._pending[index].set_result(False)

    def fail(self, index: int = 0, error: Exception = None):
        self._pending[index].set_exception(error or RuntimeError("backend down"))


async def settle(rounds: int = 10):
    """Let scheduled tasks run until they block on something."""
    for _ in range(rounds):
        await asyncio.sleep(0)


@pytest.fixture
def registry():
    return RouteRegistry([Route("A", remote_id=101), Route("B", remote_id=102), Route("C", remote_id=103)])


@pytest.fixture
def orders():
    return [
        Order(1, "MM-2024-0001", "Ana Pérez", "Av. Insurgentes Sur 120", 90000, "A", (19.4326, -99.1332)),
        Order(2, "MM-2024-0002", "Luis García", "Calle Durango 45", 45500, "A", (19.4201, -99.1625)),
        Order(3, "MM-2024-0003", "María López", "Calle Orizaba 8", 30000, None, (19.4150, -99.1580)),
        Order(4, "", "Jorge Torres", "Av. Cuauhtémoc 300", 12000, None, None),
    ]


@pytest.fixture
def drivers():
    return [
        Driver(1, "REP-001", "Carlos Ruiz", "moto", "5512345678", DriverStatus.AVAILABLE, "A"),
        Driver(2, "REP-002", "Sofía Flores", "bicicleta", None, DriverStatus.BUSY, None),
    ]


@pytest.fixture
def remote():
    return ControlledRemote()
