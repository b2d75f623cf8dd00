"""
Purpose: The authoritative in-memory assignment of orders and drivers to routes.
What it does:
- Owns the mapping (kind, id) -> route | unassigned, one entry per item.
- Applies moves optimistically, then asks the remote collaborator to persist them.
  On success the optimistic value stays; on failure it is restored exactly and the
  error is surfaced to registered error handlers.
- Serializes moves per item: a move for an item whose previous move is still in flight
  waits for it to resolve before applying.
- Notifies listeners synchronously on every committed change (moves, rollbacks, reloads).

Rule: Store owns assignment state, the drag layer owns gestures, the map layer owns markers.
"""

from __future__ import annotations

import asyncio
import functools
import inspect
import itertools
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional, Union

from drivers.models import Driver
from orders.models import Order
from routing.registry import RouteRegistry

from .items import UNASSIGNED, Item, ItemKind, ItemRef, MoveRequest, item_for, with_route

logger = logging.getLogger(__name__)

# A remote mutation gets the MoveRequest and may be sync or async.
# Raising, or returning False, means the backend did not accept the move.
RemoteMutation = Callable[[MoveRequest], Union[Awaitable[Any], Any]]
ErrorHandler = Callable[[ItemRef, BaseException], None]


class InvalidMoveError(Exception):
    """Raised when a move names an unknown kind, item or route, or targets a full driver lane."""
    pass


class RemoteMutationError(Exception):
    """Raised when a remote mutation reports failure by returning False."""
    pass


class MoveStatus(str, Enum):
    CONFIRMED = "confirmed"
    ROLLED_BACK = "rolled_back"
    UNCHANGED = "unchanged"
    DISCARDED = "discarded"  # the store was reloaded before the move could apply or resolve


@dataclass(frozen=True)
class MoveResult:
    item: ItemRef
    requested_route_id: Optional[str]
    previous_route_id: Optional[str]
    status: MoveStatus
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.status in (MoveStatus.CONFIRMED, MoveStatus.UNCHANGED)


class StoreEventType(str, Enum):
    LOADED = "loaded"
    MOVED = "moved"
    CONFIRMED = "confirmed"
    ROLLED_BACK = "rolled_back"
    ROUTE_CLEARED = "route_cleared"


@dataclass(frozen=True)
class StoreEvent:
    type: StoreEventType
    item: Optional[ItemRef] = None
    route_id: Optional[str] = None
    previous_route_id: Optional[str] = None
    error: Optional[BaseException] = None

    def affects(self, kind: ItemKind) -> bool:
        return self.item is None or self.item.kind == kind


Listener = Callable[[StoreEvent], None]


@dataclass(frozen=True)
class _PendingMove:
    request: MoveRequest
    previous_slot: int
    generation: int
    # whether previous_route_id was a registered route when the move was applied
    previous_was_active: bool = True

    @property
    def changed(self) -> bool:
        return self.request.route_id != self.request.previous_route_id


class AssignmentStore:
    """
    In-memory assignment state for the route console.

    Items are kept in load order; inside a lane they are ordered by arrival,
    so a move appends the item at the end of its new lane.
    """

    def __init__(
        self,
        registry: RouteRegistry,
        *,
        order_mutation: Optional[RemoteMutation] = None,
        driver_mutation: Optional[RemoteMutation] = None,
        remote_timeout_seconds: Optional[float] = None,
        max_drivers_per_route: Optional[int] = None,
    ):
        self.registry = registry
        self.remote_timeout_seconds = remote_timeout_seconds
        # None = no cap
        self.max_drivers_per_route = max_drivers_per_route
        self._mutations: Dict[ItemKind, Optional[RemoteMutation]] = {
            ItemKind.ORDER: order_mutation,
            ItemKind.DRIVER: driver_mutation,
        }

        self._items: Dict[ItemRef, Item] = {}
        self._routes: Dict[ItemRef, Optional[str]] = {}
        self._slots: Dict[ItemRef, int] = {}
        self._slot_counter = itertools.count()

        self._in_flight: Dict[ItemRef, asyncio.Task] = {}
        self._generation = 0

        self._listeners: List[Listener] = []
        self._error_handlers: List[ErrorHandler] = []

    # --- Observers ---

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Register a listener called synchronously on every committed change.
        Returns a function that unsubscribes it.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def on_error(self, handler: ErrorHandler) -> None:
        """
        Register a user-facing error sink for failed remote mutations.
        """
        self._error_handlers.append(handler)

    def _notify(self, event: StoreEvent) -> None:
        for listener in list(self._listeners):
            listener(event)

    # --- Loading ---

    def load_initial(self, orders: Iterable[Order], drivers: Iterable[Driver]) -> None:
        """
        Replace the store contents with the backend's current truth.
        Moves still in flight from before the reload can no longer touch the state.
        """
        items: Dict[ItemRef, Item] = {}
        for entity in itertools.chain(orders, drivers):
            item = item_for(entity)
            if item.ref in items:
                raise ValueError(f"Duplicate {item.ref} in initial load")
            items[item.ref] = item

        self._generation += 1
        self._items = items
        self._routes = {ref: item.value.route_id for ref, item in items.items()}
        self._slot_counter = itertools.count()
        self._slots = {ref: next(self._slot_counter) for ref in items}
        self._in_flight = {}

        unknown_routes = sorted(
            {route_id for route_id in self._routes.values() if route_id is not None and route_id not in self.registry}
        )
        if unknown_routes:
            logger.warning("Loaded items reference routes not in the registry: %s", ", ".join(unknown_routes))

        order_count = sum(1 for ref in items if ref.kind == ItemKind.ORDER)
        logger.info("Loaded %d orders and %d drivers", order_count, len(items) - order_count)
        self._notify(StoreEvent(StoreEventType.LOADED))

    # --- Read side ---

    def knows(self, ref: ItemRef) -> bool:
        return ref in self._items

    def route_of(self, ref: ItemRef) -> Optional[str]:
        if ref not in self._routes:
            raise KeyError(str(ref))
        return self._routes[ref]

    def get_item(self, ref: ItemRef) -> Item:
        if ref not in self._items:
            raise KeyError(str(ref))
        return with_route(self._items[ref], self._routes[ref])

    def is_in_flight(self, ref: ItemRef) -> bool:
        return ref in self._in_flight

    def snapshot(self) -> Dict[ItemRef, Optional[str]]:
        return dict(self._routes)

    def items(self, kind: Optional[ItemKind] = None) -> List[Item]:
        return [
            with_route(item, self._routes[ref])
            for ref, item in self._items.items()
            if kind is None or ref.kind == kind
        ]

    def orders(self) -> List[Order]:
        return [item.value for item in self.items(ItemKind.ORDER)]

    def drivers(self) -> List[Driver]:
        return [item.value for item in self.items(ItemKind.DRIVER)]

    def get_assignments_by_route(self) -> Dict[Optional[str], List[Item]]:
        """
        Route id -> items in lane order.

        Active routes come first in registry order (empty lanes included), then the
        UNASSIGNED pseudo-route, then any route ids loaded from the backend that the
        registry does not know, so no item is ever hidden.
        """
        grouped: Dict[Optional[str], List[Item]] = {route_id: [] for route_id in self.registry.route_ids()}
        grouped[UNASSIGNED] = []
        unknown: Dict[str, List[Item]] = {}

        for ref in sorted(self._items, key=self._slots.__getitem__):
            route_id = self._routes[ref]
            lane = grouped[route_id] if route_id in grouped else unknown.setdefault(route_id, [])
            lane.append(with_route(self._items[ref], route_id))

        for route_id in sorted(unknown):
            grouped[route_id] = unknown[route_id]
        return grouped

    def unassigned(self) -> List[Item]:
        return self.get_assignments_by_route()[UNASSIGNED]

    # --- Moves ---

    def move_item(
        self,
        kind: Union[ItemKind, str],
        item_id: int,
        route_id: Optional[str],
    ) -> "asyncio.Task[MoveResult]":
        """
        Move an item to route_id (UNASSIGNED / None to unassign).

        Validation happens before anything else and raises InvalidMoveError (unknown
        kind, item or route, or a driver lane already at max_drivers_per_route).
        If no move is in flight for the item, the new route is applied and listeners
        are notified before this returns; the returned task resolves once the remote
        mutation does. Otherwise the move waits for its predecessor inside the task.

        Must be called with a running event loop.
        """
        ref = self._validate_move(kind, item_id, route_id)
        loop = asyncio.get_running_loop()

        predecessor = self._in_flight.get(ref)
        if predecessor is None:
            pending = self._apply(ref, route_id)
            task = loop.create_task(self._commit(pending))
        else:
            logger.debug("Move of %s to %s queued behind an in-flight move", ref, route_id)
            task = loop.create_task(self._apply_after(predecessor, ref, route_id, self._generation))

        self._in_flight[ref] = task
        task.add_done_callback(functools.partial(self._release, ref))
        return task

    def forget_route(self, route_id: str) -> List[ItemRef]:
        """
        Unassign every item currently in route_id (the route is being deleted).
        Local only: deleting the route remotely is the caller's business.
        """
        cleared = [ref for ref, current in self._routes.items() if current == route_id]
        for ref in cleared:
            self._routes[ref] = UNASSIGNED
            self._slots[ref] = next(self._slot_counter)

        logger.info("Route %s cleared, %d items unassigned", route_id, len(cleared))
        self._notify(StoreEvent(StoreEventType.ROUTE_CLEARED, route_id=route_id))
        return cleared

    # ---- Internal helpers ----

    def _validate_move(self, kind: Union[ItemKind, str], item_id: int, route_id: Optional[str]) -> ItemRef:
        try:
            kind = ItemKind(kind)
        except ValueError:
            raise InvalidMoveError(f"Unknown item kind {kind!r}") from None

        ref = ItemRef(kind, item_id)
        if ref not in self._items:
            raise InvalidMoveError(f"Unknown item {ref}")
        if route_id is not UNASSIGNED and route_id not in self.registry:
            raise InvalidMoveError(f"Unknown route {route_id!r}")
        self._check_driver_cap(ref, route_id)
        return ref

    def _check_driver_cap(self, ref: ItemRef, route_id: Optional[str]) -> None:
        if ref.kind != ItemKind.DRIVER or route_id is UNASSIGNED or self.max_drivers_per_route is None:
            return
        drivers_in_lane = sum(
            1
            for other, current in self._routes.items()
            if other.kind == ItemKind.DRIVER and other != ref and current == route_id
        )
        if drivers_in_lane >= self.max_drivers_per_route:
            raise InvalidMoveError(f"Route {route_id!r} already has {drivers_in_lane} driver(s)")

    def _lane_position(self, ref: ItemRef, route_id: Optional[str]) -> int:
        if route_id is UNASSIGNED:
            return 0
        return sum(1 for other, current in self._routes.items() if other.kind == ref.kind and current == route_id)

    def _apply(self, ref: ItemRef, route_id: Optional[str]) -> _PendingMove:
        previous_route_id = self._routes[ref]
        previous_slot = self._slots[ref]

        if route_id != previous_route_id:
            self._routes[ref] = route_id
            self._slots[ref] = next(self._slot_counter)

        request = MoveRequest(
            item=ref,
            route_id=route_id,
            previous_route_id=previous_route_id,
            position=self._lane_position(ref, route_id),
        )
        pending = _PendingMove(
            request=request,
            previous_slot=previous_slot,
            generation=self._generation,
            previous_was_active=previous_route_id is UNASSIGNED or previous_route_id in self.registry,
        )

        if pending.changed:
            logger.debug("Optimistic move of %s: %s -> %s", ref, previous_route_id, route_id)
            self._notify(StoreEvent(StoreEventType.MOVED, ref, route_id, previous_route_id))
        return pending

    async def _apply_after(
        self,
        predecessor: asyncio.Task,
        ref: ItemRef,
        route_id: Optional[str],
        generation: int,
    ) -> MoveResult:
        # asyncio.wait does not re-raise the predecessor's outcome
        await asyncio.wait({predecessor})

        if generation != self._generation or ref not in self._items:
            return MoveResult(ref, route_id, self._routes.get(ref), MoveStatus.DISCARDED)

        if route_id is not UNASSIGNED and route_id not in self.registry:
            error = InvalidMoveError(f"Route {route_id!r} was removed while the move was queued")
            logger.info("Dropping queued move of %s: %s", ref, error)
            return MoveResult(ref, route_id, self._routes[ref], MoveStatus.DISCARDED, error)

        try:
            self._check_driver_cap(ref, route_id)
        except InvalidMoveError as error:
            logger.info("Dropping queued move of %s: %s", ref, error)
            return MoveResult(ref, route_id, self._routes[ref], MoveStatus.DISCARDED, error)

        return await self._commit(self._apply(ref, route_id))

    async def _commit(self, pending: _PendingMove) -> MoveResult:
        request = pending.request
        if not pending.changed:
            return MoveResult(request.item, request.route_id, request.previous_route_id, MoveStatus.UNCHANGED)

        try:
            await self._call_remote(request)
        except asyncio.CancelledError:
            self._rollback(pending, None)
            raise
        except Exception as exc:
            return self._rollback(pending, exc)

        if pending.generation != self._generation:
            return MoveResult(request.item, request.route_id, request.previous_route_id, MoveStatus.DISCARDED)

        logger.debug("Remote confirmed move of %s to %s", request.item, request.route_id)
        self._notify(StoreEvent(StoreEventType.CONFIRMED, request.item, request.route_id, request.previous_route_id))
        return MoveResult(request.item, request.route_id, request.previous_route_id, MoveStatus.CONFIRMED)

    async def _call_remote(self, request: MoveRequest) -> None:
        mutation = self._mutations.get(request.item.kind)
        if mutation is None:
            return

        outcome = mutation(request)
        if inspect.isawaitable(outcome):
            if self.remote_timeout_seconds is not None:
                outcome = await asyncio.wait_for(outcome, self.remote_timeout_seconds)
            else:
                outcome = await outcome

        if outcome is False:
            raise RemoteMutationError(f"Backend rejected the move of {request.item} to {request.route_id}")

    def _rollback(self, pending: _PendingMove, error: Optional[BaseException]) -> MoveResult:
        request = pending.request
        ref = request.item

        if pending.generation != self._generation:
            logger.info("Ignoring failed move of %s: store was reloaded meanwhile", ref)
            return MoveResult(ref, request.route_id, request.previous_route_id, MoveStatus.DISCARDED, error)

        # routes the registry never knew (kept from the load) are restored as-is;
        # only a route deleted while the move was in flight sends the item to unassigned
        restored = request.previous_route_id
        if pending.previous_was_active and restored is not UNASSIGNED and restored not in self.registry:
            logger.warning("Route %s no longer exists, %s goes back to unassigned", restored, ref)
            restored = UNASSIGNED

        self._routes[ref] = restored
        self._slots[ref] = pending.previous_slot
        logger.warning("Move of %s to %s failed, restored %s: %s", ref, request.route_id, restored, error or "cancelled")

        self._notify(StoreEvent(StoreEventType.ROLLED_BACK, ref, restored, request.route_id, error))
        if error is not None:
            for handler in list(self._error_handlers):
                handler(ref, error)
        return MoveResult(ref, request.route_id, request.previous_route_id, MoveStatus.ROLLED_BACK, error)

    def _release(self, ref: ItemRef, task: asyncio.Task) -> None:
        if self._in_flight.get(ref) is task:
            del self._in_flight[ref]
