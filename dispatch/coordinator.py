"""
Purpose: Orchestrator for drag gestures (the "glue" between pointer events and the store).
What it does:
Owns the single active drag session, tracks which drop target is hovered while the
pointer moves, and on release asks the AssignmentStore to move the item to the
hovered target's route. Cancels the session when the store is reloaded.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional

from assignment.items import ItemRef
from assignment.store import AssignmentStore, InvalidMoveError, StoreEvent, StoreEventType
from dispatch.draggable import DraggableItem, Offset
from dispatch.drop_target import DropTarget
from dispatch.state_machines.drag_state import DragSession, DragState, point_at, start_session, state_of

logger = logging.getLogger(__name__)


class DropOutcome(str, Enum):
    COMMITTED = "committed"  # handed to the store
    NO_TARGET = "no_target"  # released over empty space
    REJECTED = "rejected"  # released over a target that does not accept the kind
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class DropResult:
    outcome: DropOutcome
    item: Optional[ItemRef] = None
    route_id: Optional[str] = None
    task: Optional["asyncio.Task"] = None


class DragCoordinator:
    """
    Drag state machine: Idle -> Dragging <-> HoveringTarget -> Idle.

    Only one session exists at a time; a pointer-down while a session is active is
    ignored, the first session owns the gesture until release or cancel.
    """

    def __init__(self, store: AssignmentStore):
        self.store = store
        self._targets: Dict[str, DropTarget] = {}
        self._session: Optional[DragSession] = None
        self._unsubscribe = store.subscribe(self._on_store_event)

    # --- Targets ---

    @property
    def targets(self) -> List[DropTarget]:
        return list(self._targets.values())

    def get_target(self, target_id: str) -> Optional[DropTarget]:
        return self._targets.get(target_id)

    def register_target(self, target: DropTarget) -> DropTarget:
        if target.target_id in self._targets:
            raise ValueError(f"Drop target {target.target_id} is already registered")
        self._targets[target.target_id] = target
        return target

    def unregister_target(self, target_id: str) -> DropTarget:
        target = self._targets.pop(target_id)
        target.leave()
        if self._session is not None and target in (self._session.target, self._session.pointed):
            self._session = point_at(self._session, None)
        return target

    # --- Session ---

    @property
    def session(self) -> Optional[DragSession]:
        return self._session

    @property
    def state(self) -> DragState:
        return state_of(self._session)

    def pointer_down(self, item: DraggableItem, origin: Optional[DropTarget] = None) -> bool:
        """
        Start a drag. Returns False (and changes nothing) if a drag is already active.
        """
        if self._session is not None:
            logger.debug("Ignoring drag of %s, %s owns the gesture", item.ref, self._session.item.ref)
            return False

        self._session = start_session(item, origin)
        item.start_drag()
        return True

    def pointer_move(self, offset: Optional[Offset] = None, target: Optional[DropTarget] = None) -> DragState:
        """
        Pointer moved; target is the drop target under it, if any.
        Moves outside a drag are ignored.
        """
        if self._session is None:
            return DragState.IDLE

        if offset is not None:
            self._session.item.move_to(offset)

        previous = self._session.target
        self._session = point_at(self._session, target)

        if previous is not None and previous is not self._session.target:
            previous.leave()
        if self._session.target is not None:
            self._session.target.hover(self._session.item.kind)

        return self._session.state

    def pointer_up(self) -> DropResult:
        """
        Release: commit to the hovered target, if there is one.
        Incompatible targets are a normal no-op, not an error.
        """
        session = self._end()
        if session is None:
            return DropResult(DropOutcome.NO_TARGET)

        ref = session.item.ref
        if session.target is None:
            if session.pointed is not None:
                logger.debug("%s rejected by %s", ref, session.pointed.target_id)
                return DropResult(DropOutcome.REJECTED, ref, session.pointed.route_id)
            return DropResult(DropOutcome.NO_TARGET, ref)

        route_id = session.target.route_id
        try:
            task = self.store.move_item(ref.kind, ref.id, route_id)
        except InvalidMoveError as error:
            logger.info("Drop of %s on %s refused: %s", ref, session.target.target_id, error)
            return DropResult(DropOutcome.REJECTED, ref, route_id)
        return DropResult(DropOutcome.COMMITTED, ref, route_id, task)

    def cancel(self) -> DropResult:
        """
        Pointer lost or escape: no assignment change, the item returns to where it was.
        """
        session = self._end()
        if session is None:
            return DropResult(DropOutcome.CANCELLED)
        return DropResult(DropOutcome.CANCELLED, session.item.ref)

    def close(self) -> None:
        self.cancel()
        self._unsubscribe()

    # ---- Internal helpers ----

    def _end(self) -> Optional[DragSession]:
        session, self._session = self._session, None
        if session is not None:
            if session.target is not None:
                session.target.leave()
            session.item.end_drag()
        return session

    def _on_store_event(self, event: StoreEvent) -> None:
        if event.type == StoreEventType.LOADED and self._session is not None:
            logger.info("Store reloaded, cancelling drag of %s", self._session.item.ref)
            self.cancel()
