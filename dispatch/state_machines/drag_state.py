from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional

from dispatch.draggable import DraggableItem
from dispatch.drop_target import DropTarget


class DragStateException(Exception):
    """Raised when a drag transition is attempted without an active session."""
    pass


class DragState(str, Enum):
    IDLE = "idle"
    DRAGGING = "dragging"
    HOVERING_TARGET = "hovering_target"


@dataclass(frozen=True)
class DragSession:
    """
    The gesture in progress. Never persisted.

    target is the compatible drop target under the pointer (what a release commits to).
    pointed is whatever target is under the pointer, compatible or not, so a release
    over an incompatible target can be told apart from a release over empty space.
    """
    item: DraggableItem
    origin: Optional[DropTarget] = None
    target: Optional[DropTarget] = None
    pointed: Optional[DropTarget] = None

    @property
    def state(self) -> DragState:
        return DragState.HOVERING_TARGET if self.target is not None else DragState.DRAGGING


def state_of(session: Optional[DragSession]) -> DragState:
    return DragState.IDLE if session is None else session.state


def start_session(item: DraggableItem, origin: Optional[DropTarget] = None) -> DragSession:
    """
    Idle -> Dragging, on pointer-down over a draggable item.
    """
    return DragSession(item=item, origin=origin)


def point_at(session: Optional[DragSession], target: Optional[DropTarget]) -> DragSession:
    """
    Dragging <-> HoveringTarget as the pointer enters and leaves targets.
    Only a target accepting the item's kind becomes the hovered target.
    """
    if session is None:
        raise DragStateException("Cannot hover a target without an active drag")

    if target is None:
        return replace(session, target=None, pointed=None)

    if target.accepts(session.item.kind):
        return replace(session, target=target, pointed=target)

    return replace(session, target=None, pointed=target)
