#Expose the drag and drop pieces:
#Draggable items (drag sources)
#Drop targets (pool / route lanes)
#Drag coordinator (the state machine that turns a release into a store move)

from .draggable import DraggableItem, CardContent, card_for, format_amount
from .drop_target import DropTarget, DEFAULT_ACCEPT, UNASSIGNED_POOL_ID
from .coordinator import DragCoordinator, DropOutcome, DropResult #the one object pages talk to

__all__ = [
    "DraggableItem",
    "CardContent",
    "card_for",
    "format_amount",
    "DropTarget",
    "DEFAULT_ACCEPT",
    "UNASSIGNED_POOL_ID",
    "DragCoordinator",
    "DropOutcome",
    "DropResult",
]
