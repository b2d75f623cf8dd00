#Purpose: A container items can be dropped on.
#Either the unassigned pool or one route lane.
#Declares which item kinds it accepts and exposes a hover flag for feedback.
#No semantic validation here beyond kind compatibility; the store validates moves.

from __future__ import annotations

from typing import FrozenSet, Iterable, Optional, Union

from assignment.items import UNASSIGNED, ItemKind

DEFAULT_ACCEPT: FrozenSet[ItemKind] = frozenset({ItemKind.ORDER, ItemKind.DRIVER})
UNASSIGNED_POOL_ID = "unassigned"


class DropTarget:
    """
    Drop zone bound to a route (or to UNASSIGNED for the pool).
    A target that does not accept a kind never highlights for it.
    """

    def __init__(
        self,
        target_id: str,
        route_id: Optional[str] = UNASSIGNED,
        accept: Iterable[Union[ItemKind, str]] = DEFAULT_ACCEPT,
    ):
        self.target_id = target_id
        self.route_id = route_id
        self.accept: FrozenSet[ItemKind] = frozenset(ItemKind(kind) for kind in accept)
        if not self.accept:
            raise ValueError(f"Drop target {target_id} must accept at least one item kind")

        self.is_over = False

    @classmethod
    def unassigned_pool(
        cls,
        target_id: str = UNASSIGNED_POOL_ID,
        accept: Iterable[Union[ItemKind, str]] = DEFAULT_ACCEPT,
    ) -> DropTarget:
        return cls(target_id, UNASSIGNED, accept)

    @classmethod
    def route_lane(cls, route_id: str, accept: Iterable[Union[ItemKind, str]] = DEFAULT_ACCEPT) -> DropTarget:
        return cls(f"route-{route_id}", route_id, accept)

    @property
    def is_pool(self) -> bool:
        return self.route_id is UNASSIGNED

    @property
    def highlighted(self) -> bool:
        return self.is_over

    def accepts(self, kind: Union[ItemKind, str]) -> bool:
        return ItemKind(kind) in self.accept

    def hover(self, kind: Union[ItemKind, str]) -> bool:
        """
        Pointer entered with a drag of `kind`. Returns whether it now highlights.
        """
        self.is_over = self.accepts(kind)
        return self.is_over

    def leave(self) -> None:
        self.is_over = False

    def __repr__(self) -> str:
        accepted = ",".join(sorted(kind.value for kind in self.accept))
        return f"DropTarget({self.target_id}, route={self.route_id}, accept={accepted})"
