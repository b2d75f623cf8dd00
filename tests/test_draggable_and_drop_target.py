import pytest

from assignment.items import DriverItem, ItemKind, OrderItem, with_route
from dispatch.draggable import ASSIGNED_BADGE, DraggableItem, card_for, format_amount
from dispatch.drop_target import DropTarget


def test_format_amount_uses_dot_grouping():
    assert format_amount(90000) == "$90.000"
    assert format_amount(1250000.4) == "$1.250.000"
    assert format_amount(0) == "$0"


def test_order_card_content(orders):
    card = card_for(OrderItem(orders[0]), is_assigned=True)

    assert card.title == "Ana Pérez"
    assert card.subtitle == "Av. Insurgentes Sur 120"
    assert card.detail == "$90.000"
    assert card.badges == (ASSIGNED_BADGE,)

    assert card_for(OrderItem(orders[2]), is_assigned=False).badges == ()


def test_driver_card_content(drivers):
    assigned = card_for(DriverItem(drivers[0]), is_assigned=True)
    assert assigned.title == "Carlos Ruiz"
    assert assigned.subtitle == "moto"
    assert assigned.detail == "5512345678"
    assert assigned.badges == ("Disponible", ASSIGNED_BADGE)

    busy = card_for(DriverItem(drivers[1]), is_assigned=False)
    assert busy.detail == "Sin teléfono"
    assert busy.badges == ("Ocupado",)


def test_draggable_identity_and_payload(orders):
    card = DraggableItem(OrderItem(orders[0]))

    assert card.kind == ItemKind.ORDER
    assert card.draggable_id == "order-1"
    assert card.payload == {"kind": "order", "entity": orders[0]}


def test_opacity_reflects_drag_and_assignment(orders):
    card = DraggableItem(OrderItem(orders[0]), is_assigned=True)
    assert card.opacity == 0.6

    card.start_drag()
    assert card.opacity == 0.5

    card.end_drag()
    assert card.opacity == 0.6

    assert DraggableItem(OrderItem(orders[2])).opacity == 1.0


def test_move_to_only_tracks_while_dragging(orders):
    card = DraggableItem(OrderItem(orders[0]))
    card.move_to((10.0, 4.0))
    assert card.offset == (0.0, 0.0)

    card.start_drag()
    card.move_to((10.0, 4.0))
    assert card.offset == (10.0, 4.0)


def test_refresh_is_deferred_until_drag_ends(orders):
    item = OrderItem(orders[2])
    card = DraggableItem(item)
    card.start_drag()

    card.refresh(with_route(item, "B"), is_assigned=True)

    # card content does not change under the pointer
    assert card.card.badges == ()
    assert card.item.value.route_id is None

    card.end_drag()
    assert card.card.badges == (ASSIGNED_BADGE,)
    assert card.item.value.route_id == "B"
    assert card.is_assigned


def test_refresh_with_other_item_raises(orders):
    card = DraggableItem(OrderItem(orders[0]))
    with pytest.raises(ValueError):
        card.refresh(OrderItem(orders[1]), is_assigned=False)


def test_drop_target_accepts_and_highlights_only_compatible_kinds():
    pool = DropTarget.unassigned_pool("unassigned-drivers", accept={"driver"})

    assert pool.is_pool
    assert pool.accepts(ItemKind.DRIVER)
    assert not pool.accepts(ItemKind.ORDER)

    assert not pool.hover(ItemKind.ORDER)
    assert not pool.highlighted

    assert pool.hover(ItemKind.DRIVER)
    assert pool.highlighted

    pool.leave()
    assert not pool.highlighted


def test_route_lane_defaults():
    lane = DropTarget.route_lane("B")

    assert lane.target_id == "route-B"
    assert lane.route_id == "B"
    assert not lane.is_pool
    assert lane.accepts("order") and lane.accepts("driver")


def test_drop_target_must_accept_something():
    with pytest.raises(ValueError):
        DropTarget("nowhere", accept=())
