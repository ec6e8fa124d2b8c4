from datetime import datetime, timedelta, timezone

from backend.app.db.models.core_types import FulfillmentState, OrderItemStatus
from backend.services.fulfillment import OrderItemSnapshot, summarize

T0 = datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc)


def oi(id, ordered, received=0, status=OrderItemStatus.pending, order_id=None, created_at=None):
    return OrderItemSnapshot(
        id=id,
        order_id=order_id if order_id is not None else id,
        qty_ordered=ordered,
        qty_received=received,
        status=status,
        created_at=created_at,
    )


def test_no_order_items_means_no_orders():
    summary = summarize(10, [])

    assert summary.state == FulfillmentState.no_orders
    assert summary.order_count == 0
    assert summary.total_ordered == 0
    assert summary.available == 10
    assert summary.active_items == ()
    assert summary.latest_item is None


def test_cancelled_only_degrades_to_no_orders():
    summary = summarize(10, [oi(1, 10, status=OrderItemStatus.cancelled)])

    assert summary.state == FulfillmentState.no_orders
    assert summary.available == 10


def test_pending_and_sent_items_are_ordered():
    summary = summarize(10, [oi(1, 4), oi(2, 3, status=OrderItemStatus.sent)])

    assert summary.state == FulfillmentState.ordered
    assert summary.order_count == 2
    assert summary.total_ordered == 7
    assert summary.available == 3
    assert len(summary.active_items) == 2


def test_some_quantity_received_is_partial():
    summary = summarize(
        10,
        [oi(1, 6, received=6, status=OrderItemStatus.received), oi(2, 4, received=1, status=OrderItemStatus.partially_received)],
    )

    assert summary.state == FulfillmentState.partial
    assert summary.total_received == 7
    # la ligne RECEIVED n'est plus active
    assert [a.id for a in summary.active_items] == [2]


def test_everything_received_and_covering_requirement_is_fulfilled():
    summary = summarize(
        10,
        [oi(1, 6, received=6, status=OrderItemStatus.received), oi(2, 4, received=4, status=OrderItemStatus.sent)],
    )

    assert summary.state == FulfillmentState.fulfilled


def test_all_terminal_lines_are_delivered_even_if_short():
    summary = summarize(
        10,
        [oi(1, 4, received=4, status=OrderItemStatus.delivered), oi(2, 2, received=2, status=OrderItemStatus.received)],
    )

    assert summary.state == FulfillmentState.delivered
    assert summary.available == 4


def test_delivered_takes_precedence_over_fulfilled():
    summary = summarize(5, [oi(1, 5, received=5, status=OrderItemStatus.delivered)])

    assert summary.state == FulfillmentState.delivered


def test_cancelled_lines_are_ignored_for_state_and_totals():
    summary = summarize(
        10,
        [
            oi(1, 10, status=OrderItemStatus.cancelled),
            oi(2, 3, received=3, status=OrderItemStatus.delivered),
        ],
    )

    assert summary.state == FulfillmentState.delivered
    assert summary.total_ordered == 3
    assert summary.available == 7
    assert summary.order_count == 1


def test_over_commitment_is_reported_not_clamped():
    summary = summarize(5, [oi(1, 4), oi(2, 3)])

    assert summary.available == -2
    assert summary.over_committed is True


def test_latest_item_uses_creation_timestamp():
    items = [
        oi(1, 1, created_at=T0 + timedelta(hours=2)),
        oi(2, 1, created_at=T0),
        oi(3, 1, created_at=T0 + timedelta(hours=1)),
    ]

    assert summarize(10, items).latest_item.id == 1


def test_latest_item_falls_back_to_input_order():
    items = [oi(1, 1), oi(2, 1), oi(3, 1)]

    assert summarize(10, items).latest_item.id == 3


def test_naive_and_aware_timestamps_can_be_compared():
    items = [
        oi(1, 1, created_at=datetime(2026, 3, 1, 12, 0)),
        oi(2, 1, created_at=T0),
    ]

    assert summarize(10, items).latest_item.id == 1


def test_malformed_items_do_not_raise():
    items = [
        OrderItemSnapshot(id=None, order_id=None, qty_ordered=None, qty_received=None, status=None),
        OrderItemSnapshot(id=2, order_id=9, qty_ordered=2, qty_received=None, status="???"),
        OrderItemSnapshot(id=3, order_id=9, qty_ordered=1, qty_received=0, status="SENT"),
    ]

    summary = summarize(4, items)

    assert summary.state == FulfillmentState.ordered
    assert summary.total_ordered == 3
    assert summary.available == 1


def test_none_input_is_treated_as_empty():
    assert summarize(3, None).state == FulfillmentState.no_orders


def test_summarize_is_pure_and_idempotent():
    items = [oi(1, 4, received=2, status=OrderItemStatus.partially_received), oi(2, 1)]

    first = summarize(10, items)
    second = summarize(10, items)

    assert first == second
    assert items[0].qty_ordered == 4
