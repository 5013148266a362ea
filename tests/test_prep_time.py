from datetime import datetime, timedelta, timezone

import pytest

from orderflow.core.exceptions import ErrorKind, InvalidOrderItemError
from orderflow.services.prep_time import (
    OrderItemInput,
    batch_buffer,
    estimate_prep_time,
    estimate_prep_time_from_menu,
    estimated_ready_time,
)


def test_empty_order_takes_no_time() -> None:
    assert estimate_prep_time([]) == 0
    assert estimate_prep_time_from_menu([], {"a": 30}) == 0


def test_single_item() -> None:
    assert estimate_prep_time([OrderItemInput("burger", 1, 15)]) == 15


def test_quantity_adds_capped_batch_buffer() -> None:
    assert estimate_prep_time([OrderItemInput("burger", 4, 15)]) == 20
    assert estimate_prep_time([OrderItemInput("burger", 2, 15)]) == 17
    assert estimate_prep_time([OrderItemInput("burger", 50, 15)]) == 20
    assert [batch_buffer(q) for q in (1, 2, 3, 4, 10)] == [0, 2, 4, 5, 5]


def test_distinct_items_cook_in_parallel() -> None:
    items = [OrderItemInput("fries", 1, 10), OrderItemInput("brisket", 1, 25)]
    assert estimate_prep_time(items) == 25


def test_missing_prep_time_uses_default() -> None:
    assert estimate_prep_time([OrderItemInput("soda")]) == 10
    assert estimate_prep_time([OrderItemInput("soda", 3)], default_minutes=0) == 4


def test_lookup_variant_resolves_menu_prep_times() -> None:
    items = [
        OrderItemInput("wings", 2),
        OrderItemInput("salad", 1),
        OrderItemInput("ghost-item", 1),
    ]
    prep_times = {"wings": 18, "salad": None}

    # wings 18 + 2, salad and the unknown id use the default
    assert estimate_prep_time_from_menu(items, prep_times) == 20
    assert estimate_prep_time_from_menu(items, prep_times, default_minutes=30) == 30


def test_line_override_wins_over_menu() -> None:
    items = [OrderItemInput("wings", 1, prep_time_minutes=5)]
    assert estimate_prep_time_from_menu(items, {"wings": 18}) == 5


@pytest.mark.parametrize(
    "item",
    [
        OrderItemInput("burger", 0),
        OrderItemInput("burger", -2),
        OrderItemInput("burger", 1, prep_time_minutes=-5),
    ],
)
def test_invalid_items_are_rejected(item: OrderItemInput) -> None:
    with pytest.raises(InvalidOrderItemError) as exc_info:
        estimate_prep_time([OrderItemInput("ok", 1), item])
    assert exc_info.value.kind == ErrorKind.INVALID_ORDER_ITEM


def test_item_reference_optional_without_menu_lookup() -> None:
    assert estimate_prep_time([OrderItemInput(prep_time_minutes=15, quantity=1)]) == 15


@pytest.mark.parametrize("menu_item_id", ["", None])
def test_menu_lookup_requires_item_reference(menu_item_id) -> None:
    with pytest.raises(InvalidOrderItemError):
        estimate_prep_time_from_menu([OrderItemInput(menu_item_id, 1)], {"a": 30})


def test_ready_time_adds_minutes_exactly() -> None:
    start = datetime(2026, 10, 19, 18, 30, tzinfo=timezone.utc)
    assert estimated_ready_time(20, start) == start + timedelta(minutes=20)


def test_ready_time_defaults_to_now() -> None:
    before = datetime.now(timezone.utc)
    ready = estimated_ready_time(15)
    after = datetime.now(timezone.utc)

    assert before + timedelta(minutes=15) <= ready <= after + timedelta(minutes=15)
