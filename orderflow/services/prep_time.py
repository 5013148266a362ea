"""
Prep Time Estimator

Turns an order's line items into a promised preparation duration and a
ready time.

Rules:
    - Each distinct item takes its own prep time (or the default)
    - Quantity > 1 adds 2 minutes per extra unit, capped at 5 minutes
    - Distinct items cook in parallel: the order takes the MAXIMUM, not the sum
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Iterable, Mapping, Optional, Sequence

from orderflow.core.exceptions import InvalidOrderItemError
from orderflow.services.clock import utc_now

DEFAULT_PREP_TIME_MINUTES = 10
BATCH_MINUTES_PER_EXTRA_UNIT = 2
MAX_BATCH_BUFFER_MINUTES = 5


@dataclass(frozen=True)
class OrderItemInput:
    """
    One order line as seen by the estimator.

    Attributes:
        menu_item_id: Menu item reference (only needed to look up menu prep times)
        quantity: Units ordered (>= 1)
        prep_time_minutes: Per-line override of the menu item's prep time
    """
    menu_item_id: Optional[str] = None
    quantity: int = 1
    prep_time_minutes: Optional[int] = None


def validate_order_items(
    items: Iterable[OrderItemInput],
    require_reference: bool = True,
) -> None:
    """
    Reject lines the estimator cannot price in minutes.

    Args:
        items: Order lines
        require_reference: Reject lines without a ``menu_item_id``

    Raises:
        InvalidOrderItemError: on a missing item reference, a quantity
            below 1 or a negative prep time override
    """
    for index, item in enumerate(items):
        if require_reference and not item.menu_item_id:
            raise InvalidOrderItemError(
                "Order item is missing its menu item reference",
                {"index": index},
            )
        if isinstance(item.quantity, bool) or not isinstance(item.quantity, int) or item.quantity < 1:
            raise InvalidOrderItemError(
                f"Invalid quantity {item.quantity!r} for menu item {item.menu_item_id}",
                {"index": index, "menu_item_id": item.menu_item_id},
            )
        if item.prep_time_minutes is not None and item.prep_time_minutes < 0:
            raise InvalidOrderItemError(
                f"Negative prep time for menu item {item.menu_item_id}",
                {"index": index, "menu_item_id": item.menu_item_id},
            )


def batch_buffer(quantity: int) -> int:
    """Extra minutes for cooking ``quantity`` units of the same item."""
    return min((quantity - 1) * BATCH_MINUTES_PER_EXTRA_UNIT, MAX_BATCH_BUFFER_MINUTES)


def _adjusted(base_minutes: Optional[int], quantity: int, default_minutes: int) -> int:
    base = base_minutes if base_minutes is not None else default_minutes
    return base + batch_buffer(quantity)


def estimate_prep_time(
    items: Sequence[OrderItemInput],
    default_minutes: int = DEFAULT_PREP_TIME_MINUTES,
) -> int:
    """
    Estimated prep minutes for an order.

    Example:
        >>> estimate_prep_time([OrderItemInput("a", 1, 10), OrderItemInput("b", 1, 25)])
        25
    """
    if not items:
        return 0
    validate_order_items(items, require_reference=False)

    return max(
        _adjusted(item.prep_time_minutes, item.quantity, default_minutes)
        for item in items
    )


def estimate_prep_time_from_menu(
    items: Sequence[OrderItemInput],
    prep_times: Mapping[str, Optional[int]],
    default_minutes: int = DEFAULT_PREP_TIME_MINUTES,
) -> int:
    """
    Estimate using the menu's prep times.

    ``prep_times`` maps menu item id to minutes (or None). Ids missing from
    the mapping use ``default_minutes``; a per-line override wins over both.
    """
    if not items:
        return 0
    validate_order_items(items)

    return max(
        _adjusted(
            item.prep_time_minutes
            if item.prep_time_minutes is not None
            else prep_times.get(item.menu_item_id),
            item.quantity,
            default_minutes,
        )
        for item in items
    )


def estimated_ready_time(minutes: int, start_time: Optional[datetime] = None) -> datetime:
    """``start_time`` (default: now, UTC) plus ``minutes``."""
    if start_time is None:
        start_time = utc_now()
    return start_time + timedelta(minutes=minutes)
