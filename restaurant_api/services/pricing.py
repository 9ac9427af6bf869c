"""
Order Pricing Flow

Resolves each requested line's current menu price, totals the order and
persists it with its items in a single unit of work.

Lines whose menu item does not exist are dropped: they contribute nothing
to the total and are not stored. Menu item availability and the item's
owning restaurant are not checked.
"""

import logging
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Mapping, Sequence

from restaurant_api.models import MenuItem, Order
from restaurant_api.services.store import StoreGateway

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")


@dataclass
class OrderLine:
    """One requested (menu item, quantity) pair."""
    menu_item_id: int
    quantity: int


@dataclass
class PricedOrder:
    """
    Result of pricing a list of order lines.

    Attributes:
        total: Sum of price x quantity over surviving lines, in cents precision
        lines: Surviving lines, in request order
        dropped_menu_item_ids: Ids that matched no menu item
    """
    total: Decimal
    lines: list[OrderLine] = field(default_factory=list)
    dropped_menu_item_ids: list[int] = field(default_factory=list)


def price_order_lines(
    lines: Sequence[OrderLine],
    menu_items: Mapping[int, MenuItem],
) -> PricedOrder:
    """Price `lines` against the menu items found in the store."""
    priced = PricedOrder(total=Decimal("0"))

    for line in lines:
        menu_item = menu_items.get(line.menu_item_id)
        if menu_item is None:
            priced.dropped_menu_item_ids.append(line.menu_item_id)
            continue
        priced.total += Decimal(str(menu_item.price)) * line.quantity
        priced.lines.append(line)

    priced.total = priced.total.quantize(CENTS, rounding=ROUND_HALF_UP)
    return priced


async def place_order(
    gateway: StoreGateway,
    customer_id: int,
    restaurant_id: int,
    lines: Sequence[OrderLine],
) -> Order:
    """
    Price and store an order.

    Menu items are read with a shared row lock inside the same transaction
    that inserts the order, so the stored total matches the prices at
    commit time.

    Raises:
        ConstraintViolationError: customer or restaurant does not exist
    """
    menu_items = await gateway.get_menu_items(
        [line.menu_item_id for line in lines],
        lock=True,
    )
    priced = price_order_lines(lines, menu_items)

    if priced.dropped_menu_item_ids:
        logger.warning(
            f"Dropping unknown menu items {priced.dropped_menu_item_ids} "
            f"from order for customer #{customer_id}"
        )

    return await gateway.create_order(
        customer_id=customer_id,
        restaurant_id=restaurant_id,
        total_price=priced.total,
        lines=[(line.menu_item_id, line.quantity) for line in priced.lines],
    )
