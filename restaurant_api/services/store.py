"""
Persistence Gateway

Translates typed calls into queries against the store and returns ORM rows.
One `StoreGateway` wraps one request-scoped `AsyncSession`; the engine
behind it is the process-wide handle from `restaurant_api.database`.

Store failures are translated into the domain error kinds:
    - IntegrityError            -> ConstraintViolationError
    - OperationalError,
      InterfaceError            -> StoreUnavailableError

Usage:
    from restaurant_api.services.store import StoreGateway

    gateway = StoreGateway(session)
    customer = await gateway.create_customer({"name": "Jane Doe"})
"""

import logging
from contextlib import asynccontextmanager
from decimal import Decimal
from typing import Any, AsyncIterator, NamedTuple, Optional, Sequence

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from restaurant_api.core.errors import (
    ConstraintViolationError,
    NotFoundError,
    StoreUnavailableError,
)
from restaurant_api.models import (
    Customer,
    MenuItem,
    Order,
    OrderItem,
    OrderStatus,
    Restaurant,
)

logger = logging.getLogger(__name__)


class CustomerOrderCount(NamedTuple):
    id: int
    name: str
    order_count: int


class StoreGateway:
    """Create/read/update/aggregate operations over the five record types."""

    def __init__(self, session: AsyncSession):
        self.session = session

    @asynccontextmanager
    async def _translate_errors(self) -> AsyncIterator[None]:
        try:
            yield
        except IntegrityError as e:
            await self.session.rollback()
            logger.warning(f"Constraint violation: {e.orig}")
            raise ConstraintViolationError() from e
        except (OperationalError, InterfaceError) as e:
            logger.error(f"Store unavailable: {e}")
            raise StoreUnavailableError() from e

    async def _insert(self, row: Any) -> Any:
        async with self._translate_errors():
            self.session.add(row)
            await self.session.commit()
            await self.session.refresh(row)
        logger.info(f"Created {row!r}")
        return row

    # =========================================================================
    # HEALTH
    # =========================================================================

    async def ping(self) -> None:
        async with self._translate_errors():
            await self.session.execute(select(1))

    # =========================================================================
    # CUSTOMERS
    # =========================================================================

    async def create_customer(self, fields: dict[str, Any]) -> Customer:
        return await self._insert(Customer(**fields))

    async def get_customer(self, customer_id: int) -> Customer:
        async with self._translate_errors():
            customer = await self.session.get(Customer, customer_id)
        if customer is None:
            raise NotFoundError("Customer not found")
        return customer

    async def top_customers_by_order_count(self, limit: int = 5) -> list[CustomerOrderCount]:
        """
        Customers ranked by number of orders, highest first.

        Ties are broken by customer id ascending. Customers without orders
        rank with a count of zero.
        """
        order_count = func.count(Order.id).label("order_count")
        query = (
            select(Customer.id, Customer.name, order_count)
            .outerjoin(Order, Order.customer_id == Customer.id)
            .group_by(Customer.id, Customer.name)
            .order_by(order_count.desc(), Customer.id.asc())
            .limit(limit)
        )
        async with self._translate_errors():
            result = await self.session.execute(query)
        return [CustomerOrderCount(*row) for row in result.all()]

    async def list_orders_for_customer(self, customer_id: int) -> Sequence[Order]:
        query = (
            select(Order)
            .where(Order.customer_id == customer_id)
            .options(selectinload(Order.order_items))
            .order_by(Order.id)
        )
        async with self._translate_errors():
            result = await self.session.execute(query)
        return result.scalars().all()

    # =========================================================================
    # RESTAURANTS & MENU
    # =========================================================================

    async def create_restaurant(self, fields: dict[str, Any]) -> Restaurant:
        return await self._insert(Restaurant(**fields))

    async def get_menu_for_restaurant(
        self,
        restaurant_id: int,
        available_only: bool = True,
    ) -> Sequence[MenuItem]:
        query = select(MenuItem).where(MenuItem.restaurant_id == restaurant_id)
        if available_only:
            query = query.where(MenuItem.is_available.is_(True))
        async with self._translate_errors():
            result = await self.session.execute(query.order_by(MenuItem.id))
        return result.scalars().all()

    async def create_menu_item(self, restaurant_id: int, fields: dict[str, Any]) -> MenuItem:
        return await self._insert(MenuItem(**fields, restaurant_id=restaurant_id))

    async def update_menu_item(self, menu_item_id: int, fields: dict[str, Any]) -> MenuItem:
        """Apply only the supplied fields; everything else is left as stored."""
        async with self._translate_errors():
            item = await self.session.get(MenuItem, menu_item_id)
            if item is None:
                raise NotFoundError("Menu item not found")
            if not fields:
                return item
            for name, value in fields.items():
                setattr(item, name, value)
            await self.session.commit()
            await self.session.refresh(item)
        logger.info(f"Updated menu item #{item.id}: {sorted(fields)}")
        return item

    async def get_menu_items(self, menu_item_ids: Sequence[int], lock: bool = False) -> dict[int, MenuItem]:
        """
        Fetch menu items by id in one query, keyed by id. Missing ids are
        simply absent from the result.

        With `lock=True` the rows are read with a shared lock (FOR SHARE)
        on backends that support it, so prices cannot change until the
        surrounding transaction ends.
        """
        if not menu_item_ids:
            return {}
        query = select(MenuItem).where(MenuItem.id.in_(set(menu_item_ids)))
        if lock:
            query = query.with_for_update(read=True)
        async with self._translate_errors():
            result = await self.session.execute(query)
        return {item.id: item for item in result.scalars().all()}

    # =========================================================================
    # ORDERS
    # =========================================================================

    async def get_order(self, order_id: int, with_body: bool = True) -> Order:
        query = (
            select(Order)
            .where(Order.id == order_id)
            .options(selectinload(Order.order_items))
            .execution_options(populate_existing=True)
        )
        async with self._translate_errors():
            result = await self.session.execute(query)
            order = result.scalar_one_or_none()
        if order is None:
            raise NotFoundError("Order not found", with_body=with_body)
        return order

    async def create_order(
        self,
        customer_id: int,
        restaurant_id: int,
        total_price: Decimal,
        lines: Sequence[tuple[int, int]],
    ) -> Order:
        """
        Insert an order and its (menu_item_id, quantity) lines in one commit.

        Returns the stored order with its items loaded.
        """
        order = Order(
            customer_id=customer_id,
            restaurant_id=restaurant_id,
            total_price=total_price,
            status=OrderStatus.PENDING,
            order_items=[
                OrderItem(menu_item_id=menu_item_id, quantity=quantity)
                for menu_item_id, quantity in lines
            ],
        )
        async with self._translate_errors():
            self.session.add(order)
            await self.session.commit()
        logger.info(f"Order #{order.id} created with {len(lines)} item(s), total {total_price}")
        return await self.get_order(order.id)

    async def update_order_status(self, order_id: int, status: OrderStatus) -> Order:
        async with self._translate_errors():
            order = await self.session.get(Order, order_id)
            if order is None:
                raise NotFoundError("Order not found")
            order.status = status
            await self.session.commit()
        logger.info(f"Order #{order_id} -> {status.value}")
        return await self.get_order(order_id)

    # =========================================================================
    # AGGREGATES
    # =========================================================================

    async def sum_completed_revenue(self, restaurant_id: int) -> Decimal:
        """Sum of completed order totals for a restaurant; 0 when none."""
        query = select(func.coalesce(func.sum(Order.total_price), 0)).where(
            Order.restaurant_id == restaurant_id,
            Order.status == OrderStatus.COMPLETED,
        )
        async with self._translate_errors():
            result = await self.session.execute(query)
        return Decimal(str(result.scalar() or 0))

    async def top_selling_menu_item(self) -> Optional[MenuItem]:
        """
        Menu item with the highest total ordered quantity across all
        orders, lowest id on ties. None when nothing has been ordered.
        """
        total_quantity = func.sum(OrderItem.quantity).label("total_quantity")
        query = (
            select(OrderItem.menu_item_id, total_quantity)
            .group_by(OrderItem.menu_item_id)
            .order_by(total_quantity.desc(), OrderItem.menu_item_id.asc())
            .limit(1)
        )
        async with self._translate_errors():
            result = await self.session.execute(query)
            top = result.first()
            if top is None:
                return None
            return await self.session.get(MenuItem, top.menu_item_id)
