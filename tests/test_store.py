from decimal import Decimal

import pytest

from restaurant_api.core.errors import ConstraintViolationError, NotFoundError
from restaurant_api.models import OrderStatus
from restaurant_api.services.store import CustomerOrderCount


async def _order(gateway, menu, customer=None, lines=None, status=None):
    customer = customer or menu["customer"]
    order = await gateway.create_order(
        customer_id=customer.id,
        restaurant_id=menu["restaurant"].id,
        total_price=Decimal("5.00"),
        lines=lines or [(menu["pizza"].id, 1)],
    )
    if status is not None:
        order = await gateway.update_order_status(order.id, status)
    return order


class TestCustomers:
    async def test_create_assigns_unique_ids(self, gateway):
        first = await gateway.create_customer({"name": "Ann"})
        second = await gateway.create_customer({"name": "Bob"})

        assert first.id is not None
        assert second.id is not None
        assert first.id != second.id

    async def test_duplicate_email_is_a_constraint_violation(self, gateway):
        await gateway.create_customer({"name": "Ann", "email": "ann@example.com"})

        with pytest.raises(ConstraintViolationError):
            await gateway.create_customer({"name": "Other Ann", "email": "ann@example.com"})

    async def test_get_missing_customer(self, gateway):
        with pytest.raises(NotFoundError, match="Customer not found"):
            await gateway.get_customer(404)

    async def test_top_customers_sorted_and_limited(self, gateway, menu):
        customers = [menu["customer"]]
        for name in ["Bob", "Cid", "Dee", "Eve", "Fay"]:
            customers.append(await gateway.create_customer({"name": name}))

        # Fay: 3 orders, Cid: 2, Bob and Eve: 1 each
        for customer, count in [(customers[5], 3), (customers[2], 2), (customers[1], 1), (customers[4], 1)]:
            for _ in range(count):
                await _order(gateway, menu, customer=customer)

        top = await gateway.top_customers_by_order_count()

        assert len(top) == 5
        assert top[0] == CustomerOrderCount(customers[5].id, "Fay", 3)
        assert top[1] == CustomerOrderCount(customers[2].id, "Cid", 2)
        # Ties resolve by id
        assert [row.id for row in top[2:4]] == [customers[1].id, customers[4].id]
        counts = [row.order_count for row in top]
        assert counts == sorted(counts, reverse=True)

    async def test_top_customers_custom_limit(self, gateway, menu):
        await gateway.create_customer({"name": "Bob"})

        assert len(await gateway.top_customers_by_order_count(limit=1)) == 1

    async def test_list_orders_for_customer_nests_items(self, gateway, menu):
        await _order(gateway, menu, lines=[(menu["pizza"].id, 1), (menu["salad"].id, 2)])
        await _order(gateway, menu)

        orders = await gateway.list_orders_for_customer(menu["customer"].id)

        assert len(orders) == 2
        assert [item.quantity for item in orders[0].order_items] == [1, 2]

    async def test_list_orders_for_unknown_customer_is_empty(self, gateway):
        assert list(await gateway.list_orders_for_customer(777)) == []


class TestMenu:
    async def test_menu_lists_available_items_only(self, gateway, menu):
        items = await gateway.get_menu_for_restaurant(menu["restaurant"].id)

        assert [item.name for item in items] == ["Pizza Margherita", "Caesar Salad"]

    async def test_menu_can_include_unavailable_items(self, gateway, menu):
        items = await gateway.get_menu_for_restaurant(menu["restaurant"].id, available_only=False)

        assert len(items) == 3

    async def test_menu_item_for_unknown_restaurant(self, gateway):
        with pytest.raises(ConstraintViolationError):
            await gateway.create_menu_item(55, {"name": "Ghost", "price": Decimal("1.00")})

    async def test_update_changes_only_supplied_fields(self, gateway, menu):
        updated = await gateway.update_menu_item(menu["pizza"].id, {"price": Decimal("6.50")})

        assert updated.price == Decimal("6.50")
        assert updated.name == "Pizza Margherita"
        assert updated.is_available is True
        assert updated.restaurant_id == menu["restaurant"].id

    async def test_update_with_no_fields_is_a_no_op(self, gateway, menu):
        updated = await gateway.update_menu_item(menu["salad"].id, {})

        assert updated.price == Decimal("3.00")

    async def test_update_missing_menu_item(self, gateway):
        with pytest.raises(NotFoundError, match="Menu item not found"):
            await gateway.update_menu_item(31337, {"price": Decimal("1.00")})


class TestOrders:
    async def test_get_missing_order(self, gateway):
        with pytest.raises(NotFoundError):
            await gateway.get_order(1)

    async def test_update_status(self, gateway, menu):
        order = await _order(gateway, menu)

        updated = await gateway.update_order_status(order.id, OrderStatus.COMPLETED)

        assert updated.status == OrderStatus.COMPLETED
        assert len(updated.order_items) == 1

    async def test_update_status_of_missing_order(self, gateway):
        with pytest.raises(NotFoundError, match="Order not found"):
            await gateway.update_order_status(9, OrderStatus.CANCELLED)


class TestAggregates:
    async def test_revenue_is_zero_without_completed_orders(self, gateway, menu):
        await _order(gateway, menu)

        revenue = await gateway.sum_completed_revenue(menu["restaurant"].id)

        assert revenue == Decimal("0")

    async def test_revenue_sums_completed_orders_only(self, gateway, menu):
        await _order(gateway, menu, status=OrderStatus.COMPLETED)
        await _order(gateway, menu, status=OrderStatus.COMPLETED)
        await _order(gateway, menu, status=OrderStatus.CANCELLED)

        revenue = await gateway.sum_completed_revenue(menu["restaurant"].id)

        assert revenue == Decimal("10.00")

    async def test_top_selling_item_without_orders(self, gateway, menu):
        assert await gateway.top_selling_menu_item() is None

    async def test_top_selling_item_by_quantity(self, gateway, menu):
        await _order(gateway, menu, lines=[(menu["pizza"].id, 2), (menu["salad"].id, 1)])
        await _order(gateway, menu, lines=[(menu["salad"].id, 3)])

        top = await gateway.top_selling_menu_item()

        assert top.id == menu["salad"].id
