"""
Unit tests for the kitchen order list and analytics
"""

import pytest

from heypaytm.exceptions import InvalidStatusTransition, InvalidTableNumber, ValidationError
from heypaytm.schemas import Order, OrderLineItem, OrderStatusEnum
from heypaytm.services.analytics import bill_amounts, compute_analytics, round_half_up
from heypaytm.services.order_manager import OrderManager


def line(item, quantity=1, price=100):
    return {"item": item, "quantity": quantity, "price": price}


def order(order_id, total, items=None, status=OrderStatusEnum.PENDING):
    return Order(
        id=order_id,
        table_number=1,
        items=[OrderLineItem(**i) for i in (items or [line("Thali", 1, total)])],
        total=total,
        status=status,
    )


class TestOrderList:
    """Test adding, updating and clearing orders"""

    def test_add_order_computes_total(self, order_manager):
        created = order_manager.add_order(3, [line("Butter Naan", 2, 45), line("Dal Makhani", 1, 280)])

        assert created.total == 370
        assert created.status == OrderStatusEnum.PENDING
        assert created.table_number == 3
        assert order_manager.get_order(created.id) == created

    def test_order_ids_are_unique(self, order_manager):
        ids = {order_manager.add_order(1, [line("Chai")]).id for _ in range(10)}
        assert len(ids) == 10

    def test_empty_order_rejected(self, order_manager):
        with pytest.raises(ValidationError):
            order_manager.add_order(1, [])

    @pytest.mark.parametrize("table_number", [0, -3, 25])
    def test_table_outside_dining_room_rejected(self, order_manager, table_number):
        with pytest.raises(InvalidTableNumber):
            order_manager.add_order(table_number, [line("Chai")])
        assert order_manager.get_orders() == []

    def test_status_update(self, order_manager):
        created = order_manager.add_order(2, [line("Biryani", 1, 350)])
        updated = order_manager.update_order_status(created.id, "preparing")

        assert updated.status == OrderStatusEnum.PREPARING
        assert order_manager.get_orders_by_status("preparing") == [updated]

    def test_unknown_order_ignored(self, order_manager):
        order_manager.add_order(2, [line("Biryani")])
        assert order_manager.update_order_status(1, "ready") is None

    def test_backward_status_rejected(self, order_manager):
        created = order_manager.add_order(2, [line("Biryani")])
        order_manager.update_order_status(created.id, "served")

        with pytest.raises(InvalidStatusTransition):
            order_manager.update_order_status(created.id, "pending")

    def test_clear_served_orders(self, order_manager):
        first = order_manager.add_order(1, [line("Naan")])
        second = order_manager.add_order(2, [line("Lassi")])
        order_manager.update_order_status(first.id, "served")

        assert order_manager.clear_served_orders() == 1
        assert order_manager.get_orders() == [second]

    def test_orders_by_table(self, order_manager):
        order_manager.add_order(1, [line("Naan")])
        order_manager.add_order(2, [line("Lassi")])
        order_manager.add_order(1, [line("Chai")])

        assert [o.items[0].item for o in order_manager.get_orders_by_table(1)] == ["Naan", "Chai"]

    def test_get_orders_returns_copy(self, order_manager):
        order_manager.add_order(1, [line("Naan")])
        order_manager.get_orders().clear()
        assert len(order_manager.get_orders()) == 1


class TestOrderListeners:
    """Test global order list subscribers"""

    def test_listener_gets_full_list_on_each_change(self, order_manager):
        snapshots = []
        order_manager.subscribe(snapshots.append)

        created = order_manager.add_order(1, [line("Naan")])
        order_manager.update_order_status(created.id, "ready")

        assert len(snapshots) == 2
        assert snapshots[1][0].status == OrderStatusEnum.READY

    def test_listener_cannot_mutate_store(self, order_manager):
        order_manager.subscribe(lambda orders: orders.clear())
        order_manager.add_order(1, [line("Naan")])
        assert len(order_manager.get_orders()) == 1

    def test_unsubscribe(self, order_manager):
        snapshots = []
        unsubscribe = order_manager.subscribe(snapshots.append)
        unsubscribe()
        order_manager.add_order(1, [line("Naan")])
        assert snapshots == []

    def test_new_order_forwarded_to_dashboard(self, order_manager, realtime):
        batches = []
        realtime.on_dashboard_update(batches.append)

        created = order_manager.add_order(4, [line("Naan")], customer_phone="9876543210")

        assert batches[0][0]["id"] == created.id
        assert batches[0][0]["customerPhone"] == "9876543210"

    def test_status_change_reaches_customer(self, order_manager, realtime):
        notifications = []
        realtime.on_customer_notification(notifications.append)

        created = order_manager.add_order(4, [line("Naan")])
        order_manager.update_order_status(created.id, "ready")

        assert notifications[0].order_id == created.id
        assert notifications[0].table_number == 4

    def test_works_without_event_bus(self):
        manager = OrderManager()
        created = manager.add_order(1, [line("Naan")])
        assert manager.update_order_status(created.id, "served").status == OrderStatusEnum.SERVED


class TestAnalytics:
    """Test revenue and popularity aggregation"""

    def test_empty_analytics(self):
        analytics = compute_analytics([])

        assert analytics.total_revenue == 0
        assert analytics.total_orders == 0
        assert analytics.avg_order_value == 0
        assert analytics.status_counts == {}
        assert analytics.popular_items == []

    def test_revenue_and_average(self):
        analytics = compute_analytics([order(1, 100), order(2, 200), order(3, 150)])

        assert analytics.total_revenue == 450
        assert analytics.total_orders == 3
        assert analytics.avg_order_value == 150

    def test_average_rounds_half_up(self):
        analytics = compute_analytics([order(1, 100), order(2, 101)])
        assert analytics.avg_order_value == 101

    def test_status_counts(self):
        analytics = compute_analytics([
            order(1, 100),
            order(2, 100, status=OrderStatusEnum.SERVED),
            order(3, 100, status=OrderStatusEnum.SERVED),
        ])
        assert analytics.status_counts == {"pending": 1, "served": 2}

    def test_popular_items_top_five_with_stable_ties(self):
        orders = [
            order(1, 700, items=[line("A", 1), line("B", 3), line("C", 1)]),
            order(2, 700, items=[line("D", 1), line("E", 2), line("F", 1), line("G", 1)]),
        ]
        names = [(p.name, p.count) for p in compute_analytics(orders).popular_items]

        assert names == [("B", 3), ("E", 2), ("A", 1), ("C", 1), ("D", 1)]

    def test_quantities_summed_across_orders(self):
        orders = [
            order(1, 90, items=[line("Naan", 2, 45)]),
            order(2, 45, items=[line("Naan", 1, 45)]),
        ]
        popular = compute_analytics(orders).popular_items
        assert popular[0].name == "Naan"
        assert popular[0].count == 3

    def test_manager_analytics(self, order_manager):
        order_manager.add_order(1, [line("Naan", 2, 50)])
        order_manager.add_order(2, [line("Lassi", 1, 200)])

        analytics = order_manager.get_analytics()
        assert analytics.total_revenue == 300
        assert analytics.avg_order_value == 150


class TestRounding:
    """Test half-up rounding used on bills and averages"""

    @pytest.mark.parametrize("value,expected", [(0.5, 1), (1.5, 2), (2.5, 3), (2.49, 2), (0, 0)])
    def test_round_half_up(self, value, expected):
        assert round_half_up(value) == expected

    def test_bill_amounts(self):
        assert bill_amounts(450, 0.05) == (450, 23, 473)
        assert bill_amounts(80, 0.05) == (80, 4, 84)
