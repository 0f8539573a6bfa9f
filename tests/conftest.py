from datetime import datetime, timedelta, timezone

import pytest

NOW = datetime(2025, 7, 24, 12, 0, tzinfo=timezone.utc)


def iso(dt):
    return dt.isoformat().replace("+00:00", "Z")


def days_ago(days, hours=0):
    return iso(NOW - timedelta(days=days, hours=hours))


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def scenario_products():
    return [
        {"id": "A", "name": "Theme A", "price": 10, "stock": 5, "ordersReceived": 20},
        {"id": "B", "name": "Plugin B", "price": 20, "stock": 50, "ordersReceived": 5},
        {"id": "C", "name": "Booster C", "price": 5, "stock": 0, "ordersReceived": 0},
    ]


@pytest.fixture
def scenario_orders():
    return [
        {"id": 1, "totalAmount": 150, "paymentStatus": "Paid", "orderStatus": "Delivered", "createdAt": days_ago(2)},
        {"id": 2, "totalAmount": 50, "paymentStatus": "Unpaid", "orderStatus": "Pending", "createdAt": days_ago(3)},
    ]


@pytest.fixture
def healthy_products():
    """Ten well-stocked products with evenly spread revenue (top-5 share 50%)."""
    return [
        {"id": i, "name": f"Product {i}", "price": 10, "stock": 100, "ordersReceived": 10}
        for i in range(1, 11)
    ]
