# Overview: Staff dashboard figures and customer profiles derived from order history.

from __future__ import annotations

from dataclasses import dataclass, asdict
from datetime import datetime

from ..time_utils import utcnow, start_of_day, start_of_month, days_ago, to_epoch_ms
from ..validation import normalize_phone
from .catalog_store import CatalogStore
from .order_status import OrderStatus


@dataclass
class DashboardStats:
    daily: float
    weekly: float
    monthly: float
    total_revenue: float
    order_count: int
    open_orders: int
    low_stock_count: int
    total_items: int

    def to_dict(self) -> dict:
        return asdict(self)


def dashboard_stats(
    *,
    low_stock_threshold: int,
    now: datetime | None = None,
    store: CatalogStore | None = None,
) -> DashboardStats:
    """
    Revenue windows count non-cancelled orders only: today (since midnight
    UTC), the last 7 days, and this calendar month.
    """
    store = store or CatalogStore()
    now = now or utcnow()
    day_start, week_start, month_start = start_of_day(now), days_ago(now, 7), start_of_month(now)

    daily = weekly = monthly = total = 0.0
    order_count = open_orders = 0
    for order in store.get_orders():
        if order.status == OrderStatus.CANCELLED.value:
            continue
        order_count += 1
        if order.status != OrderStatus.PICKED_UP.value:
            open_orders += 1
        total += order.total
        if order.created_at >= day_start:
            daily += order.total
        if order.created_at >= week_start:
            weekly += order.total
        if order.created_at >= month_start:
            monthly += order.total

    products = store.get_products()
    return DashboardStats(
        daily=daily,
        weekly=weekly,
        monthly=monthly,
        total_revenue=total,
        order_count=order_count,
        open_orders=open_orders,
        low_stock_count=sum(1 for p in products if p.stock < low_stock_threshold),
        total_items=sum(p.stock for p in products),
    )


@dataclass
class CustomerProfile:
    id: str
    name: str
    phone: str
    total_spent: float = 0.0
    order_count: int = 0
    last_order_at: datetime | None = None
    average_order_value: float = 0.0

    def to_dict(self) -> dict:
        data = asdict(self)
        data["last_order_date"] = to_epoch_ms(self.last_order_at)
        del data["last_order_at"]
        return data


def customer_profiles(search: str | None = None, store: CatalogStore | None = None) -> list[CustomerProfile]:
    """
    One profile per normalized phone, highest spender first.

    Name and phone come from the customer's most recent order. Every order,
    cancelled ones included, counts toward spend.
    """
    store = store or CatalogStore()
    profiles: dict[str, CustomerProfile] = {}
    for order in store.get_orders():
        key = order.customer_phone_digits or normalize_phone(order.customer_phone)
        profile = profiles.get(key)
        if profile is None:
            profile = profiles[key] = CustomerProfile(id=key, name=order.customer_name, phone=order.customer_phone)
        profile.total_spent += order.total
        profile.order_count += 1
        if profile.last_order_at is None or order.created_at > profile.last_order_at:
            profile.last_order_at = order.created_at
            profile.name = order.customer_name
            profile.phone = order.customer_phone

    result = []
    for profile in profiles.values():
        profile.average_order_value = profile.total_spent / profile.order_count
        result.append(profile)
    result.sort(key=lambda p: p.total_spent, reverse=True)

    if search:
        term = search.strip().lower()
        result = [p for p in result if term in p.name.lower() or term in p.phone]
    return result
