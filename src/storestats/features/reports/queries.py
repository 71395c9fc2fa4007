"""
Report aggregation queries.

Each method reads the order store for one date range, groups and sorts the
rows in Python and returns typed report records. Only orders whose status is
listed in REPORTABLE_ORDER_STATUSES contribute to sales figures; refunds are
selected by their own date and reported as absolute amounts.
"""

import datetime
from collections import defaultdict
from typing import Callable, Dict, Iterable, List, Tuple

from tortoise.queryset import QuerySet

from ...core.config import REPORTABLE_ORDER_STATUSES
from ..orders.models import Order, OrderItem, CouponLine, Refund
from .dates import DateRange
from .schemas import (
    SalesStats, DateRangeInfo, ProductSales, RevenuePoint, CustomerSpend,
    SalesDay, RefundDay, RefundsSummary, CouponUsage, TrendInterval,
)


def _money(value) -> float:
    return round(float(value or 0), 2)


def _day_bucket(day: datetime.date) -> Tuple[datetime.date, str]:
    return day, day.isoformat()


def _week_bucket(day: datetime.date) -> Tuple[datetime.date, str]:
    iso_year, iso_week, _ = day.isocalendar()
    return day - datetime.timedelta(days=day.weekday()), f"{iso_year}-W{iso_week:02d}"


def _month_bucket(day: datetime.date) -> Tuple[datetime.date, str]:
    return day.replace(day=1), day.strftime("%Y-%m")


TREND_BUCKETS: Dict[str, Callable[[datetime.date], Tuple[datetime.date, str]]] = {
    "day": _day_bucket,
    "week": _week_bucket,
    "month": _month_bucket,
}


class OrderStoreQueries:
    """Aggregations over the Tortoise order store."""

    def __init__(self, statuses: Iterable[str] = REPORTABLE_ORDER_STATUSES):
        self.statuses = tuple(statuses)

    def _orders(self, date_range: DateRange) -> QuerySet[Order]:
        return Order.filter(
            status__in=self.statuses,
            date_created__gte=date_range.start_of_day,
            date_created__lt=date_range.end_exclusive,
        )

    def _order_filter(self, date_range: DateRange) -> dict:
        # Same selection as _orders(), expressed through a related model's order FK
        return {
            "order__status__in": self.statuses,
            "order__date_created__gte": date_range.start_of_day,
            "order__date_created__lt": date_range.end_exclusive,
        }

    async def stats(self, date_range: DateRange) -> SalesStats:
        totals = await self._orders(date_range).values_list("total", flat=True)
        total_sales = sum(float(t or 0) for t in totals)
        total_orders = len(totals)
        average = total_sales / total_orders if total_orders else 0.0

        return SalesStats(
            total_sales=_money(total_sales),
            total_orders=total_orders,
            average_order_value=_money(average),
            date_range=DateRangeInfo(**date_range.as_params()),
        )

    async def top_products(self, date_range: DateRange, limit: int) -> List[ProductSales]:
        rows = await OrderItem.filter(**self._order_filter(date_range)).values("name", "quantity", "line_total")

        grouped: Dict[str, Dict[str, float]] = defaultdict(lambda: {"quantity": 0, "total": 0.0})
        for row in rows:
            grouped[row["name"]]["quantity"] += int(row["quantity"] or 0)
            grouped[row["name"]]["total"] += float(row["line_total"] or 0)

        products = [
            ProductSales(name=name, quantity=int(data["quantity"]), total=_money(data["total"]))
            for name, data in grouped.items()
        ]
        products.sort(key=lambda p: (-p.total, p.name))
        return products[:limit]

    async def revenue_trend(self, date_range: DateRange, interval: TrendInterval = "day") -> List[RevenuePoint]:
        bucket_for = TREND_BUCKETS[interval]
        rows = await self._orders(date_range).values("date_created", "total")

        buckets: Dict[datetime.date, Tuple[str, float]] = {}
        for row in rows:
            start, label = bucket_for(row["date_created"].date())
            _, running = buckets.get(start, (label, 0.0))
            buckets[start] = (label, running + float(row["total"] or 0))

        return [
            RevenuePoint(period=label, total=_money(total))
            for _, (label, total) in sorted(buckets.items())
        ]

    async def top_customers(self, date_range: DateRange, limit: int) -> List[CustomerSpend]:
        rows = await self._orders(date_range).order_by("date_created", "id").values(
            "billing_email", "billing_first_name", "billing_last_name", "total"
        )

        grouped: Dict[str, dict] = {}
        for row in rows:
            customer = grouped.setdefault(row["billing_email"], {"name": "", "order_count": 0, "total_spent": 0.0})
            # Rows are oldest first, so the last name seen is the most recent one
            customer["name"] = f"{row['billing_first_name']} {row['billing_last_name']}".strip()
            customer["order_count"] += 1
            customer["total_spent"] += float(row["total"] or 0)

        customers = [
            CustomerSpend(
                email=email, name=data["name"], order_count=data["order_count"],
                total_spent=_money(data["total_spent"]),
            )
            for email, data in grouped.items()
        ]
        customers.sort(key=lambda c: (-c.total_spent, c.email))
        return customers[:limit]

    async def best_sales_days(self, date_range: DateRange, limit: int) -> List[SalesDay]:
        rows = await self._orders(date_range).values("date_created", "total")

        days: Dict[datetime.date, Dict[str, float]] = defaultdict(lambda: {"order_count": 0, "total": 0.0})
        for row in rows:
            day = days[row["date_created"].date()]
            day["order_count"] += 1
            day["total"] += float(row["total"] or 0)

        sales_days = [
            SalesDay(date=day, order_count=int(data["order_count"]), total=_money(data["total"]))
            for day, data in days.items()
        ]
        sales_days.sort(key=lambda d: (-d.total, d.date))
        return sales_days[:limit]

    async def refunds(self, date_range: DateRange) -> RefundsSummary:
        rows = await Refund.filter(
            date_created__gte=date_range.start_of_day,
            date_created__lt=date_range.end_exclusive,
        ).values("date_created", "amount")

        days: Dict[datetime.date, Dict[str, float]] = defaultdict(lambda: {"refund_count": 0, "total": 0.0})
        for row in rows:
            day = days[row["date_created"].date()]
            day["refund_count"] += 1
            day["total"] += abs(float(row["amount"] or 0))

        refund_days = [
            RefundDay(date=day, refund_count=int(data["refund_count"]), total=_money(data["total"]))
            for day, data in sorted(days.items())
        ]
        return RefundsSummary(
            total_refund_amount=_money(sum(abs(float(row["amount"] or 0)) for row in rows)),
            # One per refund record, not per day with refunds
            refund_count=len(rows),
            refunds=refund_days,
        )

    async def coupons(self, date_range: DateRange) -> List[CouponUsage]:
        rows = await CouponLine.filter(**self._order_filter(date_range)).values("code", "discount_amount")

        grouped: Dict[str, Dict[str, float]] = defaultdict(lambda: {"usage_count": 0, "discount_amount": 0.0})
        for row in rows:
            grouped[row["code"]]["usage_count"] += 1
            grouped[row["code"]]["discount_amount"] += float(row["discount_amount"] or 0)

        coupons = [
            CouponUsage(
                code=code, usage_count=int(data["usage_count"]),
                discount_amount=_money(data["discount_amount"]),
            )
            for code, data in grouped.items()
        ]
        coupons.sort(key=lambda c: (-c.usage_count, c.code))
        return coupons
