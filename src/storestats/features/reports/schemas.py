"""Report API Schemas

Pydantic models for the analytics endpoints. Each report is an immutable,
read-only projection of the order store:

1. Sales stats (totals and average order value)
2. Top products
3. Revenue trend
4. Top customers
5. Best sales days
6. Refunds summary
7. Coupon usage

Counts are always integers and money amounts floats, whatever the storage
representation."""
from pydantic import BaseModel, ConfigDict, Field
from typing import List, Literal, Optional
import datetime


TrendInterval = Literal["day", "week", "month"]


class ReportModel(BaseModel):
    model_config = ConfigDict(frozen=True)


# Query parameters shared by every report
class ReportPeriodQuery(BaseModel):
    from_date: Optional[datetime.date] = None
    to_date: Optional[datetime.date] = None
    all_time: bool = False


class DateRangeInfo(ReportModel):
    from_: datetime.date = Field(..., alias="from")
    to: datetime.datetime
    is_all_time: bool

    model_config = ConfigDict(frozen=True, populate_by_name=True)


# 1. Sales stats
class SalesStats(ReportModel):
    total_sales: float
    total_orders: int
    average_order_value: float
    date_range: DateRangeInfo


# 2. Top products
class ProductSales(ReportModel):
    name: str
    quantity: int
    total: float


# 3. Revenue trend
class RevenuePoint(ReportModel):
    period: str
    total: float


# 4. Top customers
class CustomerSpend(ReportModel):
    email: str
    name: str
    order_count: int
    total_spent: float


# 5. Best sales days
class SalesDay(ReportModel):
    date: datetime.date
    order_count: int
    total: float


# 6. Refunds
class RefundDay(ReportModel):
    date: datetime.date
    refund_count: int
    total: float


class RefundsSummary(ReportModel):
    total_refund_amount: float
    refund_count: int
    refunds: List[RefundDay]


# 7. Coupons
class CouponUsage(ReportModel):
    code: str
    usage_count: int
    discount_amount: float


class RefreshResponse(BaseModel):
    success: bool
    message: str
