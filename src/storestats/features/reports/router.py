"""Reporting API endpoints for storestats

Analytics over the order store for the store dashboard: sales stats, top
products, revenue trend, top customers, best sales days, refunds and coupon
usage. Every endpoint requires the "manage store" capability.

All endpoints accept ``from``/``to`` (YYYY-MM-DD) and ``all_time``; results
are cached per parameter set until they expire or an order event clears the
cache. ``POST /refresh`` clears it on demand."""
import logging
from fastapi import APIRouter, Depends, Query
from typing import Annotated, List

from ..auth.security import get_current_store_manager
from .dependencies import get_cache_invalidator, get_report_service, report_period
from .invalidation import CacheInvalidator
from .schemas import (
    ReportPeriodQuery, TrendInterval, SalesStats, ProductSales, RevenuePoint,
    CustomerSpend, SalesDay, RefundsSummary, CouponUsage, RefreshResponse,
)
from .service import ReportService
from ...core.config import DEFAULT_REPORT_LIMIT

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/reports",
    tags=["Reports"],
    dependencies=[Depends(get_current_store_manager)],
)

Service = Annotated[ReportService, Depends(get_report_service)]
Period = Annotated[ReportPeriodQuery, Depends(report_period)]
Limit = Annotated[int, Query(ge=1, le=100, description="Maximum number of rows")]


async def _report(service: ReportService, name: str, period: ReportPeriodQuery, **params):
    return await service.get_report(
        name, start_date=period.from_date, end_date=period.to_date, all_time=period.all_time, **params
    )


@router.get("/stats", response_model=SalesStats)
async def get_stats(service: Service, period: Period):
    return await _report(service, "stats", period)

@router.get("/products", response_model=List[ProductSales])
async def get_top_products(service: Service, period: Period, limit: Limit = DEFAULT_REPORT_LIMIT):
    return await _report(service, "top_products", period, limit=limit)

@router.get("/revenue-trend", response_model=List[RevenuePoint])
async def get_revenue_trend(
    service: Service,
    period: Period,
    interval: Annotated[TrendInterval, Query(description="Bucket size: day, week or month")] = "day",
):
    return await _report(service, "revenue_trend", period, interval=interval)

@router.get("/customers", response_model=List[CustomerSpend])
async def get_top_customers(service: Service, period: Period, limit: Limit = DEFAULT_REPORT_LIMIT):
    return await _report(service, "top_customers", period, limit=limit)

@router.get("/sales-days", response_model=List[SalesDay])
async def get_best_sales_days(service: Service, period: Period, limit: Limit = DEFAULT_REPORT_LIMIT):
    return await _report(service, "best_sales_days", period, limit=limit)

@router.get("/refunds", response_model=RefundsSummary)
async def get_refunds(service: Service, period: Period):
    return await _report(service, "refunds", period)

@router.get("/coupons", response_model=List[CouponUsage])
async def get_coupons(service: Service, period: Period):
    return await _report(service, "coupons", period)

@router.post("/refresh", response_model=RefreshResponse)
async def refresh_reports(invalidator: Annotated[CacheInvalidator, Depends(get_cache_invalidator)]):
    removed = invalidator.invalidate_all(reason="manual refresh")
    return RefreshResponse(success=True, message=f"Cache refreshed. {removed} items deleted.")
