"""FastAPI dependencies wiring the process-wide report cache into request handlers."""
import datetime
from typing import Annotated, Optional

from fastapi import Depends, Query, Request

from .cache import ReportCache
from .invalidation import CacheInvalidator
from .queries import OrderStoreQueries
from .schemas import ReportPeriodQuery
from .service import ReportService


def get_report_cache(request: Request) -> ReportCache:
    return request.app.state.report_cache


def get_cache_invalidator(request: Request) -> CacheInvalidator:
    return request.app.state.cache_invalidator


def get_report_queries() -> OrderStoreQueries:
    return OrderStoreQueries()


def get_report_service(
    cache: Annotated[ReportCache, Depends(get_report_cache)],
    source: Annotated[OrderStoreQueries, Depends(get_report_queries)],
) -> ReportService:
    return ReportService(cache=cache, source=source)


def report_period(
    from_date: Optional[datetime.date] = Query(None, alias="from", description="First day of the report (YYYY-MM-DD)"),
    to_date: Optional[datetime.date] = Query(None, alias="to", description="Last day of the report, inclusive (YYYY-MM-DD)"),
    all_time: bool = Query(False, description="Ignore from/to and report over every order"),
) -> ReportPeriodQuery:
    return ReportPeriodQuery(from_date=from_date, to_date=to_date, all_time=all_time)
