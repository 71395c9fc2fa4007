"""
Report Service Module

Orchestrates report generation: resolve the date range, build the cache key,
serve a cached payload when one is fresh, otherwise run the aggregation query
and cache its JSON payload for the configured TTL.

Concurrent misses for the same key may both run the query; both compute the
same result and the last write wins.
"""

import datetime
import logging
from typing import Any, Callable, Dict, Optional

from pydantic import BaseModel

from .cache import ReportCache, build_cache_key
from .dates import resolve_date_range, utc_today
from .queries import OrderStoreQueries

logger = logging.getLogger(__name__)

# Report name -> aggregation method on the query source
REPORT_QUERIES: Dict[str, str] = {
    "stats": "stats",
    "top_products": "top_products",
    "revenue_trend": "revenue_trend",
    "top_customers": "top_customers",
    "best_sales_days": "best_sales_days",
    "refunds": "refunds",
    "coupons": "coupons",
}


def to_payload(result: Any) -> Any:
    """Convert report records into plain JSON data, as stored in the cache."""
    if isinstance(result, BaseModel):
        return result.model_dump(mode="json", by_alias=True)
    if isinstance(result, list):
        return [to_payload(item) for item in result]
    return result


class ReportService:
    def __init__(
        self,
        cache: ReportCache,
        source: Optional[OrderStoreQueries] = None,
        ttl: Optional[int] = None,
        today: Optional[Callable[[], datetime.date]] = None,
    ):
        self.cache = cache
        self.source = source or OrderStoreQueries()
        self.ttl = ttl
        self._today = today or utc_today

    async def get_report(
        self,
        report: str,
        *,
        start_date: Optional[datetime.date] = None,
        end_date: Optional[datetime.date] = None,
        all_time: bool = False,
        **params: Any,
    ) -> Any:
        """
        Returns the payload of a report, from cache when possible.

        Args:
            report: One of REPORT_QUERIES.
            start_date: Optional first day of the range.
            end_date: Optional last day of the range (inclusive).
            all_time: Report over every order, ignoring start/end dates.
            **params: Extra query parameters such as ``limit`` or ``interval``.

        Returns:
            The JSON-serializable report payload.

        Raises:
            ValueError: If the report name is unknown.
            InvalidDateRangeError: If the resolved range starts after it ends.
        """
        if report not in REPORT_QUERIES:
            raise ValueError(f"Unknown report: {report}")

        date_range = resolve_date_range(start_date, end_date, all_time, today=self._today())
        cache_key = build_cache_key(report, {**date_range.as_params(), **params}, prefix=self.cache.prefix)

        cached = self._read_cache(cache_key)
        if cached is not None:
            logger.debug(f"Cache hit for {report} ({cache_key})")
            return cached

        logger.info(f"Cache miss for {report}, computing {date_range.start} to {date_range.end}")
        query = getattr(self.source, REPORT_QUERIES[report])
        payload = to_payload(await query(date_range, **params))

        self._write_cache(cache_key, payload)
        return payload

    def _read_cache(self, key: str) -> Optional[Any]:
        # An unavailable cache behaves like a miss
        try:
            return self.cache.get(key)
        except Exception as e:
            logger.warning(f"Report cache read failed for {key}: {e}")
            return None

    def _write_cache(self, key: str, payload: Any) -> None:
        try:
            self.cache.set(key, payload, ttl=self.ttl)
        except Exception as e:
            logger.warning(f"Report cache write failed for {key}: {e}")
