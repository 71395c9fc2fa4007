"""Analytics reports over the order store.

Exposes the report router plus the cache and service used to build it.
"""
from .cache import ReportCache, build_cache_key
from .dates import DateRange, InvalidDateRangeError, resolve_date_range
from .invalidation import CacheInvalidator
from .router import router
from .service import ReportService

__all__ = [
    "CacheInvalidator",
    "DateRange",
    "InvalidDateRangeError",
    "ReportCache",
    "ReportService",
    "build_cache_key",
    "resolve_date_range",
    "router",
]
