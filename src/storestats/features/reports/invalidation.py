"""Report cache invalidation on order lifecycle events.

Invalidation is coarse: any new order, status change or refund
clears every cached report, whatever its type or date range.
"""
import logging

from ..orders.events import (
    OrderLifecycleEvent, register_event_handler, unregister_event_handler,
    ORDER_CREATED, ORDER_STATUS_CHANGED, ORDER_REFUNDED,
)
from .cache import ReportCache

logger = logging.getLogger(__name__)

INVALIDATING_EVENTS = (ORDER_CREATED, ORDER_STATUS_CHANGED, ORDER_REFUNDED)


class CacheInvalidator:
    def __init__(self, cache: ReportCache):
        self.cache = cache

    def invalidate_all(self, reason: str = "manual refresh") -> int:
        removed = self.cache.invalidate_all()
        logger.info(f"Report cache invalidated ({reason}): {removed} entries removed")
        return removed

    async def on_order_event(self, event: OrderLifecycleEvent) -> None:
        self.invalidate_all(reason=f"{event.event_type} for order {event.order_public_id}")

    def subscribe(self) -> None:
        for event_type in INVALIDATING_EVENTS:
            register_event_handler(event_type, self.on_order_event)

    def unsubscribe(self) -> None:
        for event_type in INVALIDATING_EVENTS:
            unregister_event_handler(event_type, self.on_order_event)
