"""Order lifecycle events.

Writers in the orders service emit an event after their transaction commits;
other features (the report cache invalidator in particular) subscribe to the
event types they care about.
"""

import asyncio
import datetime
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List

logger = logging.getLogger(__name__)

ORDER_CREATED = "order_created"
ORDER_STATUS_CHANGED = "order_status_changed"
ORDER_REFUNDED = "order_refunded"


@dataclass
class OrderLifecycleEvent:
    event_type: str
    order_public_id: str
    status: str
    timestamp: datetime.datetime = field(
        default_factory=lambda: datetime.datetime.now(datetime.timezone.utc)
    )
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event_type": self.event_type,
            "order_public_id": self.order_public_id,
            "status": self.status,
            "timestamp": self.timestamp.isoformat(),
            "metadata": self.metadata,
        }


order_event_handlers: Dict[str, List[Callable]] = {
    ORDER_CREATED: [],
    ORDER_STATUS_CHANGED: [],
    ORDER_REFUNDED: [],
}


def register_event_handler(event_type: str, handler: Callable):
    """Register a handler; sync handlers run in a worker thread."""
    if event_type not in order_event_handlers:
        raise ValueError(f"Unknown event type: {event_type}")
    order_event_handlers[event_type].append(handler)
    logger.debug(f"Registered handler {handler!r} for {event_type}")


def unregister_event_handler(event_type: str, handler: Callable):
    if event_type in order_event_handlers and handler in order_event_handlers[event_type]:
        order_event_handlers[event_type].remove(handler)


async def emit_order_event(event: OrderLifecycleEvent):
    """Run every handler registered for the event.

    Handler failures are logged and never reach the caller; the order write
    has already been committed at this point.
    """
    handlers = list(order_event_handlers.get(event.event_type, []))
    if not handlers:
        logger.debug(f"No handlers registered for {event.event_type}")
        return

    logger.info(f"Emitting {event.event_type} for order {event.order_public_id}")

    tasks = []
    for handler in handlers:
        if asyncio.iscoroutinefunction(handler):
            tasks.append(handler(event))
        else:
            tasks.append(asyncio.to_thread(handler, event))

    results = await asyncio.gather(*tasks, return_exceptions=True)
    for handler, result in zip(handlers, results):
        if isinstance(result, Exception):
            logger.error(f"Handler {handler!r} failed for {event.event_type}: {result}")
