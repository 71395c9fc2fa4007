import datetime
import logging
from typing import List, Optional

from tortoise.transactions import in_transaction
from tortoise.exceptions import DoesNotExist
from fastapi import HTTPException, status

from .models import Order, OrderItem, CouponLine, Refund, OrderEvent
from .schemas import (
    OrderPublicSchema, OrderItemPublicSchema, CouponLinePublicSchema,
    RefundPublicSchema, OrderEventPublicSchema, OrderCreateSchema,
    OrderStatusUpdateSchema, RefundCreateSchema,
)
from .events import (
    OrderLifecycleEvent, emit_order_event,
    ORDER_CREATED, ORDER_STATUS_CHANGED, ORDER_REFUNDED,
)
from ..auth.models import User as AuthUser

logger = logging.getLogger(__name__)

# Statuses an order may be refunded from
REFUNDABLE_STATUSES = ("processing", "completed", "on-hold")

_ORDER_RELATIONS = ("items", "coupons", "refunds", "events")


def _as_utc(value: datetime.datetime) -> datetime.datetime:
    # Order dates are stored in UTC; naive values are taken to be UTC already
    if value.tzinfo is None:
        return value.replace(tzinfo=datetime.timezone.utc)
    return value.astimezone(datetime.timezone.utc)


async def _load_full_order(order_pk: int) -> Order:
    return await Order.get(id=order_pk).prefetch_related(*_ORDER_RELATIONS)


async def get_order_by_public_id(order_public_id: str, current_user: AuthUser) -> Order:
    try:
        order = await Order.get(public_id=order_public_id).prefetch_related(*_ORDER_RELATIONS)
    except DoesNotExist:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Order {order_public_id} not found.")

    # Store managers can see any order, customers only their own.
    if not current_user.can_manage_store and order.user_id != current_user.id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not authorized to access this order.")

    return order


async def get_all_orders(current_user: AuthUser, page: int, size: int, statuses: Optional[List[str]]) -> List[Order]:
    offset = (page - 1) * size
    query = Order.all().prefetch_related(*_ORDER_RELATIONS).order_by("-date_created")

    if statuses:
        processed_statuses = [s.strip() for s in statuses if s.strip()]
        if processed_statuses:
            query = query.filter(status__in=processed_statuses)

    if not current_user.can_manage_store:
        query = query.filter(user_id=current_user.id)

    return await query.offset(offset).limit(size)


async def create_new_order(order_data: OrderCreateSchema, current_user: AuthUser) -> Order:
    line_totals = [item.quantity * item.price_at_purchase for item in order_data.items]
    discounts = sum(coupon.discount_amount for coupon in order_data.coupons)
    order_total = max(sum(line_totals) - discounts, 0.0)

    async with in_transaction() as conn:
        new_order_id_str = await Order.generate_next_order_id(using_db=conn)
        create_kwargs = dict(
            order_id=new_order_id_str,
            status=order_data.status,
            currency=order_data.currency.upper(),
            total=round(order_total, 2),
            billing_email=order_data.billing_email,
            billing_first_name=order_data.billing_first_name,
            billing_last_name=order_data.billing_last_name,
            user=current_user,
        )
        if order_data.date_created is not None:
            create_kwargs["date_created"] = _as_utc(order_data.date_created)
        order = await Order.create(**create_kwargs, using_db=conn)

        for item_data, line_total in zip(order_data.items, line_totals):
            await OrderItem.create(
                order=order, name=item_data.name, quantity=item_data.quantity,
                price_at_purchase=item_data.price_at_purchase,
                line_total=round(line_total, 2), using_db=conn,
            )
        for coupon_data in order_data.coupons:
            await CouponLine.create(
                order=order, code=coupon_data.code.lower(),
                discount_amount=coupon_data.discount_amount, using_db=conn,
            )
        await OrderEvent.create(
            order=order, event_type=ORDER_CREATED,
            data={"message": "Order created successfully.", "status": order.status},
            using_db=conn,
        )
        # Transaction commits on leaving the block

    logger.info(f"Created order {order.order_id} with total {order.total:.2f} {order.currency}")
    await emit_order_event(OrderLifecycleEvent(
        event_type=ORDER_CREATED, order_public_id=order.public_id, status=order.status,
    ))
    return await _load_full_order(order.id)


async def change_order_status(order_public_id: str, status_data: OrderStatusUpdateSchema) -> Order:
    order = await Order.get_or_none(public_id=order_public_id)
    if not order:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Order not found.")
    if order.status == status_data.status:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Order is already {order.status}.")

    previous_status = order.status
    async with in_transaction() as conn:
        order_locked = await Order.get(id=order.id, using_db=conn).select_for_update()
        order_locked.status = status_data.status
        await order_locked.save(using_db=conn, update_fields=["status"])

        event_data = {"from": previous_status, "to": status_data.status}
        if status_data.note:
            event_data["note"] = status_data.note
        await OrderEvent.create(
            order=order_locked, event_type=ORDER_STATUS_CHANGED, data=event_data, using_db=conn
        )

    logger.info(f"Order {order.order_id} status changed {previous_status} -> {status_data.status}")
    await emit_order_event(OrderLifecycleEvent(
        event_type=ORDER_STATUS_CHANGED, order_public_id=order.public_id,
        status=status_data.status, metadata={"previous_status": previous_status},
    ))
    return await _load_full_order(order.id)


async def record_refund(order_public_id: str, refund_data: RefundCreateSchema) -> Order:
    order = await Order.get_or_none(public_id=order_public_id)
    if not order:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Order not found.")

    # Remaining amount is read under the order row lock
    async with in_transaction() as conn:
        order_locked = await Order.get(id=order.id, using_db=conn).select_for_update()
        if order_locked.status not in REFUNDABLE_STATUSES:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Orders with status {order_locked.status} cannot be refunded.",
            )

        prior_amounts = await Refund.filter(order_id=order.id).using_db(conn).values_list("amount", flat=True)
        remaining = round(order_locked.total - sum(abs(a) for a in prior_amounts), 2)
        if refund_data.amount > remaining:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Refund amount exceeds the remaining refundable amount of {remaining:.2f}.",
            )
        fully_refunded = round(remaining - refund_data.amount, 2) == 0

        refund = await Refund.create(
            order=order_locked, amount=-refund_data.amount, reason=refund_data.reason, using_db=conn
        )
        if fully_refunded:
            order_locked.status = "refunded"
            await order_locked.save(using_db=conn, update_fields=["status"])
        await OrderEvent.create(
            order=order_locked, event_type=ORDER_REFUNDED,
            data={"refund_public_id": refund.public_id, "amount": refund_data.amount,
                  "fully_refunded": fully_refunded},
            using_db=conn,
        )

    logger.info(f"Recorded refund of {refund_data.amount:.2f} on order {order.order_id}")
    await emit_order_event(OrderLifecycleEvent(
        event_type=ORDER_REFUNDED, order_public_id=order.public_id, status=order_locked.status,
        metadata={"amount": refund_data.amount},
    ))
    return await _load_full_order(order.id)


def to_order_public_schema(order: Order) -> OrderPublicSchema:
    # Relations must have been prefetched
    return OrderPublicSchema(
        public_id=order.public_id,
        order_id=order.order_id,
        status=order.status,
        total=order.total,
        currency=order.currency,
        billing_email=order.billing_email,
        billing_first_name=order.billing_first_name,
        billing_last_name=order.billing_last_name,
        date_created=order.date_created,
        items=[OrderItemPublicSchema.model_validate(i) for i in order.items],
        coupons=[CouponLinePublicSchema.model_validate(c) for c in order.coupons],
        refunds=[RefundPublicSchema.model_validate(r) for r in order.refunds],
        events=[OrderEventPublicSchema.model_validate(e) for e in order.events],
    )
