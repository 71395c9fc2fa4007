from fastapi import APIRouter, Depends, status, Query
from typing import List, Optional, Annotated

from ..auth.models import User as AuthUser
from ..auth.security import get_current_active_user, get_current_store_manager

from .schemas import (
    OrderCreateSchema, OrderPublicSchema, OrderStatusUpdateSchema, RefundCreateSchema,
)
from .service import (
    to_order_public_schema, create_new_order, get_all_orders,
    get_order_by_public_id, change_order_status, record_refund,
)

router = APIRouter(
    prefix="/orders",
    tags=["Orders"],
)

@router.post("/", response_model=OrderPublicSchema, status_code=status.HTTP_201_CREATED)
async def create_order(
    order_data: OrderCreateSchema,
    current_user: Annotated[AuthUser, Depends(get_current_active_user)]
):
    new_order = await create_new_order(order_data, current_user)
    return to_order_public_schema(new_order)


@router.get("/", response_model=List[OrderPublicSchema])
async def list_orders(
    current_user: Annotated[AuthUser, Depends(get_current_active_user)],
    page: int = Query(1, ge=1), size: int = Query(10, ge=1, le=100),
    statuses: Optional[List[str]] = Query(None)
):
    orders_list = await get_all_orders(current_user, page, size, statuses)
    return [to_order_public_schema(order) for order in orders_list]

@router.get("/{order_public_id}", response_model=OrderPublicSchema)
async def get_order(
    order_public_id: str,
    current_user: Annotated[AuthUser, Depends(get_current_active_user)]
):
    order = await get_order_by_public_id(order_public_id, current_user)
    return to_order_public_schema(order)

@router.patch("/{order_public_id}/status", response_model=OrderPublicSchema)
async def update_order_status(
    order_public_id: str,
    status_data: OrderStatusUpdateSchema,
    current_manager: Annotated[AuthUser, Depends(get_current_store_manager)],
):
    order = await change_order_status(order_public_id, status_data)
    return to_order_public_schema(order)

@router.post("/{order_public_id}/refunds", response_model=OrderPublicSchema, status_code=status.HTTP_201_CREATED)
async def create_refund(
    order_public_id: str,
    refund_data: RefundCreateSchema,
    current_manager: Annotated[AuthUser, Depends(get_current_store_manager)],
):
    order = await record_refund(order_public_id, refund_data)
    return to_order_public_schema(order)
