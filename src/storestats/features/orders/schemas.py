from pydantic import BaseModel, ConfigDict, Field, EmailStr
from typing import List, Literal, Optional, Any
import datetime

OrderStatus = Literal[
    "pending", "processing", "on-hold", "completed", "cancelled", "refunded", "failed"
]

# Order Item Schemas
class OrderItemCreateSchema(BaseModel):
    name: str = Field(..., min_length=1, max_length=255, description="Product name")
    quantity: int = Field(..., gt=0, description="Quantity of the product")
    price_at_purchase: float = Field(..., ge=0, description="Unit price at the time of purchase")

class OrderItemPublicSchema(BaseModel):
    public_id: str
    name: str
    quantity: int
    price_at_purchase: float
    line_total: float

    model_config = ConfigDict(from_attributes=True)

# Coupon Schemas
class CouponLineCreateSchema(BaseModel):
    code: str = Field(..., min_length=1, max_length=100)
    discount_amount: float = Field(..., ge=0)

class CouponLinePublicSchema(CouponLineCreateSchema):
    model_config = ConfigDict(from_attributes=True)

# Refund Schemas
class RefundCreateSchema(BaseModel):
    amount: float = Field(..., gt=0, description="Amount to refund, as a positive number")
    reason: Optional[str] = Field(None, max_length=1000)

class RefundPublicSchema(BaseModel):
    public_id: str
    amount: float = Field(..., description="Refunded amount, negative as stored")
    reason: Optional[str] = None
    date_created: datetime.datetime

    model_config = ConfigDict(from_attributes=True)

# Order Event Schemas
class OrderEventPublicSchema(BaseModel):
    public_id: str = Field(..., description="Public KSUID of the event")
    event_type: str = Field(..., description="Type of the order event")
    data: Optional[dict[str, Any]] = Field(None, description="Additional data associated with the event")
    occurred_at: datetime.datetime = Field(..., description="Timestamp of when the event occurred")

    model_config = ConfigDict(from_attributes=True)

# Status change
class OrderStatusUpdateSchema(BaseModel):
    status: OrderStatus
    note: Optional[str] = Field(None, max_length=1000)

# Order Schemas
class OrderBase(BaseModel):
    billing_email: EmailStr
    billing_first_name: str = Field("", max_length=255)
    billing_last_name: str = Field("", max_length=255)
    currency: str = Field("USD", min_length=3, max_length=3)

class OrderCreateSchema(OrderBase):
    status: OrderStatus = "pending"
    items: List[OrderItemCreateSchema] = Field(..., min_length=1)
    coupons: List[CouponLineCreateSchema] = Field(default_factory=list)
    date_created: Optional[datetime.datetime] = Field(
        None, description="Order date; defaults to now. Used when importing historical orders."
    )

class OrderPublicSchema(OrderBase):
    public_id: str
    order_id: str
    status: str
    total: float
    date_created: datetime.datetime
    items: List[OrderItemPublicSchema]
    coupons: List[CouponLinePublicSchema]
    refunds: List[RefundPublicSchema]
    events: List[OrderEventPublicSchema]

    model_config = ConfigDict(from_attributes=True)
