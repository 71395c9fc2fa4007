"""Order store models.

The reporting engine only reads these tables; the orders feature is the only
writer. Refund amounts are stored negative, mirroring how the order platform
records them."""
import datetime
from tortoise import fields, models, timezone
from ...common.models import TimestampMixin, generate_ksuid


ORDER_STATUSES = (
    "pending",
    "processing",
    "on-hold",
    "completed",
    "cancelled",
    "refunded",
    "failed",
)


class Order(TimestampMixin):
    id = fields.IntField(primary_key=True)
    order_id = fields.CharField(
        max_length=50, unique=True, description="Pattern: <year+0000> e.g. 20250001"
    )
    public_id = fields.CharField(
        max_length=27, unique=True, default=generate_ksuid, db_index=True
    )

    status = fields.CharField(max_length=50, default="pending", db_index=True)
    currency = fields.CharField(max_length=3, default="USD")
    total = fields.FloatField(default=0.0)

    billing_email = fields.CharField(max_length=255, db_index=True)
    billing_first_name = fields.CharField(max_length=255, default="")
    billing_last_name = fields.CharField(max_length=255, default="")

    date_created = fields.DatetimeField(default=timezone.now, db_index=True)

    user: fields.ForeignKeyNullableRelation["User"] = fields.ForeignKeyField(
        "models.User", related_name="orders", on_delete=fields.SET_NULL, null=True
    )

    items: fields.ReverseRelation["OrderItem"]
    coupons: fields.ReverseRelation["CouponLine"]
    refunds: fields.ReverseRelation["Refund"]
    events: fields.ReverseRelation["OrderEvent"]

    @classmethod
    async def generate_next_order_id(cls, using_db=None):
        year_str = str(datetime.datetime.now().year)
        last_order = (
            await cls.filter(order_id__startswith=year_str)
            .using_db(using_db)
            .order_by("-order_id")
            .first()
        )
        if last_order:
            next_sequence = int(last_order.order_id[len(year_str):]) + 1
        else:
            next_sequence = 1
        return f"{year_str}{next_sequence:04d}"

    @property
    def billing_name(self) -> str:
        return f"{self.billing_first_name} {self.billing_last_name}".strip()

    def __str__(self):
        return f"Order {self.order_id} ({self.public_id}) - Status: {self.status}"

    class Meta:
        table = "orders"


class OrderItem(TimestampMixin):
    id = fields.IntField(primary_key=True)
    public_id = fields.CharField(
        max_length=27, unique=True, default=generate_ksuid, db_index=True
    )

    order: fields.ForeignKeyRelation[Order] = fields.ForeignKeyField(
        "models.Order", related_name="items", on_delete=fields.CASCADE
    )

    name = fields.CharField(max_length=255, description="Product name at the time of purchase")
    quantity = fields.IntField()
    price_at_purchase = fields.FloatField()
    line_total = fields.FloatField()

    def __str__(self):
        return f"{self.quantity} x {self.name}"

    class Meta:
        table = "order_items"


class CouponLine(models.Model):
    id = fields.IntField(primary_key=True)

    order: fields.ForeignKeyRelation[Order] = fields.ForeignKeyField(
        "models.Order", related_name="coupons", on_delete=fields.CASCADE
    )

    code = fields.CharField(max_length=100, db_index=True)
    discount_amount = fields.FloatField(default=0.0)

    def __str__(self):
        return f"Coupon {self.code} (-{self.discount_amount:.2f})"

    class Meta:
        table = "order_coupons"


class Refund(models.Model):
    id = fields.IntField(primary_key=True)
    public_id = fields.CharField(
        max_length=27, unique=True, default=generate_ksuid, db_index=True
    )

    order: fields.ForeignKeyRelation[Order] = fields.ForeignKeyField(
        "models.Order", related_name="refunds", on_delete=fields.CASCADE
    )

    amount = fields.FloatField(description="Negative amount, as recorded by the store")
    reason = fields.TextField(null=True)
    date_created = fields.DatetimeField(default=timezone.now, db_index=True)

    def __str__(self):
        return f"Refund {self.public_id} of {abs(self.amount):.2f}"

    class Meta:
        table = "order_refunds"


class OrderEvent(models.Model):  # No TimestampMixin
    id = fields.IntField(primary_key=True)
    public_id = fields.CharField(
        max_length=27, unique=True, default=generate_ksuid, db_index=True
    )

    order: fields.ForeignKeyRelation[Order] = fields.ForeignKeyField(
        "models.Order", related_name="events", on_delete=fields.CASCADE
    )

    event_type = fields.CharField(max_length=100)
    data = fields.JSONField(null=True)
    occurred_at = fields.DatetimeField(auto_now_add=True)

    def __str__(self):
        return f"Event '{self.event_type}' for Order {self.order_id} at {self.occurred_at}"

    class Meta:
        table = "order_events"
        ordering = ["occurred_at"]
