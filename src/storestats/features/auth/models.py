from tortoise import fields

from ...common.models import TimestampMixin, generate_ksuid
from ...core.config import STORE_MANAGER_ROLES


class User(TimestampMixin):
    id = fields.IntField(primary_key=True)
    public_id = fields.CharField(max_length=27, unique=True, default=generate_ksuid, db_index=True)
    username = fields.CharField(max_length=100, unique=True, db_index=True)
    email = fields.CharField(max_length=255, unique=True, db_index=True)
    hashed_password = fields.CharField(max_length=255)
    role = fields.CharField(max_length=50, default="customer")  # "customer", "shop_manager" or "admin"
    is_active = fields.BooleanField(default=True)

    orders: fields.ReverseRelation["Order"]

    @property
    def can_manage_store(self) -> bool:
        return self.role in STORE_MANAGER_ROLES

    def __str__(self):
        return f"{self.username} ({self.role})"

    class Meta:
        table = "users"
