"""Shared building blocks for the storestats database models.

Provides the TimestampMixin used by every persisted entity and the KSUID
generator behind all public identifiers. KSUIDs (K-Sortable Unique
IDentifiers) are time-ordered, so listing records by public id roughly
follows creation order."""

from tortoise import fields, models
from ksuid import ksuid


def generate_ksuid() -> str:
    """Generate a K-Sortable Unique IDentifier (KSUID).

    Returns:
        str: A 27 character, URL-safe string representation of the KSUID.
    """
    return str(ksuid.Ksuid())


class TimestampMixin(models.Model):
    created_at = fields.DatetimeField(auto_now_add=True)
    updated_at = fields.DatetimeField(auto_now=True)

    class Meta:
        abstract = True
