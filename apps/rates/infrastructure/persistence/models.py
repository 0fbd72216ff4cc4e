"""
Django ORM models for persistence.
Infrastructure layer - technical storage detail.
"""

import uuid
from django.db import models

RATE_MAX_DIGITS = 30
RATE_DECIMAL_PLACES = 15


class BaseModel(models.Model):

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        abstract = True


class Currency(BaseModel):

    code = models.CharField(max_length=3, unique=True)
    name = models.CharField(max_length=64)

    class Meta:
        verbose_name_plural = "currencies"
        ordering = ["code"]

    def __str__(self):
        return f"{self.code} ({self.name})"


class ExchangeRateRecord(BaseModel):
    """
    1 unit of `base_code` = `rate` units of the target currency, as of `updated_at`.

    The target is referenced by its code (`target_code` column), so rows can be
    written and read without loading Currency instances.
    """

    base_code = models.CharField(max_length=3, db_index=True)
    target_currency = models.ForeignKey(
        Currency,
        to_field="code",
        db_column="target_code",
        related_name="+",
        on_delete=models.PROTECT,
    )
    rate = models.DecimalField(
        decimal_places=RATE_DECIMAL_PLACES,
        max_digits=RATE_MAX_DIGITS,
    )
    updated_at = models.DateTimeField(db_index=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=["base_code", "target_currency"],
                name="unique_rate_per_pair",
            )
        ]
        ordering = ["base_code", "target_currency"]

    def __str__(self):
        return f"1 {self.base_code} = {self.rate} {self.target_currency_id} | {self.updated_at}"
