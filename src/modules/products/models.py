"""Product catalog model.

The order core only reads from the catalog: ``name`` and ``base_price`` are
snapshotted into each order line at creation time and never written back.

Rules:
- Base price must be greater than zero.
- Inactive products cannot be ordered (enforced by the order service).
"""

from __future__ import annotations

from decimal import Decimal

from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models

from modules.core.models import BaseModel


class ProductStatus(models.TextChoices):
    ACTIVE = "active", "Active"
    INACTIVE = "inactive", "Inactive"


class ProductCategory(models.TextChoices):
    EMBROIDERY = "embroidery", "Embroidery"
    HOOP_ART = "hoop-art", "Hoop art"
    CROCHET = "crochet", "Crochet"
    GIFT_HAMPER = "gift-hamper", "Gift hamper"
    OTHER = "other", "Other"


class Product(BaseModel):
    """A made-to-order handcrafted item offered in the storefront."""

    name = models.CharField(max_length=255)
    description = models.TextField(blank=True, default="")
    category = models.CharField(
        max_length=32,
        choices=ProductCategory.choices,
        default=ProductCategory.OTHER,
    )
    base_price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.01"))],
    )
    is_customizable = models.BooleanField(default=True)
    status = models.CharField(
        max_length=20,
        choices=ProductStatus.choices,
        default=ProductStatus.ACTIVE,
    )

    class Meta:
        db_table = "products"
        ordering = ["name"]
        indexes = [
            models.Index(fields=["status"], name="products_status_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(base_price__gt=0),
                name="products_base_price_positive",
            ),
        ]

    @property
    def is_active(self) -> bool:
        return self.status == ProductStatus.ACTIVE

    def clean(self) -> None:
        super().clean()
        if self.base_price is not None and self.base_price <= 0:
            raise ValidationError({"base_price": "Price must be greater than zero."})

    def __str__(self) -> str:
        return f"{self.name} (₹{self.base_price})"
