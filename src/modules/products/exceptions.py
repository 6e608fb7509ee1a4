"""Product catalog exceptions."""

from __future__ import annotations


class ProductNotFound(Exception):
    """The requested product does not exist in the catalog."""

    def __init__(self, product_id) -> None:
        self.product_id = str(product_id)
        super().__init__(f"Product not found: {self.product_id}")


class InactiveProduct(Exception):
    """The product exists but is no longer offered, so it cannot be priced."""

    def __init__(self, product_id) -> None:
        self.product_id = str(product_id)
        super().__init__(f"Product is not available: {self.product_id}")
