"""Product catalog repository interface.

The order core consumes the catalog as ``get_product(id) -> {name,
basePrice} | NotFound``; this contract is that capability.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Optional

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.products.models import Product


class IProductRepository(IRepository["Product"]):
    """Read-only repository contract for the Product catalog."""

    @abstractmethod
    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[Product]:
        """List products with optional filters."""

    @abstractmethod
    def get_many(self, ids: Iterable[str]) -> Dict[str, Product]:
        """Fetch several products in one query, keyed by ``str(id)``.

        Unknown or malformed IDs are simply absent from the result.
        """
