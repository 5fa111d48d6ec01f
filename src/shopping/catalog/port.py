"""Catalog lookup port: abstract interface onto the live product catalog.

The catalog service is the single source of truth for live price, stock and
status. Cart code programs against this port; adapters are swapped via
configuration.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum


class ProductStatus(Enum):
    DRAFT = "Draft"
    ACTIVE = "Active"
    SUSPENDED = "Suspended"
    ARCHIVED = "Archived"


class CatalogUnavailableError(Exception):
    """The catalog could not be reached or answered with an error."""


@dataclass(frozen=True)
class CatalogProduct:
    """Live state of a product as reported by the catalog."""

    product_id: str
    title: str
    price: float
    stock: int
    status: str
    store_id: str
    store_name: str
    image_url: str | None = None

    @property
    def is_active(self) -> bool:
        return self.status == ProductStatus.ACTIVE.value


class CatalogLookup(ABC):
    """Abstract catalog lookup interface."""

    @abstractmethod
    def get_product(self, product_id: str) -> CatalogProduct | None:
        """Return the live product, or None when it does not exist.

        Raises:
            CatalogUnavailableError: the lookup itself failed.
        """
        ...
