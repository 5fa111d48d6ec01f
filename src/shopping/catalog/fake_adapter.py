"""In-memory catalog adapter: deterministic catalog for testing and development.

Products are seeded and mutated directly. The adapter can be configured to
fail every lookup, and records each call it receives.
"""

from dataclasses import replace

from shopping.catalog.port import CatalogLookup, CatalogProduct, CatalogUnavailableError, ProductStatus


class InMemoryCatalog(CatalogLookup):
    """Catalog backed by a dict of products keyed by product id."""

    def __init__(self):
        self.products: dict[str, CatalogProduct] = {}
        self.should_fail = False
        self.failure_reason = "Catalog unavailable"
        self.calls: list[dict] = []

    def configure(self, should_fail: bool = False, failure_reason: str = "Catalog unavailable"):
        """Configure the fake catalog behavior for testing."""
        self.should_fail = should_fail
        self.failure_reason = failure_reason

    def add_product(
        self,
        product_id: str,
        title: str,
        price: float,
        stock: int,
        store_id: str,
        store_name: str,
        status: str = ProductStatus.ACTIVE.value,
        image_url: str | None = None,
    ) -> CatalogProduct:
        product = CatalogProduct(
            product_id=str(product_id),
            title=title,
            price=price,
            stock=stock,
            status=status,
            store_id=str(store_id),
            store_name=store_name,
            image_url=image_url,
        )
        self.products[product.product_id] = product
        return product

    def set_price(self, product_id: str, price: float) -> None:
        self._update(product_id, price=price)

    def set_stock(self, product_id: str, stock: int) -> None:
        self._update(product_id, stock=stock)

    def set_status(self, product_id: str, status: str) -> None:
        self._update(product_id, status=status)

    def remove_product(self, product_id: str) -> None:
        self.products.pop(str(product_id), None)

    def get_product(self, product_id: str) -> CatalogProduct | None:
        self.calls.append({"method": "get_product", "product_id": str(product_id)})
        if self.should_fail:
            raise CatalogUnavailableError(self.failure_reason)
        return self.products.get(str(product_id))

    def _update(self, product_id: str, **changes) -> None:
        key = str(product_id)
        self.products[key] = replace(self.products[key], **changes)
