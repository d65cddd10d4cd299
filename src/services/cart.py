# src/services/cart.py

"""Session-scoped shopping cart keyed by product id."""

import logging

from src.models.product import Product

logger = logging.getLogger("prixnc_ai.cart")

UNSPECIFIED_STORE = "unspecified store"


class ShoppingCart:
    """Insertion-ordered, in-memory cart with one entry per product id.

    Owned by a single session and mutated from one place only, so no
    locking is involved.  Nothing is persisted.
    """

    def __init__(self) -> None:
        self._items: dict[str, Product] = {}

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, product_id: object) -> bool:
        return product_id in self._items

    @property
    def items(self) -> list[Product]:
        return list(self._items.values())

    def add(self, product: Product) -> bool:
        """Add *product*; returns False when its id is already present."""
        if product.id in self._items:
            logger.debug("Cart already holds product %s", product.id)
            return False
        self._items[product.id] = product
        logger.info(
            "Added '%s' to cart (%d items)", product.name, len(self._items)
        )
        return True

    def remove(self, product_id: str) -> bool:
        """Drop a product; returns False when it was not in the cart."""
        removed = self._items.pop(product_id, None)
        return removed is not None

    def clear(self) -> int:
        """Empty the cart and return how many items were removed."""
        count = len(self._items)
        self._items.clear()
        return count

    def total(self) -> float:
        """Sum of known prices; unpriced products count for nothing."""
        return sum(
            p.price for p in self._items.values() if p.price is not None
        )

    def by_store(self) -> dict[str, list[Product]]:
        """Cart contents grouped by store name, in insertion order."""
        grouped: dict[str, list[Product]] = {}
        for product in self._items.values():
            name = product.store.name or UNSPECIFIED_STORE
            grouped.setdefault(name, []).append(product)
        return grouped
