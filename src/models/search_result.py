# src/models/search_result.py

"""Paginated search result container."""

from dataclasses import dataclass, field

from src.models.product import Product


@dataclass
class Pagination:
    """Zero-indexed page metadata for a catalog search."""

    current_page: int
    total_pages: int
    total_items: int
    page_size: int

    @property
    def has_next(self) -> bool:
        return self.current_page + 1 < self.total_pages

    @property
    def has_previous(self) -> bool:
        return self.current_page > 0


@dataclass
class SearchResult:
    """One page of products returned by the catalog."""

    pagination: Pagination
    products: list[Product] = field(
        default_factory=lambda: list[Product]()
    )
