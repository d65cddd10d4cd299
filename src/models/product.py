# src/models/product.py

"""Catalog data models shared by the client, cart and engine."""

from dataclasses import dataclass, field
from datetime import datetime


@dataclass
class GeoPoint:
    """A latitude/longitude pair, typically the user's position."""

    latitude: float
    longitude: float


@dataclass
class Location:
    """Postal address and coordinates of a store or selling point."""

    address: str | None = None
    latitude: float | None = None
    longitude: float | None = None


@dataclass
class Store:
    """A store as reported by the catalog."""

    id: str
    name: str
    location: Location | None = None
    distance: float | None = None  # km from the user, computed locally


@dataclass
class Product:
    """A single catalog product with its best known price.

    ``price`` is ``None`` when the catalog has no price for the product,
    which is not the same thing as a price of zero.
    """

    id: str
    name: str
    price: float | None
    store: Store
    image_url: str | None = None
    category: str | None = None
    availability: bool | None = None


@dataclass
class SellingPoint:
    """One (store, price, timestamp) observation for a product."""

    id: str
    store_name: str
    price: float | None
    price_per_unit: float | None = None
    unit: str | None = None
    last_update: datetime | None = None
    location: Location | None = None
    distance: float | None = None


@dataclass
class ProductDetails(Product):
    """A product with every selling point the catalog knows about."""

    selling_points: list[SellingPoint] = field(
        default_factory=lambda: list[SellingPoint]()
    )


@dataclass
class Purchase:
    """A past shopping trip used for pattern analysis."""

    products: list[Product]
    date: datetime
