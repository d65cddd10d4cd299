# tests/helpers.py

"""Builders for catalog payloads and model objects used across tests."""

import json
import threading
import time
from typing import Any
from unittest.mock import MagicMock

from src.models.errors import UpstreamError
from src.models.product import GeoPoint, Location, Product, Store
from src.models.search_result import Pagination, SearchResult


def make_response(payload: Any, status_code: int = 200) -> MagicMock:
    """Fake curl_cffi response carrying *payload* as JSON text."""
    resp = MagicMock()
    resp.status_code = status_code
    resp.text = payload if isinstance(payload, str) else json.dumps(payload)
    return resp


def catalog_item(
    item_id: str,
    nom: str,
    prix: float | None,
    **extra: Any,
) -> dict[str, Any]:
    """A ``produitsprix`` record as the catalog returns it."""
    item: dict[str, Any] = {
        "id": item_id,
        "nom": nom,
        "meilleurPrix": prix,
        "idCommerce": f"com-{item_id}",
        "secteurConso": "Alimentation",
        "sousSecteurConso": "Produits laitiers",
        "promotion": False,
    }
    item.update(extra)
    return item


def search_page(
    items: list[dict[str, Any]],
    total_pages: int = 1,
    total_elements: int | None = None,
) -> dict[str, Any]:
    return {
        "_embedded": {"produitsprix": items},
        "page": {
            "totalPages": total_pages,
            "totalElements": (
                len(items) if total_elements is None else total_elements
            ),
        },
    }


def selling_points_page(points: list[dict[str, Any]]) -> dict[str, Any]:
    return {"_embedded": {"relevesprix": points}}


def make_product(
    name: str,
    price: float | None,
    store: str = "Store A",
    product_id: str | None = None,
    store_id: str | None = None,
    distance: float | None = None,
    latitude: float | None = None,
    longitude: float | None = None,
) -> Product:
    """Create a Product with just enough store data for the engine."""
    location = (
        Location(latitude=latitude, longitude=longitude)
        if latitude is not None or longitude is not None
        else None
    )
    return Product(
        id=product_id or f"{store}:{name}",
        name=name,
        price=price,
        store=Store(
            id=store_id or store,
            name=store,
            location=location,
            distance=distance,
        ),
    )


class FakeClient:
    """Catalog stand-in answering from a dict of item -> prices."""

    def __init__(
        self,
        catalog: dict[str, list[float]],
        delays: dict[str, float] | None = None,
        failing: set[str] | None = None,
        barrier: threading.Barrier | None = None,
    ) -> None:
        self.catalog = catalog
        self.delays = delays or {}
        self.failing = failing or set()
        self.barrier = barrier
        self.calls: list[tuple[str, int, int, GeoPoint | None, str]] = []

    def search(
        self,
        query: str,
        page: int = 0,
        page_size: int | None = None,
        location: GeoPoint | None = None,
        sort_by: str | None = None,
    ) -> SearchResult:
        self.calls.append(
            (query, page, page_size or 0, location, sort_by or "")
        )
        if self.barrier is not None:
            self.barrier.wait()
        time.sleep(self.delays.get(query, 0))
        if query in self.failing:
            raise UpstreamError("HTTP 500", status_code=500)
        products = [
            make_product(query, price, store=f"S{i}")
            for i, price in enumerate(self.catalog.get(query, []))
        ]
        return SearchResult(
            pagination=Pagination(0, 1, len(products), 15),
            products=products,
        )
