# src/clients/prixnc_client.py

"""Client for the prix.nc price catalog REST API."""

import json
import logging
from datetime import datetime
from typing import Any

from curl_cffi import requests as curl_requests

from src.config.settings import Settings
from src.models.errors import NotFoundError, UpstreamError
from src.models.product import (
    GeoPoint,
    Location,
    Product,
    ProductDetails,
    SellingPoint,
    Store,
)
from src.models.search_result import Pagination, SearchResult
from src.services.geo import haversine_km


def _to_float(value: Any) -> float | None:
    """Coerce an upstream numeric field, keeping "absent" as None."""
    if value is None or value == "":
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if number >= 0 else None


def _to_coordinate(value: Any) -> float | None:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _to_datetime(value: Any) -> datetime | None:
    if not value:
        return None
    try:
        return datetime.fromisoformat(str(value))
    except ValueError:
        return None


def _parse_location(data: dict[str, Any]) -> Location | None:
    """Build a Location from ``adresse``/``latitude``/``longitude`` keys."""
    address = data.get("adresse")
    latitude = _to_coordinate(data.get("latitude"))
    longitude = _to_coordinate(data.get("longitude"))
    if address is None and latitude is None and longitude is None:
        return None
    return Location(
        address=str(address) if address else None,
        latitude=latitude,
        longitude=longitude,
    )


def _distance_from(
    origin: GeoPoint, location: Location | None,
) -> float | None:
    """Haversine distance to a location, or None without coordinates."""
    if (
        location is None
        or location.latitude is None
        or location.longitude is None
    ):
        return None
    return haversine_km(
        origin.latitude,
        origin.longitude,
        location.latitude,
        location.longitude,
    )


def _embedded(data: dict[str, Any], key: str) -> list[dict[str, Any]]:
    """Return the ``_embedded.<key>`` collection, or an empty list."""
    embedded = data.get("_embedded") or {}
    if not isinstance(embedded, dict):
        return []
    items = embedded.get(key) or []
    return [i for i in items if isinstance(i, dict)]


def _price_key(product: Product) -> float:
    return product.price if product.price is not None else float("inf")


def _distance_key(product: Product) -> float:
    distance = product.store.distance
    return distance if distance is not None else float("inf")


class PrixNcClient:
    """Catalog client for prix.nc.

    Every call is a single blocking GET: no retry, no backoff.  A
    non-2xx status or an undecodable body raises :class:`UpstreamError`
    and the caller decides what to show.  Async callers run these
    methods through :func:`asyncio.to_thread`.
    """

    def __init__(
        self,
        base_url: str | None = None,
    ) -> None:
        self.logger = logging.getLogger("prixnc_ai.client")
        self.settings = Settings()
        self.base_url = (
            base_url or self.settings.API_BASE_URL
        ).rstrip("/")
        self.session = curl_requests.Session(
            impersonate=self.settings.IMPERSONATE_BROWSER
        )

    # ── Transport ────────────────────────────────────────

    def fetch_json(
        self,
        path: str,
        params: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """GET ``{base_url}/{path}`` and decode the JSON object body."""
        url = f"{self.base_url}/{path.lstrip('/')}"
        self.logger.debug("GET %s params=%s", url, params)
        try:
            resp = self.session.get(
                url,
                params=params,
                headers=self.settings.DEFAULT_HEADERS,
                timeout=self.settings.REQUEST_TIMEOUT,
            )
        except Exception as exc:
            self.logger.warning(
                "Catalog request error for %s: %s", url, exc,
                exc_info=True,
            )
            raise UpstreamError(
                "Catalog API unreachable",
                status_code=502,
                details=str(exc),
            ) from exc

        if not 200 <= resp.status_code < 300:
            self.logger.warning(
                "Catalog API HTTP %d for %s", resp.status_code, url,
            )
            raise UpstreamError(
                f"Catalog API returned HTTP {resp.status_code}",
                status_code=resp.status_code,
                details=str(resp.text or "")[:500],
            )

        try:
            data: Any = json.loads(resp.text)
        except ValueError as exc:
            raise UpstreamError(
                "Catalog API returned malformed JSON",
                status_code=502,
                details=str(exc),
            ) from exc
        if not isinstance(data, dict):
            raise UpstreamError(
                "Catalog API returned an unexpected payload",
                status_code=502,
                details=type(data).__name__,
            )
        return data

    def search_raw(
        self,
        query: str,
        page: int = 0,
        size: int | None = None,
        sort: str | None = None,
    ) -> dict[str, Any]:
        """Raw ``produitsprix/search`` page, as relayed to web clients."""
        return self.fetch_json(
            self.settings.SEARCH_ENDPOINT,
            {
                "nom": query,
                "page": page,
                "size": size or self.settings.DEFAULT_PAGE_SIZE,
                "sort": sort or self.settings.DEFAULT_SORT,
            },
        )

    def product_raw(self, product_id: str) -> dict[str, Any]:
        return self.fetch_json(
            f"{self.settings.PRODUCT_ENDPOINT}/{product_id}"
        )

    def selling_points_raw(self, catalog_id: str) -> dict[str, Any]:
        return self.fetch_json(
            self.settings.SELLING_POINTS_ENDPOINT,
            {"idProduit": catalog_id},
        )

    # ── Normalisation ────────────────────────────────────

    @staticmethod
    def parse_product(item: dict[str, Any]) -> Product:
        """Normalise one upstream ``produitsprix`` item into a Product.

        The availability flag is the negation of the upstream promotion
        flag.  That mapping looks backwards but is what the catalog
        consumers have always shown, so it is kept as is.
        """
        store = Store(
            id=str(
                item.get("idCommerce")
                or item.get("idCommune")
                or "unknown"
            ),
            name=str(item.get("secteurConso") or "unspecified"),
            location=_parse_location(item),
            distance=_to_float(item.get("distance")),
        )
        image_url = item.get("image") or item.get("imageUrl")
        return Product(
            id=str(item.get("id", "")),
            name=str(item.get("nom", "")),
            price=_to_float(item.get("meilleurPrix")),
            store=store,
            image_url=str(image_url) if image_url else None,
            category=str(
                item.get("sousSecteurConso") or "uncategorized"
            ),
            availability=not item.get("promotion"),
        )

    @staticmethod
    def parse_selling_point(item: dict[str, Any]) -> SellingPoint:
        """Normalise one upstream ``relevesprix`` record."""
        magasin = item.get("magasin")
        if isinstance(magasin, dict):
            store_name = magasin.get("nom")
            location = _parse_location(magasin) or _parse_location(item)
        else:
            store_name = magasin or item.get("nomMagasin")
            location = _parse_location(item)
        return SellingPoint(
            id=str(item.get("id", "")),
            store_name=str(store_name or "unspecified"),
            price=_to_float(item.get("prix")),
            price_per_unit=_to_float(item.get("prixParUnite")),
            unit=str(item["unite"]) if item.get("unite") else None,
            last_update=_to_datetime(item.get("dateReleve")),
            location=location,
            distance=_to_float(item.get("distance")),
        )

    # ── Public operations ────────────────────────────────

    def search(
        self,
        query: str,
        page: int = 0,
        page_size: int | None = None,
        location: GeoPoint | None = None,
        sort_by: str | None = None,
    ) -> SearchResult:
        """Search the catalog and return one zero-indexed page."""
        size = page_size or self.settings.DEFAULT_PAGE_SIZE
        data = self.search_raw(query, page=page, size=size)

        page_info = data.get("page") or {}
        pagination = Pagination(
            current_page=page,
            total_pages=int(page_info.get("totalPages") or 1),
            total_items=int(page_info.get("totalElements") or 0),
            page_size=size,
        )
        products = [
            self.parse_product(item)
            for item in _embedded(data, "produitsprix")
        ]
        if location is not None:
            for product in products:
                distance = _distance_from(
                    location, product.store.location
                )
                if distance is not None:
                    product.store.distance = distance
        products = self.sort_products(products, sort_by, location)

        self.logger.info(
            "Search '%s' page %d: %d products (%d total)",
            query,
            page,
            len(products),
            pagination.total_items,
        )
        return SearchResult(pagination=pagination, products=products)

    @staticmethod
    def sort_products(
        products: list[Product],
        sort_by: str | None,
        location: GeoPoint | None = None,
    ) -> list[Product]:
        """Order a page client-side by price, distance or store name."""
        if sort_by == "price":
            return sorted(products, key=_price_key)
        if sort_by == "distance" and location is not None:
            return sorted(products, key=_distance_key)
        if sort_by == "store":
            return sorted(
                products, key=lambda p: p.store.name.casefold()
            )
        return list(products)

    def resolve_candidate(self, product_name: str) -> dict[str, Any]:
        """Find the catalog record for a product name.

        Looks at a one-result first page, prefers an exact
        case-insensitive name match, otherwise takes the first hit.
        """
        data = self.search_raw(product_name, page=0, size=1)
        candidates = _embedded(data, "produitsprix")
        if not candidates:
            raise NotFoundError(
                f"No catalog entry for '{product_name}'"
            )
        wanted = product_name.strip().casefold()
        for candidate in candidates:
            if str(candidate.get("nom", "")).strip().casefold() == wanted:
                return candidate
        return candidates[0]

    def resolve_catalog_id(self, product_name: str) -> str:
        candidate = self.resolve_candidate(product_name)
        return str(candidate.get("idProduit") or candidate.get("id"))

    def selling_points(
        self,
        catalog_id: str,
        location: GeoPoint | None = None,
    ) -> list[SellingPoint]:
        """All selling points for a catalog id, in upstream order."""
        data = self.selling_points_raw(catalog_id)
        points = [
            self.parse_selling_point(item)
            for item in _embedded(data, "relevesprix")
        ]
        if location is not None:
            for point in points:
                distance = _distance_from(location, point.location)
                if distance is not None:
                    point.distance = distance
        return points

    def get_details(
        self,
        product_id: str,
        product_name: str,
        location: GeoPoint | None = None,
    ) -> ProductDetails:
        """Resolve the catalog id by name, then load its selling points.

        ``price`` on the result is the cheapest selling point.
        """
        candidate = self.resolve_candidate(product_name)
        catalog_id = str(
            candidate.get("idProduit") or candidate.get("id")
        )
        points = self.selling_points(catalog_id, location)
        if not points:
            raise NotFoundError(
                f"No selling points for '{product_name}' "
                f"(catalog id {catalog_id})"
            )

        base = self.parse_product(candidate)
        prices = [p.price for p in points if p.price is not None]
        self.logger.info(
            "Details for '%s': %d selling points",
            product_name,
            len(points),
        )
        return ProductDetails(
            id=product_id,
            name=base.name or product_name,
            price=min(prices) if prices else None,
            store=base.store,
            image_url=base.image_url,
            category=base.category,
            availability=base.availability,
            selling_points=points,
        )

    def get_product(self, product_id: str) -> Product:
        """Load a single product by its upstream id."""
        return self.parse_product(self.product_raw(product_id))
