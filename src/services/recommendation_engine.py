# src/services/recommendation_engine.py

"""Best-price aggregation, shopping routes and purchase-pattern advice."""

import logging
import re
from collections import Counter
from dataclasses import dataclass, field

from src.config.settings import Settings
from src.llm.chat_model import ChatModel
from src.models.product import GeoPoint, Product, Purchase, Store
from src.services.geo import haversine_km

logger = logging.getLogger("prixnc_ai.recommendations")

RECOMMENDATION_PROMPT = """\
You are a shopping assistant helping users optimise their grocery shopping.
Based on the purchase history below, suggest {count} recommendations to help
the user save money or improve their shopping experience.

Frequently purchased items:
{frequent_items}

Provide {count} specific, actionable recommendations:"""

_ORDINAL_RE = re.compile(r"^\d+\.\s*")


@dataclass
class BestPriceSummary:
    """Cross-store optimum versus buying everything in a single store."""

    item_minimums: list[float] = field(
        default_factory=lambda: list[float]()
    )
    best_total: float = 0.0
    store_products: dict[str, list[Product]] = field(
        default_factory=lambda: dict[str, list[Product]]()
    )
    store_totals: dict[str, float] = field(
        default_factory=lambda: dict[str, float]()
    )
    best_store: str | None = None
    savings: float = 0.0


@dataclass
class RouteStop:
    """One store to visit and what to pick up there."""

    store: Store
    products: list[Product]


@dataclass
class ShoppingRoute:
    stops: list[RouteStop] = field(
        default_factory=lambda: list[RouteStop]()
    )
    total_distance: float = 0.0


@dataclass
class PatternAnalysis:
    """Frequent items, their price history and model advice."""

    frequent_items: list[str] = field(
        default_factory=lambda: list[str]()
    )
    price_trends: dict[str, list[float]] = field(
        default_factory=lambda: dict[str, list[float]]()
    )
    recommendations: list[str] = field(
        default_factory=lambda: list[str]()
    )


def aggregate_best_prices(
    results: list[list[Product]],
) -> BestPriceSummary:
    """Compare the cross-store optimum with single-store baskets.

    For each searched item the cheapest candidate sets the reference
    price; their sum is ``best_total``.  Every candidate is then grouped
    by store name, deduplicated by product name (cheapest kept) and
    summed into ``store_totals``.  ``savings`` is the cheapest store
    total minus ``best_total``.  It is negative when no single store
    carries every item, which is an expected outcome.

    Products without a price take no part in any total.
    """
    summary = BestPriceSummary()
    by_store: dict[str, dict[str, Product]] = {}

    for candidates in results:
        priced = [
            (p.price, p) for p in candidates if p.price is not None
        ]
        if not priced:
            continue
        summary.item_minimums.append(min(price for price, _ in priced))
        for price, product in priced:
            unique = by_store.setdefault(product.store.name, {})
            existing = unique.get(product.name)
            if (
                existing is None
                or existing.price is None
                or price < existing.price
            ):
                unique[product.name] = product

    summary.best_total = sum(summary.item_minimums)
    for store_name, unique in by_store.items():
        products = list(unique.values())
        summary.store_products[store_name] = products
        summary.store_totals[store_name] = sum(
            p.price for p in products if p.price is not None
        )

    if summary.store_totals:
        summary.best_store = min(
            summary.store_totals, key=lambda s: summary.store_totals[s]
        )
        summary.savings = (
            summary.store_totals[summary.best_store] - summary.best_total
        )

    logger.info(
        "Aggregated %d items over %d stores: best total %.2f, "
        "savings %.2f",
        len(summary.item_minimums),
        len(summary.store_totals),
        summary.best_total,
        summary.savings,
    )
    return summary


def optimize_shopping_route(
    products: list[Product],
    user_location: GeoPoint,
) -> ShoppingRoute:
    """Visit stores nearest-first and add up the path length.

    Stores are ordered by their stored ``distance`` (unknown distances
    go last, input order kept among equals), then the haversine length
    of user → first store → second store … is summed.  This is an
    ordering heuristic, not a shortest-route solver.  Stops without
    coordinates are skipped when measuring.
    """
    grouped: dict[str, RouteStop] = {}
    for product in products:
        stop = grouped.get(product.store.id)
        if stop is None:
            grouped[product.store.id] = RouteStop(
                store=product.store, products=[product]
            )
        else:
            stop.products.append(product)

    stops = sorted(
        grouped.values(),
        key=lambda s: (
            s.store.distance
            if s.store.distance is not None
            else float("inf")
        ),
    )

    total = 0.0
    prev_lat, prev_lon = user_location.latitude, user_location.longitude
    for stop in stops:
        loc = stop.store.location
        if loc is None or loc.latitude is None or loc.longitude is None:
            continue
        total += haversine_km(prev_lat, prev_lon, loc.latitude, loc.longitude)
        prev_lat, prev_lon = loc.latitude, loc.longitude

    return ShoppingRoute(stops=stops, total_distance=total)


def rank_frequent_items(
    history: list[Purchase],
    limit: int | None = None,
) -> tuple[list[str], dict[str, list[float]]]:
    """Top product names by purchase count and their price history.

    Ties keep the order in which names were first encountered.
    """
    counts: Counter[str] = Counter()
    trends: dict[str, list[float]] = {}
    for purchase in history:
        for product in purchase.products:
            counts[product.name] += 1
            prices = trends.setdefault(product.name, [])
            if product.price is not None:
                prices.append(product.price)

    # sorted() is stable, so equal counts keep first-seen order
    ranked = sorted(counts.items(), key=lambda kv: -kv[1])
    top = ranked[: limit or Settings.FREQUENT_ITEMS_LIMIT]
    return [name for name, _ in top], trends


def parse_recommendations(text: str, limit: int | None = None) -> list[str]:
    """Split model text into at most *limit* recommendation lines."""
    lines = [
        _ORDINAL_RE.sub("", line).strip()
        for line in text.splitlines()
    ]
    non_empty = [line for line in lines if line]
    return non_empty[: limit or Settings.RECOMMENDATION_COUNT]


def analyze_shopping_patterns(
    history: list[Purchase],
    model: ChatModel,
) -> PatternAnalysis:
    """Rank frequent purchases and ask the model for advice on them."""
    frequent_items, trends = rank_frequent_items(history)
    count = Settings.RECOMMENDATION_COUNT
    reply = model.complete(
        RECOMMENDATION_PROMPT.format(
            count=count,
            frequent_items="\n".join(frequent_items),
        ),
        temperature=Settings.RECOMMENDATION_TEMPERATURE,
    )
    recommendations = parse_recommendations(reply, count)
    logger.info(
        "Pattern analysis: %d purchases, %d frequent items, "
        "%d recommendations",
        len(history),
        len(frequent_items),
        len(recommendations),
    )
    return PatternAnalysis(
        frequent_items=frequent_items,
        price_trends=trends,
        recommendations=recommendations,
    )
