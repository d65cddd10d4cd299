# tests/test_recommendation_engine.py

"""Tests for price aggregation, routing and purchase-pattern analysis."""

import unittest
from datetime import datetime
from unittest.mock import MagicMock

from src.models.product import GeoPoint, Purchase
from src.services.geo import haversine_km
from src.services.recommendation_engine import (
    aggregate_best_prices,
    analyze_shopping_patterns,
    optimize_shopping_route,
    parse_recommendations,
    rank_frequent_items,
)
from tests.helpers import make_product


class TestAggregateBestPrices(unittest.TestCase):
    """Cross-store optimum versus single-store totals."""

    def test_negative_savings_when_no_store_has_everything(self) -> None:
        results = [
            [
                make_product("Lait", 950, store="A"),
                make_product("Lait", 960, store="B"),
            ],
            [make_product("Pain", 50, store="B")],
        ]
        summary = aggregate_best_prices(results)
        self.assertEqual(summary.item_minimums, [950, 50])
        self.assertEqual(summary.best_total, 1000)
        self.assertEqual(summary.store_totals, {"A": 950, "B": 1010})
        self.assertEqual(summary.best_store, "A")
        self.assertEqual(summary.savings, -50)

    def test_positive_savings(self) -> None:
        results = [
            [
                make_product("Lait", 200, store="A"),
                make_product("Lait", 150, store="B"),
            ],
            [
                make_product("Pain", 100, store="A"),
                make_product("Pain", 130, store="B"),
            ],
        ]
        summary = aggregate_best_prices(results)
        self.assertEqual(summary.best_total, 250)
        self.assertEqual(summary.store_totals, {"A": 300, "B": 280})
        self.assertEqual(summary.best_store, "B")
        self.assertEqual(summary.savings, 30)

    def test_duplicate_names_in_store_keep_cheapest(self) -> None:
        results = [
            [
                make_product("Riz", 400, store="A", product_id="1"),
                make_product("Riz", 350, store="A", product_id="2"),
            ],
        ]
        summary = aggregate_best_prices(results)
        self.assertEqual(summary.store_totals, {"A": 350})
        self.assertEqual(
            [p.id for p in summary.store_products["A"]], ["2"]
        )

    def test_unpriced_products_ignored(self) -> None:
        results = [
            [
                make_product("Lait", None, store="A"),
                make_product("Lait", 300, store="B"),
            ],
            [make_product("Sel", None, store="A")],
        ]
        summary = aggregate_best_prices(results)
        self.assertEqual(summary.item_minimums, [300])
        self.assertEqual(summary.store_totals, {"B": 300})

    def test_no_results(self) -> None:
        summary = aggregate_best_prices([[], []])
        self.assertEqual(summary.best_total, 0)
        self.assertEqual(summary.store_totals, {})
        self.assertIsNone(summary.best_store)
        self.assertEqual(summary.savings, 0)


class TestHaversine(unittest.TestCase):
    """Great-circle distance on a 6371 km sphere."""

    def test_same_point_is_zero(self) -> None:
        self.assertEqual(haversine_km(-22.27, 166.44, -22.27, 166.44), 0)

    def test_antipodes(self) -> None:
        self.assertAlmostEqual(haversine_km(0, 0, 0, 180), 20015.1, delta=1)

    def test_symmetric(self) -> None:
        a = haversine_km(-22.27, 166.44, -21.5, 165.5)
        b = haversine_km(-21.5, 165.5, -22.27, 166.44)
        self.assertAlmostEqual(a, b)


class TestOptimizeShoppingRoute(unittest.TestCase):
    """Nearest-first store ordering and path length."""

    def test_orders_by_distance_unknown_last(self) -> None:
        products = [
            make_product("Lait", 1, store="Far", distance=5.0,
                         latitude=-22.3, longitude=166.5),
            make_product("Pain", 1, store="Unknown"),
            make_product("Riz", 1, store="Near", distance=1.0,
                         latitude=-22.28, longitude=166.45),
            make_product("Sel", 1, store="Far", distance=5.0,
                         latitude=-22.3, longitude=166.5),
        ]
        route = optimize_shopping_route(
            products, GeoPoint(latitude=-22.27, longitude=166.44)
        )
        self.assertEqual(
            [s.store.name for s in route.stops], ["Near", "Far", "Unknown"]
        )
        self.assertEqual(
            [p.name for p in route.stops[1].products], ["Lait", "Sel"]
        )
        expected = haversine_km(-22.27, 166.44, -22.28, 166.45) + haversine_km(
            -22.28, 166.45, -22.3, 166.5
        )
        self.assertAlmostEqual(route.total_distance, expected)

    def test_all_stores_at_user_location(self) -> None:
        products = [
            make_product("A", 1, store="S1", distance=0.0,
                         latitude=-22.27, longitude=166.44),
            make_product("B", 1, store="S2", distance=0.0,
                         latitude=-22.27, longitude=166.44),
        ]
        route = optimize_shopping_route(
            products, GeoPoint(latitude=-22.27, longitude=166.44)
        )
        self.assertEqual(len(route.stops), 2)
        self.assertEqual(route.total_distance, 0)

    def test_empty_products(self) -> None:
        route = optimize_shopping_route([], GeoPoint(0, 0))
        self.assertEqual(route.stops, [])
        self.assertEqual(route.total_distance, 0)


def _purchase(*names: str, price: float = 100) -> Purchase:
    return Purchase(
        products=[make_product(n, price) for n in names],
        date=datetime(2024, 1, 1),
    )


class TestPatternAnalysis(unittest.TestCase):
    """Frequent-item ranking and recommendation parsing."""

    def test_rank_by_count_ties_keep_first_seen(self) -> None:
        history = [
            _purchase("Pain", "Lait"),
            _purchase("Riz", "Lait"),
            _purchase("Riz"),
        ]
        names, trends = rank_frequent_items(history)
        self.assertEqual(names, ["Lait", "Riz", "Pain"])
        self.assertEqual(trends["Lait"], [100, 100])

    def test_rank_limit(self) -> None:
        history = [_purchase(*[f"P{i}" for i in range(15)])]
        names, _ = rank_frequent_items(history)
        self.assertEqual(names, [f"P{i}" for i in range(10)])

    def test_parse_recommendations_strips_numbering(self) -> None:
        text = "1. Buy in bulk\n\n2.  Compare stores\n3.Use the cart"
        self.assertEqual(
            parse_recommendations(text),
            ["Buy in bulk", "Compare stores", "Use the cart"],
        )

    def test_parse_recommendations_truncates(self) -> None:
        text = "\n".join(f"{i}. tip {i}" for i in range(1, 9))
        self.assertEqual(
            parse_recommendations(text),
            [f"tip {i}" for i in range(1, 6)],
        )

    def test_analyze_uses_model_at_low_temperature(self) -> None:
        model = MagicMock()
        model.complete.return_value = "1. Acheter le lait chez A\n2. Grouper"
        history = [_purchase("Lait", "Pain"), _purchase("Lait")]
        analysis = analyze_shopping_patterns(history, model)
        self.assertEqual(analysis.frequent_items, ["Lait", "Pain"])
        self.assertEqual(
            analysis.recommendations,
            ["Acheter le lait chez A", "Grouper"],
        )
        prompt = model.complete.call_args.args[0]
        self.assertIn("Lait\nPain", prompt)
        self.assertEqual(model.complete.call_args.kwargs["temperature"], 0.2)


if __name__ == "__main__":
    unittest.main()
