# tests/test_cart.py

"""Tests for the session shopping cart."""

import unittest

from src.services.cart import UNSPECIFIED_STORE, ShoppingCart
from tests.helpers import make_product


class TestShoppingCart(unittest.TestCase):
    """Add/remove semantics, totals and store grouping."""

    def setUp(self) -> None:
        self.cart = ShoppingCart()

    def test_add_is_idempotent_per_id(self) -> None:
        lait = make_product("Lait", 199, product_id="1")
        self.assertTrue(self.cart.add(lait))
        self.assertFalse(self.cart.add(lait))
        self.assertEqual(len(self.cart), 1)
        self.assertIn("1", self.cart)

    def test_remove(self) -> None:
        self.cart.add(make_product("Lait", 199, product_id="1"))
        self.assertTrue(self.cart.remove("1"))
        self.assertFalse(self.cart.remove("1"))
        self.assertEqual(len(self.cart), 0)

    def test_clear_reports_count(self) -> None:
        self.cart.add(make_product("Lait", 199, product_id="1"))
        self.cart.add(make_product("Pain", 120, product_id="2"))
        self.assertEqual(self.cart.clear(), 2)
        self.assertEqual(self.cart.items, [])

    def test_total_skips_unpriced(self) -> None:
        self.cart.add(make_product("Lait", 199, product_id="1"))
        self.cart.add(make_product("Sel", None, product_id="2"))
        self.cart.add(make_product("Sac", 0, product_id="3"))
        self.assertEqual(self.cart.total(), 199)

    def test_by_store_keeps_insertion_order(self) -> None:
        self.cart.add(make_product("Lait", 1, store="B", product_id="1"))
        self.cart.add(make_product("Pain", 1, store="A", product_id="2"))
        self.cart.add(make_product("Riz", 1, store="B", product_id="3"))
        self.cart.add(make_product("Sel", 1, store="", product_id="4"))
        grouped = self.cart.by_store()
        self.assertEqual(list(grouped), ["B", "A", UNSPECIFIED_STORE])
        self.assertEqual([p.name for p in grouped["B"]], ["Lait", "Riz"])


if __name__ == "__main__":
    unittest.main()
