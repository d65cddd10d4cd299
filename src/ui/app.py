# src/ui/app.py

"""Terminal UI for the prixnc_ai shopping assistant."""

import asyncio
import logging
from pathlib import Path
from typing import cast

from rich.text import Text
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Container, Horizontal
from textual.widgets import (
    Button,
    DataTable,
    Footer,
    Header,
    Input,
    Static,
)

from src.cli.runner import format_price
from src.clients.prixnc_client import PrixNcClient
from src.config.settings import Settings
from src.models.errors import NotFoundError, OcrEngineError, PrixNcError
from src.models.product import Product
from src.models.search_result import Pagination
from src.services.cart import ShoppingCart
from src.services.recommendation_engine import aggregate_best_prices
from src.services.shopping_pipeline import ShoppingPipeline

logger = logging.getLogger("prixnc_ai.ui")

GENERIC_ERROR = "Une erreur est survenue. Veuillez réessayer."


class PrixNcApp(App[object]):
    """Search, compare and build a cart from the prix.nc catalog."""

    CSS_PATH = "styles.css"

    BINDINGS = [
        Binding("q", "quit", "Quitter"),
        Binding("n", "next_page", "Page suiv."),
        Binding("b", "previous_page", "Page préc."),
        Binding("a", "add_to_cart", "Ajouter"),
        Binding("x", "remove_from_cart", "Retirer"),
        Binding("c", "clear_cart", "Vider"),
        Binding("p", "sort_price", "Tri prix"),
        Binding("s", "sort_store", "Tri magasin"),
        Binding("d", "details", "Détails"),
    ]

    def __init__(self) -> None:
        super().__init__()
        self.settings = Settings()
        self.client = PrixNcClient()
        self.cart = ShoppingCart()
        self.products: list[Product] = []
        self.current_query: str = ""
        self.pagination: Pagination | None = None
        self._pipeline: ShoppingPipeline | None = None

    @property
    def pipeline(self) -> ShoppingPipeline:
        if self._pipeline is None:
            self._pipeline = ShoppingPipeline(client=self.client)
        return self._pipeline

    def compose(self) -> ComposeResult:
        """Build the widget tree for the TUI."""
        yield Header()
        yield Container(
            Static("🛒 Prix NC AI", id="title"),
            Horizontal(
                Input(
                    placeholder="Rechercher un produit...",
                    id="search_input",
                ),
                Button("Rechercher", variant="primary", id="search_btn"),
                id="search_bar",
            ),
            Horizontal(
                Input(
                    placeholder="Photo de la liste de courses (chemin)...",
                    id="scan_input",
                ),
                Button("Analyser", id="scan_btn"),
                id="scan_bar",
            ),
            Static("Prêt", id="status"),
            cast(
                DataTable[str | Text],
                DataTable(
                    id="results_table",
                    zebra_stripes=True,
                    cursor_type="row",
                ),
            ),
            Static("", id="details"),
            Static("Panier (0)", id="cart_title"),
            cast(
                DataTable[str | Text],
                DataTable(id="cart_table", cursor_type="row"),
            ),
            Static("", id="summary"),
            id="main_container",
        )
        yield Footer()

    def on_mount(self) -> None:
        """Configure table columns on startup."""
        self._results_table().add_columns(
            "Produit", "Prix", "Magasin", "Catégorie", "Disponibilité"
        )
        self._cart_table().add_columns("Magasin", "Produit", "Prix")

    def _results_table(self) -> DataTable[str | Text]:
        return cast(
            DataTable[str | Text],
            self.query_one("#results_table", DataTable),
        )

    def _cart_table(self) -> DataTable[str | Text]:
        return cast(
            DataTable[str | Text],
            self.query_one("#cart_table", DataTable),
        )

    def _set_status(self, message: str) -> None:
        self.query_one("#status", Static).update(message)

    # ── Events ───────────────────────────────────────────

    async def on_button_pressed(self, event: Button.Pressed) -> None:
        """Handle button click events."""
        if event.button.id == "search_btn":
            await self.perform_search()
        elif event.button.id == "scan_btn":
            await self.perform_scan()

    async def on_input_submitted(self, event: Input.Submitted) -> None:
        """Handle Enter key in either input."""
        if event.input.id == "search_input":
            await self.perform_search()
        elif event.input.id == "scan_input":
            await self.perform_scan()

    # ── Search ───────────────────────────────────────────

    async def perform_search(
        self, page: int = 0, query: str | None = None,
    ) -> None:
        """Search the input value, or *query* when paging a result set."""
        if query is None:
            query = self.query_one("#search_input", Input).value.strip()
        if not query:
            self.notify(
                "Veuillez saisir un produit", severity="warning"
            )
            return

        self.current_query = query
        self._set_status(f"🔍 Recherche de '{query}'...")
        try:
            result = await asyncio.to_thread(
                self.client.search, query, page
            )
        except PrixNcError as exc:
            logger.error(
                "Search failed for '%s'", query, exc_info=True
            )
            self.notify(GENERIC_ERROR, severity="error")
            self._set_status(f"❌ Erreur: {exc}")
            return

        self.products = result.products
        self.pagination = result.pagination
        self.populate_table()
        if not self.products:
            self._set_status("❌ Aucun produit trouvé")
            return
        pg = result.pagination
        self._set_status(
            f"✅ {pg.total_items} produits, page "
            f"{pg.current_page + 1}/{pg.total_pages}"
        )

    async def action_next_page(self) -> None:
        if self.pagination is not None and self.pagination.has_next:
            await self.perform_search(
                self.pagination.current_page + 1, self.current_query
            )

    async def action_previous_page(self) -> None:
        if self.pagination is not None and self.pagination.has_previous:
            await self.perform_search(
                self.pagination.current_page - 1, self.current_query
            )

    def populate_table(self) -> None:
        """Fill the results table, highlighting the cheapest product."""
        table = self._results_table()
        table.clear()
        prices = [p.price for p in self.products if p.price is not None]
        min_price = min(prices, default=None)

        for p in self.products:
            is_cheapest = p.price is not None and p.price == min_price
            table.add_row(
                p.name[:60],
                Text(
                    format_price(p.price),
                    style="bold green" if is_cheapest else "",
                ),
                p.store.name,
                p.category or "",
                "En stock" if p.availability else "Stock non confirmé",
            )

    def action_sort_price(self) -> None:
        """Sort products by price, ascending (unpriced last)."""
        self.products = PrixNcClient.sort_products(self.products, "price")
        self.populate_table()

    def action_sort_store(self) -> None:
        """Sort products by store name."""
        self.products = PrixNcClient.sort_products(self.products, "store")
        self.populate_table()

    def _selected_product(self) -> Product | None:
        row = self._results_table().cursor_row
        if 0 <= row < len(self.products):
            return self.products[row]
        return None

    async def action_details(self) -> None:
        """Show every selling point of the highlighted product."""
        product = self._selected_product()
        if product is None:
            return
        panel = self.query_one("#details", Static)
        try:
            details = await asyncio.to_thread(
                self.client.get_details, product.id, product.name
            )
        except NotFoundError:
            self.notify("Produit introuvable", severity="warning")
            return
        except PrixNcError:
            logger.error(
                "Details failed for '%s'", product.name, exc_info=True
            )
            self.notify(
                "Impossible de charger les détails du produit.",
                severity="error",
            )
            return

        lines = [
            f"[b]{details.name}[/b]  à partir de "
            f"{format_price(details.price)}",
            f"Points de vente ({len(details.selling_points)})",
        ]
        for point in details.selling_points:
            lines.append(
                f"  {point.store_name}: {format_price(point.price)}"
            )
        panel.update("\n".join(lines))

    # ── Cart ─────────────────────────────────────────────

    def refresh_cart(self) -> None:
        table = self._cart_table()
        table.clear()
        for store_name, products in self.cart.by_store().items():
            for p in products:
                table.add_row(store_name, p.name[:50], format_price(p.price))
        self.query_one("#cart_title", Static).update(
            f"Panier ({len(self.cart)}) total "
            f"{format_price(self.cart.total())}"
        )

    def action_add_to_cart(self) -> None:
        product = self._selected_product()
        if product is None:
            return
        if self.cart.add(product):
            self.notify(f"Ajouté: {product.name}")
        else:
            self.notify("Déjà dans le panier", severity="warning")
        self.refresh_cart()

    def action_remove_from_cart(self) -> None:
        # Cart rows are displayed grouped by store
        row = self._cart_table().cursor_row
        ordered = [
            p for products in self.cart.by_store().values() for p in products
        ]
        if 0 <= row < len(ordered):
            self.cart.remove(ordered[row].id)
            self.refresh_cart()

    def action_clear_cart(self) -> None:
        self.cart.clear()
        self.refresh_cart()

    # ── Shopping-list scan ───────────────────────────────

    async def perform_scan(self) -> None:
        """Run the OCR → model → matcher chain on an image path."""
        raw_path = self.query_one("#scan_input", Input).value.strip()
        path = Path(raw_path).expanduser()
        if not raw_path or not path.is_file():
            self.notify("Image introuvable", severity="warning")
            return

        self._set_status(f"📷 Analyse de {path.name}...")
        try:
            image = await asyncio.to_thread(path.read_bytes)
            result = await self.pipeline.process_image(image)
        except OcrEngineError:
            logger.error("OCR failed for %s", path, exc_info=True)
            self.notify(
                "Impossible de lire le texte de l'image.", severity="error"
            )
            self._set_status("❌ Échec de l'analyse")
            return
        except PrixNcError:
            logger.error("Scan failed for %s", path, exc_info=True)
            self.notify(GENERIC_ERROR, severity="error")
            self._set_status("❌ Échec de l'analyse")
            return

        self.products = [
            product
            for products in result.search_results
            for product in products
        ]
        self.pagination = None
        self.populate_table()

        summary = aggregate_best_prices(result.search_results)
        text = (
            f"Meilleur total: {format_price(summary.best_total)}"
        )
        if summary.best_store is not None:
            text += (
                f"  |  Magasin le moins cher: {summary.best_store} "
                f"({format_price(summary.store_totals[summary.best_store])}, "
                f"écart {format_price(summary.savings)})"
            )
        self.query_one("#summary", Static).update(text)
        self._set_status(
            f"✅ {len(result.items)} articles reconnus, "
            f"{len(result.failures)} recherches échouées"
        )
