# src/cli/runner.py

"""Headless CLI runner: search, details, scan, patterns and health."""

import json
import logging
import sys
from dataclasses import asdict
from datetime import datetime
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.table import Table

from src.clients.prixnc_client import PrixNcClient
from src.config.settings import Settings
from src.llm.chat_model import ChatModel
from src.models.errors import NotFoundError, OcrEngineError, PrixNcError
from src.models.product import GeoPoint, Product, Purchase, Store
from src.services.recommendation_engine import (
    BestPriceSummary,
    analyze_shopping_patterns,
)
from src.services.shopping_pipeline import ShoppingPipeline

logger = logging.getLogger("prixnc_ai.cli")

# Stderr console for status messages so stdout stays clean for JSON
_err = Console(stderr=True)

GENERIC_ERROR = "Une erreur est survenue. Veuillez réessayer."


def format_price(price: float | None) -> str:
    """Render a price the way the catalog shows it (``1 299 XPF``)."""
    if price is None:
        return "Prix non disponible"
    amount = f"{price:,.0f}".replace(",", " ")
    return f"{amount} {Settings.CURRENCY}"


def _dump_json(payload: Any) -> None:
    json.dump(payload, sys.stdout, ensure_ascii=False, indent=2, default=str)
    sys.stdout.write("\n")


def _products_table(title: str, products: list[Product]) -> Table:
    table = Table(title=title, show_lines=True, title_style="bold cyan")
    table.add_column("#", style="dim", width=4)
    table.add_column("Produit", max_width=50)
    table.add_column("Prix", justify="right", style="green")
    table.add_column("Magasin", style="magenta")
    table.add_column("Catégorie", style="dim")
    table.add_column("Distance", justify="right")
    for idx, p in enumerate(products, 1):
        distance = (
            f"{p.store.distance:.1f} km"
            if p.store.distance is not None
            else "—"
        )
        table.add_row(
            str(idx),
            p.name[:50],
            format_price(p.price),
            p.store.name,
            p.category or "",
            distance,
        )
    return table


def _summary_table(summary: BestPriceSummary) -> Table:
    table = Table(
        title="Totaux par magasin", show_lines=True, title_style="bold cyan"
    )
    table.add_column("Magasin", style="magenta")
    table.add_column("Produits", justify="right")
    table.add_column("Total", justify="right", style="green")
    for store, total in sorted(
        summary.store_totals.items(), key=lambda kv: kv[1]
    ):
        table.add_row(
            store,
            str(len(summary.store_products[store])),
            format_price(total),
        )
    return table


def _location(
    latitude: float | None, longitude: float | None,
) -> GeoPoint | None:
    if latitude is None or longitude is None:
        return None
    return GeoPoint(latitude=latitude, longitude=longitude)


def cli_search(
    query: str,
    page: int,
    size: int | None,
    sort_by: str | None,
    output_format: str,
    latitude: float | None = None,
    longitude: float | None = None,
) -> int:
    """Run one catalog search and return an exit code (0=ok, 1=fail)."""
    client = PrixNcClient()
    _err.print(f"[bold]Recherche:[/bold] {query}  [dim]page={page}[/dim]")
    try:
        result = client.search(
            query,
            page=page,
            page_size=size,
            location=_location(latitude, longitude),
            sort_by=sort_by,
        )
    except PrixNcError:
        logger.error("Search failed for '%s'", query, exc_info=True)
        _err.print(f"[red]{GENERIC_ERROR}[/red]")
        return 1

    pg = result.pagination
    if not result.products:
        _err.print("[yellow]Aucun produit trouvé.[/yellow]")
        return 1
    _err.print(
        f"[green]✓ {len(result.products)} produits "
        f"(page {pg.current_page + 1}/{pg.total_pages}, "
        f"{pg.total_items} au total)[/green]"
    )

    if output_format == "table":
        Console().print(_products_table("Résultats", result.products))
    else:
        _dump_json(asdict(result))
    return 0


def cli_details(
    product_id: str,
    product_name: str,
    output_format: str,
) -> int:
    """Show every selling point of one product."""
    client = PrixNcClient()
    try:
        details = client.get_details(product_id, product_name)
    except NotFoundError:
        _err.print("[yellow]Produit introuvable.[/yellow]")
        return 1
    except PrixNcError:
        logger.error(
            "Details failed for '%s'", product_name, exc_info=True
        )
        _err.print(f"[red]{GENERIC_ERROR}[/red]")
        return 1

    if output_format != "table":
        _dump_json(asdict(details))
        return 0

    _err.print(
        f"[bold]{details.name}[/bold]  à partir de "
        f"{format_price(details.price)}"
    )
    table = Table(
        title=f"Points de vente ({len(details.selling_points)})",
        show_lines=True,
        title_style="bold cyan",
    )
    table.add_column("Magasin", style="magenta")
    table.add_column("Prix", justify="right", style="green")
    table.add_column("Prix unitaire", justify="right")
    table.add_column("Mise à jour", style="dim")
    for point in details.selling_points:
        unit_price = (
            f"{format_price(point.price_per_unit)}/{point.unit or 'u'}"
            if point.price_per_unit is not None
            else "—"
        )
        table.add_row(
            point.store_name,
            format_price(point.price),
            unit_price,
            point.last_update.strftime("%d/%m/%Y")
            if point.last_update
            else "—",
        )
    Console().print(table)
    return 0


async def cli_scan(
    image_path: str,
    output_format: str,
    latitude: float | None = None,
    longitude: float | None = None,
) -> int:
    """Scan a shopping-list photo and compare stores for its items."""
    path = Path(image_path)
    if not path.is_file():
        _err.print(f"[red]Image introuvable: {image_path}[/red]")
        return 1

    pipeline = ShoppingPipeline()
    _err.print(f"[bold]Analyse de l'image:[/bold] {path.name}")
    try:
        result = await pipeline.process_image(
            path.read_bytes(), _location(latitude, longitude)
        )
    except OcrEngineError:
        logger.error("OCR failed for %s", path, exc_info=True)
        _err.print("[red]Impossible de lire le texte de l'image.[/red]")
        return 1
    except PrixNcError:
        logger.error("Scan failed for %s", path, exc_info=True)
        _err.print(f"[red]{GENERIC_ERROR}[/red]")
        return 1

    summary = pipeline.recommend(result)
    _err.print(
        f"[green]✓ {len(result.items)} articles "
        f"({result.item_source.value})[/green]"
    )
    for failure in result.failures:
        _err.print(
            f"[yellow]Recherche échouée pour '{failure.item}'[/yellow]"
        )

    if output_format != "table":
        _dump_json(
            {
                "items": result.items,
                "itemSource": result.item_source.value,
                "searchResults": [
                    [asdict(p) for p in products]
                    for products in result.search_results
                ],
                "summary": asdict(summary),
            }
        )
        return 0

    console = Console()
    for item, products in zip(result.items, result.search_results):
        console.print(_products_table(item, products[:5]))
    console.print(_summary_table(summary))
    console.print(
        f"Meilleur total (multi-magasins): "
        f"[bold]{format_price(summary.best_total)}[/bold]"
    )
    if summary.best_store is not None:
        console.print(
            f"Magasin le moins cher: [bold]{summary.best_store}[/bold] "
            f"(écart {format_price(summary.savings)})"
        )
    return 0


def load_purchase_history(path: Path) -> list[Purchase]:
    """Read ``[{"date": ISO, "products": [{"name", "price", ...}]}]``."""
    with open(path, encoding="utf-8") as f:
        raw: list[dict[str, Any]] = json.load(f)

    history: list[Purchase] = []
    for entry in raw:
        products = [
            Product(
                id=str(p.get("id", p.get("name", ""))),
                name=str(p.get("name", "")),
                price=float(p["price"]) if p.get("price") is not None else None,
                store=Store(
                    id=str(p.get("storeId", "unknown")),
                    name=str(p.get("store", "unspecified")),
                ),
            )
            for p in entry.get("products", [])
        ]
        history.append(
            Purchase(
                products=products,
                date=datetime.fromisoformat(str(entry["date"])),
            )
        )
    return history


def run_pattern_analysis(history_path: str, output_format: str) -> int:
    """Rank frequent purchases and print model recommendations."""
    try:
        history = load_purchase_history(Path(history_path))
    except (OSError, ValueError, KeyError, TypeError):
        logger.error(
            "Unreadable purchase history %s", history_path, exc_info=True
        )
        _err.print("[red]Historique d'achats illisible.[/red]")
        return 1

    try:
        analysis = analyze_shopping_patterns(history, ChatModel())
    except PrixNcError:
        logger.error("Pattern analysis failed", exc_info=True)
        _err.print(f"[red]{GENERIC_ERROR}[/red]")
        return 1

    if output_format != "table":
        _dump_json(asdict(analysis))
        return 0

    console = Console()
    console.print("[bold cyan]Articles fréquents[/bold cyan]")
    for name in analysis.frequent_items:
        console.print(f"  • {name}")
    console.print("[bold cyan]Recommandations[/bold cyan]")
    for idx, rec in enumerate(analysis.recommendations, 1):
        console.print(f"  {idx}. {rec}")
    return 0


async def run_health_check() -> int:
    """Run connectivity health check on every collaborator."""
    from src.services.health_checker import HealthChecker

    _err.print("[bold]Vérification des services...[/bold]")
    results = await HealthChecker().check_all()

    table = Table(
        title="État des services",
        show_lines=True,
        title_style="bold cyan",
    )
    table.add_column("Service", style="bold")
    table.add_column("Statut", justify="center")
    table.add_column("Latence", justify="right")
    table.add_column("Notes", style="dim")

    any_down = False
    for r in results:
        if r.status == "ok":
            status = "[green]✅ OK[/green]"
        elif r.status == "slow":
            status = "[yellow]⚠️  LENT[/yellow]"
        else:
            status = "[red]❌ HS[/red]"
            any_down = True

        latency = (
            f"{r.latency_ms:.0f}ms"
            if r.latency_ms > 0
            else "—"
        )
        table.add_row(r.component, status, latency, r.message)

    Console().print(table)
    return 1 if any_down else 0


def run_relay(host: str | None = None, port: int | None = None) -> int:
    """Serve the catalog relay and auth endpoints with uvicorn."""
    import uvicorn

    from src.api.relay import create_app

    uvicorn.run(
        create_app(),
        host=host or Settings.RELAY_HOST,
        port=port or Settings.RELAY_PORT,
    )
    return 0
