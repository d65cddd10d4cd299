# src/services/product_matcher.py

"""Concurrent per-item catalog search with a positional join."""

import asyncio
import logging
from dataclasses import dataclass, field

from src.clients.prixnc_client import PrixNcClient
from src.config.settings import Settings
from src.models.product import GeoPoint, Product

logger = logging.getLogger("prixnc_ai.matcher")


@dataclass
class MatchFailure:
    """A search that failed for one item of the batch."""

    index: int
    item: str
    message: str


@dataclass
class MatchReport:
    """One product list per input item, plus what went wrong."""

    items: list[str]
    results: list[list[Product]] = field(
        default_factory=lambda: list[list[Product]]()
    )
    failures: list[MatchFailure] = field(
        default_factory=lambda: list[MatchFailure]()
    )


class ProductMatcher:
    """Searches the catalog for every item of a list at once.

    All searches start before any is awaited.  Results line up with
    the input positions whatever the completion order, and a failing
    search becomes an empty list instead of aborting the batch.
    """

    def __init__(self, client: PrixNcClient | None = None) -> None:
        self.settings = Settings()
        self.client = client or PrixNcClient()

    async def _search_one(
        self,
        item: str,
        location: GeoPoint | None,
    ) -> list[Product]:
        call = asyncio.to_thread(
            self.client.search,
            item,
            0,
            self.settings.DEFAULT_PAGE_SIZE,
            location,
            "price",
        )
        timeout = self.settings.MATCH_TIMEOUT
        result = (
            await asyncio.wait_for(call, timeout)
            if timeout > 0
            else await call
        )
        return result.products

    async def match_all_report(
        self,
        items: list[str],
        location: GeoPoint | None = None,
    ) -> MatchReport:
        """Search every item concurrently and report per-item failures."""
        tasks = [self._search_one(item, location) for item in items]
        batches = await asyncio.gather(*tasks, return_exceptions=True)

        report = MatchReport(items=list(items))
        for index, (item, batch) in enumerate(zip(items, batches)):
            if isinstance(batch, list):
                report.results.append(batch)
                continue
            message = str(batch) or type(batch).__name__
            logger.error(
                "Search failed for item '%s': %s",
                item,
                message,
                exc_info=batch,
            )
            report.results.append([])
            report.failures.append(
                MatchFailure(index=index, item=item, message=message)
            )

        logger.info(
            "Matched %d items (%d failed)",
            len(items),
            len(report.failures),
        )
        return report

    async def match_all(
        self,
        items: list[str],
        location: GeoPoint | None = None,
    ) -> list[list[Product]]:
        """One product list per item, in input order."""
        report = await self.match_all_report(items, location)
        return report.results
