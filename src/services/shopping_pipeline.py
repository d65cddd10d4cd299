# src/services/shopping_pipeline.py

"""Photo of a shopping list → items → catalog matches → best prices."""

import asyncio
import logging
from dataclasses import dataclass, field

from src.clients.prixnc_client import PrixNcClient
from src.llm.normalizer import ItemNormalizer, ItemSource
from src.models.product import GeoPoint, Product
from src.ocr.extractor import OcrExtractor
from src.services.product_matcher import MatchFailure, ProductMatcher
from src.services.recommendation_engine import (
    BestPriceSummary,
    aggregate_best_prices,
)

logger = logging.getLogger("prixnc_ai.pipeline")


@dataclass
class PipelineResult:
    """Everything a shopping-list scan produced."""

    raw_text: str
    item_source: ItemSource
    items: list[str] = field(default_factory=lambda: list[str]())
    search_results: list[list[Product]] = field(
        default_factory=lambda: list[list[Product]]()
    )
    failures: list[MatchFailure] = field(
        default_factory=lambda: list[MatchFailure]()
    )


class ShoppingPipeline:
    """Chains OCR, item normalisation and the parallel matcher.

    Straight-line control flow: any OCR or model error propagates to
    the caller, only per-item search failures are absorbed.
    """

    def __init__(
        self,
        extractor: OcrExtractor | None = None,
        normalizer: ItemNormalizer | None = None,
        matcher: ProductMatcher | None = None,
        client: PrixNcClient | None = None,
    ) -> None:
        self.extractor = extractor or OcrExtractor()
        self.normalizer = normalizer or ItemNormalizer()
        self.matcher = matcher or ProductMatcher(client)

    async def process_image(
        self,
        image: bytes,
        location: GeoPoint | None = None,
    ) -> PipelineResult:
        """Run a shopping-list photo through the whole chain."""
        ocr = await asyncio.to_thread(self.extractor.extract, image)
        normalized = await asyncio.to_thread(
            self.normalizer.normalize_tagged, ocr.raw_text
        )
        logger.info(
            "Scan produced %d items (%s)",
            len(normalized.items),
            normalized.source.value,
        )

        report = await self.matcher.match_all_report(
            normalized.items, location
        )
        return PipelineResult(
            raw_text=ocr.raw_text,
            item_source=normalized.source,
            items=normalized.items,
            search_results=report.results,
            failures=report.failures,
        )

    @staticmethod
    def recommend(result: PipelineResult) -> BestPriceSummary:
        return aggregate_best_prices(result.search_results)
