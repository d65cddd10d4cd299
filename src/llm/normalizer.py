# src/llm/normalizer.py

"""Turn noisy OCR text into a clean list of product names."""

import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from src.config.settings import Settings
from src.llm.chat_model import ChatModel
from src.models.errors import ModelParseError
from src.ocr.extractor import filter_item_lines

logger = logging.getLogger("prixnc_ai.normalizer")

EXTRACTION_PROMPT = """\
You are an assistant that identifies shopping list items in text produced by OCR.
The text may be noisy or contain irrelevant information.

Extract a clean list of product names from the text below. Focus on food,
groceries and household products. Ignore prices, quantities, dates and any
other non-product information.
Answer with a JSON array of strings only, one product name per string.

OCR text:
{text}

Output (JSON array of product names):"""


class ItemSource(Enum):
    """Where a list of normalised items came from."""

    PARSED = "parsed"
    FALLBACK = "fallback"


@dataclass
class NormalizedItems:
    """Product names plus the path that produced them."""

    source: ItemSource
    items: list[str] = field(default_factory=lambda: list[str]())


def parse_item_array(reply: str) -> list[str]:
    """Parse a model reply that must be exactly a JSON array.

    Raises:
        ModelParseError: the reply is not JSON, or not a JSON array.
    """
    try:
        parsed: Any = json.loads(reply)
    except ValueError as exc:
        raise ModelParseError(f"Reply is not JSON: {exc}") from exc
    if not isinstance(parsed, list):
        raise ModelParseError(
            f"Reply is JSON but not an array ({type(parsed).__name__})"
        )
    return [
        str(item).strip()
        for item in parsed
        if item is not None and str(item).strip()
    ]


class ItemNormalizer:
    """Asks the language model for product names, with a line-filter fallback.

    "Parse the reply as JSON, else run the heuristic" is the contract:
    models regularly wrap the array in prose, and that case must keep
    working without a model round-trip.
    """

    def __init__(self, model: ChatModel | None = None) -> None:
        self.model = model or ChatModel()

    def normalize_tagged(self, raw_text: str) -> NormalizedItems:
        """Normalise *raw_text*, reporting which path produced the items."""
        reply = self.model.complete(
            EXTRACTION_PROMPT.format(text=raw_text),
            temperature=Settings.EXTRACTION_TEMPERATURE,
        )
        try:
            items = parse_item_array(reply)
        except ModelParseError as exc:
            logger.warning(
                "Model output unusable, falling back to line filter: %s",
                exc,
            )
            logger.debug("Unparsed model reply: %r", reply[:500])
            return NormalizedItems(
                source=ItemSource.FALLBACK,
                items=filter_item_lines(raw_text),
            )

        logger.info("Model extracted %d items", len(items))
        return NormalizedItems(source=ItemSource.PARSED, items=items)

    def normalize(self, raw_text: str) -> list[str]:
        return self.normalize_tagged(raw_text).items
