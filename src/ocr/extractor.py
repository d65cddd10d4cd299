# src/ocr/extractor.py

"""Shopping-list OCR: image bytes to candidate item lines."""

import io
import logging
import re
from dataclasses import dataclass, field
from typing import Any

import pytesseract  # type: ignore[import-untyped]
from PIL import Image, UnidentifiedImageError

from src.config.settings import Settings
from src.models.errors import OcrEngineError

logger = logging.getLogger("prixnc_ai.ocr")

# A price or quantity on its own line: "2", "2.50", "3,99"
_NUMBER_ONLY_RE = re.compile(r"^\d+([.,]\d+)?$")


def filter_item_lines(text: str) -> list[str]:
    """Reduce raw OCR text to candidate shopping-list items.

    Splits on line breaks, trims each line, then drops empty lines and
    lines that are a bare number (optionally with one decimal
    separator).  Deterministic; also used when the language model
    reply cannot be parsed.
    """
    items: list[str] = []
    for line in text.splitlines():
        cleaned = line.strip()
        if not cleaned:
            continue
        if _NUMBER_ONLY_RE.match(cleaned):
            continue
        items.append(cleaned)
    return items


@dataclass
class OcrResult:
    """Recognised text and the lines kept by :func:`filter_item_lines`."""

    raw_text: str
    lines: list[str] = field(default_factory=lambda: list[str]())


class OcrExtractor:
    """Runs Tesseract over a shopping-list photo."""

    def __init__(self, language: str | None = None) -> None:
        self.language = language or Settings.OCR_LANGUAGE
        if Settings.TESSERACT_CMD:
            pytesseract.pytesseract.tesseract_cmd = (
                Settings.TESSERACT_CMD
            )

    def _recognise(self, image: Image.Image) -> Any:
        return pytesseract.image_to_string(image, lang=self.language)

    def extract(self, image: bytes) -> OcrResult:
        """Recognise the text of *image* and keep the item-like lines.

        Raises:
            OcrEngineError: the image cannot be decoded, the engine
                failed, or it returned something other than text.
        """
        try:
            with Image.open(io.BytesIO(image)) as img:
                rgb = img.convert("RGB")
        except (UnidentifiedImageError, OSError) as exc:
            logger.error("Unreadable image for OCR: %s", exc, exc_info=True)
            raise OcrEngineError(f"Unreadable image: {exc}") from exc

        try:
            payload = self._recognise(rgb)
        except Exception as exc:
            logger.error("OCR engine failure: %s", exc, exc_info=True)
            raise OcrEngineError(f"OCR engine failure: {exc}") from exc

        if not isinstance(payload, str):
            raise OcrEngineError(
                "OCR engine returned a non-text payload "
                f"({type(payload).__name__})"
            )

        raw_text = payload.strip()
        lines = filter_item_lines(raw_text)
        logger.info(
            "OCR recognised %d characters, %d candidate lines",
            len(raw_text),
            len(lines),
        )
        return OcrResult(raw_text=raw_text, lines=lines)
