# src/services/health_checker.py

"""Connectivity checks for the catalog API, OCR engine and language model."""

import asyncio
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass

import pytesseract  # type: ignore[import-untyped]

from src.clients.prixnc_client import PrixNcClient
from src.config.settings import Settings

logger = logging.getLogger("prixnc_ai.health")

_SLOW_MS = 5000


@dataclass
class HealthResult:
    """Result of a single collaborator health check."""

    component: str
    status: str  # "ok", "slow", "down"
    latency_ms: float
    message: str


def _timed(component: str, probe: Callable[[], str]) -> HealthResult:
    """Run *probe* and classify it by outcome and latency."""
    start = time.monotonic()
    try:
        message = probe()
    except Exception as exc:
        elapsed_ms = (time.monotonic() - start) * 1000
        return HealthResult(
            component=component,
            status="down",
            latency_ms=elapsed_ms,
            message=str(exc)[:80],
        )
    elapsed_ms = (time.monotonic() - start) * 1000
    status = "slow" if elapsed_ms > _SLOW_MS else "ok"
    if status == "slow" and not message:
        message = "High latency"
    return HealthResult(
        component=component,
        status=status,
        latency_ms=elapsed_ms,
        message=message,
    )


def probe_catalog(client: PrixNcClient) -> HealthResult:
    def probe() -> str:
        result = client.search("lait", page=0, page_size=1)
        return f"{result.pagination.total_items} items for 'lait'"

    return _timed("catalog", probe)


def probe_ocr() -> HealthResult:
    def probe() -> str:
        if Settings.TESSERACT_CMD:
            pytesseract.pytesseract.tesseract_cmd = Settings.TESSERACT_CMD
        languages = pytesseract.get_languages(config="")
        if Settings.OCR_LANGUAGE not in languages:
            msg = f"language pack '{Settings.OCR_LANGUAGE}' missing"
            raise RuntimeError(msg)
        return f"tesseract {pytesseract.get_tesseract_version()}"

    return _timed("ocr", probe)


def probe_llm() -> HealthResult:
    def probe() -> str:
        if not Settings.OPENAI_API_KEY:
            msg = "OPENAI_API_KEY not set"
            raise RuntimeError(msg)
        return f"model {Settings.OPENAI_MODEL}"

    return _timed("llm", probe)


class HealthChecker:
    """Runs the probes concurrently."""

    def __init__(self, client: PrixNcClient | None = None) -> None:
        self.client = client or PrixNcClient()

    async def check_all(self) -> list[HealthResult]:
        """Probe every collaborator concurrently."""
        results: list[HealthResult] = list(
            await asyncio.gather(
                asyncio.to_thread(probe_catalog, self.client),
                asyncio.to_thread(probe_ocr),
                asyncio.to_thread(probe_llm),
            )
        )
        for r in results:
            logger.info(
                "Health check %s: %s (%.0fms) %s",
                r.component,
                r.status,
                r.latency_ms,
                r.message,
            )
        return results
