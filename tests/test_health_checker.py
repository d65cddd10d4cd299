# tests/test_health_checker.py

"""Tests for the collaborator health checker service."""

import unittest
from unittest.mock import MagicMock, patch

from src.config.settings import Settings
from src.models.errors import UpstreamError
from src.models.search_result import Pagination, SearchResult
from src.services.health_checker import (
    HealthChecker,
    HealthResult,
    probe_catalog,
    probe_llm,
    probe_ocr,
)


class TestProbes(unittest.TestCase):
    """Tests for the per-collaborator probe functions."""

    def test_catalog_ok(self) -> None:
        client = MagicMock()
        client.search.return_value = SearchResult(
            pagination=Pagination(0, 12, 12, 1)
        )
        result = probe_catalog(client)
        self.assertEqual(result.status, "ok")
        self.assertIn("12", result.message)
        client.search.assert_called_once_with("lait", page=0, page_size=1)

    def test_catalog_down_on_upstream_error(self) -> None:
        client = MagicMock()
        client.search.side_effect = UpstreamError(
            "Catalog API returned HTTP 503", 503
        )
        result = probe_catalog(client)
        self.assertEqual(result.status, "down")
        self.assertIn("503", result.message)

    @patch("src.services.health_checker.time")
    def test_slow_catalog(self, mock_time: MagicMock) -> None:
        """A probe slower than 5s is reported as 'slow'."""
        mock_time.monotonic.side_effect = [0.0, 6.0]
        client = MagicMock()
        client.search.return_value = SearchResult(
            pagination=Pagination(0, 1, 1, 1)
        )
        result = probe_catalog(client)
        self.assertEqual(result.status, "slow")
        self.assertEqual(result.latency_ms, 6000)

    @patch("src.services.health_checker.pytesseract")
    def test_ocr_ok(self, mock_tess: MagicMock) -> None:
        mock_tess.get_languages.return_value = ["eng", "fra"]
        mock_tess.get_tesseract_version.return_value = "5.3.0"
        result = probe_ocr()
        self.assertEqual(result.status, "ok")
        self.assertIn("5.3.0", result.message)

    @patch("src.services.health_checker.pytesseract")
    def test_ocr_missing_language_pack(self, mock_tess: MagicMock) -> None:
        mock_tess.get_languages.return_value = ["eng"]
        result = probe_ocr()
        self.assertEqual(result.status, "down")
        self.assertIn("fra", result.message)

    def test_llm_requires_api_key(self) -> None:
        with patch.object(Settings, "OPENAI_API_KEY", None):
            self.assertEqual(probe_llm().status, "down")
        with patch.object(Settings, "OPENAI_API_KEY", "sk-test"):
            self.assertEqual(probe_llm().status, "ok")


class TestHealthChecker(unittest.IsolatedAsyncioTestCase):
    """Tests for the concurrent HealthChecker orchestration."""

    async def test_check_all_returns_one_result_per_probe(self) -> None:
        fake = HealthResult("x", "ok", 1.0, "")
        with (
            patch(
                "src.services.health_checker.probe_catalog",
                return_value=HealthResult("catalog", "ok", 1.0, ""),
            ),
            patch(
                "src.services.health_checker.probe_ocr",
                return_value=HealthResult("ocr", "down", 0.0, "missing"),
            ),
            patch(
                "src.services.health_checker.probe_llm",
                return_value=fake,
            ),
        ):
            results = await HealthChecker(client=MagicMock()).check_all()
        self.assertEqual(
            [r.component for r in results], ["catalog", "ocr", "x"]
        )
        self.assertEqual(results[1].status, "down")


if __name__ == "__main__":
    unittest.main()
