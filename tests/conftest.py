# tests/conftest.py

"""Shared pytest fixtures for all prixnc_ai tests."""

from collections.abc import Generator
from unittest.mock import patch

import pytest


@pytest.fixture(autouse=True)
def no_network() -> Generator[None, None, None]:
    """Make any un-stubbed catalog request fail instead of going online."""
    with patch(
        "curl_cffi.requests.Session.get",
        side_effect=ConnectionError("network access in tests"),
    ):
        yield
