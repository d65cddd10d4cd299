# src/config/settings.py

"""Central configuration for the prixnc_ai assistant."""

import os
from pathlib import Path

from curl_cffi.requests import BrowserTypeLiteral
from dotenv import load_dotenv

load_dotenv()


class Settings:
    """Central configuration for the prixnc_ai assistant."""

    # --- Price catalog API ---
    API_BASE_URL: str = os.getenv(
        "PRIXNC_API_BASE_URL", "https://prix.nc/api/v1"
    ).rstrip("/")
    SEARCH_ENDPOINT: str = "produitsprix/search"
    PRODUCT_ENDPOINT: str = "produits"
    SELLING_POINTS_ENDPOINT: str = (
        "relevesprix/search/"
        "findByIdProduitOrderByPrixParUniteAscPrixAscMagasinAsc"
    )
    DEFAULT_PAGE_SIZE: int = 15         # Items per search page
    DEFAULT_SORT: str = "nom,asc"       # Upstream sort parameter
    REQUEST_TIMEOUT: int = 15           # Seconds before a request times out
    MATCH_TIMEOUT: float = 30.0         # Per-item search budget (0 = none)

    # --- Browser Impersonation ---
    IMPERSONATE_BROWSER: BrowserTypeLiteral = "chrome131"
    DEFAULT_HEADERS: dict[str, str] = {
        "Accept": "application/json",
        "Accept-Language": "fr-FR,fr;q=0.9,en;q=0.8",
    }

    # --- OCR ---
    OCR_LANGUAGE: str = "fra"
    TESSERACT_CMD: str | None = os.getenv("TESSERACT_CMD") or None

    # --- Language model ---
    OPENAI_API_KEY: str | None = os.getenv("OPENAI_API_KEY") or None
    OPENAI_BASE_URL: str | None = os.getenv("OPENAI_BASE_URL") or None
    OPENAI_MODEL: str = os.getenv("OPENAI_MODEL", "gpt-3.5-turbo")
    LLM_TIMEOUT: float = 60.0
    EXTRACTION_TEMPERATURE: float = 0.0
    RECOMMENDATION_TEMPERATURE: float = 0.2
    FREQUENT_ITEMS_LIMIT: int = 10
    RECOMMENDATION_COUNT: int = 5

    # --- Geography ---
    EARTH_RADIUS_KM: float = 6371.0

    # --- Relay server ---
    RELAY_HOST: str = os.getenv("PRIXNC_RELAY_HOST", "127.0.0.1")
    RELAY_PORT: int = int(os.getenv("PRIXNC_RELAY_PORT", "8000"))

    # --- Paths ---
    BASE_DIR: Path = Path(__file__).resolve().parent.parent.parent
    LOGS_DIR: Path = BASE_DIR / "logs"
    DATA_DIR: Path = BASE_DIR / "data"
    USERS_DB_PATH: Path = Path(
        os.getenv("PRIXNC_USERS_DB", str(DATA_DIR / "users.db"))
    )

    # --- Display ---
    CURRENCY: str = "XPF"
    SORT_OPTIONS: list[str] = ["price", "distance", "store"]
