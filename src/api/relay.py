# src/api/relay.py

"""Same-origin HTTP relay to the catalog API, plus the auth contract."""

import asyncio
import logging
import sqlite3
from typing import Any

from fastapi import FastAPI, Query
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from src.clients.prixnc_client import PrixNcClient
from src.config.settings import Settings
from src.models.errors import (
    AuthenticationError,
    DuplicateEmailError,
    InvalidPasswordError,
    NotFoundError,
    UpstreamError,
)
from src.storage.user_store import UserStore

logger = logging.getLogger("prixnc_ai.relay")

ACTION_GET_ID = "getIdProduit"
ACTION_SELLING_POINTS = "sellingPoints"


class SignupRequest(BaseModel):
    nom: str = ""
    prenom: str = ""
    email: str = ""
    password: str = ""


class SigninRequest(BaseModel):
    email: str = ""
    password: str = ""


def _error(status: int, error: str, details: str = "") -> JSONResponse:
    body: dict[str, Any] = {"error": error, "details": details}
    return JSONResponse(body, status_code=status)


def create_app(
    client: PrixNcClient | None = None,
    user_store: UserStore | None = None,
) -> FastAPI:
    """Build the relay application.

    Upstream failures are translated into ``{"error", "details"}``
    bodies carrying the upstream status code; nothing is retried.
    """
    settings = Settings()
    catalog = client or PrixNcClient()
    users = user_store or UserStore()
    allowed_endpoints = {
        settings.SEARCH_ENDPOINT,
        settings.PRODUCT_ENDPOINT,
    }

    app = FastAPI(title="Prix NC AI relay")

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.get("/api/prixnc")
    async def relay(
        query: str = "",
        page: int = 0,
        size: int = settings.DEFAULT_PAGE_SIZE,
        sort: str = settings.DEFAULT_SORT,
        endpoint: str = settings.SEARCH_ENDPOINT,
        action: str | None = None,
        catalog_id: str | None = Query(None, alias="idProduit"),
        name: str | None = None,
        product_id: str | None = Query(None, alias="id"),
    ) -> Any:
        try:
            if action == ACTION_GET_ID:
                if not name:
                    return _error(400, "missing parameter", "name")
                resolved = await asyncio.to_thread(
                    catalog.resolve_catalog_id, name
                )
                return {"idProduit": resolved}

            if action == ACTION_SELLING_POINTS:
                if not catalog_id:
                    return _error(400, "missing parameter", "idProduit")
                return await asyncio.to_thread(
                    catalog.selling_points_raw, catalog_id
                )

            if action is not None:
                return _error(400, "unknown action", action)

            if endpoint not in allowed_endpoints:
                return _error(400, "unknown endpoint", endpoint)

            if endpoint == settings.PRODUCT_ENDPOINT:
                if not product_id:
                    return _error(400, "missing parameter", "id")
                return await asyncio.to_thread(
                    catalog.product_raw, product_id
                )

            return await asyncio.to_thread(
                catalog.search_raw, query, page, size, sort
            )
        except UpstreamError as exc:
            logger.warning(
                "Relay upstream error %d: %s", exc.status_code, exc
            )
            return _error(exc.status_code, str(exc), exc.details)
        except NotFoundError as exc:
            return _error(404, "not found", str(exc))
        except Exception:
            logger.error("Relay failure", exc_info=True)
            return _error(500, "server error")

    @app.post("/api/auth/signup")
    async def signup(payload: SignupRequest) -> JSONResponse:
        if not (payload.email and payload.password):
            return JSONResponse(
                {"message": "Email et mot de passe requis"},
                status_code=400,
            )
        try:
            user_id = await asyncio.to_thread(
                users.create_user,
                payload.nom,
                payload.prenom,
                payload.email,
                payload.password,
            )
        except DuplicateEmailError:
            return JSONResponse(
                {"message": "Cet email est déjà utilisé"},
                status_code=400,
            )
        except InvalidPasswordError as exc:
            return JSONResponse({"message": str(exc)}, status_code=400)
        except sqlite3.Error:
            logger.error("Signup failed", exc_info=True)
            return JSONResponse(
                {"message": "Erreur lors de la création du compte"},
                status_code=500,
            )
        return JSONResponse(
            {"message": "Utilisateur créé avec succès", "userId": user_id},
            status_code=201,
        )

    @app.post("/api/auth/signin")
    async def signin(payload: SigninRequest) -> JSONResponse:
        if not (payload.email and payload.password):
            return JSONResponse(
                {"message": "Email et mot de passe requis"},
                status_code=400,
            )
        try:
            user = await asyncio.to_thread(
                users.authenticate, payload.email, payload.password
            )
        except AuthenticationError as exc:
            return JSONResponse({"message": str(exc)}, status_code=401)
        return JSONResponse(
            {
                "id": user.id,
                "name": user.display_name,
                "email": user.email,
            }
        )

    return app
