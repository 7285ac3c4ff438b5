from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import FileResponse, JSONResponse, Response
from starlette.routing import Route
from starlette.types import ASGIApp, Receive, Scope, Send

from advisor.core.catalog.catalog_store import CatalogStore, load_catalog
from advisor.core.errors import AdvisorError, InvalidInputError, NotFoundError
from advisor.core.news.summarizer import summarize_news
from advisor.core.portfolio.portfolio_schema import Holding
from advisor.core.portfolio.portfolio_store import PortfolioStore, is_positive_number
from advisor.core.portfolio.valuation import value_portfolio
from advisor.core.recommendation.recommendation_engine import recommend
from advisor.core.settings import AppSettings, load_settings

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET,POST,DELETE,OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}
CONTENT_TYPES = {
    ".html": "text/html",
    ".js": "application/javascript",
    ".css": "text/css",
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".svg": "image/svg+xml",
    ".json": "application/json",
}
_ANY_METHOD = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE"]
_BUY_REQUIRED = "Symbol and a positive quantity are required."

logger = logging.getLogger(__name__)


class CorsMiddleware(BaseHTTPMiddleware):
    """Allow every origin and answer preflight requests with 204."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if request.method == "OPTIONS":
            response = Response(status_code=204)
        else:
            response = await call_next(request)
        response.headers.update(CORS_HEADERS)
        return response


class ApiTrailingSlashMiddleware:
    """Route `/api/portfolio/` the same as `/api/portfolio`."""

    def __init__(self, app: ASGIApp):
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "http":
            path = scope["path"]
            stripped = path.rstrip("/")
            if path != stripped and stripped.startswith("/api/"):
                scope = dict(scope, path=stripped)
        await self.app(scope, receive, send)


def create_app(
    catalog: CatalogStore | None = None,
    portfolio_store: PortfolioStore | None = None,
    settings: AppSettings | None = None,
) -> Starlette:
    settings = settings or load_settings()
    if catalog is None:
        catalog = load_catalog(settings.catalog_path)
    if portfolio_store is None:
        portfolio_store = PortfolioStore(settings.portfolio_path)

    app = Starlette(
        debug=False,
        routes=[
            Route("/api/health", endpoint=_health, methods=["GET"]),
            Route("/api/search", endpoint=_search, methods=["GET"]),
            Route("/api/stock/{symbol}", endpoint=_stock, methods=["GET"]),
            Route("/api/news/{symbol}", endpoint=_news, methods=["GET"]),
            Route("/api/recommendation/{symbol}", endpoint=_recommendation, methods=["GET"]),
            Route("/api/portfolio", endpoint=_portfolio_list, methods=["GET"]),
            Route("/api/portfolio", endpoint=_portfolio_buy, methods=["POST"]),
            Route("/api/portfolio/valuation", endpoint=_portfolio_valuation, methods=["GET"]),
            Route("/api/portfolio/{symbol}", endpoint=_portfolio_remove, methods=["DELETE"]),
            # Unknown API paths and wrong methods on known ones are both plain 404s.
            Route("/api/{rest:path}", endpoint=_api_not_found, methods=_ANY_METHOD),
            Route("/{path:path}", endpoint=_static, methods=_ANY_METHOD),
        ],
        middleware=[Middleware(CorsMiddleware), Middleware(ApiTrailingSlashMiddleware)],
        exception_handlers={
            AdvisorError: _advisor_error,
            Exception: _server_error,
        },
    )
    app.state.settings = settings
    app.state.catalog = catalog
    app.state.portfolio_store = portfolio_store
    return app


async def _health(request: Request) -> JSONResponse:
    return JSONResponse(
        {"ok": True, "service": "advisor-api", "as_of": datetime.now(timezone.utc).isoformat()}
    )


async def _search(request: Request) -> JSONResponse:
    catalog = _catalog(request)
    limit = request.app.state.settings.search_limit
    return JSONResponse(catalog.search(request.query_params.get("q", ""), limit=limit))


async def _stock(request: Request) -> JSONResponse:
    entry = _catalog(request).lookup(_symbol_param(request))
    return JSONResponse(
        {
            "symbol": entry.symbol,
            "name": entry.name,
            "priceData": [bar.model_dump() for bar in entry.price_bars],
        }
    )


async def _news(request: Request) -> JSONResponse:
    entry = _catalog(request).lookup(_symbol_param(request))
    return JSONResponse(
        {
            "symbol": entry.symbol,
            "news": [item.model_dump() for item in entry.news],
            "summary": summarize_news(entry.news),
        }
    )


async def _recommendation(request: Request) -> JSONResponse:
    entry = _catalog(request).lookup(_symbol_param(request))
    result = recommend(entry.price_bars)
    return JSONResponse(
        {
            "symbol": entry.symbol,
            "recommendation": result.verdict,
            "rationale": result.rationale,
            "lastPrice": result.last_price,
            "previousPrice": result.previous_price,
        }
    )


async def _portfolio_list(request: Request) -> JSONResponse:
    return JSONResponse(_dump_holdings(_portfolio(request).load()))


async def _portfolio_valuation(request: Request) -> JSONResponse:
    rows = value_portfolio(_portfolio(request).load(), _catalog(request))
    return JSONResponse([row.model_dump(by_alias=True) for row in rows])


async def _portfolio_buy(request: Request) -> JSONResponse:
    payload = await _read_payload(request)
    symbol = payload.get("symbol")
    quantity = payload.get("quantity")
    if not isinstance(symbol, str) or not symbol.strip() or not is_positive_number(quantity):
        raise InvalidInputError(_BUY_REQUIRED)

    holdings = _portfolio(request).buy(symbol, quantity, payload.get("price"), catalog=_catalog(request))
    return JSONResponse({"message": "Portfolio updated", "portfolio": _dump_holdings(holdings)})


async def _portfolio_remove(request: Request) -> JSONResponse:
    holdings = _portfolio(request).remove(_symbol_param(request))
    return JSONResponse({"message": "Holding removed", "portfolio": _dump_holdings(holdings)})


async def _api_not_found(request: Request) -> JSONResponse:
    return _error(404, "Endpoint not found")


async def _static(request: Request) -> Response:
    static_root = Path(request.app.state.settings.static_dir).resolve()
    index_path = static_root / "index.html"
    relative = str(request.path_params.get("path", "") or "")

    target = index_path
    if relative and Path(relative).suffix:
        candidate = (static_root / relative).resolve()
        if candidate.is_relative_to(static_root) and candidate.is_file():
            target = candidate

    if not target.is_file():
        return _error(404, "Not found")
    media_type = CONTENT_TYPES.get(target.suffix.lower(), "application/octet-stream")
    return FileResponse(target, media_type=media_type)


async def _read_payload(request: Request) -> dict[str, Any]:
    limit = int(request.app.state.settings.max_body_bytes)
    declared = request.headers.get("content-length", "")
    if declared.isdigit() and int(declared) > limit:
        raise InvalidInputError("Request body too large")

    body = b""
    async for chunk in request.stream():
        body += chunk
        if len(body) > limit:
            raise InvalidInputError("Request body too large")

    try:
        payload = json.loads(body or b"{}")
    except (ValueError, RecursionError) as exc:
        raise InvalidInputError("Invalid request body") from exc
    if not isinstance(payload, dict):
        raise InvalidInputError("Invalid request body")
    return payload


async def _advisor_error(request: Request, exc: Exception) -> JSONResponse:
    status = 404 if isinstance(exc, NotFoundError) else 400
    return _error(status, str(exc))


async def _server_error(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Unhandled error for %s %s", request.method, request.url.path, exc_info=exc)
    # Raised errors are answered outside CorsMiddleware.
    return _error(500, "Internal server error", headers=CORS_HEADERS)


def _catalog(request: Request) -> CatalogStore:
    return request.app.state.catalog


def _portfolio(request: Request) -> PortfolioStore:
    return request.app.state.portfolio_store


def _symbol_param(request: Request) -> str:
    return str(request.path_params.get("symbol", "")).strip().upper()


def _dump_holdings(holdings: list[Holding]) -> list[dict[str, Any]]:
    return [holding.model_dump(mode="json") for holding in holdings]


def _error(status: int, message: str, headers: dict[str, str] | None = None) -> JSONResponse:
    return JSONResponse({"error": str(message)}, status_code=int(status), headers=headers)
