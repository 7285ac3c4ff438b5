from __future__ import annotations

from pathlib import Path

import pytest
from starlette.testclient import TestClient

from advisor.api.advisor_api import create_app
from advisor.core.catalog.catalog_store import CatalogStore
from advisor.core.portfolio.portfolio_store import PortfolioStore
from advisor.core.settings import AppSettings


@pytest.fixture
def static_dir(tmp_path: Path) -> Path:
    root = tmp_path / "public"
    root.mkdir()
    (root / "index.html").write_text("<html>index</html>", encoding="utf-8")
    (root / "app.js").write_text("console.log('app');", encoding="utf-8")
    (root / "data.bin").write_bytes(b"\x00\x01")
    return root


@pytest.fixture
def client(catalog: CatalogStore, portfolio_store: PortfolioStore, static_dir: Path) -> TestClient:
    settings = AppSettings(static_dir=str(static_dir), max_body_bytes=256)
    app = create_app(catalog=catalog, portfolio_store=portfolio_store, settings=settings)
    return TestClient(app)


@pytest.fixture
def roomy_client(catalog: CatalogStore, portfolio_store: PortfolioStore, static_dir: Path) -> TestClient:
    app = create_app(catalog=catalog, portfolio_store=portfolio_store, settings=AppSettings(static_dir=str(static_dir)))
    return TestClient(app)


def test_search_endpoint(client: TestClient) -> None:
    resp = client.get("/api/search", params={"q": "APP"})
    assert resp.status_code == 200
    assert resp.json() == [
        {"symbol": "AAPL", "name": "Apple Inc."},
        {"symbol": "APPN", "name": "Appian Corporation"},
    ]
    assert client.get("/api/search").json() == []
    assert len(client.get("/api/search", params={"q": "a"}).json()) == 5


def test_stock_endpoint_normalizes_symbol(client: TestClient) -> None:
    resp = client.get("/api/stock/aapl")
    assert resp.status_code == 200
    body = resp.json()
    assert body["symbol"] == "AAPL"
    assert body["name"] == "Apple Inc."
    assert [bar["close"] for bar in body["priceData"]] == [100.0, 100.6]
    assert set(body["priceData"][0]) == {"date", "open", "high", "low", "close"}


@pytest.mark.parametrize("route", ["stock", "news", "recommendation"])
def test_unknown_symbol_is_404(client: TestClient, route: str) -> None:
    resp = client.get(f"/api/{route}/NOPE")
    assert resp.status_code == 404
    assert resp.json() == {"error": "Stock not found"}


def test_news_endpoint_includes_summary(client: TestClient) -> None:
    body = client.get("/api/news/AAPL").json()
    assert body["symbol"] == "AAPL"
    assert [item["title"] for item in body["news"]] == ["First", "Second"]
    assert body["summary"] == "A B"

    empty = client.get("/api/news/GOOGL").json()
    assert empty["news"] == []
    assert empty["summary"] == ""


@pytest.mark.parametrize(("symbol", "verdict"), [("AAPL", "Buy"), ("msft", "Sell"), ("GOOGL", "Hold")])
def test_recommendation_endpoint(client: TestClient, symbol: str, verdict: str) -> None:
    resp = client.get(f"/api/recommendation/{symbol}")
    assert resp.status_code == 200
    body = resp.json()
    assert body["symbol"] == symbol.upper()
    assert body["recommendation"] == verdict
    assert body["rationale"]
    assert set(body) == {"symbol", "recommendation", "rationale", "lastPrice", "previousPrice"}


def test_recommendation_with_one_bar_is_400(client: TestClient) -> None:
    resp = client.get("/api/recommendation/SOLO")
    assert resp.status_code == 400
    assert resp.json() == {"error": "Not enough price data"}


def test_portfolio_buy_and_remove_flow(client: TestClient, portfolio_store: PortfolioStore) -> None:
    assert client.get("/api/portfolio").json() == []

    first = client.post("/api/portfolio", json={"symbol": "aapl", "quantity": 10, "price": 100})
    assert first.status_code == 200
    assert first.json() == {
        "message": "Portfolio updated",
        "portfolio": [{"symbol": "AAPL", "quantity": 10, "price": 100.0}],
    }

    second = client.post("/api/portfolio", json={"symbol": "AAPL", "quantity": 10, "price": 120})
    assert second.json()["portfolio"] == [{"symbol": "AAPL", "quantity": 20, "price": 110.0}]

    client.post("/api/portfolio", json={"symbol": "MSFT", "quantity": 1})
    assert client.get("/api/portfolio").json() == [
        {"symbol": "AAPL", "quantity": 20, "price": 110.0},
        {"symbol": "MSFT", "quantity": 1, "price": 99.4},
    ]

    removed = client.delete("/api/portfolio/aapl")
    assert removed.status_code == 200
    assert removed.json() == {
        "message": "Holding removed",
        "portfolio": [{"symbol": "MSFT", "quantity": 1, "price": 99.4}],
    }
    assert [h.symbol for h in portfolio_store.load()] == ["MSFT"]


def test_delete_missing_holding_is_noop(client: TestClient) -> None:
    client.post("/api/portfolio", json={"symbol": "MSFT", "quantity": 1})
    resp = client.delete("/api/portfolio/ZZZZ")
    assert resp.status_code == 200
    assert resp.json()["portfolio"] == [{"symbol": "MSFT", "quantity": 1, "price": 99.4}]


def test_trailing_slash_on_api_paths(client: TestClient) -> None:
    resp = client.post("/api/portfolio/", json={"symbol": "MSFT", "quantity": 1})
    assert resp.status_code == 200
    assert client.get("/api/portfolio/").json() == [{"symbol": "MSFT", "quantity": 1, "price": 99.4}]
    assert client.get("/api/stock/msft/").json()["symbol"] == "MSFT"
    assert client.get("/api/").status_code == 404


@pytest.mark.parametrize(
    "payload",
    [
        {"symbol": "AAPL"},
        {"symbol": "AAPL", "quantity": 0},
        {"symbol": "AAPL", "quantity": -2},
        {"symbol": "AAPL", "quantity": "3"},
        {"symbol": "AAPL", "quantity": True},
        {"quantity": 1},
        {"symbol": "", "quantity": 1},
        {"symbol": 42, "quantity": 1},
    ],
)
def test_portfolio_buy_rejects_bad_input(client: TestClient, payload: dict) -> None:
    resp = client.post("/api/portfolio", json=payload)
    assert resp.status_code == 400
    assert resp.json() == {"error": "Symbol and a positive quantity are required."}


@pytest.mark.parametrize("content", ["not json", "[1, 2]", "\"text\""])
def test_portfolio_buy_rejects_unparsable_body(client: TestClient, content: str) -> None:
    resp = client.post("/api/portfolio", content=content, headers={"content-type": "application/json"})
    assert resp.status_code == 400
    assert resp.json() == {"error": "Invalid request body"}


def test_portfolio_buy_rejects_deeply_nested_body(roomy_client: TestClient) -> None:
    content = "[" * 30000 + "]" * 30000
    resp = roomy_client.post("/api/portfolio", content=content, headers={"content-type": "application/json"})
    assert resp.status_code == 400
    assert resp.json() == {"error": "Invalid request body"}


def test_portfolio_buy_rejects_quantity_too_large_for_float(roomy_client: TestClient) -> None:
    content = '{"symbol": "AAPL", "quantity": ' + "9" * 400 + "}"
    resp = roomy_client.post("/api/portfolio", content=content, headers={"content-type": "application/json"})
    assert resp.status_code == 400
    assert resp.json() == {"error": "Symbol and a positive quantity are required."}
    assert roomy_client.get("/api/portfolio").json() == []


def test_portfolio_buy_rejects_oversized_body(client: TestClient) -> None:
    resp = client.post("/api/portfolio", json={"symbol": "AAPL", "quantity": 1, "note": "x" * 1000})
    assert resp.status_code == 400
    assert resp.json() == {"error": "Request body too large"}


def test_portfolio_buy_unknown_symbol_is_404(client: TestClient) -> None:
    resp = client.post("/api/portfolio", json={"symbol": "NOPE", "quantity": 1})
    assert resp.status_code == 404
    assert resp.json() == {"error": "Stock not found"}


def test_portfolio_valuation_endpoint(client: TestClient) -> None:
    client.post("/api/portfolio", json={"symbol": "AAPL", "quantity": 10, "price": 90})
    resp = client.get("/api/portfolio/valuation")
    assert resp.status_code == 200
    assert resp.json() == [
        {"symbol": "AAPL", "quantity": 10, "price": 90.0, "currentPrice": 100.6, "value": 1006.0, "pl": 106.0}
    ]


@pytest.mark.parametrize(
    ("method", "path"),
    [
        ("GET", "/api/unknown"),
        ("GET", "/api/stock/AAPL/extra"),
        ("PUT", "/api/stock/AAPL"),
        ("POST", "/api/search"),
        ("DELETE", "/api/portfolio"),
        ("POST", "/api/portfolio/AAPL"),
    ],
)
def test_unknown_routes_and_methods_are_404(client: TestClient, method: str, path: str) -> None:
    resp = client.request(method, path)
    assert resp.status_code == 404
    assert resp.json() == {"error": "Endpoint not found"}


def test_cors_headers_and_preflight(client: TestClient) -> None:
    resp = client.get("/api/portfolio")
    assert resp.headers["access-control-allow-origin"] == "*"

    preflight = client.options("/api/portfolio")
    assert preflight.status_code == 204
    assert preflight.headers["access-control-allow-methods"] == "GET,POST,DELETE,OPTIONS"
    assert preflight.headers["access-control-allow-headers"] == "Content-Type"

    assert client.options("/anything").status_code == 204


def test_static_assets_and_spa_fallback(client: TestClient, static_dir: Path) -> None:
    index = client.get("/")
    assert index.status_code == 200
    assert index.text == "<html>index</html>"
    assert index.headers["content-type"].startswith("text/html")

    script = client.get("/app.js")
    assert script.text == "console.log('app');"
    assert script.headers["content-type"].startswith("application/javascript")

    assert client.get("/data.bin").headers["content-type"] == "application/octet-stream"
    assert client.get("/portfolio").text == "<html>index</html>"
    assert client.get("/missing.css").text == "<html>index</html>"

    (static_dir.parent / "secret.txt").write_text("top secret", encoding="utf-8")
    escaped = client.get("/..%2fsecret.txt")
    assert escaped.status_code == 200
    assert escaped.text == "<html>index</html>"


def test_health_endpoint(client: TestClient) -> None:
    body = client.get("/api/health").json()
    assert body["ok"] is True
    assert body["service"] == "advisor-api"


def test_unexpected_error_is_generic_500(
    catalog: CatalogStore, portfolio_store: PortfolioStore, static_dir: Path, monkeypatch
) -> None:
    def boom() -> list:
        raise RuntimeError("disk on fire")

    monkeypatch.setattr(portfolio_store, "load", boom)
    app = create_app(catalog=catalog, portfolio_store=portfolio_store, settings=AppSettings(static_dir=str(static_dir)))
    client = TestClient(app, raise_server_exceptions=False)

    resp = client.get("/api/portfolio")
    assert resp.status_code == 500
    assert resp.json() == {"error": "Internal server error"}
    assert resp.headers["access-control-allow-origin"] == "*"
