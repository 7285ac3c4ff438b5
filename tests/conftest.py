from __future__ import annotations

from pathlib import Path

import pytest

from advisor.core.catalog.catalog_store import CatalogStore, catalog_from_mapping
from advisor.core.portfolio.portfolio_store import PortfolioStore


def _bars(*closes: float) -> list[dict]:
    return [
        {"date": f"2024-01-{i + 1:02d}", "open": close, "high": close, "low": close, "close": close}
        for i, close in enumerate(closes)
    ]


CATALOG_DATA = {
    "AAPL": {
        "name": "Apple Inc.",
        "priceData": _bars(100.0, 100.6),
        "news": [
            {"date": "2024-01-02", "title": "First", "description": "A"},
            {"date": "2024-01-01", "title": "Second", "description": "B"},
        ],
    },
    "MSFT": {"name": "Microsoft Corporation", "priceData": _bars(100.0, 99.4), "news": []},
    "GOOGL": {"name": "Alphabet Inc.", "priceData": _bars(100.0, 100.2)},
    "SOLO": {"name": "Single Bar Corp", "priceData": _bars(50.0)},
    "APPN": {"name": "Appian Corporation", "priceData": _bars(40.0, 41.0)},
}


@pytest.fixture
def catalog() -> CatalogStore:
    return catalog_from_mapping(CATALOG_DATA)


@pytest.fixture
def portfolio_store(tmp_path: Path) -> PortfolioStore:
    return PortfolioStore(path=str(tmp_path / "portfolio.json"))
