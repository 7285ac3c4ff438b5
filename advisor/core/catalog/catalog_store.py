from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from advisor.core.catalog.catalog_schema import CatalogEntry
from advisor.core.errors import CatalogLoadError, NotFoundError

DEFAULT_CATALOG_PATH = str(Path(__file__).resolve().parent / "sample_data.json")
DEFAULT_SEARCH_LIMIT = 5
_ASCII_LOWER = str.maketrans("ABCDEFGHIJKLMNOPQRSTUVWXYZ", "abcdefghijklmnopqrstuvwxyz")

logger = logging.getLogger(__name__)


class CatalogStore:
    """Read-only ticker catalog: names, daily price bars and news."""

    def __init__(self, entries: Iterable[CatalogEntry]):
        by_symbol: dict[str, CatalogEntry] = {}
        for entry in entries:
            by_symbol[entry.symbol] = entry
        self._entries = by_symbol

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, symbol: object) -> bool:
        return isinstance(symbol, str) and _normalize_symbol(symbol) in self._entries

    @property
    def symbols(self) -> list[str]:
        return list(self._entries)

    def lookup(self, symbol: str) -> CatalogEntry:
        entry = self._entries.get(_normalize_symbol(symbol))
        if entry is None:
            raise NotFoundError("Stock not found")
        return entry

    def latest_close(self, symbol: str) -> float:
        entry = self.lookup(symbol)
        if not entry.price_bars:
            raise NotFoundError(f"No price data for {entry.symbol}")
        return float(entry.price_bars[-1].close)

    def search(self, query: str | None, limit: int = DEFAULT_SEARCH_LIMIT) -> list[dict[str, str]]:
        needle = _ascii_lower(str(query or ""))
        if not needle or limit <= 0:
            return []

        results: list[dict[str, str]] = []
        for symbol, entry in self._entries.items():
            if needle in _ascii_lower(symbol) or needle in _ascii_lower(entry.name):
                results.append({"symbol": symbol, "name": entry.name})
            if len(results) >= limit:
                break
        return results


def load_catalog(path: str = DEFAULT_CATALOG_PATH) -> CatalogStore:
    path_obj = Path(path)
    try:
        with path_obj.open("r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as exc:
        raise CatalogLoadError(f"Cannot read catalog {path_obj}: {exc}") from exc

    store = catalog_from_mapping(data)
    logger.info("Loaded catalog with %d symbols from %s", len(store), path_obj)
    return store


def catalog_from_mapping(data: Any) -> CatalogStore:
    if not isinstance(data, Mapping):
        raise CatalogLoadError("Catalog source must be an object keyed by symbol.")

    entries: list[CatalogEntry] = []
    for symbol, record in data.items():
        if not isinstance(record, Mapping):
            raise CatalogLoadError(f"Catalog record for {symbol!r} must be an object.")
        try:
            entries.append(CatalogEntry.model_validate({**record, "symbol": str(symbol)}))
        except ValidationError as exc:
            raise CatalogLoadError(f"Invalid catalog record for {symbol!r}: {exc}") from exc
    return CatalogStore(entries)


def _normalize_symbol(symbol: str) -> str:
    return str(symbol or "").strip().upper()


def _ascii_lower(text: str) -> str:
    # ASCII-only folding; non-ASCII letters compare as-is.
    return text.translate(_ASCII_LOWER)
