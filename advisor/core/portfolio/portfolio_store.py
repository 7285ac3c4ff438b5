from __future__ import annotations

import errno
import json
import logging
import math
import os
import threading
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from pydantic import TypeAdapter, ValidationError

from advisor.core.catalog.catalog_store import CatalogStore
from advisor.core.errors import InvalidInputError
from advisor.core.portfolio.portfolio_schema import Holding

DEFAULT_PORTFOLIO_PATH = "data/portfolio.json"

_HOLDINGS_ADAPTER = TypeAdapter(list[Holding])

logger = logging.getLogger(__name__)


class PortfolioStore:
    """Single-file JSON portfolio.

    ``load`` never raises: a missing or unreadable file is an empty portfolio.
    ``buy`` and ``remove`` hold an in-process lock across load, mutate and save
    so two concurrent mutations cannot overwrite each other's snapshot.
    """

    def __init__(self, path: str = DEFAULT_PORTFOLIO_PATH):
        self.path = Path(path)
        self._lock = threading.Lock()

    def load(self) -> list[Holding]:
        if not self.path.exists():
            return []

        try:
            with self.path.open("r", encoding="utf-8") as f:
                data = json.load(f)
            holdings = _HOLDINGS_ADAPTER.validate_python(data)
        except (OSError, json.JSONDecodeError, ValidationError) as exc:
            logger.warning("Ignoring unreadable portfolio file %s: %s", self.path, exc)
            return []
        return _dedupe_holdings(holdings)

    def save(self, holdings: Sequence[Holding]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)

        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        payload = [holding.model_dump(mode="json") for holding in holdings]
        with tmp_path.open("w", encoding="utf-8") as f:
            json.dump(payload, f, ensure_ascii=True, indent=2, sort_keys=True)
            f.write("\n")

        try:
            os.replace(tmp_path, self.path)
        except OSError as exc:
            # Some Docker bind-mounted file targets cannot be atomically replaced.
            if exc.errno not in {errno.EBUSY, errno.EXDEV, errno.EPERM}:
                raise
            with tmp_path.open("r", encoding="utf-8") as src, self.path.open("w", encoding="utf-8") as dst:
                dst.write(src.read())
            try:
                tmp_path.unlink(missing_ok=True)
            except OSError:
                pass

    def buy(
        self,
        symbol: str,
        quantity: Any,
        unit_price: Any = None,
        *,
        catalog: CatalogStore,
    ) -> list[Holding]:
        with self._lock:
            holdings = apply_buy(self.load(), symbol, quantity, unit_price, catalog=catalog)
            self.save(holdings)
        logger.info("Bought %s x %s", quantity, symbol.strip().upper())
        return holdings

    def remove(self, symbol: str) -> list[Holding]:
        with self._lock:
            before = self.load()
            holdings = apply_remove(before, symbol)
            self.save(holdings)
        if len(holdings) != len(before):
            logger.info("Removed holding %s", symbol.strip().upper())
        return holdings


def apply_buy(
    holdings: Sequence[Holding],
    symbol: str,
    quantity: Any,
    unit_price: Any = None,
    *,
    catalog: CatalogStore,
) -> list[Holding]:
    if not is_positive_number(quantity):
        raise InvalidInputError("Symbol and a positive quantity are required.")
    symbol_norm = str(symbol or "").strip().upper()
    if not symbol_norm:
        raise InvalidInputError("Symbol and a positive quantity are required.")

    entry = catalog.lookup(symbol_norm)
    purchase_price = float(unit_price) if is_positive_number(unit_price) else catalog.latest_close(entry.symbol)

    updated: list[Holding] = []
    merged = False
    try:
        for holding in holdings:
            if holding.symbol != entry.symbol:
                updated.append(holding)
                continue
            total_qty = holding.quantity + quantity
            total_cost = holding.quantity * holding.price + quantity * purchase_price
            updated.append(Holding(symbol=entry.symbol, quantity=total_qty, price=round(total_cost / total_qty, 2)))
            merged = True

        if not merged:
            updated.append(Holding(symbol=entry.symbol, quantity=quantity, price=round(purchase_price, 2)))
    except ValidationError as exc:
        # Prices below one cent round to zero.
        raise InvalidInputError("Price must be at least 0.01.") from exc
    return updated


def apply_remove(holdings: Sequence[Holding], symbol: str) -> list[Holding]:
    symbol_norm = str(symbol or "").strip().upper()
    return [holding for holding in holdings if holding.symbol != symbol_norm]


def is_positive_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    try:
        return math.isfinite(value) and value > 0
    except OverflowError:
        # Integers too large to convert to float.
        return False


def _dedupe_holdings(holdings: list[Holding]) -> list[Holding]:
    by_symbol: dict[str, Holding] = {}
    for holding in holdings:
        by_symbol[holding.symbol] = holding
    return list(by_symbol.values())
