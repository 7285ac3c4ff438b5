from __future__ import annotations

from collections.abc import Sequence

from advisor.core.catalog.catalog_store import CatalogStore
from advisor.core.errors import NotFoundError
from advisor.core.portfolio.portfolio_schema import Holding, HoldingValuation


def value_portfolio(holdings: Sequence[Holding], catalog: CatalogStore) -> list[HoldingValuation]:
    """Join holdings with the latest catalog close.

    Holdings whose symbol has left the catalog keep their cost basis but report
    no current price, value or profit/loss.
    """
    rows: list[HoldingValuation] = []
    for holding in holdings:
        try:
            current = catalog.latest_close(holding.symbol)
        except NotFoundError:
            rows.append(HoldingValuation(symbol=holding.symbol, quantity=holding.quantity, price=holding.price))
            continue

        value = current * holding.quantity
        cost = holding.price * holding.quantity
        rows.append(
            HoldingValuation(
                symbol=holding.symbol,
                quantity=holding.quantity,
                price=holding.price,
                current_price=current,
                value=round(value, 2),
                pl=round(value - cost, 2),
            )
        )
    return rows
