from advisor.core.portfolio.portfolio_schema import Holding, HoldingValuation
from advisor.core.portfolio.portfolio_store import PortfolioStore, apply_buy, apply_remove
from advisor.core.portfolio.valuation import value_portfolio

__all__ = [
    "Holding",
    "HoldingValuation",
    "PortfolioStore",
    "apply_buy",
    "apply_remove",
    "value_portfolio",
]
