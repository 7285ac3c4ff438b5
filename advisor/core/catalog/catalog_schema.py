from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator


class PriceBar(BaseModel):
    model_config = ConfigDict(frozen=True)

    date: str
    open: float
    high: float
    low: float
    close: float


class NewsItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    date: str = ""
    title: str = ""
    description: str = ""


class CatalogEntry(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    symbol: str
    name: str
    price_bars: tuple[PriceBar, ...] = Field(default=(), alias="priceData")
    news: tuple[NewsItem, ...] = ()

    @field_validator("symbol")
    @classmethod
    def normalize_symbol(cls, value: str) -> str:
        symbol = value.strip().upper()
        if not symbol:
            raise ValueError("symbol cannot be empty")
        return symbol
