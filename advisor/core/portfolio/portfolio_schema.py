from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Holding(BaseModel):
    symbol: str
    quantity: int | float
    price: float = Field(gt=0.0)

    @field_validator("symbol")
    @classmethod
    def normalize_symbol(cls, value: str) -> str:
        symbol = value.strip().upper()
        if not symbol:
            raise ValueError("symbol cannot be empty")
        return symbol

    @field_validator("quantity")
    @classmethod
    def positive_quantity(cls, value: int | float) -> int | float:
        if isinstance(value, bool) or value <= 0:
            raise ValueError("quantity must be positive")
        return value


class HoldingValuation(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    symbol: str
    quantity: int | float
    price: float
    current_price: float | None = Field(default=None, alias="currentPrice")
    value: float | None = None
    pl: float | None = None
