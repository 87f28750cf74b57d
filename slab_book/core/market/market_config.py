"""Market configuration model for lot conversions and fill parsing."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator


class MarketConfig(BaseModel):
    """Lot sizes and token decimals of one market.

    Supplied by the market-configuration layer. Nothing in the decode layer
    looks these values up on its own.

    JSON example:
        {
          "name": "SOL/USDC",
          "base_lot_size": 100000000,
          "quote_lot_size": 100,
          "base_decimals": 9,
          "quote_decimals": 6
        }
    """

    name: str | None = Field(default=None, min_length=1)

    base_lot_size: int = Field(..., gt=0)
    quote_lot_size: int = Field(..., gt=0)

    base_decimals: int = Field(..., ge=0, le=30)
    quote_decimals: int = Field(..., ge=0, le=30)

    model_config = ConfigDict(extra="forbid", frozen=True)

    @classmethod
    def from_json_obj(cls, market_obj: dict[str, Any]) -> MarketConfig:
        """Create a MarketConfig instance from a JSON-compatible object."""
        return cls.model_validate(market_obj)

    @model_validator(mode="after")
    def validate_consistency(self) -> MarketConfig:
        """Lot sizes above u64 cannot come from an on-chain market."""
        limit = (1 << 64) - 1
        if self.base_lot_size > limit or self.quote_lot_size > limit:
            raise ValueError("lot sizes must fit in u64")
        return self

    @property
    def base_multiplier(self) -> int:
        return 10**self.base_decimals

    @property
    def quote_multiplier(self) -> int:
        return 10**self.quote_decimals
