"""Core shared data models and schemas.

This module defines the canonical Pydantic models handed out of the decode
layer: resting orders, aggregated book levels, and trade fills. These types
are treated as schema definitions (see ``core/schemas``) and intentionally
prioritize structural clarity over minimal class size.
"""

# pylint: disable=line-too-long,missing-class-docstring,missing-function-docstring
from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

Side = Literal["buy", "sell"]

_U8_MAX = (1 << 8) - 1
_U64_MAX = (1 << 64) - 1
_U128_MAX = (1 << 128) - 1

# Owner ids are 32-byte public keys rendered as lowercase hex.
OWNER_ID_PATTERN = r"^[0-9a-f]{64}$"


# ---------------------------------------------------------------------------
# Order book models
# ---------------------------------------------------------------------------


class Order(BaseModel):
    """A resting order derived from one slab leaf.

    Notes:
    - price/size are human values; price_lots/size_lots are the raw integers.
    - order_id is the full 128-bit tree key.
    """

    order_id: int = Field(..., ge=0, le=_U128_MAX)
    client_order_id: int = Field(..., ge=0, le=_U64_MAX)
    owner_id: str = Field(..., pattern=OWNER_ID_PATTERN)
    owner_slot: int = Field(..., ge=0, le=_U8_MAX)
    fee_tier: int = Field(..., ge=0, le=_U8_MAX)

    price: float = Field(..., ge=0)
    price_lots: int = Field(..., ge=0, le=_U64_MAX)
    size: float = Field(..., ge=0)
    size_lots: int = Field(..., ge=0, le=_U64_MAX)

    side: Side

    model_config = ConfigDict(extra="forbid", frozen=True)


class BookLevel(BaseModel):
    """One aggregated price level of an L2 view.

    price_lots is the best lot price merged into the level.
    """

    price: float = Field(..., ge=0)
    size: float = Field(..., ge=0)
    price_lots: int = Field(..., ge=0, le=_U64_MAX)
    size_lots: int = Field(..., ge=0)

    model_config = ConfigDict(extra="forbid", frozen=True)


# ---------------------------------------------------------------------------
# Fill model
# ---------------------------------------------------------------------------


class Fill(BaseModel):
    """A human-readable trade fill parsed from the event queue.

    fee_cost is negative for maker rebates and positive for taker fees.
    """

    side: Side
    price: float = Field(..., ge=0)
    size: float = Field(..., gt=0)
    fee_cost: float

    maker: bool
    order_id: int = Field(..., ge=0, le=_U128_MAX)
    client_order_id: int = Field(..., ge=0, le=_U64_MAX)
    owner_id: str = Field(..., pattern=OWNER_ID_PATTERN)
    open_orders_slot: int = Field(..., ge=0, le=_U8_MAX)
    fee_tier: int = Field(..., ge=0, le=_U8_MAX)
    sequence_number: int | None = Field(default=None, ge=0)

    model_config = ConfigDict(extra="forbid", frozen=True)

    @model_validator(mode="after")
    def validate_fee_sign(self) -> Fill:
        """
        Enforce the liquidity sign convention:
        - maker fills carry a rebate (fee_cost <= 0)
        - taker fills carry a fee (fee_cost >= 0)
        """
        if self.maker and self.fee_cost > 0:
            raise ValueError("maker fill must not carry a positive fee_cost")
        if not self.maker and self.fee_cost < 0:
            raise ValueError("taker fill must not carry a negative fee_cost")
        return self

    def is_maker(self) -> bool:
        return self.maker

    def is_taker(self) -> bool:
        return not self.maker
