"""model.py

Pydantic **domain models** shared by the engine and the dashboard.

``WalletState`` mirrors the JSON-like dict the persistence collaborator
stores, so it can be validated on the way in and dumped on the way out
(``model_dump(mode="json")``). Everything else here is an immutable
value object: samples, quotes, proposals, receipts and rejections.
"""

from __future__ import annotations

# -----------------------------------------------------------------------------
# Standard library
# -----------------------------------------------------------------------------
from datetime import datetime, timezone
from enum import Enum

# Third-party
from pydantic import BaseModel, ConfigDict, Field, NonNegativeFloat, PositiveFloat


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# -----------------------------------------------------------------------------
# Enumerations
# -----------------------------------------------------------------------------

class MetalKind(str, Enum):
    GOLD = "gold"
    SILVER = "silver"
    PLATINUM = "platinum"


class TradeMode(str, Enum):
    BUY = "buy"
    SELL = "sell"


class AlertStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"


class RejectionReason(str, Enum):
    INSUFFICIENT_CASH = "insufficient_cash"
    INSUFFICIENT_METAL = "insufficient_metal"
    INVALID_AMOUNT = "invalid_amount"
    BUSY = "busy"                  # another settlement holds the wallet


# -----------------------------------------------------------------------------
# Wallet
# -----------------------------------------------------------------------------

class WalletState(BaseModel):
    """Cash balance and per-metal holdings (grams) of one user session."""

    cash_balance: NonNegativeFloat
    holdings: dict[MetalKind, NonNegativeFloat]
    wallet_addresses: dict[MetalKind, str] = Field(default_factory=dict)

    def holding(self, metal: MetalKind) -> float:
        """Quantity held for *metal*; a missing key reads as zero."""
        return self.holdings.get(MetalKind(metal), 0.0)


# -----------------------------------------------------------------------------
# Price feed
# -----------------------------------------------------------------------------

class Quote(BaseModel):
    """A price parsed from the external quote endpoint."""

    model_config = ConfigDict(frozen=True)

    price: PositiveFloat
    change: float = 0.0


class FeedUnavailable(BaseModel):
    """Why the quote endpoint produced nothing usable this tick."""

    model_config = ConfigDict(frozen=True)

    reason: str


class PriceSample(BaseModel):
    """One tick of the price feed. A new sample replaces the old one."""

    model_config = ConfigDict(frozen=True)

    reference_price: NonNegativeFloat
    trend_delta: float
    is_simulated: bool
    context: str                          # pricing context code, e.g. "TR"
    timestamp: datetime = Field(default_factory=_utcnow)


# -----------------------------------------------------------------------------
# Trade & withdrawal proposals
# -----------------------------------------------------------------------------

class TradeProposal(BaseModel):
    """A validated trade waiting in review or settling."""

    model_config = ConfigDict(frozen=True)

    mode: TradeMode
    metal: MetalKind
    cash_amount: PositiveFloat
    metal_quantity: PositiveFloat
    unit_price: PositiveFloat
    fee_rate: NonNegativeFloat

    @property
    def fee(self) -> float:
        return self.cash_amount * self.fee_rate

    @property
    def total(self) -> float:
        """Cash that leaves the wallet on a buy (fee on top)."""
        return self.cash_amount + self.fee

    @property
    def proceeds(self) -> float:
        """Cash that enters the wallet on a sell (fee taken out)."""
        return self.cash_amount - self.fee


class WithdrawalProposal(BaseModel):
    model_config = ConfigDict(frozen=True)

    cash_amount: PositiveFloat


class Rejection(BaseModel):
    """A validation outcome handed back to the caller instead of raised."""

    model_config = ConfigDict(frozen=True)

    reason: RejectionReason
    message: str


class TradeReceipt(BaseModel):
    model_config = ConfigDict(frozen=True)

    proposal: TradeProposal
    wallet: WalletState                   # ledger snapshot right after commit
    settled_at: datetime = Field(default_factory=_utcnow)


class WithdrawalReceipt(BaseModel):
    model_config = ConfigDict(frozen=True)

    proposal: WithdrawalProposal
    wallet: WalletState
    settled_at: datetime = Field(default_factory=_utcnow)


# -----------------------------------------------------------------------------
# Alerts
# -----------------------------------------------------------------------------

class Alert(BaseModel):
    """User-defined price threshold for one metal."""

    id: str
    metal: MetalKind
    target_price: PositiveFloat
    status: AlertStatus = AlertStatus.PENDING
    created_at: datetime = Field(default_factory=_utcnow)
