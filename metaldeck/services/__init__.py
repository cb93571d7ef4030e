"""Public service API."""
from .alerts import SEED_ALERTS, AlertRegistry
from .api import fetch_quote
from .conversion import AmountEntry, cash_to_metal, metal_to_cash, parse_amount
from .errors import (
    InsufficientCash,
    InsufficientMetal,
    InvalidAmount,
    InvalidTransition,
    LedgerBusy,
    SettlementFault,
    WalletError,
)
from .feed import PriceFeed, PriceSubscription
from .ledger import SEED_WALLET, WalletLedger, repair
from .model import (
    Alert,
    AlertStatus,
    FeedUnavailable,
    MetalKind,
    PriceSample,
    Quote,
    Rejection,
    RejectionReason,
    TradeMode,
    TradeProposal,
    TradeReceipt,
    WalletState,
    WithdrawalProposal,
    WithdrawalReceipt,
)
from .pricing import (
    CONTEXTS,
    GRAMS_PER_TOLA,
    PricingContext,
    display_unit_price,
    from_display_unit,
    get_context,
    holdings_frame,
    portfolio_value,
    to_display_unit,
    unit_price,
)
from .trade import TradeEngine, TradeStep
from .withdrawal import WithdrawalEngine, WithdrawalStep

__all__ = [
    # engines
    "AlertRegistry",
    "PriceFeed",
    "PriceSubscription",
    "TradeEngine",
    "TradeStep",
    "WalletLedger",
    "WithdrawalEngine",
    "WithdrawalStep",
    # pure helpers
    "AmountEntry",
    "cash_to_metal",
    "metal_to_cash",
    "parse_amount",
    "fetch_quote",
    "to_display_unit",
    "display_unit_price",
    "from_display_unit",
    "repair",
    "get_context",
    "holdings_frame",
    "portfolio_value",
    "unit_price",
    "CONTEXTS",
    "GRAMS_PER_TOLA",
    "PricingContext",
    "SEED_WALLET",
    "SEED_ALERTS",
    # models
    "Alert",
    "AlertStatus",
    "FeedUnavailable",
    "MetalKind",
    "PriceSample",
    "Quote",
    "Rejection",
    "RejectionReason",
    "TradeMode",
    "TradeProposal",
    "TradeReceipt",
    "WalletState",
    "WithdrawalProposal",
    "WithdrawalReceipt",
    # errors
    "WalletError",
    "InsufficientCash",
    "InsufficientMetal",
    "InvalidAmount",
    "InvalidTransition",
    "LedgerBusy",
    "SettlementFault",
]
