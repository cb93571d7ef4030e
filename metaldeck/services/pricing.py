"""pricing.py

Pricing contexts, per-metal unit prices and holdings valuation.

A *pricing context* is the region/currency the user trades in. It sets
the feed's starting reference price and the size of its simulated
moves, plus the display units offered (the UAE market quotes in tola as
well as grams). Storage is always grams – tola is a display concern.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import pandas as pd

from metaldeck.services.model import MetalKind, PriceSample, WalletState

logger = logging.getLogger(__name__)

# -----------------------------------------------------------------------------
# Configuration constants
# -----------------------------------------------------------------------------

MULTIPLIERS: dict[MetalKind, float] = {
    MetalKind.GOLD: 1.0,
    MetalKind.SILVER: 0.0125,
    MetalKind.PLATINUM: 0.65,
}

GRAMS_PER_TOLA = 11.6638038


@dataclass(frozen=True)
class PricingContext:
    code: str                  # "TR", "AE", …
    currency: str              # ISO code used for display
    base_price: float          # reference price per gram at feed start
    volatility: float          # amplitude of one simulated step
    units: tuple[str, ...] = ("g",)


CONTEXTS: dict[str, PricingContext] = {
    "TR": PricingContext("TR", "TRY", base_price=2250.0, volatility=5.0),
    # Smaller base → smaller steps so percentage moves stay comparable
    "AE": PricingContext("AE", "AED", base_price=245.0, volatility=0.6, units=("g", "tola")),
}
DEFAULT_CONTEXT = "TR"


def get_context(code: str | None) -> PricingContext:
    """Return the context for *code*, or the default one for unknown codes."""
    key = (code or "").upper()
    if key not in CONTEXTS:
        logger.warning("Unknown pricing context %r – using %s", code, DEFAULT_CONTEXT)
        key = DEFAULT_CONTEXT
    return CONTEXTS[key]

# -----------------------------------------------------------------------------
# Unit prices
# -----------------------------------------------------------------------------

def multiplier(metal: MetalKind) -> float:
    return MULTIPLIERS[MetalKind(metal)]


def unit_price(sample: PriceSample, metal: MetalKind) -> float:
    """Price of one gram of *metal* at *sample*."""
    return sample.reference_price * multiplier(metal)


def to_display_unit(grams: float, unit: str = "g") -> float:
    if unit == "g":
        return grams
    if unit == "tola":
        return grams / GRAMS_PER_TOLA
    raise ValueError(f"Unknown display unit: {unit!r}")


def from_display_unit(quantity: float, unit: str = "g") -> float:
    if unit == "g":
        return quantity
    if unit == "tola":
        return quantity * GRAMS_PER_TOLA
    raise ValueError(f"Unknown display unit: {unit!r}")


def display_unit_price(price_per_gram: float, unit: str = "g") -> float:
    """Price of one *unit* of metal given its price per gram."""
    return price_per_gram * from_display_unit(1.0, unit)

# -----------------------------------------------------------------------------
# Valuation
# -----------------------------------------------------------------------------

def holding_value(state: WalletState, sample: PriceSample, metal: MetalKind) -> float:
    return state.holding(metal) * unit_price(sample, metal)


def holdings_frame(state: WalletState, sample: PriceSample) -> pd.DataFrame:
    """One row per metal: ``metal, quantity, unit_price, value, share``.

    Rows are sorted by value, biggest first. ``share`` is the fraction of
    the metal (not cash) value and is 0 everywhere when nothing is held.
    """
    rows = [
        {
            "metal": metal.value,
            "quantity": state.holding(metal),
            "unit_price": unit_price(sample, metal),
        }
        for metal in MetalKind
    ]
    df = pd.DataFrame(rows)
    df["value"] = df["quantity"] * df["unit_price"]
    total = df["value"].sum()
    df["share"] = df["value"] / total if total > 0 else 0.0
    return df.sort_values("value", ascending=False).reset_index(drop=True)


def portfolio_value(state: WalletState, sample: PriceSample) -> float:
    """Cash plus the market value of every holding."""
    metals = sum(holding_value(state, sample, metal) for metal in MetalKind)
    return state.cash_balance + metals
