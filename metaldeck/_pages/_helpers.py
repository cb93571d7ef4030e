"""_helpers.py

Utility helpers shared by the Streamlit pages.

The module groups two kinds of helpers:

1. **Session bootstrap** – `get_session` builds the ledger, feed and
   engines once per browser session and parks them in
   ``st.session_state``. The ledger's snapshots are written back to
   ``st.session_state`` after every mutation, which is all the
   persistence this dashboard needs.
2. **Formatting helpers** – money, quantities and percentages for
   metrics and tables.
"""

from __future__ import annotations

import math

import pandas as pd
import streamlit as st

from metaldeck.config import settings
from metaldeck.services import (
    SEED_ALERTS,
    AlertRegistry,
    PriceFeed,
    TradeEngine,
    WalletLedger,
    WalletState,
    WithdrawalEngine,
)
from metaldeck.services.pricing import to_display_unit

ZERO_DISPLAY = "--"  # Default display for zero values
STORED_WALLET_KEY = "stored_wallet"

# -----------------------------------------------------------------------------
# 1) Session bootstrap
# -----------------------------------------------------------------------------

def _persist(state: WalletState) -> None:
    st.session_state[STORED_WALLET_KEY] = state.model_dump(mode="json")


def get_session() -> dict:
    """Return the per-session engine bundle, creating it on first use.

    Keys: ``ledger``, ``feed``, ``trade``, ``withdrawal``, ``alerts``.
    """
    if "engine" not in st.session_state:
        cfg = settings()
        ledger = WalletLedger(st.session_state.get(STORED_WALLET_KEY))
        ledger.subscribe(_persist)
        _persist(ledger.snapshot())
        st.session_state.engine = {
            "ledger": ledger,
            "feed": PriceFeed(
                cfg["DEFAULT_CONTEXT"],
                cfg["PRICE_FEED_URL"],
                timeout=cfg["PRICE_FEED_TIMEOUT"],
            ),
            "trade": TradeEngine(ledger),
            "withdrawal": WithdrawalEngine(ledger),
            "alerts": AlertRegistry(SEED_ALERTS),
        }
    return st.session_state.engine

# -----------------------------------------------------------------------------
# 2) Formatting helpers
# -----------------------------------------------------------------------------

def _format_significant_float(value: float | int | None, unity: str | None = None) -> str:
    """
    Format a float into a human-readable string with dynamic precision.

    - ``abs(value) >= 1``: thousands separator and 2 decimals
      (1234.6565 → "1,234.66").
    - ``abs(value) < 1``: first 2 significant digits are kept
      (0.006565 → "0.0066").
    - zero / None / NaN → ``ZERO_DISPLAY``.

    Args:
        value (float | int | None): The number to format.
        unity (str | None): Optional unit/currency suffix (e.g., "TRY").
    """
    if value is None or pd.isna(value) or value == 0.0:
        return ZERO_DISPLAY

    is_negative = value < 0
    abs_value = abs(value)

    if abs_value >= 1:
        formatted = f"{abs_value:,.2f}"
    else:
        exp = math.floor(math.log10(abs_value))
        decimals = 2 - exp - 1
        rounded = round(abs_value, decimals)
        formatted = f"{rounded:.{decimals}f}"

    if is_negative:
        formatted = "-" + formatted
    if unity:
        formatted += f" {unity}"

    return formatted


def fmt_cash(value: float | None, currency: str) -> str:
    if value is None or pd.isna(value):
        return ZERO_DISPLAY
    return f"{value:,.2f} {currency}"


def fmt_qty(grams: float | None, unit: str = "g") -> str:
    """Quantity stored in grams, shown in *unit* with 3 decimals."""
    if grams is None or pd.isna(grams):
        return ZERO_DISPLAY
    return f"{to_display_unit(grams, unit):,.3f} {unit}"


fmt_pct = lambda x: f"{x*100:,.2f}%"  # noqa: E731
