"""wallet.py

Streamlit page that visualises the **wallet**: cash, holdings and the
deposit addresses of each metal.

* Headline metrics for cash balance and total portfolio value.
* Donut chart of the metal holdings by market value.
* Holdings table with quantities in the user's display unit.
"""

from __future__ import annotations

import plotly.express as px
import streamlit as st

from metaldeck.services import display_unit_price, holdings_frame, portfolio_value
from ._colors import METAL_COLORS
from ._helpers import _format_significant_float, fmt_cash, fmt_pct, fmt_qty

# -----------------------------------------------------------------------------
# Page renderer
# -----------------------------------------------------------------------------

def render(session: dict, unit: str = "g") -> None:  # noqa: D401
    """Entry‑point for Streamlit – draw the **Wallet** page."""
    st.title("Wallet")

    ledger, feed = session["ledger"], session["feed"]
    sample = feed.latest
    currency = feed.context.currency
    state = ledger.snapshot()

    # ------------------------------------------------------------------
    # 1) Headline metrics
    # ------------------------------------------------------------------
    col_cash, col_total = st.columns(2)
    col_cash.metric("Cash balance", fmt_cash(state.cash_balance, currency))
    if sample is None:
        st.info("Waiting for the first price tick…")
        return
    col_total.metric("Portfolio value", fmt_cash(portfolio_value(state, sample), currency))

    # ------------------------------------------------------------------
    # 2) Donut chart of holdings by value
    # ------------------------------------------------------------------
    df = holdings_frame(state, sample)
    if df["value"].sum() > 0:
        fig = px.pie(
            df, names="metal", values="value", hole=0.4,
            color="metal", color_discrete_map=METAL_COLORS,
        )
        fig.update_layout(autosize=True, height=420, margin=dict(t=30, b=30, l=30, r=30))
        st.plotly_chart(fig, use_container_width=True)
    else:
        st.info("No metal holdings yet.")

    # ------------------------------------------------------------------
    # 3) Holdings table
    # ------------------------------------------------------------------
    df_disp = df.copy()
    df_disp["quantity"] = df["quantity"].map(lambda g: fmt_qty(g, unit))
    df_disp["unit_price"] = df["unit_price"].map(lambda x: _format_significant_float(display_unit_price(x, unit), currency))
    df_disp["value"] = df["value"].map(lambda x: _format_significant_float(x, currency))
    df_disp["share"] = df["share"].map(fmt_pct)
    st.dataframe(
        df_disp,
        hide_index=True,
        use_container_width=True,
        column_config={
            "metal": st.column_config.TextColumn("Metal"),
            "quantity": st.column_config.TextColumn("Holding"),
            "unit_price": st.column_config.TextColumn(f"Price per {unit} ({currency})"),
            "value": st.column_config.TextColumn(f"Value ({currency})"),
            "share": st.column_config.TextColumn("Share (%)"),
        },
    )

    # ------------------------------------------------------------------
    # 4) Deposit addresses (read-only)
    # ------------------------------------------------------------------
    with st.expander("Deposit addresses"):
        for metal, address in state.wallet_addresses.items():
            st.text(f"{metal.value:<9} {address}")
