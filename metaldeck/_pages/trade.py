"""trade.py

Streamlit page for **buying and selling** metal.

The two amount fields are linked through one ``AmountEntry``: whichever
field the user edits becomes the source and the other is re-derived in
the widget callback. Streamlit only fires ``on_change`` for user edits,
so the derived write never bounces back.
"""

from __future__ import annotations

import asyncio

import streamlit as st

from metaldeck.services import (
    AmountEntry,
    MetalKind,
    Rejection,
    TradeMode,
    TradeStep,
    display_unit_price,
    from_display_unit,
    parse_amount,
    to_display_unit,
    unit_price,
)
from ._helpers import fmt_cash, fmt_qty

ENTRY_KEY = "trade_entry"


def _sync_fields(source: str, price: float, engine, unit: str) -> None:
    """Widget callback – rebuild the entry from *source* and derive the other side.

    The quantity field is in the display *unit*; the entry always holds grams.
    """
    raw = st.session_state[f"trade_{source}"]
    if source == "metal":
        quantity = parse_amount(raw)
        raw = from_display_unit(quantity, unit) if quantity is not None else raw
    entry = AmountEntry(source, raw)
    st.session_state[ENTRY_KEY] = entry
    cash, metal = entry.resolve(price)
    if source == "cash":
        st.session_state.trade_metal = f"{to_display_unit(metal, unit):.3f}" if metal else ""
    else:
        st.session_state.trade_cash = f"{cash:.2f}" if cash else ""
    engine.clear_error()


def _reset_form(engine) -> None:
    engine.dismiss()
    st.session_state.trade_cash = ""
    st.session_state.trade_metal = ""
    st.session_state.pop(ENTRY_KEY, None)


def render(session: dict, unit: str = "g") -> None:  # noqa: D401
    """Draw the **Trade** page."""
    st.title("Trade")

    engine, feed = session["trade"], session["feed"]
    sample = feed.latest
    if sample is None:
        st.info("Waiting for the first price tick…")
        return
    currency = feed.context.currency

    # ------------------------------------------------------------------
    # 1) Mode, metal and live unit price
    # ------------------------------------------------------------------
    col_mode, col_metal = st.columns(2)
    mode = col_mode.radio("Side", list(TradeMode), format_func=lambda m: m.value.title(), horizontal=True)
    metal = col_metal.selectbox("Metal", list(MetalKind), format_func=lambda m: m.value.title())
    price = unit_price(sample, metal)
    st.metric(
        f"{metal.value.title()} per {unit}",
        fmt_cash(display_unit_price(price, unit), currency),
        delta=f"{sample.trend_delta:+.2f}",
    )

    # ------------------------------------------------------------------
    # 2) Linked amount fields
    # ------------------------------------------------------------------
    col_cash, col_qty = st.columns(2)
    col_cash.text_input(f"Amount ({currency})", key="trade_cash", on_change=_sync_fields, args=("cash", price, engine, unit))
    col_qty.text_input(f"Quantity ({unit})", key="trade_metal", on_change=_sync_fields, args=("metal", price, engine, unit))
    entry = st.session_state.get(ENTRY_KEY, AmountEntry.cash(None))

    if engine.step in (TradeStep.IDLE, TradeStep.SUCCESS):
        if st.button("Review trade", type="primary"):
            engine.review(mode, metal, entry, price)
            st.rerun()
    if engine.error is not None:
        st.error(engine.error.message)

    # ------------------------------------------------------------------
    # 3) Review → processing → success
    # ------------------------------------------------------------------
    proposal = engine.proposal
    if engine.step is TradeStep.REVIEW and proposal is not None:
        with st.container(border=True):
            st.subheader(f"Review {proposal.mode.value}")
            st.write(f"Metal: **{proposal.metal.value.title()}** · {fmt_qty(proposal.metal_quantity, unit)}")
            st.write(f"Amount: {fmt_cash(proposal.cash_amount, currency)}")
            st.write(f"Fee ({proposal.fee_rate:.2%}): {fmt_cash(proposal.fee, currency)}")
            if proposal.mode is TradeMode.BUY:
                st.write(f"**Total: {fmt_cash(proposal.total, currency)}**")
            else:
                st.write(f"**You receive: {fmt_cash(proposal.proceeds, currency)}**")

            col_ok, col_cancel = st.columns(2)
            if col_ok.button("Confirm", type="primary"):
                with st.spinner("Processing…"):
                    result = asyncio.run(engine.confirm())
                if isinstance(result, Rejection) and engine.error is None:
                    st.warning(result.message)
                else:
                    st.rerun()
            if col_cancel.button("Cancel"):
                engine.cancel()
                st.rerun()

    if engine.step is TradeStep.SUCCESS:
        st.success("Trade completed.")
        st.button("Done", on_click=_reset_form, args=(engine,))
