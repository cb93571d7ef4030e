"""withdraw.py

Streamlit page for **cash withdrawals**.
"""

from __future__ import annotations

import asyncio

import streamlit as st

from metaldeck.services import Rejection, RejectionReason, WithdrawalStep, parse_amount
from ._helpers import fmt_cash


def _done(engine) -> None:
    engine.dismiss()
    st.session_state.withdraw_amount = ""


def render(session: dict) -> None:  # noqa: D401
    """Draw the **Withdraw** page."""
    st.title("Withdraw")

    engine, ledger, feed = session["withdrawal"], session["ledger"], session["feed"]
    currency = feed.context.currency
    st.metric("Available cash", fmt_cash(ledger.cash_balance, currency))

    if engine.step is WithdrawalStep.SUCCESS:
        st.success(f"Withdrawal of {fmt_cash(parse_amount(engine.amount), currency)} completed.")
        st.button("Done", on_click=_done, args=(engine,))
        return

    amount = st.text_input(f"Amount ({currency})", key="withdraw_amount")
    if st.button("Withdraw", type="primary"):
        with st.spinner("Processing…"):
            result = asyncio.run(engine.submit(amount))
        if isinstance(result, Rejection) and result.reason is RejectionReason.BUSY:
            st.warning(result.message)
        else:
            st.rerun()
    if engine.error is not None:
        st.error(engine.error.message)
