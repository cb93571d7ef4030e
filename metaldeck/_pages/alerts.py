"""alerts.py

Streamlit page to create and list **price alerts**.
"""

from __future__ import annotations

import pandas as pd
import streamlit as st

from metaldeck.services import MetalKind
from ._colors import STATUS_LIGHT, _row_style
from ._helpers import fmt_cash


def render(session: dict) -> None:  # noqa: D401
    """Draw the **Alerts** page."""
    st.title("Price alerts")

    registry, feed = session["alerts"], session["feed"]
    currency = feed.context.currency

    # ------------------------------------------------------------------
    # 1) New alert form
    # ------------------------------------------------------------------
    with st.form("new_alert", clear_on_submit=True):
        metal = st.selectbox("Metal", list(MetalKind), format_func=lambda m: m.value.title())
        target = st.text_input(f"Target price ({currency})")
        if st.form_submit_button("Create alert") and registry.create(metal, target) is None:
            st.warning("Enter a target price greater than zero.")

    # ------------------------------------------------------------------
    # 2) Existing alerts, newest first
    # ------------------------------------------------------------------
    alerts = registry.list()
    if not alerts:
        st.info("No alerts yet.")
        return
    df = pd.DataFrame(
        [
            {
                "light": STATUS_LIGHT.get(a.status.value, ""),
                "id": a.id,
                "metal": a.metal.value.title(),
                "target": fmt_cash(a.target_price, currency),
                "status": a.status.value,
                "created": a.created_at,
            }
            for a in alerts
        ]
    )
    st.dataframe(
        df.style.apply(_row_style, axis=1),
        hide_index=True,
        use_container_width=True,
        column_config={
            "light": st.column_config.TextColumn(" ", width="small"),
            "created": st.column_config.DatetimeColumn("Created", format="HH:mm:ss"),
        },
    )
