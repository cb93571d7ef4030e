"""main.py

Streamlit **entry-point** for the metal wallet dashboard.

Responsibilities
----------------
* Define global page layout (wide view, expanded sidebar, title).
* Sidebar: pricing context (region/currency), display unit and a simple
  **navigation radio** between Wallet, Trade, Withdraw and Alerts.
* Trigger an **auto-refresh** every *TICK_SECONDS*; each refresh is one
  price-feed tick. Reruns caused by clicks reuse the current sample.

Run with ``streamlit run metaldeck/main.py``.
"""

from __future__ import annotations

# -----------------------------------------------------------------------------
# Third-party imports
# -----------------------------------------------------------------------------
import streamlit as st
from streamlit_autorefresh import st_autorefresh

# -----------------------------------------------------------------------------
# 0) Global page configuration – must run before any Streamlit call
# -----------------------------------------------------------------------------
st.set_page_config(
    page_title="Metal wallet",
    page_icon="🪙",
    layout="wide",
    initial_sidebar_state="expanded",
)

# -----------------------------------------------------------------------------
# Local imports (after Streamlit initialisation)
# -----------------------------------------------------------------------------
from metaldeck import APP_NAME, VERSION
from metaldeck.config import configure_logging, settings
from metaldeck.services import CONTEXTS, unit_price, MetalKind
from metaldeck._pages import registry
from metaldeck._pages._helpers import fmt_cash, get_session

configure_logging()
session = get_session()
feed = session["feed"]

# -----------------------------------------------------------------------------
# 1) Sidebar – context, unit and navigation
# -----------------------------------------------------------------------------
st.sidebar.title(APP_NAME)

codes = list(CONTEXTS)
code = st.sidebar.selectbox(
    "Region",
    codes,
    index=codes.index(feed.context.code),
    format_func=lambda c: f"{c} · {CONTEXTS[c].currency}",
)
if code != feed.context.code:
    # New base price; the old context's drift is thrown away
    feed.switch_context(code)

unit = st.sidebar.radio("Unit", feed.context.units, horizontal=True)
page = st.sidebar.radio("Navigate", list(registry), key="sidebar_page")

# -----------------------------------------------------------------------------
# 2) Auto-refresh – one feed tick per refresh
# -----------------------------------------------------------------------------
tick = st_autorefresh(interval=settings()["TICK_SECONDS"] * 1000, key="refresh")
if feed.latest is None or st.session_state.get("last_tick") != tick:
    st.session_state.last_tick = tick
    feed.sample()

sample = feed.latest
st.sidebar.markdown("---")
st.sidebar.metric(
    label="Gold per gram",
    value=fmt_cash(unit_price(sample, MetalKind.GOLD), feed.context.currency),
    delta=f"{sample.trend_delta:+.2f}",
)
if sample.is_simulated:
    st.sidebar.caption("Demo prices – no live quote available.")
st.sidebar.caption(f"v{VERSION}")

# -----------------------------------------------------------------------------
# 3) Routing
# -----------------------------------------------------------------------------
if page in ("Wallet", "Trade"):
    registry[page](session, unit=unit)
else:
    registry[page](session)
