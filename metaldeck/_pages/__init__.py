"""Registry of Streamlit pages so main.py can route dynamically."""
from typing import Callable

from . import alerts, trade, wallet, withdraw

Page = Callable[..., None]

registry: dict[str, Page] = {
    "Wallet": wallet.render,
    "Trade": trade.render,
    "Withdraw": withdraw.render,
    "Alerts": alerts.render,
}

__all__ = ["registry"]
