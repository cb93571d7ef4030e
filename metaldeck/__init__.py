"""Package init: shares app-wide constants.

Streamlit page configuration lives in ``main.py`` so that importing the
engine (``metaldeck.services``) never touches Streamlit.
"""
from __future__ import annotations

APP_NAME = "metal-wallet-deck"
APP_ICON = "🪙"
VERSION = "0.1.0"
