"""_colors.py

Colour utilities for the wallet chart and the **Alerts** table.

The module provides:
* A fixed colour per metal (`METAL_COLORS`) so the donut keeps the same
  slice colours whatever the sort order.
* Emoji *status lights* (`STATUS_LIGHT`) shown next to each alert.
* Functions to:
  - Fade an alert row's background toward black as it ages, so freshly
    created alerts stand out (`_color_interp`, `_row_style`).
  - Pick a legible foreground colour for a background (`contrast_text_color`).
"""

from __future__ import annotations

# -----------------------------------------------------------------------------
# Standard library
# -----------------------------------------------------------------------------
from datetime import datetime, timezone

# Third-party
import pandas as pd

from metaldeck.services import AlertStatus, MetalKind

# -----------------------------------------------------------------------------
# PUBLIC CONSTANTS – metal / status → colour
# -----------------------------------------------------------------------------
METAL_COLORS: dict[str, str] = {
    MetalKind.GOLD.value: "#d4af37",
    MetalKind.SILVER.value: "#c0c0c0",
    MetalKind.PLATINUM.value: "#8e9aaf",
}

STATUS_LIGHT: dict[str, str] = {
    AlertStatus.PENDING.value: "🟡",
    AlertStatus.COMPLETED.value: "🟢",
}

# Freshest background shade per alert status
_BG0: dict[str, str] = {
    AlertStatus.PENDING.value: "#fff700",
    AlertStatus.COMPLETED.value: "#00ff00",
}

# -----------------------------------------------------------------------------
# Helper functions
# -----------------------------------------------------------------------------

def _color_interp(c0: str, t: float) -> str:
    """Return *c0* blended toward black by fraction *t* (0 → unchanged, 1 → black)."""
    r0, g0, b0 = int(c0[1:3], 16), int(c0[3:5], 16), int(c0[5:7], 16)
    r = round(r0 * (1 - t))
    g = round(g0 * (1 - t))
    b = round(b0 * (1 - t))
    return f"#{r:02x}{g:02x}{b:02x}"


def contrast_text_color(bg_hex: str) -> str:
    """Pick black or white text for best contrast on *bg_hex* (YIQ luminance)."""
    h = bg_hex.lstrip("#")
    r, g, b = int(h[0:2], 16), int(h[2:4], 16), int(h[4:6], 16)
    yiq = (r * 299 + g * 587 + b * 114) / 1000
    return "#000000" if yiq >= 128 else "#ffffff"

# -----------------------------------------------------------------------------
# Styling hook used by dataframe.style.apply
# -----------------------------------------------------------------------------

def _row_style(row: pd.Series, *, levels: int = 3, fresh_window_s: float = 60) -> list[str]:
    """CSS for one alerts row, keyed on its ``status`` and ``created`` columns.

    Rows created within *fresh_window_s* get the full colour; each further
    window fades them one step, and past *levels* steps they are unstyled.
    """
    bg0 = _BG0.get(str(row["status"]).lower())
    if bg0 is None:
        return [""] * len(row)

    age = (datetime.now(timezone.utc) - row["created"]).total_seconds()
    bucket = int(age // fresh_window_s)
    if bucket >= levels:
        return [""] * len(row)

    bg = _color_interp(bg0, bucket / levels)
    return [f"background-color:{bg};color:{contrast_text_color(bg)}"] * len(row)
