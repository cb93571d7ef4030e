"""Formatting helpers used by the dashboard pages."""

import math

import pytest

from metaldeck._pages._helpers import (
    ZERO_DISPLAY,
    _format_significant_float,
    fmt_cash,
    fmt_pct,
    fmt_qty,
)
from metaldeck.services import GRAMS_PER_TOLA


@pytest.mark.parametrize(
    "value, unity, expected",
    [
        (1234.6565, "TRY", "1,234.66 TRY"),
        (0.006565, None, "0.0066"),
        (-28.5, "AED", "-28.50 AED"),
        (0, "TRY", ZERO_DISPLAY),
        (None, None, ZERO_DISPLAY),
        (math.nan, None, ZERO_DISPLAY),
    ],
)
def test_format_significant_float(value, unity, expected):
    assert _format_significant_float(value, unity) == expected


def test_fmt_cash():
    assert fmt_cash(84250, "TRY") == "84,250.00 TRY"
    assert fmt_cash(0, "AED") == "0.00 AED"
    assert fmt_cash(None, "AED") == ZERO_DISPLAY


def test_fmt_qty_converts_display_unit():
    assert fmt_qty(2.154) == "2.154 g"
    assert fmt_qty(GRAMS_PER_TOLA * 2, "tola") == "2.000 tola"


def test_fmt_pct():
    assert fmt_pct(0.1234) == "12.34%"
