"""api.py

Thin synchronous client for the optional external **quote endpoint**.

* A single GET per tick (``requests.get``, short timeout) – the caller
  decides the cadence.
* Normalises the few payload shapes a quote service is likely to send
  into a ``Quote``.
* Never raises: every failure comes back as ``FeedUnavailable`` with a
  reason, so the price feed can branch to its simulated walk explicitly.
"""

from __future__ import annotations

# -----------------------------------------------------------------------------
# Standard library & 3rd-party imports
# -----------------------------------------------------------------------------
import logging
import math

import requests

from metaldeck.services.model import FeedUnavailable, Quote

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 3.0  # seconds

# -----------------------------------------------------------------------------
# Internal convenience helpers
# -----------------------------------------------------------------------------

def _get(url: str, timeout: float):
    """Perform a **GET** request and decode the JSON body.

    Raises ``requests.exceptions.RequestException`` on transport errors or
    non-2xx responses, ``ValueError`` when the body is not JSON.
    """
    r = requests.get(url, headers={"accept": "application/json"}, timeout=timeout)
    r.raise_for_status()
    return r.json()


def _as_number(value) -> float | None:
    """Coerce *value* to a finite float, or ``None``."""
    if isinstance(value, bool):  # bool is an int subclass – never a price
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def _extract_quote(payload) -> Quote | None:
    """Find price/change fields regardless of the payload flavour.

    Supported shapes
    ----------------
    * ``{"price": 2301.4, "change": -3.2}`` – plain quote service
    * ``{"last": 2301.4, "change": -3.2}``  – CCXT-style ticker
    * either of the above nested under ``"data"``
    """
    if not isinstance(payload, dict):
        return None
    if isinstance(payload.get("data"), dict):
        payload = payload["data"]

    price = None
    for key in ("price", "last"):
        if key in payload:
            price = _as_number(payload[key])
            break
    if price is None or price <= 0:
        return None

    change = _as_number(payload.get("change"))
    return Quote(price=price, change=change or 0.0)

# -----------------------------------------------------------------------------
# Public API
# -----------------------------------------------------------------------------

def fetch_quote(url: str, timeout: float = DEFAULT_TIMEOUT) -> Quote | FeedUnavailable:
    """Fetch one quote from *url*.

    Returns a ``Quote`` on success and ``FeedUnavailable`` for anything
    else: no URL, transport failure, HTTP error, non-JSON body or a
    payload without a usable positive price.
    """
    if not url:
        return FeedUnavailable(reason="no endpoint configured")

    try:
        payload = _get(url, timeout)
    except requests.exceptions.JSONDecodeError:
        return FeedUnavailable(reason="response is not JSON")
    except requests.exceptions.RequestException as exc:
        logger.debug("Quote request to %s failed: %s", url, exc)
        return FeedUnavailable(reason=f"request failed: {exc.__class__.__name__}")
    except ValueError:
        return FeedUnavailable(reason="response is not JSON")

    quote = _extract_quote(payload)
    if quote is None:
        return FeedUnavailable(reason="payload has no usable price")
    return quote
