"""errors.py

Exception hierarchy of the wallet engine.

The ledger primitives raise these; the trade and withdrawal engines
catch the user-facing ones and hand them back to their callers as
``Rejection`` values, so only programming errors (``InvalidTransition``)
and internal-consistency faults (``SettlementFault``) ever propagate out
of an engine.
"""

from __future__ import annotations


class WalletError(Exception):
    """Base class for every wallet engine error."""


class InsufficientCash(WalletError):
    """A cash debit exceeds the available balance."""


class InsufficientMetal(WalletError):
    """A metal debit exceeds the holding for that metal."""


class InvalidAmount(WalletError, ValueError):
    """Zero, negative, non-numeric or non-finite amount."""


class LedgerBusy(WalletError):
    """Another settlement already holds the ledger's critical section."""


class InvalidTransition(WalletError, RuntimeError):
    """A state machine was driven along an edge it does not define."""


class SettlementFault(WalletError):
    """A validated proposal failed to commit (should never happen)."""
