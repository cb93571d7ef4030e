from __future__ import annotations

import random

import pytest

from metaldeck.services import (
    AlertRegistry,
    PriceFeed,
    TradeEngine,
    WalletLedger,
    WithdrawalEngine,
)


@pytest.fixture
def ledger():
    """Ledger seeded with the default wallet (cash 84 250, gold 2.154 g …)."""
    return WalletLedger()


@pytest.fixture
def small_ledger():
    return WalletLedger({"cash_balance": 100, "holdings": {"gold": 1.0, "silver": 0, "platinum": 0}})


@pytest.fixture
def trade_engine(ledger):
    return TradeEngine(ledger, fee_rate=0.005, settlement_delay=0.01)


@pytest.fixture
def withdrawal_engine(ledger):
    return WithdrawalEngine(ledger, settlement_delay=0.01)


@pytest.fixture
def feed():
    """Offline feed with a seeded walk."""
    return PriceFeed("TR", rng=random.Random(42))


@pytest.fixture
def registry():
    return AlertRegistry()
