"""ledger.py

The **wallet ledger** – the one piece of mutable state in the engine.

Cash balance and per-metal holdings are only ever changed through the
primitives below. Each primitive validates before it touches anything,
so a rejected call leaves the wallet exactly as it was. Multi-step
commits (a buy debits cash *and* credits metal) go through
``transaction()``, which restores the previous state if any step fails.

Two hooks face the outside world:

* ``repair()`` salvages whatever the persistence collaborator hands in
  (absent, partial or corrupted) and fills the gaps from ``SEED_WALLET``.
* ``subscribe()`` delivers a snapshot after every committed mutation so
  the collaborator can persist it however and whenever it likes.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable, Mapping
from contextlib import contextmanager
from typing import Any, Iterator

from metaldeck.services.errors import InsufficientCash, InsufficientMetal, InvalidAmount, LedgerBusy
from metaldeck.services.model import MetalKind, WalletState

logger = logging.getLogger(__name__)

Listener = Callable[[WalletState], None]

# -----------------------------------------------------------------------------
# Seed & repair
# -----------------------------------------------------------------------------

SEED_WALLET: dict[str, Any] = {
    "cash_balance": 84250.0,
    "holdings": {
        MetalKind.GOLD: 2.154,
        MetalKind.SILVER: 120.4,
        MetalKind.PLATINUM: 0.85,
    },
    "wallet_addresses": {
        MetalKind.GOLD: "GOLD-G9H2-4K7Z",
        MetalKind.SILVER: "GSIL-S4Q8-1M2N",
        MetalKind.PLATINUM: "GPLT-P7R3-9X1C",
    },
}

# Stored wallets may come from a camelCase client
_ALIASES = {
    "cash_balance": ("cash_balance", "cashBalance"),
    "holdings": ("holdings", "metals"),
    "wallet_addresses": ("wallet_addresses", "walletAddresses"),
}


def _lookup(raw: Mapping, field: str) -> Any:
    for key in _ALIASES[field]:
        if key in raw:
            return raw[key]
    return None


def _quantity(value: Any) -> float | None:
    """*value* as a finite non-negative float, else ``None``."""
    if isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number) or number < 0:
        return None
    return number


def _address(value: Any) -> str | None:
    return value if isinstance(value, str) and value.strip() else None


def _per_metal(raw: Any, validate: Callable[[Any], Any], seed: dict, field: str, repaired: list[str]) -> dict:
    if not isinstance(raw, Mapping):
        repaired.append(field)
        return dict(seed)
    by_name = {str(getattr(k, "value", k)).lower(): v for k, v in raw.items()}
    out = {}
    for metal in MetalKind:
        value = validate(by_name.get(metal.value))
        if value is None:
            repaired.append(f"{field}.{metal.value}")
            value = seed[metal]
        out[metal] = value
    return out


def repair(raw: WalletState | Mapping | None) -> WalletState:
    """Return a valid ``WalletState`` built from *raw*.

    Valid pieces are kept; anything missing or malformed is replaced by
    its ``SEED_WALLET`` counterpart. ``holdings`` and
    ``wallet_addresses`` are salvaged metal by metal. Never raises.
    """
    if isinstance(raw, WalletState):
        raw = raw.model_dump()

    repaired: list[str] = []
    fresh = raw is None
    if not isinstance(raw, Mapping):
        if not fresh:
            repaired.append("wallet")
        raw = {}

    cash = _quantity(_lookup(raw, "cash_balance"))
    if cash is None:
        repaired.append("cash_balance")
        cash = SEED_WALLET["cash_balance"]

    holdings = _per_metal(
        _lookup(raw, "holdings"), _quantity, SEED_WALLET["holdings"], "holdings", repaired
    )
    addresses = _per_metal(
        _lookup(raw, "wallet_addresses"), _address, SEED_WALLET["wallet_addresses"],
        "wallet_addresses", repaired,
    )

    if fresh:
        logger.info("No stored wallet – starting from seed values")
    elif repaired:
        logger.warning("Repaired malformed wallet state: %s", ", ".join(repaired))
    return WalletState(cash_balance=cash, holdings=holdings, wallet_addresses=addresses)


def _amount(value: Any, what: str) -> float:
    amount = _quantity(value)
    if amount is None:
        raise InvalidAmount(f"{what} must be a finite non-negative number, got {value!r}")
    return amount

# -----------------------------------------------------------------------------
# Ledger
# -----------------------------------------------------------------------------

class WalletLedger:
    """Authoritative cash balance and holdings of one session."""

    def __init__(self, state: WalletState | Mapping | None = None) -> None:
        self._state = repair(state)
        self._listeners: list[Listener] = []
        self._tx_depth = 0
        self._dirty = False
        self._settlement_owner: str | None = None

    # -- reads --------------------------------------------------------------

    @property
    def cash_balance(self) -> float:
        return self._state.cash_balance

    def holding(self, metal: MetalKind) -> float:
        return self._state.holding(metal)

    def snapshot(self) -> WalletState:
        """Deep copy of the current state – safe to hand out."""
        return self._state.model_copy(deep=True)

    # -- primitives ---------------------------------------------------------

    def credit(self, cash: float) -> None:
        amount = _amount(cash, "cash")
        self._state.cash_balance += amount
        self._changed()

    def debit(self, cash: float, *, clamp: bool = False) -> None:
        """Take *cash* out of the balance.

        Raises ``InsufficientCash`` when *cash* exceeds the balance, unless
        *clamp* is set, in which case the balance is emptied instead.
        """
        amount = _amount(cash, "cash")
        balance = self._state.cash_balance
        if amount > balance:
            if not clamp:
                raise InsufficientCash(f"cannot debit {amount:,.2f} from a balance of {balance:,.2f}")
            logger.warning("Debit of %.2f clamped to balance %.2f", amount, balance)
            amount = balance
        self._state.cash_balance = max(0.0, balance - amount)
        self._changed()

    def credit_metal(self, metal: MetalKind, quantity: float) -> None:
        metal = MetalKind(metal)
        amount = _amount(quantity, "quantity")
        self._state.holdings[metal] = self._state.holding(metal) + amount
        self._changed()

    def debit_metal(self, metal: MetalKind, quantity: float) -> None:
        metal = MetalKind(metal)
        amount = _amount(quantity, "quantity")
        held = self._state.holding(metal)
        if amount > held:
            raise InsufficientMetal(f"cannot debit {amount:.3f} {metal.value} from a holding of {held:.3f}")
        # Clamp absorbs float rounding on "sell everything"
        self._state.holdings[metal] = max(0.0, held - amount)
        self._changed()

    # -- atomic groups ------------------------------------------------------

    @contextmanager
    def transaction(self) -> Iterator[WalletLedger]:
        """Apply every primitive inside the block, or none of them.

        Listeners are notified once, after the outermost block commits.
        """
        before = self._state.model_copy(deep=True)
        self._tx_depth += 1
        try:
            yield self
        except BaseException:
            self._state = before
            self._tx_depth -= 1
            if self._tx_depth == 0:
                self._dirty = False
            raise
        self._tx_depth -= 1
        if self._tx_depth == 0 and self._dirty:
            self._dirty = False
            self._notify()

    @property
    def settling(self) -> bool:
        return self._settlement_owner is not None

    @property
    def settling_owner(self) -> str | None:
        return self._settlement_owner

    def begin_settlement(self, owner: str) -> None:
        """Claim the wallet's single settlement slot for *owner*.

        A proposal is validated and committed while it holds the slot; a
        second claim meanwhile gets ``LedgerBusy``.
        """
        if self._settlement_owner is not None:
            raise LedgerBusy(f"wallet is busy settling a {self._settlement_owner}")
        self._settlement_owner = owner

    def end_settlement(self, owner: str) -> None:
        if self._settlement_owner != owner:
            raise LedgerBusy(f"{owner} does not hold the settlement slot")
        self._settlement_owner = None

    @contextmanager
    def settlement(self, owner: str) -> Iterator[WalletLedger]:
        self.begin_settlement(owner)
        try:
            yield self
        finally:
            self.end_settlement(owner)

    # -- persistence hook ---------------------------------------------------

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call *listener* with a snapshot after each committed mutation.

        Returns a callable that removes the listener again.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _changed(self) -> None:
        if self._tx_depth:
            self._dirty = True
        else:
            self._notify()

    def _notify(self) -> None:
        if not self._listeners:
            return
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                # The mutation stands even when persisting it fails
                logger.exception("Wallet listener %r failed", listener)
