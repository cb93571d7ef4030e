"""trade.py

Buy/sell state machine on top of the wallet ledger.

Steps
-----
``idle → review → processing → success``. A rejected review leaves the
engine resting in ``idle`` with ``error`` set; ``success`` is a resting
step too, so a new review may start straight from it.

Money flow
----------
* **buy** – cash leaves the wallet as ``cash + fee``, metal comes in.
* **sell** – metal leaves, cash comes in as ``cash − fee``.

Only one proposal per wallet is ever in flight. ``confirm()`` re-checks
the proposal against the live ledger and claims the ledger's settlement
slot before its first suspension point, so nothing can mutate the
wallet between that check and the commit.
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum

from metaldeck.config import settings
from metaldeck.services.conversion import AmountEntry
from metaldeck.services.errors import InvalidTransition, SettlementFault, WalletError
from metaldeck.services.ledger import WalletLedger
from metaldeck.services.machine import StepMachine
from metaldeck.services.model import (
    MetalKind,
    Rejection,
    RejectionReason,
    TradeMode,
    TradeProposal,
    TradeReceipt,
)

logger = logging.getLogger(__name__)

SETTLEMENT_OWNER = "trade"


class TradeStep(str, Enum):
    IDLE = "idle"
    REVIEW = "review"
    PROCESSING = "processing"
    SUCCESS = "success"


_TRANSITIONS = {
    TradeStep.IDLE: frozenset({TradeStep.REVIEW}),
    TradeStep.REVIEW: frozenset({TradeStep.REVIEW, TradeStep.PROCESSING, TradeStep.IDLE}),
    # → IDLE only when a validated commit faults
    TradeStep.PROCESSING: frozenset({TradeStep.SUCCESS, TradeStep.IDLE}),
    TradeStep.SUCCESS: frozenset({TradeStep.IDLE, TradeStep.REVIEW}),
}

MESSAGES = {
    RejectionReason.INVALID_AMOUNT: "Enter an amount greater than zero.",
    RejectionReason.INSUFFICIENT_CASH: "Insufficient balance for this purchase including fees.",
    RejectionReason.INSUFFICIENT_METAL: "Insufficient metal holdings for this sale.",
    RejectionReason.BUSY: "Another transaction is still being processed.",
}


def _rejection(reason: RejectionReason) -> Rejection:
    return Rejection(reason=reason, message=MESSAGES[reason])


def _collect_fault(task: asyncio.Future) -> None:
    """Mark a settlement fault as retrieved even when the caller has gone away."""
    if not task.cancelled() and task.exception() is not None:
        logger.debug("Settlement ended with %s", task.exception().__class__.__name__)


class TradeEngine:
    """Validates, reviews and settles trades against one ``WalletLedger``."""

    def __init__(
        self,
        ledger: WalletLedger,
        *,
        fee_rate: float | None = None,
        settlement_delay: float | None = None,
    ) -> None:
        cfg = settings()
        self.ledger = ledger
        self.fee_rate = cfg["FEE_RATE"] if fee_rate is None else fee_rate
        self.settlement_delay = (
            cfg["SETTLEMENT_DELAY_MS"] / 1000 if settlement_delay is None else settlement_delay
        )
        self._machine = StepMachine("trade", TradeStep.IDLE, _TRANSITIONS)
        self._proposal: TradeProposal | None = None
        self._error: Rejection | None = None

    # -- state --------------------------------------------------------------

    @property
    def step(self) -> TradeStep:
        return self._machine.step

    @property
    def proposal(self) -> TradeProposal | None:
        return self._proposal

    @property
    def error(self) -> Rejection | None:
        return self._error

    def clear_error(self) -> None:
        self._error = None

    # -- transitions --------------------------------------------------------

    def review(
        self,
        mode: TradeMode,
        metal: MetalKind,
        entry: AmountEntry,
        unit_price: float,
    ) -> TradeProposal | Rejection:
        """Validate the form and, if it passes, move to ``review``.

        Returns the proposal to present, or a ``Rejection`` whose reason
        explains the failure. A rejection never changes the wallet.
        """
        if self.step is TradeStep.PROCESSING or self.ledger.settling:
            return _rejection(RejectionReason.BUSY)

        cash, quantity = entry.resolve(unit_price)
        if cash is None or quantity is None:
            return self._reject(_rejection(RejectionReason.INVALID_AMOUNT))

        proposal = TradeProposal(
            mode=TradeMode(mode),
            metal=MetalKind(metal),
            cash_amount=cash,
            metal_quantity=quantity,
            unit_price=unit_price,
            fee_rate=self.fee_rate,
        )
        rejection = self._check_funds(proposal)
        if rejection is not None:
            return self._reject(rejection)

        self._machine.move(TradeStep.REVIEW)
        self._proposal = proposal
        self._error = None
        logger.debug(
            "Reviewing %s %.3f %s for %.2f (fee %.2f)",
            proposal.mode.value, proposal.metal_quantity, proposal.metal.value,
            proposal.cash_amount, proposal.fee,
        )
        return proposal

    def cancel(self) -> None:
        """Close the review without touching the wallet."""
        if self.step is TradeStep.REVIEW:
            self._proposal = None
            self._machine.move(TradeStep.IDLE)
        elif self.step is TradeStep.PROCESSING:
            raise InvalidTransition("trade: a settling trade cannot be cancelled")

    def dismiss(self) -> None:
        """Acknowledge a successful trade and return to ``idle``."""
        if self.step is TradeStep.SUCCESS:
            self._machine.move(TradeStep.IDLE)
        elif self.step is not TradeStep.IDLE:
            raise InvalidTransition(f"trade: nothing to dismiss in {self.step.value}")

    async def confirm(self) -> TradeReceipt | Rejection:
        """Settle the proposal under review.

        The engine is in ``processing`` as soon as this coroutine starts
        running; the commit lands after ``settlement_delay`` seconds and
        cannot be cancelled once begun.
        """
        if self.step is TradeStep.PROCESSING:
            return _rejection(RejectionReason.BUSY)
        if self.step is not TradeStep.REVIEW or self._proposal is None:
            raise InvalidTransition(f"trade: cannot confirm from {self.step.value}")
        if self.ledger.settling:
            return _rejection(RejectionReason.BUSY)

        proposal = self._proposal
        rejection = self._check_funds(proposal)
        if rejection is not None:
            return self._reject(rejection)

        self.ledger.begin_settlement(SETTLEMENT_OWNER)
        self._machine.move(TradeStep.PROCESSING)
        settling = asyncio.ensure_future(self._settle(proposal))
        settling.add_done_callback(_collect_fault)
        return await asyncio.shield(settling)

    # -- internals ----------------------------------------------------------

    def _check_funds(self, proposal: TradeProposal) -> Rejection | None:
        if proposal.mode is TradeMode.BUY and proposal.total > self.ledger.cash_balance:
            return _rejection(RejectionReason.INSUFFICIENT_CASH)
        if proposal.mode is TradeMode.SELL and proposal.metal_quantity > self.ledger.holding(proposal.metal):
            return _rejection(RejectionReason.INSUFFICIENT_METAL)
        return None

    def _reject(self, rejection: Rejection) -> Rejection:
        self._proposal = None
        self._error = rejection
        if self.step is not TradeStep.IDLE:
            self._machine.move(TradeStep.IDLE)
        logger.info("Trade rejected: %s", rejection.reason.value)
        return rejection

    async def _settle(self, proposal: TradeProposal) -> TradeReceipt:
        try:
            await asyncio.sleep(self.settlement_delay)
            try:
                self._commit(proposal)
            except SettlementFault:
                self._proposal = None
                self._machine.move(TradeStep.IDLE)
                raise
        finally:
            self.ledger.end_settlement(SETTLEMENT_OWNER)

        self._proposal = None
        self._machine.move(TradeStep.SUCCESS)
        logger.info(
            "Trade settled: %s %.3f %s for %.2f (fee %.2f)",
            proposal.mode.value, proposal.metal_quantity, proposal.metal.value,
            proposal.cash_amount, proposal.fee,
        )
        return TradeReceipt(proposal=proposal, wallet=self.ledger.snapshot())

    def _commit(self, proposal: TradeProposal) -> None:
        try:
            with self.ledger.transaction() as ledger:
                if proposal.mode is TradeMode.BUY:
                    ledger.debit(proposal.total)
                    ledger.credit_metal(proposal.metal, proposal.metal_quantity)
                else:
                    ledger.debit_metal(proposal.metal, proposal.metal_quantity)
                    ledger.credit(proposal.proceeds)
        except WalletError as exc:
            logger.error("Validated %s failed to commit: %s", proposal.mode.value, exc)
            raise SettlementFault(str(exc)) from exc
