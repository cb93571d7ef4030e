"""withdrawal.py

Cash withdrawal state machine: ``idle → processing → success``.

Validation gates the way into ``processing``; once there, the debit
always lands after the settlement delay. The caller dismisses
``success`` explicitly, which also clears the amount field.
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum

from metaldeck.config import settings
from metaldeck.services.conversion import parse_amount
from metaldeck.services.errors import InvalidTransition
from metaldeck.services.ledger import WalletLedger
from metaldeck.services.machine import StepMachine
from metaldeck.services.model import Rejection, RejectionReason, WithdrawalProposal, WithdrawalReceipt

logger = logging.getLogger(__name__)

SETTLEMENT_OWNER = "withdrawal"


class WithdrawalStep(str, Enum):
    IDLE = "idle"
    PROCESSING = "processing"
    SUCCESS = "success"


_TRANSITIONS = {
    WithdrawalStep.IDLE: frozenset({WithdrawalStep.PROCESSING}),
    WithdrawalStep.PROCESSING: frozenset({WithdrawalStep.SUCCESS}),
    WithdrawalStep.SUCCESS: frozenset({WithdrawalStep.IDLE}),
}

MESSAGES = {
    RejectionReason.INVALID_AMOUNT: "Enter an amount greater than zero.",
    RejectionReason.INSUFFICIENT_CASH: "The amount exceeds your cash balance.",
    RejectionReason.BUSY: "Another transaction is still being processed.",
}


class WithdrawalEngine:
    def __init__(self, ledger: WalletLedger, *, settlement_delay: float | None = None) -> None:
        self.ledger = ledger
        self.settlement_delay = (
            settings()["SETTLEMENT_DELAY_MS"] / 1000 if settlement_delay is None else settlement_delay
        )
        self._machine = StepMachine("withdrawal", WithdrawalStep.IDLE, _TRANSITIONS)
        self._amount: str | float | None = None
        self._error: Rejection | None = None

    @property
    def step(self) -> WithdrawalStep:
        return self._machine.step

    @property
    def amount(self) -> str | float | None:
        """Amount field as last submitted (``None`` once dismissed)."""
        return self._amount

    @property
    def error(self) -> Rejection | None:
        return self._error

    async def submit(self, amount) -> WithdrawalReceipt | Rejection:
        if self.step is WithdrawalStep.PROCESSING:
            return self._busy()
        if self.step is not WithdrawalStep.IDLE:
            raise InvalidTransition(f"withdrawal: dismiss {self.step.value} before a new request")

        self._amount = amount
        value = parse_amount(amount)
        if value is None:
            return self._reject(RejectionReason.INVALID_AMOUNT)
        if value > self.ledger.cash_balance:
            return self._reject(RejectionReason.INSUFFICIENT_CASH)
        if self.ledger.settling:
            return self._busy()

        proposal = WithdrawalProposal(cash_amount=value)
        self.ledger.begin_settlement(SETTLEMENT_OWNER)
        self._error = None
        self._machine.move(WithdrawalStep.PROCESSING)
        return await asyncio.shield(self._settle(proposal))

    def dismiss(self) -> None:
        if self.step is WithdrawalStep.SUCCESS:
            self._machine.move(WithdrawalStep.IDLE)
            self._amount = None
        elif self.step is not WithdrawalStep.IDLE:
            raise InvalidTransition(f"withdrawal: nothing to dismiss in {self.step.value}")

    def _busy(self) -> Rejection:
        return Rejection(reason=RejectionReason.BUSY, message=MESSAGES[RejectionReason.BUSY])

    def _reject(self, reason: RejectionReason) -> Rejection:
        self._error = Rejection(reason=reason, message=MESSAGES[reason])
        logger.info("Withdrawal rejected: %s", reason.value)
        return self._error

    async def _settle(self, proposal: WithdrawalProposal) -> WithdrawalReceipt:
        try:
            await asyncio.sleep(self.settlement_delay)
            # Clamped: the balance can't underflow even if it moved meanwhile
            self.ledger.debit(proposal.cash_amount, clamp=True)
        finally:
            self.ledger.end_settlement(SETTLEMENT_OWNER)
        self._machine.move(WithdrawalStep.SUCCESS)
        logger.info("Withdrawal settled: %.2f", proposal.cash_amount)
        return WithdrawalReceipt(proposal=proposal, wallet=self.ledger.snapshot())
