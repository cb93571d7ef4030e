"""Tests for the cash withdrawal engine."""

import asyncio

import pytest

from metaldeck.services import (
    AmountEntry,
    InvalidTransition,
    MetalKind,
    RejectionReason,
    TradeMode,
    WithdrawalReceipt,
    WithdrawalStep,
)


@pytest.mark.asyncio
@pytest.mark.parametrize("raw", ["0", "-5", "", "ten", None])
async def test_invalid_amount(withdrawal_engine, ledger, raw):
    result = await withdrawal_engine.submit(raw)
    assert result.reason is RejectionReason.INVALID_AMOUNT
    assert withdrawal_engine.step is WithdrawalStep.IDLE
    assert withdrawal_engine.error == result
    assert ledger.cash_balance == 84250


@pytest.mark.asyncio
async def test_amount_above_balance(withdrawal_engine, ledger):
    result = await withdrawal_engine.submit("84250.01")
    assert result.reason is RejectionReason.INSUFFICIENT_CASH
    assert ledger.cash_balance == 84250


@pytest.mark.asyncio
async def test_whole_balance(withdrawal_engine, ledger):
    receipt = await withdrawal_engine.submit(84250)
    assert isinstance(receipt, WithdrawalReceipt)
    assert ledger.cash_balance == 0
    assert receipt.wallet.cash_balance == 0


@pytest.mark.asyncio
async def test_success_then_dismiss_clears_amount(withdrawal_engine, ledger):
    await withdrawal_engine.submit("1,000")
    assert withdrawal_engine.step is WithdrawalStep.SUCCESS
    assert withdrawal_engine.amount == "1,000"
    assert withdrawal_engine.error is None
    assert ledger.cash_balance == 83250

    with pytest.raises(InvalidTransition):
        await withdrawal_engine.submit("10")

    withdrawal_engine.dismiss()
    assert withdrawal_engine.step is WithdrawalStep.IDLE
    assert withdrawal_engine.amount is None


@pytest.mark.asyncio
async def test_processing_is_immediate_and_exclusive(withdrawal_engine, ledger):
    task = asyncio.create_task(withdrawal_engine.submit("500"))
    await asyncio.sleep(0)
    assert withdrawal_engine.step is WithdrawalStep.PROCESSING
    assert ledger.settling_owner == "withdrawal"

    again = await withdrawal_engine.submit("500")
    assert again.reason is RejectionReason.BUSY

    with pytest.raises(InvalidTransition):
        withdrawal_engine.dismiss()

    await task
    assert ledger.cash_balance == 83750


@pytest.mark.asyncio
async def test_debit_is_clamped_at_zero(withdrawal_engine, ledger):
    task = asyncio.create_task(withdrawal_engine.submit("1000"))
    await asyncio.sleep(0)
    ledger.debit(84000)
    await task
    assert ledger.cash_balance == 0


def test_dismiss_when_idle_is_a_no_op(withdrawal_engine):
    withdrawal_engine.dismiss()
    assert withdrawal_engine.step is WithdrawalStep.IDLE


# -----------------------------------------------------------------------------
# One settlement per wallet
# -----------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_busy_while_a_trade_settles(trade_engine, withdrawal_engine, ledger):
    trade_engine.review(TradeMode.BUY, MetalKind.GOLD, AmountEntry.cash("1000"), 2250.0)
    trade = asyncio.create_task(trade_engine.confirm())
    await asyncio.sleep(0)

    result = await withdrawal_engine.submit("84000")
    assert result.reason is RejectionReason.BUSY
    assert withdrawal_engine.step is WithdrawalStep.IDLE

    await trade
    assert ledger.cash_balance == pytest.approx(84250 - 1005)


@pytest.mark.asyncio
async def test_trade_busy_while_a_withdrawal_settles(trade_engine, withdrawal_engine, ledger):
    withdrawal = asyncio.create_task(withdrawal_engine.submit("84000"))
    await asyncio.sleep(0)

    result = trade_engine.review(TradeMode.BUY, MetalKind.GOLD, AmountEntry.cash("1000"), 2250.0)
    assert result.reason is RejectionReason.BUSY

    await withdrawal
    assert ledger.cash_balance == 250


@pytest.mark.asyncio
async def test_failed_persistence_still_settles(withdrawal_engine, ledger, caplog):
    def broken(state):
        raise OSError("storage unavailable")

    ledger.subscribe(broken)
    receipt = await withdrawal_engine.submit("250")
    assert isinstance(receipt, WithdrawalReceipt)
    assert withdrawal_engine.step is WithdrawalStep.SUCCESS
    assert not ledger.settling
    assert ledger.cash_balance == 84000
    withdrawal_engine.dismiss()
    assert withdrawal_engine.step is WithdrawalStep.IDLE
    assert "listener" in caplog.text
