"""
원장 시나리오 테스트

입금 승인, 기존 잔고 가산, 출금 거부, 종료 거래 재승인,
그리고 임의 거래 흐름 뒤의 잔고 정합성 검사
"""

import random
from decimal import Decimal

import pytest

from core.ledger.context import LedgerContext
from core.ledger.errors import InsufficientBalanceError, InvalidStateError
from core.ledger.models import NewTransaction
from core.ledger.reconcile import find_balance_drift
from core.types import TransactionKind, TransactionStatus
from tests.factories import LedgerFactory


class TestScenarios:
    """기본 시나리오"""

    @pytest.mark.asyncio
    async def test_first_deposit_creates_balance(self, ledger: LedgerContext) -> None:
        """pending BTC 0.5 입금 승인 → 잔고 0.5 생성"""
        await ledger.owners.create("U1")
        deposit = await ledger.transactions.create(
            NewTransaction("U1", TransactionKind.DEPOSIT, "BTC", Decimal("0.5"))
        )
        assert await ledger.balances.get("U1", "BTC") is None

        approved = await ledger.engine.approve(deposit.id)

        assert approved.status == TransactionStatus.COMPLETED
        assert (await ledger.balances.get("U1", "BTC")).available == Decimal("0.5")

    @pytest.mark.asyncio
    async def test_second_deposit_adds(self, ledger: LedgerContext) -> None:
        """잔고 1.0에 0.25 입금 승인 → 1.25"""
        factory = LedgerFactory()
        owner = await factory.funded_owner(ledger, "BTC", "1.0", owner_id="U1")
        deposit = await factory.pending_deposit(ledger, owner, "BTC", "0.25")

        await ledger.engine.approve(deposit.id)

        assert (await ledger.balances.get(owner, "BTC")).available == Decimal("1.25")

    @pytest.mark.asyncio
    async def test_reject_withdrawal_creates_no_balance(self, ledger: LedgerContext) -> None:
        """pending ETH 2.0 출금 거부 → failed, 잔고 레코드 없음"""
        await ledger.owners.create("U1")
        withdrawal = await ledger.transactions.create(
            NewTransaction("U1", TransactionKind.WITHDRAWAL, "ETH", Decimal("2.0"))
        )

        rejected = await ledger.engine.reject(withdrawal.id)

        assert rejected.status == TransactionStatus.FAILED
        assert await ledger.balances.get("U1", "ETH") is None

    @pytest.mark.asyncio
    async def test_approve_failed_transaction(self, ledger: LedgerContext) -> None:
        """failed 거래 승인 → InvalidStateError, 상태 불변"""
        await ledger.owners.create("U1")
        failed = await ledger.transactions.create(
            NewTransaction(
                "U1",
                TransactionKind.DEPOSIT,
                "BTC",
                Decimal("1"),
                status=TransactionStatus.FAILED,
            )
        )

        with pytest.raises(InvalidStateError):
            await ledger.engine.approve(failed.id)

        stored = await ledger.transactions.get(failed.id)
        assert stored.status == TransactionStatus.FAILED
        assert stored.resolved_at == failed.resolved_at
        assert await ledger.balances.get("U1", "BTC") is None


class TestBalanceInvariant:
    """임의 거래 흐름 뒤 잔고 = 적용된 입금 합계 - 출금 합계"""

    @pytest.mark.asyncio
    async def test_random_flow_stays_consistent(self, ledger: LedgerContext) -> None:
        factory = LedgerFactory(seed=2024)
        rng = random.Random(2024)
        owners = [await factory.owner(ledger) for _ in range(3)]
        currencies = ["BTC", "ETH", "USDT"]

        for _ in range(40):
            owner = rng.choice(owners)
            currency = rng.choice(currencies)
            action = rng.random()

            if action < 0.6:
                tx = await factory.pending_deposit(ledger, owner, currency)
                if rng.random() < 0.7:
                    await ledger.engine.approve(tx.id)
                else:
                    await ledger.engine.reject(tx.id)
            else:
                try:
                    tx = await ledger.engine.request_withdrawal(
                        owner, currency, factory.amount(currency, "0.01", "3")
                    )
                except InsufficientBalanceError:
                    continue
                if rng.random() < 0.5:
                    await ledger.engine.approve(tx.id)
                else:
                    await ledger.engine.reject(tx.id)

        drifts = find_balance_drift(
            await ledger.transactions.iter_all(),
            await ledger.balances.list_all(),
        )
        assert drifts == []

        for balance in await ledger.balances.list_all():
            assert balance.available >= 0
