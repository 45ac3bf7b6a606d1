"""
Approval Gateway 통합 테스트

소유자 확인, 엔진 위임, 통계 캐시 테스트
"""

from decimal import Decimal

import pytest

from core.ledger.context import LedgerContext
from core.ledger.errors import (
    InvalidStateError,
    OwnerNotFoundError,
    TransactionNotFoundError,
)
from core.ledger.models import NewTransaction
from core.types import Actor, TransactionKind, TransactionStatus
from tests.factories import LedgerFactory

ADMIN = Actor.admin("tester")


class TestGatewayTransitions:
    """승인/거부 위임"""

    @pytest.mark.asyncio
    async def test_approve(self, ledger: LedgerContext, owner_id: str) -> None:
        deposit = await LedgerFactory().pending_deposit(ledger, owner_id, "ETH", "3")

        approved = await ledger.gateway.approve(deposit.id, ADMIN, external_reference="0xabc")

        assert approved.status == TransactionStatus.COMPLETED
        assert (await ledger.balances.get(owner_id, "ETH")).available == Decimal("3")

    @pytest.mark.asyncio
    async def test_reject(self, ledger: LedgerContext, owner_id: str) -> None:
        deposit = await LedgerFactory().pending_deposit(ledger, owner_id, "ETH", "3")

        rejected = await ledger.gateway.reject(deposit.id, ADMIN)

        assert rejected.status == TransactionStatus.FAILED

    @pytest.mark.asyncio
    async def test_unknown_owner(self, ledger: LedgerContext) -> None:
        """등록되지 않은 소유자의 거래는 승인하지 않음"""
        orphan = await ledger.transactions.create(
            NewTransaction("ghost", TransactionKind.DEPOSIT, "BTC", Decimal("1"))
        )

        with pytest.raises(OwnerNotFoundError):
            await ledger.gateway.approve(orphan.id, ADMIN)

        assert (await ledger.transactions.get(orphan.id)).is_pending
        assert await ledger.balances.get("ghost", "BTC") is None

    @pytest.mark.asyncio
    async def test_exchange_external_reference_refused(
        self, ledger: LedgerContext, owner_id: str
    ) -> None:
        """환전 거래에는 외부 참조를 붙일 수 없음"""
        exchange = await ledger.transactions.create(
            NewTransaction(owner_id, TransactionKind.EXCHANGE, "USDT", Decimal("100"))
        )

        with pytest.raises(ValueError, match="external reference"):
            await ledger.gateway.approve(exchange.id, ADMIN, external_reference="0xhash")

        assert (await ledger.transactions.get(exchange.id)).is_pending

        approved = await ledger.gateway.approve(exchange.id, ADMIN)
        assert approved.status == TransactionStatus.COMPLETED

    @pytest.mark.asyncio
    async def test_errors_pass_through(self, ledger: LedgerContext, owner_id: str) -> None:
        with pytest.raises(TransactionNotFoundError):
            await ledger.gateway.approve(999, ADMIN)

        deposit = await LedgerFactory().pending_deposit(ledger, owner_id)
        await ledger.gateway.reject(deposit.id, ADMIN)

        with pytest.raises(InvalidStateError):
            await ledger.gateway.reject(deposit.id, ADMIN)


class TestGatewayStatistics:
    """통계 캐시"""

    @pytest.mark.asyncio
    async def test_statistics_cached(self, ledger: LedgerContext, owner_id: str) -> None:
        first = await ledger.gateway.statistics()
        second = await ledger.gateway.statistics()

        assert first is second
        assert first.total_owners == 1

    @pytest.mark.asyncio
    async def test_statistics_refreshed_after_approval(
        self, ledger: LedgerContext, owner_id: str
    ) -> None:
        deposit = await LedgerFactory().pending_deposit(ledger, owner_id, "BTC", "0.5")
        before = await ledger.gateway.statistics()
        assert before.pending_count == 1

        await ledger.gateway.approve(deposit.id, ADMIN)
        after = await ledger.gateway.statistics()

        assert after is not before
        assert after.pending_count == 0
        assert after.completed_count == 1
        assert after.deposit_volume == {"BTC": Decimal("0.5")}
        assert after.active_owners == 1
