"""
core/ledger/stats.py 테스트

통계 집계와 캐시 무효화 테스트
"""

from datetime import datetime, timezone
from decimal import Decimal

from core.ledger.models import (
    DepositTransaction,
    ExchangeTransaction,
    WithdrawalTransaction,
)
from core.ledger.stats import LedgerStatistics, StatsCache, compute_statistics
from core.types import TransactionStatus

NOW = datetime(2024, 5, 1, tzinfo=timezone.utc)


def _deposit(tx_id: int, owner: str, currency: str, amount: str, status: TransactionStatus):
    return DepositTransaction(
        id=tx_id,
        owner_id=owner,
        currency=currency,
        amount=Decimal(amount),
        status=status,
        created_at=NOW,
    )


def _withdrawal(tx_id: int, owner: str, currency: str, amount: str, status: TransactionStatus):
    return WithdrawalTransaction(
        id=tx_id,
        owner_id=owner,
        currency=currency,
        amount=Decimal(amount),
        status=status,
        created_at=NOW,
    )


class TestComputeStatistics:
    """통계 집계"""

    def test_empty(self) -> None:
        stats = compute_statistics([], total_owners=3)

        assert stats.total_owners == 3
        assert stats.active_owners == 0
        assert stats.total_transactions == 0
        assert stats.platform_balances == {}

    def test_counts_and_volumes(self) -> None:
        transactions = [
            _deposit(1, "a", "BTC", "1.5", TransactionStatus.COMPLETED),
            _deposit(2, "a", "BTC", "0.5", TransactionStatus.PENDING),
            _deposit(3, "b", "ETH", "2", TransactionStatus.COMPLETED),
            _withdrawal(4, "b", "ETH", "0.5", TransactionStatus.COMPLETED),
            _withdrawal(5, "b", "BTC", "9", TransactionStatus.FAILED),
            ExchangeTransaction(
                id=6,
                owner_id="c",
                currency="USDT",
                amount=Decimal("100"),
                status=TransactionStatus.COMPLETED,
                created_at=NOW,
            ),
        ]

        stats = compute_statistics(transactions, total_owners=4)

        assert stats.total_transactions == 6
        assert stats.active_owners == 3
        assert stats.pending_count == 1
        assert stats.completed_count == 4
        assert stats.failed_count == 1
        assert stats.deposit_volume == {"BTC": Decimal("1.5"), "ETH": Decimal("2")}
        assert stats.withdrawal_volume == {"ETH": Decimal("0.5")}
        assert stats.platform_balances == {"BTC": Decimal("1.5"), "ETH": Decimal("1.5")}

    def test_to_dict_serializes_decimals(self) -> None:
        stats = compute_statistics(
            [_deposit(1, "a", "BTC", "1.25", TransactionStatus.COMPLETED)],
            total_owners=1,
        )

        data = stats.to_dict()

        assert data["deposit_volume"] == {"BTC": "1.25"}
        assert data["platform_balances"] == {"BTC": "1.25"}
        assert isinstance(data["updated_at"], str)


class TestStatsCache:
    """통계 캐시"""

    def _stats(self) -> LedgerStatistics:
        return compute_statistics([], total_owners=0)

    def test_set_and_get(self) -> None:
        cache = StatsCache()
        stats = self._stats()

        cache.set(stats)

        assert cache.get() is stats

    def test_invalidate(self) -> None:
        cache = StatsCache()
        cache.set(self._stats())

        cache.invalidate()

        assert cache.get() is None
        assert cache.invalidation_count == 1

    def test_stale_generation_not_stored(self) -> None:
        """집계 도중 무효화되면 결과를 저장하지 않음"""
        cache = StatsCache()
        generation = cache.invalidation_count

        cache.invalidate()
        cache.set(self._stats(), generation)

        assert cache.get() is None

    def test_disabled(self) -> None:
        cache = StatsCache(enabled=False)

        cache.set(self._stats())

        assert cache.get() is None
