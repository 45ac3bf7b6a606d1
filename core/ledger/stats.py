"""
관리자 통계

거래 목록을 훑어서 집계한다.
결과는 StatsCache에 보관되며, 엔진이 승인/거부할 때마다
invalidate()로 명시적으로 무효화한다 (시간 기반 만료 없음).
"""

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Iterable

from core.ledger.models import Transaction
from core.types import TransactionKind, TransactionStatus

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LedgerStatistics:
    """관리자 대시보드 통계

    Attributes:
        total_owners: 등록된 소유자 수
        active_owners: 거래가 하나 이상 있는 소유자 수
        total_transactions: 전체 거래 수
        pending_count / completed_count / failed_count: 상태별 거래 수
        deposit_volume: 통화별 완료 입금액
        withdrawal_volume: 통화별 완료 출금액
        platform_balances: 통화별 (완료 입금 - 완료 출금)
        updated_at: 집계 시각
    """

    total_owners: int
    active_owners: int
    total_transactions: int
    pending_count: int
    completed_count: int
    failed_count: int
    deposit_volume: dict[str, Decimal] = field(default_factory=dict)
    withdrawal_volume: dict[str, Decimal] = field(default_factory=dict)
    platform_balances: dict[str, Decimal] = field(default_factory=dict)
    updated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_owners": self.total_owners,
            "active_owners": self.active_owners,
            "total_transactions": self.total_transactions,
            "pending_count": self.pending_count,
            "completed_count": self.completed_count,
            "failed_count": self.failed_count,
            "deposit_volume": {k: str(v) for k, v in self.deposit_volume.items()},
            "withdrawal_volume": {k: str(v) for k, v in self.withdrawal_volume.items()},
            "platform_balances": {k: str(v) for k, v in self.platform_balances.items()},
            "updated_at": self.updated_at.isoformat(),
        }


def compute_statistics(
    transactions: Iterable[Transaction],
    total_owners: int,
) -> LedgerStatistics:
    """거래 목록에서 통계 집계

    Args:
        transactions: 전체 거래
        total_owners: 등록된 소유자 수

    Returns:
        LedgerStatistics
    """
    status_counts: dict[TransactionStatus, int] = defaultdict(int)
    deposit_volume: dict[str, Decimal] = defaultdict(Decimal)
    withdrawal_volume: dict[str, Decimal] = defaultdict(Decimal)
    active_owners: set[str] = set()
    total = 0

    for tx in transactions:
        total += 1
        status_counts[tx.status] += 1
        active_owners.add(tx.owner_id)

        if tx.status != TransactionStatus.COMPLETED:
            continue

        if tx.kind == TransactionKind.DEPOSIT:
            deposit_volume[tx.currency] += tx.amount
        elif tx.kind == TransactionKind.WITHDRAWAL:
            withdrawal_volume[tx.currency] += tx.amount

    currencies = sorted(set(deposit_volume) | set(withdrawal_volume))
    platform_balances = {
        currency: deposit_volume[currency] - withdrawal_volume[currency]
        for currency in currencies
    }

    return LedgerStatistics(
        total_owners=total_owners,
        active_owners=len(active_owners),
        total_transactions=total,
        pending_count=status_counts[TransactionStatus.PENDING],
        completed_count=status_counts[TransactionStatus.COMPLETED],
        failed_count=status_counts[TransactionStatus.FAILED],
        deposit_volume=dict(sorted(deposit_volume.items())),
        withdrawal_volume=dict(sorted(withdrawal_volume.items())),
        platform_balances=platform_balances,
    )


class StatsCache:
    """통계 캐시

    엔진이 상태를 바꿀 때 invalidate()를 호출한다.
    enabled=False이면 항상 비어 있는 캐시로 동작한다.

    Args:
        enabled: 캐시 사용 여부
    """

    def __init__(self, enabled: bool = True):
        self.enabled = enabled
        self._value: LedgerStatistics | None = None
        self._invalidations = 0

    def get(self) -> LedgerStatistics | None:
        return self._value if self.enabled else None

    def set(self, value: LedgerStatistics, generation: int | None = None) -> None:
        """집계 결과 저장

        generation이 주어지면 집계 도중 무효화가 없었을 때만 저장한다.
        """
        if not self.enabled:
            return
        if generation is not None and generation != self._invalidations:
            return
        self._value = value

    def invalidate(self) -> None:
        """캐시 무효화"""
        self._value = None
        self._invalidations += 1
        logger.debug("Stats cache invalidated")

    @property
    def invalidation_count(self) -> int:
        return self._invalidations
