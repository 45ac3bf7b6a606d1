"""
Approval Gateway

관리자 요청을 받아 Ledger Engine에 위임하는 얇은 경계 계층.
비즈니스 로직 없이 소유자 유효성 확인, 위임, 결과 로깅만 한다.
엔진 오류는 변환 없이 그대로 전달한다.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from core.ledger.errors import OwnerNotFoundError
from core.ledger.models import Transaction
from core.ledger.stats import LedgerStatistics, StatsCache, compute_statistics
from core.types import Actor, TransactionKind

if TYPE_CHECKING:
    from core.ledger.engine import LedgerEngine
    from core.storage.owner_store import OwnerStore
    from core.storage.transaction_store import TransactionStore

logger = logging.getLogger(__name__)


class ApprovalGateway:
    """Approval Gateway

    Args:
        engine: Ledger Engine
        transactions: Transaction Store
        owners: Owner Store
        stats_cache: 엔진과 공유하는 통계 캐시
    """

    def __init__(
        self,
        engine: LedgerEngine,
        transactions: TransactionStore,
        owners: OwnerStore,
        stats_cache: StatsCache,
    ):
        self.engine = engine
        self.transactions = transactions
        self.owners = owners
        self.stats_cache = stats_cache

    async def _check_owner(self, transaction_id: int) -> Transaction:
        transaction = await self.transactions.get(transaction_id)
        if not await self.owners.exists(transaction.owner_id):
            raise OwnerNotFoundError(transaction.owner_id)
        return transaction

    async def approve(
        self,
        transaction_id: int,
        actor: Actor,
        external_reference: str | None = None,
    ) -> Transaction:
        """관리자 승인

        Raises:
            TransactionNotFoundError, OwnerNotFoundError,
            InvalidStateError, StorageFailureError
            ValueError: 환전 거래에 외부 참조 지정
        """
        current = await self._check_owner(transaction_id)
        if external_reference and current.kind == TransactionKind.EXCHANGE:
            raise ValueError("exchange transactions carry no external reference")
        transaction = await self.engine.approve(transaction_id, external_reference)
        logger.info(f"{actor.id} approved transaction {transaction_id}")
        return transaction

    async def reject(self, transaction_id: int, actor: Actor) -> Transaction:
        """관리자 거부"""
        await self._check_owner(transaction_id)
        transaction = await self.engine.reject(transaction_id)
        logger.info(f"{actor.id} rejected transaction {transaction_id}")
        return transaction

    async def statistics(self) -> LedgerStatistics:
        """관리자 통계 (캐시 우선)"""
        cached = self.stats_cache.get()
        if cached is not None:
            return cached

        generation = self.stats_cache.invalidation_count
        stats = compute_statistics(
            await self.transactions.iter_all(),
            total_owners=await self.owners.count(),
        )
        self.stats_cache.set(stats, generation)
        return stats
