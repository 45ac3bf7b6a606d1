"""
Ledger 서비스

라우트와 LedgerContext 사이의 조회/명령 어댑터.
도메인 객체를 API 응답용 dict로 변환한다.
"""

import logging
from decimal import Decimal
from typing import Any

from core.ledger.context import LedgerContext
from core.ledger.models import NewTransaction
from core.ledger.reconcile import find_balance_drift
from core.types import Actor, TransactionKind, TransactionStatus

logger = logging.getLogger(__name__)


class LedgerService:
    """Ledger 서비스

    Args:
        ledger: 프로세스 공유 LedgerContext
    """

    def __init__(self, ledger: LedgerContext):
        self.ledger = ledger

    # =========================================================================
    # 관리자
    # =========================================================================

    async def approve(
        self,
        transaction_id: int,
        actor: Actor,
        external_reference: str | None = None,
    ) -> dict[str, Any]:
        transaction = await self.ledger.gateway.approve(
            transaction_id, actor, external_reference=external_reference
        )
        return transaction.to_dict()

    async def reject(self, transaction_id: int, actor: Actor) -> dict[str, Any]:
        transaction = await self.ledger.gateway.reject(transaction_id, actor)
        return transaction.to_dict()

    async def list_transactions(
        self,
        limit: int,
        offset: int,
        status: TransactionStatus | None = None,
        kind: TransactionKind | None = None,
    ) -> dict[str, Any]:
        """전체 거래 페이지 조회 (최신순)"""
        page = await self.ledger.transactions.list_all(
            limit=limit, offset=offset, status=status, kind=kind
        )
        return {
            "transactions": [tx.to_dict() for tx in page.items],
            "total": page.total,
            "limit": page.limit,
            "offset": page.offset,
            "has_more": page.has_more,
        }

    async def statistics(self) -> dict[str, Any]:
        stats = await self.ledger.gateway.statistics()
        return stats.to_dict()

    async def reconcile(self) -> dict[str, Any]:
        """기대 잔고와 실제 잔고 비교"""
        drifts = find_balance_drift(
            await self.ledger.transactions.iter_all(),
            await self.ledger.balances.list_all(),
        )
        return {
            "consistent": not drifts,
            "drifts": [drift.to_dict() for drift in drifts],
        }

    # =========================================================================
    # 소유자
    # =========================================================================

    async def register_owner(
        self,
        owner_id: str,
        email: str | None = None,
        display_name: str | None = None,
    ) -> dict[str, Any]:
        owner = await self.ledger.owners.create(owner_id, email=email, display_name=display_name)
        return owner.to_dict()

    async def list_owners(self) -> dict[str, Any]:
        owners = await self.ledger.owners.list_all()
        return {
            "owners": [owner.to_dict() for owner in owners],
            "total": len(owners),
        }

    async def owner_detail(self, owner_id: str) -> dict[str, Any]:
        """소유자 정보, 잔고, 최신순 거래

        Raises:
            OwnerNotFoundError: 등록되지 않은 소유자
        """
        owner = await self.ledger.owners.get(owner_id)
        return {
            "owner": owner.to_dict(),
            "balances": await self.owner_balances(owner_id),
            "transactions": await self.owner_transactions(owner_id),
        }

    async def owner_transactions(self, owner_id: str) -> list[dict[str, Any]]:
        """소유자 거래 목록 (최신순)"""
        await self.ledger.owners.get(owner_id)
        transactions = await self.ledger.transactions.list_by_owner(owner_id)
        transactions.sort(key=lambda tx: (tx.created_at, tx.id), reverse=True)
        return [tx.to_dict() for tx in transactions]

    async def owner_balances(self, owner_id: str) -> list[dict[str, Any]]:
        await self.ledger.owners.get(owner_id)
        balances = await self.ledger.balances.list_by_owner(owner_id)
        return [balance.to_dict() for balance in balances]

    async def create_transaction(
        self,
        owner_id: str,
        kind: TransactionKind,
        currency: str,
        amount: Decimal,
        status: TransactionStatus = TransactionStatus.PENDING,
        network: str | None = None,
        counterparty: str | None = None,
        external_reference: str | None = None,
    ) -> dict[str, Any]:
        """입금/환전 거래 생성

        이미 종료된 상태로 생성된 거래는 표시용이며 잔고에 반영되지 않는다.

        Raises:
            OwnerNotFoundError: 등록되지 않은 소유자
            ValueError: 출금 요청 또는 잘못된 필드
        """
        if kind == TransactionKind.WITHDRAWAL:
            raise ValueError("withdrawals must be requested through the withdrawal endpoint")

        await self.ledger.owners.get(owner_id)

        new = NewTransaction(
            owner_id=owner_id,
            kind=kind,
            currency=currency,
            amount=amount,
            status=status,
            network=network,
            counterparty=counterparty,
            external_reference=external_reference,
        )
        transaction = await self.ledger.transactions.create(new)
        self.ledger.stats_cache.invalidate()

        logger.info(
            f"Transaction created: {transaction.id}",
            extra={"owner_id": owner_id, "kind": kind.value, "status": status.value},
        )
        return transaction.to_dict()

    async def request_withdrawal(
        self,
        owner_id: str,
        currency: str,
        amount: Decimal,
        counterparty_to: str | None = None,
        network: str | None = None,
    ) -> dict[str, Any]:
        await self.ledger.owners.get(owner_id)
        transaction = await self.ledger.engine.request_withdrawal(
            owner_id,
            currency,
            amount,
            counterparty_to=counterparty_to,
            network=network,
        )
        return transaction.to_dict()
