"""
Transaction Store

transactions 테이블 CRUD 처리.
상태 변경은 순수 쓰기이며 잔고 부수효과가 없다.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

from core.ledger.errors import TransactionNotFoundError, storage_errors
from core.ledger.models import NewTransaction, Transaction, TransactionPage
from core.types import TransactionKind, TransactionStatus

if TYPE_CHECKING:
    from adapters.db.sqlite_adapter import SQLiteAdapter

logger = logging.getLogger(__name__)


class TransactionStore:
    """Transaction Store

    Args:
        db: SQLite 어댑터
    """

    def __init__(self, db: SQLiteAdapter):
        self.db = db

    async def create(self, new: NewTransaction, balance_applied: bool = False) -> Transaction:
        """새 거래 생성

        status 기본값은 pending. 화면 표시용으로 이미 종료된
        (completed/failed) 거래도 생성할 수 있다.

        Args:
            new: 생성 요청
            balance_applied: 생성과 함께 잔고 효과가 적용되었는지 여부

        Returns:
            생성된 Transaction
        """
        now = datetime.now(timezone.utc).isoformat()
        resolved_at = now if new.status.is_terminal else None

        async with self.db.transaction():
            with storage_errors("transaction insert"):
                cursor = await self.db.execute(
                    """
                    INSERT INTO transactions (
                        owner_id, kind, currency, amount, status,
                        external_reference, counterparty_to, counterparty_from, network,
                        balance_applied, created_at, resolved_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        new.owner_id,
                        new.kind.value,
                        new.currency,
                        str(new.amount),
                        new.status.value,
                        new.external_reference,
                        new.counterparty_to,
                        new.counterparty_from,
                        new.network,
                        int(balance_applied),
                        now,
                        resolved_at,
                    ),
                )
                transaction_id = cursor.lastrowid
                transaction = await self.get(transaction_id)

        logger.info(
            f"Transaction created: {transaction_id}",
            extra={
                "kind": new.kind.value,
                "currency": new.currency,
                "amount": str(new.amount),
                "status": new.status.value,
            },
        )

        return transaction

    async def find(self, transaction_id: int) -> Transaction | None:
        """거래 조회 (없으면 None)"""
        with storage_errors("transaction lookup"):
            row = await self.db.fetchone_dict(
                "SELECT * FROM transactions WHERE id = ?",
                (transaction_id,),
            )
        return Transaction.from_row(row) if row else None

    async def get(self, transaction_id: int) -> Transaction:
        """거래 조회

        Raises:
            TransactionNotFoundError: 알 수 없는 ID
        """
        transaction = await self.find(transaction_id)
        if transaction is None:
            raise TransactionNotFoundError(transaction_id)
        return transaction

    async def list_by_owner(self, owner_id: str) -> list[Transaction]:
        """소유자의 거래 목록 (순서 보장 없음)"""
        with storage_errors("transaction listing"):
            rows = await self.db.fetchall_dict(
                "SELECT * FROM transactions WHERE owner_id = ?",
                (owner_id,),
            )
        return [Transaction.from_row(row) for row in rows]

    async def list_all(
        self,
        limit: int = 50,
        offset: int = 0,
        status: TransactionStatus | None = None,
        kind: TransactionKind | None = None,
    ) -> TransactionPage:
        """전체 거래 페이지 조회 (최신순)

        Args:
            limit: 조회 개수
            offset: 시작 위치
            status: 상태 필터 (선택)
            kind: 종류 필터 (선택)

        Returns:
            TransactionPage (total, has_more 포함)
        """
        if limit < 1:
            raise ValueError(f"limit must be positive: {limit}")
        if offset < 0:
            raise ValueError(f"offset must be non-negative: {offset}")

        conditions: list[str] = []
        params: list[Any] = []

        if status is not None:
            conditions.append("status = ?")
            params.append(TransactionStatus(status).value)

        if kind is not None:
            conditions.append("kind = ?")
            params.append(TransactionKind(kind).value)

        where = f" WHERE {' AND '.join(conditions)}" if conditions else ""

        with storage_errors("transaction listing"):
            count_row = await self.db.fetchone(
                f"SELECT COUNT(*) FROM transactions{where}",
                tuple(params),
            )
            rows = await self.db.fetchall_dict(
                f"SELECT * FROM transactions{where} "
                "ORDER BY created_at DESC, id DESC LIMIT ? OFFSET ?",
                tuple(params + [limit, offset]),
            )

        return TransactionPage(
            items=[Transaction.from_row(row) for row in rows],
            total=count_row[0] if count_row else 0,
            limit=limit,
            offset=offset,
        )

    async def iter_all(self) -> list[Transaction]:
        """전체 거래 (통계/정합 검사용, id순)"""
        with storage_errors("transaction listing"):
            rows = await self.db.fetchall_dict("SELECT * FROM transactions ORDER BY id ASC")
        return [Transaction.from_row(row) for row in rows]

    async def set_status(self, transaction_id: int, status: TransactionStatus) -> Transaction:
        """상태 변경 (순수 쓰기, 잔고 부수효과 없음)

        Raises:
            TransactionNotFoundError: 알 수 없는 ID
        """
        status = TransactionStatus(status)
        resolved_at = datetime.now(timezone.utc).isoformat() if status.is_terminal else None

        async with self.db.transaction():
            with storage_errors("transaction status update"):
                cursor = await self.db.execute(
                    "UPDATE transactions SET status = ?, resolved_at = ? WHERE id = ?",
                    (status.value, resolved_at, transaction_id),
                )
            if cursor.rowcount == 0:
                raise TransactionNotFoundError(transaction_id)
            transaction = await self.get(transaction_id)

        logger.info(f"Transaction status updated: {transaction_id} -> {status.value}")

        return transaction

    async def compare_and_set_status(
        self,
        transaction_id: int,
        expected: TransactionStatus,
        new_status: TransactionStatus,
        external_reference: str | None = None,
        balance_applied: bool = False,
    ) -> bool:
        """조건부 상태 변경 (CAS)

        status가 expected일 때만 단일 UPDATE로 변경한다.
        동시에 호출되어도 하나의 호출자만 True를 받는다.

        Returns:
            변경 성공 여부
        """
        now = datetime.now(timezone.utc).isoformat()

        async with self.db.transaction():
            with storage_errors("transaction status update"):
                cursor = await self.db.execute(
                    """
                    UPDATE transactions
                    SET status = ?,
                        resolved_at = ?,
                        external_reference = COALESCE(?, external_reference),
                        balance_applied = MAX(balance_applied, ?)
                    WHERE id = ? AND status = ?
                    """,
                    (
                        new_status.value,
                        now,
                        external_reference,
                        int(balance_applied),
                        transaction_id,
                        expected.value,
                    ),
                )
        return cursor.rowcount == 1
