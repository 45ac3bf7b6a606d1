"""
Ledger Engine

거래 상태 전이와 그에 따른 잔고 효과를 하나의 원자 단위로 적용한다.

approve(id):
    pending → completed. 입금이면 같은 트랜잭션에서 잔고 +amount.
    출금은 요청 시점에 이미 차감되었으므로 승인 시 잔고 변동 없음.
    환전은 생성 시점에 외부에서 정산되므로 잔고 변동 없음.

reject(id):
    pending → failed. 잔고는 건드리지 않는다.

잔고 키 잠금을 먼저 잡고 트랜잭션을 연다.
상태 CAS와 잔고 쓰기 중 하나라도 실패하면 DB 롤백으로
거래는 pending으로 남고 오류는 그대로 호출자에게 전달된다.
자동 재시도는 하지 않는다.
"""

from __future__ import annotations

import logging
from contextlib import nullcontext
from decimal import Decimal
from typing import TYPE_CHECKING

from core.domain.state_machines import TransactionStateMachine
from core.ledger.errors import InvalidStateError, StorageFailureError, storage_errors
from core.ledger.models import DepositTransaction, NewTransaction, Transaction
from core.ledger.stats import StatsCache
from core.types import (
    BalanceOrigin,
    TransactionKind,
    TransactionStatus,
    normalize_currency,
    quantize_amount,
)

if TYPE_CHECKING:
    from adapters.db.sqlite_adapter import SQLiteAdapter
    from core.storage.balance_store import BalanceStore
    from core.storage.transaction_store import TransactionStore

logger = logging.getLogger(__name__)


_TARGET_LABELS = {
    TransactionStatus.COMPLETED: "approved",
    TransactionStatus.FAILED: "rejected",
}


class LedgerEngine:
    """Ledger Engine

    pending 거래를 전이시킬 수 있는 유일한 컴포넌트.

    Args:
        db: SQLite 어댑터 (stores와 같은 인스턴스)
        transactions: Transaction Store
        balances: Balance Store
        stats_cache: 성공한 전이마다 무효화할 통계 캐시 (선택)
    """

    def __init__(
        self,
        db: SQLiteAdapter,
        transactions: TransactionStore,
        balances: BalanceStore,
        stats_cache: StatsCache | None = None,
    ):
        self.db = db
        self.transactions = transactions
        self.balances = balances
        self.stats_cache = stats_cache

    async def approve(
        self,
        transaction_id: int,
        external_reference: str | None = None,
    ) -> Transaction:
        """거래 승인

        Args:
            transaction_id: 거래 ID
            external_reference: 블록체인 tx hash 등 (입금/출금만 기록, 환전은 무시)

        Returns:
            completed로 바뀐 Transaction

        Raises:
            TransactionNotFoundError: 알 수 없는 ID
            InvalidStateError: pending이 아닌 거래
            StorageFailureError: 저장소 오류 (거래는 pending으로 유지)
        """
        return await self._resolve(
            transaction_id,
            TransactionStatus.COMPLETED,
            external_reference=external_reference,
        )

    async def reject(self, transaction_id: int) -> Transaction:
        """거래 거부 (잔고 변동 없음)

        Raises:
            TransactionNotFoundError: 알 수 없는 ID
            InvalidStateError: pending이 아닌 거래
            StorageFailureError: 저장소 오류
        """
        return await self._resolve(transaction_id, TransactionStatus.FAILED)

    async def _resolve(
        self,
        transaction_id: int,
        target: TransactionStatus,
        external_reference: str | None = None,
    ) -> Transaction:
        label = _TARGET_LABELS[target]

        try:
            with storage_errors(f"transaction {transaction_id} {label}"):
                # 커밋된 상태로 사전 검사, 최종 판정은 트랜잭션 안의 CAS
                current = await self.transactions.get(transaction_id)

                machine = TransactionStateMachine(current.status)
                if not machine.can_transition(target):
                    raise InvalidStateError(transaction_id, current.status.value, label)

                applies_balance = (
                    target == TransactionStatus.COMPLETED
                    and current.kind == TransactionKind.DEPOSIT
                )
                # 환전은 외부 참조를 갖지 않는다
                if current.kind == TransactionKind.EXCHANGE:
                    external_reference = None

                key_lock = (
                    self.balances.key_lock(current.owner_id, current.currency)
                    if applies_balance
                    else nullcontext()
                )
                async with key_lock:
                    async with self.db.transaction():
                        swapped = await self.transactions.compare_and_set_status(
                            transaction_id,
                            expected=TransactionStatus.PENDING,
                            new_status=target,
                            external_reference=external_reference,
                            balance_applied=applies_balance,
                        )
                        if not swapped:
                            # 다른 요청이 먼저 전이시킴
                            latest = await self.transactions.get(transaction_id)
                            raise InvalidStateError(transaction_id, latest.status.value, label)

                        if applies_balance:
                            await self.balances.upsert_add(
                                current.owner_id,
                                current.currency,
                                current.amount,
                                BalanceOrigin.DEPOSIT,
                                linked_address=(
                                    current.counterparty_from
                                    if isinstance(current, DepositTransaction)
                                    else None
                                ),
                            )

                        resolved = await self.transactions.get(transaction_id)
        except StorageFailureError as e:
            # 실패 중에 계산된 통계가 남지 않도록
            self._invalidate_stats()
            logger.error(
                f"Transaction {transaction_id} not {label}, left pending: {e}",
                extra={"target": target.value},
            )
            raise

        self._invalidate_stats()

        logger.info(
            f"Transaction {label}: {transaction_id}",
            extra={
                "kind": resolved.kind.value,
                "currency": resolved.currency,
                "amount": str(resolved.amount),
                "balance_applied": resolved.balance_applied,
            },
        )

        return resolved

    async def request_withdrawal(
        self,
        owner_id: str,
        currency: str,
        amount: Decimal,
        counterparty_to: str | None = None,
        network: str | None = None,
    ) -> Transaction:
        """출금 요청

        pending 출금 거래 생성과 잔고 차감을 하나의 트랜잭션으로 적용한다.
        승인 시에는 다시 차감하지 않는다.

        Raises:
            InsufficientBalanceError: 잔고 부족 (거래는 생성되지 않음)
            StorageFailureError: 저장소 오류
            ValueError: 잘못된 금액
        """
        currency = normalize_currency(currency)
        amount = quantize_amount(amount, currency)
        if amount <= 0:
            raise ValueError(f"withdrawal amount must be positive: {amount}")

        new = NewTransaction(
            owner_id=owner_id,
            kind=TransactionKind.WITHDRAWAL,
            currency=currency,
            amount=amount,
            network=network,
            counterparty=counterparty_to,
        )

        with storage_errors(f"withdrawal request for {owner_id}"):
            async with self.balances.key_lock(owner_id, currency):
                async with self.db.transaction():
                    await self.balances.upsert_add(
                        owner_id, currency, -amount, BalanceOrigin.WITHDRAWAL
                    )
                    transaction = await self.transactions.create(new, balance_applied=True)

        self._invalidate_stats()

        logger.info(
            f"Withdrawal requested: {transaction.id}",
            extra={"owner_id": owner_id, "currency": currency, "amount": str(amount)},
        )

        return transaction

    def _invalidate_stats(self) -> None:
        if self.stats_cache is not None:
            self.stats_cache.invalidate()
