"""
Balance Store

balances 테이블 CRUD 처리.
(owner_id, currency) 키마다 asyncio.Lock으로 read-modify-write를 직렬화하고,
version 컬럼으로 다른 연결의 lost update를 감지한다.
키 잠금은 트랜잭션을 열기 전에 잡으므로 다른 키의 갱신을 막지 않는다.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from decimal import Decimal
from typing import TYPE_CHECKING, Any, AsyncIterator

from core.ledger.errors import (
    InsufficientBalanceError,
    StorageFailureError,
    storage_errors,
)
from core.ledger.models import Balance
from core.types import BalanceOrigin, normalize_currency, quantize_amount

if TYPE_CHECKING:
    from adapters.db.sqlite_adapter import SQLiteAdapter

logger = logging.getLogger(__name__)


class BalanceStore:
    """Balance Store

    Args:
        db: SQLite 어댑터 (같은 인스턴스를 공유해야 키 잠금이 의미를 가짐)
    """

    def __init__(self, db: SQLiteAdapter):
        self.db = db
        self._locks: dict[tuple[str, str], asyncio.Lock] = {}
        self._holders: dict[tuple[str, str], asyncio.Task[Any]] = {}

    def _get_lock(self, owner_id: str, currency: str) -> asyncio.Lock:
        """키별 잠금 조회 또는 생성"""
        key = (owner_id, currency)
        if key not in self._locks:
            self._locks[key] = asyncio.Lock()
        return self._locks[key]

    @asynccontextmanager
    async def key_lock(self, owner_id: str, currency: str) -> AsyncIterator[None]:
        """키 잠금 (같은 태스크의 중첩 획득은 통과)

        잔고 변경과 함께 다른 쓰기를 하나의 트랜잭션으로 묶으려면
        트랜잭션을 열기 전에 이 잠금을 먼저 잡는다.
        """
        key = (owner_id, normalize_currency(currency))
        task = asyncio.current_task()
        if self._holders.get(key) is task:
            yield
            return

        async with self._get_lock(*key):
            self._holders[key] = task
            try:
                yield
            finally:
                del self._holders[key]

    async def get(self, owner_id: str, currency: str) -> Balance | None:
        """잔고 조회

        Args:
            owner_id: 소유자 ID
            currency: 통화 코드

        Returns:
            Balance 또는 None
        """
        with storage_errors("balance lookup"):
            row = await self.db.fetchone_dict(
                "SELECT * FROM balances WHERE owner_id = ? AND currency = ?",
                (owner_id, normalize_currency(currency)),
            )
        return Balance.from_row(row) if row else None

    async def list_by_owner(self, owner_id: str) -> list[Balance]:
        """소유자의 전체 잔고 (통화순)"""
        with storage_errors("balance listing"):
            rows = await self.db.fetchall_dict(
                "SELECT * FROM balances WHERE owner_id = ? ORDER BY currency ASC",
                (owner_id,),
            )
        return [Balance.from_row(row) for row in rows]

    async def list_all(self) -> list[Balance]:
        """전체 잔고"""
        with storage_errors("balance listing"):
            rows = await self.db.fetchall_dict(
                "SELECT * FROM balances ORDER BY owner_id ASC, currency ASC"
            )
        return [Balance.from_row(row) for row in rows]

    async def upsert_add(
        self,
        owner_id: str,
        currency: str,
        delta: Decimal,
        origin: BalanceOrigin,
        linked_address: str | None = None,
    ) -> Balance:
        """잔고에 delta 적용 (없으면 생성)

        호출자가 연 트랜잭션이 있으면 그 안에서 실행되고,
        없으면 자체 트랜잭션으로 실행된다.
        잠금 순서: 키 잠금 → 트랜잭션.

        Args:
            owner_id: 소유자 ID
            currency: 통화 코드
            delta: 변동액 (출금은 음수)
            origin: 변동 출처
            linked_address: 신규 생성 시 기록할 주소

        Returns:
            변경된 Balance

        Raises:
            InsufficientBalanceError: 출금성 변동이 available을 음수로 만드는 경우
            StorageFailureError: 저장소 오류 또는 lost update 감지
        """
        currency = normalize_currency(currency)
        delta = quantize_amount(delta, currency)

        async with self.key_lock(owner_id, currency):
            async with self.db.transaction():
                with storage_errors("balance update"):
                    return await self._apply_delta(
                        owner_id, currency, delta, origin, linked_address
                    )

    async def _apply_delta(
        self,
        owner_id: str,
        currency: str,
        delta: Decimal,
        origin: BalanceOrigin,
        linked_address: str | None,
    ) -> Balance:
        now = datetime.now(timezone.utc).isoformat()
        current = await self.get(owner_id, currency)

        if current is None:
            new_available = delta
            self._check_sufficient(owner_id, currency, Decimal("0"), delta, origin)
            await self.db.execute(
                """
                INSERT INTO balances (
                    owner_id, currency, available, locked,
                    linked_address, version, updated_at
                ) VALUES (?, ?, ?, '0', ?, 1, ?)
                """,
                (owner_id, currency, str(new_available), linked_address, now),
            )
        else:
            new_available = current.available + delta
            self._check_sufficient(owner_id, currency, current.available, delta, origin)
            cursor = await self.db.execute(
                """
                UPDATE balances
                SET available = ?, version = version + 1, updated_at = ?
                WHERE owner_id = ? AND currency = ? AND version = ?
                """,
                (str(new_available), now, owner_id, currency, current.version),
            )
            if cursor.rowcount != 1:
                raise StorageFailureError(
                    f"Lost update detected on balance {owner_id}/{currency} "
                    f"(version {current.version})"
                )

        logger.info(
            f"Balance updated: {owner_id}/{currency} {delta:+} -> {new_available}",
            extra={"origin": origin.value},
        )

        balance = await self.get(owner_id, currency)
        assert balance is not None
        return balance

    @staticmethod
    def _check_sufficient(
        owner_id: str,
        currency: str,
        available: Decimal,
        delta: Decimal,
        origin: BalanceOrigin,
    ) -> None:
        # 입금성 변동은 항상 허용
        if origin != BalanceOrigin.WITHDRAWAL:
            return
        if available + delta < 0:
            raise InsufficientBalanceError(
                owner_id=owner_id,
                currency=currency,
                available=str(available),
                requested=str(-delta),
            )
