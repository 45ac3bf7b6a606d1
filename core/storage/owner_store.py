"""
Owner Store

owners 테이블 CRUD 처리.
Approval Gateway가 거래 소유자의 유효성을 확인할 때 사용.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from core.ledger.errors import OwnerNotFoundError, storage_errors
from core.ledger.models import Owner

if TYPE_CHECKING:
    from adapters.db.sqlite_adapter import SQLiteAdapter

logger = logging.getLogger(__name__)


class OwnerStore:
    """Owner Store

    Args:
        db: SQLite 어댑터
    """

    def __init__(self, db: SQLiteAdapter):
        self.db = db

    async def create(
        self,
        owner_id: str,
        email: str | None = None,
        display_name: str | None = None,
    ) -> Owner:
        """소유자 등록

        Raises:
            ValueError: 빈 owner_id 또는 이미 존재하는 owner_id
            StorageFailureError: 중복 ID/이메일 등 저장소 오류
        """
        if not owner_id:
            raise ValueError("owner_id must not be empty")

        owner = Owner(owner_id=owner_id, email=email, display_name=display_name)

        async with self.db.transaction():
            if await self.find(owner_id) is not None:
                raise ValueError(f"Owner already exists: {owner_id}")
            with storage_errors("owner insert"):
                await self.db.execute(
                    """
                    INSERT INTO owners (owner_id, email, display_name, created_at)
                    VALUES (?, ?, ?, ?)
                    """,
                    (owner.owner_id, owner.email, owner.display_name, owner.created_at.isoformat()),
                )

        logger.info(f"Owner created: {owner_id}")
        return owner

    async def find(self, owner_id: str) -> Owner | None:
        with storage_errors("owner lookup"):
            row = await self.db.fetchone_dict(
                "SELECT * FROM owners WHERE owner_id = ?",
                (owner_id,),
            )
        return Owner.from_row(row) if row else None

    async def get(self, owner_id: str) -> Owner:
        """소유자 조회

        Raises:
            OwnerNotFoundError: 존재하지 않는 소유자
        """
        owner = await self.find(owner_id)
        if owner is None:
            raise OwnerNotFoundError(owner_id)
        return owner

    async def exists(self, owner_id: str) -> bool:
        return await self.find(owner_id) is not None

    async def count(self) -> int:
        with storage_errors("owner count"):
            row = await self.db.fetchone("SELECT COUNT(*) FROM owners")
        return row[0] if row else 0

    async def list_all(self) -> list[Owner]:
        """전체 소유자 (등록순)"""
        with storage_errors("owner listing"):
            rows = await self.db.fetchall_dict(
                "SELECT * FROM owners ORDER BY created_at ASC, owner_id ASC"
            )
        return [Owner.from_row(row) for row in rows]
