"""
Ledger 오류 분류

엔진과 저장소가 호출자에게 그대로 전달하는 오류 종류.
각 오류는 HTTP 응답에 쓰이는 code를 가진다.
"""

import logging
import sqlite3
from contextlib import contextmanager
from typing import Iterator

logger = logging.getLogger(__name__)


class LedgerError(Exception):
    """Ledger 오류 기본 클래스"""

    code: str = "LEDGER_ERROR"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(LedgerError):
    """알 수 없는 거래, 잔고 키, 소유자"""

    code = "NOT_FOUND"


class TransactionNotFoundError(NotFoundError):
    """알 수 없는 거래 ID"""

    code = "TRANSACTION_NOT_FOUND"

    def __init__(self, transaction_id: int):
        super().__init__(f"Transaction not found: {transaction_id}")
        self.transaction_id = transaction_id


class OwnerNotFoundError(NotFoundError):
    """존재하지 않는 소유자"""

    code = "OWNER_NOT_FOUND"

    def __init__(self, owner_id: str):
        super().__init__(f"Owner not found: {owner_id}")
        self.owner_id = owner_id


class InvalidStateError(LedgerError):
    """pending이 아닌 거래에 대한 전이 시도"""

    code = "INVALID_TRANSACTION_STATUS"

    def __init__(self, transaction_id: int, status: str, target: str):
        super().__init__(
            f"Only pending transactions can be {target}: "
            f"transaction {transaction_id} is {status}"
        )
        self.transaction_id = transaction_id
        self.status = status
        self.target = target


class InsufficientBalanceError(LedgerError):
    """출금성 차감이 available을 음수로 만드는 경우"""

    code = "INSUFFICIENT_BALANCE"

    def __init__(self, owner_id: str, currency: str, available: str, requested: str):
        super().__init__(
            f"Insufficient {currency} balance for {owner_id}: "
            f"available {available}, requested {requested}"
        )
        self.owner_id = owner_id
        self.currency = currency
        self.available = available
        self.requested = requested


class StorageFailureError(LedgerError):
    """저장소 오류 (lost update 감지 포함)"""

    code = "STORAGE_FAILURE"


@contextmanager
def storage_errors(operation: str) -> Iterator[None]:
    """sqlite3 오류를 StorageFailureError로 변환

    Args:
        operation: 실패 메시지에 쓰일 작업 이름
    """
    try:
        yield
    except sqlite3.Error as e:
        logger.error(f"Storage failure during {operation}: {e}")
        raise StorageFailureError(f"{operation} failed: {e}") from e
