"""
거래/잔고 Ledger

입금·출금·환전 거래의 상태 전이(pending → completed | failed)와
그에 따른 소유자별 잔고 변동을 원자적으로 관리한다.

사용 예시:
```python
from core.ledger.context import create_ledger_context

ledger = create_ledger_context(db)

# 관리자 승인 (입금이면 잔고 증가)
tx = await ledger.gateway.approve(transaction_id, Actor.admin("ops"))

# 잔고 조회
balance = await ledger.balances.get("U1", "BTC")
```
"""

from core.ledger.engine import LedgerEngine
from core.ledger.errors import (
    InsufficientBalanceError,
    InvalidStateError,
    LedgerError,
    NotFoundError,
    OwnerNotFoundError,
    StorageFailureError,
    TransactionNotFoundError,
)
from core.ledger.gateway import ApprovalGateway
from core.ledger.models import (
    Balance,
    DepositTransaction,
    ExchangeTransaction,
    NewTransaction,
    Owner,
    Transaction,
    TransactionPage,
    WithdrawalTransaction,
)
from core.ledger.reconcile import BalanceDrift, find_balance_drift
from core.ledger.stats import LedgerStatistics, StatsCache, compute_statistics

__all__ = [
    # 핵심 클래스
    "LedgerEngine",
    "ApprovalGateway",
    "StatsCache",
    # 모델
    "Transaction",
    "DepositTransaction",
    "WithdrawalTransaction",
    "ExchangeTransaction",
    "NewTransaction",
    "TransactionPage",
    "Balance",
    "Owner",
    "LedgerStatistics",
    "BalanceDrift",
    # 함수
    "compute_statistics",
    "find_balance_drift",
    # 오류
    "LedgerError",
    "NotFoundError",
    "TransactionNotFoundError",
    "OwnerNotFoundError",
    "InvalidStateError",
    "InsufficientBalanceError",
    "StorageFailureError",
]
