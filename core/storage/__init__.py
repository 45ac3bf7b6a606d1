"""
스토리지 모듈

Balance Store, Transaction Store, Owner Store 등 데이터 저장소 인터페이스 제공
"""

from core.storage.balance_store import BalanceStore
from core.storage.owner_store import OwnerStore
from core.storage.transaction_store import TransactionStore

__all__ = [
    "BalanceStore",
    "OwnerStore",
    "TransactionStore",
]
