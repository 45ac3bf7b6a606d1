"""
Ledger 의존성 조립

하나의 SQLiteAdapter 위에 stores, engine, gateway를 묶는다.
BalanceStore의 키 잠금과 StatsCache는 프로세스 내에서 공유되어야 하므로
컨텍스트는 프로세스당 하나만 만든다.
"""

from dataclasses import dataclass

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.ledger.engine import LedgerEngine
from core.ledger.gateway import ApprovalGateway
from core.ledger.stats import StatsCache
from core.storage.balance_store import BalanceStore
from core.storage.owner_store import OwnerStore
from core.storage.transaction_store import TransactionStore


@dataclass
class LedgerContext:
    """Ledger 컴포넌트 묶음"""

    db: SQLiteAdapter
    owners: OwnerStore
    transactions: TransactionStore
    balances: BalanceStore
    stats_cache: StatsCache
    engine: LedgerEngine
    gateway: ApprovalGateway


def create_ledger_context(
    db: SQLiteAdapter,
    stats_cache: StatsCache | None = None,
) -> LedgerContext:
    """LedgerContext 생성

    Args:
        db: 연결된 SQLiteAdapter
        stats_cache: 통계 캐시 (None이면 새로 생성)

    Returns:
        LedgerContext
    """
    stats_cache = stats_cache if stats_cache is not None else StatsCache()

    owners = OwnerStore(db)
    transactions = TransactionStore(db)
    balances = BalanceStore(db)
    engine = LedgerEngine(db, transactions, balances, stats_cache)
    gateway = ApprovalGateway(engine, transactions, owners, stats_cache)

    return LedgerContext(
        db=db,
        owners=owners,
        transactions=transactions,
        balances=balances,
        stats_cache=stats_cache,
        engine=engine,
        gateway=gateway,
    )
