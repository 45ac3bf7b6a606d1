#!/usr/bin/env python3
"""잔고 정합 검사 스크립트

엔진이 적용한 거래에서 다시 계산한 기대 잔고와 balances 테이블을 비교한다.
불일치가 있으면 종료 코드 1.

실행 방법:
    python scripts/check_ledger.py
    python scripts/check_ledger.py --db data/cryptonest_ledger.db
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.config.loader import get_settings
from core.ledger.reconcile import find_balance_drift
from core.logging import setup_logging
from core.storage.balance_store import BalanceStore
from core.storage.transaction_store import TransactionStore

logger = logging.getLogger(__name__)


async def main(db_path: Path) -> int:
    if not db_path.exists():
        logger.error(f"DB 파일 없음: {db_path}")
        return 1

    async with SQLiteAdapter(db_path, readonly=True) as db:
        transactions = await TransactionStore(db).iter_all()
        balances = await BalanceStore(db).list_all()

    drifts = find_balance_drift(transactions, balances)

    print(f"DB Path: {db_path}")
    print(f"Transactions: {len(transactions)}")
    print(f"Balances: {len(balances)}")

    if not drifts:
        print("\n잔고 정합: OK")
        return 0

    print(f"\n잔고 불일치 ({len(drifts)}):")
    for d in drifts:
        print(
            f"  - {d.owner_id} {d.currency}: "
            f"expected={d.expected} actual={d.actual} diff={d.difference}"
        )
    return 1


if __name__ == "__main__":
    parser = argparse.ArgumentParser(
        description="잔고 정합 검사"
    )
    parser.add_argument(
        "--db",
        type=Path,
        default=None,
        help="검사할 DB 경로 (기본: settings.yaml의 database.path)"
    )
    args = parser.parse_args()

    setup_logging("check_ledger")
    db_path = args.db if args.db is not None else get_settings().db_path

    sys.exit(asyncio.run(main(db_path)))
