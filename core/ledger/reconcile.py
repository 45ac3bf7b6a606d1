"""
잔고 정합 검사

엔진이 잔고 효과를 적용한 거래(balance_applied)에서
(소유자, 통화)별 기대 잔고를 다시 계산하여 balances 테이블과 비교한다.

- 입금: 승인 시 +amount
- 출금: 요청 시 -amount (승인/거부와 무관)
"""

import logging
from collections import defaultdict
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Iterable

from core.constants import Precision
from core.ledger.models import Balance, Transaction
from core.types import TransactionKind

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BalanceDrift:
    """잔고 불일치 정보"""

    owner_id: str
    currency: str
    expected: Decimal
    actual: Decimal

    @property
    def difference(self) -> Decimal:
        return self.actual - self.expected

    def to_dict(self) -> dict[str, Any]:
        return {
            "owner_id": self.owner_id,
            "currency": self.currency,
            "expected": str(self.expected),
            "actual": str(self.actual),
            "difference": str(self.difference),
        }


def expected_balances(transactions: Iterable[Transaction]) -> dict[tuple[str, str], Decimal]:
    """거래에서 (owner_id, currency)별 기대 available 계산"""
    expected: dict[tuple[str, str], Decimal] = defaultdict(Decimal)

    for tx in transactions:
        if not tx.balance_applied:
            continue
        key = (tx.owner_id, tx.currency)
        if tx.kind == TransactionKind.DEPOSIT:
            expected[key] += tx.amount
        elif tx.kind == TransactionKind.WITHDRAWAL:
            expected[key] -= tx.amount

    return dict(expected)


def find_balance_drift(
    transactions: Iterable[Transaction],
    balances: Iterable[Balance],
    tolerance: Decimal = Precision.TOLERANCE,
) -> list[BalanceDrift]:
    """기대 잔고와 실제 잔고 비교

    Args:
        transactions: 전체 거래
        balances: 전체 잔고
        tolerance: 허용 오차

    Returns:
        불일치 목록 (없으면 빈 리스트)
    """
    expected = expected_balances(transactions)
    actual = {(b.owner_id, b.currency): b.available for b in balances}

    drifts: list[BalanceDrift] = []
    for key in sorted(set(expected) | set(actual)):
        exp = expected.get(key, Decimal("0"))
        act = actual.get(key, Decimal("0"))
        if abs(act - exp) > tolerance:
            drifts.append(BalanceDrift(owner_id=key[0], currency=key[1], expected=exp, actual=act))

    if drifts:
        logger.warning(f"Balance drift detected: {len(drifts)} pair(s)")

    return drifts
