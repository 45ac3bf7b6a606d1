"""
Ledger 도메인 모델

거래(Transaction)는 kind별 태그드 변형으로 표현한다.
- DepositTransaction: 입금 (counterparty_from, external_reference)
- WithdrawalTransaction: 출금 (counterparty_to, external_reference)
- ExchangeTransaction: 환전 (외부 상대방 필드 없음)

금액은 항상 Decimal, DB에는 TEXT로 저장.
"""

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, ClassVar

from core.types import (
    TransactionKind,
    TransactionStatus,
    normalize_currency,
    quantize_amount,
)


def _parse_ts(value: str | None) -> datetime | None:
    if not value:
        return None
    return datetime.fromisoformat(value)


@dataclass(frozen=True)
class Transaction:
    """거래 공통 필드

    Attributes:
        id: 거래 ID (단조 증가)
        owner_id: 소유 계정 ID
        currency: 통화 코드
        amount: 금액 (통화 정밀도로 절삭됨)
        status: 현재 상태
        created_at: 생성 시각 (불변)
        network: 결제 네트워크 라벨 (정보용)
        resolved_at: pending을 벗어난 시각
        balance_applied: 엔진이 잔고 효과를 적용했는지 여부
    """

    kind: ClassVar[TransactionKind]

    id: int
    owner_id: str
    currency: str
    amount: Decimal
    status: TransactionStatus
    created_at: datetime
    network: str | None = None
    resolved_at: datetime | None = None
    balance_applied: bool = False

    @property
    def is_pending(self) -> bool:
        return self.status == TransactionStatus.PENDING

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "Transaction":
        """DB 행에서 kind에 맞는 변형 생성"""
        kind = TransactionKind(row["kind"])
        variant = _VARIANTS[kind]

        common: dict[str, Any] = {
            "id": int(row["id"]),
            "owner_id": row["owner_id"],
            "currency": row["currency"],
            "amount": Decimal(str(row["amount"])),
            "status": TransactionStatus(row["status"]),
            "created_at": datetime.fromisoformat(row["created_at"]),
            "network": row.get("network"),
            "resolved_at": _parse_ts(row.get("resolved_at")),
            "balance_applied": bool(row.get("balance_applied")),
        }

        if kind == TransactionKind.DEPOSIT:
            common["counterparty_from"] = row.get("counterparty_from")
            common["external_reference"] = row.get("external_reference")
        elif kind == TransactionKind.WITHDRAWAL:
            common["counterparty_to"] = row.get("counterparty_to")
            common["external_reference"] = row.get("external_reference")

        return variant(**common)

    def to_dict(self) -> dict[str, Any]:
        """API 응답용 dict (금액은 문자열)"""
        data = asdict(self)
        data["kind"] = self.kind.value
        data["status"] = self.status.value
        data["amount"] = str(self.amount)
        data["created_at"] = self.created_at.isoformat()
        data["resolved_at"] = self.resolved_at.isoformat() if self.resolved_at else None
        return data


@dataclass(frozen=True)
class DepositTransaction(Transaction):
    """입금 거래"""

    kind: ClassVar[TransactionKind] = TransactionKind.DEPOSIT

    counterparty_from: str | None = None
    external_reference: str | None = None


@dataclass(frozen=True)
class WithdrawalTransaction(Transaction):
    """출금 거래"""

    kind: ClassVar[TransactionKind] = TransactionKind.WITHDRAWAL

    counterparty_to: str | None = None
    external_reference: str | None = None


@dataclass(frozen=True)
class ExchangeTransaction(Transaction):
    """환전 거래 (정산은 생성 시점에 외부에서 적용됨)"""

    kind: ClassVar[TransactionKind] = TransactionKind.EXCHANGE


_VARIANTS: dict[TransactionKind, type[Transaction]] = {
    TransactionKind.DEPOSIT: DepositTransaction,
    TransactionKind.WITHDRAWAL: WithdrawalTransaction,
    TransactionKind.EXCHANGE: ExchangeTransaction,
}


@dataclass(frozen=True)
class NewTransaction:
    """거래 생성 요청

    생성 시 검증:
    - amount >= 0, 통화 정밀도로 절삭
    - exchange는 counterparty / external_reference 불가
    - external_reference는 completed 상태에서만 허용
    """

    owner_id: str
    kind: TransactionKind
    currency: str
    amount: Decimal
    status: TransactionStatus = TransactionStatus.PENDING
    network: str | None = None
    counterparty: str | None = None
    external_reference: str | None = None

    def __post_init__(self) -> None:
        if not self.owner_id:
            raise ValueError("owner_id must not be empty")

        kind = TransactionKind(self.kind)
        status = TransactionStatus(self.status)
        currency = normalize_currency(self.currency)
        amount = quantize_amount(self.amount, currency)

        if amount < 0:
            raise ValueError(f"amount must be non-negative: {amount}")

        if kind == TransactionKind.EXCHANGE and (self.counterparty or self.external_reference):
            raise ValueError("exchange transactions carry no counterparty or external reference")

        if self.external_reference and status != TransactionStatus.COMPLETED:
            raise ValueError("external_reference is only allowed on completed transactions")

        # frozen dataclass 정규화
        object.__setattr__(self, "kind", kind)
        object.__setattr__(self, "status", status)
        object.__setattr__(self, "currency", currency)
        object.__setattr__(self, "amount", amount)

    @property
    def counterparty_from(self) -> str | None:
        return self.counterparty if self.kind == TransactionKind.DEPOSIT else None

    @property
    def counterparty_to(self) -> str | None:
        return self.counterparty if self.kind == TransactionKind.WITHDRAWAL else None


@dataclass(frozen=True)
class TransactionPage:
    """거래 목록 페이지 (최신순)"""

    items: list[Transaction]
    total: int
    limit: int
    offset: int

    @property
    def has_more(self) -> bool:
        return self.offset + len(self.items) < self.total


@dataclass(frozen=True)
class Balance:
    """소유자/통화별 잔고

    Attributes:
        owner_id: 소유 계정 ID
        currency: 통화 코드
        available: 사용 가능 금액
        locked: 출금 보류 등으로 묶인 금액
        linked_address: 입출금 주소 (정보용)
        version: 낙관적 동시성 버전
        updated_at: 마지막 변경 시각
    """

    owner_id: str
    currency: str
    available: Decimal
    locked: Decimal = Decimal("0")
    linked_address: str | None = None
    version: int = 1
    updated_at: datetime | None = None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "Balance":
        """DB 행에서 생성"""
        return cls(
            owner_id=row["owner_id"],
            currency=row["currency"],
            available=Decimal(str(row["available"])),
            locked=Decimal(str(row["locked"] or "0")),
            linked_address=row.get("linked_address"),
            version=int(row["version"]),
            updated_at=_parse_ts(row.get("updated_at")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "owner_id": self.owner_id,
            "currency": self.currency,
            "available": str(self.available),
            "locked": str(self.locked),
            "linked_address": self.linked_address,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


@dataclass(frozen=True)
class Owner:
    """계정 소유자"""

    owner_id: str
    email: str | None = None
    display_name: str | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "Owner":
        return cls(
            owner_id=row["owner_id"],
            email=row.get("email"),
            display_name=row.get("display_name"),
            created_at=datetime.fromisoformat(row["created_at"]),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "owner_id": self.owner_id,
            "email": self.email,
            "display_name": self.display_name,
            "created_at": self.created_at.isoformat(),
        }
