"""
타입 정의 모듈

Enum, Dataclass 등 핵심 타입 정의
모든 Enum은 str을 상속하여 문자열 직렬화 가능
"""

from dataclasses import dataclass
from decimal import ROUND_DOWN, Decimal
from enum import Enum

from core.constants import Precision


class TransactionKind(str, Enum):
    """거래 종류 (닫힌 열거형)"""

    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    EXCHANGE = "exchange"


class TransactionStatus(str, Enum):
    """거래 상태

    pending에서만 completed/failed로 전이 가능
    """

    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        """종료 상태 여부"""
        return self is not TransactionStatus.PENDING


class BalanceOrigin(str, Enum):
    """잔고 변동의 출처

    WITHDRAWAL 출처의 음수 변동만 잔고 부족 검사를 받는다.
    """

    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"


class ActorKind(str, Enum):
    """행위자 종류"""

    ADMIN = "ADMIN"
    OWNER = "OWNER"
    SYSTEM = "SYSTEM"


@dataclass(frozen=True)
class Actor:
    """행위자 (불변)

    승인/거부 요청자를 식별 (감사 로그용)
    """

    kind: str
    id: str

    @classmethod
    def admin(cls, admin_id: str) -> "Actor":
        """관리자 Actor 생성"""
        return cls(kind=ActorKind.ADMIN.value, id=f"admin:{admin_id}")

    @classmethod
    def owner(cls, owner_id: str) -> "Actor":
        """계정 소유자 Actor 생성"""
        return cls(kind=ActorKind.OWNER.value, id=f"owner:{owner_id}")

    @classmethod
    def system(cls, system_name: str) -> "Actor":
        """시스템 Actor 생성"""
        return cls(kind=ActorKind.SYSTEM.value, id=f"system:{system_name}")


def normalize_currency(currency: str) -> str:
    """통화 코드 정규화 (공백 제거, 대문자)"""
    code = currency.strip().upper()
    if not code:
        raise ValueError("currency must not be empty")
    return code


def currency_decimals(currency: str) -> int:
    """통화별 소수 자릿수 반환

    Args:
        currency: 통화 코드 (예: BTC, USDT)

    Returns:
        스테이블 자산이면 2, 그 외 8
    """
    if normalize_currency(currency) in Precision.STABLE_ASSETS:
        return Precision.STABLE_DECIMALS
    return Precision.CRYPTO_DECIMALS


def quantize_amount(amount: Decimal | str | int, currency: str) -> Decimal:
    """통화 정밀도에 맞춰 금액 절삭

    float 입력은 허용하지 않음 (부동소수점 오차 방지).

    Args:
        amount: 금액
        currency: 통화 코드

    Returns:
        정밀도에 맞춘 Decimal

    Raises:
        TypeError: float가 전달된 경우
    """
    if isinstance(amount, float):
        raise TypeError("amount must be Decimal, str or int, not float")

    value = amount if isinstance(amount, Decimal) else Decimal(str(amount))
    exponent = Decimal(1).scaleb(-currency_decimals(currency))
    return value.quantize(exponent, rounding=ROUND_DOWN)
