"""
응답 스키마 (Pydantic)

Web API 응답 데이터 직렬화
"""

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """헬스 체크 응답"""

    status: str = Field(default="ok", description="서비스 상태")
    version: str = Field(..., description="API 버전")


class ErrorBody(BaseModel):
    message: str
    code: str


class ErrorResponse(BaseModel):
    """오류 응답"""

    error: ErrorBody


class TransactionResponse(BaseModel):
    """거래 응답

    kind별로 의미 없는 필드는 null.
    """

    id: int = Field(..., description="거래 ID")
    owner_id: str = Field(..., description="소유자 ID")
    kind: str = Field(..., description="deposit / withdrawal / exchange")
    currency: str = Field(..., description="통화")
    amount: str = Field(..., description="금액")
    status: str = Field(..., description="pending / completed / failed")
    network: str | None = Field(default=None, description="결제 네트워크")
    external_reference: str | None = Field(default=None, description="블록체인 tx hash")
    counterparty_to: str | None = Field(default=None, description="출금 도착 주소")
    counterparty_from: str | None = Field(default=None, description="입금 출발 주소")
    balance_applied: bool = Field(..., description="잔고 효과 적용 여부")
    created_at: str = Field(..., description="생성 시각")
    resolved_at: str | None = Field(default=None, description="종료 시각")


class TransactionListResponse(BaseModel):
    """거래 목록 응답"""

    transactions: list[TransactionResponse]
    total: int
    limit: int
    offset: int
    has_more: bool


class BalanceResponse(BaseModel):
    """잔고 응답"""

    owner_id: str = Field(..., description="소유자 ID")
    currency: str = Field(..., description="통화")
    available: str = Field(..., description="사용 가능 잔고")
    locked: str = Field(..., description="잠긴 잔고")
    linked_address: str | None = Field(default=None, description="연결 주소")
    updated_at: str | None = Field(default=None, description="마지막 업데이트 시간")


class OwnerResponse(BaseModel):
    """소유자 응답"""

    owner_id: str
    email: str | None = None
    display_name: str | None = None
    created_at: str


class OwnerListResponse(BaseModel):
    """소유자 목록 응답"""

    owners: list[OwnerResponse]
    total: int


class OwnerDetailResponse(BaseModel):
    """소유자 상세 응답 (잔고 + 최신순 거래)"""

    owner: OwnerResponse
    balances: list[BalanceResponse]
    transactions: list[TransactionResponse]


class StatsResponse(BaseModel):
    """관리자 통계 응답"""

    total_owners: int
    active_owners: int
    total_transactions: int
    pending_count: int
    completed_count: int
    failed_count: int
    deposit_volume: dict[str, str]
    withdrawal_volume: dict[str, str]
    platform_balances: dict[str, str]
    updated_at: str


class BalanceDriftResponse(BaseModel):
    owner_id: str
    currency: str
    expected: str
    actual: str
    difference: str


class ReconcileResponse(BaseModel):
    """잔고 정합 검사 응답"""

    consistent: bool
    drifts: list[BalanceDriftResponse]
