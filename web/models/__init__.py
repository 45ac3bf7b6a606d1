"""
Web 모델 패키지

Pydantic 스키마 정의
"""

from web.models.requests import (
    ApproveRequest,
    OwnerCreateRequest,
    TransactionCreateRequest,
    WithdrawalCreateRequest,
)
from web.models.responses import (
    BalanceDriftResponse,
    BalanceResponse,
    ErrorResponse,
    HealthResponse,
    OwnerDetailResponse,
    OwnerListResponse,
    OwnerResponse,
    ReconcileResponse,
    StatsResponse,
    TransactionListResponse,
    TransactionResponse,
)

__all__ = [
    # Requests
    "ApproveRequest",
    "OwnerCreateRequest",
    "TransactionCreateRequest",
    "WithdrawalCreateRequest",
    # Responses
    "BalanceDriftResponse",
    "BalanceResponse",
    "ErrorResponse",
    "HealthResponse",
    "OwnerDetailResponse",
    "OwnerListResponse",
    "OwnerResponse",
    "ReconcileResponse",
    "StatsResponse",
    "TransactionListResponse",
    "TransactionResponse",
]
