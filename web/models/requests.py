"""
요청 스키마 (Pydantic)

Web API 요청 데이터 검증
금액은 부동소수점 오차를 피하기 위해 문자열로 받는다.
"""

from typing import Literal

from pydantic import BaseModel, Field


class OwnerCreateRequest(BaseModel):
    """소유자 등록 요청"""

    owner_id: str = Field(..., min_length=1, description="소유자 ID")
    email: str | None = Field(default=None, description="이메일")
    display_name: str | None = Field(default=None, description="표시 이름")


class TransactionCreateRequest(BaseModel):
    """거래 생성 요청 (입금/환전)

    출금은 잔고 차감이 필요하므로 WithdrawalCreateRequest로 요청한다.
    """

    kind: Literal["deposit", "exchange"] = Field(..., description="거래 종류")
    currency: str = Field(..., min_length=1, description="통화 (BTC, ETH, USDT 등)")
    amount: str = Field(..., description="금액")
    status: Literal["pending", "completed", "failed"] = Field(
        default="pending",
        description="초기 상태 (표시용으로 이미 종료된 거래 허용)",
    )
    network: str | None = Field(default=None, description="결제 네트워크 (Bitcoin, Ethereum 등)")
    counterparty_from: str | None = Field(default=None, description="입금 출발 주소")
    external_reference: str | None = Field(default=None, description="블록체인 tx hash")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "kind": "deposit",
                    "currency": "BTC",
                    "amount": "0.5",
                    "network": "Bitcoin",
                    "counterparty_from": "bc1qxy2kgdygjrsqtzq2n0yrf2493p83kkfjhx0wlh",
                },
            ]
        }
    }


class WithdrawalCreateRequest(BaseModel):
    """출금 요청 (요청 시점에 잔고 차감)"""

    currency: str = Field(..., min_length=1, description="통화")
    amount: str = Field(..., description="출금 금액")
    counterparty_to: str | None = Field(default=None, description="출금 도착 주소")
    network: str | None = Field(default=None, description="결제 네트워크")


class ApproveRequest(BaseModel):
    """승인 요청 (본문 선택)"""

    external_reference: str | None = Field(default=None, description="블록체인 tx hash")
