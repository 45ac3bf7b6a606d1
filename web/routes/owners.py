"""
소유자 라우트

POST /api/owners                              - 소유자 등록
GET  /api/owners/{owner_id}/transactions      - 거래 목록 (최신순)
GET  /api/owners/{owner_id}/balances          - 잔고 목록
POST /api/owners/{owner_id}/transactions      - 입금/환전 생성
POST /api/owners/{owner_id}/withdrawals       - 출금 요청
"""

from fastapi import APIRouter, Depends

from core.ledger.context import LedgerContext
from core.types import TransactionKind, TransactionStatus
from web.dependencies import get_ledger
from web.errors import parse_amount, validation_error
from web.models.requests import (
    OwnerCreateRequest,
    TransactionCreateRequest,
    WithdrawalCreateRequest,
)
from web.models.responses import BalanceResponse, OwnerResponse, TransactionResponse
from web.services.ledger_service import LedgerService

router = APIRouter(prefix="/api/owners", tags=["Owners"])


@router.post("", response_model=OwnerResponse, status_code=201)
async def register_owner(
    request: OwnerCreateRequest,
    ledger: LedgerContext = Depends(get_ledger),
):
    """소유자 등록"""
    service = LedgerService(ledger)

    try:
        return await service.register_owner(
            request.owner_id,
            email=request.email,
            display_name=request.display_name,
        )
    except ValueError as e:
        raise validation_error(str(e))


@router.get("/{owner_id}/transactions", response_model=list[TransactionResponse])
async def get_owner_transactions(
    owner_id: str,
    ledger: LedgerContext = Depends(get_ledger),
):
    """소유자 거래 목록 (최신순)"""
    service = LedgerService(ledger)
    return await service.owner_transactions(owner_id)


@router.get("/{owner_id}/balances", response_model=list[BalanceResponse])
async def get_owner_balances(
    owner_id: str,
    ledger: LedgerContext = Depends(get_ledger),
):
    """소유자 잔고 목록"""
    service = LedgerService(ledger)
    return await service.owner_balances(owner_id)


@router.post("/{owner_id}/transactions", response_model=TransactionResponse, status_code=201)
async def create_transaction(
    owner_id: str,
    request: TransactionCreateRequest,
    ledger: LedgerContext = Depends(get_ledger),
):
    """입금/환전 거래 생성

    기본 상태는 pending이며 관리자 승인을 기다린다.
    """
    service = LedgerService(ledger)
    amount = parse_amount(request.amount)

    try:
        return await service.create_transaction(
            owner_id,
            kind=TransactionKind(request.kind),
            currency=request.currency,
            amount=amount,
            status=TransactionStatus(request.status),
            network=request.network,
            counterparty=request.counterparty_from,
            external_reference=request.external_reference,
        )
    except ValueError as e:
        raise validation_error(str(e))


@router.post("/{owner_id}/withdrawals", response_model=TransactionResponse, status_code=201)
async def request_withdrawal(
    owner_id: str,
    request: WithdrawalCreateRequest,
    ledger: LedgerContext = Depends(get_ledger),
):
    """출금 요청

    요청 시점에 잔고가 차감된다. 잔고가 부족하면 400.
    """
    service = LedgerService(ledger)
    amount = parse_amount(request.amount)

    try:
        return await service.request_withdrawal(
            owner_id,
            currency=request.currency,
            amount=amount,
            counterparty_to=request.counterparty_to,
            network=request.network,
        )
    except ValueError as e:
        raise validation_error(str(e))
