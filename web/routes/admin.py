"""
관리자 라우트

POST /api/admin/transactions/{id}/approve - 거래 승인
POST /api/admin/transactions/{id}/reject  - 거래 거부
GET  /api/admin/transactions              - 전체 거래 목록
GET  /api/admin/stats                     - 통계
GET  /api/admin/reconcile                 - 잔고 정합 검사
GET  /api/admin/owners                    - 소유자 목록
GET  /api/admin/owners/{owner_id}         - 소유자 상세 (잔고, 거래)
"""

from fastapi import APIRouter, Body, Depends, Query

from core.constants import Defaults
from core.ledger.context import LedgerContext
from core.types import Actor, TransactionKind, TransactionStatus
from web.dependencies import get_admin_actor, get_ledger
from web.errors import validation_error
from web.models.requests import ApproveRequest
from web.models.responses import (
    OwnerDetailResponse,
    OwnerListResponse,
    ReconcileResponse,
    StatsResponse,
    TransactionListResponse,
    TransactionResponse,
)
from web.services.ledger_service import LedgerService

router = APIRouter(prefix="/api/admin", tags=["Admin"])


@router.post("/transactions/{transaction_id}/approve", response_model=TransactionResponse)
async def approve_transaction(
    transaction_id: int,
    request: ApproveRequest | None = Body(default=None),
    actor: Actor = Depends(get_admin_actor),
    ledger: LedgerContext = Depends(get_ledger),
):
    """거래 승인

    입금이면 잔고에 반영된다. pending이 아니면 400.
    """
    service = LedgerService(ledger)
    external_reference = request.external_reference if request else None

    try:
        return await service.approve(transaction_id, actor, external_reference)
    except ValueError as e:
        raise validation_error(str(e))


@router.post("/transactions/{transaction_id}/reject", response_model=TransactionResponse)
async def reject_transaction(
    transaction_id: int,
    actor: Actor = Depends(get_admin_actor),
    ledger: LedgerContext = Depends(get_ledger),
):
    """거래 거부 (잔고 변동 없음)"""
    service = LedgerService(ledger)
    return await service.reject(transaction_id, actor)


@router.get("/transactions", response_model=TransactionListResponse)
async def list_transactions(
    limit: int = Query(default=Defaults.PAGE_LIMIT, ge=1, le=Defaults.MAX_PAGE_LIMIT),
    offset: int = Query(default=0, ge=0),
    status: TransactionStatus | None = Query(default=None),
    kind: TransactionKind | None = Query(default=None),
    ledger: LedgerContext = Depends(get_ledger),
):
    """전체 거래 목록 (최신순)"""
    service = LedgerService(ledger)
    return await service.list_transactions(limit, offset, status=status, kind=kind)


@router.get("/stats", response_model=StatsResponse)
async def get_stats(ledger: LedgerContext = Depends(get_ledger)):
    """관리자 통계 (캐시 우선)"""
    service = LedgerService(ledger)
    return await service.statistics()


@router.get("/reconcile", response_model=ReconcileResponse)
async def reconcile(ledger: LedgerContext = Depends(get_ledger)):
    """잔고 정합 검사"""
    service = LedgerService(ledger)
    return await service.reconcile()


@router.get("/owners", response_model=OwnerListResponse)
async def list_owners(ledger: LedgerContext = Depends(get_ledger)):
    """전체 소유자 목록 (등록순)"""
    service = LedgerService(ledger)
    return await service.list_owners()


@router.get("/owners/{owner_id}", response_model=OwnerDetailResponse)
async def get_owner(owner_id: str, ledger: LedgerContext = Depends(get_ledger)):
    """소유자 상세

    잔고와 최신순 거래를 함께 반환한다. 등록되지 않은 소유자면 404.
    """
    service = LedgerService(ledger)
    return await service.owner_detail(owner_id)
