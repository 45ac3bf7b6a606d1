"""
의존성 주입

FastAPI의 Depends를 사용한 의존성 관리.
"""

from fastapi import Header, HTTPException

from core.ledger.context import LedgerContext
from core.types import Actor


# =========================================================================
# LedgerContext (프로세스 공유)
# =========================================================================

# lifespan에서 설정되는 전역 LedgerContext 인스턴스
# BalanceStore 키 잠금과 StatsCache를 요청 간에 공유하기 위함
_ledger: LedgerContext | None = None


def set_ledger(ledger: LedgerContext | None) -> None:
    """LedgerContext 설정

    Args:
        ledger: LedgerContext 인스턴스 (종료 시 None)
    """
    global _ledger
    _ledger = ledger


def get_ledger() -> LedgerContext:
    """LedgerContext 반환

    Raises:
        HTTPException: 초기화 전이면 503
    """
    if _ledger is None:
        raise HTTPException(
            status_code=503,
            detail={"message": "Ledger is not initialized", "code": "SERVICE_UNAVAILABLE"},
        )
    return _ledger


def get_admin_actor(x_admin_id: str = Header(default="admin")) -> Actor:
    """요청 헤더에서 관리자 Actor 생성 (감사 로그용)"""
    return Actor.admin(x_admin_id)
