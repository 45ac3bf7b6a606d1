"""
FastAPI 애플리케이션

라우터 등록 및 앱 설정.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from core.config.loader import get_settings
from core.logging import setup_logging

# 로깅 설정 (콘솔 + 파일)
_settings = get_settings()
setup_logging(
    "web",
    console_level=_settings.config.log_level,
    file_level=_settings.config.log_level,
    log_dir=_settings.config.log_dir,
)

from web.errors import register_exception_handlers
from web.routes import admin, health, owners

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """앱 생명주기 관리

    프로세스당 하나의 SQLiteAdapter와 LedgerContext를 만든다.
    """
    from adapters.db.sqlite_adapter import SQLiteAdapter, init_schema
    from core.ledger.context import create_ledger_context
    from core.ledger.stats import StatsCache
    from web.dependencies import set_ledger

    settings = get_settings()

    db = SQLiteAdapter(settings.db_path)
    await db.connect()

    # 시작 시 - DB 스키마 자동 초기화
    await init_schema(db)

    ledger = create_ledger_context(
        db,
        stats_cache=StatsCache(enabled=settings.config.stats_cache_enabled),
    )
    set_ledger(ledger)
    logger.info(f"Web: Ledger 초기화 완료 ({settings.db_path})")

    try:
        yield
    finally:
        # 종료 시 - 리소스 정리
        set_ledger(None)
        await db.close()
        logger.info("Web: DB 연결 종료 완료")


def create_app() -> FastAPI:
    """FastAPI 앱 생성"""
    app = FastAPI(
        title="CryptoNest Ledger API",
        description="암호화폐 입출금/환전 거래 승인 및 잔고 원장 API",
        version=health.API_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # CORS 설정 (개발용)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    # =========================================================================
    # API 라우터 등록
    # =========================================================================

    app.include_router(health.router)
    app.include_router(admin.router)
    app.include_router(owners.router)

    return app


app = create_app()
