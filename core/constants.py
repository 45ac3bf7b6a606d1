"""
하드코딩 상수 - 변경될 일이 거의 없는 고정값

중요: 경로는 반드시 pathlib.Path 사용 (Windows/Linux 크로스 플랫폼)
"""

from decimal import Decimal
from pathlib import Path


# 프로젝트 루트 (이 파일 기준 2단계 상위: core/constants.py → cryptonest/)
PROJECT_ROOT: Path = Path(__file__).resolve().parent.parent


class Defaults:
    """기본값 상수"""

    WEB_HOST: str = "127.0.0.1"
    WEB_PORT: int = 8000

    LOG_LEVEL: str = "INFO"

    # 관리자 거래 목록 페이지 크기
    PAGE_LIMIT: int = 50
    MAX_PAGE_LIMIT: int = 100


class Paths:
    """프로젝트 경로 상수 (pathlib 사용 - OS 독립적)"""

    # 디렉토리
    CONFIG_DIR: Path = PROJECT_ROOT / "config"
    DATA_DIR: Path = PROJECT_ROOT / "data"
    LOGS_DIR: Path = PROJECT_ROOT / "logs"
    WEB_LOGS_DIR: Path = LOGS_DIR / "web"

    # 설정 파일
    SETTINGS_FILE: Path = CONFIG_DIR / "settings.yaml"

    # DB 파일
    LEDGER_DB: Path = DATA_DIR / "cryptonest_ledger.db"


class Precision:
    """통화별 소수 자릿수

    스테이블 자산은 2자리, 그 외 암호화폐는 8자리
    """

    CRYPTO_DECIMALS: int = 8
    STABLE_DECIMALS: int = 2

    STABLE_ASSETS: frozenset[str] = frozenset({"USDT", "USDC", "USD", "DAI", "BUSD"})

    # 잔고 비교 허용 오차 (Reconciler)
    TOLERANCE: Decimal = Decimal("0.00000001")
