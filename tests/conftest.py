"""
pytest 공통 fixture 정의

임시 디렉토리, settings.yaml, 스키마가 초기화된 DB, LedgerContext
"""

import tempfile
from pathlib import Path

import pytest
import pytest_asyncio

from adapters.db.sqlite_adapter import SQLiteAdapter, init_schema
from core.config.loader import Settings
from core.ledger.context import LedgerContext, create_ledger_context
from core.ledger.stats import StatsCache


@pytest.fixture
def temp_dir() -> Path:
    """OS 독립적인 임시 디렉토리 생성"""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def temp_settings_file(temp_dir: Path) -> Path:
    """테스트용 settings.yaml 파일 생성"""
    settings_content = f"""# 테스트용 settings.yaml
database:
  path: {(temp_dir / "ledger.db").as_posix()}

web:
  host: 127.0.0.1
  port: 9000

logging:
  level: DEBUG

stats:
  cache_enabled: false
"""
    settings_path = temp_dir / "settings.yaml"
    settings_path.write_text(settings_content, encoding="utf-8")
    return settings_path


@pytest.fixture
def reset_settings():
    """Settings 싱글톤 초기화"""
    Settings.reset()
    yield
    Settings.reset()


@pytest_asyncio.fixture
async def db(tmp_path: Path) -> SQLiteAdapter:
    """스키마가 초기화된 임시 DB"""
    adapter = SQLiteAdapter(tmp_path / "ledger.db")
    await adapter.connect()
    await init_schema(adapter)
    yield adapter
    await adapter.close()


@pytest.fixture
def stats_cache() -> StatsCache:
    return StatsCache()


@pytest.fixture
def ledger(db: SQLiteAdapter, stats_cache: StatsCache) -> LedgerContext:
    """임시 DB 위의 LedgerContext"""
    return create_ledger_context(db, stats_cache=stats_cache)


@pytest_asyncio.fixture
async def owner_id(ledger: LedgerContext) -> str:
    """등록된 기본 소유자"""
    await ledger.owners.create("owner-1", email="demo@example.com", display_name="Demo User")
    return "owner-1"
