"""
SQLite 어댑터

WAL 모드로 SQLite 연결 관리.
Web 서버와 관리 스크립트가 동시에 접근 가능하도록 설정.

주의: 모든 쓰기는 transaction() 안에서 수행한다.
트랜잭션마다 풀에서 꺼낸 별도 연결을 쓰고,
트랜잭션 밖의 조회는 읽기 연결에서 커밋된 데이터만 본다.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator

import aiosqlite

logger = logging.getLogger(__name__)

# 동시에 열 수 있는 트랜잭션 연결 수
DEFAULT_POOL_SIZE = 4


async def create_connection(
    db_path: Path | str,
    readonly: bool = False,
) -> aiosqlite.Connection:
    """SQLite 연결 생성 (WAL 모드)

    Args:
        db_path: DB 파일 경로
        readonly: 읽기 전용 여부

    Returns:
        aiosqlite 연결 객체
    """
    db_path_str = str(db_path)

    # 디렉토리가 없으면 생성
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    if readonly:
        conn = await aiosqlite.connect(f"file:{db_path_str}?mode=ro", uri=True)
    else:
        conn = await aiosqlite.connect(db_path_str)

    # WAL 모드 설정
    await conn.execute("PRAGMA journal_mode=WAL")

    # 동시 접근 설정
    await conn.execute("PRAGMA busy_timeout=30000")  # 30초 대기

    # 외래 키 제약 활성화
    await conn.execute("PRAGMA foreign_keys=ON")

    logger.info(
        "SQLite 연결 생성",
        extra={"db_path": db_path_str, "readonly": readonly},
    )

    return conn


class SQLiteAdapter:
    """SQLite 어댑터

    WAL 모드로 SQLite 연결 관리.
    트랜잭션 컨텍스트 매니저 제공.

    연결 구성:
    - 읽기 연결 1개: 트랜잭션 밖의 조회와 스키마 초기화
    - 트랜잭션 연결 풀: transaction()마다 하나씩 태스크에 묶임

    다른 태스크가 연 트랜잭션의 미커밋 쓰기는 보이지 않는다.
    쓰기 잠금은 SQLite 파일 단위이므로 트랜잭션은 짧게 유지한다.

    Args:
        db_path: DB 파일 경로
        readonly: 읽기 전용 여부
        pool_size: 트랜잭션 연결 최대 개수

    사용 예시:
    ```python
    adapter = SQLiteAdapter(db_path)
    await adapter.connect()

    async with adapter.transaction() as conn:
        await conn.execute("INSERT INTO ...")

    await adapter.close()
    ```
    """

    def __init__(
        self,
        db_path: Path | str,
        readonly: bool = False,
        pool_size: int = DEFAULT_POOL_SIZE,
    ):
        if pool_size < 1:
            raise ValueError(f"pool_size must be >= 1: {pool_size}")
        self.db_path = Path(db_path)
        self.readonly = readonly
        self.pool_size = pool_size
        self._conn: aiosqlite.Connection | None = None
        self._pool: asyncio.Queue[aiosqlite.Connection] = asyncio.Queue()
        self._pool_conns: list[aiosqlite.Connection] = []
        self._opening = 0
        self._tx_conns: dict[asyncio.Task[Any], aiosqlite.Connection] = {}

    @property
    def is_connected(self) -> bool:
        """연결 상태 확인"""
        return self._conn is not None

    @property
    def in_transaction(self) -> bool:
        """현재 태스크가 트랜잭션을 보유 중인지 여부"""
        return asyncio.current_task() in self._tx_conns

    async def connect(self) -> None:
        """연결 생성"""
        if self._conn is not None:
            return

        self._conn = await create_connection(self.db_path, self.readonly)

    async def close(self) -> None:
        """읽기 연결과 풀의 모든 연결 종료"""
        for conn in self._pool_conns:
            await conn.close()
        self._pool_conns.clear()
        self._pool = asyncio.Queue()
        self._tx_conns.clear()

        if self._conn is not None:
            await self._conn.close()
            self._conn = None
            logger.info("SQLite 연결 종료")

    def _connection(self) -> aiosqlite.Connection:
        """현재 태스크가 사용할 연결 (트랜잭션 중이면 그 연결)"""
        if self._conn is None:
            raise RuntimeError("Not connected to database")
        return self._tx_conns.get(asyncio.current_task(), self._conn)

    async def _acquire(self) -> aiosqlite.Connection:
        """풀에서 트랜잭션 연결 획득 (부족하면 새로 연다)"""
        if self._pool.empty() and len(self._pool_conns) + self._opening < self.pool_size:
            self._opening += 1
            try:
                conn = await create_connection(self.db_path, self.readonly)
            finally:
                self._opening -= 1
            self._pool_conns.append(conn)
            return conn
        return await self._pool.get()

    async def execute(
        self,
        sql: str,
        parameters: tuple[Any, ...] | None = None,
    ) -> aiosqlite.Cursor:
        """SQL 실행"""
        conn = self._connection()
        if parameters:
            return await conn.execute(sql, parameters)
        return await conn.execute(sql)

    async def fetchone(
        self,
        sql: str,
        parameters: tuple[Any, ...] | None = None,
    ) -> tuple[Any, ...] | None:
        """단일 행 조회"""
        cursor = await self.execute(sql, parameters)
        try:
            return await cursor.fetchone()
        finally:
            # 남은 행이 있어도 읽기 스냅샷을 풀어준다
            await cursor.close()

    async def fetchall(
        self,
        sql: str,
        parameters: tuple[Any, ...] | None = None,
    ) -> list[tuple[Any, ...]]:
        """전체 행 조회"""
        cursor = await self.execute(sql, parameters)
        return list(await cursor.fetchall())

    async def fetchone_dict(
        self,
        sql: str,
        parameters: tuple[Any, ...] | None = None,
    ) -> dict[str, Any] | None:
        """단일 행을 컬럼명 dict로 조회"""
        cursor = await self.execute(sql, parameters)
        try:
            row = await cursor.fetchone()
            if row is None:
                return None
            columns = [desc[0] for desc in cursor.description]
            return dict(zip(columns, row))
        finally:
            await cursor.close()

    async def fetchall_dict(
        self,
        sql: str,
        parameters: tuple[Any, ...] | None = None,
    ) -> list[dict[str, Any]]:
        """전체 행을 컬럼명 dict 목록으로 조회"""
        cursor = await self.execute(sql, parameters)
        rows = await cursor.fetchall()
        if not rows:
            return []
        columns = [desc[0] for desc in cursor.description]
        return [dict(zip(columns, row)) for row in rows]

    async def commit(self) -> None:
        """커밋"""
        if self._conn is not None:
            await self._connection().commit()

    async def rollback(self) -> None:
        """롤백"""
        if self._conn is not None:
            await self._connection().rollback()

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[aiosqlite.Connection]:
        """트랜잭션 컨텍스트 매니저

        풀의 연결 하나를 현재 태스크에 묶고 BEGIN IMMEDIATE로 쓰기 잠금을 잡는다.
        성공 시 자동 커밋, 예외 시 자동 롤백.
        같은 태스크에서 중첩 호출하면 바깥 트랜잭션에 합류한다.

        사용 예시:
        ```python
        async with adapter.transaction() as conn:
            await conn.execute("INSERT INTO ...")
            # 성공 시 자동 커밋
        ```
        """
        if self._conn is None:
            raise RuntimeError("Not connected to database")

        task = asyncio.current_task()
        if task in self._tx_conns:
            yield self._tx_conns[task]
            return

        conn = await self._acquire()
        self._tx_conns[task] = conn
        try:
            try:
                await conn.execute("BEGIN IMMEDIATE")
                yield conn
                await conn.commit()
            except BaseException:
                await conn.rollback()
                raise
        finally:
            del self._tx_conns[task]
            self._pool.put_nowait(conn)

    async def table_exists(self, table_name: str) -> bool:
        """테이블 존재 여부 확인"""
        result = await self.fetchone(
            "SELECT name FROM sqlite_master WHERE type='table' AND name=?",
            (table_name,),
        )
        return result is not None

    # -------------------------------------------------------------------------
    # 컨텍스트 매니저
    # -------------------------------------------------------------------------

    async def __aenter__(self) -> "SQLiteAdapter":
        await self.connect()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()


async def init_schema(adapter: SQLiteAdapter) -> None:
    """스키마 초기화 (테이블 생성)

    Args:
        adapter: 연결된 SQLiteAdapter
    """
    # owners (계정 소유자)
    await adapter.execute("""
        CREATE TABLE IF NOT EXISTS owners (
            owner_id         TEXT PRIMARY KEY,
            email            TEXT UNIQUE,
            display_name     TEXT,
            created_at       TEXT NOT NULL
        )
    """)

    # transactions (입금/출금/환전 거래)
    await adapter.execute("""
        CREATE TABLE IF NOT EXISTS transactions (
            id                 INTEGER PRIMARY KEY AUTOINCREMENT,
            owner_id           TEXT NOT NULL,
            kind               TEXT NOT NULL
                               CHECK (kind IN ('deposit', 'withdrawal', 'exchange')),
            currency           TEXT NOT NULL,
            amount             TEXT NOT NULL,
            status             TEXT NOT NULL
                               CHECK (status IN ('pending', 'completed', 'failed')),

            external_reference TEXT,
            counterparty_to    TEXT,
            counterparty_from  TEXT,
            network            TEXT,

            balance_applied    INTEGER NOT NULL DEFAULT 0,

            created_at         TEXT NOT NULL,
            resolved_at        TEXT
        )
    """)

    # balances (소유자/통화별 잔고)
    await adapter.execute("""
        CREATE TABLE IF NOT EXISTS balances (
            id               INTEGER PRIMARY KEY AUTOINCREMENT,
            owner_id         TEXT NOT NULL,
            currency         TEXT NOT NULL,
            available        TEXT NOT NULL DEFAULT '0',
            locked           TEXT NOT NULL DEFAULT '0',
            linked_address   TEXT,
            version          INTEGER NOT NULL DEFAULT 1,
            updated_at       TEXT NOT NULL,

            UNIQUE(owner_id, currency)
        )
    """)

    # 인덱스 생성
    await adapter.execute("""
        CREATE INDEX IF NOT EXISTS ix_transactions_owner
        ON transactions(owner_id)
    """)

    await adapter.execute("""
        CREATE INDEX IF NOT EXISTS ix_transactions_status
        ON transactions(status)
    """)

    await adapter.execute("""
        CREATE INDEX IF NOT EXISTS ix_transactions_created_at
        ON transactions(created_at)
    """)

    await adapter.commit()

    logger.info("스키마 초기화 완료")
