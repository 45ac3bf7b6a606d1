"""
SQLite 어댑터 테스트

SQLiteAdapter 및 관련 함수 테스트.
"""

import asyncio
from pathlib import Path

import pytest
import pytest_asyncio

from adapters.db.sqlite_adapter import SQLiteAdapter, create_connection, init_schema


class TestCreateConnection:
    """create_connection 테스트"""

    @pytest.mark.asyncio
    async def test_create_connection(self, tmp_path: Path) -> None:
        """연결 생성"""
        db_path = tmp_path / "test.db"

        conn = await create_connection(db_path)

        # WAL 모드 확인
        cursor = await conn.execute("PRAGMA journal_mode")
        row = await cursor.fetchone()
        assert row[0].upper() == "WAL"

        await conn.close()

    @pytest.mark.asyncio
    async def test_creates_parent_directory(self, tmp_path: Path) -> None:
        """부모 디렉토리 생성"""
        db_path = tmp_path / "subdir" / "test.db"

        conn = await create_connection(db_path)

        assert db_path.parent.exists()

        await conn.close()


class TestSQLiteAdapter:
    """SQLiteAdapter 테스트"""

    @pytest_asyncio.fixture
    async def adapter(self, tmp_path: Path) -> SQLiteAdapter:
        """어댑터 픽스처"""
        adapter = SQLiteAdapter(tmp_path / "test.db")
        await adapter.connect()
        await adapter.execute("CREATE TABLE items (id INTEGER PRIMARY KEY, name TEXT)")
        await adapter.commit()
        yield adapter
        await adapter.close()

    @pytest.mark.asyncio
    async def test_connect_and_close(self, tmp_path: Path) -> None:
        """연결 및 종료"""
        adapter = SQLiteAdapter(tmp_path / "test.db")

        assert adapter.is_connected is False

        await adapter.connect()
        assert adapter.is_connected is True

        await adapter.close()
        assert adapter.is_connected is False

    @pytest.mark.asyncio
    async def test_not_connected(self, tmp_path: Path) -> None:
        adapter = SQLiteAdapter(tmp_path / "test.db")

        with pytest.raises(RuntimeError):
            await adapter.execute("SELECT 1")

    @pytest.mark.asyncio
    async def test_fetch_dict(self, adapter: SQLiteAdapter) -> None:
        """컬럼명 dict 조회"""
        async with adapter.transaction():
            await adapter.execute("INSERT INTO items (name) VALUES (?)", ("테스트",))

        row = await adapter.fetchone_dict("SELECT * FROM items")
        rows = await adapter.fetchall_dict("SELECT * FROM items")
        missing = await adapter.fetchone_dict("SELECT * FROM items WHERE id = 99")

        assert row == {"id": 1, "name": "테스트"}
        assert rows == [{"id": 1, "name": "테스트"}]
        assert missing is None
        assert await adapter.fetchall_dict("SELECT * FROM items WHERE id = 99") == []

    @pytest.mark.asyncio
    async def test_transaction_commit(self, adapter: SQLiteAdapter) -> None:
        """트랜잭션 커밋"""
        async with adapter.transaction() as conn:
            await conn.execute("INSERT INTO items (name) VALUES ('a')")
            await conn.execute("INSERT INTO items (name) VALUES ('b')")

        rows = await adapter.fetchall("SELECT name FROM items")
        assert len(rows) == 2

    @pytest.mark.asyncio
    async def test_transaction_rollback(self, adapter: SQLiteAdapter) -> None:
        """트랜잭션 롤백"""
        with pytest.raises(ValueError):
            async with adapter.transaction() as conn:
                await conn.execute("INSERT INTO items (name) VALUES ('a')")
                raise ValueError("의도적 에러")

        rows = await adapter.fetchall("SELECT name FROM items")
        assert rows == []
        assert adapter.in_transaction is False

    @pytest.mark.asyncio
    async def test_nested_transaction_joins_outer(self, adapter: SQLiteAdapter) -> None:
        """중첩 트랜잭션은 바깥 트랜잭션에 합류"""
        with pytest.raises(ValueError):
            async with adapter.transaction():
                await adapter.execute("INSERT INTO items (name) VALUES ('outer')")
                async with adapter.transaction():
                    assert adapter.in_transaction is True
                    await adapter.execute("INSERT INTO items (name) VALUES ('inner')")
                raise ValueError("바깥에서 실패")

        # 안쪽 쓰기도 함께 롤백
        rows = await adapter.fetchall("SELECT name FROM items")
        assert rows == []

    @pytest.mark.asyncio
    async def test_transactions_serialized_across_tasks(self, adapter: SQLiteAdapter) -> None:
        """다른 태스크의 트랜잭션은 순서대로 실행"""
        order: list[str] = []

        async def writer(name: str) -> None:
            async with adapter.transaction():
                order.append(f"{name}:begin")
                await asyncio.sleep(0.01)
                await adapter.execute("INSERT INTO items (name) VALUES (?)", (name,))
                order.append(f"{name}:end")

        await asyncio.gather(writer("a"), writer("b"))

        assert order in (
            ["a:begin", "a:end", "b:begin", "b:end"],
            ["b:begin", "b:end", "a:begin", "a:end"],
        )
        rows = await adapter.fetchall("SELECT name FROM items")
        assert len(rows) == 2

    @pytest.mark.asyncio
    async def test_uncommitted_writes_hidden_from_other_tasks(
        self, adapter: SQLiteAdapter
    ) -> None:
        """다른 태스크의 미커밋 쓰기는 보이지 않고, 자기 트랜잭션 안에서는 보임"""
        inserted = asyncio.Event()
        release = asyncio.Event()
        seen_inside: list[tuple] = []

        async def writer() -> None:
            async with adapter.transaction():
                await adapter.execute("INSERT INTO items (name) VALUES ('draft')")
                seen_inside.extend(await adapter.fetchall("SELECT name FROM items"))
                inserted.set()
                await release.wait()

        task = asyncio.create_task(writer())
        await inserted.wait()

        seen_outside = await adapter.fetchall("SELECT name FROM items")
        release.set()
        await task

        assert seen_outside == []
        assert seen_inside == [("draft",)]
        assert await adapter.fetchall("SELECT name FROM items") == [("draft",)]

    @pytest.mark.asyncio
    async def test_transaction_connections_reused(self, tmp_path: Path) -> None:
        """트랜잭션 연결은 풀 크기를 넘지 않고 재사용"""
        async with SQLiteAdapter(tmp_path / "pool.db", pool_size=1) as adapter:
            used = []
            for _ in range(3):
                async with adapter.transaction() as conn:
                    used.append(conn)

            assert used[0] is used[1] is used[2]

    def test_invalid_pool_size(self, tmp_path: Path) -> None:
        with pytest.raises(ValueError):
            SQLiteAdapter(tmp_path / "test.db", pool_size=0)

    @pytest.mark.asyncio
    async def test_table_exists(self, adapter: SQLiteAdapter) -> None:
        """테이블 존재 확인"""
        assert await adapter.table_exists("nonexistent") is False
        assert await adapter.table_exists("items") is True

    @pytest.mark.asyncio
    async def test_context_manager(self, tmp_path: Path) -> None:
        """컨텍스트 매니저"""
        async with SQLiteAdapter(tmp_path / "ctx_test.db") as adapter:
            assert adapter.is_connected is True

        # 컨텍스트 종료 후 연결 해제 확인
        assert adapter.is_connected is False


class TestInitSchema:
    """init_schema 테스트"""

    @pytest.mark.asyncio
    async def test_creates_tables(self, tmp_path: Path) -> None:
        """스키마 초기화 - 테이블 생성"""
        async with SQLiteAdapter(tmp_path / "schema_test.db") as adapter:
            await init_schema(adapter)

            for table in ("owners", "transactions", "balances"):
                assert await adapter.table_exists(table) is True

    @pytest.mark.asyncio
    async def test_idempotent(self, tmp_path: Path) -> None:
        """여러 번 호출해도 안전"""
        async with SQLiteAdapter(tmp_path / "schema_test.db") as adapter:
            await init_schema(adapter)
            await init_schema(adapter)

            assert await adapter.table_exists("transactions") is True

    @pytest.mark.asyncio
    async def test_status_check_constraint(self, tmp_path: Path) -> None:
        """알 수 없는 상태는 DB에서 거부"""
        import sqlite3

        async with SQLiteAdapter(tmp_path / "schema_test.db") as adapter:
            await init_schema(adapter)

            with pytest.raises(sqlite3.IntegrityError):
                async with adapter.transaction():
                    await adapter.execute(
                        """
                        INSERT INTO transactions (owner_id, kind, currency, amount, status, created_at)
                        VALUES ('a', 'deposit', 'BTC', '1', 'cancelled', '2024-01-01T00:00:00')
                        """
                    )
