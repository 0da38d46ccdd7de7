"""단위 테스트 공용 fixture - 인메모리 벡터 저장소와 카탈로그."""

import re
from typing import Any
from unittest.mock import MagicMock

import pytest

from datashorts.core.models import Column, ConnectionRecord, ExecutionResult

FILTER_CLAUSE_PATTERN = re.compile(r'(\w+) == "((?:[^"\\]|\\.)*)"')
TABLE_FILTER_PATTERN = re.compile(r"c\.table_name = '((?:[^']|'')*)'")


def _matches(row: dict[str, Any], expr: str) -> bool:
    for name, value in FILTER_CLAUSE_PATTERN.findall(expr):
        if row.get(name) != value.replace('\\"', '"').replace("\\\\", "\\"):
            return False
    return True


class InMemoryMilvus:
    """MilvusAdapter와 같은 인터페이스를 가진 인메모리 저장소."""

    def __init__(self) -> None:
        self.rows: dict[str, dict[str, Any]] = {}
        self.upsert_calls = 0
        self.delete_calls = 0
        self.failing_tables: set[str] = set()

    def ensure_collection(self, collection_name: str, dimension: int) -> None:
        pass

    def upsert_vectors(self, collection_name: str, vectors: list[dict[str, Any]]) -> int:
        self.upsert_calls += 1
        for vector in vectors:
            self.rows[vector["id"]] = dict(vector)
        return len(vectors)

    def query_by_expr(
        self,
        collection_name: str,
        expr: str,
        output_fields: list[str] | None = None,
        batch_size: int = 500,
    ) -> list[dict[str, Any]]:
        return [
            {field: row.get(field) for field in (output_fields or row.keys())}
            for row in self.rows.values()
            if _matches(row, expr)
        ]

    def search(
        self,
        collection_name: str,
        query_vector: list[float],
        limit: int = 10,
        output_fields: list[str] | None = None,
        expr: str | None = None,
    ) -> list[dict[str, Any]]:
        hits = [row for row in self.rows.values() if _matches(row, expr or "")]
        return [
            {"id": row["id"], "distance": 0.5, **{f: row.get(f) for f in output_fields or []}}
            for row in hits[:limit]
        ]

    def delete_by_expr(self, collection_name: str, expr: str) -> int:
        self.delete_calls += 1
        for table_name in self.failing_tables:
            if f'table_name == "{table_name}"' in expr:
                raise RuntimeError(f"delete failed for {table_name}")
        doomed = [key for key, row in self.rows.items() if _matches(row, expr)]
        for key in doomed:
            del self.rows[key]
        return len(doomed)

    def tables(self, connection_id: str = "1") -> set[str]:
        return {
            row["table_name"]
            for row in self.rows.values()
            if row["connection_id"] == connection_id
        }


class FakeEmbeddingService:
    """고정 벡터를 돌려주는 임베딩 서비스."""

    dimension = 4

    def __init__(self) -> None:
        self.batch_calls = 0

    def embed(self, text: str) -> list[float]:
        return [0.1, 0.2, 0.3, 0.4]

    def embed_batch(self, texts: list[str]) -> list[list[float]]:
        self.batch_calls += 1
        return [[0.1, 0.2, 0.3, 0.4] for _ in texts]


class FakeCatalog:
    """information_schema 쿼리에 응답하는 SQL 실행기."""

    def __init__(self, tables: dict[str, list[Column]] | None = None) -> None:
        self.tables: dict[str, list[Column]] = dict(tables or {})
        self.fail = False

    def execute_sql(self, connection_id: str, sql: str) -> ExecutionResult:
        if self.fail:
            return ExecutionResult(success=False, error="catalog unavailable")

        table_filter = TABLE_FILTER_PATTERN.search(sql)
        if table_filter:
            table_name = table_filter.group(1).replace("''", "'")
            rows = [_column_row(c) for c in self.tables.get(table_name, [])]
            return ExecutionResult(success=True, rows=rows, row_count=len(rows))

        rows = []
        for table_name in sorted(self.tables):
            columns = self.tables[table_name]
            if not columns:
                rows.append({"table_name": table_name, "column_name": None})
            for column in columns:
                rows.append({"table_name": table_name, **_column_row(column)})
        return ExecutionResult(success=True, rows=rows, row_count=len(rows))


def _column_row(column: Column) -> dict[str, Any]:
    return {
        "column_name": column.column_name,
        "data_type": column.data_type,
        "is_nullable": column.is_nullable,
        "column_default": column.column_default,
    }


@pytest.fixture
def in_memory_milvus() -> InMemoryMilvus:
    """인메모리 벡터 저장소 fixture."""
    return InMemoryMilvus()


@pytest.fixture
def fake_embedding_service() -> FakeEmbeddingService:
    """임베딩 서비스 fixture."""
    return FakeEmbeddingService()


@pytest.fixture
def fake_catalog() -> FakeCatalog:
    """users, products 테이블을 가진 카탈로그 fixture."""
    return FakeCatalog(
        {
            "users": [
                Column("id", "integer", "NO", "nextval('users_id_seq'::regclass)"),
                Column("email", "character varying"),
            ],
            "products": [
                Column("id", "integer", "NO"),
                Column("price", "numeric"),
            ],
        }
    )


@pytest.fixture
def metadata_store() -> MagicMock:
    """연결 1을 돌려주는 메타데이터 저장소 Mock."""
    store = MagicMock()
    store.get_connection.side_effect = lambda connection_id: (
        ConnectionRecord(
            id=1,
            connection_name="shop",
            db_type="postgres",
            postgres_url="postgresql://u:p@db:5432/shop",
        )
        if str(connection_id) == "1"
        else None
    )
    return store
