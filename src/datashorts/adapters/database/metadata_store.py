"""메타데이터 저장소 어댑터 - db_connections / query_history 테이블."""

import json
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from typing import Any, Iterator, Optional

import psycopg2
from psycopg2.extras import Json, RealDictCursor

from datashorts.core.config import Settings
from datashorts.core.models import (
    ConnectionRecord,
    QueryHistoryEntry,
    QueryStatistics,
    TableSchema,
)

METADATA_DDL = """
CREATE TABLE IF NOT EXISTS db_connections (
    id SERIAL PRIMARY KEY,
    connection_name VARCHAR(256) NOT NULL,
    postgres_url TEXT,
    mongo_url TEXT,
    db_type VARCHAR(50) NOT NULL,
    table_schema JSON NOT NULL DEFAULT '[]',
    pipeline VARCHAR(50) NOT NULL DEFAULT 'pipeline2',
    created_at TIMESTAMP DEFAULT now(),
    updated_at TIMESTAMP DEFAULT now()
);

CREATE TABLE IF NOT EXISTS query_history (
    id SERIAL PRIMARY KEY,
    connection_id INTEGER NOT NULL REFERENCES db_connections(id),
    chat_id INTEGER,
    sql_query TEXT NOT NULL,
    query_type VARCHAR(50),
    success BOOLEAN NOT NULL,
    execution_time INTEGER,
    row_count INTEGER,
    error_message TEXT,
    result_data JSON,
    result_columns JSON,
    generated_by VARCHAR(50) DEFAULT 'manual',
    validation_enabled BOOLEAN DEFAULT TRUE,
    optimization_enabled BOOLEAN DEFAULT FALSE,
    force_execution BOOLEAN DEFAULT FALSE,
    validation_result JSON,
    optimization_suggestion JSON,
    created_at TIMESTAMP DEFAULT now(),
    updated_at TIMESTAMP DEFAULT now()
);
"""


class MetadataStore:
    """애플리케이션 메타데이터(Postgres) 저장소."""

    def __init__(self, settings: Settings) -> None:
        """저장소 초기화.

        Args:
            settings: 애플리케이션 설정
        """
        self._settings = settings

    @contextmanager
    def _cursor(self) -> Iterator[Any]:
        """트랜잭션 단위 커서를 제공 (정상 종료 시 커밋)."""
        connection = psycopg2.connect(self._settings.metadata_database_url)
        try:
            with connection:
                with connection.cursor(cursor_factory=RealDictCursor) as cursor:
                    yield cursor
        finally:
            connection.close()

    def ensure_schema(self) -> None:
        """메타데이터 테이블이 없으면 생성."""
        with self._cursor() as cursor:
            cursor.execute(METADATA_DDL)

    def get_connection(self, connection_id: str) -> Optional[ConnectionRecord]:
        """연결 정보를 조회.

        Args:
            connection_id: 연결 ID

        Returns:
            ConnectionRecord 또는 None
        """
        with self._cursor() as cursor:
            cursor.execute(
                """
                SELECT id, connection_name, db_type, postgres_url, mongo_url, table_schema
                FROM db_connections
                WHERE id = %s
                """,
                (int(connection_id),),
            )
            row = cursor.fetchone()

        if row is None:
            return None

        return ConnectionRecord(
            id=row["id"],
            connection_name=row["connection_name"],
            db_type=row["db_type"],
            postgres_url=row.get("postgres_url"),
            mongo_url=row.get("mongo_url"),
            table_schema=row.get("table_schema"),
        )

    def update_table_schema(self, connection_id: str, tables: list[TableSchema]) -> None:
        """연결의 table_schema 캐시 컬럼을 현재 스냅샷으로 갱신.

        Args:
            connection_id: 연결 ID
            tables: 현재 스키마 스냅샷
        """
        with self._cursor() as cursor:
            cursor.execute(
                """
                UPDATE db_connections
                SET table_schema = %s, updated_at = now()
                WHERE id = %s
                """,
                (Json([t.to_dict() for t in tables]), int(connection_id)),
            )

    def save_query_history(self, entry: QueryHistoryEntry) -> int:
        """쿼리 실행 이력을 저장.

        Args:
            entry: 저장할 이력 항목

        Returns:
            생성된 이력 ID
        """
        with self._cursor() as cursor:
            cursor.execute(
                """
                INSERT INTO query_history (
                    connection_id, chat_id, sql_query, query_type, success,
                    execution_time, row_count, error_message, result_data,
                    result_columns, generated_by, validation_enabled,
                    optimization_enabled, force_execution, validation_result,
                    optimization_suggestion
                )
                VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
                RETURNING id
                """,
                (
                    entry.connection_id,
                    entry.chat_id,
                    entry.sql_query,
                    entry.query_type,
                    entry.success,
                    entry.execution_time_ms,
                    entry.row_count,
                    entry.error_message,
                    _json_or_none(entry.result_data),
                    _json_or_none(entry.result_columns),
                    entry.generated_by,
                    entry.validation_enabled,
                    entry.optimization_enabled,
                    entry.force_execution,
                    _json_or_none(entry.validation_result),
                    _json_or_none(entry.optimization_suggestion),
                ),
            )
            row = cursor.fetchone()
        return row["id"]

    def get_query_statistics(self, connection_id: str) -> QueryStatistics:
        """연결의 쿼리 실행 통계를 계산.

        Args:
            connection_id: 연결 ID

        Returns:
            QueryStatistics 객체
        """
        with self._cursor() as cursor:
            cursor.execute(
                """
                SELECT success, query_type, execution_time, row_count, created_at
                FROM query_history
                WHERE connection_id = %s
                """,
                (int(connection_id),),
            )
            rows = cursor.fetchall()

        return build_query_statistics(rows)


def build_query_statistics(
    rows: list[dict[str, Any]], now: Optional[datetime] = None
) -> QueryStatistics:
    """query_history 행 목록으로부터 통계를 계산.

    Args:
        rows: success, query_type, execution_time, row_count, created_at 키를 가진 행
        now: 기준 시각 (테스트용)

    Returns:
        QueryStatistics 객체
    """
    now = now or datetime.now(timezone.utc).replace(tzinfo=None)
    cutoff = now - timedelta(days=30)

    successful = [r for r in rows if r["success"]]
    timed = [r["execution_time"] for r in successful if r.get("execution_time") is not None]

    breakdown: dict[str, int] = {}
    for row in rows:
        query_type = row.get("query_type") or "UNKNOWN"
        breakdown[query_type] = breakdown.get(query_type, 0) + 1

    return QueryStatistics(
        total_queries=len(rows),
        successful_queries=len(successful),
        failed_queries=len(rows) - len(successful),
        average_execution_time_ms=round(sum(timed) / len(timed)) if timed else 0,
        total_rows_processed=sum(r.get("row_count") or 0 for r in rows),
        queries_last_30_days=sum(
            1 for r in rows if r.get("created_at") is not None and r["created_at"] > cutoff
        ),
        query_type_breakdown=breakdown,
        computed_at=now,
    )


def _json_or_none(value: Any) -> Optional[Json]:
    # 결과 행에는 datetime, Decimal 등이 섞여 있을 수 있음
    if value is None:
        return None
    return Json(value, dumps=lambda v: json.dumps(v, default=str))
