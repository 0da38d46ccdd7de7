"""스키마 리더 - 사용자 데이터베이스 카탈로그에서 현재 스키마를 조회."""

from typing import Any

from datashorts.core.logging import get_logger
from datashorts.core.models import Column, TableSchema

logger = get_logger(__name__)

CURRENT_SCHEMA_QUERY = """
    SELECT
        t.table_name,
        c.column_name,
        c.data_type,
        c.is_nullable,
        c.column_default
    FROM information_schema.tables t
    LEFT JOIN information_schema.columns c
        ON t.table_name = c.table_name AND t.table_schema = c.table_schema
    WHERE t.table_schema = 'public'
    ORDER BY t.table_name, c.ordinal_position
"""

TABLE_COLUMNS_QUERY = """
    SELECT
        c.column_name,
        c.data_type,
        c.is_nullable,
        c.column_default
    FROM information_schema.columns c
    WHERE c.table_name = '{table_name}'
    AND c.table_schema = 'public'
    ORDER BY c.ordinal_position
"""


class SchemaFetchError(Exception):
    """카탈로그 조회 실패."""

    pass


class SchemaReader:
    """information_schema에서 스키마 스냅샷을 만드는 서비스."""

    def __init__(self, executor: Any) -> None:
        """스키마 리더 초기화.

        Args:
            executor: execute_sql(connection_id, sql)을 제공하는 SQL 실행기
        """
        self._executor = executor

    def get_current_schema(self, connection_id: str) -> list[TableSchema]:
        """public 스키마의 모든 테이블과 컬럼을 조회.

        Args:
            connection_id: 연결 ID

        Returns:
            테이블 이름 순으로 정렬된 TableSchema 리스트

        Raises:
            SchemaFetchError: 카탈로그 쿼리가 실패한 경우
        """
        result = self._executor.execute_sql(connection_id, CURRENT_SCHEMA_QUERY)
        if not result.success:
            logger.error("현재 스키마 조회 실패: %s", result.error)
            raise SchemaFetchError("Failed to fetch database schema")

        tables: dict[str, TableSchema] = {}
        for row in result.rows:
            table_name = row["table_name"]
            table = tables.setdefault(table_name, TableSchema(table_name=table_name))
            # 컬럼이 없는 테이블은 LEFT JOIN으로 column_name이 NULL인 행을 만든다
            if row.get("column_name"):
                table.columns.append(_row_to_column(row))

        # 컬럼이 없는 테이블은 임베딩할 내용이 없으므로 제외
        return [table for table in tables.values() if table.columns]

    def get_table_columns(self, connection_id: str, table_name: str) -> list[Column]:
        """단일 테이블의 컬럼 목록을 조회.

        Args:
            connection_id: 연결 ID
            table_name: 테이블 이름

        Returns:
            Column 리스트 (테이블이 없으면 빈 리스트)

        Raises:
            SchemaFetchError: 카탈로그 쿼리가 실패한 경우
        """
        query = TABLE_COLUMNS_QUERY.format(table_name=table_name.replace("'", "''"))
        result = self._executor.execute_sql(connection_id, query)
        if not result.success:
            raise SchemaFetchError(f"Failed to fetch columns for table {table_name}")

        return [_row_to_column(row) for row in result.rows]


def _row_to_column(row: dict[str, Any]) -> Column:
    return Column(
        column_name=row["column_name"],
        data_type=row["data_type"],
        is_nullable=row.get("is_nullable") or "YES",
        column_default=row.get("column_default"),
    )
