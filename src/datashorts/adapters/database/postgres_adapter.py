"""사용자 Postgres 데이터베이스 실행 어댑터."""

from typing import Any

import psycopg2
from psycopg2.extras import RealDictCursor

from datashorts.core.config import Settings
from datashorts.core.logging import get_logger
from datashorts.core.models import ExecutionResult

logger = get_logger(__name__)


class PostgresAdapter:
    """연결 ID 단위로 사용자 Postgres 데이터베이스에 SQL을 실행하는 어댑터.

    연결마다 autocommit 세션 하나를 캐시하므로, 같은 연결에 대해 보낸
    BEGIN / COMMIT / ROLLBACK 문이 같은 세션에서 실행된다.
    """

    def __init__(self, settings: Settings, metadata_store: Any) -> None:
        """어댑터 초기화.

        Args:
            settings: 애플리케이션 설정
            metadata_store: 연결 정보를 조회할 메타데이터 저장소
        """
        self._settings = settings
        self._metadata_store = metadata_store
        self._connections: dict[str, Any] = {}

    def connect(self, connection_id: str) -> Any:
        """연결 ID에 해당하는 데이터베이스 세션을 반환 (없으면 생성).

        Args:
            connection_id: 연결 ID

        Returns:
            psycopg2 연결 객체
        """
        connection = self._connections.get(connection_id)
        if connection is not None and not connection.closed:
            return connection

        record = self._metadata_store.get_connection(connection_id)
        if record is None:
            raise RuntimeError("Connection not found")
        if not record.postgres_url:
            raise RuntimeError("PostgreSQL connection URL is missing")

        logger.info("연결 %s에 대한 새 세션 생성", connection_id)
        connection = psycopg2.connect(
            with_ssl_mode(record.postgres_url),
            connect_timeout=self._settings.connect_timeout_seconds,
            options=f"-c statement_timeout={self._settings.statement_timeout_ms}",
        )
        connection.autocommit = True
        self._connections[connection_id] = connection
        return connection

    def execute_sql(self, connection_id: str, sql: str) -> ExecutionResult:
        """SQL을 실행하고 결과를 반환.

        SQL 오류는 예외 대신 success=False 결과로 반환한다.

        Args:
            connection_id: 연결 ID
            sql: 실행할 SQL

        Returns:
            ExecutionResult 객체
        """
        try:
            connection = self.connect(connection_id)
            with connection.cursor(cursor_factory=RealDictCursor) as cursor:
                cursor.execute(sql)
                rows = [dict(row) for row in cursor.fetchall()] if cursor.description else []
                row_count = cursor.rowcount if cursor.rowcount >= 0 else len(rows)
            return ExecutionResult(success=True, rows=rows, row_count=row_count)
        except (psycopg2.Error, RuntimeError, ValueError) as e:
            logger.error("SQL 실행 실패 (연결 %s): %s", connection_id, e)
            return ExecutionResult(success=False, error=str(e).strip())

    def close(self) -> None:
        """캐시된 모든 세션을 닫음."""
        for connection in self._connections.values():
            if not connection.closed:
                connection.close()
        self._connections.clear()


def with_ssl_mode(url: str) -> str:
    """sslmode 파라미터가 없으면 prefer로 추가.

    Args:
        url: Postgres 연결 URL

    Returns:
        sslmode가 포함된 URL
    """
    if "sslmode=" in url:
        return url
    separator = "&" if "?" in url else "?"
    return f"{url}{separator}sslmode=prefer"
