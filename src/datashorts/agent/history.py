"""쿼리 이력 기록기."""

from dataclasses import asdict
from typing import Any, Optional

from datashorts.agent.query_analyzer import determine_query_type
from datashorts.core.logging import get_logger
from datashorts.core.models import (
    HistoryOutcome,
    OptimizationSuggestion,
    QueryData,
    QueryHistoryEntry,
    ValidationResult,
)

logger = get_logger(__name__)

# 스키마 조회용 내부 쿼리는 이력에 남기지 않음
SCHEMA_DISCOVERY_MARKERS = ("INFORMATION_SCHEMA", "SHOW TABLES", "DESCRIBE ")


def is_schema_discovery_query(sql: str) -> bool:
    upper_sql = sql.upper()
    return any(marker in upper_sql for marker in SCHEMA_DISCOVERY_MARKERS)


class QueryHistoryRecorder:
    """쿼리 실행 결과를 query_history에 기록하는 서비스.

    저장 실패는 예외로 전파하지 않고 HistoryOutcome으로 반환한다.
    """

    def __init__(self, metadata_store: Any, max_result_rows: int = 50) -> None:
        """기록기 초기화.

        Args:
            metadata_store: 메타데이터 저장소
            max_result_rows: 이력에 저장할 최대 결과 행 수
        """
        self._metadata_store = metadata_store
        self._max_result_rows = max_result_rows

    def record(
        self,
        connection_id: str,
        sql: str,
        success: bool,
        execution_time_ms: Optional[int] = None,
        data: Optional[QueryData] = None,
        error: Optional[str] = None,
        validation: Optional[ValidationResult] = None,
        optimization: Optional[OptimizationSuggestion] = None,
        validation_enabled: bool = True,
        optimization_enabled: bool = False,
        force_execution: bool = False,
        chat_id: Optional[int] = None,
    ) -> HistoryOutcome:
        """쿼리 실행 이력을 저장.

        Args:
            connection_id: 연결 ID
            sql: 실행한 SQL
            success: 실행 성공 여부
            execution_time_ms: 실행 시간 (ms)
            data: 결과 데이터 (성공 시)
            error: 에러 메시지 (실패 시)
            validation: 검증 결과
            optimization: 최적화 제안
            validation_enabled: 검증 옵션 사용 여부
            optimization_enabled: 최적화 옵션 사용 여부
            force_execution: 강제 실행 여부
            chat_id: 채팅 ID

        Returns:
            HistoryOutcome 객체
        """
        if is_schema_discovery_query(sql):
            logger.debug("스키마 조회 쿼리는 이력에 저장하지 않음")
            return HistoryOutcome(skipped=True)

        try:
            entry = QueryHistoryEntry(
                connection_id=int(connection_id),
                sql_query=sql,
                success=success,
                query_type=determine_query_type(sql),
                chat_id=chat_id,
                execution_time_ms=execution_time_ms,
                row_count=data.row_count if data else None,
                error_message=error,
                result_data=data.rows[: self._max_result_rows] if data else None,
                result_columns=data.columns if data else None,
                validation_result=asdict(validation) if validation else None,
                optimization_suggestion=asdict(optimization) if optimization else None,
                validation_enabled=validation_enabled,
                optimization_enabled=optimization_enabled,
                force_execution=force_execution,
            )
            entry_id = self._metadata_store.save_query_history(entry)
        except Exception as e:
            logger.error("쿼리 이력 저장 실패: %s", e)
            return HistoryOutcome(saved=False, error=str(e))

        logger.debug("쿼리 이력 저장 (id=%s)", entry_id)
        return HistoryOutcome(saved=True, entry_id=entry_id)
