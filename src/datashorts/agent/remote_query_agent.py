"""원격 쿼리 에이전트 - 검증, 실행, 스키마 동기화, 이력 기록을 조율."""

import time
from typing import Any, Optional

from datashorts.agent.query_advisor import build_schema_text
from datashorts.agent.query_analyzer import analyze_query_metadata
from datashorts.core.logging import get_logger
from datashorts.core.models import (
    BatchOptions,
    BatchQueryResult,
    ExecutionResult,
    QueryData,
    QueryOptions,
    RemoteQueryResult,
    SchemaUpdateReport,
    TableSchema,
)
from datashorts.sync.change_detector import detect_schema_changes

logger = get_logger(__name__)


class RemoteQueryAgent:
    """사용자 SQL을 실행하고 그 결과로 스키마 임베딩을 동기화하는 에이전트.

    처리 순서:
    1. 쿼리 메타데이터 분석
    2. 스키마 컨텍스트 검색
    3. LLM 검증 (high 위험도는 force_execution 없이는 실행하지 않음)
    4. LLM 최적화 제안
    5. SQL 실행
    6. 스키마 변경 감지 시 스마트 동기화
    7. 이력 저장

    스키마 동기화와 이력 저장의 실패는 쿼리 결과를 실패로 만들지 않는다.
    """

    def __init__(
        self,
        executor: Any,
        synchronizer: Any,
        retriever: Any,
        advisor: Any,
        history_recorder: Any,
    ) -> None:
        """에이전트 초기화.

        Args:
            executor: execute_sql(connection_id, sql)을 제공하는 실행기
            synchronizer: 스키마 임베딩 동기화기
            retriever: 스키마 컨텍스트 검색기
            advisor: LLM 쿼리 어드바이저
            history_recorder: 쿼리 이력 기록기
        """
        self._executor = executor
        self._synchronizer = synchronizer
        self._retriever = retriever
        self._advisor = advisor
        self._history_recorder = history_recorder

    def remote_query(
        self,
        sql: str,
        connection_id: str,
        schema: Optional[list[TableSchema]] = None,
        options: Optional[QueryOptions] = None,
    ) -> RemoteQueryResult:
        """단일 SQL 문을 실행.

        Args:
            sql: 실행할 SQL
            connection_id: 연결 ID
            schema: 호출자가 알고 있는 테이블 스키마
            options: 실행 옵션

        Returns:
            RemoteQueryResult 객체
        """
        options = options or QueryOptions()
        schema = schema or []

        metadata = analyze_query_metadata(sql)
        logger.info(
            "원격 쿼리 실행 (연결 %s, 타입 %s, 테이블 %s)",
            connection_id,
            metadata.query_type,
            metadata.affected_tables,
        )

        context = self._retriever.retrieve(connection_id, sql)
        schema_text = build_schema_text(schema, context)

        validation = None
        if options.validate_query and schema_text:
            validation = self._advisor.validate(sql, schema_text)
            if validation.is_high_risk and not options.force_execution:
                logger.warning("high 위험도 쿼리 실행 차단: %s", validation.warnings)
                return RemoteQueryResult(
                    success=False,
                    error="Query blocked due to high risk. Use force_execution to override.",
                    validation=validation,
                    metadata=metadata,
                )

        optimization = None
        if options.optimize_query:
            optimization = self._advisor.optimize(sql, schema_text)

        started = time.perf_counter()
        execution = self._execute(connection_id, sql)
        execution_time_ms = int((time.perf_counter() - started) * 1000)

        if execution.success:
            result = RemoteQueryResult(
                success=True,
                data=QueryData(
                    rows=execution.rows,
                    row_count=execution.row_count,
                    columns=list(execution.rows[0].keys()) if execution.rows else [],
                    execution_time_ms=execution_time_ms,
                ),
                validation=validation,
                optimization=optimization,
                metadata=metadata,
            )
            if detect_schema_changes(sql):
                result.schema_update = self._sync_schema(connection_id, sql)
        else:
            result = RemoteQueryResult(
                success=False,
                error=execution.error or "Query execution failed",
                validation=validation,
                optimization=optimization,
                metadata=metadata,
            )

        if options.save_to_history:
            result.history = self._history_recorder.record(
                connection_id,
                sql,
                success=result.success,
                execution_time_ms=execution_time_ms,
                data=result.data,
                error=result.error,
                validation=validation,
                optimization=optimization,
                validation_enabled=options.validate_query,
                optimization_enabled=options.optimize_query,
                force_execution=options.force_execution,
                chat_id=options.chat_id,
            )

        return result

    def batch_query(
        self,
        queries: list[str],
        connection_id: str,
        schema: Optional[list[TableSchema]] = None,
        options: Optional[BatchOptions] = None,
    ) -> BatchQueryResult:
        """여러 SQL 문을 순서대로 실행.

        transactional 옵션은 SQL 실행만 BEGIN / COMMIT / ROLLBACK으로 감싼다.
        이미 반영된 스키마 임베딩 동기화는 롤백되지 않는다.

        Args:
            queries: 실행할 SQL 리스트
            connection_id: 연결 ID
            schema: 호출자가 알고 있는 테이블 스키마
            options: 배치 옵션

        Returns:
            BatchQueryResult 객체
        """
        options = options or BatchOptions()
        query_options = QueryOptions(
            validate_query=options.validate_queries,
            optimize_query=False,
            save_to_history=options.save_to_history,
            chat_id=options.chat_id,
        )
        batch = BatchQueryResult(success=False)
        started = time.perf_counter()
        in_transaction = False

        logger.info("배치 쿼리 %d건 실행 (연결 %s)", len(queries), connection_id)

        try:
            if options.transactional:
                begin = self._executor.execute_sql(connection_id, "BEGIN")
                if not begin.success:
                    raise RuntimeError(begin.error or "Failed to begin transaction")
                in_transaction = True

            for index, raw_query in enumerate(queries):
                query = raw_query.strip()
                if not query:
                    continue

                logger.info("쿼리 %d/%d 실행: %s", index + 1, len(queries), query[:100])
                result = self.remote_query(query, connection_id, schema, query_options)
                batch.results.append(result)

                if result.schema_update.updated:
                    batch.schema_update.accumulate(index, query, result.schema_update)

                if result.success:
                    batch.success_count += 1
                    continue

                batch.error_count += 1
                if options.stop_on_error:
                    logger.warning("쿼리 %d 실패로 배치 중단", index + 1)
                    break

            if in_transaction:
                if batch.error_count == 0:
                    self._executor.execute_sql(connection_id, "COMMIT")
                else:
                    self._rollback(connection_id, batch)
                in_transaction = False

        except Exception as e:
            logger.exception("배치 쿼리 실행 실패: %s", e)
            if in_transaction:
                self._rollback(connection_id, batch)
            batch.error_count += 1
            batch.error = str(e)

        batch.success = batch.error_count == 0
        batch.total_execution_time_ms = int((time.perf_counter() - started) * 1000)
        return batch

    def explain_query(self, sql: str, schema: Optional[list[TableSchema]] = None) -> str:
        """쿼리를 자연어로 설명.

        Args:
            sql: 설명할 SQL
            schema: 참고할 테이블 스키마

        Returns:
            설명 텍스트
        """
        return self._advisor.explain(sql, build_schema_text(schema or [], []))

    def _execute(self, connection_id: str, sql: str) -> ExecutionResult:
        try:
            return self._executor.execute_sql(connection_id, sql)
        except Exception as e:
            logger.error("SQL 실행 중 예외 발생: %s", e)
            return ExecutionResult(success=False, error=str(e) or "Query execution failed")

    def _sync_schema(self, connection_id: str, sql: str) -> SchemaUpdateReport:
        logger.info("스키마 변경 감지, 임베딩 동기화 시작")
        try:
            update = self._synchronizer.smart_schema_update(connection_id, sql)
        except Exception as e:
            logger.error("스키마 동기화 실패: %s", e)
            return SchemaUpdateReport()

        if not update.success:
            logger.error("스키마 동기화 실패: %s", update.error)
        return SchemaUpdateReport.from_result(update)

    def _rollback(self, connection_id: str, batch: BatchQueryResult) -> None:
        rollback = self._execute(connection_id, "ROLLBACK")
        if not rollback.success:
            logger.error("트랜잭션 롤백 실패: %s", rollback.error)
        if batch.schema_update.updated:
            # 임베딩 동기화는 롤백 대상이 아님
            logger.warning(
                "트랜잭션이 롤백되었지만 스키마 임베딩 %d건의 갱신은 유지됨",
                len(batch.schema_update.update_details),
            )
