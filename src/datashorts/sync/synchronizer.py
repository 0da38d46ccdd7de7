"""스키마 임베딩 동기화기 - 증분 / 타깃 / 스마트 업데이트."""

from typing import Any

from datashorts.core.logging import get_logger
from datashorts.core.models import (
    VARIANTS_PER_TABLE,
    ChangeType,
    IncrementalUpdateResult,
    TableSchema,
    UpdateDetails,
)
from datashorts.sync.change_detector import detect_schema_change_type
from datashorts.sync.schema_differ import compare_schemas

logger = get_logger(__name__)

TARGETED_CHANGE_TYPES = (
    ChangeType.CREATE_TABLE,
    ChangeType.DROP_TABLE,
    ChangeType.ALTER_TABLE,
)


class SchemaSynchronizer:
    """라이브 카탈로그와 벡터 저장소의 스키마 임베딩을 맞추는 서비스.

    벡터 저장소의 메타데이터만 비교 기준으로 사용하며, db_connections의
    table_schema 컬럼은 결과를 기록만 하고 다시 읽지 않는다.
    """

    def __init__(
        self,
        metadata_store: Any,
        schema_reader: Any,
        embedding_reader: Any,
        schema_indexer: Any,
    ) -> None:
        """동기화기 초기화.

        Args:
            metadata_store: 연결 정보 / table_schema 캐시 저장소
            schema_reader: 라이브 카탈로그 리더
            embedding_reader: 임베딩 메타데이터 리더
            schema_indexer: 임베딩 생성 / 저장 / 삭제 인덱서
        """
        self._metadata_store = metadata_store
        self._schema_reader = schema_reader
        self._embedding_reader = embedding_reader
        self._schema_indexer = schema_indexer

    def incremental_schema_update(self, connection_id: str) -> IncrementalUpdateResult:
        """현재 스키마와 임베딩된 스키마의 차이만 반영.

        변경이 없으면 벡터 저장소와 table_schema 캐시에 아무것도 쓰지 않는다.

        Args:
            connection_id: 연결 ID

        Returns:
            IncrementalUpdateResult 객체
        """
        try:
            logger.info("증분 스키마 업데이트 시작 (연결 %s)", connection_id)

            connection = self._metadata_store.get_connection(connection_id)
            if connection is None:
                return IncrementalUpdateResult.failure("Connection not found")

            current_schema = self._schema_reader.get_current_schema(connection_id)
            existing_schema = self._embedding_reader.get_existing_schema(connection_id)
            comparison = compare_schemas(current_schema, existing_schema)

            logger.info(
                "스키마 비교 결과: 추가 %d, 삭제 %d, 변경 %d, 유지 %d",
                len(comparison.added_tables),
                len(comparison.removed_tables),
                len(comparison.modified_tables),
                len(comparison.unchanged_tables),
            )

            if not comparison.has_changes:
                logger.info("스키마 변경 없음")
                return IncrementalUpdateResult(
                    success=True,
                    details=UpdateDetails(unchanged=comparison.unchanged_tables),
                )

            result = IncrementalUpdateResult(
                success=True,
                tables_processed=(
                    len(comparison.added_tables)
                    + len(comparison.removed_tables)
                    + len(comparison.modified_tables)
                ),
                details=UpdateDetails(
                    added=comparison.added_tables,
                    removed=comparison.removed_tables,
                    modified=comparison.modified_tables,
                    unchanged=comparison.unchanged_tables,
                ),
            )

            # 1. 삭제된 테이블
            if comparison.removed_tables:
                logger.info("삭제된 테이블 임베딩 제거: %s", comparison.removed_tables)
                report = self._schema_indexer.delete_table_embeddings(
                    connection_id, comparison.removed_tables
                )
                result.vectors_removed = report.deleted_count * VARIANTS_PER_TABLE
                result.failed_deletions.extend(report.failed_tables)

            # 2. 추가된 테이블
            if comparison.added_tables:
                logger.info("새 테이블 임베딩 추가: %s", comparison.added_tables)
                result.vectors_added = self._embed_tables(
                    _select(current_schema, comparison.added_tables),
                    connection_id,
                    connection.connection_name,
                    connection.db_type,
                )

            # 3. 변경된 테이블 (삭제 후 재생성)
            if comparison.modified_tables:
                logger.info("변경된 테이블 임베딩 갱신: %s", comparison.modified_tables)
                report = self._schema_indexer.delete_table_embeddings(
                    connection_id, comparison.modified_tables
                )
                result.failed_deletions.extend(report.failed_tables)
                result.vectors_updated = self._embed_tables(
                    _select(current_schema, comparison.modified_tables),
                    connection_id,
                    connection.connection_name,
                    connection.db_type,
                )

            # 4. table_schema 캐시 갱신
            self._metadata_store.update_table_schema(connection_id, current_schema)

            logger.info("증분 스키마 업데이트 완료")
            return result

        except Exception as e:
            logger.exception("증분 스키마 업데이트 실패: %s", e)
            return IncrementalUpdateResult.failure(str(e) or "Unknown error")

    def smart_schema_update(self, connection_id: str, sql: str) -> IncrementalUpdateResult:
        """SQL 분석 결과에 따라 타깃 업데이트 또는 전체 증분 업데이트를 선택.

        Args:
            connection_id: 연결 ID
            sql: 실행된 SQL 문

        Returns:
            IncrementalUpdateResult 객체
        """
        try:
            detection = detect_schema_change_type(sql)
            logger.info("감지된 변경 타입: %s (%s)", detection.type.value, detection.affected_table)

            if detection.affected_table and detection.type in TARGETED_CHANGE_TYPES:
                return self.targeted_table_update(
                    connection_id, detection.affected_table, detection.type
                )

            logger.info("전체 증분 업데이트로 진행")
            return self.incremental_schema_update(connection_id)
        except Exception as e:
            logger.error("스마트 스키마 업데이트 실패, 증분 업데이트로 대체: %s", e)
            return self.incremental_schema_update(connection_id)

    def targeted_table_update(
        self, connection_id: str, table_name: str, change_type: ChangeType
    ) -> IncrementalUpdateResult:
        """단일 테이블의 임베딩만 갱신.

        카탈로그에서 테이블을 찾지 못하거나 예외가 발생하면 전체 증분
        업데이트로 대체한다.

        Args:
            connection_id: 연결 ID
            table_name: 대상 테이블 이름
            change_type: CREATE_TABLE, DROP_TABLE, ALTER_TABLE 중 하나

        Returns:
            IncrementalUpdateResult 객체
        """
        try:
            logger.info("테이블 %s 타깃 업데이트 (%s)", table_name, change_type.value)

            connection = self._metadata_store.get_connection(connection_id)
            if connection is None:
                raise LookupError("Connection not found")

            if change_type == ChangeType.DROP_TABLE:
                report = self._schema_indexer.delete_table_embeddings(
                    connection_id, [table_name]
                )
                return IncrementalUpdateResult(
                    success=True,
                    tables_processed=1,
                    vectors_removed=VARIANTS_PER_TABLE,
                    details=UpdateDetails(removed=[table_name]),
                    strategy="targeted",
                    failed_deletions=report.failed_tables,
                )

            columns = self._schema_reader.get_table_columns(connection_id, table_name)
            if columns:
                report = self._schema_indexer.delete_table_embeddings(
                    connection_id, [table_name]
                )
                vector_count = self._embed_tables(
                    [TableSchema(table_name=table_name, columns=columns)],
                    connection_id,
                    connection.connection_name,
                    connection.db_type,
                )

                is_create = change_type == ChangeType.CREATE_TABLE
                return IncrementalUpdateResult(
                    success=True,
                    tables_processed=1,
                    vectors_added=vector_count if is_create else 0,
                    vectors_updated=0 if is_create else vector_count,
                    details=UpdateDetails(
                        added=[table_name] if is_create else [],
                        modified=[] if is_create else [table_name],
                    ),
                    strategy="targeted",
                    failed_deletions=report.failed_tables,
                )

            logger.warning("카탈로그에서 테이블 %s를 찾지 못함, 증분 업데이트로 대체", table_name)
            return self.incremental_schema_update(connection_id)

        except Exception as e:
            logger.error("타깃 업데이트 실패, 증분 업데이트로 대체: %s", e)
            return self.incremental_schema_update(connection_id)

    def _embed_tables(
        self,
        tables: list[TableSchema],
        connection_id: str,
        connection_name: str,
        db_type: str,
    ) -> int:
        records = self._schema_indexer.generate_table_embeddings(
            tables, connection_id, connection_name, db_type
        )
        return self._schema_indexer.upsert_embeddings(records)


def _select(tables: list[TableSchema], names: list[str]) -> list[TableSchema]:
    wanted = set(names)
    return [t for t in tables if t.table_name in wanted]
