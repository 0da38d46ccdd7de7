"""스키마 인덱서 - 테이블 스키마 임베딩 생성, 저장, 삭제."""

import time
from datetime import datetime, timezone
from typing import Any

from datashorts.adapters.vector_store.milvus_adapter import build_filter_expr
from datashorts.core.logging import get_logger
from datashorts.core.models import (
    PIPELINE_TAG,
    SCHEMA_RECORD_TYPE,
    DeletionReport,
    SchemaVectorRecord,
    TableDeletion,
    TableSchema,
)

logger = get_logger(__name__)

TEXT_TEMPLATES = [
    "Table {table} contains the following columns: {columns}",
    "The {table} table has columns: {columns}",
    "{table} table with columns: {columns}",
    "Database table {table} containing: {columns}",
]


def build_text_variations(table: TableSchema) -> list[str]:
    """테이블 하나에 대한 고정된 4개의 설명 문장을 생성.

    Args:
        table: 테이블 스키마

    Returns:
        설명 문장 리스트
    """
    columns = table.column_descriptions()
    return [
        template.format(table=table.table_name, columns=columns)
        for template in TEXT_TEMPLATES
    ]


class SchemaIndexer:
    """테이블 스키마를 벡터 저장소에 인덱싱하는 서비스."""

    def __init__(
        self,
        embedding_service: Any,
        milvus_adapter: Any,
        collection_name: str,
    ) -> None:
        """인덱서 초기화.

        Args:
            embedding_service: 임베딩 서비스
            milvus_adapter: Milvus 어댑터
            collection_name: 컬렉션 이름
        """
        self._embedding_service = embedding_service
        self._milvus_adapter = milvus_adapter
        self._collection_name = collection_name
        self._milvus_adapter.ensure_collection(
            collection_name, self._embedding_service.dimension
        )

    def generate_table_embeddings(
        self,
        tables: list[TableSchema],
        connection_id: str,
        connection_name: str,
        db_type: str,
    ) -> list[SchemaVectorRecord]:
        """테이블마다 4개의 임베딩 레코드를 생성.

        ID에 타임스탬프가 붙으므로 같은 테이블을 다시 생성하면 ID가 달라진다.
        정리는 ID가 아닌 메타데이터 필터 삭제로 한다.

        Args:
            tables: 임베딩할 테이블 스키마 리스트
            connection_id: 연결 ID
            connection_name: 연결 이름
            db_type: 데이터베이스 타입

        Returns:
            SchemaVectorRecord 리스트
        """
        records: list[SchemaVectorRecord] = []

        for table in tables:
            texts = build_text_variations(table)
            embeddings = self._embedding_service.embed_batch(texts)
            timestamp = int(time.time() * 1000)
            updated_at = datetime.now(timezone.utc).isoformat()
            columns = table.column_descriptions()

            for index, (text, embedding) in enumerate(zip(texts, embeddings)):
                records.append(
                    SchemaVectorRecord(
                        id=f"schema-{connection_id}-{table.table_name}-{index}-{timestamp}",
                        values=embedding,
                        metadata={
                            "connection_id": str(connection_id),
                            "connection_name": connection_name,
                            "db_type": db_type,
                            "table_name": table.table_name,
                            "text": text,
                            "columns": columns,
                            "pipeline": PIPELINE_TAG,
                            "type": SCHEMA_RECORD_TYPE,
                            "updated_at": updated_at,
                        },
                    )
                )

        return records

    def upsert_embeddings(self, records: list[SchemaVectorRecord]) -> int:
        """임베딩 레코드를 벡터 저장소에 upsert.

        Args:
            records: 저장할 레코드 리스트

        Returns:
            저장된 레코드 수
        """
        if not records:
            return 0

        vector_data = [
            {"id": record.id, "embedding": record.values, **record.metadata}
            for record in records
        ]
        self._milvus_adapter.upsert_vectors(self._collection_name, vector_data)
        return len(records)

    def delete_table_embeddings(
        self, connection_id: str, table_names: list[str]
    ) -> DeletionReport:
        """테이블별 임베딩을 메타데이터 필터로 삭제.

        한 테이블의 삭제가 실패해도 나머지 테이블은 계속 처리하며,
        실패 내역은 결과에 기록된다.

        Args:
            connection_id: 연결 ID
            table_names: 삭제할 테이블 이름 리스트

        Returns:
            DeletionReport 객체
        """
        report = DeletionReport()

        for table_name in table_names:
            expr = build_filter_expr(
                connection_id=str(connection_id),
                pipeline=PIPELINE_TAG,
                type=SCHEMA_RECORD_TYPE,
                table_name=table_name,
            )
            try:
                self._milvus_adapter.delete_by_expr(self._collection_name, expr)
                report.outcomes.append(TableDeletion(table_name=table_name, success=True))
                logger.info("테이블 %s 임베딩 삭제", table_name)
            except Exception as e:
                logger.error("테이블 %s 임베딩 삭제 실패: %s", table_name, e)
                report.outcomes.append(
                    TableDeletion(table_name=table_name, success=False, error=str(e))
                )

        return report
